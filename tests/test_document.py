"""
Tests for document loading
"""

from unittest.mock import patch

import pytest

from invex.models.invoice import InvoiceProcessingConfig
from invex.processors import document as document_module
from invex.processors.document import InvoiceDocument, sniff_mime_type


class TestSniffMimeType:
    """Tests for sniff_mime_type"""

    @pytest.mark.parametrize('content, declared, expected', [
        (b'%PDF-1.7 ...', None, 'application/pdf'),
        (b'%PDF-1.7 ...', 'application/octet-stream', 'application/pdf'),
        (b'\xff\xd8\xff\xe0 jpeg', 'image/png', 'image/jpeg'),
        (b'\x89PNG\r\n\x1a\n', None, 'image/png'),
        (b'Invoice 42', None, 'text/plain'),
        (b'Invoice 42', 'text/plain; charset=utf-8', 'text/plain'),
    ])
    def test_detects_type(self, content, declared, expected):
        assert sniff_mime_type(content, declared) == expected

    def test_declared_binary_type_must_match(self):
        with pytest.raises(ValueError):
            sniff_mime_type(b'just text', 'application/pdf')

    def test_rejects_unknown_binary(self):
        with pytest.raises(ValueError):
            sniff_mime_type(b'PK\x03\x04\xff\xfe', 'application/zip')


class TestInvoiceDocument:
    """Tests for InvoiceDocument"""

    def test_empty_input_is_rejected(self):
        with pytest.raises(ValueError):
            InvoiceDocument(b'', 'application/pdf')

    def test_oversized_input_is_rejected(self):
        config = InvoiceProcessingConfig(max_file_bytes=10)
        with pytest.raises(ValueError):
            InvoiceDocument(b'x' * 11, 'text/plain', config)

    def test_text_document(self):
        document = InvoiceDocument.from_text('Invoice 42\nTotal $5.00')

        assert document.is_text
        assert document.text == 'Invoice 42\nTotal $5.00'
        assert document.page_image() is None

    def test_image_page_is_the_image(self):
        content = b'\x89PNG\r\n\x1a\n' + b'\x00' * 8
        document = InvoiceDocument(content, None)

        assert document.is_image
        assert document.page_image() == (content, 'image/png')

    def test_pdf_text_layer(self):
        document = InvoiceDocument(b'%PDF-1.4 fake', 'application/pdf')
        pdf_text = 'Invoice INV-1\fTotal 10.00 ' + 'x' * 200

        with patch.object(document_module, 'HAS_PDFMINER', True), \
                patch.object(document_module, 'extract_text', create=True, return_value=pdf_text), \
                patch.object(document_module, 'PDFPage', create=True) as pdf_page:
            pdf_page.get_pages.return_value = [object()]
            text = document.text

        assert text.startswith('Invoice INV-1\nTotal 10.00')
        assert not document.ocr_applied

    def test_pdf_without_text_layer_and_ocr(self):
        config = InvoiceProcessingConfig(enable_ocr=False)
        document = InvoiceDocument(b'%PDF-1.4 fake', 'application/pdf', config)

        with patch.object(document_module, 'HAS_PDFMINER', False):
            assert document.text == ''

    def test_pdf_page_without_renderer(self):
        document = InvoiceDocument(b'%PDF-1.4 fake', 'application/pdf')

        with patch.object(document_module, 'HAS_PDF2IMAGE', False):
            assert document.page_image() is None
