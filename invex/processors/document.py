"""
Invoice Document Input

Wraps the uploaded bytes and exposes what the extraction strategies need:
the sniffed file type, the text layer and a page image.

Features:
- File type detection from magic bytes (the declared MIME type is a hint only)
- Embedded PDF text via pdfminer.six
- OCR using Tesseract (via pytesseract) for images and scanned PDFs
- First-page rasterisation via pdf2image so vision models can read PDFs
"""

import io
import logging
import re
from typing import List, Optional, Tuple

from invex.models.invoice import InvoiceProcessingConfig

logger = logging.getLogger(__name__)

# Optional dependencies
try:
    from pdf2image import convert_from_bytes
    HAS_PDF2IMAGE = True
except ImportError:
    HAS_PDF2IMAGE = False

try:
    import pytesseract
    HAS_TESSERACT = True
except ImportError:
    HAS_TESSERACT = False

try:
    from PIL import Image
    HAS_PIL = True
except ImportError:
    HAS_PIL = False

try:
    from pdfminer.high_level import extract_text
    from pdfminer.pdfpage import PDFPage
    HAS_PDFMINER = True
except ImportError:
    HAS_PDFMINER = False


PDF = 'application/pdf'
JPEG = 'image/jpeg'
PNG = 'image/png'
TEXT = 'text/plain'

SUPPORTED_MIME_TYPES = (PDF, JPEG, PNG, TEXT)

# Minimum non-whitespace characters per page before a PDF counts as scanned
TEXT_THRESHOLD_PER_PAGE = 50


def sniff_mime_type(content: bytes, declared: Optional[str] = None) -> str:
    """
    Determine the document type from its leading bytes.

    Args:
        content: Raw document bytes
        declared: MIME type reported by the uploader, if any

    Returns:
        One of SUPPORTED_MIME_TYPES

    Raises:
        ValueError: If the content is not a supported document type
    """
    if content.startswith(b'%PDF'):
        return PDF
    if content.startswith(b'\xff\xd8\xff'):
        return JPEG
    if content.startswith(b'\x89PNG'):
        return PNG

    declared = (declared or '').split(';')[0].strip().lower()
    if declared in (PDF, JPEG, PNG):
        raise ValueError(f"Content does not look like {declared}")

    try:
        content.decode('utf-8')
    except UnicodeDecodeError:
        raise ValueError(
            f"Unsupported document type '{declared or 'unknown'}'. "
            "Expected PDF, JPEG, PNG or plain text."
        )
    return TEXT


class InvoiceDocument:
    """
    A single uploaded document.

    The text layer and page image are computed lazily and cached, so each
    strategy pays only for what it uses.
    """

    def __init__(
        self,
        content: bytes,
        mime_type: Optional[str] = None,
        config: Optional[InvoiceProcessingConfig] = None
    ):
        self.config = config or InvoiceProcessingConfig()

        if not content:
            raise ValueError("Document is empty")
        if len(content) > self.config.max_file_bytes:
            raise ValueError(
                f"Document is {len(content)} bytes; the limit is {self.config.max_file_bytes} bytes"
            )

        self.content = content
        self.declared_mime_type = mime_type
        self.mime_type = sniff_mime_type(content, mime_type)

        self._text: Optional[str] = None
        self._page_image: Optional[Tuple[bytes, str]] = None
        self.ocr_applied = False

    @classmethod
    def from_text(cls, text: str, config: Optional[InvoiceProcessingConfig] = None) -> 'InvoiceDocument':
        return cls(text.encode('utf-8'), TEXT, config)

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == PDF

    @property
    def is_image(self) -> bool:
        return self.mime_type in (JPEG, PNG)

    @property
    def is_text(self) -> bool:
        return self.mime_type == TEXT

    @property
    def text(self) -> str:
        """Plain text of the document ('' when none can be obtained)"""
        if self._text is None:
            self._text = self._extract_text()
        return self._text

    def page_image(self) -> Optional[Tuple[bytes, str]]:
        """
        Image of the first page for vision models.

        Returns:
            Tuple of (image_bytes, mime_type), or None for text documents
            and PDFs that cannot be rasterised
        """
        if self.is_image:
            return self.content, self.mime_type
        if not self.is_pdf:
            return None
        if self._page_image is None:
            self._page_image = self._render_first_page()
        return self._page_image

    def _extract_text(self) -> str:
        if self.is_text:
            return self.content.decode('utf-8', errors='ignore')

        if self.is_pdf:
            existing_text, needs_ocr = self._assess_pdf_text()
            if needs_ocr and self._ocr_available():
                ocr_text = self._ocr_images(self._pdf_pages())
                if len(ocr_text.strip()) > len(existing_text.strip()):
                    self.ocr_applied = True
                    return ocr_text
            return existing_text

        if self.is_image and self._ocr_available():
            try:
                image = Image.open(io.BytesIO(self.content))
            except Exception as e:
                logger.warning(f"Could not open image for OCR: {e}")
                return ''
            self.ocr_applied = True
            return self._ocr_images([image])

        return ''

    def _assess_pdf_text(self) -> Tuple[str, bool]:
        """
        Assess if the PDF has embedded text or needs OCR.

        Returns:
            Tuple of (existing_text, needs_ocr)
        """
        if not HAS_PDFMINER:
            logger.warning("pdfminer.six is not installed; PDF text layer unavailable")
            return '', True

        try:
            existing_text = extract_text(io.BytesIO(self.content))
        except Exception as e:
            logger.warning(f"pdfminer extraction failed: {e}")
            return '', True

        # Page breaks only get in the way of line-based parsing
        existing_text = existing_text.replace('\f', '\n')

        text_chars = len(re.sub(r'\s+', '', existing_text))
        try:
            page_count = sum(1 for _ in PDFPage.get_pages(io.BytesIO(self.content)))
        except Exception:
            page_count = 1

        chars_per_page = text_chars / max(page_count, 1)
        return existing_text, chars_per_page < TEXT_THRESHOLD_PER_PAGE

    def _ocr_available(self) -> bool:
        if not self.config.enable_ocr:
            return False
        missing = [
            name for name, present in (
                ('pytesseract', HAS_TESSERACT), ('Pillow', HAS_PIL), ('pdf2image', HAS_PDF2IMAGE or not self.is_pdf)
            ) if not present
        ]
        if missing:
            logger.debug(f"OCR skipped, dependencies not installed: {', '.join(missing)}")
            return False
        return True

    def _pdf_pages(self) -> List['Image.Image']:
        try:
            return convert_from_bytes(self.content, dpi=self.config.ocr_dpi)
        except Exception as e:
            logger.warning(f"Could not rasterise PDF: {e}")
            return []

    def _ocr_images(self, images: List['Image.Image']) -> str:
        pages = []
        for i, image in enumerate(images):
            try:
                pages.append(pytesseract.image_to_string(image, lang=self.config.ocr_lang))
            except Exception as e:
                logger.warning(f"OCR failed on page {i + 1}: {e}")
        return '\n'.join(pages)

    def _render_first_page(self) -> Optional[Tuple[bytes, str]]:
        if not (HAS_PDF2IMAGE and HAS_PIL):
            logger.debug("pdf2image/Pillow not installed; PDF cannot be sent to a vision model")
            return None
        try:
            pages = convert_from_bytes(
                self.content, dpi=self.config.ocr_dpi, first_page=1, last_page=1
            )
        except Exception as e:
            logger.warning(f"Could not render PDF page for vision: {e}")
            return None
        if not pages:
            return None

        buffer = io.BytesIO()
        pages[0].save(buffer, format='PNG')
        return buffer.getvalue(), PNG
