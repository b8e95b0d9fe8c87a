"""
Tests for the plausibility rules
"""

from decimal import Decimal

import pytest

from invex.models.invoice import ExtractedInvoice, LineItem
from invex.processors.invoice.regex_extractor import RegexExtractor
from invex.processors.invoice.validator import DocumentClassifier, InvoiceValidator


def good_invoice(**overrides):
    fields = dict(
        invoice_number='INV-100',
        vendor='Acme Corp',
        customer='Beta LLC',
        items=[
            LineItem(description='Consulting', quantity=2, unit_price=100, amount=200),
            LineItem(description='Travel', quantity=1, unit_price=50, amount=50),
        ],
        subtotal=Decimal('250.00'),
        total=Decimal('250.00'),
    )
    fields.update(overrides)
    return ExtractedInvoice(**fields)


class TestInvoiceValidator:
    """Tests for InvoiceValidator"""

    def test_accepts_complete_invoice(self):
        assert InvoiceValidator().validate(good_invoice()) == (True, None)

    @pytest.mark.parametrize('overrides, missing', [
        ({'invoice_number': 'Unknown'}, 'invoice number'),
        ({'vendor': 'Unknown Vendor'}, 'vendor'),
    ])
    def test_requires_identity_fields(self, overrides, missing):
        plausible, reason = InvoiceValidator().validate(good_invoice(**overrides))

        assert plausible is False
        assert missing in reason

    def test_requires_positive_total(self):
        invoice = good_invoice(
            items=[LineItem(description='Credit note line', quantity=1, unit_price=0, amount=0)],
            subtotal=Decimal('0'),
            total=Decimal('0'),
        )

        plausible, reason = InvoiceValidator().validate(invoice)

        assert plausible is False
        assert 'positive total' in reason

    def test_rejects_empty_invoice_with_amounts(self):
        invoice = good_invoice(items=[], subtotal=Decimal('0'), total=Decimal('99.00'))

        plausible, reason = InvoiceValidator().validate(invoice)

        assert plausible is False
        assert 'empty' in reason

    def test_rejects_numeric_inconsistency(self):
        plausible, _ = InvoiceValidator().validate(good_invoice(subtotal=Decimal('5000.00')))
        assert plausible is False

    def test_unprinted_subtotal_is_not_inconsistent(self):
        invoice = good_invoice(
            items=[LineItem(description='Server rack', quantity=1, unit_price=4800, amount=4800)],
            subtotal=Decimal('0'),
            total=Decimal('4800.00'),
        )

        assert InvoiceValidator().validate(invoice) == (True, None)

    def test_rejects_large_subtotal_with_tiny_total(self):
        classifier = DocumentClassifier()
        invoice = good_invoice(subtotal=Decimal('1050.00'), total=Decimal('60.00'))

        plausible, _ = classifier.classify(invoice)

        assert plausible is False

    @pytest.mark.parametrize('vendor', [
        'First Bank - Account Statement',
        'Maple Grove Homeowners Association',
        'QuickMart Store Receipt',
    ])
    def test_rejects_statement_and_receipt_keywords(self, vendor):
        plausible, reason = InvoiceValidator().validate(good_invoice(vendor=vendor))

        assert plausible is False
        assert reason

    def test_rejects_receipt_keyword_in_items(self):
        invoice = good_invoice(items=[
            LineItem(description='Coffee', quantity=1, unit_price=4, amount=4),
            LineItem(description='Cashier: Dana', quantity=1, unit_price=0, amount=0),
        ], subtotal=Decimal('4.00'), total=Decimal('4.00'))

        plausible, reason = InvoiceValidator().validate(invoice)

        assert plausible is False
        assert 'receipt' in reason

    def test_rejects_statement_structure_without_invoice_number(self):
        invoice = good_invoice(
            invoice_number='Unknown',
            items=[
                LineItem(description='Payment received', quantity=1, unit_price=100, amount=100),
                LineItem(description='Balance forward', quantity=1, unit_price=150, amount=150),
            ],
        )

        plausible, reason = DocumentClassifier().classify(invoice)

        assert plausible is False
        assert 'Statement-shaped' in reason

    def test_rejects_receipt_structure_without_invoice_number(self):
        invoice = good_invoice(
            invoice_number='Unknown',
            items=[
                LineItem(description='Sandwich', quantity=1, unit_price=9, amount=9),
                LineItem(description='Order total', quantity=1, unit_price=0, amount=0),
            ],
            subtotal=Decimal('9.00'),
            total=Decimal('9.00'),
        )

        plausible, reason = DocumentClassifier().classify(invoice)

        assert plausible is False
        assert 'Receipt-shaped' in reason

    def test_rejects_association_fee_with_single_item(self):
        invoice = good_invoice(
            vendor='Lakeside Community Council',
            items=[LineItem(description='Quarterly dues', quantity=1, unit_price=250, amount=250)],
        )

        plausible, reason = InvoiceValidator().validate(invoice)

        assert plausible is False
        assert 'association' in reason


class TestDocumentClassifier:
    """Tests for DocumentClassifier"""

    def test_passes_incomplete_but_unsuspicious_record(self):
        invoice = ExtractedInvoice(vendor='Acme Corp')
        assert DocumentClassifier().classify(invoice) == (True, None)

    def test_rejects_bank_statement_text(self, bank_statement_text):
        invoice = RegexExtractor().extract(bank_statement_text).data

        plausible, reason = DocumentClassifier().classify(invoice, bank_statement_text)

        assert invoice.invoice_number == 'Unknown'
        assert plausible is False
        assert reason

    def test_strong_phrases_skipped_for_labelled_invoice_number(self):
        text = 'Invoice INV-9\nOpening balance adjustments are listed below'
        invoice = good_invoice(invoice_number='INV-9')

        assert DocumentClassifier().classify(invoice, text) == (True, None)

    def test_rejects_statement_with_account_number(self, bank_statement_text):
        text = bank_statement_text.replace('Account Statement\n', 'Account Statement\nAccount Number: 12345678\n')
        invoice = RegexExtractor().extract(text).data

        plausible, reason = DocumentClassifier().classify(invoice, text)

        assert invoice.invoice_number == '12345678'
        assert plausible is False
        assert reason

    def test_unlabelled_number_does_not_skip_strong_phrases(self):
        text = 'Account Number: 12345678\nOpening Balance 100.00'
        invoice = good_invoice(invoice_number='12345678')

        plausible, reason = DocumentClassifier().classify(invoice, text)

        assert plausible is False
        assert 'opening' in reason

    def test_strong_phrase_rejects_when_no_invoice_number(self):
        text = 'Summary\nOpening Balance 100.00\nClosing Balance 150.00'
        invoice = ExtractedInvoice(vendor='Acme Corp')

        plausible, reason = DocumentClassifier().classify(invoice, text)

        assert plausible is False
        assert 'opening' in reason
