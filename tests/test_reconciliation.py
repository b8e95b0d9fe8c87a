"""
Tests for numeric reconciliation and result merging
"""

from decimal import Decimal

import pytest

from invex.models.invoice import (
    UNKNOWN_VENDOR,
    ExtractedInvoice,
    ExtractionMethod,
    ExtractionResult,
    LineItem,
)
from invex.processors.invoice.merger import ResultMerger, is_default
from invex.processors.invoice.normalizer import Reconciler, reconcile_invoice


def make_items(*amounts):
    return [
        LineItem(description=f'Item {i + 1}', quantity=1, unit_price=amount, amount=amount)
        for i, amount in enumerate(amounts)
    ]


def make_result(method, confidence, **fields):
    return ExtractionResult(method=method, confidence=confidence, data=ExtractedInvoice(**fields))


class TestReconciler:
    """Tests for Reconciler"""

    def test_amount_is_recomputed(self):
        invoice = ExtractedInvoice(
            items=[LineItem(description='Bolts', quantity=3, unit_price='10.00', amount='25.00')],
            total='30.00',
        )

        result = reconcile_invoice(invoice)

        assert result.items[0].amount == Decimal('30.00')

    @pytest.mark.parametrize('quantity, unit_price', [(1, 0), (0, 12)])
    def test_amount_is_recomputed_with_zero_factor(self, quantity, unit_price):
        invoice = ExtractedInvoice(
            items=[LineItem(description='Consulting', quantity=quantity, unit_price=unit_price, amount='50.00')],
        )

        result = reconcile_invoice(invoice)

        assert result.items[0].amount == Decimal('0.00')

    def test_small_amount_difference_is_kept(self):
        invoice = ExtractedInvoice(
            items=[LineItem(description='Bolts', quantity=3, unit_price='3.33', amount='10.00')],
            total='10.00',
        )

        result = reconcile_invoice(invoice)

        assert result.items[0].amount == Decimal('10.00')

    def test_total_explained_by_tax_is_kept(self):
        invoice = ExtractedInvoice(items=make_items('60.00', '40.00'), tax='8.00', total='108.00')

        result = reconcile_invoice(invoice)

        assert result.total == Decimal('108.00')

    def test_unexplained_total_is_corrected(self):
        invoice = ExtractedInvoice(items=make_items('60.00', '40.00'), tax='0', total='150.00')

        result = reconcile_invoice(invoice)

        assert result.total == Decimal('100.00')

    def test_corrected_total_includes_tax(self):
        invoice = ExtractedInvoice(items=make_items('100.00'), tax='5.00', total='300.00')

        result = reconcile_invoice(invoice)

        assert result.total == Decimal('105.00')

    def test_placeholder_items_leave_total_alone(self):
        invoice = ExtractedInvoice(total='80.00')

        result = reconcile_invoice(invoice)

        assert result.total == Decimal('80.00')

    def test_string_numbers_are_coerced(self):
        result = Reconciler().reconcile({
            'invoiceNumber': 'A-1',
            'items': [{'description': 'Paint', 'quantity': '2', 'unitPrice': '$12.50', 'amount': '$25.00'}],
            'subtotal': '$25.00',
            'tax': '$2.00',
            'total': '$27.00',
        })

        assert result.items[0].unit_price == Decimal('12.50')
        assert result.subtotal == Decimal('25.00')
        assert result.total == Decimal('27.00')

    @pytest.mark.parametrize('invoice', [
        ExtractedInvoice(),
        ExtractedInvoice(items=make_items('60.00', '40.00'), tax='8.00', total='108.00'),
        ExtractedInvoice(items=make_items('60.00', '40.00'), total='150.00'),
        ExtractedInvoice(
            items=[
                LineItem(description='Bolts', quantity=3, unit_price='10.00', amount='25.00'),
                LineItem(description='Nuts', quantity=7, unit_price='0.333', amount='1.00'),
            ],
            tax='0.50',
            total='1.00',
        ),
    ])
    def test_reconcile_is_idempotent(self, invoice):
        once = reconcile_invoice(invoice)
        twice = reconcile_invoice(once)

        assert twice == once

    def test_input_is_not_mutated(self):
        invoice = ExtractedInvoice(items=make_items('60.00', '40.00'), total='150.00')

        reconcile_invoice(invoice)

        assert invoice.total == Decimal('150.00')


class TestResultMerger:
    """Tests for ResultMerger"""

    def test_default_vendor_is_filled_from_lower_confidence(self):
        a = make_result(ExtractionMethod.VISION, 0.9, vendor=UNKNOWN_VENDOR, invoice_number='INV-1')
        b = make_result(ExtractionMethod.REGEX, 0.7, vendor='Acme Corp', invoice_number='OTHER-9')

        merged = ResultMerger().merge([a, b])

        assert merged.vendor == 'Acme Corp'
        assert merged.invoice_number == 'INV-1'

    def test_vendor_containing_unknown_is_kept(self):
        a = make_result(ExtractionMethod.VISION, 0.9, vendor='Unknown Mortals Records')
        b = make_result(ExtractionMethod.REGEX, 0.7, vendor='Beta LLC')

        merged = ResultMerger().merge([a, b])

        assert merged.vendor == 'Unknown Mortals Records'

    def test_order_of_input_does_not_matter(self):
        a = make_result(ExtractionMethod.VISION, 0.9, vendor='Vision Vendor')
        b = make_result(ExtractionMethod.REGEX, 0.7, vendor='Regex Vendor')

        merged = ResultMerger().merge([b, a])

        assert merged.vendor == 'Vision Vendor'
        assert merged.extraction_methods[0] == 'vision'

    def test_higher_confidence_value_is_kept(self):
        a = make_result(ExtractionMethod.TEXT_MODEL, 0.85, customer='Beta LLC', total='50.00')
        b = make_result(ExtractionMethod.REGEX, 0.7, customer='Gamma Inc', total='75.00')

        merged = ResultMerger().merge([a, b])

        assert merged.customer == 'Beta LLC'
        assert merged.total == Decimal('50.00')
        assert merged.extraction_methods == ['textModel']

    def test_zero_total_is_filled(self):
        a = make_result(ExtractionMethod.VISION, 0.9, invoice_number='INV-1')
        b = make_result(ExtractionMethod.REGEX, 0.7, total='42.00')

        merged = ResultMerger().merge([a, b])

        assert merged.total == Decimal('42.00')
        assert merged.extraction_methods == ['vision', 'regex']

    def test_placeholder_items_are_replaced(self):
        a = make_result(ExtractionMethod.VISION, 0.9, total='30.00')
        b = make_result(ExtractionMethod.REGEX, 0.7, items=make_items('30.00'))

        merged = ResultMerger().merge([a, b])

        assert [item.description for item in merged.items] == ['Item 1']

    def test_more_items_override_single_item(self):
        a = make_result(ExtractionMethod.VISION, 0.9, items=make_items('90.00'), total='90.00')
        b = make_result(ExtractionMethod.REGEX, 0.7, items=make_items('40.00', '50.00'), total='90.00')

        merged = ResultMerger().merge([a, b])

        assert len(merged.items) == 2

    def test_items_are_not_overridden_when_already_several(self):
        a = make_result(ExtractionMethod.VISION, 0.9, items=make_items('40.00', '50.00'), total='90.00')
        b = make_result(
            ExtractionMethod.REGEX, 0.7, items=make_items('30.00', '30.00', '30.00'), total='90.00'
        )

        merged = ResultMerger().merge([a, b])

        assert len(merged.items) == 2

    def test_merged_record_is_reconciled(self):
        a = make_result(
            ExtractionMethod.VISION, 0.9,
            items=[LineItem(description='Bolts', quantity=3, unit_price=10, amount=25)],
            total='25.00',
        )

        merged = ResultMerger().merge([a])

        assert merged.items[0].amount == Decimal('30.00')
        assert merged.total == Decimal('30.00')

    def test_no_results_gives_sentinel_record(self):
        merged = ResultMerger().merge([])

        assert merged == reconcile_invoice(ExtractedInvoice())
        assert merged.items[0].is_placeholder

    @pytest.mark.parametrize('value, expected', [
        ('', True),
        ('Unknown', True),
        ('Unknown Vendor', True),
        ('Acme Corp', False),
        ('Unknown Customer', True),
        ('Unknown Mortals Records', False),
        ('The Unknown Baker', False),
        (Decimal('0'), True),
        (Decimal('0.01'), False),
    ])
    def test_is_default(self, value, expected):
        assert is_default(value) is expected
