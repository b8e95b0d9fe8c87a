"""
Invoice Reconciler

Shared numeric normalization applied to every strategy's output and again
to the merged record:

- Numbers given as strings ("$1,200.00") are coerced to Decimal
- Line item amounts are recomputed from quantity x unit price
- The total is made consistent with the line items and tax (when any items
  were detected)

Running it twice gives the same result as running it once.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Union

from invex.models.invoice import ExtractedInvoice, LineItem, round_money

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Repairs numeric inconsistencies in an extracted invoice.

    Features:
    - Per-item amount correction when it disagrees with quantity x unit price
    - Total correction when it disagrees with the items, unless tax explains it
    """

    def __init__(self, amount_tolerance: Decimal = Decimal('0.10'), total_tolerance: Decimal = Decimal('1')):
        self.amount_tolerance = amount_tolerance
        self.total_tolerance = total_tolerance

    def reconcile(self, invoice: Union[ExtractedInvoice, Dict[str, Any]]) -> ExtractedInvoice:
        """
        Reconcile an invoice.

        Args:
            invoice: Invoice record, or a raw dict using the camelCase JSON
                contract (string-typed numbers are accepted)

        Returns:
            New, reconciled invoice record
        """
        if not isinstance(invoice, ExtractedInvoice):
            invoice = ExtractedInvoice.model_validate(invoice)

        items = [self._reconcile_item(item) for item in invoice.items]
        items_total = round_money(sum((item.amount for item in items), Decimal('0')))

        # The placeholder item says nothing about the total
        has_items = any(not item.is_placeholder for item in items)

        total = invoice.total
        if has_items and abs(items_total - total) > self.total_tolerance:
            if abs(items_total + invoice.tax - total) > self.total_tolerance:
                corrected = round_money(items_total + invoice.tax)
                logger.debug(f"Total {total} corrected to {corrected}")
                total = corrected

        return invoice.model_copy(update={'items': items, 'total': total})

    def _reconcile_item(self, item: LineItem) -> LineItem:
        expected = item.quantity * item.unit_price
        if abs(expected - item.amount) > self.amount_tolerance:
            return item.model_copy(update={'amount': round_money(expected)})
        return item


_default_reconciler = Reconciler()


def reconcile_invoice(invoice: Union[ExtractedInvoice, Dict[str, Any]]) -> ExtractedInvoice:
    """Reconcile with the default tolerances"""
    return _default_reconciler.reconcile(invoice)
