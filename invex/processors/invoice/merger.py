"""
Result Merger

Combines the results of several extraction strategies into one invoice.
The most confident result is the base; lower-confidence results only fill
fields the base left empty or at their default.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Sequence

from invex.models.invoice import (
    UNKNOWN,
    UNKNOWN_CUSTOMER,
    UNKNOWN_VENDOR,
    ExtractedInvoice,
    ExtractionResult,
)
from invex.processors.invoice.normalizer import Reconciler

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('invoice_number', 'date', 'due_date', 'vendor', 'customer')
AMOUNT_FIELDS = ('subtotal', 'tax', 'total')
SENTINELS = frozenset({UNKNOWN, UNKNOWN_VENDOR, UNKNOWN_CUSTOMER})


def is_default(value: Any) -> bool:
    """True for empty strings, the Unknown sentinels, zero amounts and placeholder items"""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip() or value.strip() in SENTINELS
    if isinstance(value, Decimal):
        return value == 0
    if isinstance(value, list):
        return not any(not item.is_placeholder for item in value)
    return False


class ResultMerger:
    """Field-level merge of strategy results"""

    def __init__(self, reconciler: Reconciler = None):
        self.reconciler = reconciler or Reconciler()

    def merge(self, results: Sequence[ExtractionResult]) -> ExtractedInvoice:
        """
        Merge strategy results.

        Args:
            results: Results in any order

        Returns:
            Reconciled, merged invoice (all sentinels if there were no results)
        """
        if not results:
            return self.reconciler.reconcile(ExtractedInvoice())

        ordered = sorted(results, key=lambda result: result.confidence, reverse=True)
        base = ordered[0]

        merged: Dict[str, Any] = {
            name: getattr(base.data, name) for name in TEXT_FIELDS + AMOUNT_FIELDS + ('items',)
        }
        methods: List[str] = [base.method.value]

        for result in ordered[1:]:
            contributed = False
            alternative = result.data

            for name in TEXT_FIELDS + AMOUNT_FIELDS:
                value = getattr(alternative, name)
                if is_default(merged[name]) and not is_default(value):
                    merged[name] = value
                    contributed = True

            # More items win over confidence while the merged list is short
            if is_default(merged['items']) and not is_default(alternative.items):
                merged['items'] = alternative.items
                contributed = True
            elif len(alternative.items) > len(merged['items']) and len(merged['items']) <= 1:
                merged['items'] = alternative.items
                contributed = True

            if contributed:
                methods.append(result.method.value)

        merged['extraction_methods'] = methods
        logger.info(f"Merged {len(ordered)} results from {', '.join(methods)}")

        return self.reconciler.reconcile(ExtractedInvoice(**merged))
