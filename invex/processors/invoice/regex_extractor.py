"""
Regex Invoice Extractor

Deterministic extraction from the document text layer. Always available,
needs no model call, and is the fallback when both model strategies fail.
"""

import datetime
import logging
from decimal import Decimal
from typing import Dict, Optional, Tuple

from invex.models.invoice import (
    UNKNOWN,
    UNKNOWN_CUSTOMER,
    UNKNOWN_VENDOR,
    ExtractedInvoice,
    ExtractionMethod,
    ExtractionResult,
    parse_date,
    round_money,
)
from invex.processors.base import ExtractionStrategy, ParseFailure
from invex.processors.document import InvoiceDocument
from invex.processors.invoice.line_items import ItemParser
from invex.processors.invoice.patterns import (
    CUSTOMER_PATTERNS,
    DUE_DATE_PATTERNS,
    HEADER_COMPANY_LINE,
    HEADER_STOPWORDS,
    INVOICE_DATE_PATTERNS,
    INVOICE_NUMBER_PATTERNS,
    NET_TERMS_PATTERNS,
    TOTAL_LABEL_FALLBACKS,
    VENDOR_PATTERNS,
    extract_amount,
    find_largest_amount,
    first_match,
)

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_DAYS = 30

# Number of leading lines searched for a bare company name
HEADER_LINES = 5

ITEMS_CONFIDENCE = 0.8
TOTAL_LABEL_CONFIDENCE = 0.9
LARGEST_AMOUNT_CONFIDENCE = 0.5

# Discrepancy below which summed items are trusted over the printed total
RELATIVE_DISCREPANCY = Decimal('0.2')


def _is_party_name(value: str) -> bool:
    return len(value) >= 3 and any(char.isalpha() for char in value)


class RegexExtractor(ExtractionStrategy):
    """
    Pattern-based invoice extraction.

    Each field is resolved by an ordered pattern list; the confidence of the
    winning pattern is kept per field in the result's field_confidence.
    """

    method = ExtractionMethod.REGEX

    def __init__(self, config=None):
        super().__init__(config)
        self.item_parser = ItemParser()

    def can_process(self, document: InvoiceDocument) -> bool:
        return bool(document.text.strip())

    async def _extract(self, document: InvoiceDocument) -> ExtractionResult:
        text = document.text
        if not text.strip():
            raise ParseFailure("Document has no text layer")
        return self.extract(text)

    def extract(self, text: str, today: Optional[datetime.date] = None) -> ExtractionResult:
        """
        Extract an invoice from plain text.

        Args:
            text: Invoice text
            today: Reference date for the default due date (defaults to today)

        Returns:
            ExtractionResult with method "regex"
        """
        confidence: Dict[str, float] = {}

        invoice_number, confidence['invoiceNumber'] = first_match(INVOICE_NUMBER_PATTERNS, text)

        raw_date, confidence['date'] = first_match(INVOICE_DATE_PATTERNS, text)
        due_date, confidence['dueDate'] = self._due_date(text, raw_date, today)

        vendor, confidence['vendor'] = self._vendor(text)
        customer, confidence['customer'] = first_match(CUSTOMER_PATTERNS, text, accept=_is_party_name)

        items = self.item_parser.parse(text)
        genuine_items = [item for item in items if not item.is_placeholder]
        confidence['items'] = ITEMS_CONFIDENCE if genuine_items else 0.0

        subtotal = extract_amount(text, 'Subtotal')
        tax = extract_amount(text, 'Tax')
        total, confidence['total'] = self._total(text)

        total = self._check_total(genuine_items, total, tax or Decimal('0'), confidence)

        invoice = ExtractedInvoice(
            invoice_number=invoice_number or UNKNOWN,
            date=raw_date or UNKNOWN,
            due_date=due_date,
            vendor=vendor or UNKNOWN_VENDOR,
            customer=customer or UNKNOWN_CUSTOMER,
            items=items,
            subtotal=subtotal or Decimal('0'),
            tax=tax or Decimal('0'),
            total=total,
            extraction_methods=[self.method],
        )

        logger.info(
            f"Regex extraction: invoice={invoice.invoice_number}, vendor={invoice.vendor}, "
            f"items={len(genuine_items)}, total={invoice.total}"
        )

        return ExtractionResult(
            method=self.method,
            confidence=self.processing_config.regex_confidence,
            data=invoice,
            field_confidence=confidence,
        )

    def _due_date(
        self,
        text: str,
        raw_date: Optional[str],
        today: Optional[datetime.date]
    ) -> Tuple[str, float]:
        """Explicit due date, else invoice date plus payment terms, else a default"""
        due, confidence = first_match(DUE_DATE_PATTERNS, text)
        if due:
            return due, confidence

        issued = parse_date(raw_date)
        days, terms_confidence = first_match(NET_TERMS_PATTERNS, text)
        if issued is not None and days:
            return (issued + datetime.timedelta(days=int(days))).isoformat(), terms_confidence

        base = issued or today or datetime.date.today()
        return (base + datetime.timedelta(days=DEFAULT_PAYMENT_DAYS)).isoformat(), 0.3

    def _vendor(self, text: str) -> Tuple[Optional[str], float]:
        """Company name heading the document, else a labelled vendor"""
        lines = [line.strip() for line in text.split('\n') if line.strip()]
        for line in lines[:HEADER_LINES]:
            match = HEADER_COMPANY_LINE.match(line)
            if match and not HEADER_STOPWORDS.search(line) and len(match.group(1)) >= 3:
                return match.group(1), 0.8

        return first_match(VENDOR_PATTERNS, text, accept=_is_party_name)

    def _total(self, text: str) -> Tuple[Decimal, float]:
        total = extract_amount(text, 'Total')
        if total:
            return total, TOTAL_LABEL_CONFIDENCE

        for label, label_confidence in TOTAL_LABEL_FALLBACKS:
            total = extract_amount(text, label)
            if total:
                return total, label_confidence

        largest = find_largest_amount(text)
        if largest:
            return largest, LARGEST_AMOUNT_CONFIDENCE
        return Decimal('0'), 0.0

    def _check_total(self, items, total: Decimal, tax: Decimal, confidence: Dict[str, float]) -> Decimal:
        """Prefer the summed items when the printed total looks wrong"""
        if not items:
            return total

        items_total = round_money(sum((item.amount for item in items), Decimal('0')))
        discrepancy = abs(items_total - total)
        if discrepancy <= 1:
            return total

        # Printed total is items plus tax
        if abs(items_total + tax - total) <= 1:
            return total

        relative = discrepancy / total if total else None
        if (relative is not None and relative < RELATIVE_DISCREPANCY) or confidence['items'] > confidence['total']:
            logger.debug(f"Total {total} replaced by summed items {items_total}")
            confidence['total'] = confidence['items']
            return items_total

        return total
