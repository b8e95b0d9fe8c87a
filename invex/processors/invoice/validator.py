"""
Invoice Validator

Decides whether an extracted record is plausibly an invoice rather than a
bank statement, receipt or association fee notice. Rejections carry a
human-readable reason for the reviewer; nothing here raises.
"""

import logging
import re
from decimal import Decimal
from typing import List, Optional, Tuple

from invex.models.invoice import UNKNOWN, UNKNOWN_VENDOR, ExtractedInvoice
from invex.processors.invoice.patterns import INVOICE_NUMBER_PATTERNS, first_match

logger = logging.getLogger(__name__)

Verdict = Tuple[bool, Optional[str]]

STATEMENT_KEYWORDS = [
    re.compile(keyword, re.IGNORECASE) for keyword in (
        r'bank\s+statement',
        r'account\s+statement',
        r'credit\s+card',
        r'statement\s+of\s+account',
        r'monthly\s+statement',
        r'quarterly\s+statement',
        r'account\s+summary',
        r'balance\s+summary',
        r'transaction\s+history',
        r'account\s+activity',
        r'opening\s+balance',
        r'closing\s+balance',
        r'condominium\s+association',
        r'homeowners\s+association',
        r'\bhoa\b',
        r'assessment',
        r'maintenance\s+fee',
        r'association\s+fee',
        r'monthly\s+fee',
        r'reserve\s+fund',
    )
]

RECEIPT_KEYWORDS = [
    re.compile(keyword, re.IGNORECASE) for keyword in (
        r'receipt',
        r'thank\s+you\s+for\s+your\s+purchase',
        r'thank\s+you\s+for\s+shopping',
        r'cash\s+receipt',
        r'payment\s+receipt',
        r'store\s+receipt',
        r'return\s+policy',
        r'cashier:',
        r'terminal:',
        r'register:',
        r'transaction\s+id',
        r'card\s+\w+\s+\d{4}',
    )
]

ASSOCIATION_KEYWORDS = re.compile(r'condominium|association|community|homeowner', re.IGNORECASE)

# Phrases that mark a document as a statement or receipt on sight
STRONG_PHRASES = [
    re.compile(phrase, re.IGNORECASE) for phrase in (
        r'account\s+statement',
        r'bank\s+statement',
        r'opening\s+balance',
        r'closing\s+balance',
        r'statement\s+of\s+account',
        r'transaction\s+history',
        r'cashier:',
        r'thank\s+you\s+for\s+shopping',
    )
]

# Only numbers printed under an invoice, bill or reference label; "Account Number" does not count
LABELLED_NUMBER_PATTERNS = [p for p in INVOICE_NUMBER_PATTERNS if p.confidence >= 0.8]

INCONSISTENCY_LIMIT = Decimal('1000')
INCONSISTENT_TOTAL_FLOOR = Decimal('100')


def has_invoice_number(invoice: ExtractedInvoice) -> bool:
    return bool(invoice.invoice_number) and invoice.invoice_number != UNKNOWN


def has_labelled_invoice_number(raw_text: str) -> bool:
    value, _ = first_match(LABELLED_NUMBER_PATTERNS, raw_text)
    return value is not None


def field_text(invoice: ExtractedInvoice) -> str:
    """Vendor, customer, invoice number and item descriptions as one string"""
    parts: List[str] = [invoice.vendor, invoice.customer, invoice.invoice_number]
    parts.extend(item.description for item in invoice.items)
    return ' '.join(parts)


class DocumentClassifier:
    """
    Rejection rules only.

    Used before full processing to turn away statements and receipts early,
    and as the first half of InvoiceValidator.
    """

    def classify(self, invoice: ExtractedInvoice, raw_text: Optional[str] = None) -> Verdict:
        """
        Apply the rejection rules.

        Args:
            invoice: Extracted (possibly preliminary) invoice
            raw_text: Document text, scanned for strong statement/receipt
                phrases unless the text labels an invoice number

        Returns:
            (True, None) if no rule rejects the document, else (False, reason)
        """
        genuine_items = invoice.genuine_items

        if not genuine_items and (invoice.subtotal > 0 or invoice.total > 0):
            return False, "Suspiciously empty invoice: amounts present but no line items"

        # A zero subtotal is unresolved, not a printed value
        if invoice.subtotal != 0 and abs(invoice.subtotal - invoice.total) > INCONSISTENCY_LIMIT:
            return False, (
                f"Subtotal {invoice.subtotal} and total {invoice.total} differ by more than "
                f"{INCONSISTENCY_LIMIT}"
            )
        if invoice.subtotal > INCONSISTENCY_LIMIT and invoice.total < INCONSISTENT_TOTAL_FLOOR:
            return False, f"Subtotal {invoice.subtotal} is inconsistent with total {invoice.total}"

        text = field_text(invoice)
        for keyword in STATEMENT_KEYWORDS:
            if keyword.search(text):
                return False, f"Looks like a statement (matched '{keyword.pattern}')"
        for keyword in RECEIPT_KEYWORDS:
            if keyword.search(text):
                return False, f"Looks like a receipt (matched '{keyword.pattern}')"

        numbered = has_invoice_number(invoice)
        lowered = text.lower()
        if not numbered:
            if ('balance' in lowered and 'transaction' in lowered) or ('payment' in lowered and 'balance' in lowered):
                return False, "Statement-shaped: no invoice number, balance and payment/transaction entries"
            if 'total' in lowered and 'invoice' not in lowered:
                return False, "Receipt-shaped: no invoice number and a total without any invoice reference"

        if ASSOCIATION_KEYWORDS.search(text) and len(genuine_items) < 2:
            return False, "Looks like an association or condominium fee statement"

        if raw_text and not (numbered and has_labelled_invoice_number(raw_text)):
            for phrase in STRONG_PHRASES:
                if phrase.search(raw_text):
                    return False, f"Document text reads like a statement or receipt ('{phrase.pattern}')"

        return True, None


class InvoiceValidator:
    """
    Plausibility verdict for an extracted invoice.

    An invoice is accepted when no rejection rule fires and it has an invoice
    number, at least one genuine line item, a positive total and a vendor.
    """

    def __init__(self, classifier: Optional[DocumentClassifier] = None):
        self.classifier = classifier or DocumentClassifier()

    def validate(self, invoice: ExtractedInvoice, raw_text: Optional[str] = None) -> Verdict:
        """
        Validate an invoice.

        Returns:
            (is_plausible_invoice, reason); reason is None when accepted
        """
        plausible, reason = self.classifier.classify(invoice, raw_text)
        if not plausible:
            logger.info(f"Document rejected: {reason}")
            return False, reason

        missing = []
        if not has_invoice_number(invoice):
            missing.append('invoice number')
        if not invoice.genuine_items:
            missing.append('line items')
        if invoice.total <= 0:
            missing.append('positive total')
        if not invoice.vendor or invoice.vendor == UNKNOWN_VENDOR:
            missing.append('vendor')

        if missing:
            reason = f"Missing {', '.join(missing)}"
            logger.info(f"Document rejected: {reason}")
            return False, reason

        return True, None
