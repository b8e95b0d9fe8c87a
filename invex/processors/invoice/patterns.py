"""
Invoice Field Patterns

Priority-ordered regular expressions for each invoice field, each tagged
with the confidence assigned when it is the pattern that matched. Patterns
are evaluated in order and the first match wins, whatever later patterns
would have scored.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, List, Optional, Pattern, Tuple


@dataclass(frozen=True)
class FieldPattern:
    """A compiled pattern and the confidence of a match"""
    pattern: Pattern[str]
    confidence: float


def _p(regex: str, confidence: float, flags: int = re.IGNORECASE) -> FieldPattern:
    return FieldPattern(re.compile(regex, flags), confidence)


def first_match(
    patterns: Iterable[FieldPattern],
    text: str,
    accept: Optional[Callable[[str], bool]] = None
) -> Tuple[Optional[str], float]:
    """
    Evaluate patterns in priority order.

    Args:
        patterns: Ordered field patterns
        text: Text to search
        accept: Optional predicate a captured value must satisfy

    Returns:
        Tuple of (captured value, confidence), or (None, 0.0)
    """
    for field_pattern in patterns:
        for match in field_pattern.pattern.finditer(text):
            value = (match.group(1) if match.groups() else match.group(0)).strip()
            if value and (accept is None or accept(value)):
                return value, field_pattern.confidence
    return None, 0.0


CURRENCY_SYMBOLS = '$€£'

# Dates
ISO_DATE = r'\d{4}[-/.]\d{1,2}[-/.]\d{1,2}'
NUMERIC_DATE = r'\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}'
MONTH_NAME = r'(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?'
MONTH_FIRST_DATE = MONTH_NAME + r'\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4}'
DAY_FIRST_DATE = r'\d{1,2}(?:st|nd|rd|th)?\s+' + MONTH_NAME + r',?\s+\d{4}'
ANY_DATE = f'(?:{ISO_DATE}|{NUMERIC_DATE}|{MONTH_FIRST_DATE}|{DAY_FIRST_DATE})'

# "Date" on its own, but never the "Date" of "Due Date" or "Payment Date"
INVOICE_DATE_LABEL = (
    r'(?<!Due\s)(?<!Payment\s)\b(?:Invoice\s+Date|Date\s+of\s+Issue|Issue\s+Date|Date\s+Issued|Issued|Date)'
)


INVOICE_NUMBER_PATTERNS: List[FieldPattern] = [
    _p(r'\b(?:Invoice|Inv)\.?\s*(?:No\.?|Number|Num|#)?\s*[:#]?\s*'
       r'((?=[A-Z0-9-]*\d)[A-Z0-9]+(?:-[A-Z0-9]+)*)\b', 0.9),
    _p(r'\b(?:Invoice|Bill|Reference|Ref)\s*(?:Number|No\.?|#)\s*[:#]?\s*([A-Z0-9][\w-]{2,})', 0.8),
    _p(r'(?:\bNo\.?|\bNumber|#)\s*[:.]?\s*((?=[\w-]*\d)[A-Z0-9][\w-]{2,})', 0.7),
    _p(r'\b([A-Z]{2,}[0-9]{4,})\b', 0.6, flags=0),
]

INVOICE_DATE_PATTERNS: List[FieldPattern] = [
    _p(INVOICE_DATE_LABEL + r'\s*(?::|of)?\s*(' + ANY_DATE + r')', 0.9),
    _p(r'\b(' + MONTH_FIRST_DATE + r')', 0.9),
    _p(r'\b(' + DAY_FIRST_DATE + r')', 0.9),
    _p(r'\b(' + ISO_DATE + r')\b', 0.8),
    _p(r'\b(' + NUMERIC_DATE + r')\b', 0.7),
]

DUE_DATE_PATTERNS: List[FieldPattern] = [
    _p(r'\b(?:Due|Payment)\s*Date\s*:?\s*(' + ANY_DATE + r')', 0.9),
    _p(r'\bDue\s*(?:on|by)?\s*:?\s*(' + ANY_DATE + r')', 0.8),
    _p(r'\b(?:Payable|Payment|Pay)\s+(?:by|before)\s*:?\s*(' + ANY_DATE + r')', 0.8),
]

# "Net 30 days", "Terms: Net 45"
NET_TERMS_PATTERNS: List[FieldPattern] = [
    _p(r'\b(?:Terms\s*:?\s*)?Net\s*:?\s*(\d{1,3})\b(?:\s*days)?', 0.7),
    _p(r'\bTerms\s*:?\s*(\d{1,3})\s*days\b', 0.7),
]

# A line that is nothing but a company name, looked for near the top
HEADER_COMPANY_LINE = re.compile(r"^([A-Z][A-Za-z&'., -]{1,78}[A-Za-z.])$")

# Words that mean a header line is a label or title rather than a company name
HEADER_STOPWORDS = re.compile(
    r'\b(?:invoice|tax|bill|billed|statement|receipt|date|due|total|subtotal|page|quote|'
    r'estimate|order|to|from|ship|sold|customer|vendor|supplier|description|amount|'
    r'qty|quantity|number|paid|balance|terms)\b',
    re.IGNORECASE
)

VENDOR_PATTERNS: List[FieldPattern] = [
    _p(r'^[ \t]*(?:Billed\s+From|Bill\s+From|Sold\s+By|Remit\s+To|From|Vendor|Supplier|Seller|Company)'
       r'[ \t]*:\s*(\S.*?)[ \t]*$', 0.9, re.IGNORECASE | re.MULTILINE),
    _p(r'^[ \t]*(?:BILL FROM|Bill From|FROM|From)[ \t]+([A-Z].{3,}?)[ \t]*$', 0.8, re.MULTILINE),
]

CUSTOMER_PATTERNS: List[FieldPattern] = [
    _p(r'^[ \t]*(?:Bill(?:ed)?\s+To|Ship\s+To|Sold\s+To|Customer(?:\s+Name)?|Client|To)'
       r'[ \t]*:\s*(\S.*?)[ \t]*$', 0.9, re.IGNORECASE | re.MULTILINE),
    _p(r'^[ \t]*(?:BILL TO|Bill To|SHIP TO|Ship To|TO)[ \t]+([A-Z].{3,}?)[ \t]*$', 0.8, re.MULTILINE),
    _p(r'^[ \t]*(?:Attention|Attn\.?)[ \t]*:?[ \t]*(\S.*?)[ \t]*$', 0.6, re.IGNORECASE | re.MULTILINE),
]

# Labels tried, in order, when no plain "Total" is present
TOTAL_LABEL_FALLBACKS: List[Tuple[str, float]] = [
    ('Amount Due', 0.9),
    ('Balance Due', 0.9),
    ('Grand Total', 0.9),
    ('Amount', 0.7),
    ('Balance', 0.7),
    ('Due', 0.6),
]

NUMBER = r'(\d[\d,]*(?:\.\d+)?)(?![\d/\-])'

CURRENCY_AMOUNT = re.compile(
    r'[' + CURRENCY_SYMBOLS + r']\s?(\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+(?:\.\d{2})?)'
)


def _label_regex(label: str) -> str:
    """Label that does not match inside a longer word ("Total" vs "Subtotal")"""
    words = r'\s+'.join(re.escape(word) for word in label.split())
    return r'(?<![A-Za-z])' + words + r'(?![A-Za-z])'


def amount_patterns(label: str) -> List[Pattern[str]]:
    """Label-anchored amount patterns, most to least specific"""
    label_re = _label_regex(label)
    symbols = CURRENCY_SYMBOLS
    return [
        # Label followed by currency symbol and amount
        re.compile(label_re + r'\s*:?\s*[' + symbols + r']\s*' + NUMBER, re.IGNORECASE),
        # Label followed by an amount
        re.compile(label_re + r'[^\d' + symbols + r']*[' + symbols + r']?\s*' + NUMBER, re.IGNORECASE),
        # Label and a currency amount later on
        re.compile(label_re + r'.*?[' + symbols + r']\s*' + NUMBER, re.IGNORECASE),
    ]


def to_decimal(raw: str) -> Optional[Decimal]:
    """Parse a matched number such as "1,234.50" """
    try:
        return Decimal(raw.replace(',', ''))
    except (InvalidOperation, AttributeError):
        return None


def extract_amount(text: str, label: str) -> Optional[Decimal]:
    """
    Find the amount printed next to a label.

    Args:
        text: Document text
        label: Label such as "Subtotal" or "Amount Due"

    Returns:
        The amount, or None if the label is absent or has no amount
    """
    flat_text = text.replace('\n', ' ')

    for pattern in amount_patterns(label):
        match = pattern.search(flat_text)
        if match:
            amount = to_decimal(match.group(1))
            if amount is not None:
                return amount

    # Line by line: last amount on a line mentioning the label
    label_re = re.compile(_label_regex(label), re.IGNORECASE)
    for line in text.split('\n'):
        if label_re.search(line):
            amounts = re.findall(r'(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)', line)
            if amounts:
                amount = to_decimal(amounts[-1])
                if amount is not None:
                    return amount

    return None


def find_largest_amount(text: str) -> Decimal:
    """Largest currency-formatted amount in the text (0 if there is none)"""
    largest = Decimal('0')
    for match in CURRENCY_AMOUNT.finditer(text):
        amount = to_decimal(match.group(1))
        if amount is not None and amount > largest:
            largest = amount
    return largest


# Line items

ITEM_HEADER_MARKERS = [
    re.compile(marker, re.IGNORECASE) for marker in (
        r'description', r'item', r'product', r'service', r'detail',
        r'qty|quantity', r'unit.?price|rate', r'amount|total',
    )
]

ITEM_SECTION_END = re.compile(r'subtotal|total', re.IGNORECASE)

# Description  2  10.00  20.00
TABULAR_ROW = re.compile(
    r'^[ \t]*(?P<description>[^\d\n' + CURRENCY_SYMBOLS + r']*?[A-Za-z][^\d\n' + CURRENCY_SYMBOLS + r']*?)'
    r'[ \t]+(?P<quantity>\d+(?:\.\d+)?)'
    r'[ \t]+[' + CURRENCY_SYMBOLS + r']?[ \t]*(?P<unit_price>\d[\d,]*(?:\.\d+)?)'
    r'[ \t]+[' + CURRENCY_SYMBOLS + r']?[ \t]*(?P<amount>\d[\d,]*(?:\.\d+)?)[ \t]*$',
    re.MULTILINE
)

# 2 x Product A $200.00
QTY_X_DESCRIPTION = re.compile(
    r'^[ \t]*(?P<quantity>\d+)(?:[ \t]*[xX][ \t]+|[ \t]+)'
    r'(?P<description>[^\n' + CURRENCY_SYMBOLS + r'\d][^\n' + CURRENCY_SYMBOLS + r']*?)'
    r'(?:[ \t]*[' + CURRENCY_SYMBOLS + r'][ \t]*|[ \t]+)'
    r'(?P<amount>\d[\d,]*(?:\.\d+)?)[ \t]*$',
    re.MULTILINE
)

# Rows that are totals, not items
SUMMARY_LINE = re.compile(r'total|subtotal|tax|balance|amount due', re.IGNORECASE)

# Lines the currency scan must not mistake for items
NON_ITEM_LINE = re.compile(
    r'invoice|total|subtotal|tax|balance|amount due|date|payment|bill', re.IGNORECASE
)

LINE_NUMBER = re.compile(r'\d+(?:[,.]\d+)?')

EXPLICIT_QUANTITY = re.compile(r'(\d+)\s*(?:x\b|items\b|units\b|qty\b)', re.IGNORECASE)
