"""
Invoice Data Models with Pydantic Validation

Defines the records exchanged between extraction strategies, the merger,
the reconciler and the validator. Unresolved fields always carry a sentinel
value instead of None so downstream code can treat absence uniformly.
"""

import datetime
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


UNKNOWN = "Unknown"
UNKNOWN_VENDOR = "Unknown Vendor"
UNKNOWN_CUSTOMER = "Unknown Customer"
PLACEHOLDER_DESCRIPTION = "Item not detected"

# Descriptions emitted by the various strategies when no item could be read
PLACEHOLDER_DESCRIPTIONS = (PLACEHOLDER_DESCRIPTION, "Unable to extract items")

CENTS = Decimal('0.01')

DATE_FORMATS = [
    '%Y-%m-%d',      # ISO format
    '%m/%d/%Y',      # US format
    '%d/%m/%Y',      # EU format
    '%m-%d-%Y',
    '%d-%m-%Y',
    '%m.%d.%Y',
    '%d.%m.%Y',
    '%Y/%m/%d',
    '%B %d, %Y',     # January 15, 2024
    '%b %d, %Y',     # Jan 15, 2024
    '%B %d %Y',
    '%b %d %Y',
    '%d %B %Y',      # 15 January 2024
    '%d %b %Y',      # 15 Jan 2024
    '%m/%d/%y',      # MM/DD/YY
    '%d/%m/%y',      # DD/MM/YY
]


def parse_decimal(value: Any) -> Decimal:
    """Parse a number from int, float, Decimal or a currency-formatted string.

    Strings are stripped of everything except digits, the decimal point and
    the minus sign. Anything unparseable becomes zero.
    """
    if value is None or isinstance(value, bool):
        return Decimal('0')
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal('0')
    if isinstance(value, (int, float)):
        try:
            parsed = Decimal(str(value))
        except InvalidOperation:
            return Decimal('0')
        return parsed if parsed.is_finite() else Decimal('0')
    if isinstance(value, str):
        cleaned = re.sub(r'[^\d.\-]', '', value.strip())
        if not cleaned:
            return Decimal('0')
        try:
            return Decimal(cleaned)
        except InvalidOperation:
            return Decimal('0')
    return Decimal('0')


def round_money(value: Decimal) -> Decimal:
    """Round a monetary value to 2 decimal places"""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_date(value: Any) -> Optional[datetime.date]:
    """Parse a date from the formats invoices commonly use"""
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str):
        return None

    text = re.sub(r'\s+', ' ', value.strip()).replace(' ,', ',')
    if not text:
        return None

    # "15th March 2024" / "March 1st, 2024"
    text = re.sub(r'(\d)(?:st|nd|rd|th)\b', r'\1', text, flags=re.IGNORECASE)
    # "Sept" is not understood by strptime
    text = re.sub(r'\bSept\b', 'Sep', text, flags=re.IGNORECASE)

    for fmt in DATE_FORMATS:
        try:
            return datetime.datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def normalize_date(value: Any) -> str:
    """Normalize a date to ISO format (YYYY-MM-DD).

    Empty values become the UNKNOWN sentinel; unparseable strings are kept
    as given so a reviewer can still see what the document said.
    """
    parsed = parse_date(value)
    if parsed is not None:
        return parsed.isoformat()
    if value is None:
        return UNKNOWN
    text = str(value).strip()
    return text or UNKNOWN


class ExtractionMethod(str, Enum):
    """Extraction strategies that can contribute to an invoice"""
    VISION = "vision"
    TEXT_MODEL = "textModel"
    REGEX = "regex"
    PRIOR = "prior"


class LineItem(BaseModel):
    """Invoice line item"""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, frozen=True)

    description: str = PLACEHOLDER_DESCRIPTION
    quantity: Decimal = Decimal('1')
    unit_price: Decimal = Field(Decimal('0'), alias='unitPrice')
    amount: Decimal = Decimal('0')

    @field_validator('description', mode='before')
    @classmethod
    def parse_description(cls, v: Any) -> str:
        if v is None:
            return ''
        return str(v)

    @field_validator('quantity', 'unit_price', 'amount', mode='before')
    @classmethod
    def parse_number(cls, v: Any) -> Decimal:
        """Coerce numbers given as strings (e.g. "$1,200.00")"""
        return parse_decimal(v)

    @property
    def is_placeholder(self) -> bool:
        """True for the sentinel item emitted when nothing was detected"""
        return (
            any(marker in self.description for marker in PLACEHOLDER_DESCRIPTIONS)
            and self.amount == 0
        )

    def to_contract(self) -> Dict[str, Any]:
        return {
            'description': self.description,
            'quantity': float(self.quantity),
            'unitPrice': float(self.unit_price),
            'amount': float(self.amount),
        }


def placeholder_items() -> List[LineItem]:
    return [LineItem()]


class ExtractedInvoice(BaseModel):
    """
    Normalized invoice record produced by the extraction engine.

    Field aliases follow the camelCase JSON contract shared by the vision and
    text-model strategies, so a model reply can be validated directly.
    """
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, frozen=True)

    invoice_number: str = Field(UNKNOWN, alias='invoiceNumber')
    date: str = UNKNOWN
    due_date: str = Field(UNKNOWN, alias='dueDate')
    vendor: str = UNKNOWN_VENDOR
    customer: str = UNKNOWN_CUSTOMER
    items: List[LineItem] = Field(default_factory=placeholder_items)
    subtotal: Decimal = Decimal('0')
    tax: Decimal = Decimal('0')
    total: Decimal = Decimal('0')
    extraction_methods: List[str] = Field(default_factory=list, alias='extractionMethods')

    @field_validator('invoice_number', mode='before')
    @classmethod
    def default_invoice_number(cls, v: Any) -> str:
        return _text_or_sentinel(v, UNKNOWN)

    @field_validator('vendor', mode='before')
    @classmethod
    def default_vendor(cls, v: Any) -> str:
        return _text_or_sentinel(v, UNKNOWN_VENDOR)

    @field_validator('customer', mode='before')
    @classmethod
    def default_customer(cls, v: Any) -> str:
        return _text_or_sentinel(v, UNKNOWN_CUSTOMER)

    @field_validator('date', 'due_date', mode='before')
    @classmethod
    def iso_date(cls, v: Any) -> str:
        return normalize_date(v)

    @field_validator('subtotal', 'tax', 'total', mode='before')
    @classmethod
    def parse_amount(cls, v: Any) -> Decimal:
        return parse_decimal(v)

    @field_validator('items', mode='before')
    @classmethod
    def non_empty_items(cls, v: Any) -> List[Any]:
        """Drop malformed entries; an empty list becomes the placeholder item"""
        if not isinstance(v, (list, tuple)):
            return placeholder_items()
        items = [item for item in v if isinstance(item, (dict, LineItem))]
        return items or placeholder_items()

    @field_validator('extraction_methods', mode='before')
    @classmethod
    def unique_methods(cls, v: Any) -> List[str]:
        if not v:
            return []
        if isinstance(v, str):
            v = [v]
        methods = []
        for method in v:
            name = method.value if isinstance(method, ExtractionMethod) else str(method)
            if name not in methods:
                methods.append(name)
        return methods

    @property
    def genuine_items(self) -> List[LineItem]:
        return [item for item in self.items if not item.is_placeholder]

    @property
    def items_total(self) -> Decimal:
        return sum((item.amount for item in self.items), Decimal('0'))

    def duplicate_key(self) -> Tuple[str, str, Decimal]:
        """Key used by the external duplicate-invoice lookup"""
        return (self.invoice_number, self.vendor, round_money(self.total))

    def to_contract(self) -> Dict[str, Any]:
        """Dump using the camelCase JSON contract with plain numbers"""
        return {
            'invoiceNumber': self.invoice_number,
            'date': self.date,
            'dueDate': self.due_date,
            'vendor': self.vendor,
            'customer': self.customer,
            'items': [item.to_contract() for item in self.items],
            'subtotal': float(self.subtotal),
            'tax': float(self.tax),
            'total': float(self.total),
            'extractionMethods': list(self.extraction_methods),
        }

    def to_minor_units(self) -> Dict[str, Any]:
        """View of the record for the persistence boundary.

        Amounts are integer cents; placeholder and zero-amount items are
        left out since they carry nothing worth storing.
        """
        def cents(value: Decimal) -> int:
            return int(round_money(value) * 100)

        return {
            'invoice_number': self.invoice_number,
            'invoice_date': self.date,
            'due_date': self.due_date,
            'vendor_name': self.vendor,
            'customer_name': self.customer,
            'amount': cents(self.total),
            'line_items': [
                {
                    'description': item.description,
                    'quantity': float(item.quantity),
                    'unit_price': cents(item.unit_price),
                    'amount': cents(item.amount),
                }
                for item in self.items
                if not item.is_placeholder and item.amount != 0
            ],
        }


def _text_or_sentinel(value: Any, sentinel: str) -> str:
    if value is None:
        return sentinel
    text = str(value).strip()
    return text or sentinel


class ExtractionResult(BaseModel):
    """Outcome of a single strategy attempt"""
    model_config = ConfigDict(frozen=True)

    method: ExtractionMethod
    confidence: float = Field(..., ge=0.0, le=1.0)
    data: ExtractedInvoice

    # Per-field scores; only the regex strategy fills this in
    field_confidence: Dict[str, float] = Field(default_factory=dict)


class ReconciliationOutcome(BaseModel):
    """Final record plus the plausibility verdict"""
    model_config = ConfigDict(populate_by_name=True)

    invoice: ExtractedInvoice
    is_plausible_invoice: bool = Field(..., alias='isPlausibleInvoice')
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'invoice': self.invoice.to_contract(),
            'isPlausibleInvoice': self.is_plausible_invoice,
            'reason': self.reason,
        }


class InvoiceProcessingConfig(BaseModel):
    """Configuration for invoice extraction"""

    # Strategy confidences
    vision_confidence: float = Field(0.9, ge=0.0, le=1.0)
    text_model_confidence: float = Field(0.85, ge=0.0, le=1.0)
    regex_confidence: float = Field(0.7, ge=0.0, le=1.0)
    prior_confidence: float = Field(0.5, ge=0.0, le=1.0)

    # Order in which strategies are attempted
    strategy_order: List[ExtractionMethod] = Field(default_factory=lambda: [
        ExtractionMethod.VISION, ExtractionMethod.TEXT_MODEL, ExtractionMethod.REGEX
    ])

    # Input limits
    max_file_bytes: int = 5 * 1024 * 1024
    min_text_chars: int = 100
    max_text_chars: int = 10000

    # LLM settings
    vision_provider: str = 'openai'
    vision_model: Optional[str] = None
    text_provider: str = 'openai'
    text_model: Optional[str] = None
    llm_temperature: float = 0.0
    max_tokens: int = 2000

    # OCR settings
    enable_ocr: bool = True
    ocr_dpi: int = 200
    ocr_lang: str = 'eng'
