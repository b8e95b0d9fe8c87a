"""
Line Item Parser

Finds invoice line items in plain text. Four passes are tried in order and
the first one that yields anything wins:

1. A bounded section under a table header (description / qty / price / amount)
2. Tabular rows anywhere in the document
3. "quantity x description amount" rows anywhere in the document
4. Any line carrying a currency amount that is not a total, date or payment line

The parser never returns an empty list. When nothing is found the single
placeholder item is returned so callers can tell failure apart from an
invoice without items.
"""

import logging
import re
from decimal import Decimal
from typing import List, Optional, Tuple

from invex.models.invoice import LineItem, parse_decimal, placeholder_items, round_money
from invex.processors.invoice.patterns import (
    CURRENCY_AMOUNT,
    CURRENCY_SYMBOLS,
    EXPLICIT_QUANTITY,
    ITEM_HEADER_MARKERS,
    ITEM_SECTION_END,
    NON_ITEM_LINE,
    QTY_X_DESCRIPTION,
    SUMMARY_LINE,
    TABULAR_ROW,
)

logger = logging.getLogger(__name__)

UNIT_PRICE_PLACES = Decimal('0.0001')

# A whitespace-separated token that is just a number, optionally with a currency symbol
NUMERIC_TOKEN = re.compile(r'^[' + CURRENCY_SYMBOLS + r']?\d[\d,]*(?:\.\d+)?$')

# A number standing on its own between spaces
STANDALONE_NUMBER = re.compile(r'(?<!\S)\d[\d,]*(?:\.\d+)?(?!\S)')


class ItemParser:
    """Extracts line items from invoice text"""

    def __init__(self, min_header_markers: int = 3, section_lines: int = 15, section_search_lines: int = 20):
        self.min_header_markers = min_header_markers
        self.section_lines = section_lines
        self.section_search_lines = section_search_lines

    def parse(self, text: str) -> List[LineItem]:
        """
        Parse line items from text.

        Args:
            text: Invoice text

        Returns:
            List of line items, never empty
        """
        passes = (
            ('table section', self._parse_section),
            ('tabular rows', self._parse_tabular),
            ('quantity rows', self._parse_quantity_rows),
            ('currency lines', self._parse_currency_lines),
        )

        for name, parse_pass in passes:
            items = parse_pass(text or '')
            if items:
                logger.debug(f"Found {len(items)} line items via {name}")
                return items

        return placeholder_items()

    def find_section(self, lines: List[str]) -> Optional[Tuple[int, int]]:
        """
        Locate the item table.

        Returns:
            (first, end) line indices of the rows below the header, or None
            if no header line is present
        """
        for index, line in enumerate(lines):
            markers = sum(1 for marker in ITEM_HEADER_MARKERS if marker.search(line))
            if markers < self.min_header_markers:
                continue

            end = None
            search_limit = min(len(lines), index + 1 + self.section_search_lines)
            for candidate in range(index + 1, search_limit):
                if ITEM_SECTION_END.search(lines[candidate]):
                    end = candidate
                    break
            if end is None:
                end = min(len(lines), index + 1 + self.section_lines)
            return index + 1, end

        return None

    def _parse_section(self, text: str) -> List[LineItem]:
        lines = text.split('\n')
        section = self.find_section(lines)
        if section is None:
            return []

        section_lines = lines[section[0]:section[1]]
        section_text = '\n'.join(section_lines)

        return (
            self._parse_tabular(section_text)
            or self._parse_quantity_rows(section_text)
            or self._parse_numeric_tokens(section_lines)
        )

    def _parse_tabular(self, text: str) -> List[LineItem]:
        items = []
        for match in TABULAR_ROW.finditer(text):
            description = match.group('description').strip()
            if SUMMARY_LINE.search(description):
                continue
            items.append(LineItem(
                description=description,
                quantity=parse_decimal(match.group('quantity')),
                unit_price=parse_decimal(match.group('unit_price')),
                amount=parse_decimal(match.group('amount')),
            ))
        return items

    def _parse_quantity_rows(self, text: str) -> List[LineItem]:
        items = []
        for match in QTY_X_DESCRIPTION.finditer(text):
            description = match.group('description').strip()
            if len(description) < 2 or SUMMARY_LINE.search(description):
                continue
            quantity = parse_decimal(match.group('quantity'))
            amount = parse_decimal(match.group('amount'))
            items.append(self._item(description, quantity, amount))
        return items

    def _parse_numeric_tokens(self, lines: List[str]) -> List[LineItem]:
        """Last-resort heuristic: the last number on a row is its amount"""
        items = []
        for line in lines:
            if not line.strip() or SUMMARY_LINE.search(line):
                continue

            tokens = line.split()
            numbers = [parse_decimal(token) for token in tokens if NUMERIC_TOKEN.match(token)]
            if len(numbers) < 2:
                continue

            words = [token for token in tokens if not NUMERIC_TOKEN.match(token)]
            description = ' '.join(words).strip(' -:') or f"Item {len(items) + 1}"

            amount = numbers[-1]
            if len(numbers) >= 3:
                items.append(LineItem(
                    description=description,
                    quantity=numbers[0],
                    unit_price=numbers[1],
                    amount=amount,
                ))
            else:
                items.append(self._item(description, numbers[0], amount))
        return items

    def _parse_currency_lines(self, text: str) -> List[LineItem]:
        items = []
        for line in text.split('\n'):
            match = CURRENCY_AMOUNT.search(line)
            if not match or NON_ITEM_LINE.search(line):
                continue

            amount = parse_decimal(match.group(1))
            quantity_match = EXPLICIT_QUANTITY.search(line)
            quantity = parse_decimal(quantity_match.group(1)) if quantity_match else Decimal('1')

            description = line
            if quantity_match:
                description = description.replace(quantity_match.group(0), ' ')
            # "1." / "2)" row numbering
            description = re.sub(r'^\s*\d+[.)]\s*', '', description)
            description = CURRENCY_AMOUNT.sub(' ', description)
            description = STANDALONE_NUMBER.sub(' ', description)
            description = re.sub(r'\s+', ' ', description).strip(' -:')
            if len(description) < 3:
                description = f"Item {len(items) + 1}"

            items.append(self._item(description, quantity, amount))
        return items

    @staticmethod
    def _item(description: str, quantity: Decimal, amount: Decimal) -> LineItem:
        """Line item whose unit price is derived from its amount"""
        if quantity <= 0:
            quantity = Decimal('1')
        unit_price = (amount / quantity).quantize(UNIT_PRICE_PLACES)
        if quantity == 1:
            unit_price = round_money(amount)
        return LineItem(description=description, quantity=quantity, unit_price=unit_price, amount=amount)
