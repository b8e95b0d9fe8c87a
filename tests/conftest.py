"""
Shared fixtures for the invex test suite
"""

import pytest

from invex.config import InvexConfig
from invex.models.invoice import ExtractionMethod, InvoiceProcessingConfig


SAMPLE_INVOICE_TEXT = (
    "Invoice INV-2024-001\n"
    "Date: 03/15/2024\n"
    "Due Date: 04/14/2024\n"
    "From: Acme Corp\n"
    "To: Beta LLC\n"
    "Widget  2  10.00  20.00\n"
    "Subtotal 20.00\n"
    "Tax 2.00\n"
    "Total 22.00"
)

BANK_STATEMENT_TEXT = (
    "First National Bank\n"
    "Account Statement\n"
    "Statement period: March 2024\n"
    "Opening Balance: $1,000.00\n"
    "Deposit  $500.00\n"
    "Closing Balance: $1,500.00\n"
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Fresh configuration without user files or real API keys"""
    monkeypatch.setenv('HOME', str(tmp_path))
    monkeypatch.delenv('OPENAI_API_KEY', raising=False)
    monkeypatch.delenv('ANTHROPIC_API_KEY', raising=False)
    InvexConfig.reset()
    yield
    InvexConfig.reset()


@pytest.fixture
def sample_invoice_text():
    return SAMPLE_INVOICE_TEXT


@pytest.fixture
def bank_statement_text():
    return BANK_STATEMENT_TEXT


@pytest.fixture
def regex_only_config():
    return InvoiceProcessingConfig(strategy_order=[ExtractionMethod.REGEX])
