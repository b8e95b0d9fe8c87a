"""
invex - Invoice Extraction & Reconciliation Engine

Turns an uploaded invoice (PDF, image or plain text) into a normalized,
numerically consistent invoice record with a plausibility verdict.

Basic usage:
    import asyncio
    from invex import extract

    with open('invoice.pdf', 'rb') as f:
        outcome = asyncio.run(extract(f.read(), 'application/pdf'))

    if outcome.is_plausible_invoice:
        print(outcome.invoice.to_contract())
    else:
        print(outcome.reason)
"""

from invex.config.invex_config import InvexConfig
from invex.models.invoice import ExtractedInvoice, LineItem, ReconciliationOutcome
from invex.processors.invoice.pipeline import InvoicePipeline, extract, preliminary_check

__all__ = [
    'InvexConfig',
    'ExtractedInvoice',
    'LineItem',
    'ReconciliationOutcome',
    'InvoicePipeline',
    'extract',
    'preliminary_check',
]

__version__ = '0.3.0'
