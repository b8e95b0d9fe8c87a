from invex.models.invoice import (
    ExtractedInvoice,
    ExtractionMethod,
    ExtractionResult,
    InvoiceProcessingConfig,
    LineItem,
    ReconciliationOutcome,
)

__all__ = [
    'ExtractedInvoice',
    'ExtractionMethod',
    'ExtractionResult',
    'InvoiceProcessingConfig',
    'LineItem',
    'ReconciliationOutcome',
]
