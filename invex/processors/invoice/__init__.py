"""
Invoice Processing Module

Extracts structured invoice data from PDFs, images and plain text.

Components:
- VisionExtractor / TextModelExtractor: LLM-based extraction
- RegexExtractor: Pattern-based extraction from the text layer
- ItemParser: Line item detection in plain text
- ResultMerger: Field-level merge of strategy results
- Reconciler: Numeric consistency repair
- InvoiceValidator / DocumentClassifier: Plausibility verdict
- InvoicePipeline: End-to-end entry points
"""

from .line_items import ItemParser
from .normalizer import Reconciler, reconcile_invoice
from .merger import ResultMerger
from .validator import DocumentClassifier, InvoiceValidator
from .regex_extractor import RegexExtractor
from .extractor import TextModelExtractor, VisionExtractor, parse_llm_response
from .pipeline import ExtractionOrchestrator, InvoicePipeline, extract, preliminary_check

__all__ = [
    # Strategies
    'VisionExtractor',
    'TextModelExtractor',
    'RegexExtractor',

    # Processing stages
    'ItemParser',
    'ResultMerger',
    'Reconciler',
    'DocumentClassifier',
    'InvoiceValidator',
    'ExtractionOrchestrator',
    'InvoicePipeline',

    # Utilities
    'reconcile_invoice',
    'parse_llm_response',
    'extract',
    'preliminary_check',
]
