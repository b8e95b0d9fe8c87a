"""
Invoice Processing Pipeline

End-to-end invoice extraction:
load -> extract (vision, text model, regex) -> merge -> reconcile -> validate

Provides the two entry points used by callers: a full extraction returning
the reconciled record with a plausibility verdict, and a cheap preliminary
check that turns away statements and receipts before full processing.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from invex.config import InvexConfig
from invex.models.invoice import (
    ExtractedInvoice,
    ExtractionMethod,
    ExtractionResult,
    InvoiceProcessingConfig,
    ReconciliationOutcome,
)
from invex.processors.base import ExtractionStrategy
from invex.processors.document import InvoiceDocument
from invex.processors.invoice.extractor import TextModelExtractor, VisionExtractor
from invex.processors.invoice.merger import ResultMerger
from invex.processors.invoice.normalizer import Reconciler
from invex.processors.invoice.regex_extractor import RegexExtractor
from invex.processors.invoice.validator import DocumentClassifier, InvoiceValidator

logger = logging.getLogger(__name__)

STRATEGY_CLASSES = {
    ExtractionMethod.VISION: VisionExtractor,
    ExtractionMethod.TEXT_MODEL: TextModelExtractor,
    ExtractionMethod.REGEX: RegexExtractor,
}

PriorResult = Union[ExtractedInvoice, Dict[str, Any]]


def is_complete(result: ExtractionResult) -> bool:
    """A result good enough to stop trying further strategies"""
    return bool(result.data.genuine_items) and result.data.total > 0


class ExtractionOrchestrator:
    """
    Runs the extraction strategies in order.

    Strategies are attempted one after another; a strategy that cannot
    handle the document is skipped and one that fails contributes nothing.
    A complete vision result ends the run early.
    """

    def __init__(self, strategies: Sequence[ExtractionStrategy]):
        self.strategies = list(strategies)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> 'ExtractionOrchestrator':
        """
        Build the strategies named in processing_config.strategy_order.

        Args:
            config: Strategy config; 'processing_config' selects the order and
                'llm_services' may map a method to a ready LLM service
        """
        config = config or {}
        processing_config = config.get('processing_config') or InvoiceProcessingConfig()
        llm_services = config.get('llm_services') or {}

        strategies = []
        for method in processing_config.strategy_order:
            strategy_class = STRATEGY_CLASSES.get(method)
            if strategy_class is None:
                logger.warning(f"No extraction strategy for '{method}'")
                continue
            if method in llm_services:
                strategies.append(strategy_class(config, llm_service=llm_services[method]))
            else:
                strategies.append(strategy_class(config))
        return cls(strategies)

    def strategy_for(self, method: ExtractionMethod) -> Optional[ExtractionStrategy]:
        for strategy in self.strategies:
            if strategy.method == method:
                return strategy
        return None

    async def run(self, document: InvoiceDocument) -> List[ExtractionResult]:
        """
        Attempt every applicable strategy.

        Args:
            document: Loaded document

        Returns:
            Results of the strategies that succeeded, in attempt order
        """
        results: List[ExtractionResult] = []

        for strategy in self.strategies:
            if not strategy.can_process(document):
                logger.debug(f"Skipping {strategy.method.value}: not applicable")
                continue

            logger.info(f"Attempting {strategy.method.value} extraction")
            result = await strategy.attempt(document)
            if result is None:
                continue
            results.append(result)

            if result.method == ExtractionMethod.VISION and is_complete(result):
                logger.info("Vision result is complete; skipping remaining strategies")
                break

        return results


class InvoicePipeline:
    """
    End-to-end invoice extraction pipeline.

    Usage:
        pipeline = InvoicePipeline()
        outcome = await pipeline.extract(pdf_bytes, 'application/pdf')
        if outcome.is_plausible_invoice:
            save(outcome.invoice.to_minor_units())
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = dict(config or {})

        self.processing_config = config.get('processing_config') or InvexConfig().get_processing_config()
        config['processing_config'] = self.processing_config

        self.orchestrator = config.get('orchestrator') or ExtractionOrchestrator.from_config(config)
        self.reconciler = Reconciler()
        self.merger = ResultMerger(self.reconciler)
        self.classifier = DocumentClassifier()
        self.validator = InvoiceValidator(self.classifier)

    def load(self, document_bytes: bytes, mime_type: Optional[str] = None) -> InvoiceDocument:
        """
        Wrap uploaded bytes.

        Raises:
            ValueError: If the input is empty, too large or of an unsupported type
        """
        return InvoiceDocument(document_bytes, mime_type, self.processing_config)

    def _prior_result(self, prior: PriorResult) -> ExtractionResult:
        data = self.reconciler.reconcile(prior)
        data = data.model_copy(update={'extraction_methods': [ExtractionMethod.PRIOR.value]})
        return ExtractionResult(
            method=ExtractionMethod.PRIOR,
            confidence=self.processing_config.prior_confidence,
            data=data,
        )

    async def extract(
        self,
        document_bytes: bytes,
        mime_type: Optional[str] = None,
        prior: Optional[PriorResult] = None
    ) -> ReconciliationOutcome:
        """
        Extract, merge, reconcile and validate an invoice.

        Args:
            document_bytes: Raw document (PDF, JPEG, PNG or UTF-8 text)
            mime_type: Declared MIME type; the content decides
            prior: Partial result from an earlier attempt on the same
                document, merged at the lowest confidence

        Returns:
            ReconciliationOutcome

        Raises:
            ValueError: If the input cannot be processed at all
        """
        document = self.load(document_bytes, mime_type)
        logger.info(f"Extracting invoice from {document.mime_type} ({len(document_bytes)} bytes)")

        results = await self.orchestrator.run(document)
        if prior is not None:
            results.append(self._prior_result(prior))

        invoice = self.merger.merge(results)

        if not results:
            logger.warning("No extraction strategy produced a result")
            return ReconciliationOutcome(
                invoice=invoice,
                is_plausible_invoice=False,
                reason="No invoice data could be extracted",
            )

        plausible, reason = self.validator.validate(invoice, document.text)
        return ReconciliationOutcome(invoice=invoice, is_plausible_invoice=plausible, reason=reason)

    async def preliminary_check(self, document_bytes: bytes, mime_type: Optional[str] = None) -> bool:
        """
        Cheap screen run before full processing.

        Uses a single vision pass when available, otherwise the regex pass,
        and applies the rejection rules only.

        Returns:
            False if the document reads as a statement, receipt or similar
        """
        document = self.load(document_bytes, mime_type)

        result = None
        for method in (ExtractionMethod.VISION, ExtractionMethod.REGEX):
            strategy = self.orchestrator.strategy_for(method)
            if strategy is None or not strategy.can_process(document):
                continue
            result = await strategy.attempt(document)
            if result is not None:
                break

        if result is None:
            logger.info("Preliminary check found nothing to judge; letting the document through")
            return True

        plausible, reason = self.classifier.classify(self.reconciler.reconcile(result.data), document.text)
        if not plausible:
            logger.info(f"Preliminary check rejected document: {reason}")
        return plausible


async def extract(
    document_bytes: bytes,
    mime_type: Optional[str] = None,
    prior: Optional[PriorResult] = None,
    config: Optional[Dict[str, Any]] = None
) -> ReconciliationOutcome:
    """
    Convenience function to extract an invoice.

    Args:
        document_bytes: Raw document
        mime_type: Declared MIME type
        prior: Optional partial result from an earlier attempt
        config: Optional pipeline configuration

    Returns:
        ReconciliationOutcome
    """
    return await InvoicePipeline(config).extract(document_bytes, mime_type, prior)


async def preliminary_check(
    document_bytes: bytes,
    mime_type: Optional[str] = None,
    config: Optional[Dict[str, Any]] = None
) -> bool:
    """Convenience function for the preliminary document-type check"""
    return await InvoicePipeline(config).preliminary_check(document_bytes, mime_type)
