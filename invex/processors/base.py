import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from invex.models.invoice import ExtractionMethod, ExtractionResult, InvoiceProcessingConfig
from invex.processors.document import InvoiceDocument

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Base class for recoverable strategy failures"""


class StrategyUnavailable(ExtractionError):
    """A model call could not be made or returned unusable output"""


class ParseFailure(ExtractionError):
    """A strategy's raw output could not be coerced into an invoice"""


class ExtractionStrategy(ABC):
    """Base class for invoice extraction strategies"""

    method: ExtractionMethod

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.processing_config = self.config.get('processing_config') or InvoiceProcessingConfig()

    @abstractmethod
    def can_process(self, document: InvoiceDocument) -> bool:
        """Check if this strategy can handle the given document

        Args:
            document: Document to check

        Returns:
            True if the strategy should be attempted
        """
        pass

    @abstractmethod
    async def _extract(self, document: InvoiceDocument) -> ExtractionResult:
        """Run the strategy; raise ExtractionError when it produces nothing"""
        pass

    async def attempt(self, document: InvoiceDocument) -> Optional[ExtractionResult]:
        """
        Attempt extraction, treating any failure as "no result".

        Args:
            document: Document to extract from

        Returns:
            ExtractionResult, or None if the strategy failed
        """
        try:
            return await self._extract(document)
        except ExtractionError as e:
            logger.warning(f"{self.method.value} extraction produced no result: {e}")
        except Exception as e:
            logger.exception(f"{self.method.value} extraction failed: {e}")
        return None
