"""
Model-backed Invoice Extractors

Vision and text-model strategies. Both send a strict "JSON only" prompt to
an LLM provider, parse the first JSON object in the reply into the invoice
contract and reconcile it. Provider errors and unparseable replies are
logged and produce no result.
"""

import json
import logging
import re
from abc import abstractmethod
from typing import Any, Dict, Optional

from pydantic import ValidationError

from invex.config import InvexConfig
from invex.models.invoice import ExtractionMethod, ExtractionResult
from invex.processors.base import ExtractionStrategy, ParseFailure, StrategyUnavailable
from invex.processors.document import PDF, InvoiceDocument
from invex.processors.invoice.normalizer import Reconciler
from invex.processors.llm import LLMService, PromptManager, create_llm_service, get_prompt_manager

logger = logging.getLogger(__name__)


def parse_llm_response(response: str) -> Dict[str, Any]:
    """
    Parse an LLM reply into a JSON object.

    Tries the whole reply, then a fenced code block, then the first
    {...} block.

    Raises:
        ParseFailure: If no JSON object can be read from the reply
    """
    if not response or not response.strip():
        raise ParseFailure("Empty model response")

    candidates = [response.strip()]

    code_block = re.search(r'```(?:json)?\s*([\s\S]*?)\s*```', response)
    if code_block:
        candidates.append(code_block.group(1))

    json_block = re.search(r'\{[\s\S]*\}', response)
    if json_block:
        candidates.append(json_block.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise ParseFailure("No JSON object found in model response")


class ModelExtractor(ExtractionStrategy):
    """
    Shared behavior of the LLM strategies.

    Subclasses name their prompt, their provider settings and how they
    build the request.
    """

    prompt_name: str

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        llm_service: Optional[LLMService] = None,
        prompt_manager: Optional[PromptManager] = None
    ):
        super().__init__(config)
        self._llm_service = llm_service
        self.prompt_manager = prompt_manager or get_prompt_manager()
        self.reconciler = Reconciler()

    @property
    @abstractmethod
    def provider(self) -> str:
        """LLM provider name, 'openai' or 'anthropic'"""
        pass

    @property
    @abstractmethod
    def model(self) -> Optional[str]:
        pass

    @property
    @abstractmethod
    def confidence(self) -> float:
        """Strategy-level confidence given to every result"""
        pass

    def _api_key(self) -> Optional[str]:
        return self.config.get('api_key') or InvexConfig().get_api_key(self.provider)

    def has_service(self) -> bool:
        """True when an LLM service is injected or an API key is configured"""
        return self._llm_service is not None or bool(self._api_key())

    @property
    def llm_service(self) -> LLMService:
        if self._llm_service is None:
            api_key = self._api_key()
            if not api_key:
                raise StrategyUnavailable(f"No API key configured for {self.provider}")
            self._llm_service = create_llm_service(self.provider, api_key, self.model)
        return self._llm_service

    def _build_result(self, response: str) -> ExtractionResult:
        raw = parse_llm_response(response)
        raw.pop('extractionMethods', None)

        try:
            invoice = self.reconciler.reconcile(raw)
        except ValidationError as e:
            raise ParseFailure(f"Model response does not fit the invoice contract: {e}") from e

        invoice = invoice.model_copy(update={'extraction_methods': [self.method.value]})
        logger.info(
            f"{self.method.value} extraction: invoice={invoice.invoice_number}, "
            f"items={len(invoice.genuine_items)}, total={invoice.total}"
        )
        return ExtractionResult(method=self.method, confidence=self.confidence, data=invoice)


class VisionExtractor(ModelExtractor):
    """Reads the invoice from a page image with a multimodal model"""

    method = ExtractionMethod.VISION
    prompt_name = 'invoice_vision'

    @property
    def provider(self) -> str:
        return self.processing_config.vision_provider

    @property
    def model(self) -> Optional[str]:
        return self.processing_config.vision_model

    @property
    def confidence(self) -> float:
        return self.processing_config.vision_confidence

    def _page(self, document: InvoiceDocument):
        # Claude reads PDFs directly; other providers need a rendered page
        if document.is_pdf and self.provider == 'anthropic':
            return document.content, PDF
        return document.page_image()

    def can_process(self, document: InvoiceDocument) -> bool:
        if document.is_text or not self.has_service():
            return False
        return self._page(document) is not None

    async def _extract(self, document: InvoiceDocument) -> ExtractionResult:
        page = self._page(document)
        if page is None:
            raise StrategyUnavailable("No page image available")
        image_bytes, mime_type = page

        system_prompt, prompt = self.prompt_manager.render(self.prompt_name)

        try:
            response = await self.llm_service.generate_vision_completion(
                prompt=prompt,
                image_bytes=image_bytes,
                mime_type=mime_type,
                system_prompt=system_prompt,
                temperature=self.processing_config.llm_temperature,
                max_tokens=self.processing_config.max_tokens,
            )
        except StrategyUnavailable:
            raise
        except Exception as e:
            raise StrategyUnavailable(f"Vision request failed: {e}") from e

        return self._build_result(response)


class TextModelExtractor(ModelExtractor):
    """Reads the invoice from the document text layer with a text model"""

    method = ExtractionMethod.TEXT_MODEL
    prompt_name = 'invoice_extraction'

    @property
    def provider(self) -> str:
        return self.processing_config.text_provider

    @property
    def model(self) -> Optional[str]:
        return self.processing_config.text_model

    @property
    def confidence(self) -> float:
        return self.processing_config.text_model_confidence

    def can_process(self, document: InvoiceDocument) -> bool:
        if not self.has_service():
            return False
        return len(document.text.strip()) >= self.processing_config.min_text_chars

    async def _extract(self, document: InvoiceDocument) -> ExtractionResult:
        text = document.text.strip()
        if len(text) < self.processing_config.min_text_chars:
            raise StrategyUnavailable(f"Only {len(text)} characters of text available")

        max_chars = self.processing_config.max_text_chars
        if len(text) > max_chars:
            logger.debug(f"Truncating text from {len(text)} to {max_chars} characters")
            text = text[:max_chars]

        system_prompt, prompt = self.prompt_manager.render(self.prompt_name, content=text)

        try:
            response = await self.llm_service.generate_completion(
                prompt=prompt,
                system_prompt=system_prompt,
                temperature=self.processing_config.llm_temperature,
                max_tokens=self.processing_config.max_tokens,
            )
        except StrategyUnavailable:
            raise
        except Exception as e:
            raise StrategyUnavailable(f"Text model request failed: {e}") from e

        return self._build_result(response)
