"""
Claude (Anthropic) LLM Service

Claude messages API for the text-model and vision extraction strategies.
"""

import base64
import logging
from typing import Any, Dict, List, Optional

import anthropic

logger = logging.getLogger(__name__)


class ClaudeLLMService:
    """Claude (Anthropic) LLM service used by the extraction strategies"""

    provider = 'anthropic'

    def __init__(self, api_key: str, model: str = "claude-3-5-sonnet-20241022"):
        """
        Initialize Claude LLM service

        Args:
            api_key: Anthropic API key
            model: Model to use (default: claude-3-5-sonnet-20241022)
        """
        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def _create(
        self,
        content: List[Dict[str, Any]],
        system_prompt: Optional[str],
        temperature: float,
        max_tokens: Optional[int]
    ) -> str:
        request_kwargs = {
            "model": self.model,
            "messages": [{"role": "user", "content": content}],
            "temperature": temperature,
            "max_tokens": max_tokens or 4096,
        }

        if system_prompt:
            request_kwargs["system"] = system_prompt

        response = await self.client.messages.create(**request_kwargs)

        return ''.join(
            block.text for block in response.content if getattr(block, 'type', None) == 'text'
        )

    async def generate_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> str:
        """
        Generate text completion using Claude

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            temperature: Sampling temperature (0.0 to 1.0)
            max_tokens: Maximum tokens to generate

        Returns:
            Generated text completion
        """
        logger.info(f"Calling Claude {self.model} for text extraction")
        return await self._create(
            [{"type": "text", "text": prompt}], system_prompt, temperature, max_tokens
        )

    async def generate_vision_completion(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Generate a completion for an image (or PDF) plus instructions

        Claude reads PDFs natively, so those are sent as a document block.
        """
        encoded = base64.b64encode(image_bytes).decode('ascii')
        block_type = 'document' if mime_type == 'application/pdf' else 'image'

        content = [
            {
                "type": block_type,
                "source": {"type": "base64", "media_type": mime_type, "data": encoded},
            },
            {"type": "text", "text": prompt},
        ]

        logger.info(f"Calling Claude {self.model} for vision extraction")
        return await self._create(content, system_prompt, temperature, max_tokens)
