"""
OpenAI LLM Service

OpenAI chat completions for the text-model and vision extraction strategies.
"""

import base64
import logging
from typing import Optional

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class OpenAILLMService:
    """OpenAI LLM service used by the extraction strategies"""

    provider = 'openai'

    def __init__(self, api_key: str, model: str = "gpt-4o"):
        """
        Initialize OpenAI LLM service

        Args:
            api_key: OpenAI API key
            model: Model to use (default: gpt-4o)
        """
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model

    async def generate_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> str:
        """
        Generate text completion using OpenAI

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            temperature: Sampling temperature (default: 0.0)
            max_tokens: Maximum tokens to generate
            **kwargs: Additional parameters for OpenAI API

        Returns:
            Generated text completion
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        logger.info(f"Calling OpenAI {self.model} for text extraction")
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs
        )

        return response.choices[0].message.content or ''

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
        Generate a completion for an image plus instructions

        Args:
            prompt: Extraction instructions
            image_bytes: Raw image content
            mime_type: Image MIME type (image/png or image/jpeg)
            system_prompt: Optional system prompt
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate

        Returns:
            Generated text completion
        """
        data_url = f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": data_url}},
            ],
        })

        logger.info(f"Calling OpenAI {self.model} for vision extraction")
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        return response.choices[0].message.content or ''
