"""
LLM Provider Services for invex

Thin async wrappers over the OpenAI and Anthropic SDKs used by the vision
and text-model extraction strategies.
"""

from typing import Optional, Union

from .claude_service import ClaudeLLMService
from .openai_service import OpenAILLMService
from .prompt_manager import ExtractionPrompt, PromptManager, get_prompt_manager

LLMService = Union[OpenAILLMService, ClaudeLLMService]

DEFAULT_MODELS = {
    'openai': 'gpt-4o',
    'anthropic': 'claude-3-5-sonnet-20241022',
}


def create_llm_service(provider: str, api_key: str, model: Optional[str] = None) -> LLMService:
    """
    Build the service for a configured provider

    Args:
        provider: 'openai' or 'anthropic'
        api_key: Provider API key
        model: Model name; the provider default when None

    Returns:
        LLM service instance

    Raises:
        ValueError: If the provider is not supported
    """
    if provider not in DEFAULT_MODELS:
        raise ValueError(f"Unsupported LLM provider: {provider}")

    model = model or DEFAULT_MODELS[provider]
    if provider == 'anthropic':
        return ClaudeLLMService(api_key=api_key, model=model)
    return OpenAILLMService(api_key=api_key, model=model)


__all__ = [
    'ClaudeLLMService',
    'ExtractionPrompt',
    'LLMService',
    'OpenAILLMService',
    'PromptManager',
    'create_llm_service',
    'get_prompt_manager',
]
