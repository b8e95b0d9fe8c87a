"""
Extraction Prompts

The vision and text-model prompts live as YAML files under invex/prompts so
they can be tuned without touching the strategies. Each file carries a
system prompt (may be empty) and a Jinja2 user template; the text template
receives the document text as ``content``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml
from jinja2 import Environment, StrictUndefined, Template

logger = logging.getLogger(__name__)

PACKAGED_PROMPTS = Path(__file__).parent.parent.parent / "prompts"

# Document text goes through verbatim; braces in it are never template syntax
_environment = Environment(undefined=StrictUndefined, keep_trailing_newline=True, autoescape=False)


@dataclass(frozen=True)
class ExtractionPrompt:
    name: str
    version: str
    system_prompt: Optional[str]
    template: Template

    def render(self, **variables) -> Tuple[Optional[str], str]:
        """Return (system prompt or None, rendered user prompt)"""
        return self.system_prompt, self.template.render(**variables)


class PromptManager:
    """Loads extraction prompts by name and keeps the parsed templates"""

    def __init__(self, prompts_dir: Optional[str] = None):
        self.prompts_dir = Path(prompts_dir) if prompts_dir is not None else PACKAGED_PROMPTS
        self._prompts: Dict[str, ExtractionPrompt] = {}

    def get(self, prompt_name: str) -> ExtractionPrompt:
        """
        Load a prompt, parsing it only the first time it is asked for.

        Args:
            prompt_name: File name without the .yaml extension

        Returns:
            ExtractionPrompt

        Raises:
            FileNotFoundError: If no prompt file exists for the name
            ValueError: If the file has no user_prompt_template
        """
        if prompt_name in self._prompts:
            return self._prompts[prompt_name]

        prompt_file = self.prompts_dir / f"{prompt_name}.yaml"
        if not prompt_file.exists():
            raise FileNotFoundError(f"Prompt file not found: {prompt_file}")

        with open(prompt_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        template_source = data.get('user_prompt_template')
        if not template_source:
            raise ValueError(f"Prompt '{prompt_name}' has no user_prompt_template")

        prompt = ExtractionPrompt(
            name=data.get('name', prompt_name),
            version=str(data.get('version', '1.0')),
            system_prompt=data.get('system_prompt') or None,
            template=_environment.from_string(template_source),
        )
        logger.debug(f"Loaded prompt {prompt.name} v{prompt.version} from {prompt_file}")
        self._prompts[prompt_name] = prompt
        return prompt

    def render(self, prompt_name: str, **variables) -> Tuple[Optional[str], str]:
        return self.get(prompt_name).render(**variables)

    def reload(self):
        """Forget parsed prompts so edited files are read again"""
        self._prompts.clear()


_default_prompt_manager: Optional[PromptManager] = None


def get_prompt_manager(prompts_dir: Optional[str] = None) -> PromptManager:
    """Shared manager for the packaged prompts, or a dedicated one for another directory"""
    global _default_prompt_manager

    if prompts_dir is not None:
        return PromptManager(prompts_dir)

    if _default_prompt_manager is None:
        _default_prompt_manager = PromptManager()
    return _default_prompt_manager
