"""
invex Processors Module

Contains:
- Base extraction strategy framework and error types
- Document loading (type sniffing, text layer, page images)
- LLM provider services and prompt management
- Invoice extraction, merging, reconciliation and validation
"""

from . import base
from . import document
from . import llm
from . import invoice

__all__ = ['base', 'document', 'llm', 'invoice']
