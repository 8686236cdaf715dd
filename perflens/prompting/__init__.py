"""Prompt templates and request assembly for the oracle."""

from .builder import PromptBuilder, PromptMessage, PromptRegistry, PromptRequest, number_lines

__all__ = ["PromptBuilder", "PromptMessage", "PromptRegistry", "PromptRequest", "number_lines"]
