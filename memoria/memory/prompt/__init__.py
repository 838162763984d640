"""Prompt budget enforcement and formatting."""

from memoria.memory.prompt.budget import enforce_budget
from memoria.memory.prompt.builder import PromptParts, build_prompt

__all__ = ["PromptParts", "build_prompt", "enforce_budget"]
