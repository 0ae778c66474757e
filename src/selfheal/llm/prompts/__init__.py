"""Prompt templates for the self-healing pipeline tasks."""

from .prompt_manager import TASK_TEMPLATES, PromptManager, PromptTemplateError, get_prompt_manager

__all__ = [
    "TASK_TEMPLATES",
    "PromptManager",
    "PromptTemplateError",
    "get_prompt_manager",
]
