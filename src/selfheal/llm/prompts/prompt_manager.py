"""
Prompt Template Manager.

Loads, caches, and renders the markdown task templates with {{VAR}} support.
Security: Path traversal blocked, size limits.
"""

from __future__ import annotations

import re
from pathlib import Path

from selfheal.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

# Template directory
TEMPLATES_DIR = Path(__file__).parent / "templates"

# Task templates in pipeline order
TASK_TEMPLATES = (
    "00_system.core",
    "10_task.classify",
    "20_task.synthesize_test",
    "30_task.propose_patch",
    "35_task.diff_guard",
    "40_task.critique_patch",
    "50_task.commit_message",
    "60_task.pull_request_body",
)


class PromptTemplateError(Exception):
    """Raised when template loading or rendering fails."""

    pass


class PromptManager:
    """
    Manages prompt templates with variable interpolation.

    Templates are addressed by name without the .md suffix
    (e.g. "10_task.classify"). Raw templates are cached; variables are
    interpolated on every load. Unknown variables are left as-is.
    """

    _MAX_TEMPLATE_SIZE = 100_000  # 100KB
    _VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")

    def __init__(self, templates_dir: Path | None = None):
        self._templates_dir = (templates_dir or TEMPLATES_DIR).resolve()
        self._cache: dict[str, str] = {}

    def load(self, template_name: str, variables: dict[str, object] | None = None) -> str:
        """
        Load and render a template by name.

        Raises:
            PromptTemplateError: On missing template, oversize template or path traversal
        """
        if template_name not in self._cache:
            self._cache[template_name] = self._load_raw(template_name)

        return self.render(self._cache[template_name], variables or {})

    def load_all(self) -> dict[str, str]:
        """Load every task template, unrendered."""
        return {name: self.load(name) for name in TASK_TEMPLATES}

    def available(self) -> list[str]:
        """Template names present in the templates directory."""
        return sorted(p.stem for p in self._templates_dir.glob("*.md"))

    def invalidate_cache(self) -> None:
        """Clear the template cache."""
        self._cache.clear()

    def render(self, template: str, variables: dict[str, object]) -> str:
        """Interpolate {{VAR}} placeholders."""

        def replace_var(match: re.Match) -> str:
            var_name = match.group(1)
            if var_name in variables:
                return str(variables[var_name])
            return match.group(0)

        return self._VARIABLE_PATTERN.sub(replace_var, template)

    def _load_raw(self, template_name: str) -> str:
        template_path = self._resolve_safe_path(f"{template_name}.md")

        try:
            content = template_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise PromptTemplateError(f"Failed to load prompt '{template_name}': template not found")
        except OSError as e:
            raise PromptTemplateError(f"Failed to load prompt '{template_name}': {e}")

        if len(content) > self._MAX_TEMPLATE_SIZE:
            raise PromptTemplateError(
                f"Template '{template_name}' exceeds size limit ({len(content)} > {self._MAX_TEMPLATE_SIZE} bytes)."
            )

        logger.debug("prompt_template_loaded", template=template_name, size=len(content))
        return content

    def _resolve_safe_path(self, file_name: str) -> Path:
        """Resolve template path with path traversal protection."""
        candidate = (self._templates_dir / file_name).resolve()

        try:
            candidate.relative_to(self._templates_dir)
        except ValueError:
            raise PromptTemplateError(
                f"Path traversal blocked: '{file_name}' resolves outside templates directory."
            )

        return candidate


# Module-level singleton
_prompt_manager: PromptManager | None = None


def get_prompt_manager() -> PromptManager:
    """Get the global PromptManager singleton."""
    global _prompt_manager
    if _prompt_manager is None:
        _prompt_manager = PromptManager()
    return _prompt_manager
