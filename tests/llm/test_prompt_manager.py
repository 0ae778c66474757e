"""Tests for selfheal.llm.prompts.prompt_manager"""

import pytest

from selfheal.llm.prompts import PromptManager, PromptTemplateError
from selfheal.llm.prompts.prompt_manager import TASK_TEMPLATES


@pytest.fixture
def manager():
    return PromptManager()


class TestPackagedTemplates:
    def test_every_task_template_loads(self, manager):
        templates = manager.load_all()

        assert set(templates) == set(TASK_TEMPLATES)
        assert all(content.strip() for content in templates.values())

    def test_available_lists_packaged_templates(self, manager):
        assert set(TASK_TEMPLATES) <= set(manager.available())

    def test_classify_template_renders_variables(self, manager):
        prompt = manager.load(
            "10_task.classify",
            {"ERROR_TYPE": "TypeError", "ERROR_MESSAGE": "boom", "LOCATION": "a.ts:1", "STACK": "(none)"},
        )

        assert "TypeError" in prompt
        assert "a.ts:1" in prompt
        assert "{{ERROR_TYPE}}" not in prompt


class TestRendering:
    def test_unknown_variables_are_left_as_is(self, manager):
        assert manager.render("{{KNOWN}} {{UNKNOWN}}", {"KNOWN": 1}) == "1 {{UNKNOWN}}"

    def test_cache_is_reused_and_invalidated(self, tmp_path):
        (tmp_path / "greet.md").write_text("Hello {{NAME}}")
        manager = PromptManager(templates_dir=tmp_path)

        assert manager.load("greet", {"NAME": "Ada"}) == "Hello Ada"

        (tmp_path / "greet.md").write_text("Bye {{NAME}}")
        assert manager.load("greet", {"NAME": "Ada"}) == "Hello Ada"

        manager.invalidate_cache()
        assert manager.load("greet", {"NAME": "Ada"}) == "Bye Ada"


class TestErrors:
    def test_missing_template(self, manager):
        with pytest.raises(PromptTemplateError, match="template not found"):
            manager.load("99_task.missing")

    def test_path_traversal_blocked(self, manager):
        with pytest.raises(PromptTemplateError, match="Path traversal blocked"):
            manager.load("../../../etc/passwd")

    def test_oversize_template(self, tmp_path):
        (tmp_path / "huge.md").write_text("x" * 100_001)

        with pytest.raises(PromptTemplateError, match="exceeds size limit"):
            PromptManager(templates_dir=tmp_path).load("huge")
