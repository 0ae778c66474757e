"""Tests for selfheal.shared.infrastructure.logging"""

from selfheal.shared.infrastructure.logging import privacy_redactor


class TestPrivacyRedactor:
    def test_redacts_credentials(self):
        event = privacy_redactor(None, "info", {"event": "x", "error": "auth failed for sk-abcdefghijklmnop"})

        assert "sk-abcdefghijklmnop" not in event["error"]

    def test_redacts_bearer_tokens_and_emails(self):
        event = privacy_redactor(
            None,
            "info",
            {"event": "x", "header": "Bearer abc.def", "owner": "dev@example.com"},
        )

        assert event["header"] == "Bearer [TOKEN_REDACTED]"
        assert event["owner"] == "[EMAIL_REDACTED]"

    def test_redacts_nested_values(self):
        event = privacy_redactor(None, "info", {"event": "x", "ctx": {"paths": ["/home/alice/app.ts"]}})

        assert event["ctx"]["paths"] == ["[HOME_REDACTED]/app.ts"]

    def test_leaves_plain_values(self):
        event = privacy_redactor(None, "info", {"event": "selfheal_started", "count": 3})

        assert event == {"event": "selfheal_started", "count": 3}
