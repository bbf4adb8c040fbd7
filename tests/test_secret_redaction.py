"""Tests for keeping credentials out of log output.

Covers:
- Secret masking (mask_secret)
- Log redaction (_redact_value / _redact_event)
"""

from chronicler.logging import _redact_event, _redact_value, mask_secret


class TestMaskSecret:
    def test_normal_key(self):
        assert mask_secret("AIzaSyA1234567890abcdef") == "AIza****cdef"

    def test_short_key(self):
        assert mask_secret("short") == "****"

    def test_exactly_8_chars(self):
        assert mask_secret("12345678") == "****"


class TestRedaction:
    def test_gemini_key(self):
        key = "AIzaSyD" + "x" * 32
        result = _redact_value(f"request failed for key={key}")
        assert key not in result
        assert "AIza****" in result

    def test_discord_token(self):
        token = "M" + "T" * 25 + ".Gabcde." + "y" * 30
        result = _redact_value(f"login with {token}")
        assert token not in result

    def test_bearer_header(self):
        result = _redact_value("Authorization: Bearer abcdefghijklmnop")
        assert "abcdefghijklmnop" not in result

    def test_plain_text_untouched(self):
        text = "compaction_finished scope=1234 extracted=1001"
        assert _redact_value(text) == text

    def test_event_dict_string_values_redacted(self):
        key = "sk-abcdefghijklmnop1234"
        event = {"event": "llm_call_failed", "error": f"bad key {key}", "count": 3}
        result = _redact_event(None, "error", event)
        assert key not in result["error"]
        assert result["count"] == 3
        assert result["event"] == "llm_call_failed"

    def test_nested_values_redacted(self):
        key = "AIzaSyD" + "z" * 32
        event = {
            "event": "llm_request",
            "headers": {"x-goog-api-key": key},
            "attempts": [f"key={key}", 2],
            "pair": ("ok", key),
        }
        result = _redact_event(None, "info", event)
        assert key not in result["headers"]["x-goog-api-key"]
        assert key not in result["attempts"][0]
        assert result["attempts"][1] == 2
        assert isinstance(result["pair"], tuple)
        assert key not in result["pair"][1]
        assert event["headers"]["x-goog-api-key"] == key
