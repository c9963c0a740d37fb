"""Unit tests for switchboard.core.security module.

Tests cover:
- API key masking and sensitive field detection
- sanitize_for_logging
- Error summaries returned to callers
- Provider text clamping
"""

from switchboard.core.security import (
    MAX_ERROR_SUMMARY_LENGTH,
    MAX_PROVIDER_RESPONSE_LENGTH,
    clamp_provider_text,
    is_sensitive_field,
    mask_api_key,
    sanitize_for_logging,
    summarize_error,
)


class TestMasking:
    """Test credential masking helpers."""

    def test_mask_api_key(self) -> None:
        """Test keys keep only their prefix and last four characters."""
        assert mask_api_key("sk-1234567890abcdef") == "sk-...cdef"

    def test_mask_empty_key(self) -> None:
        """Test an empty key masks to a placeholder."""
        assert mask_api_key("") == "<empty>"

    def test_sensitive_field_names(self) -> None:
        """Test credential-like field names are detected."""
        assert is_sensitive_field("OPENAI_API_KEY") is True
        assert is_sensitive_field("authorization") is True
        assert is_sensitive_field("task_type") is False

    def test_sanitize_nested(self) -> None:
        """Test nested credential fields are redacted."""
        data = {"api_key": "sk-secret123", "inner": {"password": "x"}, "name": "test"}

        assert sanitize_for_logging(data) == {
            "api_key": "<REDACTED>",
            "inner": {"password": "<REDACTED>"},
            "name": "test",
        }

    def test_sanitize_non_string_keys(self) -> None:
        """Test mappings with non-string keys pass through."""
        assert sanitize_for_logging({"counts": {200: 3, 500: 1}}) == {"counts": {200: 3, 500: 1}}


class TestSummarizeError:
    """Provider error text is reduced before it reaches API callers."""

    def test_first_line_only(self) -> None:
        """Test only the first line of an error survives."""
        assert summarize_error("upstream failed\nTraceback (most recent call last):") == (
            "upstream failed"
        )

    def test_inline_secret_redacted(self) -> None:
        """Test inline API keys are redacted."""
        summary = summarize_error("401 for key sk-abcdefghijklmnop")

        assert "sk-abcdefghijklmnop" not in summary
        assert "<REDACTED>" in summary

    def test_truncated(self) -> None:
        """Test summaries are capped in length."""
        assert len(summarize_error("x" * 1000)) == MAX_ERROR_SUMMARY_LENGTH

    def test_empty(self) -> None:
        """Test blank error text summarizes to an empty string."""
        assert summarize_error("   ") == ""


class TestClampProviderText:
    """Test clamping of provider text."""
    def test_short_text_untouched(self) -> None:
        """Test short text is returned unchanged."""
        assert clamp_provider_text("hello") == ("hello", False)

    def test_long_text_clamped(self) -> None:
        """Test oversized text is clamped and flagged."""
        content, truncated = clamp_provider_text("y" * (MAX_PROVIDER_RESPONSE_LENGTH + 5))

        assert truncated is True
        assert len(content) == MAX_PROVIDER_RESPONSE_LENGTH
