"""Unit tests for error hints system."""

import pytest

from clinical_news.config.error_hints import (
    DEFAULT_HINT,
    ERROR_HINTS,
    FIELD_HINTS,
    format_validation_error,
    get_error_hint,
)


class TestGetErrorHint:
    """Tests for get_error_hint function."""

    @pytest.mark.unit
    def test_returns_hint_for_known_error_type(self) -> None:
        """Test that known error types return their hints."""
        hint = get_error_hint("missing")
        assert hint == ERROR_HINTS["missing"]
        assert "required" in hint.lower()

    @pytest.mark.unit
    def test_returns_default_for_unknown_error_type(self) -> None:
        """Test that unknown error types return default hint."""
        hint = get_error_hint("some_unknown_error_type")
        assert hint == DEFAULT_HINT

    @pytest.mark.unit
    def test_field_specific_hint_takes_precedence(self) -> None:
        """Test that field-specific hints override error type hints."""
        hint = get_error_hint("enum", field_name="sources.0.method")
        assert hint == FIELD_HINTS["method"]
        assert "openfda_events" in hint

    @pytest.mark.unit
    def test_extracts_field_from_indexed_path(self) -> None:
        """List indexes after the field name are skipped."""
        hint = get_error_hint("enum", field_name="sources.2.default_categories.1")
        assert hint == FIELD_HINTS["default_categories"]

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("field_name", "expected_substring"),
        [
            ("id", "lowercase"),
            ("url", "HTTP"),
            ("method", "pubmed"),
            ("source", "DRUGS_COM"),
            ("timeout_seconds", "60"),
            ("max_items", "1000"),
            ("lookback_days", "365"),
            ("recency_steps", "ascending"),
        ],
    )
    def test_field_hints_content(
        self, field_name: str, expected_substring: str
    ) -> None:
        """Test that field hints contain expected guidance."""
        hint = get_error_hint("any", field_name=field_name)
        assert expected_substring in hint

    @pytest.mark.unit
    def test_file_errors_have_hints(self) -> None:
        """Loader-specific error types have hints."""
        assert "path" in get_error_hint("file_not_found")
        assert "YAML" in get_error_hint("yaml_parse_error")


class TestFormatValidationError:
    """Tests for format_validation_error function."""

    @pytest.mark.unit
    def test_with_hint(self) -> None:
        """The hint is appended on its own line."""
        formatted = format_validation_error(
            "sources.0.url", "URL must start with http", "value_error"
        )
        assert formatted.startswith("sources.0.url: URL must start with http")
        assert "\n    Hint: " in formatted
        assert FIELD_HINTS["url"] in formatted

    @pytest.mark.unit
    def test_without_hint(self) -> None:
        """include_hint=False returns the bare message."""
        formatted = format_validation_error(
            "root", "bad", "missing", include_hint=False
        )
        assert formatted == "root: bad"
