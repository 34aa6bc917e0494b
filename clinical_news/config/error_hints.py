"""Hints printed under configuration validation errors."""

from enum import Enum
from typing import Final

from clinical_news.config.schemas.base import SourceMethod
from clinical_news.models import NewsCategory, NewsSource


DEFAULT_HINT = "See config/sources.yaml for a working example."


def _one_of(enum: type[Enum]) -> str:
    return ", ".join(member.value for member in enum)


# Keyed by pydantic error type, plus the loader's own file_not_found and
# yaml_parse_error
ERROR_HINTS: Final[dict[str, str]] = {
    "missing": "Required field; add it to the entry.",
    "extra_forbidden": "Unknown field; it may be misspelled.",
    "enum": "Not an allowed value.",
    "literal_error": "Not an allowed value.",
    "bool_type": "Use true or false.",
    "bool_parsing": "Use true or false.",
    "int_type": "Use a whole number.",
    "int_parsing": "Use a whole number.",
    "float_type": "Use a number.",
    "float_parsing": "Use a number.",
    "string_type": "Use a quoted string.",
    "list_type": "Use a YAML list.",
    "tuple_type": "Use a YAML list.",
    "dict_type": "Use a YAML mapping.",
    "model_type": "Use a YAML mapping.",
    "greater_than": "Value below the allowed minimum.",
    "greater_than_equal": "Value below the allowed minimum.",
    "less_than": "Value above the allowed maximum.",
    "less_than_equal": "Value above the allowed maximum.",
    "string_too_short": "Value is empty or too short.",
    "string_too_long": "Value is too long.",
    "string_pattern_mismatch": "Value has the wrong format.",
    "value_error": "Value is not acceptable; see the message above.",
    "file_not_found": "No file at that path; pass --config with the right path.",
    "yaml_parse_error": "The file is not valid YAML; check indentation and quoting.",
}

# Keyed by the last matching segment of the error location
FIELD_HINTS: Final[dict[str, str]] = {
    "id": "Use lowercase letters, digits, '-' or '_', e.g. 'fda-medwatch'.",
    "url": "Use an absolute HTTP or HTTPS URL.",
    "method": f"One of: {_one_of(SourceMethod)}.",
    "source": f"One of: {_one_of(NewsSource)}.",
    "default_categories": f"A list drawn from: {_one_of(NewsCategory)}.",
    "timeout_seconds": "Seconds, above 0 and at most 60.",
    "max_items": "A count from 0 to 1000.",
    "lookback_days": "Days, from 1 to 365.",
    "recency_steps": (
        "A list of {max_days, factor}; max_days strictly ascending, "
        "factor never increasing."
    ),
}


def get_error_hint(error_type: str, field_name: str | None = None) -> str:
    """Pick the most specific hint for an error.

    A field hint wins when any segment of the dotted location names a known
    field, searching from the innermost segment outwards.
    """
    for part in reversed((field_name or "").split(".")):
        if part in FIELD_HINTS:
            return FIELD_HINTS[part]
    return ERROR_HINTS.get(error_type, DEFAULT_HINT)


def format_validation_error(
    location: str,
    message: str,
    error_type: str,
    *,
    include_hint: bool = True,
) -> str:
    """Render one error as 'location: message', optionally with a hint line."""
    line = f"{location}: {message}"
    if not include_hint:
        return line
    return f"{line}\n    Hint: {get_error_hint(error_type, location)}"
