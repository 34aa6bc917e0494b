"""Failures raised inside adapters and the records they become."""

from enum import Enum
from typing import Annotated, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from clinical_news.fetch.models import FetchErrorClass, FetchResult


Detail = str | int | bool | None

# Longest upstream snippet kept on a parse failure
CONTEXT_CHARS = 200


class AdapterErrorClass(str, Enum):
    """What went wrong with a source.

    - FETCH: transport failure or non-2xx status
    - TIMEOUT: no answer within the source's time budget
    - PARSE: the body is not valid XML or JSON
    - SCHEMA: the body parsed but lacks the expected structure
    """

    FETCH = "FETCH"
    TIMEOUT = "TIMEOUT"
    PARSE = "PARSE"
    SCHEMA = "SCHEMA"


class AdapterError(Exception):
    """Failure of one retrieval strategy.

    Raised inside a strategy and turned into an ErrorRecord by
    BaseAdapter.fetch(); it never reaches the aggregator.
    """

    error_class: ClassVar[AdapterErrorClass] = AdapterErrorClass.FETCH

    def __init__(
        self, message: str, source_id: str | None = None, **details: Detail
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_id = source_id
        self.details: dict[str, Detail] = {
            key: value for key, value in details.items() if value is not None
        }

    @classmethod
    def from_fetch_result(cls, result: FetchResult, source_id: str) -> "AdapterError":
        """Translate a failed fetch into the matching adapter error."""
        fetch_error = result.error
        if fetch_error is None:
            return cls(f"Unexpected HTTP status {result.status_code}", source_id)
        error_type = (
            UpstreamTimeoutError
            if fetch_error.error_class == FetchErrorClass.NETWORK_TIMEOUT
            else AdapterError
        )
        return error_type(
            fetch_error.message,
            source_id,
            status_code=result.status_code,
            fetch_error_class=fetch_error.error_class.value,
        )


class UpstreamTimeoutError(AdapterError):
    """The upstream did not answer in time."""

    error_class = AdapterErrorClass.TIMEOUT


class ParseError(AdapterError):
    """The body could not be parsed as XML or JSON."""

    error_class = AdapterErrorClass.PARSE

    def __init__(
        self, message: str, source_id: str | None = None, context: str | None = None
    ) -> None:
        super().__init__(
            message,
            source_id,
            context=context[:CONTEXT_CHARS] if context is not None else None,
        )


class SchemaError(AdapterError):
    """A parsed payload is missing a field or has the wrong type.

    Typical details are field, expected and actual.
    """

    error_class = AdapterErrorClass.SCHEMA


class ErrorRecord(BaseModel):
    """Serializable failure attached to a failed AdapterResult."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    error_class: AdapterErrorClass
    message: Annotated[str, Field(min_length=1)]
    source_id: str | None = None
    details: dict[str, Detail] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, error: AdapterError) -> "ErrorRecord":
        return cls(
            error_class=error.error_class,
            message=error.message or error.error_class.value,
            source_id=error.source_id,
            details=error.details,
        )
