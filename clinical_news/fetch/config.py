"""Settings of the HTTP fetch layer."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from clinical_news.fetch.constants import (
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_USER_AGENT,
)
from clinical_news.fetch.models import RetryPolicy


class FetchConfig(BaseModel):
    """Client-wide fetch settings.

    Each source passes its own timeout per call. default_timeout_seconds
    covers callers that do not.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=200)] = (
        DEFAULT_USER_AGENT
    )
    default_timeout_seconds: Annotated[float, Field(gt=0.0, le=60.0)] = 5.0
    max_response_size_bytes: Annotated[int, Field(ge=1024)] = (
        DEFAULT_MAX_RESPONSE_SIZE_BYTES
    )
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
