"""Schema of config/sources.yaml."""

from collections import Counter
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from clinical_news.config.schemas.base import SourceMethod
from clinical_news.models import NewsCategory, NewsSource


# Credentials come from the environment (AppSettings), never from YAML
CREDENTIAL_HEADERS = frozenset({"authorization", "cookie", "x-api-key"})

SourceId = Annotated[
    str, Field(min_length=1, max_length=100, pattern=r"^[a-z0-9_-]+$")
]


class SourceConfig(BaseModel):
    """One upstream feed or API endpoint.

    Attributes:
        id: Stable slug, unique within the file.
        name: Display name.
        url: Feed URL, or the API base URL for openFDA and PubMed.
        source: NewsSource every item from this entry is attributed to.
        method: Which adapter retrieves it.
        default_categories: Categories every item gets before pattern matching.
        timeout_seconds: Time budget per strategy; see the field description
            for the resulting per-source deadline.
        max_items: Cap on items kept per run; 0 keeps everything.
        enabled: Disabled entries are listed but never fetched.
        query: Search term (PubMed).
        lookback_days: Size of the date window (openFDA).
        headers: Extra non-credential request headers.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: SourceId
    name: Annotated[str, Field(min_length=1, max_length=200)]
    url: Annotated[str, Field(min_length=1)]
    source: NewsSource
    method: SourceMethod
    default_categories: tuple[NewsCategory, ...] = ()
    timeout_seconds: Annotated[
        float,
        Field(
            gt=0.0,
            le=60.0,
            description=(
                "Seconds allowed per retrieval strategy. A source with a fallback "
                "strategy may use it twice; the aggregator abandons the source "
                "after that plus a 0.25 s grace."
            ),
        ),
    ] = 5.0
    max_items: Annotated[int, Field(ge=0, le=1000)] = 100
    enabled: bool = True
    query: str | None = None
    lookback_days: Annotated[int, Field(ge=1, le=365)] = 30
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def require_http_url(cls, v: str) -> str:
        if not v.lower().startswith(("http://", "https://")):
            msg = "URL must use the http or https scheme"
            raise ValueError(msg)
        return v

    @field_validator("headers")
    @classmethod
    def reject_credentials(cls, v: dict[str, str]) -> dict[str, str]:
        leaked = sorted(key for key in v if key.lower() in CREDENTIAL_HEADERS)
        if leaked:
            msg = (
                f"Credential headers {leaked} belong in environment variables, "
                "not in sources.yaml"
            )
            raise ValueError(msg)
        return v


class SourcesConfig(BaseModel):
    """The whole source catalogue.

    Entry order matters: duplicates across sources are resolved in this
    order, first one wins.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    sources: list[SourceConfig]

    @model_validator(mode="after")
    def require_unique_ids(self) -> "SourcesConfig":
        counts = Counter(source.id for source in self.sources)
        repeated = sorted(source_id for source_id, n in counts.items() if n > 1)
        if repeated:
            msg = f"Duplicate source IDs: {', '.join(repeated)}"
            raise ValueError(msg)
        return self

    @property
    def enabled_sources(self) -> list[SourceConfig]:
        """Enabled entries, in file order."""
        return [source for source in self.sources if source.enabled]
