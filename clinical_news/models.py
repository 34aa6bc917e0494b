"""Core data models for news items, filters and preference profiles."""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DEFAULT_PAGE_SIZE = 20


class FrozenModel(BaseModel):
    """Immutable model that rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class NewsSource(str, Enum):
    """Fixed upstream source identifiers."""

    FDA = "FDA"
    PUBMED = "PUBMED"
    DRUGS_COM = "DRUGS_COM"
    MEDICAL_DEVICE = "MEDICAL_DEVICE"
    TRIAL_SITE = "TRIAL_SITE"
    INTERNATIONAL = "INTERNATIONAL"


class NewsCategory(str, Enum):
    """Topical categories assigned by the classifier."""

    DRUG_APPROVAL = "DRUG_APPROVAL"
    CLINICAL_TRIAL = "CLINICAL_TRIAL"
    REGULATORY = "REGULATORY"
    MEDICAL_DEVICE = "MEDICAL_DEVICE"
    RESEARCH = "RESEARCH"
    PHARMA = "PHARMA"
    SAFETY_ALERT = "SAFETY_ALERT"


class NewsItem(FrozenModel):
    """A normalized news item from any upstream source.

    Items are immutable. The classifier returns an annotated copy rather
    than mutating the adapter output.
    """

    id: Annotated[str, Field(min_length=1, description="Stable item identifier")]
    title: Annotated[str, Field(min_length=1, description="Item title")]
    description: str = Field(default="", description="Short summary text")
    content: str = Field(default="", description="Body text, may be empty")
    url: Annotated[str, Field(min_length=1, description="Canonical URL")]
    image_url: str | None = Field(default=None, description="Preview image URL")
    published_at: datetime | None = Field(
        default=None, description="Publication timestamp (None when unknown)"
    )
    source: NewsSource = Field(description="Upstream source identifier")
    source_id: str = Field(default="", description="Configured feed identifier")
    categories: tuple[NewsCategory, ...] = Field(default_factory=tuple)
    tags: tuple[str, ...] = Field(default_factory=tuple)

    @property
    def all_text(self) -> str:
        """Title, description and content joined for keyword matching."""
        return f"{self.title} {self.description} {self.content}"

    def to_json_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "url": self.url,
            "imageUrl": self.image_url,
            "publishedAt": self.published_at.isoformat()
            if self.published_at
            else None,
            "source": self.source.value,
            "categories": [c.value for c in self.categories],
            "tags": list(self.tags),
        }


class NewsFilter(FrozenModel):
    """Caller-supplied filter and pagination options.

    Invalid values raise a pydantic ValidationError, which the service
    boundary converts into InvalidFilterError.
    """

    sources: tuple[NewsSource, ...] = Field(default_factory=tuple)
    categories: tuple[NewsCategory, ...] = Field(default_factory=tuple)
    tags: tuple[str, ...] = Field(default_factory=tuple)
    search_query: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    page: Annotated[int, Field(ge=1)] = 1
    page_size: Annotated[int, Field(ge=1)] = DEFAULT_PAGE_SIZE

    @field_validator("search_query")
    @classmethod
    def normalize_search_query(cls, v: str | None) -> str | None:
        """Treat blank search queries as absent."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Interpret naive bounds as UTC so they compare with item timestamps."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @model_validator(mode="after")
    def validate_date_range(self) -> "NewsFilter":
        """Ensure start_date does not come after end_date."""
        if self.start_date and self.end_date and self.start_date > self.end_date:
            msg = "start_date must not be after end_date"
            raise ValueError(msg)
        return self

    @property
    def has_criteria(self) -> bool:
        """Check if any non-pagination criterion is set."""
        return bool(
            self.sources
            or self.categories
            or self.tags
            or self.search_query
            or self.start_date
            or self.end_date
        )


class NewsResponse(FrozenModel):
    """A page of news items plus the pre-pagination total."""

    items: list[NewsItem] = Field(default_factory=list)
    total: Annotated[int, Field(ge=0)] = 0
    page: Annotated[int, Field(ge=1)] = 1
    page_size: Annotated[int, Field(ge=1)] = DEFAULT_PAGE_SIZE

    def to_json_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "items": [item.to_json_dict() for item in self.items],
            "total": self.total,
            "page": self.page,
            "pageSize": self.page_size,
        }


class PreferenceProfile(FrozenModel):
    """A user's research interests, owned by the external preferences service."""

    user_id: Annotated[str, Field(min_length=1)]
    therapeutic_areas: tuple[str, ...] = Field(default_factory=tuple)
    phases: tuple[str, ...] = Field(default_factory=tuple)
    statuses: tuple[str, ...] = Field(default_factory=tuple)
    read_articles: frozenset[str] = Field(default_factory=frozenset)
    last_updated: datetime | None = None

    def has_read(self, item_id: str) -> bool:
        """Check if an item was previously marked as read."""
        return item_id in self.read_articles
