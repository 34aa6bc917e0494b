"""Application settings powered by Pydantic BaseSettings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from clinical_news.fetch.constants import DEFAULT_USER_AGENT


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    rss2json_api_key: str | None = Field(
        default=None, validation_alias="RSS2JSON_API_KEY"
    )
    openfda_api_key: str | None = Field(
        default=None, validation_alias="OPENFDA_API_KEY"
    )
    pubmed_api_key: str | None = Field(default=None, validation_alias="PUBMED_API_KEY")
    preferences_api_url: str | None = Field(
        default=None, validation_alias="PREFERENCES_API_URL"
    )
    preferences_cache_ttl_seconds: float = Field(
        default=10.0, ge=0.0, validation_alias="PREFERENCES_CACHE_TTL_SECONDS"
    )
    aggregation_cache_ttl_seconds: float = Field(
        default=30.0, ge=0.0, validation_alias="AGGREGATION_CACHE_TTL_SECONDS"
    )
    http_user_agent: str = Field(
        default=DEFAULT_USER_AGENT, validation_alias="HTTP_USER_AGENT"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=True, validation_alias="LOG_JSON")

    def api_key_for(self, platform: str) -> str | None:
        """Return the API key for an upstream platform identifier."""
        keys = {
            "rss2json": self.rss2json_api_key,
            "openfda": self.openfda_api_key,
            "pubmed": self.pubmed_api_key,
        }
        return keys.get(platform)


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
