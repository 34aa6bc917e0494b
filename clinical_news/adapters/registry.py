"""Adapter registry keyed by source retrieval method."""

from clinical_news.adapters.base import SourceAdapter
from clinical_news.adapters.openfda import OpenFdaAdapter
from clinical_news.adapters.pubmed import PubMedAdapter
from clinical_news.adapters.rss_feed import RssFeedAdapter
from clinical_news.config.schemas.base import SourceMethod
from clinical_news.settings import AppSettings


class UnknownSourceMethodError(KeyError):
    """Raised when no adapter is registered for a source method."""


class AdapterRegistry:
    """Maps each SourceMethod to the adapter that handles it.

    The aggregator only sees this mapping, so adding a source family means
    registering one more adapter here.
    """

    def __init__(self, adapters: dict[SourceMethod, SourceAdapter]) -> None:
        """Initialize the registry.

        Args:
            adapters: Adapter per method.
        """
        self._adapters = dict(adapters)

    def get(self, method: SourceMethod) -> SourceAdapter:
        """Get the adapter for a method.

        Raises:
            UnknownSourceMethodError: If no adapter is registered.
        """
        try:
            return self._adapters[method]
        except KeyError as e:
            msg = f"No adapter registered for method '{method.value}'"
            raise UnknownSourceMethodError(msg) from e

    def register(self, method: SourceMethod, adapter: SourceAdapter) -> None:
        """Register or replace the adapter for a method."""
        self._adapters[method] = adapter

    @property
    def methods(self) -> list[SourceMethod]:
        """Registered methods."""
        return list(self._adapters)


def build_default_registry(
    settings: AppSettings,
    request_id: str = "",
) -> AdapterRegistry:
    """Build the registry of built-in adapters from application settings.

    Args:
        settings: Application settings (API keys).
        request_id: Request identifier for logging.

    Returns:
        AdapterRegistry with the RSS, openFDA and PubMed adapters.
    """
    return AdapterRegistry(
        {
            SourceMethod.RSS_FEED: RssFeedAdapter(
                proxy_api_key=settings.api_key_for("rss2json"),
                request_id=request_id,
            ),
            SourceMethod.OPENFDA_EVENTS: OpenFdaAdapter(
                api_key=settings.api_key_for("openfda"),
                request_id=request_id,
            ),
            SourceMethod.PUBMED: PubMedAdapter(
                api_key=settings.api_key_for("pubmed"),
                request_id=request_id,
            ),
        }
    )
