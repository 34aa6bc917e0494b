"""openFDA drug adverse-event adapter."""

from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any

from clinical_news.adapters.base import BaseAdapter, first_str
from clinical_news.adapters.errors import AdapterError, SchemaError
from clinical_news.config.schemas.sources import SourceConfig
from clinical_news.fetch.client import HttpFetcher
from clinical_news.models import NewsItem
from clinical_news.utils.dates import parse_date


# openFDA caps a single page at 1000 records; a news listing never needs that many
OPENFDA_MAX_LIMIT = 100

DEFAULT_REPORT_TITLE = "FDA Drug Safety Report"


class OpenFdaAdapter(BaseAdapter):
    """Adapter for the openFDA drug adverse-event endpoint.

    Queries reports received within the source's rolling lookback window.
    Each safety report becomes one item titled by its first suspect product.
    openFDA answers 404 when no report matches, which is mapped to an
    empty result rather than a failure.
    """

    method = "openfda_events"

    def __init__(self, api_key: str | None = None, request_id: str = "") -> None:
        """Initialize the adapter.

        Args:
            api_key: openFDA API key (optional, raises the rate limit).
            request_id: Request identifier for logging.
        """
        super().__init__(request_id)
        self._api_key = api_key

    def build_params(
        self,
        source_config: SourceConfig,
        now: datetime,
    ) -> dict[str, str]:
        """Build the query for the rolling receivedate window."""
        start = (now - timedelta(days=source_config.lookback_days)).strftime("%Y%m%d")
        end = now.strftime("%Y%m%d")
        limit = source_config.max_items or OPENFDA_MAX_LIMIT
        params = {
            "search": f"receivedate:[{start} TO {end}]",
            "limit": str(min(limit, OPENFDA_MAX_LIMIT)),
        }
        if self._api_key:
            params["api_key"] = self._api_key
        return params

    def _fetch_primary(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,
        now: datetime,
    ) -> Any:
        result = http_client.fetch(
            source_id=source_config.id,
            url=source_config.url,
            params=self.build_params(source_config, now),
            extra_headers=source_config.headers or None,
            timeout=source_config.timeout_seconds,
        )
        # openFDA answers 404 when the window matched no reports
        if result.not_found:
            return {"results": []}
        if not result.is_success:
            raise AdapterError.from_fetch_result(result, source_config.id)
        return self.decode_json(result, source_config.id)

    def _parse_primary(
        self,
        payload: Any,
        source_config: SourceConfig,
        now: datetime,
        parse_warnings: list[str],
    ) -> list[NewsItem]:
        results = payload.get("results") if isinstance(payload, Mapping) else None
        if not isinstance(results, list):
            raise SchemaError(
                "openFDA response has no results list",
                source_id=source_config.id,
                field="results",
                expected="list",
                actual=type(results).__name__,
            )
        return self.map_entries(results, source_config, now, parse_warnings)

    def map_entry(
        self,
        entry: Any,
        source_config: SourceConfig,
        now: datetime,
    ) -> NewsItem | None:
        """Map one safety report."""
        if not isinstance(entry, Mapping):
            return None
        report_id = first_str(entry, "safetyreportid")
        if not report_id:
            return None

        patient = entry.get("patient") or {}
        drugs = patient.get("drug") or []
        reactions = [
            r.get("reactionmeddrapt", "")
            for r in patient.get("reaction") or []
            if isinstance(r, Mapping) and r.get("reactionmeddrapt")
        ]

        product = ""
        if drugs and isinstance(drugs[0], Mapping):
            product = first_str(drugs[0], "medicinalproduct")

        title = f"Adverse event report: {product}" if product else DEFAULT_REPORT_TITLE
        content = f"Reported reactions: {', '.join(reactions)}." if reactions else ""
        if product:
            content = f"Suspect product: {product}. {content}".strip()

        return self.build_item(
            source_config,
            now,
            title=title,
            url=f"{source_config.url}?search=safetyreportid:{report_id}",
            guid=report_id,
            description=reactions[0] if reactions else "",
            content=content,
            published_at=parse_date(first_str(entry, "receivedate")),
        )
