"""PubMed adapter over NCBI E-utilities (esearch, then esummary)."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from clinical_news.adapters.base import BaseAdapter, first_str
from clinical_news.adapters.errors import SchemaError
from clinical_news.config.schemas.sources import SourceConfig
from clinical_news.fetch.client import HttpFetcher
from clinical_news.models import NewsItem
from clinical_news.utils.dates import parse_date


DEFAULT_QUERY = "clinical trials drug development"

DEFAULT_RETMAX = 20

PUBMED_ARTICLE_URL = "https://pubmed.ncbi.nlm.nih.gov/{uid}/"

# Authors listed in the description before truncating with "et al."
MAX_LISTED_AUTHORS = 3


class PubMedAdapter(BaseAdapter):
    """Adapter for PubMed search results.

    esearch returns the newest matching PMIDs for the source query, then
    esummary returns their titles, journals and dates. No second request
    is made when the search is empty.
    """

    method = "pubmed"

    def __init__(self, api_key: str | None = None, request_id: str = "") -> None:
        """Initialize the adapter.

        Args:
            api_key: NCBI API key (optional, raises the rate limit).
            request_id: Request identifier for logging.
        """
        super().__init__(request_id)
        self._api_key = api_key

    def _with_key(self, params: dict[str, str]) -> dict[str, str]:
        if self._api_key:
            params["api_key"] = self._api_key
        return params

    def _fetch_primary(
        self,
        source_config: SourceConfig,
        http_client: HttpFetcher,
        now: datetime,  # noqa: ARG002
    ) -> Any:
        base = source_config.url.rstrip("/")
        search = self.get_json(
            http_client,
            source_config,
            f"{base}/esearch.fcgi",
            self._with_key(
                {
                    "db": "pubmed",
                    "term": source_config.query or DEFAULT_QUERY,
                    "retmax": str(source_config.max_items or DEFAULT_RETMAX),
                    "retmode": "json",
                    "sort": "pub_date",
                }
            ),
        )

        result = search.get("esearchresult") if isinstance(search, Mapping) else None
        ids = result.get("idlist") if isinstance(result, Mapping) else None
        if not isinstance(ids, list):
            raise SchemaError(
                "esearch response has no idlist",
                source_id=source_config.id,
                field="esearchresult.idlist",
                expected="list",
            )
        if not ids:
            return {"result": {"uids": []}}

        return self.get_json(
            http_client,
            source_config,
            f"{base}/esummary.fcgi",
            self._with_key(
                {
                    "db": "pubmed",
                    "id": ",".join(str(i) for i in ids),
                    "retmode": "json",
                }
            ),
        )

    def _parse_primary(
        self,
        payload: Any,
        source_config: SourceConfig,
        now: datetime,
        parse_warnings: list[str],
    ) -> list[NewsItem]:
        result = payload.get("result") if isinstance(payload, Mapping) else None
        if not isinstance(result, Mapping):
            raise SchemaError(
                "esummary response has no result object",
                source_id=source_config.id,
                field="result",
                expected="object",
            )

        uids = result.get("uids")
        if not isinstance(uids, list):
            uids = [key for key in result if key != "uids"]
        articles = [result.get(str(uid)) for uid in uids]
        return self.map_entries(articles, source_config, now, parse_warnings)

    def map_entry(
        self,
        entry: Any,
        source_config: SourceConfig,
        now: datetime,
    ) -> NewsItem | None:
        """Map one esummary article."""
        if not isinstance(entry, Mapping):
            return None
        uid = first_str(entry, "uid")
        if not uid:
            return None

        authors = [
            a.get("name", "")
            for a in entry.get("authors") or []
            if isinstance(a, Mapping) and a.get("name")
        ]
        author_text = ", ".join(authors[:MAX_LISTED_AUTHORS])
        if len(authors) > MAX_LISTED_AUTHORS:
            author_text += " et al."
        journal = first_str(entry, "fulljournalname", "source")
        description = " | ".join(part for part in (journal, author_text) if part)

        return self.build_item(
            source_config,
            now,
            title=first_str(entry, "title"),
            url=PUBMED_ARTICLE_URL.format(uid=uid),
            guid=uid,
            description=description,
            content=first_str(entry, "abstracttext"),
            published_at=parse_date(
                first_str(entry, "sortpubdate", "pubdate", "epubdate")
            ),
        )
