"""Tests for PubMedAdapter (esearch then esummary)."""

import json
from unittest.mock import MagicMock

from clinical_news.adapters.errors import AdapterErrorClass
from clinical_news.adapters.pubmed import DEFAULT_QUERY, PubMedAdapter
from clinical_news.adapters.state_machine import RunState
from clinical_news.config.schemas.base import SourceMethod
from clinical_news.config.schemas.sources import SourceConfig
from clinical_news.models import NewsSource
from tests.helpers.factories import make_fetch_result, make_source_config
from tests.helpers.time import FIXED_NOW


BASE_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"

SEARCH = {"esearchresult": {"idlist": ["111", "222"]}}

SUMMARY = {
    "result": {
        "uids": ["111", "222"],
        "111": {
            "uid": "111",
            "title": "Phase 3 trial of a PD-1 inhibitor in melanoma",
            "fulljournalname": "The Lancet Oncology",
            "authors": [
                {"name": "Smith J"},
                {"name": "Doe A"},
                {"name": "Lee K"},
                {"name": "Khan R"},
            ],
            "sortpubdate": "2025/06/08 00:00",
        },
        "222": {"uid": "222", "title": ""},
    }
}


def make_pubmed_config(query: str | None = None, max_items: int = 20) -> SourceConfig:
    """Create a PubMed source configuration."""
    return make_source_config(
        source_id="pubmed-clinical-trials",
        url=BASE_URL,
        source=NewsSource.PUBMED,
        method=SourceMethod.PUBMED,
        query=query,
        max_items=max_items,
    )


class TestPubMedAdapter:
    """Tests for the two-step PubMed lookup."""

    def test_search_then_summary(self) -> None:
        """PMIDs from esearch are summarized and mapped."""
        http_client = MagicMock()
        http_client.fetch.side_effect = [
            make_fetch_result(body=json.dumps(SEARCH).encode()),
            make_fetch_result(body=json.dumps(SUMMARY).encode()),
        ]

        result = PubMedAdapter().fetch(make_pubmed_config(), http_client, FIXED_NOW)

        assert result.state == RunState.DONE
        assert len(result.items) == 1
        item = result.items[0]
        assert item.url == "https://pubmed.ncbi.nlm.nih.gov/111"
        assert item.description == "The Lancet Oncology | Smith J, Doe A, Lee K et al."
        assert item.published_at is not None
        assert item.published_at.date().isoformat() == "2025-06-08"
        assert len(result.parse_warnings) == 1

        search_call, summary_call = http_client.fetch.call_args_list
        assert search_call.kwargs["url"] == f"{BASE_URL}/esearch.fcgi"
        assert search_call.kwargs["params"]["term"] == DEFAULT_QUERY
        assert summary_call.kwargs["url"] == f"{BASE_URL}/esummary.fcgi"
        assert summary_call.kwargs["params"]["id"] == "111,222"

    def test_custom_query_and_key(self) -> None:
        """The source query and API key are sent to esearch."""
        http_client = MagicMock()
        http_client.fetch.return_value = make_fetch_result(
            body=b'{"esearchresult": {"idlist": []}}'
        )

        PubMedAdapter(api_key="ncbi").fetch(
            make_pubmed_config(query="gene therapy"), http_client, FIXED_NOW
        )

        params = http_client.fetch.call_args.kwargs["params"]
        assert params["term"] == "gene therapy"
        assert params["api_key"] == "ncbi"

    def test_empty_search_skips_summary(self) -> None:
        """No PMIDs means no esummary request and an empty success."""
        http_client = MagicMock()
        http_client.fetch.return_value = make_fetch_result(
            body=b'{"esearchresult": {"idlist": []}}'
        )

        result = PubMedAdapter().fetch(make_pubmed_config(), http_client, FIXED_NOW)

        assert result.state == RunState.DONE
        assert result.items == []
        assert http_client.fetch.call_count == 1

    def test_missing_idlist_is_schema_error(self) -> None:
        """A search response without idlist fails with SCHEMA."""
        http_client = MagicMock()
        http_client.fetch.return_value = make_fetch_result(body=b'{"error": "x"}')

        result = PubMedAdapter().fetch(make_pubmed_config(), http_client, FIXED_NOW)

        assert result.state == RunState.FAILED
        assert result.error is not None
        assert result.error.error_class == AdapterErrorClass.SCHEMA
