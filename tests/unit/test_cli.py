"""Tests for the click command line interface."""

import json
from datetime import datetime
from pathlib import Path

import pytest
from click.testing import CliRunner

from clinical_news.adapters.base import AdapterResult
from clinical_news.adapters.registry import AdapterRegistry
from clinical_news.aggregator.aggregator import NewsAggregator
from clinical_news.cli import main as cli_main
from clinical_news.cli.main import cli
from clinical_news.config.schemas.base import SourceMethod
from clinical_news.config.schemas.sources import SourceConfig
from clinical_news.fetch.client import HttpFetcher
from clinical_news.models import NewsSource
from clinical_news.preferences import InMemoryPreferencesService, PreferenceStore
from clinical_news.service import NewsService
from tests.helpers.factories import make_item, make_profile, make_source_config
from tests.helpers.time import FIXED_NOW


SHIPPED_SOURCES = Path(__file__).resolve().parents[2] / "config" / "sources.yaml"

ITEMS = [
    make_item(
        title="FDA approves new cancer drug",
        url="https://news.example.com/approval",
        source=NewsSource.FDA,
        published_at=FIXED_NOW,
    ),
    make_item(
        title="Quarterly pharma earnings",
        url="https://news.example.com/earnings",
        source=NewsSource.FDA,
        published_at=FIXED_NOW.replace(day=1),
    ),
]


class ListAdapter:
    """Adapter returning ITEMS for every source."""

    def fetch(
        self,
        source_config: SourceConfig,  # noqa: ARG002
        http_client: HttpFetcher,  # noqa: ARG002
        now: datetime,  # noqa: ARG002
    ) -> AdapterResult:
        return AdapterResult(items=list(ITEMS))


@pytest.fixture
def runner() -> CliRunner:
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def offline_service(monkeypatch: pytest.MonkeyPatch) -> NewsService:
    """Replace service construction with one over a fake adapter."""
    aggregator = NewsAggregator(
        sources=[make_source_config(source_id="fda-news", source=NewsSource.FDA)],
        registry=AdapterRegistry({SourceMethod.RSS_FEED: ListAdapter()}),
        now_fn=lambda: FIXED_NOW,
    )
    store = PreferenceStore(
        InMemoryPreferencesService(
            {"u1": make_profile("u1", therapeutic_areas=("oncology",))}
        )
    )
    service = NewsService(aggregator, store)
    monkeypatch.setattr(
        cli_main, "_build_service", lambda config_path, ranking_path: service
    )
    return service


class TestValidateCommand:
    """Tests for the validate command."""

    def test_shipped_config_is_valid(self, runner: CliRunner) -> None:
        """Test that the shipped sources.yaml validates."""
        result = runner.invoke(cli, ["validate", "--config", str(SHIPPED_SOURCES)])

        assert result.exit_code == 0, result.output
        assert "Configuration is valid!" in result.output
        assert "Sources: 17 (15 enabled)" in result.output

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that schema errors exit 1 with hints."""
        path = tmp_path / "sources.yaml"
        path.write_text(
            "sources:\n"
            "  - id: Bad ID\n"
            "    name: Bad\n"
            "    url: https://example.com/feed\n"
            "    source: FDA\n"
            "    method: rss_feed\n",
            encoding="utf-8",
        )

        result = runner.invoke(cli, ["validate", "--config", str(path)])

        assert result.exit_code == 1
        assert "Configuration validation failed" in result.output
        assert "sources.0.id" in result.output
        assert "Hint:" in result.output

    def test_missing_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that a missing file exits 1."""
        result = runner.invoke(
            cli, ["validate", "--config", str(tmp_path / "missing.yaml")]
        )

        assert result.exit_code == 1
        assert "does not exist" in result.output


class TestSourcesCommand:
    """Tests for the sources command."""

    def test_lists_in_order(self, runner: CliRunner) -> None:
        """Test that sources are listed with method and status."""
        result = runner.invoke(cli, ["sources", "--config", str(SHIPPED_SOURCES)])

        assert result.exit_code == 0, result.output
        assert "(FDA, rss_feed, enabled)" in result.output
        assert "disabled" in result.output

    def test_json(self, runner: CliRunner) -> None:
        """Test the JSON listing."""
        result = runner.invoke(
            cli, ["sources", "--config", str(SHIPPED_SOURCES), "--json"]
        )

        data = json.loads(result.output)
        assert len(data) == 17
        assert {"id", "url", "source", "method", "enabled"} <= set(data[0])


class TestFilterOptions:
    """Tests for filter option validation."""

    @pytest.mark.parametrize(
        "args",
        [
            ["--page", "0"],
            ["--page-size", "0"],
            ["--start", "2025-06-10", "--end", "2025-06-01"],
        ],
    )
    def test_invalid_filter_exits(
        self, runner: CliRunner, offline_service: NewsService, args: list[str]
    ) -> None:
        """Test that invalid filters exit 1 before fetching."""
        result = runner.invoke(cli, ["fetch", *args])

        assert result.exit_code == 1
        assert "Invalid filter:" in result.output
        assert offline_service.aggregator.metrics.total_runs == 0

    def test_unknown_source_rejected_by_click(self, runner: CliRunner) -> None:
        """Test that click rejects sources outside the fixed set."""
        result = runner.invoke(cli, ["fetch", "--source", "NEWSWIRE"])

        assert result.exit_code == 2


class TestFetchCommand:
    """Tests for the fetch command."""

    @pytest.mark.usefixtures("offline_service")
    def test_text_output(self, runner: CliRunner) -> None:
        """Test the human-readable listing, newest first."""
        result = runner.invoke(cli, ["fetch"])

        assert result.exit_code == 0, result.output
        assert "2 items (page 1 of 1)" in result.output
        assert result.output.index("FDA approves") < result.output.index(
            "Quarterly pharma"
        )

    @pytest.mark.usefixtures("offline_service")
    def test_json_output(self, runner: CliRunner) -> None:
        """Test the JSON page."""
        result = runner.invoke(cli, ["fetch", "--json", "--search", "earnings"])

        data = json.loads(result.output)
        assert data["total"] == 1
        assert data["items"][0]["source"] == "FDA"


class TestRecommendCommand:
    """Tests for the recommend command."""

    @pytest.mark.usefixtures("offline_service")
    def test_marks_highly_recommended(self, runner: CliRunner) -> None:
        """Test that recommended entries carry a marker."""
        result = runner.invoke(cli, ["recommend", "--user-id", "u1"])

        assert result.exit_code == 0, result.output
        assert "relevant items for u1" in result.output
        assert "* " in result.output
        assert "FDA approves new cancer drug" in result.output

    def test_requires_user(self, runner: CliRunner) -> None:
        """Test that --user-id is required."""
        result = runner.invoke(cli, ["recommend"])

        assert result.exit_code == 2


class TestMarkReadCommand:
    """Tests for the mark-read command."""

    def test_success(self, runner: CliRunner, offline_service: NewsService) -> None:
        """Test that the read mark is stored."""
        article_id = ITEMS[0].id

        result = runner.invoke(
            cli, ["mark-read", "--user-id", "u1", "--article-id", article_id]
        )

        assert result.exit_code == 0, result.output
        assert offline_service.preference_store.get_profile("u1").has_read(article_id)

    @pytest.mark.usefixtures("offline_service")
    def test_unknown_user_fails(self, runner: CliRunner) -> None:
        """Test that a read mark for an unknown user exits 1."""
        result = runner.invoke(
            cli, ["mark-read", "--user-id", "ghost", "--article-id", "abc"]
        )

        assert result.exit_code == 1
        assert "Could not record read" in result.output
