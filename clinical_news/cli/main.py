"""CLI commands for clinical news aggregation and recommendations."""

import json
import logging
import sys
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import click
import structlog

from clinical_news import __version__
from clinical_news.aggregator.filters import page_count
from clinical_news.config.error_hints import format_validation_error
from clinical_news.config.loader import ConfigLoader, ConfigValidationError
from clinical_news.models import NewsCategory, NewsFilter, NewsSource
from clinical_news.observability.logging import configure_logging
from clinical_news.service import InvalidFilterError, NewsService, build_filter
from clinical_news.settings import get_settings


logger = structlog.get_logger()

DEFAULT_SOURCES_PATH = Path("config/sources.yaml")


def _setup_logging(
    command: str, verbose: bool, json_logs: bool | None
) -> tuple[str, structlog.stdlib.BoundLogger]:
    """Configure logging and return a request id with a bound logger."""
    settings = get_settings()
    configure_logging(
        level=logging.DEBUG if verbose else settings.log_level,
        json_format=settings.log_json if json_logs is None else json_logs,
    )
    request_id = uuid.uuid4().hex[:12]
    log = logger.bind(component="cli", command=command, request_id=request_id)
    return request_id, log


def _report_config_errors(error: ConfigValidationError) -> None:
    click.echo(f"Configuration validation failed: {error.file_path}", err=True)
    for err in error.errors:
        formatted = format_validation_error(
            location=err["loc"],
            message=err["msg"],
            error_type=err.get("type", "unknown"),
            include_hint=True,
        )
        click.echo(f"  - {formatted}", err=True)


def _build_service(config_path: Path, ranking_path: Path | None) -> NewsService:
    """Build the service, exiting with status 1 on invalid configuration."""
    try:
        return NewsService.from_files(get_settings(), config_path, ranking_path)
    except ConfigValidationError as e:
        _report_config_errors(e)
        sys.exit(1)


def _parse_filter(**options: Any) -> NewsFilter:
    """Build a filter from CLI options, exiting with status 1 when invalid."""
    raw = {key: value for key, value in options.items() if value not in (None, ())}
    try:
        return build_filter(**raw)
    except InvalidFilterError as e:
        click.echo("Invalid filter:", err=True)
        for err in e.errors:
            click.echo(f"  - {err['loc']}: {err['msg']}", err=True)
        sys.exit(1)


def _common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by the commands that load configuration."""
    decorators = [
        click.option(
            "--config",
            "config_path",
            type=click.Path(path_type=Path),
            default=DEFAULT_SOURCES_PATH,
            show_default=True,
            help="Path to sources.yaml configuration file.",
        ),
        click.option(
            "--ranking",
            "ranking_path",
            type=click.Path(path_type=Path),
            default=None,
            help="Path to ranking.yaml (defaults to built-in weights).",
        ),
        click.option(
            "--json-logs/--no-json-logs",
            default=None,
            help="Use JSON format for logs (default: LOG_JSON setting).",
        ),
        click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging."),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _filter_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Filter and pagination options."""
    decorators = [
        click.option(
            "--source",
            "sources",
            multiple=True,
            type=click.Choice([s.value for s in NewsSource], case_sensitive=False),
            help="Only items from this source (repeatable).",
        ),
        click.option(
            "--category",
            "categories",
            multiple=True,
            type=click.Choice([c.value for c in NewsCategory], case_sensitive=False),
            help="Only items in this category (repeatable).",
        ),
        click.option("--tag", "tags", multiple=True, help="Only items with this tag."),
        click.option("--search", "search_query", help="Case-insensitive text search."),
        click.option(
            "--start",
            "start_date",
            type=click.DateTime(),
            help="Only items published at or after this time (UTC).",
        ),
        click.option(
            "--end",
            "end_date",
            type=click.DateTime(),
            help="Only items published at or before this time (UTC).",
        ),
        click.option("--page", type=int, default=1, show_default=True),
        click.option("--page-size", type=int, default=20, show_default=True),
        click.option("--json", "json_output", is_flag=True, help="Output as JSON."),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _format_date(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "unknown date"


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Clinical news aggregation and recommendation CLI."""


@cli.command()
@_common_options
@_filter_options
def fetch(  # noqa: PLR0913
    config_path: Path,
    ranking_path: Path | None,
    json_logs: bool | None,
    verbose: bool,
    sources: tuple[str, ...],
    categories: tuple[str, ...],
    tags: tuple[str, ...],
    search_query: str | None,
    start_date: datetime | None,
    end_date: datetime | None,
    page: int,
    page_size: int,
    json_output: bool,
) -> None:
    """Fetch news from every configured source, newest first."""
    request_id, log = _setup_logging("fetch", verbose, json_logs)
    news_filter = _parse_filter(
        sources=tuple(s.upper() for s in sources),
        categories=tuple(c.upper() for c in categories),
        tags=tags,
        search_query=search_query,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )
    service = _build_service(config_path, ranking_path)
    log.info("command_started", config=str(config_path))
    response = service.fetch_news(news_filter, request_id=request_id)
    log.info("command_complete", total=response.total, returned=len(response.items))

    if json_output:
        click.echo(json.dumps(response.to_json_dict(), indent=2))
        return

    pages = page_count(response.total, response.page_size)
    click.echo(f"{response.total} items (page {response.page} of {pages})")
    for item in response.items:
        categories_text = ", ".join(c.value for c in item.categories)
        click.echo(f"- [{item.source.value}] {item.title}")
        click.echo(f"    {_format_date(item.published_at)} | {categories_text}")
        click.echo(f"    {item.url}")


@cli.command()
@click.option("--user-id", required=True, help="User to rank news for.")
@_common_options
@_filter_options
def recommend(  # noqa: PLR0913
    user_id: str,
    config_path: Path,
    ranking_path: Path | None,
    json_logs: bool | None,
    verbose: bool,
    sources: tuple[str, ...],
    categories: tuple[str, ...],
    tags: tuple[str, ...],
    search_query: str | None,
    start_date: datetime | None,
    end_date: datetime | None,
    page: int,
    page_size: int,
    json_output: bool,
) -> None:
    """Rank news by relevance to a user's research preferences."""
    request_id, log = _setup_logging("recommend", verbose, json_logs)
    news_filter = _parse_filter(
        sources=tuple(s.upper() for s in sources),
        categories=tuple(c.upper() for c in categories),
        tags=tags,
        search_query=search_query,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )
    service = _build_service(config_path, ranking_path)
    log.info("command_started", config=str(config_path), user_id=user_id)
    response = service.fetch_recommended(user_id, news_filter, request_id=request_id)
    log.info("command_complete", total=response.total, returned=len(response.entries))

    if json_output:
        click.echo(json.dumps(response.to_json_dict(), indent=2))
        return

    header = f"{response.total} relevant items for {user_id}"
    if response.recommended_threshold is not None:
        header += f" (threshold {response.recommended_threshold:.1f})"
    click.echo(header)
    for entry in response.entries:
        marker = "*" if entry.highly_recommended else " "
        score = entry.score or 0.0
        item = entry.item
        click.echo(f"{marker} {score:6.1f}  [{item.source.value}] {item.title}")
        click.echo(f"          {_format_date(item.published_at)} | {item.url}")


@cli.command("mark-read")
@click.option("--user-id", required=True, help="User who read the article.")
@click.option("--article-id", required=True, help="Item id of the article.")
@_common_options
def mark_read(  # noqa: PLR0913
    user_id: str,
    article_id: str,
    config_path: Path,
    ranking_path: Path | None,
    json_logs: bool | None,
    verbose: bool,
) -> None:
    """Record that a user has read an article."""
    _, log = _setup_logging("mark-read", verbose, json_logs)
    service = _build_service(config_path, ranking_path)
    if not service.record_read(user_id, article_id):
        log.warning("command_failed", user_id=user_id, article_id=article_id)
        click.echo(f"Could not record read for {user_id}", err=True)
        sys.exit(1)
    click.echo(f"Marked {article_id} as read for {user_id}")


@cli.command("sources")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=DEFAULT_SOURCES_PATH,
    show_default=True,
    help="Path to sources.yaml configuration file.",
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
def list_sources(config_path: Path, json_output: bool) -> None:
    """List the configured sources in dedup order."""
    configure_logging(json_format=False, level=logging.WARNING)
    try:
        config = ConfigLoader().load_sources(config_path)
    except ConfigValidationError as e:
        _report_config_errors(e)
        sys.exit(1)

    if json_output:
        click.echo(
            json.dumps(
                [s.model_dump(mode="json") for s in config.sources],
                indent=2,
            )
        )
        return

    for source in config.sources:
        status = "enabled" if source.enabled else "disabled"
        defaults = ", ".join(c.value for c in source.default_categories) or "-"
        click.echo(f"{source.id} ({source.source.value}, {source.method.value}, {status})")
        click.echo(f"    {source.url}")
        click.echo(f"    default categories: {defaults}")


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=DEFAULT_SOURCES_PATH,
    show_default=True,
    help="Path to sources.yaml configuration file.",
)
@click.option(
    "--ranking",
    "ranking_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to ranking.yaml configuration file.",
)
def validate(config_path: Path, ranking_path: Path | None) -> None:
    """Validate configuration files without fetching anything."""
    configure_logging(json_format=False, level=logging.WARNING)
    loader = ConfigLoader(request_id=uuid.uuid4().hex[:12])

    try:
        sources = loader.load_sources(config_path)
        ranking = loader.load_ranking(ranking_path)
    except ConfigValidationError as e:
        _report_config_errors(e)
        sys.exit(1)

    click.echo("Configuration is valid!")
    click.echo(f"  Sources: {len(sources.sources)} ({len(sources.enabled_sources)} enabled)")
    click.echo(f"  Ranking version: {ranking.version}")
    for path, checksum in loader.file_checksums.items():
        click.echo(f"  {path}: {checksum[:12]}")


if __name__ == "__main__":
    cli()
