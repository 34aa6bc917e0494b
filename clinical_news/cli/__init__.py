"""Command-line interface."""

from clinical_news.cli.main import cli


__all__ = ["cli"]
