"""structlog setup and per-request log context."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

import structlog


def resolve_level(level: int | str) -> int:
    """Turn a level name such as 'warning' into its number; unknown names mean INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    level: int | str = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structlog and the stdlib root logger.

    Logs go to output (stderr by default) so stdout stays free for command
    results. JSON lines are meant for machines, the console renderer for
    people.

    Args:
        level: Minimum level, as a number or a name.
        output: Stream to write log lines to.
        json_format: Render JSON lines instead of console output.
    """
    numeric_level = resolve_level(level)
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_format
        else structlog.dev.ConsoleRenderer(colors=output.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    # httpx logs through the stdlib; keep it on the same stream and level
    logging.basicConfig(format="%(message)s", stream=output, level=numeric_level)


@contextmanager
def request_context(request_id: str, user_id: str | None = None) -> Iterator[None]:
    """Attach request_id (and user_id, when given) to every log line inside the block."""
    context = {"request_id": request_id}
    if user_id:
        context["user_id"] = user_id
    with structlog.contextvars.bound_contextvars(**context):
        yield
