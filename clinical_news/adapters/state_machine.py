"""Lifecycle of one source during one adapter run."""

from enum import Enum

import structlog


logger = structlog.get_logger()


class RunState(str, Enum):
    """Where a source run stands.

    A run moves PENDING -> FETCHING -> PARSING -> DONE on the happy path.
    FALLBACK is entered at most once, from FETCHING or PARSING, and leads
    straight to DONE or FAILED.
    """

    PENDING = "pending"
    FETCHING = "fetching"
    PARSING = "parsing"
    FALLBACK = "fallback"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({RunState.DONE, RunState.FAILED})

_NEXT: dict[RunState, frozenset[RunState]] = {
    RunState.PENDING: frozenset({RunState.FETCHING, RunState.FAILED}),
    RunState.FETCHING: frozenset(
        {RunState.PARSING, RunState.FALLBACK, RunState.FAILED}
    ),
    RunState.PARSING: frozenset({RunState.DONE, RunState.FALLBACK, RunState.FAILED}),
    RunState.FALLBACK: TERMINAL_STATES,
    RunState.DONE: frozenset(),
    RunState.FAILED: frozenset(),
}


class IllegalTransitionError(RuntimeError):
    """A source run was asked to move along an edge that does not exist."""

    def __init__(self, source_id: str, current: RunState, target: RunState) -> None:
        self.source_id = source_id
        self.current = current
        self.target = target
        super().__init__(
            f"Source '{source_id}' cannot move from {current.value} to {target.value}"
        )


class SourceRun:
    """Tracks one source's run and logs every move."""

    def __init__(self, source_id: str, request_id: str) -> None:
        self.source_id = source_id
        self._history: list[RunState] = [RunState.PENDING]
        self._log = logger.bind(
            component="adapter", request_id=request_id, source_id=source_id
        )

    @property
    def state(self) -> RunState:
        return self._history[-1]

    @property
    def history(self) -> tuple[RunState, ...]:
        """Every state visited, oldest first."""
        return tuple(self._history)

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def fell_back(self) -> bool:
        return RunState.FALLBACK in self._history

    def can_advance(self, target: RunState) -> bool:
        return target in _NEXT[self.state]

    def advance(self, target: RunState) -> None:
        """Move to target.

        Raises:
            IllegalTransitionError: If target is not reachable from here.
        """
        current = self.state
        if not self.can_advance(target):
            self._log.error(
                "illegal_state_transition", current=current.value, target=target.value
            )
            raise IllegalTransitionError(self.source_id, current, target)
        self._history.append(target)
        self._log.debug("state_transition", current=current.value, target=target.value)

    def fail(self) -> None:
        """Mark the run failed unless it already finished."""
        if not self.finished:
            self.advance(RunState.FAILED)
