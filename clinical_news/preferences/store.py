"""Cached access to user preference profiles."""

import time
from collections.abc import Callable

import structlog

from clinical_news.cache import CacheStats, SingleFlightCache
from clinical_news.models import PreferenceProfile
from clinical_news.preferences.service import (
    PreferencesNotFoundError,
    PreferencesService,
    PreferencesServiceError,
)


logger = structlog.get_logger()

DEFAULT_TTL_SECONDS = 10.0
DEFAULT_FAILURE_TTL_SECONDS = 2.0

DEFAULT_PHASES: tuple[str, ...] = ("PHASE1", "PHASE2")
DEFAULT_STATUSES: tuple[str, ...] = ("RECRUITING", "ENROLLING_BY_INVITATION")
DEFAULT_THERAPEUTIC_AREAS: tuple[str, ...] = (
    "oncology",
    "cardiology",
    "neurology",
    "rare_diseases",
)


def default_profile(user_id: str) -> PreferenceProfile:
    """The deterministic profile used when the real one is unavailable."""
    return PreferenceProfile(
        user_id=user_id,
        therapeutic_areas=DEFAULT_THERAPEUTIC_AREAS,
        phases=DEFAULT_PHASES,
        statuses=DEFAULT_STATUSES,
    )


class PreferenceStore:
    """Short-lived, single-flight cache in front of the preferences service.

    Concurrent lookups for the same user issue one service call. A failed
    lookup yields the default profile, cached for failure_ttl_seconds so a
    struggling service is not hammered.
    """

    def __init__(
        self,
        service: PreferencesService | None = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        failure_ttl_seconds: float = DEFAULT_FAILURE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            service: Preferences service. None serves the default profile.
            ttl_seconds: Lifetime of a fetched profile.
            failure_ttl_seconds: Lifetime of a fallback profile.
            clock: Monotonic clock returning seconds.
            max_entries: Optional bound on cached users.
        """
        self._service = service
        self._failure_ttl = failure_ttl_seconds
        self._cache: SingleFlightCache[PreferenceProfile] = SingleFlightCache(
            ttl_seconds, clock=clock, max_entries=max_entries
        )
        self._log = logger.bind(component="preference_store")

    def get_profile(self, user_id: str) -> PreferenceProfile:
        """Get a user's profile, from cache when fresh.

        Never raises for service failures; the default profile is returned
        instead.
        """
        self._cache.purge_expired()
        return self._cache.get_or_load(user_id, lambda: self._load(user_id))

    def _load(self, user_id: str) -> tuple[PreferenceProfile, float | None]:
        if self._service is None:
            return default_profile(user_id), None

        try:
            return self._service.get_preferences(user_id), None
        except PreferencesNotFoundError:
            self._log.info("preferences_fallback", user_id=user_id, reason="not_found")
        except PreferencesServiceError as e:
            self._log.warning(
                "preferences_fallback",
                user_id=user_id,
                reason="service_error",
                error=e.message,
            )
        except Exception as e:  # noqa: BLE001
            self._log.warning(
                "preferences_fallback",
                user_id=user_id,
                reason="unexpected",
                error=str(e),
            )
        return default_profile(user_id), self._failure_ttl

    def record_read_article(self, user_id: str, article_id: str) -> bool:
        """Mark an article as read for a user.

        The mark is written through the service, then the cached profile is
        dropped so the next lookup sees it.

        Returns:
            True if the mark was stored (or already present), False if it
            could not be written.
        """
        if self.get_profile(user_id).has_read(article_id):
            return True

        if self._service is None:
            self._log.warning("read_mark_skipped", user_id=user_id, reason="no_service")
            return False

        try:
            self._service.record_read(user_id, article_id)
        except PreferencesServiceError as e:
            self._log.warning("read_mark_failed", user_id=user_id, error=e.message)
            return False

        self.invalidate(user_id)
        self._log.info("read_mark_recorded", user_id=user_id, article_id=article_id)
        return True

    def invalidate(self, user_id: str) -> None:
        """Drop a user's cached profile."""
        self._cache.invalidate(user_id)

    def clear(self) -> None:
        """Drop every cached profile."""
        self._cache.clear()

    def stats(self) -> CacheStats:
        """Cache counters."""
        return self._cache.stats()
