"""Clients for the external preferences service."""

from collections.abc import Mapping
from threading import Lock
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from clinical_news.fetch.constants import DEFAULT_USER_AGENT
from clinical_news.fetch.redact import redact_url
from clinical_news.models import PreferenceProfile
from clinical_news.utils.dates import parse_date


logger = structlog.get_logger()


class PreferencesServiceError(Exception):
    """Raised when the preferences service cannot be reached or answers badly."""

    def __init__(self, message: str, user_id: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Error message.
            user_id: User the request was for.
        """
        super().__init__(message)
        self.message = message
        self.user_id = user_id


class PreferencesNotFoundError(PreferencesServiceError):
    """Raised when the service has no preferences stored for a user."""


@runtime_checkable
class PreferencesService(Protocol):
    """Protocol for the service that owns user preference profiles."""

    def get_preferences(self, user_id: str) -> PreferenceProfile:
        """Fetch the stored profile for a user.

        Raises:
            PreferencesNotFoundError: If the user has no stored profile.
            PreferencesServiceError: On any other failure.
        """
        ...

    def record_read(self, user_id: str, article_id: str) -> None:
        """Persist that a user has read an article.

        Raises:
            PreferencesServiceError: If the write fails.
        """
        ...


def _str_list(payload: Mapping[str, Any], *keys: str) -> tuple[str, ...]:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list):
            return tuple(str(v) for v in value if isinstance(v, str) and v.strip())
    return ()


def profile_from_payload(user_id: str, payload: Mapping[str, Any]) -> PreferenceProfile:
    """Build a profile from a preferences API payload.

    Accepts both the stored row shape (phase, status, therapeuticArea) and
    the client shape (phases, statuses, therapeuticAreas).

    Raises:
        PreferencesServiceError: If the payload does not form a valid profile.
    """
    last_updated = payload.get("updatedAt") or payload.get("lastUpdated")
    try:
        return PreferenceProfile(
            user_id=str(payload.get("userId") or user_id),
            therapeutic_areas=_str_list(payload, "therapeuticArea", "therapeuticAreas"),
            phases=_str_list(payload, "phase", "phases"),
            statuses=_str_list(payload, "status", "statuses"),
            read_articles=frozenset(_str_list(payload, "readArticles")),
            last_updated=parse_date(last_updated)
            if isinstance(last_updated, str)
            else None,
        )
    except ValidationError as e:
        msg = f"Invalid preferences payload: {e.error_count()} validation errors"
        raise PreferencesServiceError(msg, user_id=user_id) from e


class HttpPreferencesService:
    """Preferences service reached over HTTP.

    Reads GET {base}/api/preferences/{user_id} and writes read marks with
    POST {base}/api/preferences/{user_id}/read.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 3.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Service root URL.
            timeout_seconds: Per-request timeout.
            user_agent: User-Agent header value.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self._transport = transport
        self._log = logger.bind(
            component="preferences_service", base_url=redact_url(self._base_url)
        )

    def _url(self, user_id: str, suffix: str = "") -> str:
        return f"{self._base_url}/api/preferences/{quote(user_id, safe='')}{suffix}"

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._timeout,
            headers=self._headers,
            transport=self._transport,
        )

    def get_preferences(self, user_id: str) -> PreferenceProfile:
        """Fetch the stored profile for a user.

        Raises:
            PreferencesNotFoundError: On 404.
            PreferencesServiceError: On transport errors, other non-2xx
                statuses, or an unusable body.
        """
        try:
            with self._client() as client:
                response = client.get(self._url(user_id))
        except httpx.HTTPError as e:
            msg = f"Preferences request failed: {type(e).__name__}"
            raise PreferencesServiceError(msg, user_id=user_id) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            msg = "Preferences not found"
            raise PreferencesNotFoundError(msg, user_id=user_id)
        if not response.is_success:
            msg = f"Preferences service returned HTTP {response.status_code}"
            raise PreferencesServiceError(msg, user_id=user_id)

        try:
            payload = response.json()
        except ValueError as e:
            msg = "Preferences response is not valid JSON"
            raise PreferencesServiceError(msg, user_id=user_id) from e
        if not isinstance(payload, Mapping):
            msg = "Preferences response is not an object"
            raise PreferencesServiceError(msg, user_id=user_id)

        profile = profile_from_payload(user_id, payload)
        self._log.debug(
            "preferences_fetched",
            areas=len(profile.therapeutic_areas),
            phases=len(profile.phases),
            statuses=len(profile.statuses),
        )
        return profile

    def record_read(self, user_id: str, article_id: str) -> None:
        """Persist a read mark.

        Raises:
            PreferencesServiceError: If the write fails.
        """
        try:
            with self._client() as client:
                response = client.post(
                    self._url(user_id, "/read"), json={"articleId": article_id}
                )
        except httpx.HTTPError as e:
            msg = f"Read mark request failed: {type(e).__name__}"
            raise PreferencesServiceError(msg, user_id=user_id) from e

        if not response.is_success:
            msg = f"Preferences service returned HTTP {response.status_code}"
            raise PreferencesServiceError(msg, user_id=user_id)


class InMemoryPreferencesService:
    """Preferences service backed by a dictionary of profiles."""

    def __init__(self, profiles: Mapping[str, PreferenceProfile] | None = None) -> None:
        self._profiles: dict[str, PreferenceProfile] = dict(profiles or {})
        self._lock = Lock()

    def get_preferences(self, user_id: str) -> PreferenceProfile:
        with self._lock:
            profile = self._profiles.get(user_id)
        if profile is None:
            msg = "Preferences not found"
            raise PreferencesNotFoundError(msg, user_id=user_id)
        return profile

    def record_read(self, user_id: str, article_id: str) -> None:
        with self._lock:
            profile = self._profiles.get(user_id)
            if profile is None:
                msg = "Preferences not found"
                raise PreferencesNotFoundError(msg, user_id=user_id)
            self._profiles[user_id] = profile.model_copy(
                update={"read_articles": profile.read_articles | {article_id}}
            )
