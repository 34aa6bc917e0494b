"""User preference profiles: service clients and the cached store."""

from clinical_news.preferences.service import (
    HttpPreferencesService,
    InMemoryPreferencesService,
    PreferencesNotFoundError,
    PreferencesService,
    PreferencesServiceError,
    profile_from_payload,
)
from clinical_news.preferences.store import PreferenceStore, default_profile


__all__ = [
    "HttpPreferencesService",
    "InMemoryPreferencesService",
    "PreferenceStore",
    "PreferencesNotFoundError",
    "PreferencesService",
    "PreferencesServiceError",
    "default_profile",
    "profile_from_payload",
]
