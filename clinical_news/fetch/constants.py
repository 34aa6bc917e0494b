"""Limits of the fetch layer."""

# Upstream feeds are small; anything near this is a misconfigured URL
DEFAULT_MAX_RESPONSE_SIZE_BYTES = 5 * 1024 * 1024

STREAM_CHUNK_SIZE = 16 * 1024

DEFAULT_USER_AGENT = "clinical-news/0.1"
