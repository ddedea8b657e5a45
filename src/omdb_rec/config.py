"""
Configuration constants for the OMDb movie discovery engine.

This module centralizes the caps, page budgets and HTTP settings.
Values can be overridden via environment variables.
"""
import os
import logging

logger = logging.getLogger(__name__)


def _read_number(key: str, default, parse, min_val):
    # Unparseable values fall back to the default; values under min_val are clamped up
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        val = parse(raw.strip())
    except ValueError:
        logger.warning(f"Ignoring {key}={raw!r}: not a valid {parse.__name__}, keeping {default}")
        return default
    if val < min_val:
        logger.warning(f"{key}={val} is below {min_val}, clamping to {min_val}")
        return min_val
    return val


def _get_float_env(key: str, default: float, min_val: float = 0) -> float:
    """Float setting from the environment, e.g. a timeout in seconds."""
    return _read_number(key, default, float, min_val)


def _get_int_env(key: str, default: int, min_val: int = 1) -> int:
    """Integer setting from the environment: caps and concurrency limits."""
    return _read_number(key, default, int, min_val)

# Upstream API
OMDB_API_KEY = os.environ.get("OMDB_API_KEY", "")
OMDB_BASE_URL = os.environ.get("OMDB_BASE_URL", "http://www.omdbapi.com/")
HTTP_TIMEOUT = _get_float_env("OMDB_HTTP_TIMEOUT", 30.0, min_val=0.1)  # seconds, per request
DEFAULT_MAX_CONCURRENT = _get_int_env("OMDB_MAX_CONCURRENT", 5, min_val=1)
USER_AGENT = "omdb-rec/1.0"
UPSTREAM_PAGE_SIZE = 10  # OMDb always pages search results by 10

# Result caps
RECOMMENDATION_CAP = _get_int_env("OMDB_RECOMMENDATION_CAP", 20, min_val=1)  # per facet
GENRE_LISTING_LIMIT = _get_int_env("OMDB_GENRE_LISTING_LIMIT", 15, min_val=1)
GENRE_LISTING_OVERFETCH = 2  # collect limit * 2 before ranking and truncating

# Search budgets
RECOMMENDATION_PAGES_PER_TERM = 2
GENRE_LISTING_PAGES_PER_TERM = 3
MAX_ACTORS_CONSIDERED = 3

# Service metadata
API_VERSION = "1.0.0"
