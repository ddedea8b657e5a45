import httpx
import json
import logging
import asyncio
from typing import Callable
from .config import (
    OMDB_BASE_URL,
    HTTP_TIMEOUT,
    DEFAULT_MAX_CONCURRENT,
    USER_AGENT,
)
from .errors import ConfigurationError, Failure, NotFound, Ok, Result
from .models import CatalogRecord, SearchPage

logger = logging.getLogger(__name__)

# OMDb answers HTTP 200 with {"Response": "False", "Error": ...} for misses.
# Only these messages mean "no such title"; anything else is a real failure.
NOT_FOUND_MESSAGES = frozenset({
    "movie not found!",
    "episode not found!",
    "series not found!",
    "series or episode not found!",
})


def _redact(params: dict) -> dict:
    return {k: v for k, v in params.items() if k != "apikey"}


def _classify_payload(body: str, parse: Callable[[dict], object], what: str) -> Result:
    """
    Turn a raw OMDb response body into Ok, NotFound or Failure.

    Shared by the sync and async clients.
    """
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        return Failure(f"Failed to parse response for {what}: {exc}")

    if not isinstance(payload, dict):
        return Failure(f"Unexpected response shape for {what}: {type(payload).__name__}")

    if str(payload.get("Response", "")).lower() == "false":
        message = str(payload.get("Error") or "Unknown error")
        if message.strip().lower() in NOT_FOUND_MESSAGES:
            return NotFound(message)
        return Failure(f"OMDb API error for {what}: {message}")

    try:
        return Ok(parse(payload))
    except (TypeError, ValueError, AttributeError) as exc:
        return Failure(f"Malformed payload for {what}: {exc}")


def _detail_params(title: str) -> dict:
    return {"t": title, "plot": "full"}


def _episode_params(series_title: str, season: int, episode: int) -> dict:
    return {"t": series_title, "Season": str(season), "Episode": str(episode)}


def _search_params(term: str, page: int) -> dict:
    params = {"s": term, "type": "movie"}
    if page > 0:
        params["page"] = str(page)
    return params


def _require_key(api_key: str | None) -> str:
    if not api_key:
        raise ConfigurationError("OMDB_API_KEY is required")
    return api_key


class OMDbClient:
    """
    Blocking client for the OMDb API.

    Every lookup returns Ok, NotFound or Failure; nothing is retried.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = OMDB_BASE_URL,
        timeout: float = HTTP_TIMEOUT,
        client: httpx.Client | None = None,
    ):
        self.api_key = _require_key(api_key)
        self.base_url = base_url
        self.client = client or httpx.Client(
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            timeout=timeout,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _get(self, params: dict, parse: Callable[[dict], object], what: str) -> Result:
        logger.debug(f"GET {self.base_url} {_redact(params)}")
        try:
            resp = self.client.get(self.base_url, params={"apikey": self.api_key, **params})
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout on {what}: {e}")
            return Failure(f"Timeout on {what}")
        except httpx.HTTPStatusError as e:
            logger.warning(f"HTTP {e.response.status_code} on {what}")
            return Failure(f"HTTP {e.response.status_code} on {what}")
        except httpx.HTTPError as e:
            logger.warning(f"Request error on {what}: {type(e).__name__}: {e}")
            return Failure(f"Request error on {what}: {type(e).__name__}")

        result = _classify_payload(resp.text, parse, what)
        if isinstance(result, Failure):
            logger.warning(result.detail)
        return result

    def fetch_details(self, title: str) -> Result:
        """Full details for a movie title (plot=full)."""
        return self._get(_detail_params(title), CatalogRecord.from_payload, f"title '{title}'")

    def fetch_episode(self, series_title: str, season: int, episode: int) -> Result:
        what = f"'{series_title}' S{season}E{episode}"
        return self._get(_episode_params(series_title, season, episode), CatalogRecord.from_payload, what)

    def search(self, term: str, page: int = 1) -> Result:
        """One page of movie search hits for a title substring."""
        return self._get(_search_params(term, page), SearchPage.from_payload, f"search '{term}' page {page}")

    def close(self):
        self.client.close()


class AsyncOMDbClient:
    """Async client with bounded concurrency for fan-out detail lookups."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = OMDB_BASE_URL,
        timeout: float = HTTP_TIMEOUT,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = _require_key(api_key)
        if max_concurrent < 1:
            raise ConfigurationError(f"max_concurrent must be at least 1, got {max_concurrent}")
        self.base_url = base_url
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self.client = client
        self._owns_client = client is None

    async def __aenter__(self):
        """Async context manager entry."""
        if self.client is None:
            self.client = httpx.AsyncClient(
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
                timeout=self.timeout,
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
        return False

    async def aclose(self):
        if self.client and self._owns_client:
            await self.client.aclose()
            self.client = None

    async def _get(self, params: dict, parse: Callable[[dict], object], what: str) -> Result:
        if not self.client:
            raise RuntimeError("AsyncOMDbClient must be used as an async context manager")

        async with self.semaphore:
            logger.debug(f"GET {self.base_url} {_redact(params)}")
            try:
                resp = await self.client.get(self.base_url, params={"apikey": self.api_key, **params})
                resp.raise_for_status()
            except httpx.TimeoutException as exc:
                logger.warning(f"Timeout on {what}: {exc}")
                return Failure(f"Timeout on {what}")
            except httpx.HTTPStatusError as exc:
                logger.warning(f"HTTP {exc.response.status_code} on {what}")
                return Failure(f"HTTP {exc.response.status_code} on {what}")
            except httpx.HTTPError as exc:
                logger.warning(f"Request error on {what}: {type(exc).__name__}: {exc}")
                return Failure(f"Request error on {what}: {type(exc).__name__}")

        result = _classify_payload(resp.text, parse, what)
        if isinstance(result, Failure):
            logger.warning(result.detail)
        return result

    async def fetch_details(self, title: str) -> Result:
        return await self._get(_detail_params(title), CatalogRecord.from_payload, f"title '{title}'")

    async def fetch_episode(self, series_title: str, season: int, episode: int) -> Result:
        what = f"'{series_title}' S{season}E{episode}"
        return await self._get(_episode_params(series_title, season, episode), CatalogRecord.from_payload, what)

    async def search(self, term: str, page: int = 1) -> Result:
        return await self._get(_search_params(term, page), SearchPage.from_payload, f"search '{term}' page {page}")
