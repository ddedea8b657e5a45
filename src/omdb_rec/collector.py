"""
Candidate collection over OMDb's title search.

A collection walks search terms in order, pages through each term, fetches
full details for unseen hits and keeps the ones that match a facet and carry
a positive IMDb rating. Discovery order (term, then page, then hit) is
preserved so that ranking can break rating ties by it.

Per-item misses and failures are absorbed; only bad arguments are fatal.
"""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable

from .config import UPSTREAM_PAGE_SIZE
from .errors import Failure, NotFound, Ok
from .models import Candidate, CatalogRecord, SearchHit, SearchPage

logger = logging.getLogger(__name__)

Predicate = Callable[[CatalogRecord, str], bool]


def parse_rating(raw: str | None) -> float | None:
    """Parse an IMDb rating string ("8.7"); "N/A", blanks and junk give None."""
    if raw is None:
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _contains(haystack: str, needle: str) -> bool:
    needle = needle.strip().lower()
    return bool(needle) and needle in haystack.lower()


def matches_genre(record: CatalogRecord, genre: str) -> bool:
    return _contains(record.genre, genre)


def matches_director(record: CatalogRecord, director: str) -> bool:
    return _contains(record.director, director)


def matches_actor(record: CatalogRecord, actor: str) -> bool:
    return _contains(record.actors, actor)


FACET_PREDICATES: dict[str, Predicate] = {
    "genre": matches_genre,
    "director": matches_director,
    "actor": matches_actor,
}


@dataclass
class CollectionStats:
    searches: int = 0
    detail_fetches: int = 0
    failures: int = 0
    skipped: int = 0

    def summary(self) -> str:
        return (
            f"{self.searches} searches, {self.detail_fetches} detail fetches, "
            f"{self.failures} failures, {self.skipped} skipped"
        )


def _excluded_titles(exclude_title: str | Iterable[str] | None) -> frozenset[str]:
    if exclude_title is None:
        return frozenset()
    if isinstance(exclude_title, str):
        exclude_title = [exclude_title]
    return frozenset(t.strip().casefold() for t in exclude_title if t and t.strip())


def _check_arguments(predicate, limit: int, max_pages: int) -> None:
    if not callable(predicate):
        raise TypeError(f"predicate must be callable, got {type(predicate).__name__}")
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    if max_pages < 1:
        raise ValueError(f"max_pages must be at least 1, got {max_pages}")


def _is_last_page(page: SearchPage, page_number: int) -> bool:
    if len(page.hits) < UPSTREAM_PAGE_SIZE:
        return True
    return page.total_results > 0 and page_number * UPSTREAM_PAGE_SIZE >= page.total_results


def _eligible(hit: SearchHit, seen: set[str], excluded: frozenset[str]) -> bool:
    if hit.imdb_id and hit.imdb_id in seen:
        return False
    return hit.title.strip().casefold() not in excluded


def _consider(
    hit: SearchHit,
    outcome,
    term: str,
    predicate: Predicate,
    excluded: frozenset[str],
    seen: set[str],
    stats: CollectionStats,
) -> Candidate | None:
    """Turn one detail lookup into a Candidate, or None if it does not qualify."""
    if isinstance(outcome, NotFound):
        logger.debug(f"Details not found for '{hit.title}' ({hit.imdb_id})")
        stats.skipped += 1
        return None
    if isinstance(outcome, Failure):
        logger.debug(f"Details failed for '{hit.title}': {outcome.detail}")
        stats.failures += 1
        return None
    if not isinstance(outcome, Ok):
        logger.debug(f"Details failed for '{hit.title}': {type(outcome).__name__}: {outcome}")
        stats.failures += 1
        return None

    record: CatalogRecord = outcome.value
    if record.imdb_id and record.imdb_id in seen:
        stats.skipped += 1
        return None
    if record.title.strip().casefold() in excluded or not predicate(record, term):
        stats.skipped += 1
        return None

    rating = parse_rating(record.imdb_rating)
    if rating is None or rating <= 0:
        stats.skipped += 1
        return None

    return Candidate(record=record, rating=rating)


def _mark_seen(seen: set[str], hit: SearchHit, candidate: Candidate) -> None:
    for identifier in (hit.imdb_id, candidate.imdb_id):
        if identifier:
            seen.add(identifier)


def _search_page(outcome, term: str, page_number: int, stats: CollectionStats) -> SearchPage | None:
    if isinstance(outcome, Ok):
        return outcome.value
    if isinstance(outcome, NotFound):
        logger.debug(f"No results for '{term}' page {page_number}")
    else:
        stats.failures += 1
        logger.debug(f"Search failed for '{term}' page {page_number}: {outcome}")
    return None


def collect(
    client,
    search_terms: Iterable[str],
    predicate: Predicate,
    exclude_title: str | Iterable[str] | None = None,
    limit: int = 20,
    max_pages: int = 2,
    seen: set[str] | None = None,
) -> list[Candidate]:
    """
    Collect up to `limit` candidates matching `predicate`, in discovery order.

    Args:
        client: Object with search(term, page) and fetch_details(title)
        search_terms: Terms searched in order
        predicate: Called as predicate(record, term) on every fetched record
        exclude_title: Title (or titles) never returned, compared case-insensitively
        limit: Maximum number of candidates; collection stops as soon as it is reached
        max_pages: Search pages requested per term
        seen: Identifiers already collected elsewhere; updated in place

    Returns:
        Candidates with unique identifiers, in the order they were found.
    """
    _check_arguments(predicate, limit, max_pages)
    excluded = _excluded_titles(exclude_title)
    seen = set() if seen is None else seen
    stats = CollectionStats()
    candidates: list[Candidate] = []

    for term in search_terms:
        for page_number in range(1, max_pages + 1):
            stats.searches += 1
            page = _search_page(client.search(term, page_number), term, page_number, stats)
            if page is None:
                continue

            for hit in page.hits:
                if not _eligible(hit, seen, excluded):
                    continue

                stats.detail_fetches += 1
                candidate = _consider(hit, client.fetch_details(hit.title), term, predicate, excluded, seen, stats)
                if candidate is None:
                    continue

                candidates.append(candidate)
                _mark_seen(seen, hit, candidate)
                if len(candidates) >= limit:
                    logger.debug(f"Collected {len(candidates)} candidates ({stats.summary()})")
                    return candidates

            if _is_last_page(page, page_number):
                break

    logger.debug(f"Collected {len(candidates)} candidates ({stats.summary()})")
    return candidates


async def collect_async(
    client,
    search_terms: Iterable[str],
    predicate: Predicate,
    exclude_title: str | Iterable[str] | None = None,
    limit: int = 20,
    max_pages: int = 2,
    seen: set[str] | None = None,
) -> list[Candidate]:
    """
    Concurrent variant of collect().

    Detail lookups for one search page run concurrently and are processed in
    hit order once all of them finish, so output order, deduplication and the
    cap match the sequential collector. A failed lookup never cancels its
    siblings.
    """
    _check_arguments(predicate, limit, max_pages)
    excluded = _excluded_titles(exclude_title)
    seen = set() if seen is None else seen
    stats = CollectionStats()
    candidates: list[Candidate] = []

    for term in search_terms:
        for page_number in range(1, max_pages + 1):
            stats.searches += 1
            page = _search_page(await client.search(term, page_number), term, page_number, stats)
            if page is None:
                continue

            batch: list[SearchHit] = []
            batch_ids: set[str] = set()
            for hit in page.hits:
                if not _eligible(hit, seen, excluded) or (hit.imdb_id and hit.imdb_id in batch_ids):
                    continue
                batch.append(hit)
                batch_ids.add(hit.imdb_id)

            stats.detail_fetches += len(batch)
            outcomes = await asyncio.gather(
                *(client.fetch_details(hit.title) for hit in batch),
                return_exceptions=True,
            )

            for hit, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    logger.warning(f"Detail lookup for '{hit.title}' raised {type(outcome).__name__}: {outcome}")
                    stats.failures += 1
                    continue

                candidate = _consider(hit, outcome, term, predicate, excluded, seen, stats)
                if candidate is None:
                    continue

                candidates.append(candidate)
                _mark_seen(seen, hit, candidate)
                if len(candidates) >= limit:
                    logger.debug(f"Collected {len(candidates)} candidates ({stats.summary()})")
                    return candidates

            if _is_last_page(page, page_number):
                break

    logger.debug(f"Collected {len(candidates)} candidates ({stats.summary()})")
    return candidates
