"""
Genre listings and favorite-movie recommendations.

Recommendations are built from three independent facets of the favorite
("seed") movie: its genres, its directors and its first few actors. Each facet
gets its own deduplicated, capped list, ranked by IMDb rating. A facet that
finds nothing is simply empty.

Both entry points are greedy: collection stops at the cap in discovery order,
so a better-rated title that only a later search term or page would reach is
not considered. Ranking happens over what was collected, not over the whole
catalog.
"""
import asyncio
import logging
from tqdm import tqdm
from .config import (
    RECOMMENDATION_CAP,
    RECOMMENDATION_PAGES_PER_TERM,
    GENRE_LISTING_LIMIT,
    GENRE_LISTING_OVERFETCH,
    GENRE_LISTING_PAGES_PER_TERM,
    MAX_ACTORS_CONSIDERED,
)
from .collector import FACET_PREDICATES, Predicate, collect, collect_async
from .errors import unwrap
from .models import Candidate, CatalogRecord, MovieBrief, RecommendationSet
from .ranking import rank, top
from .terms import expand_genre

logger = logging.getLogger(__name__)

FACETS = ("genre", "director", "actor")


def facet_names(seed: CatalogRecord, facet: str) -> list[str]:
    """Names that drive one facet's searches, in the seed's own order."""
    if facet == "genre":
        return seed.genres
    if facet == "director":
        return seed.directors
    if facet == "actor":
        return seed.actor_names[:MAX_ACTORS_CONSIDERED]
    raise ValueError(f"Unknown facet: {facet}")


def facet_terms(facet: str, name: str) -> tuple[str, ...]:
    # Only genres need proxy terms; people are searched by name
    if facet == "genre":
        return expand_genre(name)
    return (name,)


def facet_predicate(facet: str, name: str) -> Predicate:
    """Match records against the facet's name rather than the search term used."""
    match = FACET_PREDICATES[facet]
    return lambda record, _term: match(record, name)


def _exclusions(seed_title: str, seed: CatalogRecord) -> tuple[str, ...]:
    return tuple(dict.fromkeys(t for t in (seed_title, seed.title) if t))


def _briefs(candidates: list[Candidate]) -> tuple[MovieBrief, ...]:
    return tuple(c.to_brief() for c in rank(candidates))


def _collect_facet(client, seed: CatalogRecord, facet: str, exclude: tuple[str, ...], cap: int) -> list[Candidate]:
    found: list[Candidate] = []
    seen: set[str] = set()
    for name in facet_names(seed, facet):
        if len(found) >= cap:
            break
        found.extend(collect(
            client,
            facet_terms(facet, name),
            facet_predicate(facet, name),
            exclude_title=exclude,
            limit=cap - len(found),
            max_pages=RECOMMENDATION_PAGES_PER_TERM,
            seen=seen,
        ))
    logger.info(f"{facet} facet: {len(found)} candidates")
    return found


async def _collect_facet_async(client, seed: CatalogRecord, facet: str, exclude: tuple[str, ...], cap: int) -> list[Candidate]:
    found: list[Candidate] = []
    seen: set[str] = set()
    for name in facet_names(seed, facet):
        if len(found) >= cap:
            break
        found.extend(await collect_async(
            client,
            facet_terms(facet, name),
            facet_predicate(facet, name),
            exclude_title=exclude,
            limit=cap - len(found),
            max_pages=RECOMMENDATION_PAGES_PER_TERM,
            seen=seen,
        ))
    logger.info(f"{facet} facet: {len(found)} candidates")
    return found


def recommend(client, seed_title: str, cap: int = RECOMMENDATION_CAP, progress: bool = False) -> RecommendationSet:
    """
    Recommend movies similar to `seed_title` by genre, director and actor.

    Args:
        client: Upstream client (search + fetch_details)
        seed_title: The favorite movie
        cap: Maximum entries per facet
        progress: Show a tqdm bar over facets

    Raises:
        NotFoundError: the seed title does not exist upstream
        UpstreamError: the seed lookup failed
    """
    seed = unwrap(client.fetch_details(seed_title), f"favorite movie '{seed_title}'")
    exclude = _exclusions(seed_title, seed)
    logger.info(f"Building recommendations for '{seed.title}' (genre: {seed.genre or 'n/a'})")

    facets = {}
    for facet in tqdm(FACETS, desc="Facets", disable=not progress):
        facets[facet] = _briefs(_collect_facet(client, seed, facet, exclude, cap))

    return RecommendationSet(
        favorite_movie=seed.title,
        genre_based=facets["genre"],
        director_based=facets["director"],
        actor_based=facets["actor"],
    )


async def recommend_async(client, seed_title: str, cap: int = RECOMMENDATION_CAP) -> RecommendationSet:
    """Concurrent recommend(): the three facets are collected side by side."""
    seed = unwrap(await client.fetch_details(seed_title), f"favorite movie '{seed_title}'")
    exclude = _exclusions(seed_title, seed)
    logger.info(f"Building recommendations for '{seed.title}' (genre: {seed.genre or 'n/a'})")

    genre_found, director_found, actor_found = await asyncio.gather(
        *(_collect_facet_async(client, seed, facet, exclude, cap) for facet in FACETS)
    )

    return RecommendationSet(
        favorite_movie=seed.title,
        genre_based=_briefs(genre_found),
        director_based=_briefs(director_found),
        actor_based=_briefs(actor_found),
    )


def movies_by_genre(client, genre: str, limit: int = GENRE_LISTING_LIMIT) -> list[MovieBrief]:
    """
    Top `limit` movies of a genre by IMDb rating.

    Collects `limit * GENRE_LISTING_OVERFETCH` matches in discovery order,
    then ranks and truncates. Unknown genres search the name plus generic
    terms and may come back empty.
    """
    terms = expand_genre(genre)
    logger.info(f"Searching genre '{genre}' with terms: {', '.join(terms)}")
    candidates = collect(
        client,
        terms,
        facet_predicate("genre", genre),
        limit=limit * GENRE_LISTING_OVERFETCH,
        max_pages=GENRE_LISTING_PAGES_PER_TERM,
    )
    return [c.to_brief() for c in top(candidates, limit)]


async def movies_by_genre_async(client, genre: str, limit: int = GENRE_LISTING_LIMIT) -> list[MovieBrief]:
    terms = expand_genre(genre)
    logger.info(f"Searching genre '{genre}' with terms: {', '.join(terms)}")
    candidates = await collect_async(
        client,
        terms,
        facet_predicate("genre", genre),
        limit=limit * GENRE_LISTING_OVERFETCH,
        max_pages=GENRE_LISTING_PAGES_PER_TERM,
    )
    return [c.to_brief() for c in top(candidates, limit)]
