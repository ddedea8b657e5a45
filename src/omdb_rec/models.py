"""Records returned by the OMDb API and the projections handed to callers."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

LIST_SEPARATOR = ", "


def split_names(text: str | None) -> list[str]:
    """
    Split OMDb's comma-separated list fields ("Action, Sci-Fi").

    Blank parts and the "N/A" placeholder are dropped.
    """
    if not text:
        return []
    names = [part.strip() for part in text.split(LIST_SEPARATOR)]
    return [name for name in names if name and name.upper() != "N/A"]


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ""


@dataclass(frozen=True)
class Rating:
    source: str
    value: str

    def to_dict(self) -> dict:
        return {"source": self.source, "value": self.value}


@dataclass(frozen=True)
class CatalogRecord:
    imdb_id: str
    title: str
    year: str = ""
    genre: str = ""
    director: str = ""
    actors: str = ""
    plot: str = ""
    imdb_rating: str = ""
    country: str = ""
    awards: str = ""
    ratings: tuple[Rating, ...] = ()
    type: str = ""
    season: str = ""
    episode: str = ""

    @classmethod
    def from_payload(cls, payload: dict) -> "CatalogRecord":
        """Build a record from a detail-lookup JSON body."""
        ratings = []
        for entry in payload.get("Ratings") or []:
            if not isinstance(entry, dict):
                logger.debug(f"Ignoring malformed rating entry: {entry!r}")
                continue
            ratings.append(Rating(source=_text(entry, "Source"), value=_text(entry, "Value")))

        return cls(
            imdb_id=_text(payload, "imdbID"),
            title=_text(payload, "Title"),
            year=_text(payload, "Year"),
            genre=_text(payload, "Genre"),
            director=_text(payload, "Director"),
            actors=_text(payload, "Actors"),
            plot=_text(payload, "Plot"),
            imdb_rating=_text(payload, "imdbRating"),
            country=_text(payload, "Country"),
            awards=_text(payload, "Awards"),
            ratings=tuple(ratings),
            type=_text(payload, "Type"),
            season=_text(payload, "Season"),
            episode=_text(payload, "Episode"),
        )

    @property
    def genres(self) -> list[str]:
        return split_names(self.genre)

    @property
    def directors(self) -> list[str]:
        return split_names(self.director)

    @property
    def actor_names(self) -> list[str]:
        return split_names(self.actors)


@dataclass(frozen=True)
class SearchHit:
    imdb_id: str
    title: str
    year: str = ""
    type: str = ""

    @classmethod
    def from_payload(cls, payload: dict) -> "SearchHit":
        return cls(
            imdb_id=_text(payload, "imdbID"),
            title=_text(payload, "Title"),
            year=_text(payload, "Year"),
            type=_text(payload, "Type"),
        )


@dataclass(frozen=True)
class SearchPage:
    hits: tuple[SearchHit, ...] = ()
    total_results: int = 0

    @classmethod
    def from_payload(cls, payload: dict) -> "SearchPage":
        hits = tuple(
            SearchHit.from_payload(item)
            for item in payload.get("Search") or []
            if isinstance(item, dict)
        )
        try:
            total = int(payload.get("totalResults") or 0)
        except (TypeError, ValueError):
            total = 0
        return cls(hits=hits, total_results=total)


@dataclass(frozen=True)
class Candidate:
    """A record that matched a facet and carries a usable rating."""

    record: CatalogRecord
    rating: float

    @property
    def imdb_id(self) -> str:
        return self.record.imdb_id

    @property
    def title(self) -> str:
        return self.record.title

    def to_brief(self) -> "MovieBrief":
        return MovieBrief.from_record(self.record)


@dataclass(frozen=True)
class MovieBrief:
    title: str
    year: str
    imdb_rating: str
    genre: str
    director: str
    plot: str

    @classmethod
    def from_record(cls, record: CatalogRecord) -> "MovieBrief":
        return cls(
            title=record.title,
            year=record.year,
            imdb_rating=record.imdb_rating,
            genre=record.genre,
            director=record.director,
            plot=record.plot,
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "year": self.year,
            "imdb_rating": self.imdb_rating,
            "genre": self.genre,
            "director": self.director,
            "plot": self.plot,
        }


@dataclass(frozen=True)
class RecommendationSet:
    favorite_movie: str
    genre_based: tuple[MovieBrief, ...] = ()
    director_based: tuple[MovieBrief, ...] = ()
    actor_based: tuple[MovieBrief, ...] = ()

    def facets(self) -> dict[str, tuple[MovieBrief, ...]]:
        return {
            "genre_based": self.genre_based,
            "director_based": self.director_based,
            "actor_based": self.actor_based,
        }

    def to_dict(self) -> dict:
        return {
            "favorite_movie": self.favorite_movie,
            "recommendations": {
                name: [brief.to_dict() for brief in briefs]
                for name, briefs in self.facets().items()
            },
        }


@dataclass(frozen=True)
class MovieDetails:
    title: str
    year: str
    plot: str
    country: str
    awards: str
    director: str
    ratings: tuple[Rating, ...] = ()

    @classmethod
    def from_record(cls, record: CatalogRecord) -> "MovieDetails":
        return cls(
            title=record.title,
            year=record.year,
            plot=record.plot,
            country=record.country,
            awards=record.awards,
            director=record.director,
            ratings=record.ratings,
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "year": self.year,
            "plot": self.plot,
            "country": self.country,
            "awards": self.awards,
            "director": self.director,
            "ratings": [r.to_dict() for r in self.ratings],
        }


@dataclass(frozen=True)
class EpisodeDetails:
    title: str
    series_title: str
    season: str
    episode: str
    year: str
    plot: str
    director: str
    actors: str
    imdb_rating: str
    ratings: tuple[Rating, ...] = ()

    @classmethod
    def from_record(cls, record: CatalogRecord, series_title: str) -> "EpisodeDetails":
        # series_title echoes the request; OMDb only returns the episode's own title
        return cls(
            title=record.title,
            series_title=series_title,
            season=record.season,
            episode=record.episode,
            year=record.year,
            plot=record.plot,
            director=record.director,
            actors=record.actors,
            imdb_rating=record.imdb_rating,
            ratings=record.ratings,
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "series_title": self.series_title,
            "season": self.season,
            "episode": self.episode,
            "year": self.year,
            "plot": self.plot,
            "director": self.director,
            "actors": self.actors,
            "ratings": [r.to_dict() for r in self.ratings],
            "imdb_rating": self.imdb_rating,
        }


@dataclass(frozen=True)
class GenreListing:
    genre: str
    movies: tuple[MovieBrief, ...] = field(default_factory=tuple)

    @property
    def count(self) -> int:
        return len(self.movies)

    def to_dict(self) -> dict:
        return {
            "genre": self.genre,
            "movies": [m.to_dict() for m in self.movies],
            "count": self.count,
        }
