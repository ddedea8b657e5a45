"""
Caller-facing operations: movie details, episode details, genre listing and
recommendations.

Parameters are validated before any upstream call. Errors surface as
ValidationError, NotFoundError or UpstreamError; callers decide how to render
them.
"""
import asyncio
import logging
from .config import API_VERSION, GENRE_LISTING_LIMIT, RECOMMENDATION_CAP
from .errors import UpstreamError, ValidationError, unwrap
from .models import EpisodeDetails, GenreListing, MovieDetails, RecommendationSet
from .recommender import movies_by_genre, movies_by_genre_async, recommend, recommend_async

logger = logging.getLogger(__name__)


def require_text(value, name: str) -> str:
    """Return a stripped, non-empty string or raise ValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required")
    return value.strip()


def require_positive_int(value, name: str) -> int:
    """
    Accept an int or a decimal-integer string that is at least 1.

    Booleans are rejected even though they are ints.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a valid integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            raise ValidationError(f"{name} must be a valid integer") from None
    else:
        raise ValidationError(f"{name} must be a valid integer")

    if number < 1:
        raise ValidationError(f"{name} must be at least 1")
    return number


def require_seconds(value, name: str) -> float:
    """Accept a positive int or float number of seconds."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value > 0:
        raise ValidationError(f"{name} must be a positive number of seconds")
    return float(value)


def _require_deadline(deadline) -> float | None:
    if deadline is None:
        return None
    return require_seconds(deadline, "deadline")


def health() -> dict:
    return {
        "status": "healthy",
        "message": "Movie API is running",
        "version": API_VERSION,
    }


class MovieService:
    """Synchronous entry points over a blocking OMDbClient."""

    def __init__(self, client, recommendation_cap: int = RECOMMENDATION_CAP):
        self.client = client
        self.recommendation_cap = recommendation_cap

    def movie_details(self, title: str) -> MovieDetails:
        title = require_text(title, "title")
        record = unwrap(self.client.fetch_details(title), f"title '{title}'")
        return MovieDetails.from_record(record)

    def episode_details(self, series_title: str, season, episode) -> EpisodeDetails:
        series_title = require_text(series_title, "series_title")
        season = require_positive_int(season, "season")
        episode = require_positive_int(episode, "episode_number")
        record = unwrap(
            self.client.fetch_episode(series_title, season, episode),
            f"episode '{series_title}' S{season}E{episode}",
        )
        return EpisodeDetails.from_record(record, series_title)

    def movies_by_genre(self, genre: str, limit=GENRE_LISTING_LIMIT) -> GenreListing:
        """
        Top movies for a genre.

        An empty listing is a valid result. Unknown genres are searched
        like any other and never fail validation.
        """
        genre = require_text(genre, "genre")
        limit = require_positive_int(limit, "limit")
        movies = movies_by_genre(self.client, genre, limit)
        return GenreListing(genre=genre, movies=tuple(movies))

    def recommendations(self, favorite_movie: str, progress: bool = False) -> RecommendationSet:
        favorite_movie = require_text(favorite_movie, "favorite_movie")
        return recommend(self.client, favorite_movie, cap=self.recommendation_cap, progress=progress)


class AsyncMovieService:
    """
    Coroutine entry points over an AsyncOMDbClient.

    Every operation takes an optional deadline in seconds; when it expires
    the operation is cancelled and UpstreamError is raised.
    """

    def __init__(self, client, recommendation_cap: int = RECOMMENDATION_CAP):
        self.client = client
        self.recommendation_cap = recommendation_cap

    async def _run(self, coro, deadline: float | None, what: str):
        if deadline is None:
            return await coro
        try:
            return await asyncio.wait_for(coro, timeout=deadline)
        except asyncio.TimeoutError:
            logger.warning(f"{what} exceeded deadline of {deadline}s")
            raise UpstreamError(f"{what} exceeded deadline of {deadline}s") from None

    async def movie_details(self, title: str, deadline: float | None = None) -> MovieDetails:
        title = require_text(title, "title")
        deadline = _require_deadline(deadline)
        result = await self._run(self.client.fetch_details(title), deadline, "movie lookup")
        return MovieDetails.from_record(unwrap(result, f"title '{title}'"))

    async def episode_details(self, series_title: str, season, episode, deadline: float | None = None) -> EpisodeDetails:
        series_title = require_text(series_title, "series_title")
        season = require_positive_int(season, "season")
        episode = require_positive_int(episode, "episode_number")
        deadline = _require_deadline(deadline)
        result = await self._run(self.client.fetch_episode(series_title, season, episode), deadline, "episode lookup")
        record = unwrap(result, f"episode '{series_title}' S{season}E{episode}")
        return EpisodeDetails.from_record(record, series_title)

    async def movies_by_genre(self, genre: str, limit=GENRE_LISTING_LIMIT, deadline: float | None = None) -> GenreListing:
        genre = require_text(genre, "genre")
        limit = require_positive_int(limit, "limit")
        deadline = _require_deadline(deadline)
        movies = await self._run(movies_by_genre_async(self.client, genre, limit), deadline, "genre listing")
        return GenreListing(genre=genre, movies=tuple(movies))

    async def recommendations(self, favorite_movie: str, deadline: float | None = None) -> RecommendationSet:
        favorite_movie = require_text(favorite_movie, "favorite_movie")
        deadline = _require_deadline(deadline)
        return await self._run(
            recommend_async(self.client, favorite_movie, cap=self.recommendation_cap),
            deadline,
            "recommendations",
        )
