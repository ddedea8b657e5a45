import argparse
import json
import logging
import sys
import asyncio

from .config import OMDB_API_KEY, GENRE_LISTING_LIMIT, HTTP_TIMEOUT, DEFAULT_MAX_CONCURRENT
from .client import OMDbClient, AsyncOMDbClient
from .errors import (
    ConfigurationError,
    MovieApiError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from .models import MovieBrief
from .service import AsyncMovieService, MovieService, health, require_seconds

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UPSTREAM = 4
EXIT_CODES = {
    ValidationError: 2,
    NotFoundError: 3,
    UpstreamError: EXIT_UPSTREAM,
    ConfigurationError: 5,
}


def exit_code_for(exc: MovieApiError) -> int:
    for error_type, code in EXIT_CODES.items():
        if isinstance(exc, error_type):
            return code
    return EXIT_UPSTREAM


def _api_key(args: argparse.Namespace) -> str:
    return getattr(args, "api_key", None) or OMDB_API_KEY


def _timeout(args: argparse.Namespace) -> float:
    return require_seconds(getattr(args, "timeout", HTTP_TIMEOUT), "timeout")


def _build_client(args: argparse.Namespace) -> OMDbClient:
    return OMDbClient(_api_key(args), timeout=_timeout(args))


def _emit(payload: dict, args: argparse.Namespace, render_text) -> None:
    """Log a result as JSON or through the command's text renderer."""
    if getattr(args, "format", "text") == "json":
        logger.info(json.dumps(payload, indent=2))
    else:
        render_text()


def _log_briefs(briefs: tuple[MovieBrief, ...] | list[MovieBrief]) -> None:
    for i, movie in enumerate(briefs, 1):
        logger.info(f"{i}. {movie.title} ({movie.year}) - IMDb: {movie.imdb_rating}")
        if movie.director:
            logger.info(f"   Director: {movie.director}")
        if movie.genre:
            logger.info(f"   Genre: {movie.genre}")


def cmd_movie(args: argparse.Namespace) -> None:
    """Show details for one movie title."""
    with _build_client(args) as client:
        details = MovieService(client).movie_details(args.title)

    def render():
        logger.info(f"\n{details.title} ({details.year})")
        logger.info(f"Director: {details.director}")
        logger.info(f"Country: {details.country}")
        logger.info(f"Awards: {details.awards}")
        for rating in details.ratings:
            logger.info(f"  {rating.source}: {rating.value}")
        logger.info(f"\n{details.plot}")

    _emit(details.to_dict(), args, render)


def cmd_episode(args: argparse.Namespace) -> None:
    """Show details for one TV episode."""
    with _build_client(args) as client:
        details = MovieService(client).episode_details(args.series_title, args.season, args.episode)

    def render():
        logger.info(f"\n{details.series_title} S{details.season}E{details.episode}: {details.title} ({details.year})")
        logger.info(f"Director: {details.director}")
        logger.info(f"Actors: {details.actors}")
        logger.info(f"IMDb: {details.imdb_rating}")
        logger.info(f"\n{details.plot}")

    _emit(details.to_dict(), args, render)


def cmd_genre(args: argparse.Namespace) -> None:
    """List the top-rated movies found for a genre."""
    with _build_client(args) as client:
        listing = MovieService(client).movies_by_genre(args.genre, args.limit)

    def render():
        if not listing.movies:
            logger.info(f"No movies found for genre: {listing.genre}")
            return
        logger.info(f"\nTop {listing.count} {listing.genre} movies:")
        _log_briefs(listing.movies)

    _emit(listing.to_dict(), args, render)


async def _recommend_concurrently(args: argparse.Namespace):
    async with AsyncOMDbClient(
        _api_key(args),
        timeout=_timeout(args),
        max_concurrent=args.max_concurrent,
    ) as client:
        return await AsyncMovieService(client).recommendations(args.title, deadline=args.deadline)


def cmd_recommend(args: argparse.Namespace) -> None:
    """Recommend movies similar to a favorite, by genre, director and actor."""
    if args.concurrent:
        recs = asyncio.run(_recommend_concurrently(args))
    else:
        if args.deadline is not None:
            logger.warning("--deadline only applies with --concurrent; ignoring")
        with _build_client(args) as client:
            recs = MovieService(client).recommendations(args.title, progress=args.progress)

    def render():
        logger.info(f"\nRecommendations for {recs.favorite_movie}:")
        for name, briefs in recs.facets().items():
            label = name.replace("_", " ").title()
            logger.info(f"\n{label} ({len(briefs)}):")
            if not briefs:
                logger.info("  (none found)")
            _log_briefs(briefs)

    _emit(recs.to_dict(), args, render)


def cmd_health(args: argparse.Namespace) -> None:
    status = health()
    _emit(status, args, lambda: logger.info(f"{status['status']}: {status['message']} (v{status['version']})"))


def _add_format(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OMDb movie discovery and recommendations")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--api-key", help="OMDb API key (defaults to $OMDB_API_KEY)")
    parser.add_argument("--timeout", type=float, default=HTTP_TIMEOUT, help="Per-request timeout in seconds")
    subparsers = parser.add_subparsers(dest="command", required=True)

    movie_parser = subparsers.add_parser("movie", help="Show movie details")
    movie_parser.add_argument("title", help="Movie title")
    _add_format(movie_parser)
    movie_parser.set_defaults(func=cmd_movie)

    episode_parser = subparsers.add_parser("episode", help="Show TV episode details")
    episode_parser.add_argument("series_title", help="Series title")
    # Kept as strings so the service layer reports bad numbers as validation errors
    episode_parser.add_argument("--season", required=True, help="Season number")
    episode_parser.add_argument("--episode", required=True, help="Episode number")
    _add_format(episode_parser)
    episode_parser.set_defaults(func=cmd_episode)

    genre_parser = subparsers.add_parser("genre", help="Top-rated movies in a genre")
    genre_parser.add_argument("genre", help="Genre name, e.g. Action or Horror")
    genre_parser.add_argument("--limit", default=GENRE_LISTING_LIMIT, help="Number of movies to show")
    _add_format(genre_parser)
    genre_parser.set_defaults(func=cmd_genre)

    rec_parser = subparsers.add_parser("recommend", help="Recommendations from a favorite movie")
    rec_parser.add_argument("title", help="Favorite movie title")
    rec_parser.add_argument("--concurrent", action="store_true", help="Fetch details concurrently")
    rec_parser.add_argument("--max-concurrent", type=int, default=DEFAULT_MAX_CONCURRENT,
                            help="Maximum in-flight requests with --concurrent")
    rec_parser.add_argument("--deadline", type=float, help="Overall deadline in seconds (with --concurrent)")
    rec_parser.add_argument("--progress", action="store_true", help="Show progress over facets")
    _add_format(rec_parser)
    rec_parser.set_defaults(func=cmd_recommend)

    health_parser = subparsers.add_parser("health", help="Show service status")
    _add_format(health_parser)
    health_parser.set_defaults(func=cmd_health)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging based on verbosity
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        args.func(args)
    except MovieApiError as exc:
        logger.error(f"{type(exc).__name__}: {exc}")
        return exit_code_for(exc)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
