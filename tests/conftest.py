import sys
from pathlib import Path

import pytest

# Ensure the package under test is importable without installation
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from omdb_rec.errors import Failure, NotFound, Ok  # noqa: E402
from omdb_rec.models import CatalogRecord, SearchHit, SearchPage  # noqa: E402

PAGE_SIZE = 10


def make_record(imdb_id, title, genre="Drama", director="Someone", actors="", rating="7.0", year="2000"):
    return CatalogRecord(
        imdb_id=imdb_id,
        title=title,
        year=year,
        genre=genre,
        director=director,
        actors=actors,
        plot=f"Plot of {title}",
        imdb_rating=rating,
    )


class FakeCatalog:
    """
    In-memory stand-in for OMDbClient.

    Search terms map to ordered hit lists, paged by 10 like OMDb. Every call is
    recorded so tests can assert on the upstream traffic.
    """

    def __init__(self):
        self.records: dict[str, CatalogRecord] = {}
        self.index: dict[str, list[SearchHit]] = {}
        self.failing_titles: set[str] = set()
        self.missing_titles: set[str] = set()
        self.failing_searches: set[tuple[str, int]] = set()
        self.search_calls: list[tuple[str, int]] = []
        self.detail_calls: list[str] = []

    def add(self, record: CatalogRecord, *terms: str) -> CatalogRecord:
        self.records[record.title.lower()] = record
        for term in terms:
            self.index.setdefault(term.lower(), []).append(
                SearchHit(imdb_id=record.imdb_id, title=record.title, year=record.year, type="movie")
            )
        return record

    def add_hit(self, term: str, imdb_id: str, title: str) -> None:
        """Register a search hit with no detail record behind it."""
        self.index.setdefault(term.lower(), []).append(SearchHit(imdb_id=imdb_id, title=title))

    def search(self, term, page=1):
        self.search_calls.append((term, page))
        if (term.lower(), page) in self.failing_searches:
            return Failure(f"search '{term}' page {page} failed")
        hits = self.index.get(term.lower(), [])
        chunk = hits[(page - 1) * PAGE_SIZE: page * PAGE_SIZE]
        if not chunk:
            return NotFound("Movie not found!")
        return Ok(SearchPage(hits=tuple(chunk), total_results=len(hits)))

    def fetch_details(self, title):
        self.detail_calls.append(title)
        key = title.lower()
        if key in self.failing_titles:
            return Failure(f"lookup of '{title}' failed")
        if key in self.missing_titles or key not in self.records:
            return NotFound("Movie not found!")
        return Ok(self.records[key])

    def fetch_episode(self, series_title, season, episode):
        self.detail_calls.append(f"{series_title} S{season}E{episode}")
        key = f"{series_title.lower()}|{season}|{episode}"
        if key not in self.records:
            return NotFound("Episode not found!")
        return Ok(self.records[key])


class AsyncFakeCatalog:
    """Coroutine wrapper over FakeCatalog for the concurrent code paths."""

    def __init__(self, catalog: FakeCatalog):
        self.catalog = catalog
        self.raising_titles: set[str] = set()

    async def search(self, term, page=1):
        return self.catalog.search(term, page)

    async def fetch_details(self, title):
        if title.lower() in self.raising_titles:
            self.catalog.detail_calls.append(title)
            raise RuntimeError(f"unexpected failure for {title}")
        return self.catalog.fetch_details(title)

    async def fetch_episode(self, series_title, season, episode):
        return self.catalog.fetch_episode(series_title, season, episode)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def async_catalog(catalog):
    return AsyncFakeCatalog(catalog)


@pytest.fixture
def matrix_catalog(catalog):
    """
    A catalog around "The Matrix" (Action, Sci-Fi; the Wachowskis; Keanu Reeves...).
    """
    catalog.add(
        make_record(
            "tt0133093", "The Matrix", genre="Action, Sci-Fi",
            director="Lana Wachowski, Lilly Wachowski",
            actors="Keanu Reeves, Laurence Fishburne, Carrie-Anne Moss, Hugo Weaving",
            rating="8.7", year="1999",
        ),
        "matrix",
    )
    catalog.add(make_record("tt0103064", "Terminator 2", genre="Action, Sci-Fi", rating="8.6"), "action", "future")
    catalog.add(make_record("tt0095016", "Die Hard", genre="Action, Thriller", rating="8.2"), "action")
    catalog.add(make_record("tt0088247", "The Terminator", genre="Action, Sci-Fi", rating="8.1"), "action")
    catalog.add(make_record("tt0083658", "Blade Runner", genre="Drama, Sci-Fi, Thriller", rating="8.1"), "future", "science fiction")
    catalog.add(make_record("tt0078748", "Alien", genre="Horror, Sci-Fi", rating="8.5"), "alien")
    catalog.add(make_record("tt0107290", "Action Jackson", genre="Comedy", rating="5.0"), "action")
    catalog.add(make_record("tt0234215", "The Matrix Reloaded", genre="Action, Sci-Fi",
                            director="Lana Wachowski, Lilly Wachowski",
                            actors="Keanu Reeves, Laurence Fishburne, Carrie-Anne Moss",
                            rating="7.2"),
                "lana wachowski", "keanu reeves", "laurence fishburne")
    catalog.add(make_record("tt0114746", "Speed", genre="Action, Thriller", actors="Keanu Reeves, Sandra Bullock",
                            rating="7.3"), "keanu reeves")
    catalog.add(make_record("tt0110413", "Bound", genre="Crime, Thriller", director="Lana Wachowski, Lilly Wachowski",
                            rating="N/A"), "lana wachowski")
    # Search for "matrix" also matches the seed itself via the "action" term
    catalog.index["action"].insert(0, SearchHit(imdb_id="tt0133093", title="The Matrix"))
    return catalog
