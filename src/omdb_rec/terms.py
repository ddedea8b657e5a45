"""
Genre to search-term expansion.

OMDb search only matches title text, so a genre is approximated by a few
words that tend to appear in titles of that genre. Matches are confirmed
later against the record's Genre field; titles none of these words reach
are simply missed.
"""
from types import MappingProxyType

GENRE_SEARCH_TERMS = MappingProxyType({
    "action": ("action", "adventure", "superhero", "martial arts", "spy"),
    "comedy": ("comedy", "funny", "humor", "romantic comedy", "parody"),
    "drama": ("drama", "emotional", "family", "biographical", "historical"),
    "horror": ("horror", "scary", "thriller", "supernatural", "zombie"),
    "sci-fi": ("science fiction", "sci-fi", "space", "future", "alien"),
    "romance": ("romance", "love", "romantic", "wedding", "relationship"),
    "thriller": ("thriller", "suspense", "mystery", "crime", "psychological"),
    "animation": ("animation", "animated", "cartoon", "pixar", "disney"),
    "fantasy": ("fantasy", "magic", "wizard", "medieval", "adventure"),
    "crime": ("crime", "gangster", "mafia", "detective", "police"),
})

FALLBACK_TERMS = ("movie", "film")


def expand_genre(genre: str) -> tuple[str, ...]:
    """
    Search terms for a genre name.

    Known genres (case-insensitive) map to their proxy terms; anything else
    searches for the name itself plus "movie" and "film".
    """
    terms = GENRE_SEARCH_TERMS.get(genre.strip().lower())
    if terms is None:
        return (genre,) + FALLBACK_TERMS
    return terms


def is_known_genre(genre: str) -> bool:
    return genre.strip().lower() in GENRE_SEARCH_TERMS
