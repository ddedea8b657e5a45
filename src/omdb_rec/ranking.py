"""Rating-based ordering of collected candidates."""
from .models import Candidate


def rank(candidates: list[Candidate]) -> list[Candidate]:
    """
    Order candidates by descending IMDb rating.

    The sort is stable, so equal ratings keep discovery order.
    """
    return sorted(candidates, key=lambda c: c.rating, reverse=True)


def top(candidates: list[Candidate], limit: int) -> list[Candidate]:
    if limit < 1:
        return []
    return rank(candidates)[:limit]
