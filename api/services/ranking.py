"""
Relevance ranking for catalog search hits.

The database returns substring matches in arbitrary order; this sorts
them by string similarity to the query so the closest titles and names
come first.
"""

from typing import Callable, List, TypeVar

from thefuzz import fuzz

T = TypeVar("T")


def similarity(query: str, candidate: str) -> int:
    """
    Score 0-100 for how well candidate matches query.

    Exact (case-insensitive) matches score 100. Otherwise the mean of the
    token-set ratio and the plain ratio, so "matrix" ranks "The Matrix"
    above "The Matrix Reloaded".
    """
    q = query.strip().lower()
    c = (candidate or "").strip().lower()
    if not q or not c:
        return 0
    if q == c:
        return 100
    return (fuzz.token_set_ratio(q, c) + fuzz.ratio(q, c)) // 2


def rank_by_similarity(query: str, items: List[T], key: Callable[[T], str]) -> List[T]:
    """Sort items by descending similarity of key(item) to query; ties keep input order."""
    return sorted(items, key=lambda item: -similarity(query, key(item)))
