"""
Book title suggestions for the borrow form.
"""

from typing import Iterable

MAX_SUGGESTIONS = 25

POPULAR_BOOKS = [
    "1984",
    "To Kill a Mockingbird",
    "The Great Gatsby",
    "Pride and Prejudice",
    "The Catcher in the Rye",
    "Harry Potter and the Sorcerer's Stone",
    "The Lord of the Rings",
    "The Hobbit",
    "The Hunger Games",
    "The Alchemist",
]


def filter_suggestions(
    query: str,
    suggestions: Iterable[str] = POPULAR_BOOKS,
    limit: int = MAX_SUGGESTIONS,
) -> list[str]:
    """Titles containing `query` (case-insensitive), in list order, at most `limit`."""
    needle = (query or "").lower()
    matches = [title for title in suggestions if needle in title.lower()]
    return matches[:limit]
