"""
Query validation.

Wildcard expansion only makes sense against a single token, so a query that is
both a phrase and contains a wildcard is rejected before a query is built.
"""

from typing import Optional

from turath_search.errors import InvalidQuery
from turath_search.normalize import WILDCARD


def is_phrase(query: str) -> bool:
    """True if the query has more than one whitespace-separated token."""
    return len(query.split()) > 1


def contains_wildcard(query: str) -> bool:
    return WILDCARD in query


def validate(query: str) -> bool:
    """False iff the query is a phrase containing a wildcard."""
    return not (is_phrase(query) and contains_wildcard(query))


def _count_arabic_letters(text: str) -> int:
    count = 0
    for char in text:
        code = ord(char)
        if 0x0621 <= code <= 0x064A or 0x0671 <= code <= 0x06D3:
            count += 1
    return count


def wildcard_problem(query: str) -> Optional[str]:
    """
    Check the shape of a wildcard term.

    Returns a reason string for a malformed wildcard, or None when the query
    has no wildcard or uses it correctly (e.g. "أب*", "أح*مد").
    """
    trimmed = query.strip()
    if WILDCARD not in trimmed:
        return None

    if trimmed.count(WILDCARD) > 1:
        return "only one wildcard (*) is allowed per search"

    for word in trimmed.split():
        index = word.find(WILDCARD)
        if index == -1:
            continue
        if index == 0:
            return "a wildcard cannot be at the start of a word"
        # internal wildcard: characters follow the marker
        if index < len(word) - 1 and _count_arabic_letters(word[:index]) < 2:
            return "an internal wildcard needs at least 2 letters before it"
    return None


def ensure_valid(query: str) -> None:
    """Raise InvalidQuery unless the (normalized) query can be sent to the engine."""
    if not query.strip():
        raise InvalidQuery(query, "empty query")
    if not validate(query):
        raise InvalidQuery(query, "wildcards cannot be combined with multi-word phrases")
    problem = wildcard_problem(query)
    if problem:
        raise InvalidQuery(query, problem)
