"""
Filter resolution: narrow the corpus to the texts a search may return.

Predicates are intersected (genre AND author AND death date). Any predicate
left at its default value is skipped without scanning.
"""

import logging
from typing import Iterable, Mapping, Optional, Set

from turath_search.models import Author, DeathDateRange, FilterCriteria, Text

logger = logging.getLogger(__name__)


def observed_death_range(authors: Iterable[Author]) -> Optional[DeathDateRange]:
    """Min/max recorded death date across authors, or None if none is recorded."""
    dates = [a.death_date_ah for a in authors if a.death_date_ah is not None]
    if not dates:
        return None
    return DeathDateRange(min=min(dates), max=max(dates))


def authors_dying_in(authors: Iterable[Author], date_range: DeathDateRange) -> Set[int]:
    """Ids of authors whose death date falls in the range. Undated authors never match."""
    return {a.id for a in authors if date_range.contains(a.death_date_ah)}


def resolve_eligible_ids(
    criteria: FilterCriteria,
    texts: Mapping[int, Text],
    authors: Mapping[int, Author],
    observed: Optional[DeathDateRange] = None,
) -> Set[int]:
    """
    Compute the ids of texts matching every active filter.

    `observed` is the full death-date range of the corpus; a criteria range
    equal to it is treated as no filter. It is computed from `authors` when
    not supplied. An empty result means no text matches.
    """
    candidates = list(texts.values())

    if criteria.genres:
        genres = criteria.genres
        candidates = [t for t in candidates if genres.intersection(t.tags)]
        logger.debug(f"Genre filter {sorted(genres)}: {len(candidates)} texts")

    if criteria.author_ids:
        wanted = criteria.author_ids
        candidates = [t for t in candidates if t.author_id in wanted]
        logger.debug(f"Author filter ({len(wanted)} authors): {len(candidates)} texts")

    if criteria.death_date_range is not None and observed is None:
        observed = observed_death_range(authors.values())
    if not criteria.death_range_is_default(observed):
        in_range = authors_dying_in(authors.values(), criteria.death_date_range)
        candidates = [t for t in candidates if t.author_id in in_range]
        logger.debug(
            f"Death date filter {criteria.death_date_range.min}-{criteria.death_date_range.max}: "
            f"{len(candidates)} texts"
        )

    return {t.id for t in candidates}
