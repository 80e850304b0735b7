"""
Data models for the search pipeline.

Metadata records (Text, Author) are loaded once and never mutated. Search-side
records flow through: QueryRequest -> RawHit -> EnrichedResult.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

ExtraValue = Union[str, int, float]


@dataclass(frozen=True)
class Text:
    """A text (book) in the corpus."""
    id: int
    title: str
    author_id: int
    tags: Tuple[str, ...] = ()  # genres, ordered and de-duplicated
    volume_count: int = 1
    extra: Dict[str, ExtraValue] = field(default_factory=dict)


@dataclass(frozen=True)
class Author:
    """An author, with dates in the hijri calendar."""
    id: int
    name: str
    death_date_ah: Optional[int] = None
    birth_date_ah: Optional[int] = None
    extra: Dict[str, ExtraValue] = field(default_factory=dict)


@dataclass(frozen=True)
class DeathDateRange:
    """Inclusive range of author death dates (AH)."""
    min: int
    max: int

    def __post_init__(self):
        if self.min > self.max:
            raise ValueError(f"death date range is inverted: {self.min} > {self.max}")

    def contains(self, year: Optional[int]) -> bool:
        return year is not None and self.min <= year <= self.max


@dataclass(frozen=True)
class FilterCriteria:
    """
    Per-request filters. Empty sets and a missing range mean "no filtering".

    A range equal to the full observed range of the corpus is also a no-op;
    see FilterCriteria.is_default.
    """
    genres: FrozenSet[str] = frozenset()
    author_ids: FrozenSet[int] = frozenset()
    death_date_range: Optional[DeathDateRange] = None

    def death_range_is_default(self, observed: Optional[DeathDateRange]) -> bool:
        return self.death_date_range is None or self.death_date_range == observed

    def is_default(self, observed: Optional[DeathDateRange]) -> bool:
        return not self.genres and not self.author_ids and self.death_range_is_default(observed)


@dataclass(frozen=True)
class QueryRequest:
    """A validated, normalized query ready to be turned into an engine query."""
    normalized_query: str
    is_exact: bool = False
    eligible_text_ids: FrozenSet[int] = frozenset()  # empty = unrestricted
    page: int = 1
    page_size: int = 250

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be > 0, got {self.page_size}")


@dataclass
class RawHit:
    """A single hit as returned by the engine, before enrichment."""
    doc_id: str
    text_id: int
    volume_label: str
    page_id: int
    page_number: Optional[int]
    score: Optional[float]
    source_uri: str
    raw_highlight_fragments: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Highlight:
    """A cleaned highlight fragment split around the match."""
    pre: str
    match: str
    post: str


@dataclass(frozen=True)
class EnrichedResult:
    """A hit annotated with text/author metadata and cleaned highlights."""
    doc_id: str
    text_id: int
    volume_label: str
    page_id: int
    page_number: Optional[int]
    score: Optional[float]
    source_uri: str
    raw_highlight_fragments: Tuple[str, ...]
    text_title: str
    author_name: str
    author_death_date_ah: Optional[int]
    processed_highlights: Tuple[Highlight, ...]

    def to_dict(self) -> dict:
        return {
            "id": self.doc_id,
            "text_id": self.text_id,
            "title": self.text_title,
            "author": self.author_name,
            "death_date_ah": self.author_death_date_ah,
            "vol": self.volume_label,
            "page_id": self.page_id,
            "page_num": self.page_number,
            "uri": self.source_uri,
            "score": self.score,
            "highlights": [
                {"pre": h.pre, "match": h.match, "post": h.post}
                for h in self.processed_highlights
            ],
        }


@dataclass
class SearchPage:
    """One page of results plus the window that was actually requested."""
    hits: List[EnrichedResult]
    total: int
    offset: int
    size: int
    normalized_query: str
