"""
Result enrichment: attach text/author metadata and cleaned highlights to hits.

A missing text or author never drops a hit; placeholders are used instead.
"""

import logging
from typing import List, Optional

from turath_search.config import SearchSettings
from turath_search.highlight import process_highlight
from turath_search.metadata import MetadataStore
from turath_search.models import EnrichedResult, RawHit

logger = logging.getLogger(__name__)


def unknown_text_title(text_id: int) -> str:
    return f"[نص غير معروف #{text_id}]"


def unknown_author_name(author_id: Optional[int] = None) -> str:
    if author_id is None:
        return "[مؤلف غير معروف]"
    return f"[مؤلف غير معروف #{author_id}]"


def enrich_hit(raw: RawHit, metadata: MetadataStore, settings: SearchSettings) -> EnrichedResult:
    """Convert a RawHit to an EnrichedResult."""
    text = metadata.text(raw.text_id)
    author = metadata.author(text.author_id) if text is not None else None

    if text is None:
        title = unknown_text_title(raw.text_id)
        author_name = unknown_author_name()
        logger.debug(f"No metadata for text {raw.text_id}")
    else:
        title = text.title or unknown_text_title(text.id)
        author_name = author.name if author is not None else unknown_author_name(text.author_id)

    highlights = tuple(
        process_highlight(fragment, settings.pre_tag, settings.post_tag)
        for fragment in raw.raw_highlight_fragments
    )

    return EnrichedResult(
        doc_id=raw.doc_id,
        text_id=raw.text_id,
        volume_label=raw.volume_label,
        page_id=raw.page_id,
        page_number=raw.page_number,
        score=raw.score,
        source_uri=raw.source_uri,
        raw_highlight_fragments=tuple(raw.raw_highlight_fragments),
        text_title=title,
        author_name=author_name,
        author_death_date_ah=author.death_date_ah if author is not None else None,
        processed_highlights=highlights,
    )


def enrich_hits(hits: List[RawHit], metadata: MetadataStore, settings: SearchSettings) -> List[EnrichedResult]:
    """Enrich hits, keeping engine order."""
    return [enrich_hit(hit, metadata, settings) for hit in hits]
