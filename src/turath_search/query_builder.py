"""
Engine query construction.

Turns a QueryRequest into the OpenSearch request body:
- pagination window, clamped so from+size never passes the result window
- field choice: exact field or the clitic-expanded field
- match clause: wildcard for a single wildcard term, match_phrase otherwise
- optional terms filter on the eligible text ids
- highlighting driven by the same match clause
- stable sort on the page URI
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from turath_search.config import SearchSettings
from turath_search.models import QueryRequest
from turath_search.validate import contains_wildcard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Window:
    """The from/size pair actually sent to the engine."""
    offset: int
    size: int


def compute_window(page: int, page_size: int, max_window: int) -> Window:
    """
    Map a 1-based page to an engine window without seeking past max_window.

    A page that would end beyond the window is pulled back to the last full
    page inside it, e.g. page 30 x 50 with a 1000 window -> from=950.
    """
    size = min(page_size, max_window)
    offset = (page - 1) * page_size
    if offset + size > max_window:
        offset = max(0, max_window - size)
    return Window(offset=offset, size=size)


def escape_wildcard(term: str) -> str:
    """Escape the engine's other wildcard syntax so only `*` stays special."""
    return term.replace("\\", "\\\\").replace("?", "\\?")


class QueryBuilder:
    """Builds engine query bodies. Callers must validate the query first."""

    def __init__(self, settings: SearchSettings):
        self.settings = settings

    def field_for(self, is_exact: bool) -> str:
        return self.settings.exact_field if is_exact else self.settings.clitic_field

    def match_clause(self, query: str, field: str) -> Dict[str, Any]:
        term = query.strip()
        if contains_wildcard(term):
            return {
                "wildcard": {
                    field: {
                        "value": escape_wildcard(term),
                        "case_insensitive": True,
                    }
                }
            }
        return {"match_phrase": {field: term}}

    def highlight_clause(self, field: str, match: Dict[str, Any]) -> Dict[str, Any]:
        s = self.settings
        return {
            "type": s.highlight_type,
            "fields": {
                field: {
                    "number_of_fragments": s.fragment_count,
                    "fragment_size": s.fragment_size,
                    "pre_tags": [s.pre_tag],
                    "post_tags": [s.post_tag],
                    "require_field_match": True,
                }
            },
            "highlight_query": match,
        }

    def build(self, request: QueryRequest, max_window: Optional[int] = None) -> Dict[str, Any]:
        """Build the request body for a validated, normalized query."""
        window = compute_window(
            request.page,
            request.page_size,
            max_window or self.settings.max_result_window,
        )
        field = self.field_for(request.is_exact)
        match = self.match_clause(request.normalized_query, field)

        bool_query: Dict[str, Any] = {"must": [match]}
        if request.eligible_text_ids:
            bool_query["filter"] = [
                {"terms": {self.settings.id_field: sorted(request.eligible_text_ids)}}
            ]

        body = {
            "from": window.offset,
            "size": window.size,
            "track_total_hits": True,
            "query": {"bool": bool_query},
            "sort": [{self.settings.sort_field: "asc"}],
            "highlight": self.highlight_clause(field, match),
        }
        logger.debug(
            f"Built query on {field!r}: {next(iter(match))} from={window.offset} size={window.size} "
            f"filtered_texts={len(request.eligible_text_ids)}"
        )
        return body
