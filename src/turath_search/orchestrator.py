"""
Search Orchestrator

Runs the pipeline: validate -> filter -> build query -> engine -> enrich -> highlights

Every input (query, page, filters) is passed in per call; the orchestrator
holds only the engine client, the metadata snapshot and the settings.
"""

import logging
from typing import Optional

from turath_search.backends.opensearch import OpenSearchClient
from turath_search.config import SearchSettings
from turath_search.enrich import enrich_hits
from turath_search.filters import resolve_eligible_ids
from turath_search.metadata import MetadataStore
from turath_search.models import FilterCriteria, QueryRequest, SearchPage
from turath_search.normalize import normalize
from turath_search.query_builder import QueryBuilder, compute_window
from turath_search.validate import ensure_valid

logger = logging.getLogger(__name__)


class SearchOrchestrator:
    """Wires together the search pipeline stages."""

    def __init__(self, engine: OpenSearchClient, metadata: MetadataStore, settings: SearchSettings):
        self.engine = engine
        self.metadata = metadata
        self.settings = settings
        self.builder = QueryBuilder(settings)

    async def execute(
        self,
        query: str,
        page: int = 1,
        page_size: Optional[int] = None,
        criteria: Optional[FilterCriteria] = None,
        is_exact: bool = False,
    ) -> SearchPage:
        """Run one interactive search page."""
        return await self._run(
            query,
            page=page,
            page_size=self.settings.default_page_size if page_size is None else page_size,
            criteria=criteria,
            is_exact=is_exact,
            max_window=self.settings.max_result_window,
        )

    async def export(
        self,
        query: str,
        criteria: Optional[FilterCriteria] = None,
        is_exact: bool = False,
    ) -> SearchPage:
        """Fetch the first export_max_results hits in one request."""
        cap = self.settings.export_max_results
        return await self._run(
            query, page=1, page_size=cap, criteria=criteria, is_exact=is_exact, max_window=cap,
        )

    async def _run(
        self,
        query: str,
        page: int,
        page_size: int,
        criteria: Optional[FilterCriteria],
        is_exact: bool,
        max_window: int,
    ) -> SearchPage:
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if page_size < 1:
            raise ValueError(f"page_size must be > 0, got {page_size}")
        logger.info(f"Search for {query!r} (exact={is_exact}, page={page}, size={page_size})")

        # --- Step 1: Normalize + validate (fails before any engine call) ---
        normalized = normalize(query.strip())
        ensure_valid(normalized)

        # --- Step 2: Resolve filters ---
        criteria = criteria or FilterCriteria()
        eligible = frozenset()
        observed = self.metadata.death_date_range()
        if not criteria.is_default(observed):
            eligible = frozenset(resolve_eligible_ids(
                criteria,
                self.metadata.texts,
                self.metadata.authors,
                observed=observed,
            ))
            logger.info(f"Filters matched {len(eligible)} texts")
            if not eligible:
                window = compute_window(page, page_size, max_window)
                return SearchPage(hits=[], total=0, offset=window.offset, size=window.size,
                                  normalized_query=normalized)

        # --- Step 3: Build + run the engine query ---
        request = QueryRequest(
            normalized_query=normalized,
            is_exact=is_exact,
            eligible_text_ids=eligible,
            page=page,
            page_size=page_size,
        )
        body = self.builder.build(request, max_window=max_window)
        data = await self.engine.search(body)

        field = self.builder.field_for(is_exact)
        raw_hits, total = self.engine.parse_hits(data, field)
        logger.info(f"Engine returned {len(raw_hits)} hits of {total}")

        # --- Step 4: Enrich + clean highlights ---
        hits = enrich_hits(raw_hits, self.metadata, self.settings)

        return SearchPage(
            hits=hits,
            total=total,
            offset=body["from"],
            size=body["size"],
            normalized_query=normalized,
        )
