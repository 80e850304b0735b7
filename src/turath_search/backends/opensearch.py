"""
OpenSearch client.

Thin async wrapper over the REST API:
- search: POST /{index}/_search with a prebuilt body
- create_index: PUT /{index} with settings and mappings

Transport failures become EngineUnavailable, non-2xx answers and malformed
bodies become EngineError. Nothing is retried here.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from turath_search.config import SearchSettings
from turath_search.errors import EngineError, EngineUnavailable
from turath_search.models import RawHit

logger = logging.getLogger(__name__)


class OpenSearchClient:
    """Client for the page index of the corpus."""

    def __init__(self, settings: SearchSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        auth = None
        if settings.username and settings.password:
            auth = httpx.BasicAuth(settings.username, settings.password)
        self.client = httpx.AsyncClient(
            base_url=settings.engine_url.rstrip("/"),
            auth=auth,
            timeout=settings.timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "OpenSearchClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(self, method: str, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = await self.client.request(method, path, json=body)
        except httpx.TransportError as e:
            raise EngineUnavailable(f"{type(e).__name__}: {e}") from e

        if resp.is_error:
            raise EngineError(resp.text or resp.reason_phrase, status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise EngineError(f"invalid JSON in response: {e}", status_code=resp.status_code) from e
        if not isinstance(data, dict):
            raise EngineError("response is not a JSON object", status_code=resp.status_code)
        return data

    async def search(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Run a search and return the decoded response."""
        logger.info(f"OpenSearch search: from={body.get('from')} size={body.get('size')}")
        data = await self._request("POST", f"/{self.settings.index}/_search", body)
        if "hits" not in data:
            raise EngineError("response has no 'hits' section")
        return data

    async def create_index(self, body: Dict[str, Any]) -> Dict[str, Any]:
        logger.info(f"Creating index {self.settings.index!r}")
        return await self._request("PUT", f"/{self.settings.index}", body)

    def parse_hits(self, data: Dict[str, Any], highlight_field: str) -> Tuple[List[RawHit], int]:
        """Convert a search response to RawHits plus the reported total."""
        try:
            hits_section = data["hits"]
            total = hits_section["total"]
            total = total["value"] if isinstance(total, dict) else int(total)
            hits = [self._parse_hit(item, highlight_field) for item in hits_section["hits"]]
        except (KeyError, TypeError, ValueError) as e:
            raise EngineError(f"malformed search response: {e!r}") from e
        return hits, total

    def _parse_hit(self, item: Dict[str, Any], highlight_field: str) -> RawHit:
        source = item["_source"]
        highlight = item.get("highlight") or {}
        return RawHit(
            doc_id=str(item.get("_id", "")),
            text_id=int(source["text_id"]),
            volume_label=str(source.get("vol", "")),
            page_id=int(source.get("page_id", 0)),
            page_number=source.get("page_num"),
            score=item.get("_score"),
            source_uri=source.get("uri", ""),
            raw_highlight_fragments=list(highlight.get(highlight_field, [])),
        )

    async def close(self):
        await self.client.aclose()
