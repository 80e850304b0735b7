"""Tests for the OpenSearch client against a mocked transport."""

import json

import httpx
import pytest

from turath_search.backends.opensearch import OpenSearchClient
from turath_search.config import SearchSettings
from turath_search.errors import EngineError, EngineUnavailable

RESPONSE = {
    "took": 3,
    "hits": {
        "total": {"value": 1234},
        "hits": [
            {
                "_id": "abc",
                "_score": 2.5,
                "_source": {"text_id": 7, "uri": "0007-001-0010", "vol": "1",
                            "page_id": 70, "page_num": 10, "page_content": "..."},
                "highlight": {"page_content": ["أ <em>ب</em> ج", "د <em>ب</em>"]},
            },
            {
                "_id": "def",
                "_score": None,
                "_source": {"text_id": 8, "uri": "0008-001-0001", "vol": "2",
                            "page_id": 80, "page_num": None},
            },
        ],
    },
}


def make_client(handler, **overrides):
    settings = SearchSettings(**overrides)
    return OpenSearchClient(settings, transport=httpx.MockTransport(handler))


async def test_search_posts_body_to_index():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json=RESPONSE)

    async with make_client(handler, index="pages", username="reader", password="secret") as client:
        data = await client.search({"from": 0, "size": 10})

    assert seen["method"] == "POST"
    assert seen["path"] == "/pages/_search"
    assert seen["body"] == {"from": 0, "size": 10}
    assert seen["auth"].startswith("Basic ")
    assert data["hits"]["total"]["value"] == 1234


async def test_no_auth_without_credentials():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json=RESPONSE)

    async with make_client(handler) as client:
        await client.search({})
    assert seen["auth"] is None


async def test_parse_hits():
    async with make_client(lambda r: httpx.Response(200, json=RESPONSE)) as client:
        hits, total = client.parse_hits(RESPONSE, "page_content")

    assert total == 1234
    assert [h.doc_id for h in hits] == ["abc", "def"]
    first = hits[0]
    assert first.text_id == 7
    assert first.source_uri == "0007-001-0010"
    assert first.volume_label == "1"
    assert first.page_id == 70
    assert first.page_number == 10
    assert first.score == 2.5
    assert first.raw_highlight_fragments == ["أ <em>ب</em> ج", "د <em>ب</em>"]
    assert hits[1].raw_highlight_fragments == []
    assert hits[1].page_number is None


async def test_parse_hits_reads_other_highlight_field():
    async with make_client(lambda r: httpx.Response(200, json=RESPONSE)) as client:
        hits, _ = client.parse_hits(RESPONSE, "page_content.exact")
    assert hits[0].raw_highlight_fragments == []


async def test_parse_hits_malformed():
    async with make_client(lambda r: httpx.Response(200, json={})) as client:
        with pytest.raises(EngineError):
            client.parse_hits({"hits": {"hits": [{"_id": "x"}], "total": {"value": 1}}}, "page_content")


async def test_error_status_surfaces_upstream_message():
    def handler(request):
        return httpx.Response(400, text='{"error":"search_phase_execution_exception"}')

    async with make_client(handler) as client:
        with pytest.raises(EngineError) as ctx:
            await client.search({})
    assert ctx.value.status_code == 400
    assert "search_phase_execution_exception" in ctx.value.message
    assert not isinstance(ctx.value, EngineUnavailable)


async def test_network_failure_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(EngineUnavailable):
            await client.search({})


async def test_invalid_json():
    async with make_client(lambda r: httpx.Response(200, text="<html>")) as client:
        with pytest.raises(EngineError):
            await client.search({})


async def test_missing_hits_section():
    async with make_client(lambda r: httpx.Response(200, json={"took": 1})) as client:
        with pytest.raises(EngineError):
            await client.search({})


async def test_create_index():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        return httpx.Response(200, json={"acknowledged": True})

    async with make_client(handler, index="pages") as client:
        result = await client.create_index({"settings": {}})
    assert seen == {"method": "PUT", "path": "/pages"}
    assert result["acknowledged"] is True
