from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from bible_models import build_chapter
from errors import TransientDeliveryError
from notion_api import NotionClient
from payload_batcher import build_chapter_requests, request_size


def _run(handler, call):
    async def go():
        async with NotionClient("TOKEN123", transport=httpx.MockTransport(handler)) as client:
            return await call(client)

    return asyncio.run(go())


def test_create_page_posts_body_with_auth_headers() -> None:
    seen: list[httpx.Request] = []
    body = {"parent": {"database_id": "db"}, "properties": {}, "children": []}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"object": "page", "id": "page-1"})

    result = _run(handler, lambda c: c.create_page(body))

    assert result["id"] == "page-1"
    req = seen[0]
    assert req.method == "POST"
    assert str(req.url) == "https://api.notion.com/v1/pages"
    assert req.headers["Authorization"] == "Bearer TOKEN123"
    assert req.headers["Notion-Version"] == "2022-06-28"
    assert json.loads(req.content) == body


def test_rate_limited_response_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"code": "rate_limited"})

    with pytest.raises(TransientDeliveryError) as excinfo:
        _run(handler, lambda c: c.create_page({}))
    assert excinfo.value.status_code == 429


def test_transport_error_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientDeliveryError) as excinfo:
        _run(handler, lambda c: c.create_page({}))
    assert excinfo.value.status_code is None


def test_query_database_targets_database_endpoint() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"object": "list", "results": []})

    result = _run(handler, lambda c: c.query_database("db-1", start_cursor="abc", page_size=5))

    assert result["results"] == []
    assert seen[0].url.path == "/v1/databases/db-1/query"
    assert json.loads(seen[0].content) == {"page_size": 5, "start_cursor": "abc"}


def test_missing_token_is_refused() -> None:
    with pytest.raises(RuntimeError):
        NotionClient("")


def test_non_ascii_text_is_sent_as_raw_utf8() -> None:
    seen: list[httpx.Request] = []
    chapter = build_chapter("Psalms 119", ["אַשְׁרֵי תְמִימֵי־דָרֶךְ — blessed are the blameless"])
    (request,) = build_chapter_requests(
        "Psalms", 1, chapter, book_index=19, testament="OT", database_id="db"
    )
    body = request.to_notion()

    def handler(req: httpx.Request) -> httpx.Response:
        seen.append(req)
        return httpx.Response(200, json={"object": "page", "id": "page-1"})

    _run(handler, lambda c: c.create_page(body))

    sent = seen[0].content
    assert "אַשְׁרֵי".encode() in sent
    assert b"\\u" not in sent
    assert len(sent) == request_size(request)
    assert seen[0].headers["Content-Type"] == "application/json"
    assert json.loads(sent) == body
