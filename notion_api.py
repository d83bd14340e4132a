from __future__ import annotations

import json
from typing import Any

import httpx

from errors import TransientDeliveryError
from logger import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.notion.com"
DEFAULT_NOTION_VERSION = "2022-06-28"


class NotionClient:
    """Minimal async Notion REST client for page creation and database queries.

    Every failure (transport error or non-2xx status) is raised as
    ``TransientDeliveryError`` so callers can apply their own retry policy.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        notion_version: str = DEFAULT_NOTION_VERSION,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not token:
            raise RuntimeError("NOTION_TOKEN must be configured")
        headers = {
            "Authorization": f"Bearer {token}",
            "Notion-Version": notion_version,
            "Content-Type": "application/json",
        }
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> NotionClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        # Raw UTF-8, matching the byte count the batcher measures against.
        content = json.dumps(body, ensure_ascii=False).encode("utf-8")
        try:
            resp = await self.client.post(path, content=content)
        except httpx.HTTPError as exc:
            raise TransientDeliveryError(f"POST {path} failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise TransientDeliveryError(
                f"POST {path} returned {resp.status_code}; body={resp.text}",
                status_code=resp.status_code,
            )
        return resp.json()

    async def create_page(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._post("/v1/pages", body)

    async def query_database(
        self, database_id: str, *, start_cursor: str | None = None, page_size: int = 100
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"page_size": page_size}
        if start_cursor:
            body["start_cursor"] = start_cursor
        logger.debug("Querying database %s (cursor=%s)", database_id, start_cursor)
        return await self._post(f"/v1/databases/{database_id}/query", body)
