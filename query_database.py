"""Print the first page of the target Notion database as JSON.

Useful to check the token, database id and property setup before a publish run.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from config import config as settings
from errors import TransientDeliveryError
from logger import get_logger
from notion_api import NotionClient

logger = get_logger(__name__)


async def query(database_id: str, *, page_size: int) -> dict:
    async with NotionClient(
        settings.notion_token,
        base_url=settings.notion_api_base_url,
        notion_version=settings.notion_version,
    ) as client:
        return await client.query_database(database_id, page_size=page_size)


def main() -> None:
    parser = argparse.ArgumentParser(description="Query the Notion database pages are published to")
    parser.add_argument("--database-id", default=settings.notion_database_id)
    parser.add_argument("--page-size", type=int, default=10)
    args = parser.parse_args()

    if not settings.notion_token or not args.database_id:
        logger.error("Missing NOTION_TOKEN or NOTION_DATABASE_ID.")
        sys.exit(1)

    try:
        response = asyncio.run(query(args.database_id, page_size=args.page_size))
    except TransientDeliveryError as exc:
        logger.error("Query failed: %s", exc)
        sys.exit(1)
    print(json.dumps(response, ensure_ascii=False, indent=3))


if __name__ == "__main__":
    main()
