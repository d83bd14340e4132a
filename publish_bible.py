"""Publish a scraped Bible version into a Notion database.

Loads ``<data dir>/<version>/versesData.json``, validates it, and creates one
Notion page per chapter. Books are processed one at a time (OT first) so logs
and book colors stay in a stable order.

Run directly with: `python publish_bible.py esv`.
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Iterator
import json
from pathlib import Path
import sys

from bible_models import BookRecord, VersesData, load_verses_data
from config import config as settings
from delivery import DeliveryEngine
from errors import DeliveryAbortedError, PayloadLimitError, SchemaValidationError
from logger import get_logger
from notion_api import NotionClient
from payload_batcher import CreateRequest, build_book_requests

logger = get_logger(__name__)


def iter_book_requests(
    data: VersesData, database_id: str
) -> Iterator[tuple[BookRecord, list[CreateRequest]]]:
    """Yield each book with its page requests; book indexes run 1..66 across both testaments."""
    for book_index, (testament, book) in enumerate(data.iter_books(), start=1):
        yield book, build_book_requests(
            book, book_index=book_index, testament=testament, database_id=database_id
        )


def build_bible_requests(data: VersesData, database_id: str) -> list[CreateRequest]:
    return [r for _book, requests in iter_book_requests(data, database_id) for r in requests]


async def process_bible(data: VersesData, *, engine: DeliveryEngine, database_id: str) -> int:
    """Deliver each book's requests, one book after another.

    Every payload is built before the first page is sent, so a
    ``PayloadLimitError`` stops the run before anything reaches Notion.
    """
    batches = list(iter_book_requests(data, database_id))
    logger.info(
        "Prepared %d requests for %d books", sum(len(r) for _b, r in batches), len(batches)
    )
    created = 0
    for book, requests in batches:
        logger.info("PROCESSING %s...", book.name)
        created += await engine.deliver(requests)
    return created


async def publish(
    data: VersesData,
    *,
    token: str,
    database_id: str,
    base_url: str,
    notion_version: str,
) -> int:
    async with NotionClient(token, base_url=base_url, notion_version=notion_version) as client:
        engine = DeliveryEngine(client)
        return await process_bible(data, engine=engine, database_id=database_id)


def main() -> None:
    parser = argparse.ArgumentParser(description="Publish a scraped Bible version to Notion")
    parser.add_argument("version", help="Version directory under the data dir, e.g. esv")
    parser.add_argument("--data-dir", default=settings.bible_data_dir)
    parser.add_argument(
        "--database-id",
        default=settings.notion_database_id,
        help="Target Notion database (defaults to NOTION_DATABASE_ID)",
    )
    parser.add_argument(
        "--print-requests-only",
        action="store_true",
        dest="print_only",
        help="Print the page requests that would be sent, as JSON, and do not send",
    )
    args = parser.parse_args()

    path = Path(args.data_dir) / args.version / "versesData.json"
    if not path.exists():
        logger.error("No verses data at %s; run scrape_bible.py first", path)
        sys.exit(1)
    try:
        data = load_verses_data(path)
    except SchemaValidationError:
        sys.exit(1)

    if args.print_only:
        requests = build_bible_requests(data, args.database_id)
        print(json.dumps([r.to_notion() for r in requests], ensure_ascii=False, indent=3))
        return

    if not settings.notion_token or not args.database_id:
        logger.error("Missing NOTION_TOKEN or NOTION_DATABASE_ID. Skipping insertion.")
        sys.exit(1)

    try:
        created = asyncio.run(
            publish(
                data,
                token=settings.notion_token,
                database_id=args.database_id,
                base_url=settings.notion_api_base_url,
                notion_version=settings.notion_version,
            )
        )
    except DeliveryAbortedError as exc:
        logger.error(
            "Publishing %s aborted at '%s'; rerun from the start", data.version, exc.title
        )
        sys.exit(1)
    except PayloadLimitError as exc:
        logger.error("Publishing %s stopped before sending any page: %s", data.version, exc)
        sys.exit(1)
    logger.info("%s publish complete: %d pages created", data.version.upper(), created)


if __name__ == "__main__":
    main()
