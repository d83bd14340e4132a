"""Scrape Bible versions from BibleGateway into verses artifacts.

For each requested version: fetch the book list, resolve every chapter URL,
fetch and parse each chapter in order, normalize verse text, and write

- ``<data dir>/<version>/data.json``: the resolved book list (chapter URLs)
- ``<data dir>/<version>/versesData.json``: ``{version, ot, nt}`` verse records

Run directly with: `python scrape_bible.py esv nasb`, or point one version at
another book list page with `--url`.
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
import time

import requests

from bible_models import BookRecord, VersesData, build_chapter, save_verses_data
from catalog import BOOK_LIST_URL, BookLinks, Catalog, resolve_catalog
from chapter_extractor import extract_chapter_verses
from config import config as settings
from errors import MetadataMissingError, StructureMismatchError
from logger import get_logger
from page_fetch import fetch_page_html
from verse_normalizer import normalize_verse_text

logger = get_logger(__name__)

VERSION_URLS: dict[str, str] = {
    "esv": BOOK_LIST_URL,
    "nasb": "https://www.biblegateway.com/versions/New-American-Standard-Bible-NASB#booklist",
}


def scrape_book(book: BookLinks, *, strict: bool = False, delay: float = 0.0) -> BookRecord:
    """Fetch and parse every chapter of one book, strictly in chapter order."""
    chapters = []
    for chapter_number, url in enumerate(book.chapter_urls, start=1):
        html = fetch_page_html(url)
        texts = extract_chapter_verses(html, chapter_number, strict=strict)
        title = f"{book.book_name} {chapter_number}"
        chapters.append(build_chapter(title, [normalize_verse_text(t) for t in texts]))
        logger.info("OK %s verses=%d", title, len(texts))
        if delay:
            time.sleep(delay)
    return BookRecord(name=book.book_name, chapters=tuple(chapters))


def write_catalog(catalog: Catalog, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(catalog.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    logger.info("Wrote book list to %s", path)
    return path


def scrape_version(
    version: str,
    *,
    url: str,
    data_dir: Path,
    strict: bool = False,
    delay: float = 0.0,
) -> VersesData:
    """End-to-end scrape of one version; returns the saved artifact."""
    logger.info("Fetching %s book list from %s", version.upper(), url)
    catalog = resolve_catalog(fetch_page_html(url), page_url=url)
    out_dir = data_dir / version
    write_catalog(catalog, out_dir / "data.json")

    ot = []
    nt = []
    for testament, book in catalog.iter_books():
        logger.info("SCRAPING %s...", book.book_name)
        record = scrape_book(book, strict=strict, delay=delay)
        (ot if testament == "OT" else nt).append(record)

    data = VersesData(version=version, ot=tuple(ot), nt=tuple(nt))
    save_verses_data(data, out_dir / "versesData.json")
    return data


def main() -> None:
    parser = argparse.ArgumentParser(description="Scrape Bible versions into verses JSON files")
    parser.add_argument(
        "versions",
        nargs="+",
        choices=sorted(VERSION_URLS),
        help="Bible versions to scrape; each one is an independent run",
    )
    parser.add_argument(
        "--data-dir",
        default=settings.bible_data_dir,
        help="Directory that receives <version>/versesData.json",
    )
    parser.add_argument(
        "--url",
        help="Book list page to scrape instead of the built-in one (single version only)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when a chapter page is missing a declared verse instead of leaving it empty",
    )
    args = parser.parse_args()
    if args.url and len(args.versions) != 1:
        parser.error("--url can only be used with a single version")

    failed: list[str] = []
    for version in args.versions:
        try:
            scrape_version(
                version,
                url=args.url or VERSION_URLS[version],
                data_dir=Path(args.data_dir),
                strict=args.strict,
                delay=settings.scrape_request_delay_sec,
            )
        except (StructureMismatchError, MetadataMissingError, requests.RequestException) as exc:
            logger.error("Scrape of %s aborted: %s", version.upper(), exc)
            failed.append(version)

    if failed:
        logger.error("Failed versions: %s", ", ".join(failed))
        sys.exit(1)


if __name__ == "__main__":
    main()
