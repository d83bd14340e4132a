"""Resolve a version's book list page into ordered chapter URLs.

The book list page carries one section per book (``.ot-book`` / ``.nt-book``).
Each section has a ``.book-name`` element whose own text is the book name, a
``.num-chapters`` element with the declared chapter count, and a ``.chapters``
container of chapter links.
"""

from __future__ import annotations

from collections.abc import Iterator
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from pydantic import BaseModel, ConfigDict, Field

from errors import StructureMismatchError
from logger import get_logger

logger = get_logger(__name__)

# The fragment selects the book list tab on the page.
BOOK_LIST_URL = "https://www.biblegateway.com/versions/English-Standard-Version-ESV-Bible#booklist"
EXPECTED_BOOK_COUNT = 66


class BookLinks(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    book_name: str = Field(alias="bookName")
    chapter_urls: tuple[str, ...] = Field(alias="chapterUrls")


class Catalog(BaseModel):
    model_config = ConfigDict(frozen=True)

    ot: tuple[BookLinks, ...]
    nt: tuple[BookLinks, ...]

    def iter_books(self) -> Iterator[tuple[str, BookLinks]]:
        for book in self.ot:
            yield "OT", book
        for book in self.nt:
            yield "NT", book


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def get_book_name(section: Tag) -> str:
    name_el = section.select_one(".book-name")
    if name_el is None:
        raise StructureMismatchError("Book section has no .book-name element")

    text_nodes = [
        str(child).strip()
        for child in name_el.children
        if isinstance(child, NavigableString)
        and not isinstance(child, Comment)
        and str(child).strip()
    ]
    if len(text_nodes) != 1:
        raise StructureMismatchError(
            f"Expected exactly one book name text node, found {len(text_nodes)}"
        )
    return text_nodes[0]


def get_chapter_urls(section: Tag, origin: str) -> list[str]:
    count_el = section.select_one(".num-chapters")
    count_text = count_el.get_text(strip=True) if count_el else ""
    try:
        expected = int(count_text)
    except ValueError as exc:
        raise StructureMismatchError(f"Unreadable chapter count {count_text!r}") from exc

    chapters_el = section.select_one(".chapters")
    links = chapters_el.find_all("a") if chapters_el else []
    if len(links) != expected:
        raise StructureMismatchError(
            f"Mismatch of expected chapters: declared {expected}, found {len(links)} links"
        )
    return [urljoin(origin, link.get("href") or "") for link in links]


def get_book_links(section: Tag, origin: str) -> BookLinks:
    name = get_book_name(section)
    return BookLinks(book_name=name, chapter_urls=tuple(get_chapter_urls(section, origin)))


def resolve_catalog(html: str, *, page_url: str = BOOK_LIST_URL) -> Catalog:
    """Parse a book list page into OT/NT book links.

    Raises:
        StructureMismatchError: when the page does not list exactly 66 books, a
            book name cannot be read, or a chapter count does not match its links.
    """
    soup = BeautifulSoup(html, "html.parser")
    ot_sections = soup.select(".ot-book")
    nt_sections = soup.select(".nt-book")
    total = len(ot_sections) + len(nt_sections)
    if total != EXPECTED_BOOK_COUNT:
        raise StructureMismatchError(f"{total} books found, expected {EXPECTED_BOOK_COUNT}")

    origin = _origin(page_url)
    catalog = Catalog(
        ot=tuple(get_book_links(s, origin) for s in ot_sections),
        nt=tuple(get_book_links(s, origin) for s in nt_sections),
    )
    logger.info(
        "Resolved %d OT and %d NT books (%d chapters)",
        len(catalog.ot),
        len(catalog.nt),
        sum(len(b.chapter_urls) for _t, b in catalog.iter_books()),
    )
    return catalog

