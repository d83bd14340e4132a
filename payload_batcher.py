"""Turn a book's chapters into Notion ``pages.create`` payloads.

Notion request limits this module stays within
(https://developers.notion.com/reference/request-limits):

- 100 rich text objects per rich text array (one paragraph block)
- 1000 blocks per request
- 2000 characters of ``text.content`` per rich text object
- 500KB per request body

Every verse becomes two rich text spans (a bold ``"{n} "`` label and the verse
text). Spans are packed into paragraph blocks of at most 100, and blocks into
requests of at most 1000. One chapter is one page unless it outgrows a single
request, in which case it continues on further pages with the same title.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import json
from typing import Any, TypeVar

from bible_models import BookRecord, ChapterRecord
from errors import PayloadLimitError
from logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

MAX_RICH_TEXT_PER_BLOCK = 100
MAX_BLOCKS_PER_REQUEST = 1000
MAX_TEXT_CONTENT_CHARS = 2000
MAX_REQUEST_BYTES = 500_000

NOTION_COLORS: tuple[str, ...] = (
    "gray",
    "brown",
    "orange",
    "yellow",
    "green",
    "blue",
    "purple",
    "pink",
    "red",
)
TESTAMENT_COLORS: dict[str, str] = {"OT": "purple", "NT": "blue"}


@dataclass(frozen=True)
class RichTextSpan:
    content: str
    bold: bool = False

    def to_notion(self) -> dict[str, Any]:
        obj: dict[str, Any] = {"type": "text", "text": {"content": self.content}}
        if self.bold:
            obj["annotations"] = {"bold": True}
        return obj


@dataclass(frozen=True)
class Block:
    spans: tuple[RichTextSpan, ...]

    def to_notion(self) -> dict[str, Any]:
        return {
            "object": "block",
            "type": "paragraph",
            "paragraph": {"rich_text": [s.to_notion() for s in self.spans]},
        }


@dataclass(frozen=True)
class CreateRequest:
    """One Notion page to create: a chapter (or a slice of a very long one)."""

    title: str
    chapter: int
    book_name: str
    book_index: int
    testament: str
    database_id: str
    children: tuple[Block, ...]

    @property
    def color(self) -> str:
        return book_color(self.book_index)

    def to_notion(self) -> dict[str, Any]:
        return {
            "parent": {"database_id": self.database_id},
            "properties": {
                "Name": {
                    "type": "title",
                    "title": [{"type": "text", "text": {"content": self.title}}],
                },
                "Chapter": {"type": "number", "number": self.chapter},
                "Book": {"select": {"name": self.book_name, "color": self.color}},
                "Book Index": {"type": "number", "number": self.book_index},
                "Testament": {
                    "select": {
                        "name": self.testament,
                        "color": TESTAMENT_COLORS[self.testament],
                    }
                },
            },
            "children": [b.to_notion() for b in self.children],
        }


def book_color(book_index: int) -> str:
    return NOTION_COLORS[book_index % len(NOTION_COLORS)]


def split_into_chunks(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive chunks of at most ``size``, order kept."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def verse_spans(chapter: ChapterRecord) -> list[RichTextSpan]:
    """Expand a chapter's verses into label/text span pairs.

    Every verse text but the last is followed by a space so the paragraph reads
    as continuous prose.
    """
    spans: list[RichTextSpan] = []
    last = len(chapter.verses) - 1
    for idx, verse in enumerate(chapter.verses):
        text = verse.text if idx == last else f"{verse.text} "
        if len(text) > MAX_TEXT_CONTENT_CHARS:
            raise PayloadLimitError(
                f"{chapter.title}:{verse.number} is {len(text)} characters; "
                f"Notion allows {MAX_TEXT_CONTENT_CHARS} per text object"
            )
        spans.append(RichTextSpan(f"{verse.number} ", bold=True))
        spans.append(RichTextSpan(text))
    return spans


def build_blocks(
    spans: Sequence[RichTextSpan], *, max_spans: int = MAX_RICH_TEXT_PER_BLOCK
) -> list[Block]:
    # An odd limit would separate a verse label from its text.
    if max_spans < 2 or max_spans % 2:
        raise ValueError("max_spans must be an even number of at least 2")
    return [Block(tuple(group)) for group in split_into_chunks(spans, max_spans)]


def request_size(request: CreateRequest) -> int:
    return len(json.dumps(request.to_notion(), ensure_ascii=False).encode("utf-8"))


def fit_request_size(
    request: CreateRequest, *, max_bytes: int = MAX_REQUEST_BYTES
) -> list[CreateRequest]:
    """Split a request's blocks by halves until every piece fits ``max_bytes``."""
    stack = [request]
    out: list[CreateRequest] = []
    while stack:
        cur = stack.pop()
        if request_size(cur) <= max_bytes:
            out.append(cur)
            continue
        if len(cur.children) < 2:
            raise PayloadLimitError(f"A single block of '{cur.title}' exceeds {max_bytes} bytes")
        mid = len(cur.children) // 2
        stack.append(_with_children(cur, cur.children[mid:]))
        stack.append(_with_children(cur, cur.children[:mid]))
    if len(out) > 1:
        logger.info(
            "Split '%s' into %d requests to stay under %d bytes",
            request.title,
            len(out),
            max_bytes,
        )
    return out


def _with_children(request: CreateRequest, children: Sequence[Block]) -> CreateRequest:
    return CreateRequest(
        title=request.title,
        chapter=request.chapter,
        book_name=request.book_name,
        book_index=request.book_index,
        testament=request.testament,
        database_id=request.database_id,
        children=tuple(children),
    )


# pylint: disable=too-many-arguments
def build_chapter_requests(
    book_name: str,
    chapter_number: int,
    chapter: ChapterRecord,
    *,
    book_index: int,
    testament: str,
    database_id: str,
    max_spans: int = MAX_RICH_TEXT_PER_BLOCK,
    max_blocks: int = MAX_BLOCKS_PER_REQUEST,
    max_bytes: int = MAX_REQUEST_BYTES,
) -> list[CreateRequest]:
    blocks = build_blocks(verse_spans(chapter), max_spans=max_spans)
    requests: list[CreateRequest] = []
    for children in split_into_chunks(blocks, max_blocks):
        request = CreateRequest(
            title=f"{book_name} {chapter_number}",
            chapter=chapter_number,
            book_name=book_name,
            book_index=book_index,
            testament=testament,
            database_id=database_id,
            children=tuple(children),
        )
        requests.extend(fit_request_size(request, max_bytes=max_bytes))
    return requests


def build_book_requests(
    book: BookRecord,
    *,
    book_index: int,
    testament: str,
    database_id: str,
    max_spans: int = MAX_RICH_TEXT_PER_BLOCK,
    max_blocks: int = MAX_BLOCKS_PER_REQUEST,
    max_bytes: int = MAX_REQUEST_BYTES,
) -> list[CreateRequest]:
    """Build every page request for one book, chapters in order.

    Args:
        book: validated book record
        book_index: 1-based position of the book across both testaments
        testament: "OT" or "NT"
        database_id: Notion database that receives the pages
    """
    if testament not in TESTAMENT_COLORS:
        raise ValueError(f"Unknown testament {testament!r}")

    requests: list[CreateRequest] = []
    for chapter_number, chapter in enumerate(book.chapters, start=1):
        requests.extend(
            build_chapter_requests(
                book.name,
                chapter_number,
                chapter,
                book_index=book_index,
                testament=testament,
                database_id=database_id,
                max_spans=max_spans,
                max_blocks=max_blocks,
                max_bytes=max_bytes,
            )
        )
    logger.debug("Built %d requests for %s", len(requests), book.name)
    return requests
