"""Chapter page parser.

Principles:
- decoration (footnote/cross-reference/verse-number superscripts, chapter
  numbers, footnote lists) is removed before any text is read
- the passage container's ``data-osis`` attribute (e.g. ``Gen.1.1-Gen.1.31``)
  gives the book abbreviation (first dotted segment) and the verse count (last
  dotted segment)
- verse text lives in fragments carrying the class token
  ``{abbr}-{chapter}-{verse}``; poetry and headings can split one verse into
  several fragments, which are joined with a single space
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from errors import MetadataMissingError, StructureMismatchError
from logger import get_logger

logger = get_logger(__name__)

DECORATION_SELECTORS = (
    "sup",
    ".chapternum",
    ".footnotes",
    ".crossrefs",
)
PASSAGE_SELECTOR = ".passage-text"
OSIS_ATTR = "data-osis"


def _strip_decoration(soup: BeautifulSoup) -> None:
    for selector in DECORATION_SELECTORS:
        for tag in soup.select(selector):
            tag.decompose()


def read_passage_metadata(soup: BeautifulSoup) -> tuple[str, int]:
    """Return (book abbreviation, verse count) from the passage container."""
    container = soup.select_one(PASSAGE_SELECTOR) or soup
    if isinstance(container, Tag) and container.has_attr(OSIS_ATTR):
        meta_el = container
    else:
        meta_el = container.select_one(f"[{OSIS_ATTR}]")
    osis = str(meta_el.get(OSIS_ATTR) or "") if meta_el is not None else ""
    if not osis:
        raise MetadataMissingError(f"No {OSIS_ATTR} attribute on the passage container")

    segments = osis.split(".")
    abbreviation = segments[0].strip()
    try:
        verse_count = int(segments[-1])
    except ValueError:
        verse_count = 0
    if not abbreviation or verse_count <= 0:
        raise MetadataMissingError(f"Unusable passage metadata {osis!r}")
    return abbreviation, verse_count


def _fragment_text(fragment: Tag) -> str:
    # Some versions style the divine name in small caps; keep that as upper case.
    for small_caps in fragment.select(".small-caps"):
        small_caps.replace_with(small_caps.get_text().upper())
    return fragment.get_text().strip()


def extract_chapter_verses(html: str, chapter: int, *, strict: bool = False) -> list[str]:
    """Extract the ordered verse texts of one chapter page.

    The returned list always has exactly the declared verse count. A verse with
    no fragment on the page (some versions omit verses) is kept as an empty
    string and logged, unless ``strict`` is set.

    Raises:
        MetadataMissingError: when the book abbreviation or verse count is absent.
        StructureMismatchError: in strict mode, when a verse has no text.
    """
    soup = BeautifulSoup(html, "html.parser")
    _strip_decoration(soup)
    abbreviation, verse_count = read_passage_metadata(soup)

    verses: list[str] = []
    for verse_no in range(1, verse_count + 1):
        key = f"{abbreviation}-{chapter}-{verse_no}"
        fragments = soup.find_all(class_=key)
        texts = [t for t in (_fragment_text(f) for f in fragments) if t]
        text = texts[0] if len(texts) == 1 else " ".join(texts)
        if not text:
            if strict:
                raise StructureMismatchError(f"No text found for verse {key}")
            logger.warning("No text found for verse %s; keeping an empty placeholder", key)
        verses.append(text)

    logger.debug("Extracted %d verses for %s %d", len(verses), abbreviation, chapter)
    return verses

