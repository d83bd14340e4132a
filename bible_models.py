"""Verse records and the persisted verses artifact.

The scrape runner writes one ``versesData.json`` per Bible version with the shape
``{"version": str, "ot": [BookRecord], "nt": [BookRecord]}``. The publish runner
reads it back through :func:`load_verses_data`, which validates it before any
payload is built.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from errors import SchemaValidationError
from logger import get_logger

logger = get_logger(__name__)


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class VerseRecord(_Record):
    number: int = Field(alias="verse", gt=0)
    text: str


class ChapterRecord(_Record):
    title: str
    verses: tuple[VerseRecord, ...]

    @model_validator(mode="after")
    def _check_contiguous(self) -> ChapterRecord:
        numbers = [v.number for v in self.verses]
        expected = list(range(1, len(numbers) + 1))
        if numbers != expected:
            raise ValueError(f"verse numbers in '{self.title}' must run 1..{len(numbers)}")
        return self


class BookRecord(_Record):
    name: str = Field(alias="bookName", min_length=1)
    chapters: tuple[ChapterRecord, ...]


class VersesData(_Record):
    version: str
    ot: tuple[BookRecord, ...]
    nt: tuple[BookRecord, ...]

    def iter_books(self) -> Iterator[tuple[str, BookRecord]]:
        """Yield (testament, book) with OT books first, in stored order."""
        for book in self.ot:
            yield "OT", book
        for book in self.nt:
            yield "NT", book


def build_chapter(title: str, texts: list[str]) -> ChapterRecord:
    """Number extracted verse texts 1..n into a chapter record."""
    return ChapterRecord(
        title=title,
        verses=tuple(VerseRecord(number=i, text=t) for i, t in enumerate(texts, start=1)),
    )


def load_verses_data(path: Path | str) -> VersesData:
    """Read and validate a verses artifact.

    Raises:
        SchemaValidationError: when the file is not valid JSON or does not match
            the artifact schema.
    """
    p = Path(path)
    logger.info("Loading verses data from %s", p)
    try:
        data = VersesData.model_validate_json(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValidationError) as exc:
        logger.error("Verses data in %s could not be loaded: %s", p, exc)
        raise SchemaValidationError(f"{p}: {exc}") from exc
    logger.info(
        "Loaded %s: %d OT books, %d NT books", data.version, len(data.ot), len(data.nt)
    )
    return data


def save_verses_data(data: VersesData, path: Path | str) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(data.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    logger.info("Wrote %s verses data to %s", data.version, p)
    return p
