"""Text cleanup applied to every extracted verse before it is persisted."""

from __future__ import annotations

import re

_QUOTE_TABLE = str.maketrans(
    {
        "‘": "'",
        "’": "'",
        "“": '"',
        "”": '"',
    }
)

_WS_RE = re.compile(r"\s+")


def normalize_quotes(text: str) -> str:
    """Replace typographic single/double quotes with straight ones."""
    return text.translate(_QUOTE_TABLE)


def normalize_verse_text(text: str) -> str:
    """Straighten quotes and collapse whitespace left by removed footnote markers."""
    if not text:
        return ""
    return _WS_RE.sub(" ", normalize_quotes(text)).strip()
