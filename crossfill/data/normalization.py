"""Shared helpers for word normalization."""

from __future__ import annotations

from ..core.constants import (
    BLANK,
    BLOCK_SYMBOL,
    CLUE_SEPARATOR,
    EMPTY_SYMBOL,
    KEY_SEPARATOR,
    PROCESSED_FIELD_SEPARATOR,
)

# Characters with a meaning of their own in boards, letter keys or files.
RESERVED_CHARACTERS = frozenset(
    {BLANK, BLOCK_SYMBOL, EMPTY_SYMBOL, KEY_SEPARATOR, PROCESSED_FIELD_SEPARATOR, CLUE_SEPARATOR}
)


def clean_word(text: str) -> str:
    """Return ``text`` trimmed and upper-cased."""

    if not text:
        return ""
    return text.strip().upper()


def is_placeable(word: str) -> bool:
    """Whether every character of ``word`` can be written into a grid cell."""

    if not word:
        return False
    return not any(char in RESERVED_CHARACTERS or char.isspace() for char in word)


__all__ = ["RESERVED_CHARACTERS", "clean_word", "is_placeable"]
