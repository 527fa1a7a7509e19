"""Data models supporting the crossword filler."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from .constants import BLANK, Direction


@dataclass
class Cell:
    """A grid cell.

    ``across_start`` and ``down_start`` are indices into the owning grid's flat
    cell list; ``across_len`` and ``down_len`` are the full lengths of the runs
    the cell belongs to.
    """

    row: int
    col: int
    is_block: bool = False
    letter: str = BLANK
    across_start: int = -1
    down_start: int = -1
    across_len: int = 0
    down_len: int = 0
    number: int = 0
    has_across_word: bool = False
    has_down_word: bool = False
    across_word: str = ""
    down_word: str = ""

    def is_blank(self) -> bool:
        return not self.is_block and self.letter == BLANK

    def start(self, direction: Direction) -> int:
        return self.across_start if direction == Direction.ACROSS else self.down_start

    def run_length(self, direction: Direction) -> int:
        return self.across_len if direction == Direction.ACROSS else self.down_len

    def has_word(self, direction: Direction) -> bool:
        return self.has_across_word if direction == Direction.ACROSS else self.has_down_word

    def word(self, direction: Direction) -> str:
        return self.across_word if direction == Direction.ACROSS else self.down_word

    def set_word(self, direction: Direction, word: Optional[str]) -> None:
        """Mark (``word`` given) or unmark (``None``) the run starting here."""

        has_word = word is not None
        if direction == Direction.ACROSS:
            self.has_across_word = has_word
            self.across_word = word or ""
        else:
            self.has_down_word = has_word
            self.down_word = word or ""

    def mark(self, direction: Direction, filled: bool) -> None:
        if direction == Direction.ACROSS:
            self.has_across_word = filled
        else:
            self.has_down_word = filled


@dataclass
class WordSlot:
    """A maximal run of open cells in one direction."""

    start_row: int
    start_col: int
    direction: Direction
    length: int
    number: int = 0
    _cells: Optional[List[Tuple[int, int]]] = field(default=None, repr=False, compare=False)

    @property
    def id(self) -> str:
        prefix = "AC" if self.direction == Direction.ACROSS else "DN"
        return f"{prefix}_{self.start_row}_{self.start_col}"

    @property
    def cells(self) -> List[Tuple[int, int]]:
        if self._cells is None:
            if self.direction == Direction.ACROSS:
                self._cells = [(self.start_row, self.start_col + i) for i in range(self.length)]
            else:
                self._cells = [(self.start_row + i, self.start_col) for i in range(self.length)]
        return self._cells


@dataclass(frozen=True)
class Obligation:
    """A slot, named by its start cell index and direction, that still needs a word."""

    cell: int
    direction: Direction


class UsedWords:
    """Words already on the board.

    Words are checked out for the duration of a ``with`` block and checked
    back in on exit, whatever way the block is left.
    """

    def __init__(self, words: Iterable[str] = ()) -> None:
        self._words: Set[str] = set(words)

    def __contains__(self, word: object) -> bool:
        return word in self._words

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self) -> Iterator[str]:
        return iter(self._words)

    @contextmanager
    def checkout(self, word: str) -> Iterator[None]:
        if word in self._words:
            # Already held by an outer scope; that scope owns the check-in.
            yield
            return
        self._words.add(word)
        try:
            yield
        finally:
            self._words.discard(word)
