"""Shared constants and enumerations for the crossword filler."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Direction(str, Enum):
    """Word directions supported by the grid."""

    ACROSS = "ACROSS"
    DOWN = "DOWN"

    @property
    def step(self) -> Tuple[int, int]:
        return (0, 1) if self is Direction.ACROSS else (1, 0)

    @property
    def crossing(self) -> "Direction":
        return Direction.DOWN if self is Direction.ACROSS else Direction.ACROSS


ORTHOGONAL_STEPS: Tuple[Tuple[int, int], ...] = ((0, 1), (1, 0), (0, -1), (-1, 0))
DIAGONAL_STEPS: Tuple[Tuple[int, int], ...] = ((1, 1), (1, -1), (-1, 1), (-1, -1))
NEIGHBOUR_STEPS: Tuple[Tuple[int, int], ...] = ORTHOGONAL_STEPS + DIAGONAL_STEPS

# Letter held by a cell that has not been filled yet.
BLANK = " "
BLOCK_SYMBOL = "#"
EMPTY_SYMBOL = "_"

KEY_SEPARATOR = "_"
PROCESSED_FIELD_SEPARATOR = ";"
CLUE_SEPARATOR = "\t"

# Words up to this length get a key for every combination of known letters.
MAX_LENGTH_FOR_FULL_WORD_MAPPING = 8
MAX_CHECK_DEPTH = 3

PROCESSED_FILE_NAME = "letter_dictionary.txt"
CLUES_FILE_NAME = "clues.txt"


@dataclass(frozen=True)
class Bounds:
    """Simple rectangle bounds helper."""

    rows: int
    cols: int

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def mirror(self, row: int, col: int) -> Tuple[int, int]:
        """Return the cell reached by a 180 degree rotation about the centre."""

        return self.rows - 1 - row, self.cols - 1 - col
