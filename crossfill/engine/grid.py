"""Grid representation and helper utilities."""

from __future__ import annotations

import copy
from typing import Iterable, List, Optional, Sequence, Set

from ..core.constants import BLANK, BLOCK_SYMBOL, EMPTY_SYMBOL, Bounds, Direction
from ..core.exceptions import LayoutError, SlotPlacementError
from ..core.models import Cell, WordSlot
from ..data.normalization import clean_word
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)

BlockLayout = Sequence[Sequence[bool]]


def check_layout(blocks: BlockLayout) -> Bounds:
    """Return the bounds of a rectangular, non-empty block layout."""

    if not blocks or not blocks[0]:
        raise LayoutError("Block layout must have at least one row and one column")
    cols = len(blocks[0])
    for row_number, row in enumerate(blocks):
        if len(row) != cols:
            raise LayoutError(f"Row {row_number} has {len(row)} cells, expected {cols}")
    return Bounds(rows=len(blocks), cols=cols)


def parse_board_lines(text: str) -> List[str]:
    """Split board text into rows, dropping trailing blank lines."""

    lines = [line.rstrip("\r") for line in text.split("\n")]
    while lines and not lines[-1]:
        lines.pop()
    return lines


def blocks_from_text(text: str) -> List[List[bool]]:
    """Read a layout drawn with ``#`` for blocks and anything else for open cells."""

    return [[char == BLOCK_SYMBOL for char in line] for line in parse_board_lines(text)]


class CrosswordGrid:
    """A rectangular grid of cells addressed by flat index ``row * cols + col``.

    Every open cell knows the start index and full length of its across and
    down runs. The geometry is rebuilt whenever the block layout changes.
    """

    def __init__(self, blocks: BlockLayout) -> None:
        self.bounds = check_layout(blocks)
        self.cells: List[Cell] = [
            Cell(row=r, col=c, is_block=bool(blocks[r][c]))
            for r in range(self.bounds.rows)
            for c in range(self.bounds.cols)
        ]
        self._slots: List[WordSlot] = []
        self._derive_slots()

    @classmethod
    def empty(cls, rows: int, cols: Optional[int] = None) -> "CrosswordGrid":
        cols = rows if cols is None else cols
        return cls([[False] * cols for _ in range(rows)])

    @classmethod
    def from_board(cls, text: str) -> "CrosswordGrid":
        grid = cls(blocks_from_text(text))
        grid.load_board(text)
        return grid

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    @property
    def rows(self) -> int:
        return self.bounds.rows

    @property
    def cols(self) -> int:
        return self.bounds.cols

    def index(self, row: int, col: int) -> int:
        if not self.bounds.contains(row, col):
            raise LayoutError(f"Cell {(row, col)} outside {self.rows}x{self.cols} grid")
        return row * self.bounds.cols + col

    def cell(self, row: int, col: int) -> Cell:
        return self.cells[self.index(row, col)]

    def letter(self, row: int, col: int) -> str:
        return self.cells[row * self.bounds.cols + col].letter

    def blocks(self) -> List[List[bool]]:
        cols = self.bounds.cols
        return [[cell.is_block for cell in self.cells[r * cols:(r + 1) * cols]] for r in range(self.bounds.rows)]

    def _derive_slots(self) -> None:
        rows, cols = self.bounds.rows, self.bounds.cols
        for cell in self.cells:
            cell.across_start = cell.down_start = -1
            cell.across_len = cell.down_len = 0
            cell.number = 0

        for r in range(rows):
            c = 0
            while c < cols:
                if self.cells[r * cols + c].is_block:
                    c += 1
                    continue
                start = c
                while c < cols and not self.cells[r * cols + c].is_block:
                    c += 1
                for k in range(start, c):
                    cell = self.cells[r * cols + k]
                    cell.across_start = r * cols + start
                    cell.across_len = c - start

        for c in range(cols):
            r = 0
            while r < rows:
                if self.cells[r * cols + c].is_block:
                    r += 1
                    continue
                start = r
                while r < rows and not self.cells[r * cols + c].is_block:
                    r += 1
                for k in range(start, r):
                    cell = self.cells[k * cols + c]
                    cell.down_start = start * cols + c
                    cell.down_len = r - start

        slots: List[WordSlot] = []
        number = 0
        for index, cell in enumerate(self.cells):
            if cell.is_block:
                continue
            starts_across = cell.across_start == index and cell.across_len > 1
            starts_down = cell.down_start == index and cell.down_len > 1
            if not (starts_across or starts_down):
                continue
            number += 1
            cell.number = number
            if starts_across:
                slots.append(WordSlot(cell.row, cell.col, Direction.ACROSS, cell.across_len, number))
            if starts_down:
                slots.append(WordSlot(cell.row, cell.col, Direction.DOWN, cell.down_len, number))
        self._slots = slots
        self._refresh_word_marks()

    def _refresh_word_marks(self) -> None:
        """Drop word marks that no longer describe a complete slot."""

        for index, cell in enumerate(self.cells):
            for direction in Direction:
                if not cell.has_word(direction):
                    continue
                is_start = not cell.is_block and cell.start(direction) == index and cell.run_length(direction) > 1
                if not is_start or self._run_text(index, direction) != cell.word(direction):
                    cell.set_word(direction, None)

    def _run_indices(self, start: int, direction: Direction) -> List[int]:
        cell = self.cells[start]
        step = 1 if direction == Direction.ACROSS else self.bounds.cols
        return [start + step * i for i in range(cell.run_length(direction))]

    def _run_text(self, start: int, direction: Direction) -> str:
        return "".join(self.cells[i].letter for i in self._run_indices(start, direction))

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------
    def slots(self) -> List[WordSlot]:
        """All slots, numbered in row-major order of their start cells."""

        return list(self._slots)

    def slot_at(self, row: int, col: int, direction: Direction) -> Optional[WordSlot]:
        """The slot through ``(row, col)`` in ``direction``, if its run is longer than one cell."""

        cell = self.cell(row, col)
        if cell.is_block or cell.run_length(direction) < 2:
            return None
        start = self.cells[cell.start(direction)]
        return WordSlot(start.row, start.col, direction, cell.run_length(direction), start.number)

    def select(self, row: int, col: int, direction: Direction = Direction.ACROSS) -> Optional[WordSlot]:
        """Resolve a clicked cell to a slot, switching direction for single-cell runs."""

        slot = self.slot_at(row, col, direction)
        if slot is None:
            slot = self.slot_at(row, col, direction.crossing)
        return slot

    def first_slot(self) -> Optional[WordSlot]:
        """First open cell in row-major order with an across run, else a down run."""

        for cell in self.cells:
            if cell.is_block:
                continue
            for direction in Direction:
                if cell.run_length(direction) > 1:
                    return self.slot_at(cell.row, cell.col, direction)
        return None

    def next_unfilled_slot(self) -> Optional[WordSlot]:
        for slot in self._slots:
            if any(self.letter(r, c) == BLANK for r, c in slot.cells):
                return slot
        return None

    def slot_text(self, slot: WordSlot) -> str:
        return "".join(self.letter(r, c) for r, c in slot.cells)

    def word_in(self, slot: WordSlot) -> Optional[str]:
        start = self.cell(slot.start_row, slot.start_col)
        return start.word(slot.direction) if start.has_word(slot.direction) else None

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def set_block(self, row: int, col: int, is_block: bool = True, mirror: bool = True) -> None:
        """Toggle a block, clearing any letters it covers, and rebuild the geometry."""

        targets = [(row, col)]
        if mirror:
            mirrored = self.bounds.mirror(row, col)
            if mirrored != (row, col):
                targets.append(mirrored)

        for r, c in targets:
            cell = self.cell(r, c)
            if is_block and not cell.is_block and cell.letter != BLANK:
                self.remove_letter(r, c)
        for r, c in targets:
            cell = self.cell(r, c)
            cell.is_block = is_block
            cell.letter = BLANK
            cell.set_word(Direction.ACROSS, None)
            cell.set_word(Direction.DOWN, None)
        self._derive_slots()

    def set_letter(self, row: int, col: int, letter: str) -> None:
        cell = self.cell(row, col)
        if cell.is_block:
            raise SlotPlacementError(f"Cell {(row, col)} is a block")
        cell.letter = letter or BLANK

    def place_word(self, slot: WordSlot, word: str) -> List[int]:
        """Write ``word`` into ``slot`` and return the indices of cells that were blank.

        Crossing runs that become complete are marked as holding a word.
        """

        word = clean_word(word)
        if len(word) != slot.length:
            raise SlotPlacementError(f"Word {word!r} does not fit a slot of length {slot.length}")
        start = self.index(slot.start_row, slot.start_col)
        if self.cells[start].run_length(slot.direction) != slot.length:
            raise SlotPlacementError(f"Slot {slot.id} no longer matches the grid")

        crossing = slot.direction.crossing
        blank_cells: List[int] = []
        self.cells[start].set_word(slot.direction, word)
        for position, index in enumerate(self._run_indices(start, slot.direction)):
            cell = self.cells[index]
            if cell.letter == BLANK:
                blank_cells.append(index)
            cell.letter = word[position]

            if cell.run_length(crossing) < 2:
                continue
            cross_text = self._run_text(cell.start(crossing), crossing)
            if BLANK not in cross_text:
                self.cells[cell.start(crossing)].set_word(crossing, cross_text)
        return blank_cells

    def remove_word(self, slot: WordSlot) -> None:
        """Clear the slot's letters that no crossing word owns."""

        self._remove_run(self.index(slot.start_row, slot.start_col), slot.direction)

    def _remove_run(self, start: int, direction: Direction) -> None:
        crossing = direction.crossing
        removed_one = False
        for index in self._run_indices(start, direction):
            cell = self.cells[index]
            if not self.cells[cell.start(crossing)].has_word(crossing):
                cell.letter = BLANK
                removed_one = True
        if removed_one:
            self.cells[start].set_word(direction, None)

    def remove_letter(self, row: int, col: int) -> None:
        """Clear one letter; both words through it are broken and removed."""

        cell = self.cell(row, col)
        if cell.is_block:
            return
        cell.letter = BLANK
        for direction in Direction:
            self.cells[cell.start(direction)].set_word(direction, None)
        for direction in Direction:
            self._remove_run(cell.start(direction), direction)

    def remove_letters(self, slot: WordSlot) -> None:
        """Clear every letter in the slot and remove the crossing words it breaks."""

        start = self.index(slot.start_row, slot.start_col)
        crossing = slot.direction.crossing
        self.cells[start].set_word(slot.direction, None)
        for index in self._run_indices(start, slot.direction):
            cell = self.cells[index]
            cell.letter = BLANK
            self._remove_run(cell.start(crossing), crossing)

    def clear_letters(self) -> None:
        for cell in self.cells:
            cell.letter = BLANK
            cell.set_word(Direction.ACROSS, None)
            cell.set_word(Direction.DOWN, None)

    def load_board(self, text: str) -> None:
        """Replace the grid with a filled board: ``#`` blocks, letters, ``_`` or space blanks."""

        lines = parse_board_lines(text)
        blocks = [[char == BLOCK_SYMBOL for char in line] for line in lines]
        self.bounds = check_layout(blocks)
        self.cells = []
        for r, line in enumerate(lines):
            for c, char in enumerate(line):
                is_block = char == BLOCK_SYMBOL
                letter = BLANK if is_block or char in (EMPTY_SYMBOL, BLANK) else char.upper()
                self.cells.append(Cell(row=r, col=c, is_block=is_block, letter=letter))
        self._derive_slots()
        for slot in self._slots:
            text_in_slot = self.slot_text(slot)
            if BLANK not in text_in_slot:
                self.cell(slot.start_row, slot.start_col).set_word(slot.direction, text_in_slot)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def used_words(self) -> Set[str]:
        words: Set[str] = set()
        for cell in self.cells:
            for direction in Direction:
                if cell.has_word(direction):
                    words.add(cell.word(direction))
        return words

    def has_blank_cells(self) -> bool:
        return any(cell.is_blank() for cell in self.cells)

    def open_cells(self) -> Iterable[Cell]:
        return (cell for cell in self.cells if not cell.is_block)

    def render(self) -> str:
        """Board text: ``#`` for blocks, letters, ``_`` for blank cells; one line per row."""

        cols = self.bounds.cols
        lines = []
        for r in range(self.bounds.rows):
            row_cells = self.cells[r * cols:(r + 1) * cols]
            lines.append(
                "".join(
                    BLOCK_SYMBOL if cell.is_block else (EMPTY_SYMBOL if cell.letter == BLANK else cell.letter)
                    for cell in row_cells
                )
            )
        return "\n".join(lines)

    def copy(self) -> "CrosswordGrid":
        clone = copy.copy(self)
        clone.cells = [copy.copy(cell) for cell in self.cells]
        clone._slots = list(self._slots)
        return clone

    def __str__(self) -> str:
        return self.render()


__all__ = ["BlockLayout", "CrosswordGrid", "blocks_from_text", "check_layout", "parse_board_lines"]
