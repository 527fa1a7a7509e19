"""Deterministic rule validation for filled boards and block layouts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Set

from ..core.constants import BLANK
from ..core.exceptions import LayoutError, ValidationError
from ..data.dictionary import WordIndex
from ..utils.logger import get_logger
from .blocks import is_symmetric, open_region_count
from .grid import BlockLayout, CrosswordGrid, check_layout


LOGGER = get_logger(__name__)


@dataclass
class ValidationResult:
    ok: bool
    messages: List[str]


def validate_layout(blocks: BlockLayout) -> ValidationResult:
    """Check a block layout is rectangular, symmetric and one open region."""

    try:
        check_layout(blocks)
        layout = [list(row) for row in blocks]
        if not is_symmetric(layout):
            raise ValidationError("Block layout is not 180 degree symmetric")
        regions = open_region_count(layout)
        if regions > 1:
            raise ValidationError(f"Open cells form {regions} separate regions")
    except (LayoutError, ValidationError) as exc:
        LOGGER.error("Layout validation failed: %s", exc)
        return ValidationResult(ok=False, messages=[str(exc)])
    return ValidationResult(ok=True, messages=[])


class BoardValidator:
    """Runs deterministic validation over a filled board."""

    def __init__(self, index: WordIndex) -> None:
        self.index = index

    def validate(self, board_text: str) -> ValidationResult:
        messages: List[str] = []
        try:
            grid = CrosswordGrid.from_board(board_text)
            self._check_no_blank_slot_cells(grid)
            self._check_words_known(grid)
            self._check_no_duplicate_words(grid)
        except (LayoutError, ValidationError) as exc:
            messages.append(str(exc))
            LOGGER.error("Validation failed: %s", exc)
            return ValidationResult(ok=False, messages=messages)
        return ValidationResult(ok=True, messages=[])

    def _check_no_blank_slot_cells(self, grid: CrosswordGrid) -> None:
        for slot in grid.slots():
            for row, col in slot.cells:
                if grid.letter(row, col) == BLANK:
                    raise ValidationError(f"Blank cell at ({row},{col}) inside slot {slot.id}")

    def _check_words_known(self, grid: CrosswordGrid) -> None:
        for slot in grid.slots():
            text = grid.slot_text(slot)
            if text not in self.index:
                raise ValidationError(f"Invalid word '{text}' at {(slot.start_row, slot.start_col)}")

    def _check_no_duplicate_words(self, grid: CrosswordGrid) -> None:
        seen: Set[str] = set()
        for slot in grid.slots():
            text = grid.slot_text(slot)
            if text in seen:
                raise ValidationError(f"Duplicate word '{text}' at ({slot.start_row},{slot.start_col})")
            seen.add(text)


__all__ = ["BoardValidator", "ValidationResult", "validate_layout"]
