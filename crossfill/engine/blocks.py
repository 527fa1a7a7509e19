"""Random symmetric block layouts."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..core.constants import NEIGHBOUR_STEPS, ORTHOGONAL_STEPS, Bounds
from ..core.exceptions import LayoutError
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)

# Runs of two or three open cells next to a new block are rejected.
_SHORT_ARMS = (2, 3)

# The three other cells of each 2x2 square containing a cell.
_SQUARE_CORNERS: Tuple[Tuple[Tuple[int, int], ...], ...] = (
    ((-1, 0), (-1, -1), (0, -1)),
    ((-1, 0), (-1, 1), (0, 1)),
    ((0, -1), (1, -1), (1, 0)),
    ((0, 1), (1, 1), (1, 0)),
)


@dataclass
class BlockConfig:
    """Defaults for block generation."""

    max_neighbour_count: int = 3
    no_squares: bool = True


class BlockLayoutGenerator:
    """Places blocks in 180 degree symmetric pairs over a single random pass.

    A candidate pair is kept only when every open arm running from the
    candidate is one cell or longer than three, the open cells stay one
    4-connected region and the block cluster around the candidate (diagonals
    included) stays within ``max_neighbour_count`` cells.
    """

    def __init__(self, rows: int, cols: Optional[int] = None, rng: Optional[random.Random] = None) -> None:
        cols = rows if cols is None else cols
        if rows < 1 or cols < 1:
            raise LayoutError(f"Cannot generate blocks for a {rows}x{cols} grid")
        self.bounds = Bounds(rows=rows, cols=cols)
        self.rng = rng or random.Random()
        self.blocks: List[List[bool]] = [[False] * cols for _ in range(rows)]

    def generate(
        self,
        max_neighbour_count: int = BlockConfig.max_neighbour_count,
        no_squares: bool = BlockConfig.no_squares,
    ) -> List[List[bool]]:
        positions = [(r, c) for r in range(self.bounds.rows) for c in range(self.bounds.cols)]
        self.rng.shuffle(positions)

        placed = 0
        for row, col in positions:
            if self.blocks[row][col]:
                continue
            mirror_row, mirror_col = self.bounds.mirror(row, col)
            self.blocks[mirror_row][mirror_col] = True

            if not self._arms_allowed(row, col) or (no_squares and self._creates_square(row, col)):
                self.blocks[mirror_row][mirror_col] = False
                continue

            self.blocks[row][col] = True
            if not self._single_region() or self._cluster_size(row, col) > max_neighbour_count:
                self.blocks[row][col] = False
                self.blocks[mirror_row][mirror_col] = False
                continue
            placed += 1

        LOGGER.debug(
            "Placed %s block pairs on %sx%s grid (max cluster %s, no squares %s)",
            placed,
            self.bounds.rows,
            self.bounds.cols,
            max_neighbour_count,
            no_squares,
        )
        return [list(row) for row in self.blocks]

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------
    def _is_open(self, row: int, col: int) -> bool:
        return self.bounds.contains(row, col) and not self.blocks[row][col]

    def _arm_length(self, row: int, col: int, dr: int, dc: int) -> int:
        length = 0
        while self._is_open(row, col):
            length += 1
            row += dr
            col += dc
        return length

    def _arms_allowed(self, row: int, col: int) -> bool:
        for dr, dc in ORTHOGONAL_STEPS:
            arm = self._arm_length(row, col, dr, dc)
            if arm == 0 or arm in _SHORT_ARMS:
                return False
        return True

    def _creates_square(self, row: int, col: int) -> bool:
        for corners in _SQUARE_CORNERS:
            cells = [(row + dr, col + dc) for dr, dc in corners]
            if all(self.bounds.contains(r, c) and self.blocks[r][c] for r, c in cells):
                return True
        return False

    def _single_region(self) -> bool:
        open_cells = [
            (r, c) for r in range(self.bounds.rows) for c in range(self.bounds.cols) if not self.blocks[r][c]
        ]
        if not open_cells:
            return True
        seen = {open_cells[0]}
        stack = [open_cells[0]]
        while stack:
            row, col = stack.pop()
            for dr, dc in ORTHOGONAL_STEPS:
                neighbour = (row + dr, col + dc)
                if neighbour not in seen and self._is_open(*neighbour):
                    seen.add(neighbour)
                    stack.append(neighbour)
        return len(seen) == len(open_cells)

    def _cluster_size(self, row: int, col: int) -> int:
        seen = {(row, col)}
        stack = [(row, col)]
        while stack:
            r, c = stack.pop()
            for dr, dc in NEIGHBOUR_STEPS:
                nr, nc = r + dr, c + dc
                if (nr, nc) in seen or not self.bounds.contains(nr, nc) or not self.blocks[nr][nc]:
                    continue
                seen.add((nr, nc))
                stack.append((nr, nc))
        return len(seen)


def is_symmetric(blocks: List[List[bool]]) -> bool:
    """Whether a layout is unchanged by a 180 degree rotation."""

    rows, cols = len(blocks), len(blocks[0]) if blocks else 0
    bounds = Bounds(rows=rows, cols=cols)
    for r in range(rows):
        for c in range(cols):
            mr, mc = bounds.mirror(r, c)
            if blocks[r][c] != blocks[mr][mc]:
                return False
    return True


def open_region_count(blocks: List[List[bool]]) -> int:
    """Number of 4-connected regions of open cells."""

    rows, cols = len(blocks), len(blocks[0]) if blocks else 0
    seen = set()
    regions = 0
    for r in range(rows):
        for c in range(cols):
            if blocks[r][c] or (r, c) in seen:
                continue
            regions += 1
            seen.add((r, c))
            stack = [(r, c)]
            while stack:
                row, col = stack.pop()
                for dr, dc in ORTHOGONAL_STEPS:
                    nr, nc = row + dr, col + dc
                    if 0 <= nr < rows and 0 <= nc < cols and not blocks[nr][nc] and (nr, nc) not in seen:
                        seen.add((nr, nc))
                        stack.append((nr, nc))
    return regions


__all__ = ["BlockConfig", "BlockLayoutGenerator", "is_symmetric", "open_region_count"]
