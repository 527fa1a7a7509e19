"""Pretty-print helpers for crossword grids."""

from __future__ import annotations

import sys
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from ..core.constants import BLANK, BLOCK_SYMBOL, EMPTY_SYMBOL, Direction

if TYPE_CHECKING:
    from ..data.dictionary import WordIndex
    from ..engine.grid import CrosswordGrid


def cell_symbol(cell) -> str:
    if cell.is_block:
        return BLOCK_SYMBOL
    return EMPTY_SYMBOL if cell.letter == BLANK else cell.letter


def format_board(grid: CrosswordGrid) -> str:
    width = grid.bounds.cols
    header_cells = [f"{c:>2}" for c in range(width)]
    lines = ["    " + " ".join(header_cells)]
    lines.append("    " + "-" * (3 * width - 1))
    for r in range(grid.bounds.rows):
        row_cells = [cell_symbol(grid.cell(r, c)) for c in range(width)]
        row_render = " ".join(f"{symbol:>2}" for symbol in row_cells)
        lines.append(f"{r:>2} | {row_render}")
    return "\n".join(lines)


def format_blocks(blocks: Sequence[Sequence[bool]]) -> str:
    """Render a block layout with its block count on the first line."""

    count = sum(1 for row in blocks for is_block in row if is_block)
    rows = ["".join(BLOCK_SYMBOL if is_block else EMPTY_SYMBOL for is_block in row) for row in blocks]
    return "\n".join([f"Block Count: {count}", *rows])


@dataclass
class GridInfo:
    rows: int
    cols: int
    blocks: int
    open_cells: int
    blank_cells: int
    across_words: int
    down_words: int
    length_distribution: Dict[int, int] = field(default_factory=dict)
    unclued_words: List[str] = field(default_factory=list)

    @property
    def total_cells(self) -> int:
        return self.rows * self.cols


def grid_info(grid: CrosswordGrid, index: Optional[WordIndex] = None) -> GridInfo:
    """Collect block, fill and slot statistics for a grid."""

    blocks = sum(1 for cell in grid.cells if cell.is_block)
    blank = sum(1 for cell in grid.cells if cell.is_blank())
    slots = grid.slots()
    across = sum(1 for slot in slots if slot.direction == Direction.ACROSS)
    lengths = Counter(slot.length for slot in slots)
    unclued: List[str] = []
    if index is not None:
        for slot in slots:
            word = grid.word_in(slot)
            if word and not index.clues(word):
                unclued.append(word)
    return GridInfo(
        rows=grid.bounds.rows,
        cols=grid.bounds.cols,
        blocks=blocks,
        open_cells=grid.bounds.rows * grid.bounds.cols - blocks,
        blank_cells=blank,
        across_words=across,
        down_words=len(slots) - across,
        length_distribution=dict(sorted(lengths.items())),
        unclued_words=unclued,
    )


def print_grid_info(grid: CrosswordGrid, index: Optional[WordIndex] = None, *, stream=None) -> None:
    """Print the board followed by its statistics."""

    stream = stream or sys.stdout
    info = grid_info(grid, index)
    print(format_board(grid), file=stream)

    print(file=stream)
    print("--- Grid ---", file=stream)
    print(f"  Size:          {info.rows} x {info.cols} ({info.total_cells} cells)", file=stream)
    print(f"  Blocks:        {info.blocks} ({info.blocks / info.total_cells * 100:.0f}%)", file=stream)
    if info.blank_cells:
        print(f"  Unfilled:      {info.blank_cells}", file=stream)

    print(file=stream)
    print("--- Words ---", file=stream)
    print(f"  Across:        {info.across_words}", file=stream)
    print(f"  Down:          {info.down_words}", file=stream)
    if info.length_distribution:
        dist_parts = [f"{l}:{c}" for l, c in info.length_distribution.items()]
        print(f"  Distribution:  {' '.join(dist_parts)}", file=stream)
    if info.unclued_words:
        print(f"  Without clues: {', '.join(info.unclued_words)}", file=stream)


__all__ = ["GridInfo", "format_blocks", "format_board", "grid_info", "print_grid_info"]
