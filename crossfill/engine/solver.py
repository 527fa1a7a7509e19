"""Backtracking crossword filler.

The filler keeps a queue of obligations: slots, named by start cell and
direction, that must still receive a word. Placing a word queues every
crossing slot it touched, and each of those is checked for at least one
remaining candidate before the search descends.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..core.constants import BLANK, Direction
from ..core.models import Obligation, UsedWords
from ..data.dictionary import WordIndex
from ..utils.logger import get_logger
from ..utils.tasks import TaskContext, TaskRunner, TaskState, TaskStatus
from .blocks import BlockConfig, BlockLayoutGenerator
from .grid import BlockLayout, CrosswordGrid, check_layout


LOGGER = get_logger(__name__)


@dataclass
class FillerConfig:
    """Configuration for the heuristic filler."""

    seed: Optional[int] = None


class GridFiller:
    """Fills one block layout on a private working grid."""

    def __init__(
        self,
        index: WordIndex,
        blocks: BlockLayout,
        config: Optional[FillerConfig] = None,
        context: Optional[TaskContext] = None,
    ) -> None:
        self.index = index
        self.config = config or FillerConfig()
        self.context = context or TaskContext()
        self.grid = CrosswordGrid(blocks)
        self.rng = random.Random(self.config.seed)
        self.used = UsedWords()
        self._slot_cells = sum(1 for cell in self.grid.open_cells() if cell.across_len > 1 or cell.down_len > 1)
        self._filled = 0

    def fill(self) -> str:
        """Return the completed board text, or ``""`` when every branch failed.

        Raises :class:`TaskCancelled` when a stop is requested mid-search.
        """

        seed = self._seed()
        if seed is None:
            LOGGER.info("Layout has no slots; nothing to fill")
            return self.grid.render()
        if self._fill_cells([seed]):
            return self.grid.render()
        LOGGER.info("Search exhausted without completing the board")
        return ""

    def _seed(self) -> Optional[Obligation]:
        slot = self.grid.first_slot()
        if slot is None:
            return None
        return Obligation(self.grid.index(slot.start_row, slot.start_col), slot.direction)

    def _next_unmarked(self) -> Optional[Obligation]:
        # Slots no placed word ever crossed, e.g. in a region cut off by blocks.
        for slot in self.grid.slots():
            index = self.grid.index(slot.start_row, slot.start_col)
            if not self.grid.cells[index].has_word(slot.direction):
                return Obligation(index, slot.direction)
        return None

    def _fill_cells(self, queue: Sequence[Obligation]) -> bool:
        self.context.raise_if_stopping()

        position = 0
        while position < len(queue) and self.grid.cells[queue[position].cell].has_word(queue[position].direction):
            position += 1
        if position == len(queue):
            obligation = self._next_unmarked()
            if obligation is None:
                return True
            rest: List[Obligation] = []
        else:
            obligation = queue[position]
            rest = list(queue[position + 1:])

        cells = self.grid.cells
        start = cells[obligation.cell]
        direction = obligation.direction
        crossing = direction.crossing
        length = start.run_length(direction)
        step = 1 if direction == Direction.ACROSS else self.grid.cols

        possible = self.index.possible_words(self.grid, start.row, start.col, length, direction)
        if not possible:
            return False
        candidates = list(possible)

        for i in range(len(candidates)):
            self.context.raise_if_stopping()

            pick = self.rng.randrange(i, len(candidates))
            candidates[i], candidates[pick] = candidates[pick], candidates[i]
            word = candidates[i]
            if word in self.used:
                continue

            crossings: List[Obligation] = []
            changed: List[int] = []
            fits = True
            for offset in range(length):
                index = obligation.cell + step * offset
                cell = cells[index]
                if cell.letter != BLANK:
                    continue
                cell.letter = word[offset]
                changed.append(index)

                cross_len = cell.run_length(crossing)
                if cross_len == 1:
                    continue
                cross_start = cells[cell.start(crossing)]
                crossings.append(Obligation(cell.start(crossing), crossing))
                if not self.index.possible_words(self.grid, cross_start.row, cross_start.col, cross_len, crossing):
                    fits = False
                    break

            if fits:
                start.mark(direction, True)
                self._filled += len(changed)
                self.context.report(self._filled / self._slot_cells)
                with self.used.checkout(word):
                    if self._fill_cells(crossings + rest):
                        return True
                self._filled -= len(changed)
                start.mark(direction, False)

            for index in changed:
                cells[index].letter = BLANK

        return False


class AutoFiller:
    """Owns at most one background fill at a time.

    ``failed`` and ``cancelled`` are separate outcomes: the first means the
    search was exhausted, the second that :meth:`stop_processing` (or a newer
    :meth:`start`) interrupted it.
    """

    def __init__(self, config: Optional[FillerConfig] = None, runner: Optional[TaskRunner] = None) -> None:
        self.config = config or FillerConfig()
        self._runner = runner or TaskRunner("autofill")
        self._rng = random.Random(self.config.seed)
        self._generation = 0
        self.completed_board = ""
        self.cancelled = False
        self.failed = False

    @property
    def is_processing(self) -> bool:
        return self._runner.is_processing

    def start(self, index: WordIndex, blocks: BlockLayout) -> None:
        check_layout(blocks)
        layout = [list(row) for row in blocks]
        config = self.config
        self._generation += 1
        generation = self._generation
        self.completed_board = ""
        self.cancelled = False
        self.failed = False

        def work(context: TaskContext) -> str:
            return GridFiller(index, layout, config, context).fill()

        def finished(status: TaskStatus) -> None:
            self._finished(generation, status)

        self._runner.start(work, on_finished=finished)

    def stop_processing(self) -> None:
        self._runner.stop()

    def check_progress(self) -> float:
        return self._runner.check_progress()

    def join(self) -> TaskStatus:
        return self._runner.join()

    def generate_random_blocks(
        self,
        rows: int,
        cols: Optional[int] = None,
        max_neighbour_count: int = BlockConfig.max_neighbour_count,
        no_squares: bool = BlockConfig.no_squares,
    ) -> List[List[bool]]:
        """Synchronously generate a symmetric block layout."""

        generator = BlockLayoutGenerator(rows, cols, rng=self._rng)
        return generator.generate(max_neighbour_count, no_squares)

    def _finished(self, generation: int, status: TaskStatus) -> None:
        if generation != self._generation:
            return
        if status.state == TaskState.CANCELLED:
            self.cancelled = True
        elif status.state == TaskState.FAILED:
            self.failed = True
        elif status.state == TaskState.DONE:
            self.completed_board = status.result
            self.failed = not status.result
            if self.failed:
                LOGGER.info("Auto fill failed: no arrangement of words completed the board")


__all__ = ["AutoFiller", "FillerConfig", "GridFiller"]
