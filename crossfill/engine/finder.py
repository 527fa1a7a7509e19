"""Interactive word suggestions with bounded-depth lookahead.

For a selected slot every candidate word is tentatively placed and each
crossing slot it touches is checked for remaining candidates. Up to
``max_check_depth`` levels the check recurses into the crossing candidates
themselves; deeper, a non-empty candidate list is trusted for short slots.
Accepted words are ranked by their fit score, the average number of
candidates left for the crossings of the cells the word filled.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from ..core.constants import BLANK, MAX_CHECK_DEPTH, Direction
from ..core.exceptions import SlotPlacementError
from ..core.models import Cell, UsedWords, WordSlot
from ..data.dictionary import WordIndex
from ..utils.logger import get_logger
from ..utils.tasks import TaskContext, TaskRunner, TaskStatus
from .grid import CrosswordGrid


LOGGER = get_logger(__name__)


@dataclass
class FinderConfig:
    max_check_depth: int = MAX_CHECK_DEPTH


def try_word(
    index: WordIndex,
    grid: CrosswordGrid,
    word: str,
    start_row: int,
    start_col: int,
    direction: Direction,
    depth: int = 1,
    used: Optional[UsedWords] = None,
    config: Optional[FinderConfig] = None,
    context: Optional[TaskContext] = None,
) -> Tuple[bool, int]:
    """Return ``(accepted, fit_score)`` for placing ``word`` at the given slot.

    The grid's letters are restored before returning, whatever the outcome.
    """

    config = config or FinderConfig()
    used = used if used is not None else UsedWords()
    start = grid.cell(start_row, start_col)
    if start.run_length(direction) != len(word):
        raise SlotPlacementError(
            f"Word {word!r} does not fit the {start.run_length(direction)} cell run at {(start_row, start_col)}"
        )

    crossing = direction.crossing
    dr, dc = direction.step
    max_full = index.config.max_length_for_full_word_mapping
    changed: List[Cell] = []
    fit_total = 0
    accepted = True

    with used.checkout(word):
        try:
            for offset, letter in enumerate(word):
                cell = grid.cell(start_row + dr * offset, start_col + dc * offset)
                if cell.letter == BLANK:
                    cell.letter = letter
                    changed.append(cell)

            for cell in changed:
                if context is not None:
                    context.raise_if_stopping()
                length = cell.run_length(crossing)
                if length == 1:
                    continue
                cross_start = grid.cells[cell.start(crossing)]
                candidates = index.possible_words(grid, cross_start.row, cross_start.col, length, crossing)
                if candidates is None:
                    accepted = False
                    break
                fit_total += len(candidates)

                if depth >= config.max_check_depth and length <= max_full:
                    continue

                if not _any_candidate_fits(
                    index, grid, candidates, cross_start, crossing, depth, used, config, context
                ):
                    accepted = False
                    break
        finally:
            for cell in changed:
                cell.letter = BLANK

    fit_score = fit_total // len(changed) if changed else 0
    return accepted, fit_score


def _any_candidate_fits(
    index: WordIndex,
    grid: CrosswordGrid,
    candidates: Sequence[str],
    cross_start: Cell,
    crossing: Direction,
    depth: int,
    used: UsedWords,
    config: FinderConfig,
    context: Optional[TaskContext],
) -> bool:
    for candidate in candidates:
        if context is not None:
            context.raise_if_stopping()
        if candidate in used:
            continue
        if depth >= config.max_check_depth:
            return True
        accepted, _ = try_word(
            index, grid, candidate, cross_start.row, cross_start.col, crossing, depth + 1, used, config, context
        )
        if accepted:
            return True
    return False


class WordRanking:
    """Accepted words ordered by descending fit score; equal scores keep discovery order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._words: List[str] = []
        self._scores: List[int] = []

    def add(self, word: str, score: int) -> None:
        with self._lock:
            position = len(self._scores)
            for i, existing in enumerate(self._scores):
                if score > existing:
                    position = i
                    break
            self._words.insert(position, word)
            self._scores.insert(position, score)

    def clear(self) -> None:
        with self._lock:
            self._words.clear()
            self._scores.clear()

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._words)

    def scored(self) -> List[Tuple[str, int]]:
        with self._lock:
            return list(zip(self._words, self._scores))

    def __len__(self) -> int:
        with self._lock:
            return len(self._words)


class WordFinder:
    """Ranks the words that can go into one slot, in the background."""

    def __init__(self, config: Optional[FinderConfig] = None, runner: Optional[TaskRunner] = None) -> None:
        self.config = config or FinderConfig()
        self._runner = runner or TaskRunner("wordfinder")
        self._ranking = WordRanking()

    @property
    def is_processing(self) -> bool:
        return self._runner.is_processing

    def start_finding_words(
        self,
        index: WordIndex,
        words_to_try: Iterable[str],
        grid: CrosswordGrid,
        used_words: Iterable[str],
        start_row: int,
        start_col: int,
        length: int,
        direction: Direction,
    ) -> None:
        words = [word for word in words_to_try if len(word) == length]
        working_grid = grid.copy()
        used = UsedWords(used_words)
        config = self.config
        ranking = self._ranking

        def work(context: TaskContext) -> int:
            ranking.clear()
            total = len(words)
            for number, word in enumerate(words, start=1):
                context.raise_if_stopping()
                accepted, fit = try_word(
                    index, working_grid, word, start_row, start_col, direction, 1, used, config, context
                )
                if accepted and not context.stopping:
                    ranking.add(word, fit)
                context.report(number / total)
            return len(ranking)

        self._runner.start(work)

    def suggest(
        self,
        index: WordIndex,
        grid: CrosswordGrid,
        row: int,
        col: int,
        direction: Direction = Direction.ACROSS,
    ) -> Optional[WordSlot]:
        """Resolve a selected cell to its slot and start ranking words for it.

        Returns the slot, or ``None`` when there is nothing to rank.
        """

        slot = grid.select(row, col, direction)
        if slot is None:
            return None
        if grid.word_in(slot) is not None:
            LOGGER.debug("Slot %s already holds %s", slot.id, grid.word_in(slot))
            return slot
        if not index.has_words_of_length(slot.length):
            LOGGER.error("There are no words of length %s in the word dictionary", slot.length)
            return None
        words = index.possible_words(grid, slot.start_row, slot.start_col, slot.length, slot.direction)
        if words is None:
            LOGGER.info("There are no words that fit slot %s", slot.id)
            return None
        self.start_finding_words(
            index, words, grid, grid.used_words(), slot.start_row, slot.start_col, slot.length, slot.direction
        )
        return slot

    def possible_words(self) -> List[str]:
        return self._ranking.snapshot()

    def scored_words(self) -> List[Tuple[str, int]]:
        return self._ranking.scored()

    def stop_processing(self) -> None:
        self._runner.stop()

    def check_progress(self) -> float:
        return self._runner.check_progress()

    def join(self) -> TaskStatus:
        return self._runner.join()


__all__ = ["FinderConfig", "WordFinder", "WordRanking", "try_word"]
