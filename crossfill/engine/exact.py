"""CP-SAT exact filler using OR-Tools.

Where the backtracking filler only explores random orderings, CP-SAT either
finds a fill or proves that none exists for the layout and dictionary.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, List, Optional

from ortools.sat.python import cp_model

from ..core.models import WordSlot
from ..data.dictionary import WordIndex
from ..utils.logger import get_logger
from .grid import BlockLayout, CrosswordGrid


LOGGER = get_logger(__name__)


@dataclass
class ExactFillResult:
    board: str
    status: str
    proven_unsatisfiable: bool = False

    @property
    def solved(self) -> bool:
        return bool(self.board)


def solve_exact(
    index: WordIndex,
    blocks: BlockLayout,
    timeout: float = 30.0,
    num_workers: int = 4,
    seed: Optional[int] = None,
) -> ExactFillResult:
    """Fill every slot of ``blocks`` with distinct dictionary words via CP-SAT."""

    grid = CrosswordGrid(blocks)
    slots = grid.slots()
    if not slots:
        return ExactFillResult(board=grid.render(), status="OPTIMAL")

    for slot in slots:
        if not index.has_words_of_length(slot.length):
            LOGGER.info("No words of length %s; layout cannot be filled", slot.length)
            return ExactFillResult(board="", status="INFEASIBLE", proven_unsatisfiable=True)

    lengths = sorted({slot.length for slot in slots})
    alphabet = sorted({letter for length in lengths for word in index.words_of_length(length) for letter in word})
    letter_values = {letter: value for value, letter in enumerate(alphabet)}

    model = cp_model.CpModel()

    # ------------------------------------------------------------------
    # Cell letter variables
    # ------------------------------------------------------------------
    cell_vars: Dict[int, cp_model.IntVar] = {}
    for slot in slots:
        for r, c in slot.cells:
            position = grid.index(r, c)
            if position not in cell_vars:
                cell_vars[position] = model.new_int_var(0, len(alphabet) - 1, f"L_{r}_{c}")

    # ------------------------------------------------------------------
    # One allowed-assignments table per slot
    # ------------------------------------------------------------------
    tables: Dict[int, List[List[int]]] = {
        length: [[letter_values[letter] for letter in word] for word in index.words_of_length(length)]
        for length in lengths
    }
    for slot in slots:
        variables = [cell_vars[grid.index(r, c)] for r, c in slot.cells]
        model.add_allowed_assignments(variables, tables[slot.length])

    # ------------------------------------------------------------------
    # No word twice: same-length slots must differ somewhere
    # ------------------------------------------------------------------
    by_length: Dict[int, List[WordSlot]] = defaultdict(list)
    for slot in slots:
        by_length[slot.length].append(slot)
    for group in by_length.values():
        if len(group) > len(index.words_of_length(group[0].length)):
            LOGGER.info(
                "%s slots of length %s but only %s words",
                len(group),
                group[0].length,
                len(index.words_of_length(group[0].length)),
            )
            return ExactFillResult(board="", status="INFEASIBLE", proven_unsatisfiable=True)
        for first, second in combinations(group, 2):
            _add_differ_constraint(model, grid, cell_vars, first, second)

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = timeout
    solver.parameters.num_workers = num_workers
    if seed is not None:
        solver.parameters.random_seed = seed

    LOGGER.info(
        "CP-SAT: %d slots, %d cell vars, alphabet of %d letters, solving (timeout=%0.1fs)...",
        len(slots),
        len(cell_vars),
        len(alphabet),
        timeout,
    )
    status = solver.solve(model)
    status_name = solver.status_name(status)

    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        LOGGER.warning("CP-SAT: no solution found (status=%s)", status_name)
        return ExactFillResult(board="", status=status_name, proven_unsatisfiable=status == cp_model.INFEASIBLE)

    LOGGER.info("CP-SAT: solution found in %.2fs", solver.wall_time)
    for position, variable in cell_vars.items():
        grid.cells[position].letter = alphabet[solver.value(variable)]
    return ExactFillResult(board=grid.render(), status=status_name)


def _add_differ_constraint(
    model: cp_model.CpModel,
    grid: CrosswordGrid,
    cell_vars: Dict[int, cp_model.IntVar],
    first: WordSlot,
    second: WordSlot,
) -> None:
    """Ensure two same-length slots cannot contain identical words."""

    diffs = []
    for pos in range(first.length):
        a = grid.index(*first.cells[pos])
        b = grid.index(*second.cells[pos])
        if a == b:
            continue
        differs = model.new_bool_var(f"d_{first.id}_{second.id}_{pos}")
        model.add(cell_vars[a] != cell_vars[b]).only_enforce_if(differs)
        model.add(cell_vars[a] == cell_vars[b]).only_enforce_if(~differs)
        diffs.append(differs)
    if diffs:
        model.add_bool_or(diffs)


__all__ = ["ExactFillResult", "solve_exact"]
