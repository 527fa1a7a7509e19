"""CLI entrypoint for the crossword auto-filler."""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional

from crossfill.core.constants import Direction
from crossfill.core.exceptions import CrosswordError
from crossfill.data.dictionary import IndexConfig, WordIndex
from crossfill.data.loader import DictionaryLoader, LoaderConfig
from crossfill.data.preprocess import DEFAULT_DATA_DIR
from crossfill.engine.blocks import BlockConfig
from crossfill.engine.exact import solve_exact
from crossfill.engine.finder import WordFinder
from crossfill.engine.grid import CrosswordGrid, blocks_from_text
from crossfill.engine.solver import AutoFiller, FillerConfig
from crossfill.engine.validator import BoardValidator
from crossfill.utils.logger import configure_logging, get_logger
from crossfill.utils.pretty import format_blocks, print_grid_info


LOGGER = get_logger("crossfill.cli")

POLL_INTERVAL = 0.1


def poll_until_done(owner, label: str) -> None:
    """Poll ``owner.check_progress()`` until its task stops; Ctrl+C stops the task."""

    next_report = 0.1
    try:
        while owner.is_processing:
            progress = owner.check_progress()
            if progress >= next_report and owner.is_processing:
                LOGGER.info("%s: %.0f%%", label, progress * 100)
                next_report = progress + 0.1
            time.sleep(POLL_INTERVAL)
    except KeyboardInterrupt:
        LOGGER.warning("Interrupted; stopping %s", label)
        owner.stop_processing()
        while owner.is_processing:
            owner.check_progress()
            time.sleep(POLL_INTERVAL)
        raise SystemExit(130)


def load_index(data_dir: Path, strict: bool = False) -> WordIndex:
    loader = DictionaryLoader(LoaderConfig(data_dir=data_dir, index=IndexConfig(strict=strict)))
    loader.load_preprocessed_file()
    poll_until_done(loader, "loading dictionary")
    if loader.index is None:
        raise CrosswordError(f"No dictionary loaded from {data_dir}")
    return loader.index


def read_layout(args: argparse.Namespace, filler: AutoFiller) -> List[List[bool]]:
    if args.layout:
        return blocks_from_text(args.layout.read_text(encoding="utf-8"))
    blocks = filler.generate_random_blocks(args.rows, args.cols, args.max_neighbour_count, not args.allow_squares)
    LOGGER.info("Generated layout:\n%s", format_blocks(blocks))
    return blocks


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fill crossword grids from a word dictionary")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DEFAULT_DATA_DIR,
        help="Directory holding letter_dictionary.txt and clues.txt",
    )
    parser.add_argument("--strict", action="store_true", help="Fail on malformed dictionary lines")
    subparsers = parser.add_subparsers(dest="command", required=True)

    preprocess = subparsers.add_parser("preprocess", help="Build the letter-key index from a word<TAB>clue file")
    preprocess.add_argument("source", type=Path, help="Source word file")

    blocks = subparsers.add_parser("blocks", help="Generate a symmetric block layout")
    _add_layout_size_arguments(blocks)
    blocks.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    blocks.add_argument("--output", type=Path, help="Optional path for the layout text")

    fill = subparsers.add_parser("fill", help="Fill a layout with dictionary words")
    fill.add_argument("--layout", type=Path, help="Layout file (# for blocks); random blocks when omitted")
    _add_layout_size_arguments(fill)
    fill.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    fill.add_argument("--exact", action="store_true", help="Use the CP-SAT filler instead of backtracking")
    fill.add_argument("--timeout", type=float, default=30.0, help="CP-SAT time limit in seconds")
    fill.add_argument("--output", type=Path, help="Optional path for the filled board")

    suggest = subparsers.add_parser("suggest", help="Rank words for the slot through one cell")
    suggest.add_argument("board", type=Path, help="Board file (# blocks, letters, _ blanks)")
    suggest.add_argument("--row", type=int, required=True)
    suggest.add_argument("--col", type=int, required=True)
    suggest.add_argument(
        "--direction",
        type=str,
        choices=[d.value for d in Direction],
        default=Direction.ACROSS.value,
    )
    suggest.add_argument("--limit", type=int, default=20, help="How many ranked words to print")
    return parser


def _add_layout_size_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--rows", type=int, default=15, help="Grid height in cells")
    parser.add_argument("--cols", type=int, default=None, help="Grid width in cells (defaults to --rows)")
    parser.add_argument(
        "--max-neighbour-count",
        type=int,
        default=BlockConfig.max_neighbour_count,
        help="Largest allowed cluster of touching blocks",
    )
    parser.add_argument("--allow-squares", action="store_true", help="Allow 2x2 squares of blocks")


def run_preprocess(args: argparse.Namespace) -> None:
    loader = DictionaryLoader(LoaderConfig(data_dir=args.data_dir, index=IndexConfig(strict=args.strict)))
    loader.process_word_file(args.source)
    poll_until_done(loader, "preprocessing")
    print(f"Processed {loader.processed_count:,} words -> {args.data_dir}")


def run_blocks(args: argparse.Namespace) -> None:
    filler = AutoFiller(FillerConfig(seed=args.seed))
    blocks = filler.generate_random_blocks(args.rows, args.cols, args.max_neighbour_count, not args.allow_squares)
    print(format_blocks(blocks))
    if args.output:
        text = "\n".join("".join("#" if is_block else "_" for is_block in row) for row in blocks)
        args.output.write_text(text + "\n", encoding="utf-8")


def run_fill(args: argparse.Namespace) -> None:
    index = load_index(args.data_dir, args.strict)
    filler = AutoFiller(FillerConfig(seed=args.seed))
    blocks = read_layout(args, filler)

    if args.exact:
        result = solve_exact(index, blocks, timeout=args.timeout, seed=args.seed)
        board = result.board
        if not board:
            reason = "proven unsolvable" if result.proven_unsatisfiable else f"status {result.status}"
            raise SystemExit(f"No fill found ({reason})")
    else:
        filler.start(index, blocks)
        poll_until_done(filler, "filling")
        if filler.cancelled or filler.failed:
            raise SystemExit("No fill found; try another seed or layout")
        board = filler.completed_board

    grid = CrosswordGrid.from_board(board)
    print_grid_info(grid, index)
    validation = BoardValidator(index).validate(board)
    for message in validation.messages:
        LOGGER.warning("Validation: %s", message)
    if args.output:
        args.output.write_text(board + "\n", encoding="utf-8")


def run_suggest(args: argparse.Namespace) -> None:
    index = load_index(args.data_dir, args.strict)
    grid = CrosswordGrid.from_board(args.board.read_text(encoding="utf-8"))
    finder = WordFinder()
    slot = finder.suggest(index, grid, args.row, args.col, Direction(args.direction))
    if slot is None:
        raise SystemExit("No words can be suggested for that cell")
    existing = grid.word_in(slot)
    if existing is not None:
        print(f"{slot.id} already holds {existing}")
        return
    poll_until_done(finder, "ranking words")
    for word, score in finder.scored_words()[: args.limit]:
        clues = index.clues(word)
        print(f"{score:>6}  {word}" + (f"  ({clues[0]})" if clues else ""))


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = getattr(logging, args.log_level.upper(), logging.INFO)
    configure_logging(level)

    handlers = {
        "preprocess": run_preprocess,
        "blocks": run_blocks,
        "fill": run_fill,
        "suggest": run_suggest,
    }
    try:
        handlers[args.command](args)
    except CrosswordError as exc:
        parser.error(str(exc))


if __name__ == "__main__":  # pragma: no cover
    main()
