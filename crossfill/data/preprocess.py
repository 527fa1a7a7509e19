"""Dictionary preprocessing: source word file to a cached letter-key index.

The source file holds one ``word<TAB>clue<TAB>clue...`` entry per line. The
preprocessed pair written next to each other in the data directory is

* ``letter_dictionary.txt``: ``word;key1;key2;...`` per line, and
* ``clues.txt``: the source lines verbatim, aligned with the first file.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Tuple

from ..core.constants import (
    CLUES_FILE_NAME,
    CLUE_SEPARATOR,
    PROCESSED_FIELD_SEPARATOR,
    PROCESSED_FILE_NAME,
)
from ..core.exceptions import DictionaryLoadError, ParseError, TaskCancelled
from ..utils.logger import get_logger
from ..utils.tasks import TaskContext
from .dictionary import IndexConfig, WordIndex, letter_keys
from .normalization import clean_word, is_placeable


LOGGER = get_logger(__name__)

DEFAULT_DATA_DIR = Path("local_db/crossword_builder")


def preprocess_line(
    line: str,
    config: Optional[IndexConfig] = None,
    context: Optional[TaskContext] = None,
) -> Optional[Tuple[str, str]]:
    """Return ``(processed_line, clue_line)`` for one source line.

    Blank lines yield ``None``. Words that cannot be placed in a grid are
    skipped with a warning, or raise :class:`ParseError` in strict mode.
    """

    config = config or IndexConfig()
    clue_line = line.rstrip("\r\n")
    raw_word = clue_line.split(CLUE_SEPARATOR)[0]
    word = clean_word(raw_word)
    if not word:
        return None
    if not is_placeable(word):
        message = f"word {raw_word.strip()!r} contains reserved characters"
        if config.strict:
            raise ParseError(message)
        LOGGER.warning("Skipping source entry: %s", message)
        return None

    keys = letter_keys(word, config.max_length_for_full_word_mapping, context)
    processed = PROCESSED_FIELD_SEPARATOR.join([word, *keys])
    return processed, clue_line


def preprocess_words(
    word_file_text: str,
    config: Optional[IndexConfig] = None,
    context: Optional[TaskContext] = None,
) -> Tuple[List[str], List[str]]:
    """Preprocess a whole source text held in memory."""

    processed_lines: List[str] = []
    clue_lines: List[str] = []
    lines = word_file_text.split("\n")
    total = len(lines)
    for number, line in enumerate(lines):
        if context is not None:
            context.raise_if_stopping()
            context.report(number / total)
        entry = preprocess_line(line, config, context)
        if entry is None:
            continue
        processed_lines.append(entry[0])
        clue_lines.append(entry[1])
    return processed_lines, clue_lines


def preprocess_dictionary(
    source_path: Path | str,
    processed_path: Path | str,
    clues_path: Path | str,
    config: Optional[IndexConfig] = None,
    context: Optional[TaskContext] = None,
) -> int:
    """Write the preprocessed index and clues files; return the entry count.

    A cancelled run removes the partially written index file so a later load
    never sees it.
    """

    source = Path(source_path)
    if not source.exists():
        raise DictionaryLoadError(f"Missing word file: {source}")
    processed = Path(processed_path)
    clues = Path(clues_path)
    processed.parent.mkdir(parents=True, exist_ok=True)
    clues.parent.mkdir(parents=True, exist_ok=True)

    config = config or IndexConfig()
    lines = source.read_text(encoding="utf-8").split("\n")
    total = len(lines)
    count = 0
    try:
        with processed.open("w", encoding="utf-8", newline="\n") as processed_handle, clues.open(
            "w", encoding="utf-8", newline="\n"
        ) as clues_handle:
            for number, line in enumerate(lines):
                if context is not None:
                    context.raise_if_stopping()
                entry = preprocess_line(line, config, context)
                if entry is not None:
                    processed_handle.write(entry[0] + "\n")
                    clues_handle.write(entry[1] + "\n")
                    count += 1
                if context is not None:
                    context.report(number / total)
    except TaskCancelled:
        LOGGER.info("Preprocessing cancelled; removing %s", processed)
        processed.unlink(missing_ok=True)
        raise

    LOGGER.info("Preprocessed %s words from %s into %s", count, source, processed)
    return count


def load_processed_dictionary(
    processed_path: Path | str,
    clues_path: Path | str | None = None,
    config: Optional[IndexConfig] = None,
    context: Optional[TaskContext] = None,
) -> WordIndex:
    """Load a :class:`WordIndex` from a preprocessed index and its clues file."""

    location = Path(processed_path)
    if not location.exists():
        raise DictionaryLoadError(f"Missing preprocessed dictionary: {location}")

    clues_text = ""
    if clues_path is not None:
        clues_location = Path(clues_path)
        if clues_location.exists():
            clues_text = clues_location.read_text(encoding="utf-8")
        else:
            LOGGER.warning("Clues file %s not found; words will have no clues", clues_location)

    return WordIndex.load(location.read_text(encoding="utf-8"), clues_text, config, context)


def ensure_processed_dictionary(
    source_path: Path | str,
    data_dir: Path | str = DEFAULT_DATA_DIR,
    config: Optional[IndexConfig] = None,
) -> Tuple[Path, Path]:
    """Make sure the preprocessed pair exists, generating it if necessary."""

    directory = Path(data_dir)
    processed = directory / PROCESSED_FILE_NAME
    clues = directory / CLUES_FILE_NAME
    if not (processed.exists() and clues.exists()):
        preprocess_dictionary(source_path, processed, clues, config)
    return processed, clues


__all__ = [
    "DEFAULT_DATA_DIR",
    "ensure_processed_dictionary",
    "load_processed_dictionary",
    "preprocess_dictionary",
    "preprocess_line",
    "preprocess_words",
]


def _cli() -> None:
    parser = argparse.ArgumentParser(description="Preprocess a word<TAB>clue file into a letter-key index")
    parser.add_argument("source", type=Path, help="Source word file")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DEFAULT_DATA_DIR,
        help="Directory receiving letter_dictionary.txt and clues.txt",
    )
    parser.add_argument("--strict", action="store_true", help="Fail on unplaceable words instead of skipping")
    args = parser.parse_args()

    config = IndexConfig(strict=args.strict)
    count = preprocess_dictionary(
        args.source,
        args.data_dir / PROCESSED_FILE_NAME,
        args.data_dir / CLUES_FILE_NAME,
        config,
    )
    print(f"Processed {count:,} words -> {args.data_dir}")


if __name__ == "__main__":  # pragma: no cover - convenience CLI
    _cli()
