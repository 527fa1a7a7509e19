"""Word index: length buckets plus positional-letter-key lookups.

A positional-letter-key names one or more known letters of a word by
position, e.g. ``0C_3T`` for a word with ``C`` at index 0 and ``T`` at
index 3. Short words are indexed under every combination of their letters so
a partially filled slot is answered by a single dictionary lookup; long words
are indexed under single positions only and their lookups intersect the
per-position lists.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import (
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    Set,
    Tuple,
)

from ..core.constants import (
    BLANK,
    CLUE_SEPARATOR,
    KEY_SEPARATOR,
    MAX_LENGTH_FOR_FULL_WORD_MAPPING,
    PROCESSED_FIELD_SEPARATOR,
    Direction,
)
from ..core.exceptions import ParseError
from ..utils.logger import get_logger
from ..utils.tasks import TaskContext
from .normalization import clean_word, is_placeable


LOGGER = get_logger(__name__)

# How often (in lines) long loops report progress and check for a stop request.
_PROGRESS_INTERVAL = 256


class LetterGrid(Protocol):
    """Anything that can answer which letter sits in a cell."""

    def letter(self, row: int, col: int) -> str:
        ...


@dataclass
class IndexConfig:
    """Configuration for building and loading a :class:`WordIndex`."""

    max_length_for_full_word_mapping: int = MAX_LENGTH_FOR_FULL_WORD_MAPPING
    strict: bool = False
    validate_keys: bool = True


# ----------------------------------------------------------------------
# Key helpers
# ----------------------------------------------------------------------
def add_to_key(current_key: str, position: int, letter: str) -> str:
    """Extend ``current_key`` with one ``(position, letter)`` pair."""

    if current_key:
        return f"{current_key}{KEY_SEPARATOR}{position}{letter}"
    return f"{position}{letter}"


def letter_keys(
    word: str,
    max_full_length: int = MAX_LENGTH_FOR_FULL_WORD_MAPPING,
    context: Optional[TaskContext] = None,
) -> List[str]:
    """Return every key ``word`` is indexed under, in preprocessed-file order.

    Words of at most ``max_full_length`` letters yield one key per non-empty
    subset of positions (``2**n - 1`` keys); longer words yield one key per
    position.
    """

    keys: List[str] = []
    _collect_keys(word, 0, "", max_full_length, keys, context)
    return keys


def _collect_keys(
    word: str,
    index: int,
    current_key: str,
    max_full_length: int,
    keys: List[str],
    context: Optional[TaskContext],
) -> None:
    for position in range(index, len(word)):
        if context is not None:
            context.raise_if_stopping()
        key = add_to_key(current_key, position, word[position])
        keys.append(key)
        if len(word) <= max_full_length and position + 1 < len(word):
            _collect_keys(word, position + 1, key, max_full_length, keys, context)


def parse_key(key: str) -> List[Tuple[int, str]]:
    """Split a key into ``(position, letter)`` pairs.

    The letter is the last character of each part, the position everything
    before it.
    """

    if not key:
        raise ParseError("Empty letter key")
    pairs: List[Tuple[int, str]] = []
    for part in key.split(KEY_SEPARATOR):
        if len(part) < 2 or not part[:-1].isdigit():
            raise ParseError(f"Malformed letter key part {part!r} in {key!r}")
        pairs.append((int(part[:-1]), part[-1]))
    return pairs


def key_matches(word: str, key: str) -> bool:
    """Whether every pair in ``key`` agrees with ``word``."""

    for position, letter in parse_key(key):
        if position >= len(word) or word[position] != letter:
            return False
    return True


def parse_clue_lines(clues_text: str) -> Dict[str, List[str]]:
    """Map each word of a ``word<TAB>clue...`` text to its clue list."""

    clues: Dict[str, List[str]] = {}
    for line in clues_text.split("\n"):
        line = line.rstrip("\r")
        fields = line.split(CLUE_SEPARATOR)
        word = clean_word(fields[0])
        if not word:
            continue
        clues.setdefault(word, []).extend(clue for clue in fields[1:] if clue.strip())
    return clues


class WordIndex:
    """Immutable-after-build lookup tables over a word list.

    Build with :meth:`build` (source dictionary text) or :meth:`load`
    (preprocessed index text); the constructor yields an empty index.
    """

    def __init__(self, config: Optional[IndexConfig] = None) -> None:
        self.config = config or IndexConfig()
        self._by_length: Dict[int, Sequence[str]] = defaultdict(list)
        self._by_pattern: Dict[int, Dict[str, Sequence[str]]] = defaultdict(lambda: defaultdict(list))
        self._clues: Dict[str, List[str]] = {}
        self._words: Set[str] = set()
        self._key_sets: Dict[Tuple[int, str], FrozenSet[str]] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def build(
        cls,
        word_file_text: str,
        clues_file_text: Optional[str] = None,
        config: Optional[IndexConfig] = None,
        context: Optional[TaskContext] = None,
    ) -> "WordIndex":
        """Index a ``word<TAB>clue...`` dictionary held in memory."""

        index = cls(config)
        max_full = index.config.max_length_for_full_word_mapping
        lines = word_file_text.split("\n")
        total = len(lines)
        for number, line in enumerate(lines):
            if context is not None and number % _PROGRESS_INTERVAL == 0:
                context.raise_if_stopping()
                context.report(number / total)
            word = index._word_from_source_line(line, number + 1)
            if word is None:
                continue
            index._add(word, letter_keys(word, max_full, context))

        index._clues = parse_clue_lines(clues_file_text if clues_file_text is not None else word_file_text)
        index._freeze()
        LOGGER.info("Indexed %s words across %s lengths", index.number_of_words, len(index._by_length))
        return index

    @classmethod
    def load(
        cls,
        processed_text: str,
        clues_text: str = "",
        config: Optional[IndexConfig] = None,
        context: Optional[TaskContext] = None,
    ) -> "WordIndex":
        """Rebuild an index from ``word;key1;key2...`` lines."""

        index = cls(config)
        lines = processed_text.split("\n")
        total = len(lines)
        for number, line in enumerate(lines):
            if context is not None and number % _PROGRESS_INTERVAL == 0:
                context.raise_if_stopping()
                context.report(number / total)
            fields = line.replace("\r", "").split(PROCESSED_FIELD_SEPARATOR)
            word = fields[0]
            if not word:
                continue
            keys = fields[1:]
            problem = index._check_processed_line(word, keys)
            if problem:
                index._reject(f"line {number + 1}: {problem}")
                continue
            index._add(word, keys)

        index._clues = parse_clue_lines(clues_text)
        index._freeze()
        LOGGER.info("Loaded %s preprocessed words", index.number_of_words)
        return index

    @classmethod
    def from_words(cls, words: Iterable[str], config: Optional[IndexConfig] = None) -> "WordIndex":
        """Index a plain word list without clues."""

        return cls.build("\n".join(words), config=config)

    def _word_from_source_line(self, line: str, line_number: int) -> Optional[str]:
        fields = line.rstrip("\r").split(CLUE_SEPARATOR)
        word = clean_word(fields[0])
        if not word:
            return None
        if not is_placeable(word):
            self._reject(f"line {line_number}: word {fields[0].strip()!r} contains reserved characters")
            return None
        return word

    def _check_processed_line(self, word: str, keys: Sequence[str]) -> Optional[str]:
        if not is_placeable(word) or word != clean_word(word):
            return f"word {word!r} is not a clean placeable word"
        if not keys or not all(keys):
            return f"word {word!r} has empty letter keys"
        if self.config.validate_keys:
            try:
                for key in keys:
                    if not key_matches(word, key):
                        return f"key {key!r} does not match word {word!r}"
            except ParseError as exc:
                return str(exc)
        return None

    def _reject(self, message: str) -> None:
        if self.config.strict:
            raise ParseError(message)
        LOGGER.warning("Skipping malformed dictionary entry (%s)", message)

    def _add(self, word: str, keys: Iterable[str]) -> None:
        if self._frozen:
            raise RuntimeError("WordIndex is immutable once built")
        if word in self._words:
            LOGGER.debug("Ignoring duplicate word %s", word)
            return
        self._words.add(word)
        length = len(word)
        self._by_length[length].append(word)  # type: ignore[union-attr]
        mapping = self._by_pattern[length]
        for key in keys:
            mapping[key].append(word)  # type: ignore[union-attr]

    def _freeze(self) -> None:
        self._by_length = {length: tuple(words) for length, words in self._by_length.items()}
        self._by_pattern = {
            length: {key: tuple(words) for key, words in mapping.items()}
            for length, mapping in self._by_pattern.items()
        }
        self._frozen = True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def number_of_words(self) -> int:
        return len(self._words)

    @property
    def lengths(self) -> List[int]:
        return sorted(self._by_length)

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and clean_word(word) in self._words

    def has_words_of_length(self, length: int) -> bool:
        return length in self._by_length

    def words_of_length(self, length: int) -> Sequence[str]:
        return self._by_length.get(length, ())

    def mapped_words(self, length: int, key: str) -> Optional[Sequence[str]]:
        mapping = self._by_pattern.get(length)
        if mapping is None:
            return None
        return mapping.get(key)

    def clues(self, word: str) -> List[str]:
        """Clues recorded for ``word``; an empty list when there are none."""

        return list(self._clues.get(clean_word(word), ()))

    def possible_words(
        self,
        grid: LetterGrid,
        start_row: int,
        start_col: int,
        length: int,
        direction: Direction,
    ) -> Optional[Sequence[str]]:
        """Words that fit the slot's current letters, or ``None`` when none can.

        The returned sequence is shared with the index and must not be
        modified.
        """

        if not self.has_words_of_length(length):
            return None
        dr, dc = direction.step
        pattern = [grid.letter(start_row + dr * i, start_col + dc * i) for i in range(length)]
        return self.match(pattern)

    def match(self, pattern: Sequence[str]) -> Optional[Sequence[str]]:
        """Lookup over an explicit pattern of letters and :data:`BLANK` cells."""

        length = len(pattern)
        if not self.has_words_of_length(length):
            return None

        if length > self.config.max_length_for_full_word_mapping:
            return self._intersect_positions(pattern)

        key = ""
        for position, letter in enumerate(pattern):
            if letter != BLANK:
                key = add_to_key(key, position, letter)
        if not key:
            return self._by_length[length]
        return self.mapped_words(length, key)

    def _intersect_positions(self, pattern: Sequence[str]) -> Optional[Sequence[str]]:
        length = len(pattern)
        keys = [add_to_key("", position, letter) for position, letter in enumerate(pattern) if letter != BLANK]
        if not keys:
            return self._by_length[length]

        candidates: List[Tuple[Sequence[str], str]] = []
        for key in keys:
            words = self.mapped_words(length, key)
            if not words:
                return None
            candidates.append((words, key))
        if len(candidates) == 1:
            return candidates[0][0]

        # Walk the most selective list, keeping dictionary order.
        candidates.sort(key=lambda item: len(item[0]))
        base = candidates[0][0]
        others = [self._key_set(length, key) for _, key in candidates[1:]]
        matches = tuple(word for word in base if all(word in other for other in others))
        return matches or None

    def _key_set(self, length: int, key: str) -> FrozenSet[str]:
        cached = self._key_sets.get((length, key))
        if cached is None:
            cached = frozenset(self.mapped_words(length, key) or ())
            self._key_sets[(length, key)] = cached
        return cached


__all__ = [
    "IndexConfig",
    "LetterGrid",
    "WordIndex",
    "add_to_key",
    "key_matches",
    "letter_keys",
    "parse_clue_lines",
    "parse_key",
]
