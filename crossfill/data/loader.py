"""Background owner for dictionary preprocessing and loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from ..core.constants import CLUES_FILE_NAME, PROCESSED_FILE_NAME
from ..core.exceptions import DictionaryLoadError
from ..utils.logger import get_logger
from ..utils.tasks import TaskContext, TaskRunner, TaskState, TaskStatus
from .dictionary import IndexConfig, WordIndex
from .preprocess import DEFAULT_DATA_DIR, load_processed_dictionary, preprocess_dictionary


LOGGER = get_logger(__name__)


class WorkType(str, Enum):
    PREPROCESS = "PREPROCESS"
    LOAD = "LOAD"


@dataclass
class LoaderConfig:
    """Where the preprocessed pair lives and how it is indexed."""

    data_dir: Path = DEFAULT_DATA_DIR
    index: IndexConfig = field(default_factory=IndexConfig)

    @property
    def processed_path(self) -> Path:
        return Path(self.data_dir) / PROCESSED_FILE_NAME

    @property
    def clues_path(self) -> Path:
        return Path(self.data_dir) / CLUES_FILE_NAME


class DictionaryLoader:
    """Preprocesses word files and loads the resulting index off the caller's thread.

    Only one job runs at a time; starting another while one is active stops
    the first and queues the new one. Stopping a preprocess deletes the
    partially written index file, stopping a load leaves no index behind.
    """

    def __init__(self, config: Optional[LoaderConfig] = None, runner: Optional[TaskRunner] = None) -> None:
        self.config = config or LoaderConfig()
        self._runner = runner or TaskRunner("dictionary")
        self._index: Optional[WordIndex] = None
        self._type_of_work: Optional[WorkType] = None
        self._generation = 0
        self.processed_count = 0

    @property
    def index(self) -> Optional[WordIndex]:
        return self._index

    @property
    def has_loaded_words(self) -> bool:
        return self._index is not None

    @property
    def type_of_work(self) -> Optional[WorkType]:
        return self._type_of_work

    @property
    def is_processing(self) -> bool:
        return self._runner.is_processing

    @property
    def number_of_words(self) -> int:
        """Words in the loaded index; ``-1`` while nothing is loaded."""

        if self._index is None or self.is_processing:
            return -1
        return self._index.number_of_words

    def process_word_file(self, source_path: Path | str) -> None:
        source = Path(source_path)
        if not source.exists():
            raise DictionaryLoadError(f"Missing word file: {source}")
        processed = self.config.processed_path
        clues = self.config.clues_path
        index_config = self.config.index

        def work(context: TaskContext) -> int:
            return preprocess_dictionary(source, processed, clues, index_config, context)

        self._setup(WorkType.PREPROCESS, work)

    def load_preprocessed_file(self) -> None:
        processed = self.config.processed_path
        if not processed.exists():
            raise DictionaryLoadError(f"Missing preprocessed dictionary: {processed}")
        clues = self.config.clues_path
        index_config = self.config.index

        def work(context: TaskContext) -> WordIndex:
            return load_processed_dictionary(processed, clues, index_config, context)

        self._setup(WorkType.LOAD, work)

    def stop_processing(self) -> None:
        self._runner.stop()

    def check_progress(self) -> float:
        return self._runner.check_progress()

    def join(self) -> TaskStatus:
        return self._runner.join()

    def clear(self) -> None:
        self._index = None

    def _setup(self, type_of_work: WorkType, work) -> None:
        self.clear()
        self._type_of_work = type_of_work
        self._generation += 1
        generation = self._generation

        def finished(status: TaskStatus) -> None:
            self._finished(type_of_work, generation, status)

        self._runner.start(work, on_finished=finished)

    def _finished(self, type_of_work: WorkType, generation: int, status: TaskStatus) -> None:
        if status.state == TaskState.CANCELLED:
            if type_of_work == WorkType.PREPROCESS:
                self.config.processed_path.unlink(missing_ok=True)
            elif generation == self._generation:
                self.clear()
            LOGGER.info("%s stopped before finishing", type_of_work.value.lower())
            return
        if status.state != TaskState.DONE or generation != self._generation:
            return
        if type_of_work == WorkType.LOAD:
            self._index = status.result
            LOGGER.info("Dictionary loaded: %s words", self._index.number_of_words)
        else:
            self.processed_count = status.result
            LOGGER.info("Dictionary preprocessed: %s words", self.processed_count)


__all__ = ["DictionaryLoader", "LoaderConfig", "WorkType"]
