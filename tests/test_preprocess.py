import tempfile
import threading
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from crossfill.core.constants import CLUES_FILE_NAME, PROCESSED_FILE_NAME
from crossfill.core.exceptions import DictionaryLoadError, ParseError, TaskCancelled
from crossfill.data.dictionary import IndexConfig
from crossfill.data.loader import DictionaryLoader, LoaderConfig, WorkType
from crossfill.data.preprocess import (
    ensure_processed_dictionary,
    load_processed_dictionary,
    preprocess_dictionary,
    preprocess_line,
    preprocess_words,
)
from crossfill.utils.tasks import TaskContext, TaskRunner, TaskState


SOURCE = "cat\tFeline\tPet\n\ndog\tCanine\nice cream\tDessert\n"


class PreprocessLineTests(unittest.TestCase):
    def test_processed_line_lists_word_then_keys(self) -> None:
        processed, clue_line = preprocess_line("cat\tFeline\r\n")
        self.assertEqual(processed, "CAT;0C;0C_1A;0C_1A_2T;0C_2T;1A;1A_2T;2T")
        self.assertEqual(clue_line, "cat\tFeline")

    def test_blank_and_unplaceable_lines(self) -> None:
        self.assertIsNone(preprocess_line("   "))
        with self.assertLogs("crossfill.data.preprocess", level="WARNING"):
            self.assertIsNone(preprocess_line("ice cream\tDessert"))
        with self.assertRaises(ParseError):
            preprocess_line("ice cream", IndexConfig(strict=True))

    def test_preprocess_words_keeps_lines_aligned(self) -> None:
        with self.assertLogs("crossfill.data.preprocess", level="WARNING"):
            processed, clues = preprocess_words(SOURCE)
        self.assertEqual([line.split(";")[0] for line in processed], ["CAT", "DOG"])
        self.assertEqual(clues, ["cat\tFeline\tPet", "dog\tCanine"])


class PreprocessFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.source = self.root / "words.txt"
        self.source.write_text(SOURCE, encoding="utf-8")
        self.processed = self.root / "data" / PROCESSED_FILE_NAME
        self.clues = self.root / "data" / CLUES_FILE_NAME

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_files_are_written_and_loadable(self) -> None:
        count = preprocess_dictionary(self.source, self.processed, self.clues)
        self.assertEqual(count, 2)
        self.assertEqual(self.clues.read_text(encoding="utf-8"), "cat\tFeline\tPet\ndog\tCanine\n")

        index = load_processed_dictionary(self.processed, self.clues)
        self.assertEqual(index.words_of_length(3), ("CAT", "DOG"))
        self.assertEqual(index.clues("cat"), ["Feline", "Pet"])

    def test_missing_source_raises(self) -> None:
        with self.assertRaises(DictionaryLoadError):
            preprocess_dictionary(self.root / "absent.txt", self.processed, self.clues)

    def test_cancelled_run_removes_index_file(self) -> None:
        context = TaskContext()
        context.request_stop()
        with self.assertRaises(TaskCancelled):
            preprocess_dictionary(self.source, self.processed, self.clues, context=context)
        self.assertFalse(self.processed.exists())

    def test_missing_clues_file_only_warns(self) -> None:
        preprocess_dictionary(self.source, self.processed, self.clues)
        self.clues.unlink()
        with self.assertLogs("crossfill.data.preprocess", level="WARNING"):
            index = load_processed_dictionary(self.processed, self.clues)
        self.assertEqual(index.number_of_words, 2)
        self.assertEqual(index.clues("CAT"), [])

    def test_missing_index_file_raises(self) -> None:
        with self.assertRaises(DictionaryLoadError):
            load_processed_dictionary(self.processed, self.clues)

    def test_ensure_processed_dictionary_reuses_existing_files(self) -> None:
        processed, clues = ensure_processed_dictionary(self.source, self.root / "data")
        self.assertTrue(processed.exists() and clues.exists())
        self.source.unlink()
        self.assertEqual(ensure_processed_dictionary(self.source, self.root / "data"), (processed, clues))


class DictionaryLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.source = self.root / "words.txt"
        self.source.write_text(SOURCE, encoding="utf-8")
        self.config = LoaderConfig(data_dir=self.root / "data")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_preprocess_then_load(self) -> None:
        loader = DictionaryLoader(self.config)
        self.assertEqual(loader.number_of_words, -1)

        loader.process_word_file(self.source)
        self.assertEqual(loader.type_of_work, WorkType.PREPROCESS)
        self.assertEqual(loader.join().state, TaskState.DONE)
        self.assertEqual(loader.processed_count, 2)
        self.assertFalse(loader.has_loaded_words)

        loader.load_preprocessed_file()
        self.assertEqual(loader.join().state, TaskState.DONE)
        self.assertTrue(loader.has_loaded_words)
        self.assertEqual(loader.number_of_words, 2)
        self.assertEqual(loader.index.clues("DOG"), ["Canine"])

    def test_missing_files_raise_before_starting(self) -> None:
        loader = DictionaryLoader(self.config)
        with self.assertRaises(DictionaryLoadError):
            loader.process_word_file(self.root / "absent.txt")
        with self.assertRaises(DictionaryLoadError):
            loader.load_preprocessed_file()
        self.assertFalse(loader.is_processing)

    def test_stopped_preprocess_leaves_no_index_file(self) -> None:
        gate = threading.Event()
        with ThreadPoolExecutor(max_workers=1) as executor:
            executor.submit(gate.wait)
            loader = DictionaryLoader(self.config, TaskRunner("dictionary", executor))
            loader.process_word_file(self.source)
            loader.stop_processing()
            gate.set()
            status = loader.join()
        self.assertEqual(status.state, TaskState.CANCELLED)
        self.assertFalse(self.config.processed_path.exists())
        self.assertEqual(loader.processed_count, 0)

    def test_stopped_load_leaves_no_index(self) -> None:
        preprocess_dictionary(self.source, self.config.processed_path, self.config.clues_path)
        gate = threading.Event()
        with ThreadPoolExecutor(max_workers=1) as executor:
            executor.submit(gate.wait)
            loader = DictionaryLoader(self.config, TaskRunner("dictionary", executor))
            loader.load_preprocessed_file()
            loader.stop_processing()
            gate.set()
            status = loader.join()
        self.assertEqual(status.state, TaskState.CANCELLED)
        self.assertFalse(loader.has_loaded_words)
        self.assertEqual(loader.number_of_words, -1)
        self.assertTrue(self.config.processed_path.exists())

    def test_new_work_supersedes_running_work(self) -> None:
        preprocess_dictionary(self.source, self.config.processed_path, self.config.clues_path)
        gate = threading.Event()
        with ThreadPoolExecutor(max_workers=1) as executor:
            executor.submit(gate.wait)
            loader = DictionaryLoader(self.config, TaskRunner("dictionary", executor))
            loader.load_preprocessed_file()
            loader.load_preprocessed_file()
            gate.set()
            status = loader.join()
        self.assertEqual(status.state, TaskState.DONE)
        self.assertEqual(loader.number_of_words, 2)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
