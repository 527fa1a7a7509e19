import unittest

from crossfill.core.constants import Direction
from crossfill.core.exceptions import SlotPlacementError, TaskCancelled
from crossfill.core.models import UsedWords
from crossfill.data.dictionary import WordIndex
from crossfill.engine.finder import FinderConfig, WordFinder, WordRanking, try_word
from crossfill.engine.grid import CrosswordGrid
from crossfill.utils.tasks import TaskContext, TaskState


SQUARE_WORDS = ["ABC", "DEF", "GHI", "ADG", "BEH", "CFI"]


class TryWordTests(unittest.TestCase):
    def setUp(self) -> None:
        self.index = WordIndex.from_words(SQUARE_WORDS)
        self.grid = CrosswordGrid.empty(3)

    def test_accepts_words_that_leave_crossings_fillable(self) -> None:
        self.assertEqual(try_word(self.index, self.grid, "ABC", 0, 0, Direction.ACROSS), (True, 1))
        accepted, _ = try_word(self.index, self.grid, "ADG", 0, 0, Direction.ACROSS)
        self.assertTrue(accepted)

    def test_rejects_word_whose_crossing_has_only_itself(self) -> None:
        accepted, _ = try_word(self.index, self.grid, "DEF", 0, 0, Direction.ACROSS)
        self.assertFalse(accepted)

    def test_grid_and_used_words_are_restored(self) -> None:
        used = UsedWords(["GHI"])
        before = self.grid.render()
        for word in SQUARE_WORDS:
            try_word(self.index, self.grid, word, 0, 0, Direction.ACROSS, used=used)
            self.assertEqual(self.grid.render(), before)
        self.assertEqual(set(used), {"GHI"})

    def test_shallow_depth_trusts_crossing_candidates(self) -> None:
        config = FinderConfig(max_check_depth=1)
        self.assertTrue(try_word(self.index, self.grid, "ABC", 0, 0, Direction.ACROSS, config=config)[0])

    def test_word_already_in_place_has_zero_fit(self) -> None:
        self.grid.place_word(self.grid.slot_at(0, 0, Direction.ACROSS), "ABC")
        self.assertEqual(try_word(self.index, self.grid, "ABC", 0, 0, Direction.ACROSS), (True, 0))

    def test_length_mismatch_raises(self) -> None:
        with self.assertRaises(SlotPlacementError):
            try_word(self.index, self.grid, "ABCD", 0, 0, Direction.ACROSS)

    def test_stop_request_restores_letters(self) -> None:
        context = TaskContext()
        context.request_stop()
        with self.assertRaises(TaskCancelled):
            try_word(self.index, self.grid, "ABC", 0, 0, Direction.ACROSS, context=context)
        self.assertEqual(self.grid.render(), "___\n___\n___")


class WordRankingTests(unittest.TestCase):
    def test_higher_scores_first_ties_in_discovery_order(self) -> None:
        ranking = WordRanking()
        for word, score in [("A", 2), ("B", 3), ("C", 2), ("D", 1), ("E", 3)]:
            ranking.add(word, score)
        self.assertEqual(ranking.snapshot(), ["B", "E", "A", "C", "D"])
        self.assertEqual(ranking.scored()[0], ("B", 3))
        ranking.clear()
        self.assertEqual(len(ranking), 0)


class WordFinderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.index = WordIndex.from_words(SQUARE_WORDS)
        self.finder = WordFinder()

    def test_suggest_ranks_candidates_for_selected_slot(self) -> None:
        grid = CrosswordGrid.empty(3)
        slot = self.finder.suggest(self.index, grid, 0, 1, Direction.ACROSS)
        self.assertEqual(slot.id, "AC_0_0")
        self.assertEqual(self.finder.join().state, TaskState.DONE)
        self.assertEqual(self.finder.possible_words(), ["ABC", "ADG"])
        self.assertEqual(grid.render(), "___\n___\n___")

    def test_start_finding_words_skips_wrong_lengths(self) -> None:
        grid = CrosswordGrid.empty(3)
        self.finder.start_finding_words(
            self.index, ["ABCD", "DEF", "ABC"], grid, [], 0, 0, 3, Direction.ACROSS
        )
        self.assertEqual(self.finder.join().result, 1)
        self.assertEqual(self.finder.scored_words(), [("ABC", 1)])

    def test_filled_slot_is_returned_without_ranking(self) -> None:
        grid = CrosswordGrid.from_board("ABC\n___\n___")
        slot = self.finder.suggest(self.index, grid, 0, 2)
        self.assertEqual(slot.id, "AC_0_0")
        self.assertFalse(self.finder.is_processing)

    def test_missing_length_logs_error(self) -> None:
        grid = CrosswordGrid.empty(2)
        with self.assertLogs("crossfill.engine.finder", level="ERROR"):
            self.assertIsNone(self.finder.suggest(self.index, grid, 0, 0))

    def test_no_fitting_words(self) -> None:
        grid = CrosswordGrid.from_board("X__\n___\n___")
        self.assertIsNone(self.finder.suggest(self.index, grid, 0, 0))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
