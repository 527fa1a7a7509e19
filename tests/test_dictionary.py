import unittest
from itertools import combinations

from crossfill.core.constants import BLANK, Direction
from crossfill.core.exceptions import ParseError
from crossfill.data.dictionary import (
    IndexConfig,
    WordIndex,
    add_to_key,
    key_matches,
    letter_keys,
    parse_key,
)
from crossfill.data.normalization import clean_word, is_placeable
from crossfill.engine.grid import CrosswordGrid


class KeyTests(unittest.TestCase):
    def test_add_to_key_joins_pairs(self) -> None:
        self.assertEqual(add_to_key("", 0, "C"), "0C")
        self.assertEqual(add_to_key("0C", 3, "T"), "0C_3T")

    def test_short_word_gets_every_combination_in_file_order(self) -> None:
        self.assertEqual(
            letter_keys("ABC"),
            ["0A", "0A_1B", "0A_1B_2C", "0A_2C", "1B", "1B_2C", "2C"],
        )
        self.assertEqual(len(letter_keys("CROSSES")), 2 ** 7 - 1)

    def test_long_word_gets_single_positions_only(self) -> None:
        keys = letter_keys("CROSSWORD")
        self.assertEqual(keys, ["0C", "1R", "2O", "3S", "4S", "5W", "6O", "7R", "8D"])

    def test_parse_key_splits_positions_and_letters(self) -> None:
        self.assertEqual(parse_key("0C_12T"), [(0, "C"), (12, "T")])
        self.assertTrue(key_matches("CAT", "0C_2T"))
        self.assertFalse(key_matches("CAT", "1C"))
        self.assertFalse(key_matches("CAT", "5T"))

    def test_parse_key_rejects_malformed_parts(self) -> None:
        for key in ("", "C", "XC", "0C__1A"):
            with self.assertRaises(ParseError):
                parse_key(key)


class NormalizationTests(unittest.TestCase):
    def test_clean_word_trims_and_upper_cases(self) -> None:
        self.assertEqual(clean_word("  cat \r"), "CAT")
        self.assertEqual(clean_word(""), "")

    def test_reserved_characters_are_not_placeable(self) -> None:
        self.assertTrue(is_placeable("CAT"))
        for word in ("", "C T", "C#T", "C_T", "C;T"):
            self.assertFalse(is_placeable(word), word)


class WordIndexTests(unittest.TestCase):
    WORDS = ["cat", "cot", "cut", "act", "tack", "rack", "crosswords", "crossroads", "stonewalls"]

    def setUp(self) -> None:
        self.index = WordIndex.from_words(self.WORDS)

    def test_words_are_bucketed_by_length_in_file_order(self) -> None:
        self.assertEqual(self.index.words_of_length(3), ("CAT", "COT", "CUT", "ACT"))
        self.assertEqual(self.index.lengths, [3, 4, 10])
        self.assertFalse(self.index.has_words_of_length(5))
        self.assertEqual(self.index.number_of_words, len(self.WORDS))
        self.assertIn("cat", self.index)

    def test_all_blank_slot_returns_the_whole_bucket(self) -> None:
        grid = CrosswordGrid.empty(1, 3)
        self.assertIs(
            self.index.possible_words(grid, 0, 0, 3, Direction.ACROSS),
            self.index.words_of_length(3),
        )

    def test_short_slot_lookup_uses_combined_key(self) -> None:
        grid = CrosswordGrid.empty(3, 3)
        grid.set_letter(0, 0, "C")
        grid.set_letter(2, 0, "T")
        self.assertEqual(self.index.possible_words(grid, 0, 0, 3, Direction.DOWN), ("CAT", "COT", "CUT"))
        self.assertEqual(self.index.match(["C", "U", BLANK]), ("CUT",))
        self.assertIsNone(self.index.match(["X", BLANK, BLANK]))

    def test_every_subset_of_known_letters_finds_the_word(self) -> None:
        for word in ("CAT", "TACK", "CROSSWORDS"):
            length = len(word)
            for size in range(length + 1):
                for positions in combinations(range(length), size):
                    pattern = [word[i] if i in positions else BLANK for i in range(length)]
                    matches = self.index.match(pattern)
                    self.assertIsNotNone(matches, pattern)
                    self.assertIn(word, matches)
                    for match in matches:
                        for i in positions:
                            self.assertEqual(match[i], word[i])

    def test_long_slot_lookup_is_an_exact_intersection(self) -> None:
        pattern = ["C", "R", "O", "S", "S", BLANK, BLANK, BLANK, BLANK, "S"]
        self.assertEqual(self.index.match(pattern), ("CROSSWORDS", "CROSSROADS"))
        pattern[5] = "W"
        self.assertEqual(self.index.match(pattern), ("CROSSWORDS",))
        pattern[0] = "S"
        self.assertIsNone(self.index.match(pattern))

    def test_missing_length_yields_none(self) -> None:
        grid = CrosswordGrid.empty(1, 5)
        self.assertIsNone(self.index.possible_words(grid, 0, 0, 5, Direction.ACROSS))

    def test_lookups_are_immutable(self) -> None:
        self.assertIsInstance(self.index.match(["C", BLANK, BLANK]), tuple)
        self.assertIsInstance(self.index.words_of_length(4), tuple)

    def test_custom_full_mapping_length(self) -> None:
        index = WordIndex.from_words(["CAT", "COT"], config=IndexConfig(max_length_for_full_word_mapping=2))
        self.assertEqual(index.mapped_words(3, "0C"), ("CAT", "COT"))
        self.assertIsNone(index.mapped_words(3, "0C_1A"))
        self.assertEqual(index.match(["C", "A", BLANK]), ("CAT",))


class BuildAndLoadTests(unittest.TestCase):
    def test_build_reads_clues_and_drops_duplicates(self) -> None:
        text = "cat\tFeline\tPet\n\ndog\tCanine\nCAT\tMouser\nbird\n"
        index = WordIndex.build(text)
        self.assertEqual(index.words_of_length(3), ("CAT", "DOG"))
        self.assertEqual(index.clues("cat"), ["Feline", "Pet", "Mouser"])
        self.assertEqual(index.clues("BIRD"), [])
        self.assertEqual(index.clues("FISH"), [])

    def test_unplaceable_words_are_skipped_with_a_warning(self) -> None:
        with self.assertLogs("crossfill.data.dictionary", level="WARNING"):
            index = WordIndex.build("ice cream\tDessert\ncat\n")
        self.assertEqual(index.number_of_words, 1)

    def test_strict_mode_raises(self) -> None:
        with self.assertRaises(ParseError):
            WordIndex.build("c#t\n", config=IndexConfig(strict=True))

    def test_load_rebuilds_the_same_lookups(self) -> None:
        processed = "\n".join(["CAT;" + ";".join(letter_keys("CAT")), "COT;" + ";".join(letter_keys("COT")), ""])
        index = WordIndex.load(processed, "CAT\tFeline\nCOT\tBed\n")
        self.assertEqual(index.words_of_length(3), ("CAT", "COT"))
        self.assertEqual(index.match(["C", BLANK, "T"]), ("CAT", "COT"))
        self.assertEqual(index.clues("COT"), ["Bed"])

    def test_load_skips_inconsistent_keys(self) -> None:
        processed = "CAT;0C;1A;2T\nDOG;0C;1O\nCOW;0C;;2W\n"
        with self.assertLogs("crossfill.data.dictionary", level="WARNING") as captured:
            index = WordIndex.load(processed)
        self.assertEqual(index.words_of_length(3), ("CAT",))
        self.assertEqual(len(captured.records), 2)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
