import unittest

from crossfill.data.dictionary import WordIndex
from crossfill.engine.grid import blocks_from_text
from crossfill.engine.validator import BoardValidator, validate_layout


class BoardValidatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = BoardValidator(WordIndex.from_words(["ABC", "DEF", "GHI", "ADG", "BEH", "CFI", "TEST"]))

    def test_valid_board(self) -> None:
        result = self.validator.validate("ABC\nDEF\nGHI\n")
        self.assertTrue(result.ok)
        self.assertEqual(result.messages, [])

    def test_unknown_word(self) -> None:
        result = self.validator.validate("ABC\nDEF\nGHX")
        self.assertFalse(result.ok)
        self.assertIn("GHX", result.messages[0])

    def test_blank_cell(self) -> None:
        result = self.validator.validate("AB_\nDEF\nGHI")
        self.assertFalse(result.ok)
        self.assertIn("Blank cell", result.messages[0])

    def test_duplicate_word(self) -> None:
        result = self.validator.validate("TEST\n####\nTEST")
        self.assertFalse(result.ok)
        self.assertIn("Duplicate", result.messages[0])

    def test_ragged_board(self) -> None:
        self.assertFalse(self.validator.validate("ABC\nDE").ok)


class LayoutValidationTests(unittest.TestCase):
    def test_symmetric_single_region(self) -> None:
        self.assertTrue(validate_layout(blocks_from_text("...\n.#.\n...")).ok)

    def test_asymmetric_layout(self) -> None:
        result = validate_layout(blocks_from_text("#..\n...\n..."))
        self.assertFalse(result.ok)
        self.assertIn("symmetric", result.messages[0])

    def test_split_layout(self) -> None:
        result = validate_layout(blocks_from_text("...\n###\n..."))
        self.assertFalse(result.ok)
        self.assertIn("2 separate regions", result.messages[0])

    def test_ragged_layout(self) -> None:
        self.assertFalse(validate_layout([[False, False], [False]]).ok)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
