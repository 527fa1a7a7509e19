"""Custom exception hierarchy for crossword filling."""


class CrosswordError(Exception):
    """Base exception for filler failures."""


class DictionaryLoadError(CrosswordError):
    """Raised when a dictionary or its preprocessed files cannot be read."""


class ParseError(DictionaryLoadError):
    """Raised in strict mode when a dictionary line or letter key is malformed."""


class LayoutError(CrosswordError):
    """Raised when a block layout is empty, ragged or addressed out of bounds."""


class SlotPlacementError(CrosswordError):
    """Raised when a word cannot be written into the requested slot."""


class ValidationError(CrosswordError):
    """Raised when the crossword integrity checks fail."""


class TaskCancelled(CrosswordError):
    """Raised inside background work once a stop has been requested."""
