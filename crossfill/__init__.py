"""Crossword auto-filling package.

This package exposes the public API surface via:

- ``crossfill.data.dictionary.WordIndex``: positional-letter-key word lookups.
- ``crossfill.data.loader.DictionaryLoader``: background preprocessing and loading.
- ``crossfill.engine.grid.CrosswordGrid``: slot geometry and builder edits.
- ``crossfill.engine.solver.AutoFiller`` / ``GridFiller``: backtracking fills.
- ``crossfill.engine.finder.WordFinder``: ranked suggestions for one slot.
- ``crossfill.engine.blocks.BlockLayoutGenerator``: symmetric block layouts.
"""

from .data.dictionary import IndexConfig, WordIndex
from .data.loader import DictionaryLoader, LoaderConfig
from .engine.blocks import BlockConfig, BlockLayoutGenerator
from .engine.finder import FinderConfig, WordFinder
from .engine.grid import CrosswordGrid
from .engine.solver import AutoFiller, FillerConfig, GridFiller

__all__ = [
    "AutoFiller",
    "BlockConfig",
    "BlockLayoutGenerator",
    "CrosswordGrid",
    "DictionaryLoader",
    "FillerConfig",
    "FinderConfig",
    "GridFiller",
    "IndexConfig",
    "LoaderConfig",
    "WordFinder",
    "WordIndex",
]

__version__ = "0.1.0"
