"""Read-only puzzle content and random selection without immediate repeats."""

import json
import os
import random
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from clueboard.errors import EmptyCatalog

DEFAULT_PUZZLE_PATH = os.path.join(os.path.dirname(__file__), '..', '..', 'data', 'puzzles.json')


@dataclass(frozen=True)
class CategoryPuzzle:
    name: str
    clues: Tuple[str, ...]

    def matches(self, guess: str) -> bool:
        return normalize_guess(guess) == normalize_guess(self.name)


@dataclass(frozen=True)
class WordPuzzle:
    word: str
    definitions: Tuple[str, str]

    def matches(self, guess: str) -> bool:
        return normalize_guess(guess) == normalize_guess(self.word)


def normalize_guess(text) -> str:
    return (text or '').strip().casefold()


def _pick_index(size: int, exclude_index: Optional[int], rng) -> int:
    rng = rng or random
    if size > 1 and exclude_index is not None and 0 <= exclude_index < size:
        # Draw from size - 1 slots and skip over the excluded one
        idx = rng.randrange(size - 1)
        return idx + 1 if idx >= exclude_index else idx
    return rng.randrange(size)


class PuzzleCatalog:
    """Immutable category and word puzzle sets shared by every session."""

    def __init__(self, categories: Dict[str, Sequence[CategoryPuzzle]], words: Sequence[WordPuzzle]):
        self._categories = {name: tuple(puzzles) for name, puzzles in categories.items()}
        self._words = tuple(words)

    @classmethod
    def from_dict(cls, data: dict) -> 'PuzzleCatalog':
        """Build a catalog from the JSON dataset layout.

        ``{"categories": {name: {answer: [clue, ...]}}, "words": [{"word": ..., "definitions": [d1, d2]}]}``
        """
        categories = {}
        for category, puzzles in (data.get('categories') or {}).items():
            built = []
            for answer, clues in puzzles.items():
                clues = tuple(str(c) for c in (clues or []))
                if not clues:
                    raise ValueError(f"puzzle {answer!r} in {category!r} has no clues")
                built.append(CategoryPuzzle(name=str(answer), clues=clues))
            categories[str(category)] = built
        words = []
        for entry in data.get('words') or []:
            definitions = tuple(str(d) for d in entry.get('definitions') or [])
            if len(definitions) != 2:
                raise ValueError(f"word {entry.get('word')!r} needs exactly two definitions")
            words.append(WordPuzzle(word=str(entry['word']), definitions=definitions))
        return cls(categories, words)

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(self._categories)

    def category_puzzle(self, category: str, index: int) -> CategoryPuzzle:
        return self._categories[category][index]

    def word_puzzle(self, index: int) -> WordPuzzle:
        return self._words[index]

    def select_category_puzzle(self, category: str, exclude_index: Optional[int] = None, rng=None) -> Tuple[int, CategoryPuzzle]:
        puzzles = self._categories.get(category) or ()
        if not puzzles:
            raise EmptyCatalog(f"no puzzles available for category {category!r}")
        idx = _pick_index(len(puzzles), exclude_index, rng)
        return idx, puzzles[idx]

    def select_word_puzzle(self, exclude_index: Optional[int] = None, rng=None) -> Tuple[int, WordPuzzle]:
        if not self._words:
            raise EmptyCatalog("no word puzzles available")
        idx = _pick_index(len(self._words), exclude_index, rng)
        return idx, self._words[idx]


def load_catalog(path: Optional[str] = None) -> PuzzleCatalog:
    with open(path or DEFAULT_PUZZLE_PATH, encoding='utf-8') as fh:
        return PuzzleCatalog.from_dict(json.load(fh))
