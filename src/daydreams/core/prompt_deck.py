"""Shuffled deck of prompt combinations built from enabled categories."""

from __future__ import annotations

import itertools
import logging
import random
from collections.abc import Callable, Sequence

from daydreams.domain.catalog import options_for
from daydreams.domain.models import Category

logger = logging.getLogger(__name__)

OptionsLookup = Callable[[Category], Sequence[str]]


def build_combinations(
    categories: Sequence[Category],
    options: OptionsLookup = options_for,
) -> list[dict[Category, str]]:
    """Return the full cross-product of option lists, one dict per combination.

    An empty category sequence yields a single empty combination.
    """
    ordered = list(dict.fromkeys(categories))
    lists = [tuple(options(category)) for category in ordered]
    return [dict(zip(ordered, values)) for values in itertools.product(*lists)]


class PromptDeck:
    """Draws every combination exactly once per pass, reshuffling between passes."""

    def __init__(
        self,
        categories: Sequence[Category],
        *,
        options: OptionsLookup = options_for,
        rng: random.Random | None = None,
    ) -> None:
        self._options = options
        self._rng = rng or random.Random()
        self._categories: tuple[Category, ...] = ()
        self._cards: list[dict[Category, str]] = []
        self._index = 0
        self.rebuild(categories)

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    @property
    def remaining(self) -> int:
        return len(self._cards) - self._index

    def __len__(self) -> int:
        return len(self._cards)

    def rebuild(self, categories: Sequence[Category]) -> None:
        self._categories = tuple(dict.fromkeys(categories))
        if not self._categories:
            logger.warning("deck.rebuild empty category set; deck is degenerate")
        self._cards = build_combinations(self._categories, self._options)
        self._rng.shuffle(self._cards)
        self._index = 0
        logger.info(
            "deck.rebuild categories=%s size=%s",
            [category.value for category in self._categories],
            len(self._cards),
        )

    def draw(self) -> dict[Category, str]:
        if self._index >= len(self._cards):
            logger.debug("deck.reshuffle size=%s", len(self._cards))
            self._rng.shuffle(self._cards)
            self._index = 0
        card = self._cards[self._index]
        self._index += 1
        return dict(card)
