"""CLI for inspecting the prompt deck for a set of categories."""

from __future__ import annotations

import argparse
import random

from daydreams.core.prompt_deck import PromptDeck
from daydreams.domain.models import DEFAULT_CATEGORIES, Category, format_prompt


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print deck size and sample daydream prompts.")
    parser.add_argument(
        "--category",
        action="append",
        choices=[category.value for category in Category],
        help="Enabled category; repeat for several (default: park, ride, food).",
    )
    parser.add_argument("--samples", type=int, default=3)
    parser.add_argument("--seed", type=int, default=None)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Build the deck and print a few draws."""
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)
    if int(parsed.samples) < 0:
        raise SystemExit("--samples must be zero or more.")
    categories = (
        tuple(Category(value) for value in parsed.category)
        if parsed.category
        else DEFAULT_CATEGORIES
    )

    deck = PromptDeck(categories, rng=random.Random(parsed.seed))
    print(f"Categories: {', '.join(category.value for category in deck.categories)}")
    print(f"Deck size: {len(deck)}")
    for _ in range(int(parsed.samples)):
        print(f"- {format_prompt(deck.draw())}")


if __name__ == "__main__":
    main()
