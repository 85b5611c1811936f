"""
Sample Content - A small built-in claim deck.

Used by the CLI demo and the tests. Real decks come from an external
catalog; the engine only needs the Claim records.
"""

from __future__ import annotations
import random

from .engine_core.state import AI_GENERATED_SOURCE, MYTH_PATTERN, Claim, Verdict


SAMPLE_CLAIMS: tuple[Claim, ...] = (
    Claim(
        claim_id="sample-001",
        text="Water boils at a lower temperature at high altitude.",
        answer=Verdict.TRUE,
        difficulty="easy",
        subject="Science",
        source="expert-sourced",
        explanation="Lower air pressure lowers the boiling point.",
    ),
    Claim(
        claim_id="sample-002",
        text="Humans only use 10% of their brains.",
        answer=Verdict.FALSE,
        difficulty="easy",
        subject="Biology",
        source=AI_GENERATED_SOURCE,
        error_pattern=MYTH_PATTERN,
        explanation="Imaging shows activity across virtually the whole brain.",
    ),
    Claim(
        claim_id="sample-003",
        text="The Great Wall of China is visible from the Moon with the naked eye.",
        answer=Verdict.FALSE,
        difficulty="medium",
        subject="Geography",
        source=AI_GENERATED_SOURCE,
        error_pattern=MYTH_PATTERN,
        explanation="It is far too narrow to see from that distance.",
    ),
    Claim(
        claim_id="sample-004",
        text="Napoleon was unusually short for his time.",
        answer=Verdict.MIXED,
        difficulty="medium",
        subject="History",
        source="expert-sourced",
        explanation="He was about average height; the myth comes from unit confusion and propaganda.",
    ),
    Claim(
        claim_id="sample-005",
        text="Lightning never strikes the same place twice.",
        answer=Verdict.FALSE,
        difficulty="easy",
        subject="Science",
        source=AI_GENERATED_SOURCE,
        error_pattern=MYTH_PATTERN,
        explanation="Tall structures are struck many times a year.",
    ),
    Claim(
        claim_id="sample-006",
        text="Octopuses have three hearts.",
        answer=Verdict.TRUE,
        difficulty="medium",
        subject="Biology",
        source="expert-sourced",
        explanation="Two pump blood through the gills and one through the body.",
    ),
    Claim(
        claim_id="sample-007",
        text="Antibiotics are effective against viral infections.",
        answer=Verdict.FALSE,
        difficulty="easy",
        subject="Health",
        source=AI_GENERATED_SOURCE,
        error_pattern="Causal confusion",
        explanation="Antibiotics target bacteria, not viruses.",
    ),
    Claim(
        claim_id="sample-008",
        text="Coffee dehydrates you.",
        answer=Verdict.MIXED,
        difficulty="hard",
        subject="Health",
        source="expert-sourced",
        explanation="Caffeine is a mild diuretic, but the water in coffee more than offsets it.",
    ),
)


def sample_deck(
    rounds: int,
    difficulty: str = "mixed",
    seed: int | None = None,
) -> list[Claim]:
    """
    Pick claims for a game from the sample deck.

    Returns fewer than rounds claims if the deck is too small for the
    requested difficulty; the state machine rejects such a start.
    """
    pool = [
        c for c in SAMPLE_CLAIMS
        if difficulty == "mixed" or c.difficulty == difficulty
    ]
    rng = random.Random(seed)
    rng.shuffle(pool)
    return pool[:rounds]
