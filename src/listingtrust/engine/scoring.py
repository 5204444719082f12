"""
Scoring primitives shared by the analyzers.

Analyzers never keep a running total. Each check emits an independent
Contribution; the score is clamp(base + sum(deltas), 0, 100), so the
order in which checks run cannot change the result.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence


SCORE_MIN = 0
SCORE_MAX = 100


@dataclass(frozen=True)
class Contribution:
    """A signed adjustment to a score and the check that produced it."""
    delta: float
    reason: str


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp(value: float, low: float = SCORE_MIN, high: float = SCORE_MAX) -> float:
    return max(low, min(high, value))


def combine(base: float, contributions: Iterable[Contribution]) -> int:
    """Sum contributions onto a base, clamp to [0, 100], round half up."""
    total = base + sum(c.delta for c in contributions)
    return round_half_up(clamp(total))


def tiered_text(score: float, tiers: Sequence[tuple[float, str]], fallback: str) -> str:
    """Return the text of the first tier whose lower bound the score meets."""
    for lower_bound, text in tiers:
        if score >= lower_bound:
            return text
    return fallback
