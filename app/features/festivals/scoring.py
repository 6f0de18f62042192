"""Confidence scoring for festival recommendations.

The rubric is data: each signal group lists its tiers from best to worst and
the first tier whose condition holds contributes its points. Group maxima
add up to 100, so the numeric score is already a percentage.

==========  ====  ==============================================
group       max   tiers
==========  ====  ==============================================
proximity   40    imminent 40, <=2 months 30, <=3 months 20
velocity    30    >1/day 30, >0.5/day 20, any recent sales 10
stock       20    in stock 20, otherwise 5
demand      10    High 10, Medium 5
==========  ====  ==============================================

Velocity boundaries are strict: exactly 0.5 or 1.0 units/day fall to the
lower tier.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from app.features.festivals.catalog import DemandLevel


class ConfidenceBucket(str, Enum):
    """Coarse confidence label shown to retailers."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        """Sort rank, higher is more confident."""
        return {"High": 3, "Medium": 2, "Low": 1}[self.value]


@dataclass(frozen=True)
class ConfidenceSignals:
    """Inputs to the rubric for one recommended item."""

    months_away: int
    is_imminent: bool
    has_recent_sales: bool
    velocity_score: float
    in_stock: bool
    demand_level: DemandLevel


@dataclass(frozen=True)
class Tier:
    """Points awarded when `applies` holds."""

    points: int
    applies: Callable[[ConfidenceSignals], bool]


@dataclass(frozen=True)
class SignalGroup:
    """A rubric group; the first applicable tier wins, else zero points."""

    name: str
    max_points: int
    tiers: tuple[Tier, ...]

    def points(self, signals: ConfidenceSignals) -> int:
        for tier in self.tiers:
            if tier.applies(signals):
                return tier.points
        return 0


RUBRIC: tuple[SignalGroup, ...] = (
    SignalGroup(
        name="proximity",
        max_points=40,
        tiers=(
            Tier(40, lambda s: s.is_imminent),
            Tier(30, lambda s: s.months_away <= 2),
            Tier(20, lambda s: s.months_away <= 3),
        ),
    ),
    SignalGroup(
        name="velocity",
        max_points=30,
        tiers=(
            Tier(30, lambda s: s.has_recent_sales and s.velocity_score > 1),
            Tier(20, lambda s: s.has_recent_sales and s.velocity_score > 0.5),
            Tier(10, lambda s: s.has_recent_sales),
        ),
    ),
    SignalGroup(
        name="stock",
        max_points=20,
        tiers=(
            Tier(20, lambda s: s.in_stock),
            Tier(5, lambda s: True),
        ),
    ),
    SignalGroup(
        name="demand",
        max_points=10,
        tiers=(
            Tier(10, lambda s: s.demand_level is DemandLevel.HIGH),
            Tier(5, lambda s: s.demand_level is DemandLevel.MEDIUM),
        ),
    ),
)

# (minimum percentage, bucket), checked top-down
BUCKET_THRESHOLDS: tuple[tuple[float, ConfidenceBucket], ...] = (
    (70.0, ConfidenceBucket.HIGH),
    (40.0, ConfidenceBucket.MEDIUM),
)


@dataclass(frozen=True)
class ConfidenceScore:
    """Scored result with a per-group breakdown."""

    bucket: ConfidenceBucket
    numeric_score: int
    breakdown: dict[str, int] = field(default_factory=dict)


def bucket_for(percentage: float) -> ConfidenceBucket:
    """Map a 0-100 percentage to its confidence bucket."""
    for minimum, bucket in BUCKET_THRESHOLDS:
        if percentage >= minimum:
            return bucket
    return ConfidenceBucket.LOW


def score(signals: ConfidenceSignals, rubric: tuple[SignalGroup, ...] = RUBRIC) -> ConfidenceScore:
    """Score one item's signals against the rubric."""
    breakdown = {group.name: group.points(signals) for group in rubric}
    total = sum(breakdown.values())
    max_total = sum(group.max_points for group in rubric)
    percentage = total / max_total * 100 if max_total else 0.0
    return ConfidenceScore(
        bucket=bucket_for(percentage),
        numeric_score=round(percentage),
        breakdown=breakdown,
    )
