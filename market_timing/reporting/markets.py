"""
Market-level statistics shown next to the composite score.

  compute_index_changes  — latest vs. previous stored close of each global index.
  rank_score             — "rank N of M" of today's score among history scores.
  composite_ranking      — the 1-year and all-history ranks together.
  distribution_position  — where a score sits on the historical bell curve
                           (mean 50, std 7), with a 상위/하위 percentile label.

History scores are always recomputed from each row's stored indicator values,
never read from the persisted ``composite_score`` column, so a change in the
engine's statistics is reflected immediately.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from market_timing.models.market import GlobalIndexRecord, IndexChange, MarketHistoryRecord
from market_timing.scoring.composite import calculate_composite_score
from market_timing.utils.math_utils import round_int
from market_timing.utils.time_utils import one_year_before

DISTRIBUTION_MEAN = 50.0
DISTRIBUTION_STD = 7.0


# ── Global index changes ──────────────────────────────────────────────────────


def compute_index_changes(records: Sequence[GlobalIndexRecord]) -> list[IndexChange]:
    """Latest close vs. previous close, per symbol.

    Symbols with fewer than two stored closes are skipped. Output follows the
    order in which symbols first appear in ``records``.
    """
    by_symbol: dict[str, list[GlobalIndexRecord]] = defaultdict(list)
    for record in records:
        by_symbol[record.symbol].append(record)

    changes: list[IndexChange] = []
    for symbol, closes in by_symbol.items():
        if len(closes) < 2:
            continue
        closes = sorted(closes, key=lambda r: r.date)
        latest, previous = closes[-1], closes[-2]
        change = latest.close_price - previous.close_price
        changes.append(
            IndexChange(
                symbol=symbol,
                name=latest.name,
                region=latest.region,
                price=latest.close_price,
                change=change,
                change_percent=change / previous.close_price * 100,
            )
        )
    return changes


# ── Ranking ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ScoreRank:
    """1-based rank of a score among ``total`` historical scores (1 = highest)."""

    rank: int
    total: int


@dataclass(frozen=True)
class CompositeRanking:
    one_year: ScoreRank
    all_history: ScoreRank


def history_scores(history: Sequence[MarketHistoryRecord]) -> list[float]:
    """Composite score of each history row, recomputed from its indicators."""
    return [calculate_composite_score(record.to_score_input()) for record in history]


def rank_score(scores: Sequence[float], current: float) -> ScoreRank:
    """Rank = number of strictly higher scores + 1; ties share the better rank."""
    higher = sum(1 for s in scores if s > current)
    return ScoreRank(rank=higher + 1, total=len(scores))


def composite_ranking(
    history: Sequence[MarketHistoryRecord],
    current: float,
    today: date,
) -> CompositeRanking:
    """Rank ``current`` within the last year and within all of ``history``."""
    cutoff = one_year_before(today)
    all_scores = history_scores(history)
    recent_scores = [
        score for record, score in zip(history, all_scores) if record.date >= cutoff
    ]
    return CompositeRanking(
        one_year=rank_score(recent_scores, current),
        all_history=rank_score(all_scores, current),
    )


# ── Distribution position ─────────────────────────────────────────────────────


def normal_cdf(z: float) -> float:
    """Standard normal CDF, ``(1 + erf(z / sqrt(2))) / 2``."""
    return 0.5 * (1.0 + math.erf(z / math.sqrt(2.0)))


@dataclass(frozen=True)
class DistributionPosition:
    """Position of a score on the historical distribution.

    Attributes:
        z: ``(score - 50) / 7``.
        cdf: Normal CDF at ``z``.
        label: ``"상위 N%"`` at or above the median, ``"하위 N%"`` below it.
    """

    z: float
    cdf: float
    label: str

    @property
    def z_display(self) -> str:
        return f"{'+' if self.z >= 0 else ''}{self.z:.2f}"


def distribution_position(
    score: float,
    mean: float = DISTRIBUTION_MEAN,
    std: float = DISTRIBUTION_STD,
) -> DistributionPosition:
    z = (score - mean) / std
    cdf = normal_cdf(z)
    if z >= 0:
        label = f"상위 {round_int((1 - cdf) * 100)}%"
    else:
        label = f"하위 {round_int(cdf * 100)}%"
    return DistributionPosition(z=z, cdf=cdf, label=label)
