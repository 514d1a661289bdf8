"""
Stance classifier: composite score → ``InvestmentStance`` + static metadata.

Thresholds (evaluated top-down, first match wins)
-------------------------------------------------
    score >= 60   aggressive_plus
    score >= 55   aggressive
    score >= 50   moderate_aggressive
    score >= 45   neutral
    score >= 41   moderate_defensive
    otherwise     defensive
    NaN           unknown

Scores below 0 cannot come out of the composite engine; a finite negative
input is treated as the 0 floor and classified ``defensive``.

Labels, colours, allocations, actions and the 4/12-week outcome statistics
are published constants (2020–2026 weekly backtest sample), reproduced
verbatim. They are calibration data, not something derived from the history
table.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from market_timing.taxonomy.indicators import InvestmentStance

# (lower bound, stance), highest first.
STANCE_THRESHOLDS: tuple[tuple[float, InvestmentStance], ...] = (
    (60.0, InvestmentStance.AGGRESSIVE_PLUS),
    (55.0, InvestmentStance.AGGRESSIVE),
    (50.0, InvestmentStance.MODERATE_AGGRESSIVE),
    (45.0, InvestmentStance.NEUTRAL),
    (41.0, InvestmentStance.MODERATE_DEFENSIVE),
    (0.0,  InvestmentStance.DEFENSIVE),
)


def determine_stance(
    score: float,
    thresholds: tuple[tuple[float, InvestmentStance], ...] = STANCE_THRESHOLDS,
) -> InvestmentStance:
    """Classify a composite score. Only NaN yields ``UNKNOWN``."""
    if math.isnan(score):
        return InvestmentStance.UNKNOWN
    for lower_bound, stance in thresholds:
        if score >= lower_bound:
            return stance
    # Below the lowest bound: clamp to the floor bucket.
    return thresholds[-1][1] if thresholds else InvestmentStance.UNKNOWN


# ── Metadata ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Allocation:
    """Recommended split, as display strings (``"90%"`` or ``"-"``)."""

    stocks: str
    bonds: str
    cash: str


@dataclass(frozen=True)
class StanceInfo:
    label: str
    color: str
    description: str
    allocation: Allocation
    action: str


@dataclass(frozen=True)
class OutcomeStats:
    """Backtested outcome over one horizon.

    Attributes:
        up:       Share of periods that ended higher, percent.
        down:     Share of periods that ended lower, percent.
        avg_up:   Average gain of the rising periods, percent.
        avg_down: Average loss of the falling periods, percent (<= 0).
    """

    up: float
    down: float
    avg_up: float
    avg_down: float


@dataclass(frozen=True)
class StanceProbability:
    week4: OutcomeStats
    week12: OutcomeStats


STANCE_INFO: Mapping[InvestmentStance, StanceInfo] = MappingProxyType({
    InvestmentStance.AGGRESSIVE_PLUS: StanceInfo(
        label="매수 적기",
        color="#059669",
        description=(
            "목돈 투자에 가장 좋은 시기입니다. 2020년 코로나 폭락 때와 유사한 수준으로, "
            "10년에 몇 번 나타나는 드문 기회입니다. 과거 이런 시기에 목돈을 투자하면 "
            "3개월 후 100% 상승했고, 평균 +10% 이상의 수익을 기록했습니다."
        ),
        allocation=Allocation(stocks="90%", bonds="10%", cash="0%"),
        action="목돈이 있다면 지금 투자를 적극 고려하세요",
    ),
    InvestmentStance.AGGRESSIVE: StanceInfo(
        label="매수 우위",
        color="#16a34a",
        description=(
            "목돈 투자에 좋은 시기입니다. 시장에 공포심이 퍼져있어 주식이 저렴한 구간입니다. "
            "과거 이런 시기에 3개월 후 89%는 상승해 평균 +6.5% 수익을 거뒀습니다."
        ),
        allocation=Allocation(stocks="80%", bonds="15%", cash="5%"),
        action="목돈 투자를 고려해볼 만한 시점입니다",
    ),
    InvestmentStance.MODERATE_AGGRESSIVE: StanceInfo(
        label="소폭 매수 우위",
        color="#22c55e",
        description=(
            "목돈 투자에 나쁘지 않은 시기입니다. 과거 이런 시기에 3개월 후 90%는 상승해 "
            "평균 +5.3% 수익을 거뒀고, 하락 시에도 손실폭이 제한적이었습니다(-3.5%). "
            "목돈을 넣어도 괜찮은 구간입니다."
        ),
        allocation=Allocation(stocks="70%", bonds="20%", cash="10%"),
        action="목돈은 2~3회 분할 매수를 권장합니다",
    ),
    InvestmentStance.NEUTRAL: StanceInfo(
        label="중립",
        color="#f59e0b",
        description=(
            "목돈 투자를 서두를 필요가 없는 시기입니다. 과거 이런 시기에 3개월 후 51-67%는 "
            "상승했지만, 평균 수익은 0~1%에 불과했습니다. 동전 던지기 수준이라 "
            "\"지금이 기회다\"라고 말하기 어렵습니다."
        ),
        allocation=Allocation(stocks="60%", bonds="25%", cash="15%"),
        action="적립식 투자는 유지하되, 목돈은 더 좋은 기회를 기다리세요",
    ),
    InvestmentStance.MODERATE_DEFENSIVE: StanceInfo(
        label="소폭 방어 우위",
        color="#f97316",
        description=(
            "목돈 투자에 좋지 않은 시기입니다. 과거 이런 시기에 3개월 후 승률은 58%였지만 "
            "평균 수익은 0%입니다. 하락 시 -4.5% 손실이 발생했습니다."
        ),
        allocation=Allocation(stocks="50%", bonds="25%", cash="25%"),
        action="목돈 투자는 보류하고, 더 좋은 기회를 기다리세요",
    ),
    InvestmentStance.DEFENSIVE: StanceInfo(
        label="방어 우위",
        color="#ef4444",
        description=(
            "목돈 투자를 피해야 할 시기입니다. 과거 이런 시기에 3개월 후 승률은 8-37%로 "
            "낮았고, 평균 -3% 손실이 발생했습니다. 하락 시 -7% 이상 손실 위험이 있습니다."
        ),
        allocation=Allocation(stocks="40%", bonds="20%", cash="40%"),
        action="목돈은 현금으로 보유하고, 조정을 기다리세요",
    ),
    InvestmentStance.UNKNOWN: StanceInfo(
        label="판단 불가",
        color="#6b7280",
        description="현재 시장 데이터가 충분하지 않아 정확한 판단이 어렵습니다.",
        allocation=Allocation(stocks="-", bonds="-", cash="-"),
        action="-",
    ),
})

STANCE_PROBABILITIES: Mapping[InvestmentStance, StanceProbability] = MappingProxyType({
    InvestmentStance.AGGRESSIVE_PLUS: StanceProbability(
        week4=OutcomeStats(up=100, down=0, avg_up=12.6, avg_down=0),
        week12=OutcomeStats(up=100, down=0, avg_up=23.0, avg_down=0),
    ),
    InvestmentStance.AGGRESSIVE: StanceProbability(
        week4=OutcomeStats(up=100, down=0, avg_up=4.6, avg_down=0),
        week12=OutcomeStats(up=88, down=12, avg_up=11.8, avg_down=-0.8),
    ),
    InvestmentStance.MODERATE_AGGRESSIVE: StanceProbability(
        week4=OutcomeStats(up=72, down=28, avg_up=5.4, avg_down=-6.9),
        week12=OutcomeStats(up=86, down=14, avg_up=7.0, avg_down=-2.5),
    ),
    InvestmentStance.NEUTRAL: StanceProbability(
        week4=OutcomeStats(up=58, down=42, avg_up=4.2, avg_down=-4.3),
        week12=OutcomeStats(up=75, down=25, avg_up=7.4, avg_down=-5.7),
    ),
    InvestmentStance.MODERATE_DEFENSIVE: StanceProbability(
        week4=OutcomeStats(up=69, down=31, avg_up=2.7, avg_down=-4.6),
        week12=OutcomeStats(up=67, down=33, avg_up=5.5, avg_down=-7.5),
    ),
    InvestmentStance.DEFENSIVE: StanceProbability(
        week4=OutcomeStats(up=72, down=28, avg_up=1.9, avg_down=-2.2),
        week12=OutcomeStats(up=84, down=16, avg_up=4.1, avg_down=-5.7),
    ),
    InvestmentStance.UNKNOWN: StanceProbability(
        week4=OutcomeStats(up=0, down=0, avg_up=0, avg_down=0),
        week12=OutcomeStats(up=0, down=0, avg_up=0, avg_down=0),
    ),
})


def get_stance_info(stance: InvestmentStance) -> StanceInfo:
    return STANCE_INFO[stance]


def get_stance_probability(stance: InvestmentStance) -> StanceProbability:
    return STANCE_PROBABILITIES[stance]
