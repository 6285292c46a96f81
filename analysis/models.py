"""
Result value objects produced by the analysis core.
Plain frozen dataclasses; `to_dict` gives the JSON shape the CLI prints.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Any, List, Optional, Union

from analysis.calculations.results import CalculationError


def _jsonable(value: Any) -> Any:
    if isinstance(value, _Serializable):
        return value.to_dict()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, CalculationError):
        return {'error': value.reason, 'kind': value.kind.value}
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        # asdict would recurse into CalculationError and lose its tag
        return {name: _jsonable(getattr(self, name)) for name in self.__dataclass_fields__}


class Strength(Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class Direction(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class Trend(Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class OppositeStrength(Enum):
    LOW = "low"
    MODERATE = "moderate"
    STRONG = "strong"


class AlertType(Enum):
    HEDGE_OPPORTUNITY = "HEDGE_OPPORTUNITY"
    DIVERGENCE_WARNING = "DIVERGENCE_WARNING"
    DIVERGENCE_DETECTED = "DIVERGENCE_DETECTED"


@dataclass(frozen=True)
class AlignedSeries(_Serializable):
    aligned1: List[float] = field(default_factory=list)
    aligned2: List[float] = field(default_factory=list)
    common_dates: List[date] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.common_dates)


@dataclass(frozen=True)
class DatedReturn(_Serializable):
    """A daily return tagged with the date of the later price."""
    date: date
    value: float


@dataclass(frozen=True)
class CorrelationResult(_Serializable):
    coefficient: float
    strength: Strength
    direction: Direction


@dataclass(frozen=True)
class TrendResult(_Serializable):
    current: Union[float, CalculationError]
    previous: Union[float, CalculationError]
    trend: Trend


@dataclass(frozen=True)
class WhatIfResult(_Serializable):
    avg_move: float
    probability: int
    sample_count: int
    is_estimate: bool = False


@dataclass(frozen=True)
class PortfolioValuePoint(_Serializable):
    date: date
    portfolio_value: float
    daily_return: Optional[float] = None


@dataclass(frozen=True)
class PortfolioMetrics(_Serializable):
    sharpe_ratio: float
    volatility_pct: float
    beta: float
    total_return_pct: float


@dataclass(frozen=True)
class CorrelationMatrixEntry(_Serializable):
    asset1: str
    asset2: str
    coefficient: float
    row: int
    col: int


@dataclass(frozen=True)
class OppositePair(_Serializable):
    asset1: str
    asset1_change: float
    asset2: str
    asset2_change: float
    divergence_score: float
    strength: OppositeStrength


@dataclass(frozen=True)
class VolatilityAlert(_Serializable):
    asset1: str
    asset1_change: float
    asset2: str
    asset2_change: float
    divergence: float
    historical_correlation: Optional[float]
    alert_type: AlertType
    strength: OppositeStrength
    message: str
    market: Optional[str] = None


@dataclass(frozen=True)
class AssetComparison(_Serializable):
    """Everything the comparison workflow derives for one asset pair."""
    asset1: str
    asset2: str
    days: int
    correlation: Union[float, CalculationError]
    classification: Optional[CorrelationResult]
    trend: TrendResult
    insight: str
    what_if: WhatIfResult
    what_if_insight: str
    returns1: List[DatedReturn] = field(default_factory=list)
    returns2: List[DatedReturn] = field(default_factory=list)
