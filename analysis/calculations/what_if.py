"""
What-if projection.
What typically happens to one asset when a correlated asset moves by X%?
"""

import math
from typing import List, Sequence

from analysis.calculations.correlation import pearson_correlation
from analysis.calculations.inputs import is_sequence
from analysis.calculations.results import value_or
from analysis.models import WhatIfResult


MATCH_TOLERANCE = 0.02  # ±2 percentage points around the hypothesised move


def what_if_analysis(
    returns1: Sequence[float],
    returns2: Sequence[float],
    move_percent: float
) -> WhatIfResult:
    """
    Estimate the conditional move of asset 2 given a move of asset 1.

    Scans every day where asset 1 moved within ±2 points of the hypothesis
    and averages asset 2 on those days. Without any matching day, falls back
    to a linear point estimate: move_percent × correlation.

    Args:
        returns1: Daily returns of the driving asset (decimals)
        returns2: Daily returns of the projected asset (same length)
        move_percent: Hypothesised move of asset 1 in percent (5 = +5%)

    Returns:
        WhatIfResult with avg_move in percent, probability of a same-direction
        move in percent, the number of matching days and the estimate flag
    """
    if not is_sequence(returns1) or not is_sequence(returns2):
        return WhatIfResult(avg_move=0.0, probability=0, sample_count=0)

    if len(returns1) != len(returns2) or len(returns1) == 0:
        return WhatIfResult(avg_move=0.0, probability=0, sample_count=0)

    threshold = move_percent / 100
    lower = threshold - MATCH_TOLERANCE
    upper = threshold + MATCH_TOLERANCE

    matches: List[float] = [
        move2 for move1, move2 in zip(returns1, returns2)
        if lower <= move1 <= upper
    ]

    if not matches:
        correlation = value_or(pearson_correlation(returns1, returns2), 0.0)
        return WhatIfResult(
            avg_move=round(move_percent * correlation, 2),
            probability=0,
            sample_count=0,
            is_estimate=True
        )

    avg_move = sum(matches) / len(matches)

    if move_percent >= 0:
        same_direction = sum(1 for m in matches if m > 0)
    else:
        same_direction = sum(1 for m in matches if m < 0)

    return WhatIfResult(
        avg_move=round(avg_move * 100, 2),
        probability=math.floor(same_direction / len(matches) * 100 + 0.5),
        sample_count=len(matches),
        is_estimate=False
    )


def what_if_insight(symbol1: str, symbol2: str, move_percent: float, result: WhatIfResult) -> str:
    """Human-readable summary of a what-if result."""
    move_direction = 'rises' if move_percent >= 0 else 'drops'
    result_direction = 'gained' if result.avg_move >= 0 else 'lost'

    if result.is_estimate:
        sign = '+' if result.avg_move >= 0 else ''
        return (
            f"Based on historical correlation, when {symbol1} {move_direction} {abs(move_percent)}%, "
            f"{symbol2} typically moves approximately {sign}{result.avg_move:.2f}%. "
            f"(Correlation-based estimate)"
        )

    if result.sample_count == 0:
        sign = '+' if move_percent >= 0 else ''
        return f"Insufficient historical data to analyze {symbol1} moves of {sign}{move_percent}%."

    return (
        f"When {symbol1} {move_direction} around {abs(move_percent)}%, {symbol2} has historically "
        f"{result_direction} {abs(result.avg_move):.2f}% on average "
        f"({result.sample_count} similar events, {result.probability}% same-direction probability)."
    )
