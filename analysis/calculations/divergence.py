"""
Divergence detection.
Cross-sectional scan of live percentage changes for opposite-moving pairs,
classified against a table of known historical correlations.
"""

from datetime import datetime, timezone
from typing import Dict, Any, List, Mapping, Optional, Sequence

from analysis.models import AlertType, OppositePair, OppositeStrength, VolatilityAlert
from ingestion.models import LiveQuote


MIN_MOVE_PCT = 0.5
STRONG_DIVERGENCE = 3.0
MODERATE_DIVERGENCE = 1.5
TOP_PAIRS = 10

WARNING_CORRELATION = 0.5
HEDGE_CORRELATION = 0.3


def _divergence_strength(score: float) -> OppositeStrength:
    if score > STRONG_DIVERGENCE:
        return OppositeStrength.STRONG
    if score >= MODERATE_DIVERGENCE:
        return OppositeStrength.MODERATE
    return OppositeStrength.LOW


def find_opposite_pairs(quotes: Sequence[LiveQuote]) -> List[OppositePair]:
    """
    Find asset pairs moving in opposite directions.

    Pairs where both moves are under 0.5% are ignored, as are pairs without
    strictly opposite signs (a flat asset never pairs). The asset with the
    negative change is always reported as asset1.

    Args:
        quotes: Live quotes carrying change_percent

    Returns:
        Up to 10 pairs sorted by divergence score, highest first

    Example:
        A -3%, B +2% -> one pair, divergence_score 5.0, strength strong
    """
    if not quotes or len(quotes) < 2:
        return []

    pairs = []

    for i in range(len(quotes)):
        for j in range(i + 1, len(quotes)):
            quote1 = quotes[i]
            quote2 = quotes[j]
            change1 = quote1.change_percent or 0.0
            change2 = quote2.change_percent or 0.0

            if abs(change1) < MIN_MOVE_PCT and abs(change2) < MIN_MOVE_PCT:
                continue

            is_opposite = (change1 > 0 and change2 < 0) or (change1 < 0 and change2 > 0)
            if not is_opposite:
                continue

            score = abs(change1 - change2)

            if change1 < 0:
                negative, neg_change, positive, pos_change = quote1, change1, quote2, change2
            else:
                negative, neg_change, positive, pos_change = quote2, change2, quote1, change1

            pairs.append(OppositePair(
                asset1=negative.symbol,
                asset1_change=round(neg_change, 2),
                asset2=positive.symbol,
                asset2_change=round(pos_change, 2),
                divergence_score=round(score, 2),
                strength=_divergence_strength(score)
            ))

    pairs.sort(key=lambda p: p.divergence_score, reverse=True)
    return pairs[:TOP_PAIRS]


def lookup_correlation(
    correlations: Mapping[str, float],
    symbol1: str,
    symbol2: str
) -> Optional[float]:
    """Historical correlation keyed 'A-B', trying both orderings."""
    value = correlations.get(f"{symbol1}-{symbol2}")
    if value is None:
        value = correlations.get(f"{symbol2}-{symbol1}")
    return value


def _direction_word(change: float) -> str:
    return 'up' if change >= 0 else 'down'


def classify_pair(pair: OppositePair, correlation: Optional[float]) -> VolatilityAlert:
    """
    Turn an opposite pair into an alert using its historical correlation.

    Unknown correlation -> DIVERGENCE_DETECTED
    |r| > 0.5           -> DIVERGENCE_WARNING (normally move together)
    |r| < 0.3           -> HEDGE_OPPORTUNITY (natural hedge)
    otherwise           -> DIVERGENCE_DETECTED (moderate divergence)
    """
    if correlation is None:
        alert_type = AlertType.DIVERGENCE_DETECTED
        message = (
            f"{pair.asset1} {_direction_word(pair.asset1_change)} {pair.asset1_change}% while "
            f"{pair.asset2} {_direction_word(pair.asset2_change)} {pair.asset2_change}%"
        )
    elif abs(correlation) > WARNING_CORRELATION:
        alert_type = AlertType.DIVERGENCE_WARNING
        message = (
            f"Unusual! {pair.asset1} and {pair.asset2} usually move together "
            f"({correlation:.2f}) but are currently diverging!"
        )
    elif abs(correlation) < HEDGE_CORRELATION:
        alert_type = AlertType.HEDGE_OPPORTUNITY
        message = (
            f"Natural hedge: {pair.asset1} ↓ {pair.asset1_change}% | "
            f"{pair.asset2} ↑ +{pair.asset2_change}%"
        )
    else:
        alert_type = AlertType.DIVERGENCE_DETECTED
        message = f"{pair.asset1} and {pair.asset2} showing {pair.divergence_score:.1f}% divergence today"

    return VolatilityAlert(
        asset1=pair.asset1,
        asset1_change=pair.asset1_change,
        asset2=pair.asset2,
        asset2_change=pair.asset2_change,
        divergence=pair.divergence_score,
        historical_correlation=correlation,
        alert_type=alert_type,
        strength=pair.strength,
        message=message
    )


def get_volatility_pair_alerts(
    quotes: Sequence[LiveQuote],
    known_correlations: Optional[Mapping[str, float]] = None
) -> List[VolatilityAlert]:
    """
    Combine live opposite moves with historical correlation into alerts.

    Args:
        quotes: Live quotes carrying change_percent
        known_correlations: Historical correlations keyed 'A-B'

    Returns:
        Alerts sorted by divergence, highest first
    """
    if known_correlations is None:
        known_correlations = {}

    alerts = [
        classify_pair(pair, lookup_correlation(known_correlations, pair.asset1, pair.asset2))
        for pair in find_opposite_pairs(quotes)
    ]

    alerts.sort(key=lambda a: a.divergence, reverse=True)
    return alerts


def select_diverse_pairs(alerts: Sequence[VolatilityAlert], count: int) -> List[VolatilityAlert]:
    """Pick up to count alerts in order, never using the same asset twice."""
    selected = []
    used_assets = set()

    for alert in alerts:
        if len(selected) >= count:
            break

        if alert.asset1 in used_assets or alert.asset2 in used_assets:
            continue

        selected.append(alert)
        used_assets.add(alert.asset1)
        used_assets.add(alert.asset2)

    return selected


def price_change_24h(quote: LiveQuote, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    """
    Derive the 24h price move of a quote from its change percent.

    price_24h_ago = current_price / (1 + change_percent / 100)

    Returns:
        Dictionary with current price, price 24h ago, change amount and
        percent (all rounded to 2 decimals), or None without a usable price
    """
    if quote.price is None or quote.change_percent is None:
        return None

    factor = 1 + quote.change_percent / 100
    if factor <= 0:
        return None

    if now is None:
        now = datetime.now(timezone.utc)

    price_24h_ago = quote.price / factor

    return {
        'symbol': quote.symbol,
        'current_price': round(quote.price, 2),
        'price_24h_ago': round(price_24h_ago, 2),
        'change_amount': round(quote.price - price_24h_ago, 2),
        'change_percent': round(quote.change_percent, 2),
        'timestamp': now.isoformat()
    }
