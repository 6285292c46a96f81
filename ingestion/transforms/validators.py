"""
Core validators for canonical price points.
Pure functions - no IO, network, or side effects.
"""

import math
from typing import List

from ingestion.models import PricePoint


class ValidationError(ValueError):
    """Raised when data validation fails."""
    pass


def validate_price_point(point: PricePoint) -> None:
    """
    Validate a canonical price point.

    Args:
        point: PricePoint to check

    Raises:
        ValidationError: If validation fails
    """
    for field in ['open', 'high', 'low', 'close']:
        value = getattr(point, field)
        if not isinstance(value, (int, float)):
            raise ValidationError(f"{field} must be numeric, got {type(value)}")

        if not math.isfinite(value):
            raise ValidationError(f"{field} must be finite, got {value}")

        if value <= 0:
            raise ValidationError(f"{field} must be positive, got {value}")

    # Price logic validations
    if point.high < point.low:
        raise ValidationError(f"high ({point.high}) must be >= low ({point.low})")

    if point.high < point.open:
        raise ValidationError(f"high ({point.high}) must be >= open ({point.open})")

    if point.high < point.close:
        raise ValidationError(f"high ({point.high}) must be >= close ({point.close})")

    if point.low > point.open:
        raise ValidationError(f"low ({point.low}) must be <= open ({point.open})")

    if point.low > point.close:
        raise ValidationError(f"low ({point.low}) must be <= close ({point.close})")


def check_price_date_monotonicity(points: List[PricePoint]) -> None:
    """
    Check that dates are strictly increasing.

    Args:
        points: Price points of one symbol in series order

    Raises:
        ValidationError: If dates are not monotonic or have duplicates
    """
    for previous, current in zip(points, points[1:]):
        if current.date == previous.date:
            raise ValidationError(f"Duplicate date found: {current.date}")

        if current.date < previous.date:
            raise ValidationError(f"Dates not monotonic: {previous.date} >= {current.date}")
