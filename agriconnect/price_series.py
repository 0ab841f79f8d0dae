# agriconnect/price_series.py
"""
Rolling price history for market items.

Every market item keeps a short daily price series, oldest point first.
A new item gets a synthetic history scattered around its opening price,
and each later price change appends a point for today, dropping the
oldest points once the window is full.

Nothing in here touches the database: every function takes values and
returns new values, so the API layer decides what gets persisted.
"""
import math
import random
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

MAX_POINTS = 7
PRICE_VARIANCE = 0.15


class InvalidInput(ValueError):
    """Raised when a price series operation is handed data it must not accept."""


class RandomSource(Protocol):
    def uniform(self, a: float, b: float) -> float: ...


class PricedItem(Protocol):
    current_price: float
    region: str
    category: str


@dataclass(frozen=True)
class PricePoint:
    price: float
    date: date


@dataclass(frozen=True)
class AggregateStats:
    total_items: int = 0
    average_price: float = 0.0
    region_count: int = 0
    category_breakdown: Dict[str, int] = field(default_factory=dict)
    regions: List[str] = field(default_factory=list)


def round2(value: float) -> float:
    """Round to cents, halves going up."""
    return math.floor(value * 100 + 0.5) / 100


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def generate_series(
    current_price: float,
    days: int = MAX_POINTS,
    rng: Optional[RandomSource] = None,
    today: Optional[date] = None,
    variance: float = PRICE_VARIANCE,
) -> Tuple[PricePoint, ...]:
    """
    Builds a synthetic daily history ending today.

    Each point is the current price moved by a uniform random factor in
    [-variance, +variance], rounded to cents and floored at zero.

    Args:
        current_price: The price the history is scattered around
        days: Number of points to produce, one per day
        rng: Anything with ``uniform(a, b)``; the ``random`` module by default
        today: Date of the last point; the local date by default

    Raises:
        InvalidInput: If the price is negative or not a number, or days < 1
    """
    if current_price is None or math.isnan(current_price) or current_price < 0:
        raise InvalidInput(f"Current price must be a non-negative number, got {current_price!r}")
    if days <= 0:
        raise InvalidInput(f"Days must be a positive integer, got {days!r}")

    rng = rng or random
    today = _as_date(today) if today is not None else date.today()

    points = []
    for offset in range(days - 1, -1, -1):
        swing = rng.uniform(-variance, variance)  # nosec B311
        price = round2(current_price * (1 + swing))
        points.append(PricePoint(price=max(0.0, price), date=today - timedelta(days=offset)))
    return tuple(points)


def append_and_trim(
    series: Sequence[PricePoint],
    new_point: PricePoint,
    limit: int = MAX_POINTS,
) -> Tuple[PricePoint, ...]:
    """
    Appends a point and keeps only the most recent ``limit`` points.

    Raises:
        InvalidInput: If the new price is negative or not a number, or the new point is
            dated before the last point already in the series
    """
    if new_point.price is None or math.isnan(new_point.price) or new_point.price < 0:
        raise InvalidInput(f"Price must be a non-negative number, got {new_point.price!r}")
    if series and _as_date(new_point.date) < _as_date(series[-1].date):
        raise InvalidInput(
            f"New point dated {new_point.date} precedes the last point dated {series[-1].date}"
        )

    extended = tuple(series) + (new_point,)
    return extended[-limit:]


def compute_trend(series: Iterable) -> List[dict]:
    """Chart-ready ``{"date": "YYYY-MM-DD", "price": ...}`` rows, oldest first."""
    ordered = sorted(series, key=lambda point: _as_date(point.date))
    return [
        {"date": _as_date(point.date).isoformat(), "price": point.price}
        for point in ordered
    ]


def compute_aggregate_stats(items: Iterable[PricedItem]) -> AggregateStats:
    items = list(items)
    if not items:
        return AggregateStats()

    # Regions are compared exactly; callers normalize before storing.
    regions = {item.region for item in items}
    total = sum(item.current_price for item in items)

    return AggregateStats(
        total_items=len(items),
        average_price=round2(total / len(items)),
        region_count=len(regions),
        category_breakdown=dict(Counter(item.category for item in items)),
        regions=sorted(regions),
    )
