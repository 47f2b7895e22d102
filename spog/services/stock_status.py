"""
Stock status classification.

Derives the normal / low / critical label for an inventory item from its
balance relative to the amount it was stocked with, and aggregates those
labels for the inventory status report.

Thresholds (percentage = current / original * 100):
    critical: percentage < 10
    low:      10 <= percentage < 20
    normal:   percentage >= 20

An item whose original amount is 0 or less has no meaningful percentage
and is classified as critical.
"""

import math
from dataclasses import asdict, dataclass
from typing import Iterable, Tuple

from spog.models.enums import StockStatus
from spog.utils.constants import CRITICAL_STOCK_PERCENT, LOW_STOCK_PERCENT


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def _raw_percentage(current: float, original: float) -> float:
    if original <= 0:
        return 0.0
    return (current / original) * 100


def classify(current: float, original: float) -> StockStatus:
    """
    Classify an item's stock level.

    Args:
        current: Current balance
        original: Amount the item was stocked with (same unit as current)

    Returns:
        StockStatus

    Examples:
        >>> classify(80, 100).value
        'normal'
        >>> classify(15, 100).value
        'low'
        >>> classify(5, 100).value
        'critical'
    """
    if original <= 0:
        return StockStatus.CRITICAL

    percentage = _raw_percentage(current, original)
    if percentage < CRITICAL_STOCK_PERCENT:
        return StockStatus.CRITICAL
    if percentage < LOW_STOCK_PERCENT:
        return StockStatus.LOW
    return StockStatus.NORMAL


def stock_percentage(current: float, original: float) -> int:
    """Balance as a whole percentage of the original amount (0 if original <= 0)."""
    return round_half_up(_raw_percentage(current, original))


@dataclass(frozen=True)
class StockSummary:
    """Aggregate stock figures for a set of items."""

    total_items: int
    low_stock_items: int
    critical_stock_items: int
    average_stock_level: int

    def to_dict(self) -> dict:
        return asdict(self)


def summarize_stock(pairs: Iterable[Tuple[float, float]]) -> StockSummary:
    """
    Summarize (current, original) pairs.

    average_stock_level is the mean of the unrounded percentages, rounded
    half up; an empty input gives 0.

    Example:
        >>> summarize_stock([(80, 100), (15, 100), (5, 100)])
        StockSummary(total_items=3, low_stock_items=1, critical_stock_items=1, average_stock_level=33)
    """
    total = 0
    low = 0
    critical = 0
    percentage_sum = 0.0

    for current, original in pairs:
        total += 1
        percentage_sum += _raw_percentage(current, original)
        status = classify(current, original)
        if status is StockStatus.LOW:
            low += 1
        elif status is StockStatus.CRITICAL:
            critical += 1

    average = round_half_up(percentage_sum / total) if total else 0

    return StockSummary(
        total_items=total,
        low_stock_items=low,
        critical_stock_items=critical,
        average_stock_level=average,
    )
