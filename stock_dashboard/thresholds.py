import math
from typing import Any, Optional

from . import settings
from .coercion import parse_float, to_number
from .exceptions import NumericCoercionFailure


def calculate_min_stock_threshold(
    current_stock: float, previous_stock: float, stock_out: float
) -> int:
    """
    Minimum stock level below which an item is flagged as low.

    An empty shelf only looks at outflow. Otherwise the threshold combines a share
    of current stock, a share of outflow and a share of the drop since the last
    count. The result is never below MIN_BASE_STOCK.
    """
    outflow_component = settings.OUTFLOW_RATE * stock_out
    if current_stock == 0:
        raw_threshold = outflow_component
    else:
        base_component = settings.CURRENT_STOCK_RATE * current_stock
        drop = max(0, previous_stock - current_stock)
        drop_impact = drop * settings.DROP_IMPACT_RATE
        raw_threshold = base_component + outflow_component + drop_impact

    # Rounded first so float noise like 3.0000000000000004 does not bump the ceiling.
    return max(settings.MIN_BASE_STOCK, math.ceil(round(raw_threshold, 9)))


def threshold_for_record(record: dict[str, Any]) -> int:
    return calculate_min_stock_threshold(
        current_stock=to_number(record.get(settings.CURRENT_STOCK)),
        previous_stock=to_number(record.get(settings.PREVIOUS_STOCK)),
        stock_out=abs(to_number(record.get(settings.STOCK_OUT))),
    )


def apply_threshold(record: dict[str, Any]) -> dict[str, Any]:
    """Returns a copy of the record with MinStockThreshold computed."""
    enriched = dict(record)
    enriched[settings.MIN_STOCK_THRESHOLD] = threshold_for_record(record)
    return enriched


def classify_stock_status(current_stock: Any, threshold: Any) -> Optional[str]:
    """Out of Stock / Low Stock / Sufficient Stock, or None when either input is not a number."""
    try:
        current = parse_float(current_stock)
        limit = parse_float(threshold)
    except NumericCoercionFailure:
        return None

    if current == 0:
        return settings.STATUS_OUT_OF_STOCK
    if 0 < current <= limit:
        return settings.STATUS_LOW_STOCK
    return settings.STATUS_SUFFICIENT


def record_status(record: dict[str, Any]) -> Optional[str]:
    return classify_stock_status(
        record.get(settings.CURRENT_STOCK), record.get(settings.MIN_STOCK_THRESHOLD)
    )


def status_rank(status: Optional[str]) -> int:
    return settings.STATUS_ORDER.get(status, settings.UNKNOWN_STATUS_RANK)
