"""
Chart-ready datasets derived from the current record set.

Every function here is pure and total: it takes a snapshot of records, never
mutates it, and returns an empty list for an empty snapshot. Sorting is stable,
so records with equal ranking keys keep the order they have in the snapshot.
"""
import logging
import math
from typing import Any, Iterable, Mapping

import pandas as pd

from . import settings
from .coercion import parse_float, to_number
from .exceptions import NumericCoercionFailure

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]


def _category(record: Record) -> Any:
    return record.get(settings.CATEGORY) or settings.UNCATEGORIZED


def _display_name(record: Record) -> str:
    return str(
        record.get(settings.ITEM_NAME)
        or record.get(settings.ITEM_CODE)
        or settings.UNKNOWN_ITEM
    )


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _age(record: Record):
    """Stock age in days, or None when missing, unparseable or negative."""
    try:
        age = parse_float(record.get(settings.STOCK_AGE))
    except NumericCoercionFailure:
        return None
    return age if age >= 0 else None


def truncate_name(name: str) -> str:
    if len(name) > settings.NAME_MAX_LENGTH:
        return name[: settings.NAME_TRUNCATE_LENGTH] + "..."
    return name


def _top_positions(values: list[float], top_n: int) -> list[int]:
    # Stable descending sort: ties stay in snapshot order.
    ranked = pd.Series(values, dtype="float64").sort_values(
        ascending=False, kind="stable"
    )
    return [int(position) for position in ranked.head(top_n).index]


def _sum_by(names: list[Any], values: list[float]) -> pd.Series:
    """Sums values per name, groups in first-occurrence order."""
    df = pd.DataFrame({"name": names, "value": values})
    return df.groupby("name", sort=False, dropna=False)["value"].sum()


def _ranked(totals: pd.Series) -> pd.Series:
    return totals.sort_values(ascending=False, kind="stable")


def category_distribution(records: Iterable[Record]) -> list[dict[str, Any]]:
    """Number of records per category, in order of first appearance."""
    names = [_category(record) for record in records]
    if not names:
        return []
    df = pd.DataFrame({"name": names})
    counts = df.groupby("name", sort=False, dropna=False).size()
    return [{"name": name, "value": int(count)} for name, count in counts.items()]


def stock_comparison(
    records: Iterable[Record], top_n: int = settings.STOCK_COMPARISON_TOP_N
) -> list[dict[str, Any]]:
    """Previous vs current stock for the items holding the most stock now."""
    eligible = [
        record
        for record in records
        if _is_number(record.get(settings.CURRENT_STOCK))
        and _is_number(record.get(settings.PREVIOUS_STOCK))
        and record[settings.CURRENT_STOCK] >= 0
        and record[settings.PREVIOUS_STOCK] >= 0
    ]
    if not eligible:
        return []

    positions = _top_positions(
        [record[settings.CURRENT_STOCK] for record in eligible], top_n
    )
    dataset = []
    for position in positions:
        record = eligible[position]
        full_name = _display_name(record)
        dataset.append(
            {
                "name": truncate_name(full_name),
                "fullName": full_name,
                settings.PREVIOUS_STOCK: record[settings.PREVIOUS_STOCK],
                settings.CURRENT_STOCK: record[settings.CURRENT_STOCK],
            }
        )
    return dataset


def stock_age_histogram(records: Iterable[Record]) -> list[dict[str, Any]]:
    """
    Distribution of stock ages over roughly ten fixed-width bins.

    bin_size = ceil((max - min) / 10). When every age is equal there is a single
    bucket. Otherwise ages fall into ceil((max + 1 - min) / bin_size) bins by
    floor((age - min) / bin_size). Empty bins are dropped from the output.
    """
    ages = [age for age in map(_age, records) if age is not None]
    if not ages:
        return []

    min_age = min(ages)
    max_age = max(ages)
    bin_size = math.ceil((max_age - min_age) / settings.HISTOGRAM_TARGET_BINS)
    if bin_size == 0:
        label = math.floor(min_age)
        return [{"name": f"{label}-{label}", "count": len(ages)}]

    bin_count = math.ceil((max_age + 1 - min_age) / bin_size)
    counts = [0] * bin_count
    for age in ages:
        counts[math.floor((age - min_age) / bin_size)] += 1

    dataset = []
    for index, count in enumerate(counts):
        if count == 0:
            continue
        start = min_age + index * bin_size
        end = start + bin_size
        # Inclusive upper bound, except when the last bin already runs past max.
        if not (index == bin_count - 1 and end > max_age):
            end -= 1
        dataset.append(
            {"name": f"{math.floor(start)}-{math.floor(end)}", "count": count}
        )
    return dataset


def average_stock_age_by_category(records: Iterable[Record]) -> list[dict[str, Any]]:
    names = []
    ages = []
    for record in records:
        age = _age(record)
        if age is None:
            continue
        names.append(_category(record))
        ages.append(age)
    if not names:
        return []

    df = pd.DataFrame({"name": names, "age": ages})
    means = _ranked(df.groupby("name", sort=False, dropna=False)["age"].mean())
    return [
        {"name": name, "Average Stock Age": float(mean)} for name, mean in means.items()
    ]


def top_sold_products(
    records: Iterable[Record], top_n: int = settings.TOP_SOLD_TOP_N
) -> list[dict[str, Any]]:
    """Total absolute outflow per product name, highest first."""
    names = []
    quantities = []
    for record in records:
        names.append(record.get(settings.ITEM_NAME) or settings.UNKNOWN_PRODUCT)
        quantities.append(abs(to_number(record.get(settings.STOCK_OUT))))
    if not names:
        return []

    totals = _ranked(_sum_by(names, quantities)).head(top_n)
    return [
        {"name": name, "Quantity Sold": float(total)} for name, total in totals.items()
    ]


def stock_value_by_category(records: Iterable[Record]) -> list[dict[str, Any]]:
    """Current stock times unit price, summed per category, highest first."""
    names = []
    values = []
    for record in records:
        names.append(_category(record))
        values.append(
            to_number(record.get(settings.CURRENT_STOCK))
            * to_number(record.get(settings.UNIT_PRICE))
        )
    if not names:
        return []

    totals = _ranked(_sum_by(names, values))
    return [{"name": name, "value": float(total)} for name, total in totals.items()]


def longest_stock_age(
    records: Iterable[Record], top_n: int = settings.LONGEST_AGE_TOP_N
) -> list[dict[str, Any]]:
    """Oldest items that are still on the shelf."""
    eligible = []
    ages = []
    for record in records:
        age = _age(record)
        if age is None or to_number(record.get(settings.CURRENT_STOCK)) <= 0:
            continue
        eligible.append(record)
        ages.append(age)
    if not eligible:
        return []

    dataset = []
    for position in _top_positions(ages, top_n):
        full_name = _display_name(eligible[position])
        dataset.append(
            {
                "name": truncate_name(full_name),
                "fullName": full_name,
                settings.STOCK_AGE: ages[position],
            }
        )
    return dataset


def _pivot_label(value: Any) -> str:
    if value is None or value == "":
        return settings.UNCATEGORIZED
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def custom_pivot(
    records: Iterable[Record], x_field: str, y_field: str
) -> list[dict[str, Any]]:
    """
    Sums the numeric field y_field for each distinct value of x_field.
    Rows whose y_field is not a number are skipped with a warning.
    """
    if not x_field or not y_field:
        return []

    names = []
    values = []
    for record in records:
        category = _pivot_label(record.get(x_field))
        try:
            value = parse_float(record.get(y_field))
        except NumericCoercionFailure:
            logger.warning(
                f"⚠️ Non-numeric value in '{y_field}' for category \"{category}\": "
                f"{record.get(y_field)!r}. Skipping."
            )
            continue
        names.append(category)
        values.append(value)
    if not names:
        return []

    totals = _sum_by(names, values)
    return [{"category": name, "value": float(total)} for name, total in totals.items()]


def pivot_field_options(headers: Iterable[str]) -> tuple[list[str], list[str]]:
    """Fields offered for the custom chart: any header on X, numeric headers on Y."""
    headers = list(headers)
    numeric = set(settings.NUMERIC_FIELDS) | {settings.MIN_STOCK_THRESHOLD}
    return headers, [header for header in headers if header in numeric]


def build_dashboard(records: Iterable[Record]) -> dict[str, list[dict[str, Any]]]:
    """Recomputes every fixed dashboard dataset from one snapshot."""
    snapshot = list(records)
    return {
        "category_distribution": category_distribution(snapshot),
        "stock_comparison": stock_comparison(snapshot),
        "stock_age_histogram": stock_age_histogram(snapshot),
        "average_stock_age_by_category": average_stock_age_by_category(snapshot),
        "top_sold_products": top_sold_products(snapshot),
        "stock_value_by_category": stock_value_by_category(snapshot),
        "longest_stock_age": longest_stock_age(snapshot),
    }
