import logging
from typing import Any, Iterable, Mapping, Optional

from . import settings
from .coercion import to_number
from .schemas import CategoryGroup, TableView, TableViewConfig
from .thresholds import record_status, status_rank

logger = logging.getLogger(__name__)

SORT_KEYS = [
    settings.ROW_NUMBER,
    settings.ITEM_NAME,
    settings.CURRENT_STOCK,
    "Status",
]


def _text(value: Any) -> str:
    return str(value).lower() if value else ""


def filter_records(
    records: Iterable[Mapping[str, Any]], search_term: str = "", category: str = ""
) -> list[Mapping[str, Any]]:
    """
    Keeps records whose name or code contains the search term and whose
    category equals the category filter, both case-insensitive. Empty means no filter.
    """
    term = search_term.lower()
    wanted_category = category.lower()

    def matches(record: Mapping[str, Any]) -> bool:
        matches_term = (
            term == ""
            or term in _text(record.get(settings.ITEM_NAME))
            or term in _text(record.get(settings.ITEM_CODE))
        )
        matches_category = (
            wanted_category == ""
            or _text(record.get(settings.CATEGORY)) == wanted_category
        )
        return matches_term and matches_category

    return [record for record in records if matches(record)]


def _sort_value(record: Mapping[str, Any], sort_by: str):
    if sort_by == settings.ITEM_NAME:
        return _text(record.get(settings.ITEM_NAME))
    if sort_by == settings.CURRENT_STOCK:
        return to_number(record.get(settings.CURRENT_STOCK))
    if sort_by == "Status":
        return status_rank(record_status(record))
    return int(to_number(record.get(settings.ROW_NUMBER)))


def sort_records(
    records: Iterable[Mapping[str, Any]],
    sort_by: str = settings.ROW_NUMBER,
    sort_order: str = "asc",
) -> list[Mapping[str, Any]]:
    """
    Stable sort by row number, item name, current stock or status.
    Unknown keys fall back to row number.
    """
    if sort_by not in SORT_KEYS:
        logger.warning(f"Unknown sort key {sort_by!r}, sorting by {settings.ROW_NUMBER}.")
        sort_by = settings.ROW_NUMBER
    return sorted(
        records,
        key=lambda record: _sort_value(record, sort_by),
        reverse=sort_order == "desc",
    )


def group_records(
    records: Iterable[Mapping[str, Any]],
    open_categories: Optional[Mapping[str, bool]] = None,
) -> list[CategoryGroup]:
    """
    Partitions already sorted records by category. Groups come out in lexical
    order of category name and keep the incoming row order inside each group.
    """
    open_categories = open_categories or {}
    grouped: dict[str, list[Mapping[str, Any]]] = {}
    for record in records:
        category = record.get(settings.CATEGORY) or settings.UNCATEGORIZED
        grouped.setdefault(str(category), []).append(record)

    return [
        CategoryGroup(
            name=name,
            rows=[dict(row) for row in grouped[name]],
            is_open=open_categories.get(name, False),
        )
        for name in sorted(grouped)
    ]


def toggle_category(open_categories: Mapping[str, bool], category: str) -> dict[str, bool]:
    toggled = dict(open_categories)
    toggled[category] = not toggled.get(category, False)
    return toggled


def with_status(record: Mapping[str, Any]) -> dict[str, Any]:
    row = dict(record)
    row["Status"] = record_status(record)
    return row


def build_table_view(
    records: Iterable[Mapping[str, Any]],
    config: Optional[TableViewConfig] = None,
    open_categories: Optional[Mapping[str, bool]] = None,
) -> TableView:
    """Runs filter -> sort -> group, skipping whichever stages the config turns off."""
    config = config or TableViewConfig()
    rows = list(records)

    if config.apply_filter:
        rows = filter_records(rows, config.search_term, config.category)
    if config.apply_sort:
        rows = sort_records(rows, config.sort_by, config.sort_order)

    rows = [with_status(row) for row in rows]
    groups = group_records(rows, open_categories) if config.group_by_category else None
    return TableView(rows=rows, groups=groups)


def category_options(records: Iterable[Mapping[str, Any]]) -> list[str]:
    """Distinct non-empty categories, lower-cased and sorted, for the category filter."""
    return sorted(
        {
            str(record.get(settings.CATEGORY)).lower()
            for record in records
            if record.get(settings.CATEGORY)
        }
    )


def to_title_case(text: Optional[str]) -> str:
    if not text:
        return ""
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split(" "))
