"""In-memory search, filter and paging over rows already loaded for a tenant."""
import math
from typing import Any, Callable, Iterable

_ANY = {None, "", "all"}


def _value(row: Any, field: str):
    if isinstance(row, dict):
        return row.get(field)
    return getattr(row, field, None)


def search(rows: Iterable, term: str | None, fields: Iterable[str]) -> list:
    """Keep rows where any of ``fields`` contains ``term``, ignoring case."""
    rows = list(rows)
    needle = (term or "").strip().lower()
    if not needle:
        return rows
    fields = list(fields)
    return [
        row
        for row in rows
        if any(needle in str(_value(row, f) or "").lower() for f in fields)
    ]


def filter_eq(rows: Iterable, **criteria) -> list:
    """Keep rows equal to every criterion; ``None``, ``""`` and ``"all"`` match anything."""
    active = {k: v for k, v in criteria.items() if v not in _ANY}
    if not active:
        return list(rows)
    return [
        row
        for row in rows
        if all(_matches(_value(row, field), expected) for field, expected in active.items())
    ]


def _matches(actual, expected) -> bool:
    if isinstance(expected, bool) or isinstance(actual, bool):
        return actual == expected
    # query parameters arrive as strings while ids are ints
    return str(actual) == str(expected)


def sort_rows(rows: Iterable, key: str, descending: bool = False) -> list:
    # None sorts last regardless of direction
    rows = list(rows)
    present = [r for r in rows if _value(r, key) is not None]
    missing = [r for r in rows if _value(r, key) is None]
    present.sort(key=_sort_key(key), reverse=descending)
    return present + missing


def _sort_key(field: str) -> Callable:
    def key(row):
        value = _value(row, field)
        return value.lower() if isinstance(value, str) else value

    return key


def paginate(rows: list, page: int = 1, per_page: int = 10) -> dict:
    per_page = max(per_page, 1)
    total = len(rows)
    pages = max(math.ceil(total / per_page), 1)
    page = min(max(page, 1), pages)
    start = (page - 1) * per_page
    return {
        "items": rows[start : start + per_page],
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": pages,
    }
