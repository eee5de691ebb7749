"""Derived views over a normalized record set.

Every function here is pure: it reads an ordered sequence of
:class:`~spend_dashboard.models.Transaction` objects plus parameters and
returns new lists. Nothing is cached and nothing is mutated, so the views can
be recomputed in any order whenever the records, filters or sort change.

Spending totals only ever count ``expense`` records. Transfers and
uncategorized rows are excluded from every total regardless of the display
filters.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Sequence
from decimal import Decimal

from spend_dashboard.models import (
    SORT_DIRECTIONS,
    SORT_KEYS,
    Bucket,
    DashboardView,
    DayTotal,
    Filters,
    SortSpec,
    Transaction,
    TransactionType,
)

DEFAULT_TOP_CATEGORIES = 12
DEFAULT_TOP_MERCHANTS = 10
DEFAULT_PAGE_SIZE = 25


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def filter_transactions(
    records: Iterable[Transaction], filters: Filters
) -> list[Transaction]:
    """Apply the display filters, preserving input order.

    Transfers are dropped unless ``filters.include_transfers`` is set. A
    non-blank search keeps records whose name, raw category or any tag
    contains it, case-insensitively.
    """
    query = filters.search.strip().lower()
    kept: list[Transaction] = []
    for txn in records:
        if not filters.include_transfers and txn.type is TransactionType.PAYMENT_TRANSFER:
            continue
        if query and not _matches(txn, query):
            continue
        kept.append(txn)
    return kept


def _matches(txn: Transaction, query: str) -> bool:
    return (
        query in txn.name.lower()
        or query in txn.category_raw.lower()
        or any(query in tag.lower() for tag in txn.tags)
    )


# ---------------------------------------------------------------------------
# Totals and groupings
# ---------------------------------------------------------------------------


def expenses_only(records: Iterable[Transaction]) -> list[Transaction]:
    """Return the expense-type records, in input order."""
    return [t for t in records if t.type is TransactionType.EXPENSE]


def total_spend(records: Iterable[Transaction]) -> Decimal:
    """Sum of ``amount`` over expense-type records."""
    return sum((t.amount for t in expenses_only(records)), Decimal("0"))


def group_by_category(
    records: Iterable[Transaction], limit: int = DEFAULT_TOP_CATEGORIES
) -> list[Bucket]:
    """Expense totals per base category, largest first, top *limit*.

    Categories with equal totals keep the order they were first seen in.
    """
    return _ranked(_sum_by(records, lambda t: t.category_base), limit)


def top_merchants(
    records: Iterable[Transaction], limit: int = DEFAULT_TOP_MERCHANTS
) -> list[Bucket]:
    """Expense totals per merchant name, largest first, top *limit*."""
    return _ranked(_sum_by(records, lambda t: t.name), limit)


def daily_totals(records: Iterable[Transaction]) -> list[DayTotal]:
    """Expense totals per calendar day, oldest day first.

    Day keys are ``YYYY-MM-DD`` strings, so lexicographic order is
    chronological.
    """
    totals = _sum_by(records, lambda t: t.date.isoformat())
    return [DayTotal(date=day, value=value) for day, value in sorted(totals.items())]


def _sum_by(records: Iterable[Transaction], key) -> dict[str, Decimal]:
    """Sum expense amounts per key; dict order is first-seen order."""
    totals: dict[str, Decimal] = {}
    for txn in expenses_only(records):
        k = key(txn)
        totals[k] = totals.get(k, Decimal("0")) + txn.amount
    return totals


def _ranked(totals: dict[str, Decimal], limit: int) -> list[Bucket]:
    # sorted() is stable with reverse=True, so ties stay in first-seen order.
    ranked = sorted(totals.items(), key=lambda pair: pair[1], reverse=True)
    return [Bucket(name=name, value=value) for name, value in ranked[:limit]]


# ---------------------------------------------------------------------------
# Table sorting and pagination
# ---------------------------------------------------------------------------


def collation_key(value: str) -> tuple[str, str]:
    """Sort key for human-facing text: accents stripped and case folded.

    The original string breaks ties so the order is total and deterministic.
    """
    normalized = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return stripped.casefold(), value


_SORT_FIELDS = {
    "date": lambda t: t.date,
    "name": lambda t: collation_key(t.name),
    "category": lambda t: collation_key(t.category_raw),
    "amount": lambda t: t.amount,
}


def sort_transactions(
    records: Iterable[Transaction], key: str = "date", direction: str = "desc"
) -> list[Transaction]:
    """Stable sort of *records* by one table column.

    Args:
        records: Records to sort; not modified.
        key: One of ``"date"``, ``"name"``, ``"category"``, ``"amount"``.
            ``"category"`` sorts by the raw category text.
        direction: ``"asc"`` or ``"desc"``.

    Raises:
        ValueError: If *key* or *direction* is not recognized.
    """
    if key not in SORT_KEYS:
        raise ValueError(f"Invalid sort key: {key!r}. Expected one of {', '.join(SORT_KEYS)}.")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Invalid sort direction: {direction!r}. Expected 'asc' or 'desc'.")
    return sorted(records, key=_SORT_FIELDS[key], reverse=direction == "desc")


def toggle_sort(current: SortSpec, key: str) -> SortSpec:
    """Return the sort order after clicking the *key* column header.

    Clicking the active column flips its direction. Switching columns
    starts date and amount newest/highest first, and text columns A-Z.
    """
    if key not in SORT_KEYS:
        raise ValueError(f"Invalid sort key: {key!r}. Expected one of {', '.join(SORT_KEYS)}.")
    if current.key == key:
        return SortSpec(key=key, direction="asc" if current.direction == "desc" else "desc")
    return SortSpec(key=key, direction="desc" if key in ("date", "amount") else "asc")


def paginate(
    records: Sequence[Transaction],
    page_size: int | None = DEFAULT_PAGE_SIZE,
    page: int = 1,
) -> list[Transaction]:
    """Return one 1-based page of *records*; ``page_size=None`` returns all.

    Pages past the end are empty.

    Raises:
        ValueError: If *page* or *page_size* is less than 1.
    """
    if page < 1:
        raise ValueError(f"Invalid page: {page}. Pages start at 1.")
    if page_size is None:
        return list(records)
    if page_size < 1:
        raise ValueError(f"Invalid page size: {page_size}. Must be at least 1.")
    start = (page - 1) * page_size
    return list(records[start : start + page_size])


# ---------------------------------------------------------------------------
# View model
# ---------------------------------------------------------------------------


def build_view(
    records: Sequence[Transaction],
    filters: Filters | None = None,
    sort: SortSpec | None = None,
    page_size: int | None = DEFAULT_PAGE_SIZE,
    page: int = 1,
    top_categories: int = DEFAULT_TOP_CATEGORIES,
    top_merchant_count: int = DEFAULT_TOP_MERCHANTS,
) -> DashboardView:
    """Compute every dashboard aggregate for *records* under *filters*.

    Args:
        records: The canonical record set from the normalizer.
        filters: Display filters. Defaults exclude transfers, no search.
        sort: Table order. Defaults to date, newest first.
        page_size: Table rows per page, or None to show every row.
        page: 1-based table page.
        top_categories: Length of the category ranking.
        top_merchant_count: Length of the merchant ranking.

    Returns:
        A DashboardView built only from the records that pass *filters*.
    """
    filters = filters or Filters()
    sort = sort or SortSpec()

    shown = filter_transactions(records, filters)
    rows = sort_transactions(shown, sort.key, sort.direction)

    return DashboardView(
        total_spend=total_spend(shown),
        shown_count=len(shown),
        expense_count=len(expenses_only(shown)),
        by_category=group_by_category(shown, limit=top_categories),
        daily=daily_totals(shown),
        top_merchants=top_merchants(shown, limit=top_merchant_count),
        rows=paginate(rows, page_size=page_size, page=page),
        filters=filters,
        sort=sort,
    )
