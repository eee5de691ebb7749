"""Core data models for Spend Dashboard.

This module defines the dataclasses, enums and exceptions shared by the
normalizer, aggregator, session and presentation layers. It has zero internal
imports -- everything depends on it, but it depends on nothing within the
package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

UNCATEGORIZED = "Uncategorized"

SORT_KEYS = ("date", "name", "category", "amount")
SORT_DIRECTIONS = ("asc", "desc")


class MalformedInputError(ValueError):
    """The input could not be read as delimited text at all.

    Raised for structural failures only (undecodable bytes, NUL bytes, a
    broken CSV dialect, a missing header row). Individual bad rows never
    raise; they are dropped and reported through
    :attr:`NormalizeResult.warnings`.
    """


class TransactionType(str, Enum):
    """Coarse classification assigned to every normalized record."""

    EXPENSE = "expense"
    PAYMENT_TRANSFER = "payment_transfer"
    UNCATEGORIZED = "uncategorized"


@dataclass(frozen=True)
class Transaction:
    """A single normalized line item from an uploaded CSV.

    Records are immutable once produced by the normalizer. A new upload
    replaces the whole set rather than editing records in place.

    Attributes:
        transaction_id: Identifier unique within one parse call, built from
            the date, the 0-based row index and the name.
        date: Transaction date.
        name: Merchant/description, trimmed and never empty.
        amount: Signed decimal amount. Positive means money out (expense),
            negative means an inflow or a card payment.
        category_raw: Trimmed category cell, or "Uncategorized" if blank.
        category_base: Category with parenthetical tags stripped.
        tags: Parenthetical annotations from the category, left to right.
        type: Classification result.
    """

    transaction_id: str
    date: date
    name: str
    amount: Decimal
    category_raw: str = UNCATEGORIZED
    category_base: str = UNCATEGORIZED
    tags: tuple[str, ...] = ()
    type: TransactionType = TransactionType.EXPENSE


@dataclass
class NormalizeResult:
    """Return type of :func:`spend_dashboard.normalizer.normalize_text`.

    Attributes:
        transactions: Canonical records, newest first.
        warnings: Non-fatal issues such as dropped rows and rows whose
            field count does not match the header.
        errors: Reserved for file-level problems that did not abort the
            parse. Structural failures raise instead.
    """

    transactions: list[Transaction] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Filters:
    """Display filters applied before aggregation."""

    include_transfers: bool = False
    search: str = ""


@dataclass(frozen=True)
class SortSpec:
    """Sort order of the transaction table."""

    key: str = "date"
    direction: str = "desc"


@dataclass(frozen=True)
class Bucket:
    """A named total, used for category and merchant rankings."""

    name: str
    value: Decimal


@dataclass(frozen=True)
class DayTotal:
    """Expense total for one calendar day (``YYYY-MM-DD``)."""

    date: str
    value: Decimal


@dataclass(frozen=True)
class DashboardView:
    """Everything the presentation layer needs for one render.

    Attributes:
        total_spend: Sum of expense-type amounts in the filtered set.
        shown_count: Number of records that passed the filters.
        expense_count: Number of expense-type records among them.
        by_category: Top categories by total, descending.
        daily: Expense totals per day, ascending by day.
        top_merchants: Top merchants by total, descending.
        rows: The sorted (and possibly paginated) transaction table.
        filters: Filters the view was built with.
        sort: Sort order of ``rows``.
    """

    total_spend: Decimal
    shown_count: int
    expense_count: int
    by_category: list[Bucket]
    daily: list[DayTotal]
    top_merchants: list[Bucket]
    rows: list[Transaction]
    filters: Filters
    sort: SortSpec


@dataclass(frozen=True)
class Snapshot:
    """One loaded file's worth of records, held by a dashboard session.

    Attributes:
        version: Increments on every successful load; 0 means nothing has
            been loaded yet.
        transactions: The canonical record set, newest first.
        warnings: Diagnostics collected while normalizing.
        source: Where the records came from (a path, or "<text>").
    """

    version: int = 0
    transactions: tuple[Transaction, ...] = ()
    warnings: tuple[str, ...] = ()
    source: str = ""


@dataclass
class AppConfig:
    """Application configuration loaded from ``dashboard.toml``.

    Attributes:
        page_size: Rows shown in the transaction table unless "show all"
            is requested. Default: 25.
        top_categories: Number of categories kept in the category ranking.
            Default: 12.
        top_merchants: Number of merchants kept in the merchant ranking.
            Default: 10.
        include_transfers: Default for the "include transfers/payments"
            filter. Default: False.
        search: Default search text. Default: empty.
        sort_key: Default table sort key. One of ``SORT_KEYS``.
        sort_direction: Default table sort direction, "asc" or "desc".
    """

    page_size: int = 25
    top_categories: int = 12
    top_merchants: int = 10
    include_transfers: bool = False
    search: str = ""
    sort_key: str = "date"
    sort_direction: str = "desc"
