"""CSV normalization: raw delimited text to canonical Transaction records.

Uploaded files come from many banks and budgeting tools, so nothing about the
layout is fixed beyond "first row is a header". Columns are located through
ordered alias lists, amounts and dates are coerced from the common encodings,
the category cell is split into a base category and parenthetical tags, and
each record is classified as an expense, a payment/transfer or uncategorized.

Rows that cannot be turned into a valid record are dropped and reported as
warnings; only a file that is not delimited text at all raises
:class:`~spend_dashboard.models.MalformedInputError`.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dateutil import parser as date_parser

from spend_dashboard.models import (
    UNCATEGORIZED,
    MalformedInputError,
    NormalizeResult,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

# Header aliases, checked in order. Matching is case-sensitive.
DATE_KEYS = ("date", "Date", "Transaction Date")
NAME_KEYS = ("name", "Name", "description", "Description", "merchant", "Merchant")
AMOUNT_KEYS = ("amount", "Amount")
CATEGORY_KEYS = ("category", "Category")

ID_SEPARATOR = "_"

_PAREN_NEGATIVE = re.compile(r"^\(.*\)$", re.DOTALL)
_TAG_PATTERN = re.compile(r"\(([^)]+)\)")

# Amounts past the double-precision range are treated as non-finite.
_MAX_AMOUNT_EXPONENT = 308

# Two fill-in values for fields a date cell leaves out. A cell that parses
# differently against each of them is not a complete date.
_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2004, 2, 2))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def read_csv_text(file_path: str | Path) -> str:
    """Read an uploaded file and decode it as UTF-8 text.

    A leading byte-order mark is tolerated.

    Raises:
        FileNotFoundError: If *file_path* does not exist.
        MalformedInputError: If the bytes are not valid UTF-8.
    """
    data = Path(file_path).read_bytes()
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedInputError(f"{file_path}: not UTF-8 text ({exc.reason})") from exc


def normalize(raw_text: str) -> list[Transaction]:
    """Normalize *raw_text* into canonical records, newest first.

    Convenience wrapper around :func:`normalize_text` that discards the
    diagnostics.
    """
    return normalize_text(raw_text).transactions


def normalize_text(raw_text: str, source: str = "<text>") -> NormalizeResult:
    """Parse delimited text and return canonical records plus diagnostics.

    Args:
        raw_text: The whole file as text. The first non-blank row is the
            header; blank lines are skipped.
        source: Label used in warning messages, usually the file path.

    Returns:
        A NormalizeResult whose transactions are sorted by date descending
        (rows sharing a date appear in reverse input order) and whose
        warnings list every dropped, ragged or unreadable row.

    Raises:
        MalformedInputError: If the text contains NUL bytes or its header
            line cannot be read.
    """
    header, rows, warnings = _read_rows(raw_text, source)

    transactions: list[Transaction] = []
    errors: list[str] = []

    if header and not any(
        key in header for key in DATE_KEYS + NAME_KEYS + AMOUNT_KEYS
    ):
        errors.append(f"{source}: no recognized date, name or amount column in header")

    for row_index, cells in enumerate(rows):
        if len(cells) != len(header):
            warnings.append(
                f"{source}: row {row_index} has {len(cells)} fields, expected {len(header)}"
            )
        row = _row_mapping(header, cells)

        txn, reason = _build_transaction(row, row_index)
        if txn is None:
            logger.debug("%s: dropped row %d (%s)", source, row_index, reason)
            warnings.append(f"{source}: skipped malformed row {row_index} ({reason})")
            continue
        transactions.append(txn)

    # Newest first; a stable ascending sort reversed puts same-day rows in
    # reverse input order.
    transactions.sort(key=lambda t: t.date)
    transactions.reverse()

    logger.info(
        "%s: %d transactions from %d rows (%d dropped)",
        source,
        len(transactions),
        len(rows),
        len(rows) - len(transactions),
    )
    return NormalizeResult(transactions=transactions, warnings=warnings, errors=errors)


def pick_field(row: dict[str, str | None], keys: tuple[str, ...]) -> str | None:
    """Return the value of the first header in *keys* present in *row*.

    A present header wins even when its cell is empty; later aliases are
    only consulted when the earlier header does not exist at all.
    """
    for key in keys:
        if key in row:
            return row[key]
    return None


def parse_amount(value: str | None) -> Decimal | None:
    """Coerce an amount cell to a signed Decimal.

    Handles ``12.34``, ``-12.34``, ``$12.34``, ``$1,234.56`` and the
    accounting form ``(12.34)`` meaning ``-12.34``.

    Returns:
        The amount, or None if the value is empty or does not reduce to a
        finite number within double-precision range. Never defaults to zero.
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None

    is_paren_negative = bool(_PAREN_NEGATIVE.match(s))
    cleaned = s.replace("$", "").replace(",", "")
    if cleaned.startswith("("):
        cleaned = cleaned[1:]
    if cleaned.endswith(")"):
        cleaned = cleaned[:-1]

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite() or (amount and amount.adjusted() > _MAX_AMOUNT_EXPONENT):
        return None
    return -amount if is_paren_negative else amount


def parse_date(value: str | None) -> date | None:
    """Coerce a date cell (``MM/DD/YYYY``, ``YYYY-MM-DD``, ...) to a date.

    Returns None for empty or unparseable values, and for partial dates
    (``"12"``, ``"Monday"``, ``"Jan 2024"``) that would otherwise borrow the
    missing year, month or day from the calendar.
    """
    if not value:
        return None
    s = str(value).strip()
    if not s:
        return None
    try:
        first, second = (date_parser.parse(s, default=d) for d in _DATE_DEFAULTS)
    except (ValueError, OverflowError):
        return None
    if first != second:
        return None
    return first.date()


def split_category(raw: str) -> tuple[str, list[str]]:
    """Split ``"Food (Groceries) (Recurring)"`` into base and tags.

    The base is everything before the first ``(``, trimmed, defaulting to
    "Uncategorized". Tags are the contents of each ``(...)`` group, trimmed,
    left to right. Nested parentheses are not understood: the scan stops at
    the first ``)``, so ``"Food (A (B))"`` yields the tag ``"A (B"``.
    """
    s = raw.strip()
    if not s:
        return UNCATEGORIZED, []

    base = s.split("(", 1)[0].strip() or UNCATEGORIZED
    tags = [m.group(1).strip() for m in _TAG_PATTERN.finditer(s)]
    return base, tags


def classify(amount: Decimal, name: str, category_raw: str) -> TransactionType:
    """Classify a record. Rules are checked in order; the first match wins."""
    lowered = name.lower()
    if amount < 0:
        return TransactionType.PAYMENT_TRANSFER
    if "payment" in lowered and "thank you" in lowered:
        return TransactionType.PAYMENT_TRANSFER
    if not category_raw or not category_raw.strip():
        return TransactionType.UNCATEGORIZED
    return TransactionType.EXPENSE


def make_transaction_id(txn_date: date, row_index: int, name: str) -> str:
    """Build a batch-unique ID from the date, the 0-based row index and name.

    The date is rendered as an ISO-8601 instant at UTC midnight. IDs are not
    stable across re-parses of an edited file.
    """
    instant = f"{txn_date.isoformat()}T00:00:00.000Z"
    return ID_SEPARATOR.join((instant, str(row_index), name.strip()))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_rows(
    raw_text: str, source: str
) -> tuple[list[str], list[list[str]], list[str]]:
    """Split *raw_text* into a header, non-blank data rows and line warnings.

    A data line the reader rejects (for example a cell over the csv field
    size limit) is skipped with a warning. A rejected header fails the file.
    """
    if "\x00" in raw_text:
        raise MalformedInputError(f"{source}: input contains NUL bytes, not delimited text")

    reader = csv.reader(io.StringIO(raw_text.lstrip("\ufeff")))
    header: list[str] = []
    rows: list[list[str]] = []
    warnings: list[str] = []
    while True:
        try:
            cells = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            if not header:
                raise MalformedInputError(
                    f"{source}: unreadable header at line {reader.line_num}: {exc}"
                ) from exc
            logger.debug("%s: unreadable line %d (%s)", source, reader.line_num, exc)
            warnings.append(f"{source}: skipped unreadable line {reader.line_num} ({exc})")
            continue
        if not cells:
            continue
        if not header:
            header = cells
        else:
            rows.append(cells)
    return header, rows, warnings


def _row_mapping(header: list[str], cells: list[str]) -> dict[str, str | None]:
    """Map header names to cells; short rows read the missing cells as None."""
    row: dict[str, str | None] = {}
    for i, key in enumerate(header):
        row[key] = cells[i] if i < len(cells) else None
    return row


def _build_transaction(
    row: dict[str, str | None], row_index: int
) -> tuple[Transaction | None, str]:
    """Build one record, or return ``(None, reason)`` if the row is unusable."""
    date_val = pick_field(row, DATE_KEYS)
    name_val = pick_field(row, NAME_KEYS)
    amount_val = pick_field(row, AMOUNT_KEYS)
    category_val = pick_field(row, CATEGORY_KEYS)

    txn_date = parse_date(date_val)
    if txn_date is None:
        if not (date_val or "").strip():
            return None, "missing date"
        return None, f"invalid date: {date_val!r}"

    name = (name_val or "").strip()
    if not name:
        return None, "missing name"

    amount = parse_amount(amount_val)
    if amount is None:
        if not (amount_val or "").strip():
            return None, "missing amount"
        return None, f"invalid amount: {amount_val!r}"

    category_raw = (category_val or "").strip()
    base, tags = split_category(category_raw)

    return (
        Transaction(
            transaction_id=make_transaction_id(txn_date, row_index, name),
            date=txn_date,
            name=name,
            amount=amount,
            category_raw=category_raw or UNCATEGORIZED,
            category_base=base,
            tags=tuple(tags),
            type=classify(amount, name, category_raw),
        ),
        "",
    )
