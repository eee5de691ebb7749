"""CSV export writer and dashboard summary printer.

- :func:`export` writes the cleaned record set with a fixed column schema.
- :func:`print_summary` prints a text rendering of a
  :class:`~spend_dashboard.models.DashboardView` to stdout: headline cards,
  top categories, spending over time, top merchants and the transaction
  table, followed by any load diagnostics.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from decimal import Decimal
from pathlib import Path

from spend_dashboard.models import DashboardView, Transaction

# Fixed output column order.
CSV_COLUMNS = [
    "transaction_id",
    "date",
    "name",
    "amount",
    "category_raw",
    "category_base",
    "tags",
    "type",
]

TAG_SEPARATOR = "; "


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


def export(transactions: Iterable[Transaction], output_path: str | Path) -> Path:
    """Write *transactions* to *output_path* as CSV, in the given order.

    Creates the parent directory if needed and overwrites an existing file.

    Returns:
        The :class:`~pathlib.Path` to the written CSV file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for txn in transactions:
            writer.writerow(
                {
                    "transaction_id": txn.transaction_id,
                    "date": txn.date.isoformat(),
                    "name": txn.name,
                    "amount": str(txn.amount),
                    "category_raw": txn.category_raw,
                    "category_base": txn.category_base,
                    "tags": TAG_SEPARATOR.join(txn.tags),
                    "type": txn.type.value,
                }
            )

    return output_path


# ---------------------------------------------------------------------------
# Summary printer
# ---------------------------------------------------------------------------


def format_money(amount: Decimal) -> str:
    """Format *amount* as US dollars: ``$1,234.56`` or ``-$12.34``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def print_summary(
    view: DashboardView,
    warnings: Sequence[str] = (),
    total_count: int | None = None,
) -> None:
    """Print a human-readable dashboard to stdout.

    Args:
        view: The view model to render.
        warnings: Diagnostics from loading the file (dropped rows etc.).
        total_count: Number of records in the loaded file, before
            filtering. Omitted from the output when None.
    """
    print()
    print("== Spending Dashboard ==")

    if view.shown_count == 0:
        print("No transactions to show.")
    else:
        print(f"Total spending:        {format_money(view.total_spend)}")
        print(f"Transactions (shown):  {view.shown_count}")
        print(f"Expense transactions:  {view.expense_count}")

    # Top categories
    if view.by_category:
        print()
        print(f"Top categories ({len(view.by_category)}, expense only):")
        for bucket in view.by_category:
            print(f"  {bucket.name + ':':<25} {format_money(bucket.value):>12}")

    # Spending over time
    if view.daily:
        print()
        print("Spending over time (daily, expense only):")
        for day in view.daily:
            print(f"  {day.date}  {format_money(day.value):>12}")

    # Top merchants
    if view.top_merchants:
        print()
        print("Top merchants:")
        for i, bucket in enumerate(view.top_merchants, start=1):
            print(f"  {i:>2}. {bucket.name:<30} {format_money(bucket.value):>12}")

    # Transaction table
    if view.rows:
        print()
        of_total = f" of {view.shown_count}" if len(view.rows) != view.shown_count else ""
        order = f"{view.sort.key} {view.sort.direction}"
        print(f"Transactions (showing {len(view.rows)}{of_total}, by {order}):")
        print(f"  {'Date':<10}  {'Merchant':<30}  {'Category':<24}  {'Amount':>12}")
        for txn in view.rows:
            print(
                f"  {txn.date.strftime('%m/%d/%Y'):<10}  {txn.name[:30]:<30}  "
                f"{txn.category_raw[:24]:<24}  {format_money(txn.amount):>12}"
            )

    if total_count is not None:
        print()
        print(f"Loaded:   {total_count} transactions")

    if warnings:
        print()
        print(f"Warnings: {len(warnings)}")
        for w in warnings:
            print(f"  - {w}")

    print()
