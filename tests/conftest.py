"""Shared pytest fixtures for Spend Dashboard tests.

Provides reusable fixtures for:
- Paths to the CSV files under tests/fixtures/.
- sample_transactions: the normalized records of ``sample.csv``, which mixes
  expenses, a card payment, an accounting-negative refund, an uncategorized
  charge, three malformed rows and a blank line.
- tmp_config_dir: a temporary directory holding a default dashboard.toml.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from spend_dashboard.config import initialize
from spend_dashboard.models import Transaction
from spend_dashboard.normalizer import normalize, read_csv_text

# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Fixture file path helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the tests/fixtures/ directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_csv() -> Path:
    """Path to the mixed-content sample CSV (7 valid rows, 3 malformed)."""
    return FIXTURES_DIR / "sample.csv"


@pytest.fixture
def mixed_headers_csv() -> Path:
    """Path to a CSV using the "Transaction Date"/"Description" header aliases."""
    return FIXTURES_DIR / "mixed_headers.csv"


@pytest.fixture
def header_only_csv() -> Path:
    """Path to a CSV with a header row and no data rows."""
    return FIXTURES_DIR / "header_only.csv"


# ---------------------------------------------------------------------------
# Normalized records
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_transactions(sample_csv: Path) -> list[Transaction]:
    """The canonical records of sample.csv, newest first.

    Order (name, date, amount, type):
    - Coffee Shop      2024-01-06    3.25  expense
    - Mystery Charge   2024-01-05   20.00  uncategorized
    - Refund Store     2024-01-04  -12.34  payment_transfer
    - Shell            2024-01-03   45.00  expense
    - Whole Foods      2024-01-03 1234.56  expense
    - Coffee Shop      2024-01-02    4.50  expense
    - Payment Thank You - Visa  2024-01-01  -100.00  payment_transfer
    """
    return normalize(read_csv_text(sample_csv))


@pytest.fixture
def tmp_config_dir(tmp_path: Path) -> Path:
    """A temporary directory containing a default dashboard.toml."""
    project = tmp_path / "dashboard-project"
    initialize(project)
    return project
