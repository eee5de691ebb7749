"""Tests for the Click CLI layer.

Uses Click's CliRunner to invoke commands without spawning subprocesses.
The commands run against the real normalizer and aggregator using the CSV
fixtures, so these double as end-to-end checks of the printed output.
"""

from __future__ import annotations

import csv
from pathlib import Path

import pytest
from click.testing import CliRunner

from spend_dashboard import __version__
from spend_dashboard.cli import cli
from spend_dashboard.config import CONFIG_FILENAME

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


# ---------------------------------------------------------------------------
# Top-level group
# ---------------------------------------------------------------------------


class TestCliGroup:
    """Tests for the top-level command group."""

    def test_help(self, runner: CliRunner):
        """--help lists every command."""
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("summary", "export", "init"):
            assert command in result.output

    def test_version(self, runner: CliRunner):
        """--version prints the package version."""
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


# ---------------------------------------------------------------------------
# summary
# ---------------------------------------------------------------------------


class TestSummaryCommand:
    """Tests for `spend summary`."""

    def test_happy_path(self, runner: CliRunner, sample_csv: Path):
        """The dashboard prints totals, rankings and warnings."""
        result = runner.invoke(cli, ["summary", str(sample_csv)])

        assert result.exit_code == 0, result.output
        assert "Total spending:        $1,287.31" in result.output
        assert "Transactions (shown):  5" in result.output
        assert "Whole Foods" in result.output
        assert "Payment Thank You" not in result.output
        assert "Loaded:   7 transactions" in result.output
        assert "Warnings: 3" in result.output

    def test_include_transfers(self, runner: CliRunner, sample_csv: Path):
        """--include-transfers shows payments without changing spending."""
        result = runner.invoke(cli, ["summary", str(sample_csv), "--include-transfers"])

        assert result.exit_code == 0, result.output
        assert "Payment Thank You - Visa" in result.output
        assert "Transactions (shown):  7" in result.output
        assert "Total spending:        $1,287.31" in result.output

    def test_search(self, runner: CliRunner, sample_csv: Path):
        """--search narrows the dashboard."""
        result = runner.invoke(cli, ["summary", str(sample_csv), "--search", "coffee"])

        assert result.exit_code == 0, result.output
        assert "Total spending:        $7.75" in result.output
        assert "Whole Foods" not in result.output

    def test_sort_new_column_uses_default_direction(self, runner: CliRunner, sample_csv: Path):
        """--sort name starts A-Z, like clicking a new column."""
        result = runner.invoke(cli, ["summary", str(sample_csv), "--sort", "name"])

        assert result.exit_code == 0, result.output
        assert "by name asc" in result.output

    def test_sort_with_direction(self, runner: CliRunner, sample_csv: Path):
        """--direction overrides the default direction."""
        result = runner.invoke(
            cli, ["summary", str(sample_csv), "--sort", "amount", "--direction", "asc"]
        )

        assert result.exit_code == 0, result.output
        assert "by amount asc" in result.output

    def test_config_dir_page_size(self, runner: CliRunner, sample_csv: Path, tmp_path: Path):
        """page_size from dashboard.toml limits the table; --all lifts it."""
        (tmp_path / CONFIG_FILENAME).write_text("[display]\npage_size = 2\n", encoding="utf-8")

        paged = runner.invoke(cli, ["summary", str(sample_csv), "--config-dir", str(tmp_path)])
        full = runner.invoke(
            cli, ["summary", str(sample_csv), "--config-dir", str(tmp_path), "--all"]
        )

        assert paged.exit_code == 0, paged.output
        assert "showing 2 of 5" in paged.output
        assert "showing 5, by date desc" in full.output

    def test_missing_config_dir_file(self, runner: CliRunner, sample_csv: Path, tmp_path: Path):
        """An explicit --config-dir without dashboard.toml is an error."""
        result = runner.invoke(cli, ["summary", str(sample_csv), "--config-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "spend init" in result.output

    def test_invalid_config(self, runner: CliRunner, sample_csv: Path, tmp_path: Path):
        """A config with a bad value is reported."""
        (tmp_path / CONFIG_FILENAME).write_text('[sort]\nkey = "merchant"\n', encoding="utf-8")
        result = runner.invoke(cli, ["summary", str(sample_csv), "--config-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "Error loading configuration" in result.output

    def test_non_string_search_in_config(
        self, runner: CliRunner, sample_csv: Path, tmp_path: Path
    ):
        """A numeric search default is a configuration error, not a crash."""
        (tmp_path / CONFIG_FILENAME).write_text("[filters]\nsearch = 5\n", encoding="utf-8")
        result = runner.invoke(cli, ["summary", str(sample_csv), "--config-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "Error loading configuration" in result.output

    def test_malformed_file(self, runner: CliRunner, tmp_path: Path):
        """A binary file exits with an error message."""
        bad = tmp_path / "bad.csv"
        bad.write_bytes(b"\xff\xfe\x00\x81garbage")

        result = runner.invoke(cli, ["summary", str(bad)])

        assert result.exit_code == 1
        assert "malformed input" in result.output

    def test_missing_file(self, runner: CliRunner, tmp_path: Path):
        """A nonexistent file is rejected by argument validation."""
        result = runner.invoke(cli, ["summary", str(tmp_path / "nope.csv")])
        assert result.exit_code == 2

    def test_empty_file(self, runner: CliRunner, header_only_csv: Path):
        """A header-only file shows the empty state."""
        result = runner.invoke(cli, ["summary", str(header_only_csv)])

        assert result.exit_code == 0, result.output
        assert "No transactions to show." in result.output


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------


class TestExportCommand:
    """Tests for `spend export`."""

    def test_writes_all_records(self, runner: CliRunner, sample_csv: Path, tmp_path: Path):
        """Every cleaned record, transfers included, is written by default."""
        output = tmp_path / "out" / "clean.csv"
        result = runner.invoke(cli, ["export", str(sample_csv), "--output", str(output)])

        assert result.exit_code == 0, result.output
        assert "Wrote 7 transactions" in result.output
        with open(output, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 7
        assert rows[0]["name"] == "Coffee Shop"
        assert rows[0]["date"] == "2024-01-06"

    def test_exclude_transfers_and_search(
        self, runner: CliRunner, sample_csv: Path, tmp_path: Path
    ):
        """Filters apply to the export."""
        output = tmp_path / "clean.csv"
        result = runner.invoke(
            cli,
            [
                "export",
                str(sample_csv),
                "--output",
                str(output),
                "--exclude-transfers",
                "--search",
                "food",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Wrote 3 transactions" in result.output

    def test_output_required(self, runner: CliRunner, sample_csv: Path):
        """--output is mandatory."""
        result = runner.invoke(cli, ["export", str(sample_csv)])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


class TestInitCommand:
    """Tests for `spend init`."""

    def test_creates_config(self, runner: CliRunner, tmp_path: Path):
        """init writes dashboard.toml into the target directory."""
        target = tmp_path / "proj"
        result = runner.invoke(cli, ["init", "--dir", str(target)])

        assert result.exit_code == 0, result.output
        assert (target / CONFIG_FILENAME).exists()
        assert "Initialized spend dashboard config" in result.output

    def test_summary_uses_initialized_config(
        self, runner: CliRunner, sample_csv: Path, tmp_config_dir: Path
    ):
        """A freshly initialized config reproduces the default dashboard."""
        result = runner.invoke(
            cli, ["summary", str(sample_csv), "--config-dir", str(tmp_config_dir)]
        )

        assert result.exit_code == 0, result.output
        assert "Total spending:        $1,287.31" in result.output
