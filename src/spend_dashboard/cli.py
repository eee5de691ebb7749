"""Click CLI entry point for the spend command.

Handles argument parsing, config loading, and error display. All business
logic is delegated to ``session``, ``aggregator``, ``config``, and
``export`` modules.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from spend_dashboard import __version__
from spend_dashboard.models import SORT_DIRECTIONS, SORT_KEYS, AppConfig


def _configure_logging(verbose: bool, debug: bool) -> None:
    """Set up logging based on verbosity flags."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        force=True,
    )


def _load_app_config(config_dir: str | None) -> AppConfig:
    """Load ``dashboard.toml`` from *config_dir* (default: cwd).

    Falls back to built-in defaults when no config file exists and no
    directory was given explicitly. Exits with an error otherwise.
    """
    from spend_dashboard.config import CONFIG_FILENAME, load_config

    root = Path(config_dir) if config_dir else Path.cwd()
    if config_dir is None and not (root / CONFIG_FILENAME).exists():
        return AppConfig()

    try:
        return load_config(root)
    except FileNotFoundError as exc:
        click.echo(
            f"Error: {exc}. Run 'spend init' to create a config file.",
            err=True,
        )
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Error loading configuration: {exc}", err=True)
        sys.exit(1)


def _load_session(file: str, config: AppConfig):
    """Build a session and load *file*, exiting with an error on failure."""
    from spend_dashboard.models import MalformedInputError
    from spend_dashboard.session import DashboardSession

    session = DashboardSession(config)
    try:
        session.load(Path(file))
    except MalformedInputError as exc:
        click.echo(f"Error: malformed input: {exc}", err=True)
        sys.exit(1)
    except OSError as exc:
        click.echo(f"Error reading {file}: {exc}", err=True)
        sys.exit(1)
    return session


@click.group()
@click.version_option(version=__version__, prog_name="spend-dashboard")
def cli() -> None:
    """Turn a transactions CSV into spending summaries."""


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--include-transfers/--exclude-transfers",
    default=None,
    help="Include transfers/payments in the shown transactions.",
)
@click.option("--search", default=None, help="Filter by merchant, category, or tag.")
@click.option(
    "--sort", "sort_key", type=click.Choice(SORT_KEYS), default=None, help="Table sort column."
)
@click.option(
    "--direction", type=click.Choice(SORT_DIRECTIONS), default=None, help="Table sort direction."
)
@click.option("--all", "show_all", is_flag=True, default=False, help="Show every transaction.")
@click.option("--page", type=click.IntRange(min=1), default=1, help="Table page (1-based).")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory containing dashboard.toml.",
)
@click.option("--verbose", is_flag=True, default=False, help="Detailed progress output.")
@click.option("--debug", is_flag=True, default=False, help="Developer-level diagnostics.")
def summary(
    file: str,
    include_transfers: bool | None,
    search: str | None,
    sort_key: str | None,
    direction: str | None,
    show_all: bool,
    page: int,
    config_dir: str | None,
    verbose: bool,
    debug: bool,
) -> None:
    """Print the spending dashboard for FILE."""
    _configure_logging(verbose, debug)
    config = _load_app_config(config_dir)
    session = _load_session(file, config)

    from spend_dashboard.aggregator import toggle_sort
    from spend_dashboard.export import print_summary
    from spend_dashboard.models import Filters, SortSpec

    if include_transfers is None:
        include_transfers = config.include_transfers
    filters = Filters(
        include_transfers=include_transfers,
        search=config.search if search is None else search,
    )

    sort = session.default_sort()
    if sort_key is not None and sort_key != sort.key:
        # Same default direction as clicking a new column header.
        sort = toggle_sort(sort, sort_key)
    if direction is not None:
        sort = SortSpec(key=sort.key, direction=direction)

    if verbose:
        click.echo(f"Sorting by {sort.key} ({sort.direction})")

    view = session.view(filters=filters, sort=sort, show_all=show_all, page=page)
    snapshot = session.snapshot
    print_summary(view, warnings=snapshot.warnings, total_count=len(snapshot.transactions))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", required=True, type=click.Path(dir_okay=False), help="Output CSV path.")
@click.option(
    "--include-transfers/--exclude-transfers",
    default=True,
    help="Keep transfers/payments in the export (default: keep).",
)
@click.option("--search", default="", help="Only export records matching this text.")
@click.option("--verbose", is_flag=True, default=False, help="Detailed progress output.")
def export(file: str, output: str, include_transfers: bool, search: str, verbose: bool) -> None:
    """Write the cleaned transactions from FILE to a CSV."""
    _configure_logging(verbose, debug=False)
    session = _load_session(file, AppConfig())

    from spend_dashboard.aggregator import filter_transactions
    from spend_dashboard.export import export as export_csv
    from spend_dashboard.models import Filters

    records = filter_transactions(
        session.snapshot.transactions,
        Filters(include_transfers=include_transfers, search=search),
    )

    try:
        output_path = export_csv(records, output)
    except Exception as exc:
        click.echo(f"Error writing output: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Wrote {len(records)} transactions to {output_path}")
    if verbose and session.snapshot.warnings:
        click.echo(f"Load reported {len(session.snapshot.warnings)} warnings.")


@cli.command()
@click.option(
    "--dir", "target_dir", default=".", type=click.Path(), help="Directory to initialize."
)
def init(target_dir: str) -> None:
    """Write a default dashboard.toml."""
    from spend_dashboard.config import initialize

    target = Path(target_dir).resolve()

    try:
        path = initialize(target)
    except Exception as exc:
        click.echo(f"Error initializing config: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Initialized spend dashboard config at {path}")
