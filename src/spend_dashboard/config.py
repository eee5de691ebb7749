"""Configuration loading, writing, and project initialization.

Reads ``dashboard.toml`` using stdlib ``tomllib`` and writes it using
``tomli_w``.  Depends only on ``models.py``.
"""

from __future__ import annotations

import sys
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

import tomli_w

from spend_dashboard.models import SORT_DIRECTIONS, SORT_KEYS, AppConfig

CONFIG_FILENAME = "dashboard.toml"

_HEADER_COMMENT = """\
# Spend Dashboard configuration
# [display] sizes apply to the summary; [filters] and [sort] are defaults
# that command-line flags override.

"""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(root: Path) -> AppConfig:
    """Load ``dashboard.toml`` from *root* and return an :class:`AppConfig`.

    Missing keys fall back to the :class:`AppConfig` defaults.

    Args:
        root: Directory containing ``dashboard.toml``.

    Returns:
        A validated :class:`AppConfig` instance.

    Raises:
        FileNotFoundError: If ``dashboard.toml`` does not exist.
        ValueError: If a value is out of range or not a known option.
    """
    data = _read_toml(Path(root) / CONFIG_FILENAME)
    defaults = AppConfig()

    display = data.get("display", {})
    filters = data.get("filters", {})
    sort = data.get("sort", {})

    config = AppConfig(
        page_size=display.get("page_size", defaults.page_size),
        top_categories=display.get("top_categories", defaults.top_categories),
        top_merchants=display.get("top_merchants", defaults.top_merchants),
        include_transfers=filters.get("include_transfers", defaults.include_transfers),
        search=filters.get("search", defaults.search),
        sort_key=sort.get("key", defaults.sort_key),
        sort_direction=sort.get("direction", defaults.sort_direction),
    )
    _validate(config)
    return config


def save_config(root: Path, config: AppConfig) -> Path:
    """Write *config* to ``dashboard.toml`` in *root*, overwriting it.

    Returns:
        The path written.
    """
    _validate(config)
    path = Path(root) / CONFIG_FILENAME
    body = tomli_w.dumps(
        {
            "display": {
                "page_size": config.page_size,
                "top_categories": config.top_categories,
                "top_merchants": config.top_merchants,
            },
            "filters": {
                "include_transfers": config.include_transfers,
                "search": config.search,
            },
            "sort": {
                "key": config.sort_key,
                "direction": config.sort_direction,
            },
        }
    )
    path.write_text(_HEADER_COMMENT + body, encoding="utf-8")
    return path


def initialize(target_dir: Path) -> Path:
    """Create *target_dir* and a default ``dashboard.toml`` inside it.

    Idempotent: an existing config file is **not** overwritten.

    Returns:
        The path to the config file.
    """
    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    path = target_dir / CONFIG_FILENAME
    if not path.exists():
        save_config(target_dir, AppConfig())
    return path


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_toml(path: Path) -> dict:
    """Read and parse a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _validate(config: AppConfig) -> None:
    """Raise ValueError for settings the dashboard cannot honor."""
    for name in ("page_size", "top_categories", "top_merchants"):
        value = getattr(config, name)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ValueError(f"{name} must be a positive integer, got {value!r}")
    if not isinstance(config.include_transfers, bool):
        raise ValueError(
            f"include_transfers must be true or false, got {config.include_transfers!r}"
        )
    if not isinstance(config.search, str):
        raise ValueError(f"search must be a string, got {config.search!r}")
    if config.sort_key not in SORT_KEYS:
        raise ValueError(
            f"sort key must be one of {', '.join(SORT_KEYS)}, got {config.sort_key!r}"
        )
    if config.sort_direction not in SORT_DIRECTIONS:
        raise ValueError(f"sort direction must be 'asc' or 'desc', got {config.sort_direction!r}")
