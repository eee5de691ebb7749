"""Dashboard session: the one loaded record set and the views built from it.

A session holds a single immutable :class:`~spend_dashboard.models.Snapshot`.
Loading a file normalizes it completely and only then swaps the new snapshot
in, so a reader never sees records from two uploads mixed together. A failed
load leaves the previous snapshot untouched.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from spend_dashboard.aggregator import build_view
from spend_dashboard.models import AppConfig, DashboardView, Filters, Snapshot, SortSpec
from spend_dashboard.normalizer import normalize_text, read_csv_text

logger = logging.getLogger(__name__)


class DashboardSession:
    """Owns the current snapshot and renders views of it."""

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self._snapshot = Snapshot()

    @property
    def snapshot(self) -> Snapshot:
        """The current snapshot (version 0 and empty before any load)."""
        return self._snapshot

    def load_text(self, raw_text: str, source: str = "<text>") -> Snapshot:
        """Normalize *raw_text* and replace the current snapshot with it.

        Raises:
            MalformedInputError: If the text is not delimited text. The
                current snapshot is kept.
        """
        result = normalize_text(raw_text, source=source)
        snapshot = Snapshot(
            version=self._snapshot.version + 1,
            transactions=tuple(result.transactions),
            warnings=tuple(result.errors + result.warnings),
            source=source,
        )
        self._snapshot = snapshot
        logger.info(
            "Loaded %d transactions from %s (version %d)",
            len(snapshot.transactions),
            source,
            snapshot.version,
        )
        return snapshot

    def load(self, file_path: str | Path) -> Snapshot:
        """Read *file_path* and load it. See :meth:`load_text`."""
        return self.load_text(read_csv_text(file_path), source=str(file_path))

    async def aload(self, file_path: str | Path) -> Snapshot:
        """Like :meth:`load`, but awaits the file read in a worker thread."""
        raw_text = await asyncio.to_thread(read_csv_text, file_path)
        return self.load_text(raw_text, source=str(file_path))

    def default_filters(self) -> Filters:
        """Filters taken from the session config."""
        return Filters(
            include_transfers=self.config.include_transfers,
            search=self.config.search,
        )

    def default_sort(self) -> SortSpec:
        """Sort order taken from the session config."""
        return SortSpec(key=self.config.sort_key, direction=self.config.sort_direction)

    def view(
        self,
        filters: Filters | None = None,
        sort: SortSpec | None = None,
        show_all: bool = False,
        page: int = 1,
    ) -> DashboardView:
        """Build a view of the current snapshot.

        Filters and sort default to the session config. With *show_all* the
        transaction table is not paginated.
        """
        return build_view(
            self._snapshot.transactions,
            filters=filters or self.default_filters(),
            sort=sort or self.default_sort(),
            page_size=None if show_all else self.config.page_size,
            page=page,
            top_categories=self.config.top_categories,
            top_merchant_count=self.config.top_merchants,
        )
