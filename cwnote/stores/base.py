"""The storage interface the batch runner talks to."""

from __future__ import annotations

from typing import Protocol

from cwnote.dashboards.models import DashboardDocument


class DashboardStore(Protocol):
    def list_names(self, prefix: str | None = None) -> list[str]:
        """Dashboard names in the store's listing order.

        `prefix` is a server-side narrowing hint; callers still filter.
        """
        ...

    def fetch(self, name: str) -> DashboardDocument:
        ...

    def persist(self, name: str, document: DashboardDocument) -> None:
        ...
