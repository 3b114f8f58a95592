"""Pick the dashboards and widgets an annotation applies to."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from cwnote.dashboards.errors import MalformedDocumentError
from cwnote.dashboards.models import DashboardDocument, DashboardTarget

ANNOTATABLE_WIDGET_TYPES = frozenset({"metric"})


def select_dashboard_names(target: DashboardTarget, known_names: Iterable[str]) -> list[str]:
    """Resolve a target against the store's dashboard listing.

    An exact target always resolves to itself; a missing dashboard is reported
    later by the fetch. Prefix/suffix matches keep the listing order.
    """
    if target.is_exact:
        return [target.value]

    seen: set[str] = set()
    names: list[str] = []
    for name in known_names:
        if not isinstance(name, str) or name in seen:
            continue
        if target.matches(name):
            seen.add(name)
            names.append(name)
    return names


def widget_list(document: DashboardDocument) -> list[Any]:
    """Return the document's `widgets` list, or raise MalformedDocumentError."""
    if not isinstance(document, dict):
        raise MalformedDocumentError(
            f"dashboard body must be a JSON object, got {type(document).__name__}"
        )
    if "widgets" not in document:
        raise MalformedDocumentError("dashboard body has no 'widgets' field")
    widgets = document["widgets"]
    if not isinstance(widgets, list):
        raise MalformedDocumentError(
            f"dashboard 'widgets' must be a list, got {type(widgets).__name__}"
        )
    return widgets


def widget_title(widget: dict[str, Any]) -> str | None:
    props = widget.get("properties")
    if not isinstance(props, dict):
        return None
    title = props.get("title")
    return title if isinstance(title, str) else None


def is_eligible(widget: Any, title_filter: str | None) -> bool:
    if not isinstance(widget, dict):
        return False
    if widget.get("type") not in ANNOTATABLE_WIDGET_TYPES:
        return False
    if not title_filter:
        return True
    title = widget_title(widget)
    return title is not None and title_filter in title


def select_widgets(document: DashboardDocument, title_filter: str | None = None) -> list[int]:
    """Indices of the metric widgets whose title contains `title_filter`.

    Without a filter every metric widget is selected. Titles are matched
    case-sensitively; untitled widgets never match a filter.
    """
    return [i for i, widget in enumerate(widget_list(document)) if is_eligible(widget, title_filter)]
