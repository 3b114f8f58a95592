"""Insert vertical annotations into dashboard widgets.

The merge never mutates its input. It builds a new document that shares every
untouched subtree with the original and copies only the path down to each
selected widget's `properties.annotations.vertical` list, so unrelated widget
configuration survives repeated runs unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from cwnote.dashboards.errors import MalformedDocumentError
from cwnote.dashboards.models import AnnotationRequest, DashboardDocument
from cwnote.dashboards.selector import select_widgets, widget_list


@dataclass(frozen=True)
class MergeResult:
    document: DashboardDocument
    widget_indices: tuple[int, ...]

    @property
    def widgets_annotated(self) -> int:
        return len(self.widget_indices)

    @property
    def changed(self) -> bool:
        return bool(self.widget_indices)


def _child_object(parent: dict[str, Any], key: str, *, path: str) -> dict[str, Any]:
    value = parent.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedDocumentError(f"widget {path} must be an object, got {type(value).__name__}")
    return dict(value)


def _annotated_widget(widget: dict[str, Any], annotation: dict[str, str], *, index: int) -> dict[str, Any]:
    props = _child_object(widget, "properties", path=f"[{index}].properties")
    annotations = _child_object(props, "annotations", path=f"[{index}].properties.annotations")

    vertical = annotations.get("vertical")
    if vertical is None:
        vertical = []
    elif not isinstance(vertical, list):
        raise MalformedDocumentError(
            f"widget [{index}].properties.annotations.vertical must be a list, "
            f"got {type(vertical).__name__}"
        )

    annotations["vertical"] = [*vertical, annotation]
    props["annotations"] = annotations
    updated = dict(widget)
    updated["properties"] = props
    return updated


def apply_annotation(
    document: DashboardDocument,
    eligible_widget_indices: Sequence[int],
    request: AnnotationRequest,
) -> DashboardDocument:
    """Return a copy of `document` with one annotation appended per selected widget."""
    widgets = widget_list(document)
    indices = set(eligible_widget_indices)
    if not indices:
        return document

    for index in indices:
        if not 0 <= index < len(widgets) or not isinstance(widgets[index], dict):
            raise MalformedDocumentError(f"widget index {index} does not refer to a widget object")

    new_widgets = [
        _annotated_widget(widget, request.to_annotation(), index=i) if i in indices else widget
        for i, widget in enumerate(widgets)
    ]
    updated = dict(document)
    updated["widgets"] = new_widgets
    return updated


def merge_annotation(document: DashboardDocument, request: AnnotationRequest) -> MergeResult:
    """Select widgets by the request's title filter and annotate them."""
    indices = select_widgets(document, request.widget_title_filter)
    return MergeResult(
        document=apply_annotation(document, indices, request),
        widget_indices=tuple(indices),
    )
