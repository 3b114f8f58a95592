"""Apply one annotation across a set of dashboards.

Every dashboard runs fetch -> select -> merge -> (preview | persist) on its own.
A failure is recorded as that dashboard's outcome and the batch moves on;
dashboards that were persisted stay persisted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from cwnote.dashboards.errors import AnnotationError, TargetNotResolvedError
from cwnote.dashboards.merger import merge_annotation
from cwnote.dashboards.models import AnnotationRequest, DashboardOutcome, DashboardTarget
from cwnote.dashboards.selector import select_dashboard_names
from cwnote.stores.base import DashboardStore

logger = logging.getLogger(__name__)


def resolve_dashboard_names(target: DashboardTarget, store: DashboardStore) -> list[str]:
    """Resolve a target to dashboard names, raising TargetNotResolvedError on zero matches."""
    if target.is_exact:
        return select_dashboard_names(target, [])

    hint = target.value if target.kind == "prefix" else None
    names = select_dashboard_names(target, store.list_names(prefix=hint))
    if not names:
        raise TargetNotResolvedError(f"No dashboards found with {target.describe()}")
    return names


def _failed(name: str, exc: AnnotationError) -> DashboardOutcome:
    logger.warning("Dashboard %s failed (%s): %s", name, exc.kind, exc)
    return DashboardOutcome(status="failed", name=name, reason=str(exc), error_kind=exc.kind)


def annotate_dashboard(
    name: str,
    request: AnnotationRequest,
    *,
    dry_run: bool,
    store: DashboardStore,
) -> DashboardOutcome:
    """Run the per-dashboard pipeline and report its outcome."""
    logger.debug("Fetching dashboard %s", name)
    try:
        before = store.fetch(name)
        merged = merge_annotation(before, request)
    except AnnotationError as exc:
        return _failed(name, exc)

    if not merged.changed:
        logger.info("%s: no matching metric widgets", name)
        return DashboardOutcome(status="no-op", name=name)

    if dry_run:
        logger.debug("%s: dry-run, skipping put", name)
        return DashboardOutcome(
            status="previewed",
            name=name,
            widgets_annotated=merged.widgets_annotated,
            before=before,
            after=merged.document,
        )

    try:
        store.persist(name, merged.document)
    except AnnotationError as exc:
        return _failed(name, exc)

    logger.info("%s: annotated %d widget(s)", name, merged.widgets_annotated)
    return DashboardOutcome(
        status="annotated",
        name=name,
        widgets_annotated=merged.widgets_annotated,
        before=before,
        after=merged.document,
    )


def run(
    target: DashboardTarget,
    request: AnnotationRequest,
    dry_run: bool,
    store: DashboardStore,
    *,
    max_workers: int = 1,
) -> list[DashboardOutcome]:
    """Annotate every dashboard the target resolves to.

    Outcomes come back in resolution order whether or not dashboards were
    processed concurrently.
    """
    try:
        names = resolve_dashboard_names(target, store)
    except TargetNotResolvedError as exc:
        logger.warning("%s", exc)
        return [DashboardOutcome(status="no-match", reason=str(exc), error_kind=exc.kind)]
    except AnnotationError as exc:
        logger.error("Could not resolve %s: %s", target.describe(), exc)
        return [DashboardOutcome(status="failed", reason=str(exc), error_kind=exc.kind)]

    logger.info("Resolved %s to %d dashboard(s)", target.describe(), len(names))

    def _one(name: str) -> DashboardOutcome:
        return annotate_dashboard(name, request, dry_run=dry_run, store=store)

    if max_workers <= 1 or len(names) <= 1:
        return [_one(name) for name in names]

    with ThreadPoolExecutor(max_workers=min(max_workers, len(names))) as pool:
        return list(pool.map(_one, names))


def exit_status(outcomes: Iterable[DashboardOutcome]) -> int:
    """0 when no dashboard failed, 1 otherwise."""
    return 1 if any(outcome.failed for outcome in outcomes) else 0
