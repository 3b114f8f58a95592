"""Error kinds raised while resolving, fetching, merging or persisting dashboards."""

from __future__ import annotations


class AnnotationError(Exception):
    """Base class for dashboard annotation failures.

    `kind` is a stable identifier reported in batch outcomes.
    """

    kind = "error"

    def __init__(self, message: str, *, dashboard: str | None = None):
        super().__init__(message)
        self.dashboard = dashboard


class TargetNotResolvedError(AnnotationError):
    kind = "target-not-resolved"


class DashboardNotFoundError(AnnotationError):
    kind = "not-found"


class UnauthorizedError(AnnotationError):
    kind = "unauthorized"


class TransportError(AnnotationError):
    kind = "transport"


class MalformedDocumentError(AnnotationError):
    kind = "malformed-document"


class PersistConflictError(AnnotationError):
    kind = "conflict"


class InvalidDashboardError(AnnotationError):
    """CloudWatch rejected the dashboard body on put."""

    kind = "invalid-dashboard"
