"""CloudWatch-backed dashboard store (ListDashboards / GetDashboard / PutDashboard)."""

from __future__ import annotations

import json
import logging
from typing import Any

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from cwnote.dashboards.errors import (
    AnnotationError,
    DashboardNotFoundError,
    InvalidDashboardError,
    MalformedDocumentError,
    PersistConflictError,
    TransportError,
    UnauthorizedError,
)
from cwnote.dashboards.models import DashboardDocument
from cwnote.helpers.aws_client import get_client

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"ResourceNotFound", "ResourceNotFoundException", "DashboardNotFound", "DashboardNotFoundError"}
_UNAUTHORIZED_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "UnauthorizedOperation",
    "UnrecognizedClientException",
    "InvalidClientTokenId",
    "ExpiredToken",
    "ExpiredTokenException",
    "SignatureDoesNotMatch",
    "MissingAuthenticationToken",
}
_CONFLICT_CODES = {"ConcurrentModificationException", "ConflictException", "Conflict"}
_INVALID_BODY_CODES = {"InvalidParameterInput", "InvalidParameterValue", "DashboardInvalidInputError"}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", "")).strip()


def _error_message(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Message", "")).strip() or str(exc)


def _validation_details(messages: Any) -> str:
    parts = []
    for msg in messages or []:
        if not isinstance(msg, dict):
            continue
        path = msg.get("DataPath")
        text = msg.get("Message", "")
        parts.append(f"{path}: {text}" if path else str(text))
    return "; ".join(parts)


def translate_error(exc: Exception, *, action: str, dashboard: str | None = None) -> AnnotationError:
    """Map a botocore failure onto the annotation error kinds."""
    if isinstance(exc, ClientError):
        code = _error_code(exc)
        message = f"{action} failed: {code or 'ClientError'}: {_error_message(exc)}"
        if code in _NOT_FOUND_CODES:
            return DashboardNotFoundError(message, dashboard=dashboard)
        if code in _UNAUTHORIZED_CODES:
            return UnauthorizedError(message, dashboard=dashboard)
        if code in _CONFLICT_CODES:
            return PersistConflictError(message, dashboard=dashboard)
        if code in _INVALID_BODY_CODES:
            details = _validation_details(exc.response.get("DashboardValidationMessages"))
            if details:
                message = f"{message} ({details})"
            return InvalidDashboardError(message, dashboard=dashboard)
        return TransportError(message, dashboard=dashboard)
    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return UnauthorizedError(f"{action} failed: {exc}", dashboard=dashboard)
    return TransportError(f"{action} failed: {exc}", dashboard=dashboard)


def decode_body(body: Any, *, dashboard: str | None = None) -> DashboardDocument:
    if not isinstance(body, str) or not body.strip():
        raise MalformedDocumentError("dashboard has no body", dashboard=dashboard)
    try:
        document = json.loads(body)
    except json.JSONDecodeError as exc:
        raise MalformedDocumentError(
            f"failed to parse dashboard body JSON: {exc}", dashboard=dashboard
        ) from exc
    if not isinstance(document, dict):
        raise MalformedDocumentError(
            f"dashboard body must be a JSON object, got {type(document).__name__}",
            dashboard=dashboard,
        )
    return document


def encode_body(document: DashboardDocument) -> str:
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)


class CloudWatchDashboardStore:
    """Dashboard store backed by a boto3 CloudWatch client."""

    def __init__(self, client=None, *, region: str | None = None):
        self._client = client if client is not None else get_client("cloudwatch", region=region)

    @property
    def client(self):
        return self._client

    def list_names(self, prefix: str | None = None) -> list[str]:
        kwargs: dict[str, Any] = {}
        if prefix:
            kwargs["DashboardNamePrefix"] = prefix

        names: list[str] = []
        try:
            paginator = self._client.get_paginator("list_dashboards")
            for page in paginator.paginate(**kwargs):
                for entry in page.get("DashboardEntries", []) or []:
                    name = entry.get("DashboardName")
                    if isinstance(name, str) and name:
                        names.append(name)
        except (ClientError, BotoCoreError) as exc:
            raise translate_error(exc, action="list dashboards") from exc

        logger.debug("Listed %d dashboard(s) (prefix=%r)", len(names), prefix)
        return names

    def fetch(self, name: str) -> DashboardDocument:
        try:
            resp = self._client.get_dashboard(DashboardName=name)
        except (ClientError, BotoCoreError) as exc:
            raise translate_error(exc, action=f"get dashboard {name}", dashboard=name) from exc
        return decode_body(resp.get("DashboardBody"), dashboard=name)

    def persist(self, name: str, document: DashboardDocument) -> None:
        try:
            resp = self._client.put_dashboard(DashboardName=name, DashboardBody=encode_body(document))
        except (ClientError, BotoCoreError) as exc:
            raise translate_error(exc, action=f"put dashboard {name}", dashboard=name) from exc

        details = _validation_details(resp.get("DashboardValidationMessages"))
        if details:
            logger.warning("CloudWatch accepted dashboard %s with validation messages: %s", name, details)
