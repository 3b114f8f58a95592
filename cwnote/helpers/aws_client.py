"""Boto3 client factory for AWS and LocalStack."""

from __future__ import annotations

import os
from urllib.parse import urlparse

import boto3
from botocore.config import Config

from cwnote.config import get_region

_LOCAL_CREDENTIAL_DEFAULT = "test"


def _service_endpoint(service: str) -> str | None:
    specific_key = f"AWS_ENDPOINT_URL_{service.replace('-', '_').upper()}"
    return os.environ.get(specific_key) or os.environ.get("AWS_ENDPOINT_URL")


def _is_local_endpoint(endpoint: str | None) -> bool:
    if not endpoint:
        return False
    try:
        host = (urlparse(endpoint).hostname or "").lower()
    except ValueError:
        return False
    if not host:
        return False
    return host in {"localhost", "127.0.0.1", "::1", "localstack"} or "localstack" in host


def _local_auth_kwargs(endpoint: str | None) -> dict[str, str]:
    if not _is_local_endpoint(endpoint):
        return {}

    def _env_or_default(name: str) -> str:
        return os.environ.get(name, "").strip() or _LOCAL_CREDENTIAL_DEFAULT

    kwargs = {
        "aws_access_key_id": _env_or_default("AWS_ACCESS_KEY_ID"),
        "aws_secret_access_key": _env_or_default("AWS_SECRET_ACCESS_KEY"),
    }
    session_token = os.environ.get("AWS_SESSION_TOKEN", "").strip()
    if session_token:
        kwargs["aws_session_token"] = session_token
    return kwargs


def _service_config(max_attempts: int) -> Config:
    return Config(retries={"mode": "standard", "max_attempts": max_attempts})


def get_client(service: str, *, region: str | None = None, max_attempts: int = 3):
    """Create a boto3 client for the given service.

    `region` overrides the environment; when neither is set boto3 falls back to
    its own resolution (profile, config files).
    """
    endpoint = _service_endpoint(service)
    kwargs = {
        "region_name": get_region(region),
        "endpoint_url": endpoint,
        "config": _service_config(max_attempts),
        **_local_auth_kwargs(endpoint),
    }
    return boto3.client(service, **kwargs)
