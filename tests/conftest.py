"""Shared test fixtures."""

import copy
import os

import boto3
import pytest
from moto import mock_aws

from cwnote.dashboards.errors import DashboardNotFoundError


@pytest.fixture(autouse=True)
def default_project_env(monkeypatch):
    """Provide deterministic default env vars for tests."""
    defaults = {
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SECURITY_TOKEN": "testing",
        "AWS_SESSION_TOKEN": "testing",
        "AWS_DEFAULT_REGION": "us-east-1",
    }
    for key, value in defaults.items():
        monkeypatch.setenv(key, value)
    for key in (
        "AWS_ENDPOINT_URL",
        "AWS_ENDPOINT_URL_CLOUDWATCH",
        "CWNOTE_LOG_LEVEL",
        "CWNOTE_DEFAULT_LABEL",
        "CWNOTE_MAX_WORKERS",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def cloudwatch_client(aws_credentials):
    """Create a mocked CloudWatch client."""
    with mock_aws():
        yield boto3.client("cloudwatch", region_name="us-east-1")


@pytest.fixture
def sample_dashboard_body():
    """A dashboard with two metric graphs, a text widget and an untitled metric."""
    return {
        "start": "-PT6H",
        "periodOverride": "inherit",
        "widgets": [
            {
                "type": "metric",
                "x": 0,
                "y": 0,
                "width": 12,
                "height": 6,
                "properties": {
                    "title": "Overall Latency",
                    "view": "timeSeries",
                    "region": "us-east-1",
                    "period": 300,
                    "metrics": [["AWS/ApiGateway", "Latency", "ApiName", "orders"]],
                },
            },
            {
                "type": "metric",
                "x": 12,
                "y": 0,
                "width": 12,
                "height": 6,
                "properties": {
                    "title": "CPU Utilization",
                    "view": "timeSeries",
                    "stacked": False,
                    "metrics": [["AWS/EC2", "CPUUtilization", {"color": "#ff7f0e"}]],
                    "annotations": {
                        "horizontal": [{"label": "SLO", "value": 80}],
                        "vertical": [{"label": "version: 1.0.0", "value": "2025-01-01T00:00:00Z"}],
                    },
                },
            },
            {
                "type": "text",
                "x": 0,
                "y": 6,
                "width": 24,
                "height": 2,
                "properties": {"markdown": "# Orders service"},
            },
            {"type": "metric", "x": 0, "y": 8, "width": 6, "height": 6},
        ],
    }


class StubDashboardStore:
    """In-memory dashboard store with injectable per-dashboard failures."""

    def __init__(self, dashboards, *, fetch_errors=None, persist_errors=None, list_error=None):
        self.dashboards = dict(dashboards)
        self.fetch_errors = dict(fetch_errors or {})
        self.persist_errors = dict(persist_errors or {})
        self.list_error = list_error
        self.persisted = {}
        self.list_calls = []
        self.fetch_calls = []

    def list_names(self, prefix=None):
        self.list_calls.append(prefix)
        if self.list_error is not None:
            raise self.list_error
        return list(self.dashboards)

    def fetch(self, name):
        self.fetch_calls.append(name)
        if name in self.fetch_errors:
            raise self.fetch_errors[name]
        if name not in self.dashboards:
            raise DashboardNotFoundError(f"get dashboard {name} failed: ResourceNotFound", dashboard=name)
        return copy.deepcopy(self.dashboards[name])

    def persist(self, name, document):
        if name in self.persist_errors:
            raise self.persist_errors[name]
        self.persisted[name] = document


@pytest.fixture
def make_store():
    """Factory for StubDashboardStore instances."""
    return StubDashboardStore
