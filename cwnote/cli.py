#!/usr/bin/env python3
"""Add vertical annotations to CloudWatch dashboards.

Marks a point in time (a deploy, an incident, an alarm) on the metric widgets
of one dashboard, or of every dashboard whose name starts or ends with a given
string.

Examples:
  cwnote annotate --dashboard svc-prod --value 1.4.2
  cwnote annotate --dashboard-prefix svc- --label deploy --value 1.4.2 --dry-run --diff
  cwnote --region eu-central-1 annotate --dashboard-suffix -prod \\
      --label incident --value INC-1234 --time 2025-01-20T12:00:00Z \\
      --widget-title-contains Latency
"""

from __future__ import annotations

import argparse
import difflib
import json
import logging
import sys
from collections.abc import Sequence

from botocore.exceptions import BotoCoreError

from cwnote.config import get_default_label, get_log_level, get_max_workers
from cwnote.dashboards.batch import exit_status, run
from cwnote.dashboards.models import (
    AnnotationRequest,
    DashboardOutcome,
    DashboardTarget,
    parse_timestamp,
)
from cwnote.stores.base import DashboardStore
from cwnote.stores.cloudwatch import CloudWatchDashboardStore

logger = logging.getLogger(__name__)

EXIT_USAGE = 2

# Options whose values commonly start with a dash, e.g. `--dashboard-suffix -prod`.
DASH_VALUE_OPTIONS = frozenset({"--dashboard", "--dashboard-prefix", "--dashboard-suffix"})


def _rfc3339(value: str) -> str:
    # Kept as text so the fractional-second width survives into the annotation.
    try:
        parse_timestamp(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    return value.strip()


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got: {value}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got: {value}")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cwnote",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--region",
        default=None,
        help="AWS region (falls back to AWS_DEFAULT_REGION / AWS_REGION / profile)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: env CWNOTE_LOG_LEVEL or INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    annotate = sub.add_parser("annotate", help="Add a vertical annotation to dashboard widgets")
    target = annotate.add_mutually_exclusive_group(required=True)
    target.add_argument("--dashboard", default=None, help="Single dashboard name to update")
    target.add_argument("--dashboard-prefix", default=None, help="Update every dashboard whose name starts with this")
    target.add_argument("--dashboard-suffix", default=None, help="Update every dashboard whose name ends with this")
    annotate.add_argument(
        "--label",
        default=get_default_label(),
        help='Annotation label, e.g. "version", "deploy", "incident", "alarm"',
    )
    annotate.add_argument("--value", required=True, help='Annotation value, e.g. "1.4.2" or "INC-1234"')
    annotate.add_argument(
        "--time",
        type=_rfc3339,
        default=None,
        help=(
            "Annotation time, RFC3339 with offset (e.g. 2025-01-20T12:00:00Z); "
            "up to 6 fractional digits, written back with the same width. "
            "Defaults to the current UTC second"
        ),
    )
    annotate.add_argument(
        "--widget-title-contains",
        default=None,
        help="Only annotate widgets whose title contains this (case-sensitive)",
    )
    annotate.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute the change and report it without updating any dashboard",
    )
    annotate.add_argument(
        "--diff",
        action="store_true",
        help="With --dry-run, print a unified diff of each dashboard body",
    )
    annotate.add_argument(
        "--max-workers",
        type=_positive_int,
        default=None,
        help="Dashboards to process concurrently (default: env CWNOTE_MAX_WORKERS or 1)",
    )
    return parser


def join_dash_values(argv: Sequence[str]) -> list[str]:
    """Rewrite `--dashboard-suffix -prod` as `--dashboard-suffix=-prod`.

    argparse reads a dash-leading token as an option, so a value such as `-prod`
    would otherwise be rejected. Tokens starting with `--` are left alone.
    """
    out: list[str] = []
    tokens = list(argv)
    i = 0
    while i < len(tokens):
        token = tokens[i]
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        if (
            token in DASH_VALUE_OPTIONS
            and nxt is not None
            and nxt.startswith("-")
            and not nxt.startswith("--")
            and len(nxt) > 1
        ):
            out.append(f"{token}={nxt}")
            i += 2
            continue
        out.append(token)
        i += 1
    return out


def target_from_args(args: argparse.Namespace) -> DashboardTarget:
    if args.dashboard is not None:
        return DashboardTarget.exact(args.dashboard)
    if args.dashboard_prefix is not None:
        return DashboardTarget.prefix(args.dashboard_prefix)
    return DashboardTarget.suffix(args.dashboard_suffix)


def request_from_args(args: argparse.Namespace) -> AnnotationRequest:
    return AnnotationRequest.build(
        label=args.label,
        value_text=args.value,
        timestamp=args.time,
        widget_title_filter=args.widget_title_contains,
    )


def _configure_logging(level_name: str | None) -> None:
    level = logging.getLevelName(level_name.upper()) if level_name else get_log_level()
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def body_diff(outcome: DashboardOutcome) -> str:
    before = json.dumps(outcome.before, indent=2, sort_keys=True).splitlines()
    after = json.dumps(outcome.after, indent=2, sort_keys=True).splitlines()
    return "\n".join(
        difflib.unified_diff(
            before,
            after,
            fromfile=f"{outcome.name} (current)",
            tofile=f"{outcome.name} (annotated)",
            lineterm="",
        )
    )


def render_outcome(outcome: DashboardOutcome, request: AnnotationRequest) -> str:
    what = f"{request.label} '{request.value_text}'"
    if outcome.status == "annotated":
        return (
            f"Annotated {outcome.widgets_annotated} metric widget(s) on dashboard "
            f"'{outcome.name}' with {what}"
        )
    if outcome.status == "previewed":
        return (
            f"[dry-run] {outcome.name}: would annotate {outcome.widgets_annotated} "
            f"metric widget(s) with {what} at {request.annotation_value}"
        )
    if outcome.status == "no-op":
        return f"{outcome.name}: no matching metric widgets found (nothing to annotate)"
    if outcome.status == "no-match":
        return outcome.reason or "No dashboards matched"
    subject = f"{outcome.name} " if outcome.name else ""
    return f"FAILED {subject}[{outcome.error_kind}]: {outcome.reason}"


def report(
    outcomes: Sequence[DashboardOutcome],
    *,
    target: DashboardTarget,
    request: AnnotationRequest,
    show_diff: bool = False,
) -> None:
    named = [o.name for o in outcomes if o.name]
    if not target.is_exact and named:
        print(f"{len(named)} dashboard(s) match {target.describe()}:")
        for name in named:
            print(f"  - {name}")

    for outcome in outcomes:
        line = render_outcome(outcome, request)
        if outcome.failed:
            print(line, file=sys.stderr)
        else:
            print(line)
        if show_diff and outcome.status == "previewed":
            print(body_diff(outcome))

    if len(named) > 1:
        counts: dict[str, int] = {}
        for outcome in outcomes:
            counts[outcome.status] = counts.get(outcome.status, 0) + 1
        summary = ", ".join(f"{count} {status}" for status, count in counts.items())
        print(f"Done: {summary}")


def build_store(region: str | None) -> DashboardStore:
    return CloudWatchDashboardStore(region=region)


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(join_dash_values(argv))

    if args.diff and not args.dry_run:
        parser.error("--diff requires --dry-run")

    try:
        _configure_logging(args.log_level)
        max_workers = args.max_workers or get_max_workers()
        target = target_from_args(args)
        request = request_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        store = build_store(args.region)
    except BotoCoreError as exc:
        print(f"Could not create CloudWatch client: {exc}", file=sys.stderr)
        return EXIT_USAGE

    outcomes = run(target, request, args.dry_run, store, max_workers=max_workers)
    report(outcomes, target=target, request=request, show_diff=args.diff)
    return exit_status(outcomes)


if __name__ == "__main__":
    raise SystemExit(main())
