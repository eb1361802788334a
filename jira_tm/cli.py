#!/usr/bin/env python
"""
Pipeline command line for the Test Management service.

Provides the actions a CI pipeline stage needs:
- Verifying Jira connectivity and credentials.
- Publishing a test result (status, attachments, comment).
- Adding or removing issue labels.
- Purging this tool's expired comments and their attachments.

Usage:
    jira-tm --config jira_tm.yaml post-results --issue QA-12 --status PASSED --attach reports/log.txt
    jira-tm --config jira_tm.yaml purge-comments --issue QA-12 --days 30
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import requests
from loguru import logger

from jira_tm.config import ConfigLoader, ConfigurationError, ServiceConfig, normalize_base_url
from jira_tm.config.schema_registry import SchemaValidationError
from jira_tm.logging_setup import configure_logging, level_for
from jira_tm.test_management import Issue, LabelAction, TestManagementService


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNREACHABLE = 2
EXIT_USAGE = 3


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for pipeline operations."""
    parser = argparse.ArgumentParser(
        prog="jira-tm",
        description="Publish test execution results to Jira Test Management",
    )
    parser.add_argument("--config", help="Settings file (YAML or JSON)")
    parser.add_argument("--url", help="Jira base URL (overrides settings)")
    parser.add_argument("--username", help="Jira user (overrides settings)")
    parser.add_argument("--password", help="Jira password or token (overrides settings)")
    parser.add_argument("--workspace", help="Root directory for attachment paths")
    parser.add_argument("--build-number", type=int, help="Build number quoted in comments")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings")

    actions = parser.add_subparsers(dest="action", required=True)

    actions.add_parser("check-connection", help="Verify URL and credentials")

    post = actions.add_parser("post-results", help="Publish a test result to an issue")
    post.add_argument("--issue", required=True, help="Issue key, e.g. QA-12")
    post.add_argument("--status", required=True, help="Test case status, e.g. PASSED")
    post.add_argument("--attach", action="append", default=[], help="File to attach (repeatable)")
    post.add_argument("--summary", default="", help="Short description of the test")
    post.add_argument("--comment", default="", help="Extra text for the comment")

    for name in ("add-label", "remove-label"):
        label = actions.add_parser(name, help=f"{name.split('-')[0].title()} an issue label")
        label.add_argument("--issue", required=True, help="Issue key")
        label.add_argument("--label", required=True, help="Label text (no spaces)")

    purge = actions.add_parser("purge-comments", help="Delete expired result comments")
    purge.add_argument("--issue", action="append", required=True, help="Issue key (repeatable)")
    purge.add_argument("--days", type=int, help="Retention in days (default: settings)")
    purge.add_argument(
        "--deletion-policy",
        choices=["ignore", "warn"],
        help="Report refused deletions (default: settings)",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ServiceConfig:
    """
    Build the ServiceConfig from the settings file and command-line overrides.

    Raises:
        ConfigurationError: If no Jira URL is available.
    """
    if args.config:
        config = ConfigLoader().load_service_config(args.config)
    else:
        url = args.url or os.environ.get("JIRA_TM_URL")
        if not url:
            raise ConfigurationError("No Jira URL: pass --config, --url or set JIRA_TM_URL")
        config = ServiceConfig(
            base_url=url,
            username=os.environ.get("JIRA_TM_USERNAME", ""),
            password=os.environ.get("JIRA_TM_PASSWORD", ""),
        )

    if args.url:
        config.base_url = normalize_base_url(args.url)
    if args.username:
        config.username = args.username
    if args.password:
        config.password = args.password
    if args.workspace:
        config.workspace = Path(args.workspace)
    if args.build_number is not None:
        config.build_number = args.build_number
    if getattr(args, "deletion_policy", None):
        config.deletion_policy = args.deletion_policy
    return config


def run(args: argparse.Namespace, service: TestManagementService) -> int:
    """Execute the selected action and return the process exit code."""
    if args.action == "check-connection":
        status = service.probe_connection()
        if not status.reachable:
            logger.error(f"Cannot reach {service.base_url}: {status.error}")
            return EXIT_UNREACHABLE
        if status.authenticated:
            logger.info(f"Connected to {service.base_url}")
            return EXIT_OK
        logger.error(f"Jira answered {status.status_code}. Check credentials.")
        return EXIT_FAILED

    if args.action == "post-results":
        issue = Issue(
            issue_key=args.issue,
            status=args.status,
            attachments=args.attach,
            summary=args.summary,
            comment=args.comment,
        )
        report = service.post_test_results(issue)
        return EXIT_OK if report.ok else EXIT_FAILED

    if args.action in ("add-label", "remove-label"):
        action = LabelAction.parse(args.action.split("-")[0])
        return EXIT_OK if service.manage_label(args.issue, args.label, action) else EXIT_FAILED

    if args.action == "purge-comments":
        days = args.days if args.days is not None else service.config.retention_days
        if days is None:
            logger.error("No retention configured: pass --days or set cleanup.retention_days")
            return EXIT_USAGE
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        clean = True
        for issue_key in args.issue:
            report = service.remove_expired_comments(issue_key, cutoff)
            logger.info(
                f"{issue_key}: removed {len(report.removed_comments)} comment(s), "
                f"{len(report.removed_attachments)} attachment(s)"
            )
            clean = clean and report.clean
        return EXIT_OK if clean else EXIT_FAILED

    return EXIT_USAGE


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the jira-tm command."""
    args = parse_args(argv)
    configure_logging(level=level_for(args.verbose, args.quiet))

    try:
        config = build_config(args)
    except (ConfigurationError, SchemaValidationError, FileNotFoundError) as e:
        logger.error(str(e))
        return EXIT_USAGE

    with TestManagementService.from_config(config) as service:
        try:
            return run(args, service)
        except SchemaValidationError as e:
            logger.error(str(e))
            return EXIT_USAGE
        except requests.RequestException as e:
            logger.error(f"Jira request failed: {e}")
            return EXIT_UNREACHABLE
        except OSError as e:
            logger.error(f"Cannot read attachment: {e}")
            return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
