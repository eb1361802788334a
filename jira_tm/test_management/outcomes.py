"""
Operation outcomes.

Typed results returned by the TestManagementService so callers can branch on
what Jira answered instead of reading log output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class TestManagementError(Exception):
    """Raised when a Test Management operation is rejected by Jira."""

    __test__ = False

    def __init__(
        self,
        message: str,
        operation: str = "",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code


@dataclass
class OperationResult:
    """
    Outcome of a single REST call.

    Attributes:
        operation: Name of the attempted operation (e.g., "update_test_status").
        status_code: HTTP status code returned by Jira.
        reason: HTTP reason phrase returned by Jira.
        ok: Whether the status code is the one the operation expects.
        message: The log line written for this outcome.
    """

    operation: str
    status_code: int
    reason: str = ""
    ok: bool = False
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_outcome(self) -> "OperationResult":
        """
        Raise if the operation failed.

        Returns:
            self, to allow chaining on success.

        Raises:
            TestManagementError: If ``ok`` is False.
        """
        if not self.ok:
            raise TestManagementError(
                f"{self.operation} failed with status {self.status_code} "
                f"({self.reason}): {self.message}",
                operation=self.operation,
                status_code=self.status_code,
            )
        return self


@dataclass
class ConnectionStatus:
    """
    Result of the connectivity probe.

    Either reachable with the status code Jira answered, or unreachable with
    the transport error that prevented an answer.
    """

    reachable: bool
    status_code: int = 0
    error: str = ""

    @property
    def authenticated(self) -> bool:
        """True when Jira accepted the credentials."""
        return self.reachable and self.status_code == 200


@dataclass
class PublishReport:
    """
    Outcome of publishing one issue's results.

    Attributes:
        issue_key: Issue the results were published to.
        status_result: Outcome of the test case status update.
        comment_result: Outcome of the comment post.
        links: Attachment path -> browse link for files Jira accepted.
        skipped_attachments: Attachment paths that got no browse link.
    """

    issue_key: str
    status_result: OperationResult
    comment_result: OperationResult
    links: Dict[str, str] = field(default_factory=dict)
    skipped_attachments: List[str] = field(default_factory=list)

    @property
    def steps(self) -> List[OperationResult]:
        return [self.status_result, self.comment_result]

    @property
    def ok(self) -> bool:
        """True when every step succeeded and every attachment was uploaded."""
        return all(self.steps) and not self.skipped_attachments

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_outcome(self) -> "PublishReport":
        """
        Raise for the first failed step.

        Raises:
            TestManagementError: If a step failed or an attachment was rejected.
        """
        for step in self.steps:
            step.raise_for_outcome()
        if self.skipped_attachments:
            raise TestManagementError(
                f"Attachments rejected for {self.issue_key}: {self.skipped_attachments}",
                operation="attach",
            )
        return self


class DeletionPolicy(Enum):
    """How the expiry sweep reports deletions Jira refused."""

    IGNORE = "ignore"
    WARN = "warn"


@dataclass
class SweepReport:
    """Ids touched by one expiry sweep."""

    issue_key: str
    removed_attachments: List[int] = field(default_factory=list)
    failed_attachments: List[int] = field(default_factory=list)
    removed_comments: List[int] = field(default_factory=list)
    failed_comments: List[int] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        """True when no deletion failed."""
        return not (self.failed_attachments or self.failed_comments)
