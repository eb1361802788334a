"""
Test Management Data Model.

Transient value objects exchanged with Jira. Issues are built by the caller;
attachments, comments and test entities are decoded from REST responses and
discarded once the call that produced them completes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# Jira renders "2020-01-01T00:00:00.000+0000"; other servers send plain ISO-8601.
TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)


def parse_timestamp(value: str) -> datetime:
    """
    Parse a Jira timestamp into a timezone-aware datetime.

    Args:
        value: Timestamp such as "2020-01-01T00:00:00.000+0000" or "2020-01-01T00:00:00Z".

    Returns:
        Timezone-aware datetime. Values without an offset are taken as UTC.

    Raises:
        ValueError: If the value matches none of the known formats.
    """
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


@dataclass
class Issue:
    """
    Test execution result for a single Jira issue.

    Attributes:
        issue_key: Jira issue key (e.g., "QA-12").
        status: Test case status to publish (e.g., "PASSED", "FAILED").
        attachments: Workspace-relative paths of files to attach.
        summary: Short description of the executed test.
        comment: Free text appended to the posted comment.
    """

    issue_key: str
    status: str
    attachments: List[str] = field(default_factory=list)
    summary: str = ""
    comment: str = ""


@dataclass
class Attachment:
    """Attachment as returned by the upload endpoint."""

    id: int
    filename: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Attachment":
        return cls(id=int(data["id"]), filename=data["filename"])


@dataclass
class Comment:
    """Issue comment as returned by the comment list endpoint."""

    id: int
    body: str
    created: datetime

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            id=int(data["id"]),
            body=data.get("body") or "",
            created=parse_timestamp(data["created"]),
        )


@dataclass
class TMTest:
    """Test case entity of the test-management namespace."""

    id: Optional[int] = None
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TMTest":
        test_id = data.get("id")
        return cls(
            id=int(test_id) if test_id is not None else None,
            status=data.get("status"),
        )
