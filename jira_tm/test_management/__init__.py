"""
Jira Test Management Module.

Provides integration with Jira and its Test Management REST API for:
- Updating test case status.
- Uploading attachments and posting result comments.
- Adding and removing issue labels.
- Sweeping expired result comments and their attachments.
"""

from jira_tm.test_management.formatter import TITLE, CommentFormatter
from jira_tm.test_management.labels import LabelAction
from jira_tm.test_management.models import Attachment, Comment, Issue, TMTest
from jira_tm.test_management.outcomes import (
    ConnectionStatus,
    DeletionPolicy,
    OperationResult,
    PublishReport,
    SweepReport,
    TestManagementError,
)
from jira_tm.test_management.payloads import PayloadBuilder, PayloadValidationError
from jira_tm.test_management.service import TestManagementService

__all__ = [
    "TITLE",
    "Attachment",
    "Comment",
    "CommentFormatter",
    "ConnectionStatus",
    "DeletionPolicy",
    "Issue",
    "LabelAction",
    "OperationResult",
    "PayloadBuilder",
    "PayloadValidationError",
    "PublishReport",
    "SweepReport",
    "TMTest",
    "TestManagementError",
    "TestManagementService",
]
