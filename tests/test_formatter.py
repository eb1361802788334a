"""
Unit Tests for the Test Management value types.

Covers:
- Model decoding: timestamps, comments, attachments, test entities.
- LabelAction: operation keys and log wording.
- CommentFormatter: marker title, status and attachment table.
- PayloadBuilder: schema-checked request bodies.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from jira_tm.test_management import (
    TITLE,
    Attachment,
    Comment,
    CommentFormatter,
    Issue,
    LabelAction,
    OperationResult,
    PayloadBuilder,
    PayloadValidationError,
    PublishReport,
    TestManagementError,
    TMTest,
)
from jira_tm.test_management.models import parse_timestamp


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestModels:
    """Tests for the decoded entities."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2020-01-01T00:00:00Z", datetime(2020, 1, 1, tzinfo=timezone.utc)),
            ("2020-01-01T00:00:00.000+0000", datetime(2020, 1, 1, tzinfo=timezone.utc)),
            (
                "2020-01-01T03:00:00.500+0300",
                datetime(2020, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc),
            ),
            ("2020-01-01T00:00:00", datetime(2020, 1, 1, tzinfo=timezone.utc)),
        ],
    )
    def test_parse_timestamp(self, value: str, expected: datetime) -> None:
        """Test the timestamp spellings Jira servers produce."""
        parsed = parse_timestamp(value)
        assert parsed == expected
        assert parsed.tzinfo is not None

    def test_parse_timestamp_invalid(self) -> None:
        """Test that garbage is rejected."""
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")

    def test_comment_from_dict(self) -> None:
        """Test decoding a comment with a string id."""
        comment = Comment.from_dict(
            {"id": "10200", "body": "hi", "created": "2021-03-04T05:06:07.000+0100"}
        )
        assert comment.id == 10200
        assert comment.created == datetime(2021, 3, 4, 4, 6, 7, tzinfo=timezone.utc)

    def test_comment_null_body(self) -> None:
        """Test that a null body decodes as empty text."""
        comment = Comment.from_dict({"id": 1, "body": None, "created": "2021-01-01T00:00:00Z"})
        assert comment.body == ""

    def test_attachment_from_dict(self) -> None:
        """Test decoding an upload response entry."""
        attachment = Attachment.from_dict({"id": "10000", "filename": "log.txt", "size": 5})
        assert attachment == Attachment(id=10000, filename="log.txt")

    def test_tm_test_from_dict(self) -> None:
        """Test decoding a test case entity."""
        assert TMTest.from_dict({"id": 3, "status": "PASSED"}) == TMTest(id=3, status="PASSED")
        assert TMTest.from_dict({}).status is None


# ---------------------------------------------------------------------------
# LabelAction
# ---------------------------------------------------------------------------


class TestLabelAction:
    """Tests for the LabelAction enum."""

    def test_keys(self) -> None:
        """Test the operation keys sent to Jira."""
        assert str(LabelAction.ADD) == "add"
        assert str(LabelAction.REMOVE) == "remove"

    def test_wording(self) -> None:
        """Test the verbs and prepositions used in log lines."""
        assert (LabelAction.ADD.verb, LabelAction.ADD.preposition) == ("added", "to")
        assert (LabelAction.REMOVE.verb, LabelAction.REMOVE.preposition) == ("removed", "from")

    def test_parse(self) -> None:
        """Test lookup by key."""
        assert LabelAction.parse("ADD") is LabelAction.ADD
        assert LabelAction.parse("remove") is LabelAction.REMOVE
        with pytest.raises(ValueError):
            LabelAction.parse("toggle")


# ---------------------------------------------------------------------------
# CommentFormatter
# ---------------------------------------------------------------------------


class TestCommentFormatter:
    """Tests for the CommentFormatter class."""

    def test_title_first(self) -> None:
        """Test that every comment starts with the marker title."""
        body = CommentFormatter().format(Issue("QA-1", "PASSED"), None, 3, "PASSED")
        assert body.splitlines()[0] == f"h3. {TITLE}"

    def test_build_and_status(self) -> None:
        """Test build number and coloured remote status."""
        body = CommentFormatter().format(Issue("QA-1", "FAILED"), None, 12, "FAILED")
        assert "*Build:* #12" in body
        assert "{color:red}*FAILED*{color}" in body
        assert "Reported status" not in body

    def test_remote_status_differs(self) -> None:
        """Test that a diverging remote status is shown next to the reported one."""
        body = CommentFormatter().format(Issue("QA-1", "PASSED"), None, 1, "BLOCKED")
        assert "{color:orange}*BLOCKED*{color}" in body
        assert "*Reported status:* PASSED" in body

    def test_falls_back_to_issue_status(self) -> None:
        """Test the status shown when Jira returned none."""
        body = CommentFormatter().format(Issue("QA-1", "CUSTOM"), None, 1, None)
        assert "*Status:* *CUSTOM*" in body

    def test_attachment_table(self) -> None:
        """Test links for uploaded files and a marker for skipped ones."""
        issue = Issue(
            "QA-1",
            "PASSED",
            attachments=["reports/a.png", "reports/b.log"],
            summary="Checkout",
            comment="Ran on staging",
        )
        links = {"reports/a.png": "http://jira.local/secure/attachment/42/a.png"}

        body = CommentFormatter().format(issue, links, 1, "PASSED")

        assert "*Summary:* Checkout" in body
        assert "Ran on staging" in body
        assert "|reports/a.png|[a.png|http://jira.local/secure/attachment/42/a.png]|" in body
        assert "|reports/b.log|_not attached_|" in body


# ---------------------------------------------------------------------------
# PayloadBuilder / OperationResult
# ---------------------------------------------------------------------------


class TestPayloadBuilder:
    """Tests for the PayloadBuilder class."""

    def test_bodies(self) -> None:
        """Test the three request bodies."""
        builder = PayloadBuilder()
        assert builder.status_update("PASSED") == {"status": "PASSED"}
        assert builder.label_update("ci", LabelAction.ADD) == {"update": {"labels": [{"add": "ci"}]}}
        assert builder.comment('multi\nline "text"') == {"body": 'multi\nline "text"'}

    @pytest.mark.parametrize(
        "build",
        [
            lambda b: b.status_update(""),
            lambda b: b.label_update("", LabelAction.REMOVE),
            lambda b: b.label_update("has space", LabelAction.ADD),
            lambda b: b.comment(""),
        ],
    )
    def test_invalid_bodies(self, build) -> None:
        """Test that invalid bodies raise PayloadValidationError."""
        with pytest.raises(PayloadValidationError) as exc_info:
            build(PayloadBuilder())
        assert exc_info.value.errors


class TestOperationResult:
    """Tests for the OperationResult dataclass."""

    def test_truthiness(self) -> None:
        """Test that results evaluate to their ok flag."""
        assert OperationResult("op", 204, ok=True)
        assert not OperationResult("op", 500)

    def test_raise_for_outcome_passthrough(self) -> None:
        """Test that a successful result is returned unchanged."""
        result = OperationResult("op", 201, ok=True)
        assert result.raise_for_outcome() is result


class TestPublishReport:
    """Tests for the PublishReport dataclass."""

    def test_ok_needs_every_step(self) -> None:
        """Test that a refused status update fails an otherwise clean report."""
        report = PublishReport(
            "QA-1",
            status_result=OperationResult("update_test_status", 404),
            comment_result=OperationResult("post_test_results", 201, ok=True),
        )
        assert not report
        with pytest.raises(TestManagementError, match="update_test_status failed with status 404"):
            report.raise_for_outcome()

    def test_skipped_attachments(self) -> None:
        """Test that attachments without a link fail the report."""
        report = PublishReport(
            "QA-1",
            status_result=OperationResult("update_test_status", 204, ok=True),
            comment_result=OperationResult("post_test_results", 201, ok=True),
            skipped_attachments=["reports/b.log"],
        )
        assert not report.ok
        with pytest.raises(TestManagementError) as exc_info:
            report.raise_for_outcome()
        assert exc_info.value.operation == "attach"
