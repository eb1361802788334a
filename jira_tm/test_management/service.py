"""
Jira Test Management REST client.

Publishes build results to Jira issues through two REST namespaces:
- ``rest/tm/1.0``: test case status (Test Management add-on).
- ``rest/api/2``: labels, attachments and comments (core Jira API).

Each call is interpreted by its HTTP status code. Rejections are logged and
returned as an OperationResult; only transport failures raise.
"""

from __future__ import annotations

import base64
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from jira_tm.config.settings import ServiceConfig
from jira_tm.test_management.formatter import CommentFormatter
from jira_tm.test_management.labels import LabelAction
from jira_tm.test_management.models import Attachment, Comment, Issue, TMTest
from jira_tm.test_management.outcomes import (
    ConnectionStatus,
    DeletionPolicy,
    OperationResult,
    PublishReport,
    SweepReport,
)
from jira_tm.test_management.payloads import PayloadBuilder


class TestManagementService:
    """
    Client publishing test execution results to Jira.

    One instance owns one HTTP session and is meant to drive one sequential
    workflow (one build). It is not safe to share between threads.

    Usage::

        with TestManagementService("https://jira.example.com", "ci", "secret") as tm:
            if tm.check_connection() == 200:
                tm.post_test_results(Issue(issue_key="QA-12", status="PASSED"))
    """

    __test__ = False

    TM_API_PATH = "rest/tm/1.0"
    JIRA_API_PATH = "rest/api/2"
    ATTACHMENT_URL = "secure/attachment/{id}/{filename}"
    ATTACHMENT_ID_PATTERN = re.compile(r"(?<=secure/attachment/)\d+(?=/)")

    def __init__(
        self,
        base_url: str = "",
        username: str = "",
        password: str = "",
        *,
        workspace: Optional[str | Path] = None,
        build_number: int = 1,
        config: Optional[ServiceConfig] = None,
        formatter: Optional[CommentFormatter] = None,
        payloads: Optional[PayloadBuilder] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            base_url: Jira base URL; a trailing slash is added if missing.
            username: Basic-auth user name.
            password: Basic-auth password or API token.
            workspace: Root that attachment paths are resolved against (default: cwd).
            build_number: Build number quoted in posted comments.
            config: Optional ServiceConfig (overrides the individual params).
            formatter: Comment formatter (default: CommentFormatter).
            payloads: Request body builder (default: PayloadBuilder on bundled schemas).
            session: Pre-built HTTP session, mainly for tests.
        """
        if config:
            self._config = config
        else:
            self._config = ServiceConfig(
                base_url=base_url,
                username=username,
                password=password,
                workspace=Path(workspace) if workspace else Path.cwd(),
                build_number=build_number,
            )

        self._formatter = formatter or CommentFormatter()
        self._payloads = payloads or PayloadBuilder()
        self._deletion_policy = DeletionPolicy(self._config.deletion_policy)
        self._session: Optional[requests.Session] = None
        if session is not None:
            self._session = self._configure_session(session)
        logger.info(
            f"TestManagementService initialized — url={self._config.base_url}, "
            f"build={self._config.build_number}"
        )

    @classmethod
    def from_config(cls, config: ServiceConfig, **kwargs: Any) -> "TestManagementService":
        """Create a service from a ServiceConfig."""
        return cls(config=config, **kwargs)

    @property
    def config(self) -> ServiceConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def is_configured(self) -> bool:
        """Check if the service has the minimum settings to operate."""
        return bool(self._config.base_url.strip("/") and self._config.username)

    @property
    def deletion_policy(self) -> DeletionPolicy:
        return self._deletion_policy

    @deletion_policy.setter
    def deletion_policy(self, policy: DeletionPolicy) -> None:
        self._deletion_policy = DeletionPolicy(policy)

    @staticmethod
    def build_authorization(username: str, password: str) -> str:
        """Return the ``Basic`` Authorization header value for the credentials."""
        token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
        return f"Basic {token}"

    @property
    def authorization(self) -> str:
        return self.build_authorization(self._config.username, self._config.password)

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _configure_session(self, session: requests.Session) -> requests.Session:
        """Apply the TLS and Accept settings to a session."""
        session.verify = self._config.verify_ssl
        session.headers["Accept"] = "application/json"
        return session

    def _get_session(self) -> requests.Session:
        """Get or create the HTTP session carrying the Authorization header."""
        if self._session is None:
            self._session = self._configure_session(requests.Session())
        self._session.headers["Authorization"] = self.authorization
        return self._session

    def _tm_url(self, path: str) -> str:
        return f"{self._config.base_url}{self.TM_API_PATH}{path}"

    def _jira_url(self, path: str) -> str:
        return f"{self._config.base_url}{self.JIRA_API_PATH}{path}"

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Execute one request with the fixed connect/read timeout.

        The caller must close the response, normally with ``with``.

        Raises:
            requests.RequestException: On any transport failure.
        """
        session = self._get_session()
        logger.debug(f"Jira API {method} {url}")
        timeout = self._config.timeout_sec
        return session.request(method=method, url=url, timeout=(timeout, timeout), **kwargs)

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------

    def probe_connection(self) -> ConnectionStatus:
        """
        Call ``rest/api/2/myself`` to verify URL and credentials.

        Returns:
            ConnectionStatus; transport failures yield ``reachable=False``.
        """
        try:
            with self._send("GET", self._jira_url("/myself")) as response:
                status = ConnectionStatus(reachable=True, status_code=response.status_code)
        except requests.RequestException as e:
            logger.debug(f"Jira unreachable at {self._config.base_url}: {e}")
            return ConnectionStatus(reachable=False, error=str(e))

        logger.debug(f"Jira reachable, /myself answered {status.status_code}")
        return status

    def check_connection(self) -> int:
        """Return the status code of the ``myself`` probe, or 0 if Jira is unreachable."""
        return self.probe_connection().status_code

    # ------------------------------------------------------------------
    # Test case status
    # ------------------------------------------------------------------

    def update_test_status(self, issue_key: str, status: str) -> OperationResult:
        """
        Set the test case status of an issue.

        Args:
            issue_key: Jira issue key.
            status: New status (validated by Jira, not locally).

        Returns:
            OperationResult, ok on HTTP 204.
        """
        payload = self._payloads.status_update(status)
        with self._send("PUT", self._tm_url(f"/testcase/{issue_key}"), json=payload) as response:
            code = response.status_code
            if code == 204:
                message = f"Issue {issue_key} status updated: {status}"
                logger.info(message)
            else:
                message = (
                    f"Cannot update Test Case status. Response code: {code}. "
                    f"Check if issue key is valid"
                )
                logger.warning(message)
            return OperationResult("update_test_status", code, response.reason, code == 204, message)

    def get_test_status(self, issue_key: str) -> Optional[str]:
        """
        Read the current test case status of an issue.

        Returns:
            The status string, or None if the response body cannot be decoded.
        """
        with self._send("GET", self._tm_url(f"/testcase/{issue_key}")) as response:
            try:
                data = response.json()
            except ValueError:
                logger.opt(exception=True).warning(
                    f"Cannot decode test case {issue_key} (status {response.status_code})"
                )
                return None

        if not isinstance(data, dict):
            logger.warning(f"Unexpected test case payload for {issue_key}: {data!r}")
            return None
        return TMTest.from_dict(data).status

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    def manage_label(self, issue_key: str, label: str, action: LabelAction) -> OperationResult:
        """
        Add or remove one label on an issue.

        Returns:
            OperationResult, ok on HTTP 204.
        """
        payload = self._payloads.label_update(label, action)
        with self._send("PUT", self._jira_url(f"/issue/{issue_key}"), json=payload) as response:
            code = response.status_code
            if code == 204:
                message = (
                    f'Successfully {action.verb} label "{label}" '
                    f"{action.preposition} issue {issue_key}"
                )
                logger.info(message)
            else:
                message = (
                    f'Cannot {action.key} label "{label}" {action.preposition} issue '
                    f"{issue_key}. Response code: {code}. Reason: {response.reason}"
                )
                logger.warning(message)
            return OperationResult("manage_label", code, response.reason, code == 204, message)

    def add_label(self, issue_key: str, label: str) -> OperationResult:
        return self.manage_label(issue_key, label, LabelAction.ADD)

    def remove_label(self, issue_key: str, label: str) -> OperationResult:
        return self.manage_label(issue_key, label, LabelAction.REMOVE)

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def _resolve_attachment(self, path: str) -> Path:
        """Resolve an attachment path relative to the workspace root."""
        return self._config.workspace / path.lstrip("/\\")

    def attachment_link(self, attachment: Attachment) -> str:
        """Browse link of an uploaded attachment."""
        return self._config.base_url + self.ATTACHMENT_URL.format(
            id=attachment.id, filename=attachment.filename
        )

    def attach(self, issue: Issue) -> Optional[Dict[str, str]]:
        """
        Upload every attachment declared on the issue.

        Each file is a separate request; a rejected upload is logged and the
        remaining files are still sent.

        Args:
            issue: Issue whose ``attachments`` paths are uploaded.

        Returns:
            Mapping of attachment path to browse link for successful uploads,
            or None if the issue declares no attachments.

        Raises:
            OSError: If an attachment file cannot be opened.
            requests.RequestException: On transport failures.
        """
        if not issue.attachments:
            return None

        links: Dict[str, str] = {}
        url = self._jira_url(f"/issue/{issue.issue_key}/attachments")
        headers = {"X-Atlassian-Token": "no-check"}

        for path in issue.attachments:
            file_path = self._resolve_attachment(path)
            filename = file_path.name
            logger.debug(f"Uploading {file_path} to {issue.issue_key}")

            with open(file_path, "rb") as fh, self._send(
                "POST", url, headers=headers, files={"file": (filename, fh)}
            ) as response:
                code = response.status_code
                if code == 200:
                    logger.info(f'File: "{filename}" has been attached successfully.')
                    link = self._link_from_upload(response)
                    if link:
                        links[path] = link
                elif code == 413:
                    logger.warning(f'File: "{filename}" is too big.')
                elif code == 403:
                    logger.warning(
                        "Attachments are disabled or you don't have permission to add "
                        "attachments to this issue."
                    )
                else:
                    logger.warning(f'Cannot attach file: "{filename}". Status code: {code}')

        return links

    def _link_from_upload(self, response: requests.Response) -> Optional[str]:
        """Build the browse link from the first attachment of an upload response."""
        try:
            data = response.json()
        except ValueError:
            logger.opt(exception=True).warning("Cannot decode attachment upload response")
            return None

        if not isinstance(data, list) or not data:
            return None
        return self.attachment_link(Attachment.from_dict(data[0]))

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def post_test_results(self, issue: Issue) -> PublishReport:
        """
        Publish one issue's results: status, attachments, then a comment.

        The steps are not transactional. The comment is posted even when the
        status update or some uploads were rejected; the report records which
        steps failed.

        Returns:
            PublishReport, ok only when the status update, every upload and
            the comment (HTTP 201) succeeded.
        """
        status_result = self.update_test_status(issue.issue_key, issue.status)
        links = self.attach(issue)
        body = self._formatter.format(
            issue,
            links,
            self._config.build_number,
            self.get_test_status(issue.issue_key),
        )
        payload = self._payloads.comment(body)

        issue_url = self._jira_url(f"/issue/{issue.issue_key}")
        with self._send("POST", f"{issue_url}/comment", json=payload) as response:
            code = response.status_code
            if code == 201:
                message = (
                    f"Test execution results for issue {issue.issue_key} were successfully "
                    f"attached as comment.\nIssue link: {issue_url}"
                )
                logger.info(message)
            elif code == 400:
                message = (
                    "Cannot attach test results: input is invalid (e.g. missing required "
                    "fields, invalid values, and so forth)"
                )
                logger.warning(message)
            else:
                message = f"Cannot attach test results. Status code: {code}"
                logger.warning(message)
            comment_result = OperationResult(
                "post_test_results", code, response.reason, code == 201, message
            )

        links = links or {}
        return PublishReport(
            issue_key=issue.issue_key,
            status_result=status_result,
            comment_result=comment_result,
            links=links,
            skipped_attachments=[p for p in issue.attachments if p not in links],
        )

    # ------------------------------------------------------------------
    # Comments and cleanup
    # ------------------------------------------------------------------

    def get_comments(self, issue_key: str) -> Optional[List[Comment]]:
        """
        List the comments of an issue.

        Returns:
            The comments, or None when the response has no ``comments`` array
            (field missing, null, or the body is not JSON).
        """
        with self._send("GET", self._jira_url(f"/issue/{issue_key}/comment")) as response:
            try:
                data = response.json()
            except ValueError:
                logger.warning(
                    f"Cannot decode comments of {issue_key} (status {response.status_code})"
                )
                return None

        comments = data.get("comments") if isinstance(data, dict) else None
        if comments is None:
            return None

        decoded: List[Comment] = []
        for entry in comments:
            try:
                decoded.append(Comment.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable comment on {issue_key}: {entry!r} ({e!r})")
        return decoded

    def _remove_resource(self, path: str) -> bool:
        with self._send("DELETE", self._jira_url(path)) as response:
            return response.status_code == 204

    def remove_comment(self, issue_key: str, comment_id: int) -> bool:
        """Delete a comment; True on HTTP 204."""
        return self._remove_resource(f"/issue/{issue_key}/comment/{comment_id}")

    def remove_attachment(self, attachment_id: int) -> bool:
        """Delete an attachment; True on HTTP 204."""
        return self._remove_resource(f"/attachment/{attachment_id}")

    def is_expired(self, comment: Comment, expiration_date: datetime) -> bool:
        """True if the comment was posted by this tool before ``expiration_date``."""
        return self._formatter.title in comment.body and comment.created < expiration_date

    def remove_expired_comments(self, issue_key: str, expiration_date: datetime) -> SweepReport:
        """
        Delete this tool's comments older than ``expiration_date``.

        Attachments linked from an expired comment are deleted before the
        comment itself. Refused deletions are reported according to the
        service's DeletionPolicy.

        Args:
            issue_key: Issue to sweep.
            expiration_date: Cutoff; naive datetimes are taken as UTC.

        Returns:
            SweepReport of removed and failed ids.
        """
        if expiration_date.tzinfo is None:
            expiration_date = expiration_date.replace(tzinfo=timezone.utc)

        report = SweepReport(issue_key=issue_key)
        comments = self.get_comments(issue_key)
        if comments is None:
            logger.debug(f"No comments to sweep on {issue_key}")
            return report

        for comment in comments:
            if not self.is_expired(comment, expiration_date):
                continue

            for match in self.ATTACHMENT_ID_PATTERN.finditer(comment.body):
                attachment_id = int(match.group())
                if self.remove_attachment(attachment_id):
                    logger.info(f"Attachment with id = {attachment_id} was successfully removed.")
                    report.removed_attachments.append(attachment_id)
                else:
                    report.failed_attachments.append(attachment_id)
                    self._deletion_failed(f"attachment with id = {attachment_id}")

            if self.remove_comment(issue_key, comment.id):
                logger.info(f"Comment with id = {comment.id} was successfully removed.")
                report.removed_comments.append(comment.id)
            else:
                report.failed_comments.append(comment.id)
                self._deletion_failed(f"comment with id = {comment.id}")

        return report

    def _deletion_failed(self, what: str) -> None:
        if self._deletion_policy is DeletionPolicy.WARN:
            logger.warning(f"Cannot remove {what}.")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None:
            self._session.close()
            self._session = None
            logger.debug("Test Management session closed")

    def __enter__(self) -> "TestManagementService":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
