"""
Comment formatter.

Renders test execution results as Jira wiki markup. Every rendered comment
starts with the TITLE marker, which the expiry sweep uses to recognise
comments posted by this tool.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, List, Optional

from jira_tm.test_management.models import Issue


TITLE = "Automated Test Execution Results"

# Jira status -> wiki markup colour
STATUS_COLOURS: Dict[str, str] = {
    "PASSED": "green",
    "PASS": "green",
    "FAILED": "red",
    "FAIL": "red",
    "BLOCKED": "orange",
    "NOT_EXECUTED": "grey",
}


class CommentFormatter:
    """
    Formats an Issue into the comment body posted after a build.

    Usage::

        formatter = CommentFormatter()
        body = formatter.format(issue, links, build_number=42, remote_status="PASSED")
    """

    title = TITLE

    def format(
        self,
        issue: Issue,
        links: Optional[Dict[str, str]],
        build_number: int,
        remote_status: Optional[str],
    ) -> str:
        """
        Render the comment body.

        Args:
            issue: Issue whose results are being published.
            links: Mapping of attachment path to browse link; None when nothing was attached.
            build_number: Build that produced the results.
            remote_status: Status read back from Jira after the update, if known.

        Returns:
            Comment text in Jira wiki markup.
        """
        status = remote_status or issue.status
        lines: List[str] = [
            f"h3. {self.title}",
            f"*Build:* #{build_number}",
            f"*Status:* {self._status_markup(status)}",
        ]
        if remote_status and remote_status.upper() != issue.status.upper():
            lines.append(f"*Reported status:* {issue.status}")
        if issue.summary:
            lines.append(f"*Summary:* {issue.summary}")
        if issue.comment:
            lines.extend(["", issue.comment])

        if issue.attachments:
            links = links or {}
            lines.extend(["", "*Attachments:*", "||File||Link||"])
            for path in issue.attachments:
                name = PurePosixPath(path).name
                link = links.get(path)
                cell = f"[{name}|{link}]" if link else "_not attached_"
                lines.append(f"|{path}|{cell}|")

        return "\n".join(lines)

    @staticmethod
    def _status_markup(status: str) -> str:
        colour = STATUS_COLOURS.get(status.upper())
        return f"{{color:{colour}}}*{status}*{{color}}" if colour else f"*{status}*"
