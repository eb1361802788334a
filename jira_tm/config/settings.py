"""
Service settings.

Holds the connection and build settings a TestManagementService is created
from. Settings objects are plain values: one per service instance, never
shared through module globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


DEFAULT_TIMEOUT_SEC = 15


def normalize_base_url(base_url: str) -> str:
    """Return ``base_url`` with exactly one trailing slash appended if missing."""
    return base_url if base_url.endswith("/") else base_url + "/"


@dataclass
class ServiceConfig:
    """
    Configuration for the Test Management service.

    Attributes:
        base_url: Jira base URL, always stored with a trailing slash.
        username: Basic-auth user name.
        password: Basic-auth password or API token.
        workspace: Root directory attachment paths are resolved against.
        build_number: Build number quoted in posted comments.
        timeout_sec: Connect and read timeout applied to every request.
        verify_ssl: Whether to verify TLS certificates.
        deletion_policy: "ignore" or "warn" for failed deletions in the expiry sweep.
        retention_days: Age in days after which posted comments expire.
    """

    base_url: str
    username: str = ""
    password: str = ""
    workspace: Path = field(default_factory=Path.cwd)
    build_number: int = 1
    timeout_sec: int = DEFAULT_TIMEOUT_SEC
    verify_ssl: bool = True
    deletion_policy: str = "ignore"
    retention_days: Optional[int] = None

    def __post_init__(self) -> None:
        self.base_url = normalize_base_url(self.base_url)
        self.workspace = Path(self.workspace)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceConfig":
        """
        Build a ServiceConfig from a validated settings mapping.

        Args:
            data: Mapping with ``jira``, ``build`` and ``cleanup`` sections.

        Returns:
            The populated ServiceConfig.
        """
        jira = data.get("jira", {})
        build = data.get("build", {})
        cleanup = data.get("cleanup", {})

        kwargs: Dict[str, Any] = {
            "base_url": jira["base_url"],
            "username": jira.get("username", ""),
            "password": jira.get("password", ""),
            "timeout_sec": jira.get("timeout_sec", DEFAULT_TIMEOUT_SEC),
            "verify_ssl": jira.get("verify_ssl", True),
            "build_number": build.get("number", 1),
            "deletion_policy": cleanup.get("deletion_policy", "ignore"),
            "retention_days": cleanup.get("retention_days"),
        }
        if build.get("workspace"):
            kwargs["workspace"] = Path(build["workspace"])
        return cls(**kwargs)

    def __repr__(self) -> str:
        return (
            f"ServiceConfig(base_url={self.base_url!r}, username={self.username!r}, "
            f"workspace={str(self.workspace)!r}, build_number={self.build_number})"
        )
