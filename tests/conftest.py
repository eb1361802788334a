"""
Root conftest.py — Shared Pytest fixtures.

Provides fixtures for:
- A mocked requests.Session and canned Jira responses.
- A TestManagementService wired to the mocked session.
- Capturing loguru output for log assertions.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Generator, List
from unittest.mock import MagicMock

import pytest
from loguru import logger

from jira_tm.test_management import TestManagementService


BASE_URL = "http://jira.local/"

_NO_BODY = object()


def make_response(
    status_code: int,
    body: Any = _NO_BODY,
    reason: str = "",
) -> MagicMock:
    """
    Build a mock requests.Response usable as a context manager.

    Without ``body`` the mock raises ValueError from ``json()``, as requests
    does for an empty or non-JSON body.
    """
    response = MagicMock(name=f"Response[{status_code}]")
    response.status_code = status_code
    response.reason = reason
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    if body is _NO_BODY:
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session() -> MagicMock:
    """Mocked requests.Session; queue responses via ``session.request.side_effect``."""
    mock_session = MagicMock(name="Session")
    mock_session.headers = {}
    return mock_session


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Build workspace holding two report files."""
    (tmp_path / "reports").mkdir()
    (tmp_path / "reports" / "a.txt").write_text("alpha", encoding="utf-8")
    (tmp_path / "reports" / "b.txt").write_text("beta", encoding="utf-8")
    return tmp_path


@pytest.fixture
def service(session: MagicMock, workspace: Path) -> Generator[TestManagementService, None, None]:
    """TestManagementService for build #7 talking to the mocked session."""
    tm = TestManagementService(
        "http://jira.local",
        "ci",
        "secret",
        workspace=workspace,
        build_number=7,
        session=session,
    )
    yield tm
    tm.close()


@pytest.fixture
def log_messages() -> Generator[List[str], None, None]:
    """Collect loguru messages emitted during a test."""
    messages: List[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


def request_calls(session: MagicMock) -> List[tuple[str, str]]:
    """(method, url) of every request sent through the mocked session."""
    return [(c.kwargs["method"], c.kwargs["url"]) for c in session.request.call_args_list]
