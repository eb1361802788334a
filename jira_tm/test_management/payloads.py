"""
Request payload builders.

Every JSON body sent to Jira is built as a structure and validated against a
bundled JSON schema before the request goes out, so user text such as labels,
statuses and comment bodies is always escaped by the JSON encoder.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from jira_tm.config.schema_registry import SchemaRegistry, SchemaValidationError
from jira_tm.test_management.labels import LabelAction


class PayloadValidationError(SchemaValidationError):
    """Raised when a request body does not match its schema."""

    pass


class PayloadBuilder:
    """Builds schema-checked request bodies for the Test Management service."""

    def __init__(self, schema_registry: Optional[SchemaRegistry] = None) -> None:
        self._registry = schema_registry or SchemaRegistry()

    def _checked(self, payload: Dict[str, Any], schema_name: str) -> Dict[str, Any]:
        self._registry.validate(payload, schema_name, error_cls=PayloadValidationError)
        return payload

    def status_update(self, status: str) -> Dict[str, Any]:
        """Body for ``PUT rest/tm/1.0/testcase/{key}``."""
        return self._checked({"status": status}, "status_update_schema")

    def label_update(self, label: str, action: LabelAction) -> Dict[str, Any]:
        """Body for ``PUT rest/api/2/issue/{key}`` adding or removing one label."""
        payload = {"update": {"labels": [{action.key: label}]}}
        return self._checked(payload, "label_update_schema")

    def comment(self, body: str) -> Dict[str, Any]:
        """Body for ``POST rest/api/2/issue/{key}/comment``."""
        return self._checked({"body": body}, "comment_schema")
