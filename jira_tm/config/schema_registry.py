"""
Schema Registry Module.

Manages the JSON schemas shipped with the package:
- Settings file schemas (validated by the ConfigLoader).
- Request payload schemas (validated before a body is sent to Jira).

Schemas are read from disk on first use and cached per registry.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Type

import jsonschema
from loguru import logger


DEFAULT_SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schemas"


class SchemaValidationError(Exception):
    """Raised when a document fails schema validation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class SchemaRegistry:
    """
    Registry for JSON schemas used to validate settings and payloads.

    Attributes:
        schema_dir: Directory containing JSON schema files.
    """

    def __init__(self, schema_dir: str | Path | None = None) -> None:
        """
        Initialize the schema registry.

        Args:
            schema_dir: Directory containing ``<name>.json`` schema files.
                        Defaults to the schemas bundled with the package.
        """
        self.schema_dir = Path(schema_dir) if schema_dir else DEFAULT_SCHEMA_DIR
        self._schemas: Dict[str, Dict[str, Any]] = {}
        logger.debug(f"SchemaRegistry initialized — schema_dir={self.schema_dir}")

    def _schema_path(self, schema_name: str) -> Path:
        return self.schema_dir / f"{schema_name}.json"

    def get_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Return the named schema, reading it on first use.

        Raises:
            FileNotFoundError: If no ``<schema_name>.json`` exists.
            SchemaValidationError: If the file cannot be read or is not JSON.
        """
        schema = self._schemas.get(schema_name)
        if schema is not None:
            return schema

        path = self._schema_path(schema_name)
        if not path.is_file():
            raise FileNotFoundError(f"No schema named {schema_name!r} in {self.schema_dir}")

        try:
            with path.open(encoding="utf-8") as fh:
                schema = json.load(fh)
        except (OSError, ValueError) as e:
            raise SchemaValidationError(f"Unreadable schema {schema_name!r} at {path}: {e}") from e

        logger.debug(f"Schema {schema_name} read from {path}")
        self._schemas[schema_name] = schema
        return schema

    def check(self, data: Any, schema_name: str) -> List[str]:
        """
        List the violations of ``data`` against a named schema.

        Each entry reads ``[<path>] <message>``, where the path joins the
        offending keys with ``->`` and is ``(root)`` for the document itself.
        An empty list means the document is valid.
        """
        validator = jsonschema.Draft7Validator(self.get_schema(schema_name))
        return [
            f"  [{' -> '.join(str(p) for p in error.absolute_path) or '(root)'}] {error.message}"
            for error in sorted(validator.iter_errors(data), key=lambda e: list(e.path))
        ]

    def validate(
        self,
        data: Any,
        schema_name: str,
        error_cls: Type[SchemaValidationError] = SchemaValidationError,
    ) -> None:
        """
        Raise ``error_cls`` carrying every violation if ``data`` is invalid.

        Args:
            data: Decoded JSON document.
            schema_name: Schema to validate against.
            error_cls: SchemaValidationError subclass to raise, so callers can
                tell settings errors from request body errors.
        """
        problems = self.check(data, schema_name)
        if problems:
            details = "\n".join(problems)
            raise error_cls(
                f"{schema_name}: {len(problems)} violation(s)\n{details}",
                errors=problems,
            )

    def list_schemas(self) -> list[str]:
        """List the names of all schemas available in the schema directory."""
        if not self.schema_dir.exists():
            return []
        return sorted(p.stem for p in self.schema_dir.glob("*.json"))
