"""
Configuration Loader Module.

Loads the service settings file and turns it into a ServiceConfig:
- Reads YAML or JSON settings files.
- Validates them against the bundled JSON schema.
- Applies environment variable overrides for credentials.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from loguru import logger

from jira_tm.config.schema_registry import SchemaRegistry
from jira_tm.config.settings import ServiceConfig


class ConfigurationError(Exception):
    """Raised when a settings file is invalid or cannot be loaded."""

    pass


# Environment variable -> (section, key)
ENV_OVERRIDES: Dict[str, tuple[str, str]] = {
    "JIRA_TM_URL": ("jira", "base_url"),
    "JIRA_TM_USERNAME": ("jira", "username"),
    "JIRA_TM_PASSWORD": ("jira", "password"),
    "JIRA_TM_WORKSPACE": ("build", "workspace"),
}


class ConfigLoader:
    """
    Settings loader with schema validation and environment overrides.

    Attributes:
        config_dir: Base directory searched for relative settings filenames.
        schema_registry: Registry of JSON schemas for validation.
    """

    SUPPORTED_EXTENSIONS = {".yaml", ".yml", ".json"}
    SCHEMA_NAME = "service_config_schema"

    def __init__(
        self,
        config_dir: str | Path = ".",
        schema_registry: Optional[SchemaRegistry] = None,
    ) -> None:
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory searched first for relative filenames.
            schema_registry: Registry to validate with. Defaults to the bundled schemas.
        """
        self.config_dir = Path(config_dir)
        self.schema_registry = schema_registry or SchemaRegistry()
        self._cache: Dict[str, Dict[str, Any]] = {}

        logger.debug(f"ConfigLoader initialized — config_dir={self.config_dir}")

    def load(
        self,
        filename: str,
        *,
        validate: bool = True,
        use_cache: bool = True,
        environ: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Load a settings file, apply environment overrides and validate it.

        Args:
            filename: Name or path of the settings file.
            validate: Whether to validate against the settings schema.
            use_cache: Whether to use the cached result if available.
            environ: Environment mapping to read overrides from (default: os.environ).

        Returns:
            Parsed settings as a dictionary.

        Raises:
            ConfigurationError: If the file cannot be parsed or fails validation.
            FileNotFoundError: If the settings file does not exist.
        """
        file_path = self._resolve_path(filename)
        cache_key = str(file_path.resolve())

        if use_cache and cache_key in self._cache:
            logger.debug(f"Returning cached settings for: {filename}")
            return self._cache[cache_key]

        logger.info(f"Loading settings: {file_path}")
        data = self._read_file(file_path)
        data = self.apply_env_overrides(data, os.environ if environ is None else environ)

        if validate:
            self._validate(data)

        if use_cache:
            self._cache[cache_key] = data
        return data

    def load_service_config(
        self,
        filename: str,
        environ: Optional[Mapping[str, str]] = None,
    ) -> ServiceConfig:
        """
        Load a settings file and build a ServiceConfig from it.

        Args:
            filename: Name or path of the settings file.
            environ: Environment mapping to read overrides from.

        Returns:
            The ServiceConfig described by the file.
        """
        return ServiceConfig.from_dict(self.load(filename, environ=environ))

    def clear_cache(self) -> None:
        """Clear all cached settings."""
        self._cache.clear()

    @staticmethod
    def apply_env_overrides(
        data: Dict[str, Any], environ: Mapping[str, str]
    ) -> Dict[str, Any]:
        """
        Overlay credentials and URLs from environment variables.

        Args:
            data: Settings mapping read from disk.
            environ: Environment variables.

        Returns:
            A new mapping with the overrides applied.
        """
        merged = {
            section: dict(values) if isinstance(values, dict) else values
            for section, values in data.items()
        }
        for var, (section, key) in ENV_OVERRIDES.items():
            value = environ.get(var)
            target = merged.setdefault(section, {})
            if value and isinstance(target, dict):
                target[key] = value
                logger.debug(f"Setting {section}.{key} overridden by ${var}")
        return merged

    def _resolve_path(self, filename: str) -> Path:
        """Resolve a filename to a full path, checking config_dir first."""
        path = Path(filename)
        if path.is_absolute() and path.exists():
            return path

        config_path = self.config_dir / filename
        if config_path.exists():
            return config_path

        if path.exists():
            return path

        raise FileNotFoundError(
            f"Settings file not found: {filename} "
            f"(searched in {self.config_dir} and current directory)"
        )

    def _read_file(self, file_path: Path) -> Dict[str, Any]:
        """Read and parse a YAML or JSON file."""
        suffix = file_path.suffix.lower()
        if suffix not in self.SUPPORTED_EXTENSIONS:
            raise ConfigurationError(
                f"Unsupported file format '{suffix}'. "
                f"Supported: {self.SUPPORTED_EXTENSIONS}"
            )

        try:
            content = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Failed to read file {file_path}: {e}") from e

        try:
            if suffix in {".yaml", ".yml"}:
                data = yaml.safe_load(content)
            else:
                data = json.loads(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to parse {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Settings file must contain a mapping (dict), "
                f"got {type(data).__name__}: {file_path}"
            )

        return data

    def _validate(self, data: Dict[str, Any]) -> None:
        """Validate settings against the service settings schema."""
        try:
            self.schema_registry.validate(data, self.SCHEMA_NAME)
            logger.debug(f"Schema validation passed: {self.SCHEMA_NAME}")
        except Exception as e:
            raise ConfigurationError(
                f"Settings validation failed against schema '{self.SCHEMA_NAME}': {e}"
            ) from e
