"""
Configuration Management Module.

Handles loading and validation of:
- Service settings files (YAML/JSON) with environment overrides.
- JSON schemas for settings and request payloads.
"""

from jira_tm.config.loader import ConfigLoader, ConfigurationError
from jira_tm.config.schema_registry import SchemaRegistry, SchemaValidationError
from jira_tm.config.settings import ServiceConfig, normalize_base_url

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "SchemaRegistry",
    "SchemaValidationError",
    "ServiceConfig",
    "normalize_base_url",
]
