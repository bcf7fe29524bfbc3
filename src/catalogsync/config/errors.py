"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Base class for problems with catalogsync settings."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required settings are absent or blank."""


class InvalidConfigurationError(ConfigurationError):
    """Raised when a setting is present but cannot be used (bad number, bad range)."""
