"""Configuration errors raised while resolving the deployment environment."""

from __future__ import annotations

from typing import Iterable, Optional


class EnvironmentConfigError(ValueError):
    """Base class for environment configuration failures."""


class ConfigSourceMissing(EnvironmentConfigError):
    """Raised when the configuration source is absent or not a mapping."""

    def __init__(self, source: object = None) -> None:
        if source is None:
            message = "No environments found in configuration source"
        else:
            message = f"Configuration source must be a mapping of environments, got {type(source).__name__}"
        super().__init__(message)


class EnvironmentNotFound(EnvironmentConfigError):
    """Raised when the resolved environment has no configuration entry."""

    def __init__(self, name: Optional[str], available: Iterable[str]) -> None:
        self.name = name
        self.available = [str(key) for key in available]
        listed = ", ".join(self.available) or "none"
        if name is None:
            message = (
                "No environment name resolved; pass one explicitly or set the 'env' or 'stage' "
                f"context key. Available environments: {listed}"
            )
        else:
            message = f"Environment '{name}' not found in configuration. Available environments: {listed}"
        super().__init__(message)


class InvalidEnvironmentConfig(EnvironmentConfigError):
    """Raised when an environment record or one of its fields is malformed or missing."""


class InvalidRetentionDays(EnvironmentConfigError):
    """Raised when a log retention period cannot be mapped."""

    def __init__(self, days: object) -> None:
        self.days = days
        super().__init__(f"Log retention days must be a non-negative integer, got {days!r}")
