"""Built-in environment configurations and configuration source selection."""

from typing import Any, Dict

from constructs import Construct

from infrastructure.config.errors import EnvironmentNotFound
from infrastructure.config.types import RawEnvironmentConfig

from .dev import dev_config
from .staging import staging_config
from .prod import prod_config

ENVIRONMENTS: Dict[str, RawEnvironmentConfig] = {
    "dev": dev_config,
    "staging": staging_config,
    "prod": prod_config,
}


def get_environment_config(environment: str) -> RawEnvironmentConfig:
    """Get the built-in configuration for the specified environment."""
    if environment not in ENVIRONMENTS:
        raise EnvironmentNotFound(environment, ENVIRONMENTS.keys())

    return ENVIRONMENTS[environment]


def configuration_source(scope: Construct) -> Any:
    """Return the ``environments`` context value when set, else the built-in environments.

    A context value that is not a mapping is returned as-is so resolution
    reports it.
    """
    override = scope.node.try_get_context("environments")
    if override is None:
        return ENVIRONMENTS
    return override
