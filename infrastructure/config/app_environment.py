"""Environment resolution for the service infrastructure.

The active environment name comes from an explicit argument or from the
``env``/``stage`` context keys. Its settings are read from a configuration
source (mapping of environment name to raw record) and frozen into an
:class:`AppEnvironment` that the stacks read from.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

import aws_cdk as cdk
from constructs import Construct

from infrastructure.config.errors import (
    ConfigSourceMissing,
    EnvironmentNotFound,
    InvalidEnvironmentConfig,
)
from infrastructure.config.types import ContextLookup, EnvironmentConfig
from infrastructure.core.logging_utils import get_logger

logger = get_logger(__name__)

NAME_CONTEXT_KEYS: Tuple[str, ...] = ("env", "stage")

_STRING_FIELDS = {
    "account": "account",
    "region": "region",
    "serviceName": "service_name",
}
_POSITIVE_INT_FIELDS = {
    "memory": "memory",
    "fargateCpu": "fargate_cpu",
}
_NON_NEGATIVE_INT_FIELDS = {
    "logRetentionDays": "log_retention_days",
    "desiredInstantCount": "desired_instant_count",
}
_KNOWN_KEYS = {"isProd", *_STRING_FIELDS, *_POSITIVE_INT_FIELDS, *_NON_NEGATIVE_INT_FIELDS}


class NodeContextLookup:
    """Expose a construct's CDK context through ``get(key)``."""

    def __init__(self, scope: Construct) -> None:
        self._scope = scope

    def get(self, key: str) -> Optional[Any]:
        return self._scope.node.try_get_context(key)


@dataclass(frozen=True)
class AppEnvironment:
    """Resolved environment: its name and typed configuration."""

    name: Optional[str]
    config: EnvironmentConfig

    @property
    def is_prod(self) -> bool:
        if self.config.is_prod is None:
            return False
        return self.config.is_prod

    @property
    def account(self) -> Optional[str]:
        return self.config.account

    @property
    def region(self) -> Optional[str]:
        return self.config.region

    @property
    def service_name(self) -> Optional[str]:
        return self.config.service_name

    @property
    def memory(self) -> Optional[int]:
        return self.config.memory

    @property
    def fargate_cpu(self) -> Optional[int]:
        return self.config.fargate_cpu

    @property
    def log_retention_days(self) -> Optional[int]:
        return self.config.log_retention_days

    @property
    def desired_instant_count(self) -> Optional[int]:
        return self.config.desired_instant_count

    @property
    def region_account_pair(self) -> Tuple[Optional[str], Optional[str]]:
        """Return ``(account, region)``."""
        return (self.account, self.region)

    @property
    def cdk_env(self) -> cdk.Environment:
        """Return the CDK environment (account/region) for stacks."""
        return cdk.Environment(account=self.account, region=self.region)

    def require(self, field: str) -> Any:
        """Return the named accessor's value or fail if it is unset."""
        value = getattr(self, field)
        if value is None:
            raise InvalidEnvironmentConfig(f"Environment '{self.name}' is missing required setting '{field}'")
        return value


def resolve_environment_name(explicit_name: Optional[str], context: ContextLookup) -> Optional[str]:
    """Return the first non-empty name from the argument, then ``env``, then ``stage``."""
    candidates = [("argument", explicit_name)]
    candidates.extend((f"context:{key}", context.get(key)) for key in NAME_CONTEXT_KEYS)

    for origin, value in candidates:
        if value is None:
            continue
        name = str(value)
        if name.strip():
            logger.debug("Environment name resolved", extra={"origin": origin, "environment": name})
            return name
    return None


def load_environment_config(
    name: Optional[str],
    source: Any,
    environ: Optional[Mapping[str, str]] = None,
) -> EnvironmentConfig:
    """Build the typed configuration for ``name`` from ``source``.

    Raises:
        ConfigSourceMissing: ``source`` is ``None`` or not a mapping.
        EnvironmentNotFound: ``name`` has no entry in ``source``.
        InvalidEnvironmentConfig: the entry or one of its fields is malformed.
    """
    if source is None or not isinstance(source, Mapping):
        raise ConfigSourceMissing(source)

    raw = source.get(name) if name is not None else None
    if raw is None:
        raise EnvironmentNotFound(name, source.keys())
    if not isinstance(raw, Mapping):
        raise InvalidEnvironmentConfig(f"Environment '{name}' must be a mapping, got {type(raw).__name__}")

    ignored = sorted(str(key) for key in raw if key not in _KNOWN_KEYS)
    if ignored:
        logger.debug("Ignoring unknown environment settings", extra={"environment": name, "keys": ignored})

    env_vars = os.environ if environ is None else environ
    values: dict[str, Any] = {}

    is_prod = raw.get("isProd")
    if is_prod is None:
        values["is_prod"] = name == "prod"
    elif isinstance(is_prod, bool):
        values["is_prod"] = is_prod
    else:
        raise InvalidEnvironmentConfig(f"Environment '{name}': 'isProd' must be a boolean, got {is_prod!r}")

    for key, field in _STRING_FIELDS.items():
        value = raw.get(key)
        if value is not None and not isinstance(value, str):
            raise InvalidEnvironmentConfig(f"Environment '{name}': '{key}' must be a string, got {value!r}")
        values[field] = value

    for key, field in _POSITIVE_INT_FIELDS.items():
        values[field] = _int_field(name, raw, key, minimum=1)

    for key, field in _NON_NEGATIVE_INT_FIELDS.items():
        values[field] = _int_field(name, raw, key, minimum=0)

    if values["account"] is None:
        values["account"] = env_vars.get("CDK_DEFAULT_ACCOUNT")
    if values["region"] is None:
        values["region"] = env_vars.get("CDK_DEFAULT_REGION")

    return EnvironmentConfig(**values)


def resolve_environment(
    explicit_name: Optional[str],
    source: Any,
    context: ContextLookup,
    environ: Optional[Mapping[str, str]] = None,
) -> AppEnvironment:
    """Resolve the active environment and load its configuration."""
    name = resolve_environment_name(explicit_name, context)
    config = load_environment_config(name, source, environ)
    logger.info(
        "Resolved deployment environment",
        extra={"environment": name, "service_name": config.service_name, "is_prod": config.is_prod},
    )
    return AppEnvironment(name=name, config=config)


def _int_field(name: Optional[str], raw: Mapping[str, Any], key: str, *, minimum: int) -> Optional[int]:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        qualifier = "a positive integer" if minimum > 0 else "a non-negative integer"
        raise InvalidEnvironmentConfig(f"Environment '{name}': '{key}' must be {qualifier}, got {value!r}")
    return value
