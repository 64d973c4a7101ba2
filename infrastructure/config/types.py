"""Typed configuration contracts for environment-specific settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, NotRequired, Optional, Protocol, TypedDict


class RawEnvironmentConfig(TypedDict, total=False):
    """Raw per-environment record as written in the configuration source."""

    isProd: NotRequired[bool]
    account: NotRequired[str]
    region: NotRequired[str]
    serviceName: str
    memory: int
    fargateCpu: int
    logRetentionDays: int
    desiredInstantCount: int


ConfigurationSource = Mapping[str, RawEnvironmentConfig]


class ContextLookup(Protocol):
    """Key/value accessor used to discover the environment name."""

    def get(self, key: str) -> Optional[Any]: ...


@dataclass(frozen=True)
class EnvironmentConfig:
    """Strongly-typed environment configuration.

    Every field is optional: only ``is_prod`` is defaulted while loading, the
    rest stay ``None`` when the raw record omits them.
    """

    is_prod: Optional[bool] = None
    account: Optional[str] = None
    region: Optional[str] = None
    service_name: Optional[str] = None
    memory: Optional[int] = None
    fargate_cpu: Optional[int] = None
    log_retention_days: Optional[int] = None
    desired_instant_count: Optional[int] = None
