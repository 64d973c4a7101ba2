"""Staging environment configuration."""

from infrastructure.config.types import RawEnvironmentConfig

staging_config: RawEnvironmentConfig = {
    "region": "eu-west-1",
    "serviceName": "sample-service",
    "memory": 2048,
    "fargateCpu": 1024,
    "logRetentionDays": 30,
    "desiredInstantCount": 1,
}
