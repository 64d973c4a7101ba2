"""Development environment configuration."""

from infrastructure.config.types import RawEnvironmentConfig

# Account comes from CDK_DEFAULT_ACCOUNT when omitted
dev_config: RawEnvironmentConfig = {
    "isProd": False,
    "region": "eu-west-1",
    "serviceName": "sample-service",
    "memory": 1024,
    "fargateCpu": 512,
    "logRetentionDays": 7,
    "desiredInstantCount": 1,
}
