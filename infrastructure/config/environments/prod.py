"""Production environment configuration."""

from infrastructure.config.types import RawEnvironmentConfig

# isProd is derived from the environment name
prod_config: RawEnvironmentConfig = {
    "region": "eu-west-1",
    "serviceName": "sample-service",
    "memory": 4096,
    "fargateCpu": 2048,
    # Rounded up to the nearest supported retention (545 days)
    "logRetentionDays": 540,
    "desiredInstantCount": 2,
}
