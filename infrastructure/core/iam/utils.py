"""Reusable IAM helper utilities for the service roles."""

from __future__ import annotations


def ssm_config_parameter_arns(region: str, account: str, service_name: str) -> list[str]:
    """Return SSM parameter ARNs under the service and shared ``/config`` paths."""
    return [
        f"arn:aws:ssm:{region}:{account}:parameter/config/{service_name}/*",
        f"arn:aws:ssm:{region}:{account}:parameter/config/common/*",
    ]


def log_group_arn(region: str, account: str, log_group_name: str) -> str:
    """Return the ARN covering the streams of a CloudWatch log group."""
    name = str(log_group_name or "").strip()
    if not name:
        raise ValueError("Log group name must be provided")
    return f"arn:aws:logs:{region}:{account}:log-group:{name}:*"


def artifact_bucket_arns(region: str, account: str, service_name: str) -> list[str]:
    """Return bucket and object ARNs for the service's pipeline artifact bucket."""
    bucket = f"arn:aws:s3:::{service_name}-artifacts-{account}-{region}"
    return [bucket, f"{bucket}/*"]
