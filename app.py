#!/usr/bin/env python3
"""
Service Deployment CDK App
Resolves the target environment from CDK context and deploys the service pipeline.
"""

import aws_cdk as cdk

# Configuration
from infrastructure.config.app_environment import NodeContextLookup, resolve_environment
from infrastructure.config.environments import configuration_source
from infrastructure.core.logging_utils import get_logger

# Pipeline
from infrastructure.pipelines.deployment import PipelineStack

logger = get_logger("app")

app = cdk.App()

# Environment name from -c env=<name> or -c stage=<name>
app_env = resolve_environment(None, configuration_source(app), NodeContextLookup(app))
service_name = app_env.require("service_name")

# ========================================
# CI/CD PIPELINE
# ========================================

pipeline_stack = PipelineStack(
    app,
    f"{service_name}-pipeline",
    app_env=app_env,
    env=app_env.cdk_env,
    tags={
        "Service": service_name,
        "Environment": str(app_env.name),
    },
)

# ========================================
# TAGGING STRATEGY
# ========================================

cdk.Tags.of(app).add("ManagedBy", "CDK")

logger.info("Synthesizing pipeline", extra={"stack": pipeline_stack.stack_name, "environment": app_env.name})

app.synth()
