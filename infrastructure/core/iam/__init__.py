"""IAM helper constructs and utilities for the service infrastructure."""

from . import utils  # noqa: F401
from .application_roles import ApplicationIamRolesConstruct
from .pipeline_roles import PipelineIamRolesConstruct

__all__ = ["utils", "ApplicationIamRolesConstruct", "PipelineIamRolesConstruct"]
