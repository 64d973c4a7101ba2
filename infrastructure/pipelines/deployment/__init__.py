"""Deployment pipeline modules."""

from .pipeline_stack import Application, PipelineStack

__all__ = [
    "Application",
    "PipelineStack",
]
