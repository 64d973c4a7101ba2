"""CI/CD pipeline stack deploying the service through CDK Pipelines."""

from __future__ import annotations

import json

from aws_cdk import (
    CfnOutput,
    Fn,
    Stack,
    Stage,
    aws_codepipeline_actions as codepipeline_actions,
    aws_ecr as ecr,
    aws_events as events,
    aws_s3 as s3,
    pipelines,
)
from constructs import Construct

from infrastructure.config.app_environment import AppEnvironment
from infrastructure.core.iam.pipeline_roles import PipelineIamRolesConstruct
from infrastructure.pipelines.deployment import codebuild_steps
from infrastructure.stacks.app_stack import AppStack

# Every Monday at 08:00 UTC
WEEKLY_TRIGGER_SCHEDULE = "cron(0 8 ? * 1 *)"
MAX_IMAGE_COUNT = 10


class Application(Stage):
    """Deployment stage holding the service stack."""

    def __init__(self, scope: Construct, construct_id: str, *, app_env: AppEnvironment, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.app_stack = AppStack(
            self,
            "AppStack",
            app_env=app_env,
            stack_name=app_env.require("service_name"),
            env=app_env.cdk_env,
        )


class PipelineStack(Stack):
    """Pipeline building the service image and deploying the application stage."""

    def __init__(self, scope: Construct, construct_id: str, *, app_env: AppEnvironment, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.app_env = app_env
        self.service_name: str = app_env.require("service_name")

        hosted_zone_arn = Fn.import_value("hosted-zone-arn")
        hosted_zone_name = Fn.import_value("hosted-zone-name")

        self.iam_roles = PipelineIamRolesConstruct(
            self,
            "PipelineIamRoles",
            app_env=app_env,
            hosted_zone_arn=hosted_zone_arn,
        )

        self.repository = self._create_repository()
        source = self._trigger_source()

        synth = codebuild_steps.synth_step(
            source=source,
            service_name=self.service_name,
            environment_name=str(app_env.name),
            role=self.iam_roles.codebuild_role,
        )
        build_image = codebuild_steps.image_build_step(
            source=source,
            service_name=self.service_name,
            hosted_zone_name=hosted_zone_name,
            role=self.iam_roles.codebuild_role,
            repository=self.repository,
        )

        self.pipeline = pipelines.CodePipeline(
            self,
            "Pipeline",
            pipeline_name=self.service_name,
            role=self.iam_roles.pipeline_role,
            synth=synth,
            self_mutation=False,
        )
        self.application = Application(self, "Deploy", app_env=app_env, env=app_env.cdk_env)
        self.pipeline.add_stage(self.application, pre=[build_image])

        self.trigger_rule = self._create_scheduled_trigger()
        self._create_outputs()

    def _create_repository(self) -> ecr.Repository:
        return ecr.Repository(
            self,
            "Repository",
            repository_name=self.service_name,
            lifecycle_rules=[
                ecr.LifecycleRule(
                    rule_priority=1,
                    description=f"keep only the latest {MAX_IMAGE_COUNT} images",
                    tag_status=ecr.TagStatus.ANY,
                    max_image_count=MAX_IMAGE_COUNT,
                )
            ],
        )

    def _trigger_source(self) -> pipelines.CodePipelineSource:
        """S3 trigger file uploaded by the CI system."""
        bucket = s3.Bucket.from_bucket_name(self, "TriggerBucket", Fn.import_value("ci-trigger-s3-bucket"))
        return pipelines.CodePipelineSource.s3(
            bucket,
            f"{self.service_name}/trigger/master",
            trigger=codepipeline_actions.S3Trigger.EVENTS,
            action_name="GetTriggerFile",
        )

    def _create_scheduled_trigger(self) -> events.CfnRule:
        return events.CfnRule(
            self,
            "CronBasedPipelineTrigger",
            description=f"Cron based pipeline trigger for {self.service_name}",
            schedule_expression=WEEKLY_TRIGGER_SCHEDULE,
            state="ENABLED",
            targets=[
                events.CfnRule.TargetProperty(
                    arn=Fn.import_value("event-based-pipeline-trigger-function-arn"),
                    id=f"cron-trigger-for-{self.service_name}",
                    input=json.dumps({"PipelineName": self.service_name}),
                )
            ],
        )

    def _create_outputs(self) -> None:
        CfnOutput(
            self,
            "RepositoryUri",
            value=self.repository.repository_uri,
            description="Service image repository",
        )
