"""Construct providing the ECS task execution and task roles."""

from __future__ import annotations

from aws_cdk import aws_iam as iam
from constructs import Construct

from infrastructure.config.app_environment import AppEnvironment
from infrastructure.core.iam import utils as iam_utils


class ApplicationIamRolesConstruct(Construct):
    """Provision the roles the Fargate service runs with."""

    def __init__(self, scope: Construct, construct_id: str, *, app_env: AppEnvironment) -> None:
        super().__init__(scope, construct_id)
        service_name = app_env.require("service_name")
        account = app_env.require("account")
        region = app_env.require("region")

        # Pull images, write logs, read configuration parameters
        self._fargate_execution_role = iam.Role(
            self,
            "FargateExecutionRole",
            role_name=f"{service_name}-fargate-execution-role",
            description=f"Execution role for {service_name} Fargate tasks",
            assumed_by=iam.ServicePrincipal("ecs-tasks.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AmazonECSTaskExecutionRolePolicy"),
            ],
        )
        self._fargate_execution_role.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=[
                    "ecr:GetAuthorizationToken",
                    "ecr:BatchCheckLayerAvailability",
                    "ecr:GetDownloadUrlForLayer",
                    "ecr:BatchGetImage",
                ],
                # GetAuthorizationToken does not support resource scoping
                resources=["*"],
            )
        )
        self._fargate_execution_role.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["ssm:GetParameters", "ssm:GetParameter"],
                resources=iam_utils.ssm_config_parameter_arns(region, account, service_name),
            )
        )

        self._task_role = iam.Role(
            self,
            "EcsServiceRole",
            role_name=f"{service_name}-task-role",
            description=f"Task role for {service_name}",
            assumed_by=iam.ServicePrincipal("ecs-tasks.amazonaws.com"),
        )
        self._task_role.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["logs:CreateLogStream", "logs:PutLogEvents", "logs:DescribeLogStreams"],
                resources=[iam_utils.log_group_arn(region, account, service_name)],
            )
        )

        if app_env.is_prod:
            self._task_role.add_to_policy(
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=["cloudwatch:PutMetricData"],
                    resources=["*"],
                )
            )

    @property
    def fargate_execution_role(self) -> iam.Role:
        """Return the task execution role."""
        return self._fargate_execution_role

    @property
    def task_role(self) -> iam.Role:
        """Return the task (application) role."""
        return self._task_role
