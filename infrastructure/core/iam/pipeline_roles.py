"""Construct providing the CI/CD pipeline roles."""

from __future__ import annotations

from aws_cdk import aws_iam as iam
from constructs import Construct

from infrastructure.config.app_environment import AppEnvironment
from infrastructure.core.iam import utils as iam_utils


class PipelineIamRolesConstruct(Construct):
    """Provision pipeline, CodeBuild and CloudFormation deployment roles."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        app_env: AppEnvironment,
        hosted_zone_arn: str,
    ) -> None:
        super().__init__(scope, construct_id)
        service_name = app_env.require("service_name")
        account = app_env.require("account")
        region = app_env.require("region")

        artifact_arns = iam_utils.artifact_bucket_arns(region, account, service_name)
        artifact_actions = ["s3:GetObject", "s3:GetObjectVersion", "s3:PutObject", "s3:ListBucket"]

        self._pipeline_role = iam.Role(
            self,
            "PipelineRole",
            role_name=f"{service_name}-pipeline-role",
            description=f"Pipeline role for {service_name}",
            assumed_by=iam.ServicePrincipal("codepipeline.amazonaws.com"),
        )
        self._pipeline_role.add_to_policy(
            iam.PolicyStatement(effect=iam.Effect.ALLOW, actions=artifact_actions, resources=artifact_arns)
        )

        self._codebuild_role = iam.Role(
            self,
            "CodeBuildRole",
            role_name=f"{service_name}-codebuild-role",
            description=f"CodeBuild role for {service_name}",
            assumed_by=iam.ServicePrincipal("codebuild.amazonaws.com"),
        )
        statements = [
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["logs:CreateLogGroup", "logs:CreateLogStream", "logs:PutLogEvents"],
                resources=[
                    f"arn:aws:logs:{region}:{account}:log-group:/aws/codebuild/{service_name}*",
                    f"arn:aws:logs:{region}:{account}:log-group:/aws/codebuild/{service_name}*:*",
                ],
            ),
            iam.PolicyStatement(effect=iam.Effect.ALLOW, actions=artifact_actions, resources=artifact_arns),
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=[
                    "ecr:GetAuthorizationToken",
                    "ecr:BatchCheckLayerAvailability",
                    "ecr:GetDownloadUrlForLayer",
                    "ecr:BatchGetImage",
                    "ecr:InitiateLayerUpload",
                    "ecr:UploadLayerPart",
                    "ecr:CompleteLayerUpload",
                    "ecr:PutImage",
                ],
                resources=["*"],
            ),
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["ssm:GetParameters", "ssm:GetParameter"],
                resources=iam_utils.ssm_config_parameter_arns(region, account, service_name),
            ),
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=[
                    "cloudformation:DescribeStacks",
                    "cloudformation:CreateStack",
                    "cloudformation:UpdateStack",
                    "cloudformation:DeleteStack",
                    "cloudformation:DescribeStackEvents",
                    "cloudformation:DescribeStackResource",
                    "cloudformation:DescribeStackResources",
                    "cloudformation:GetTemplate",
                    "cloudformation:ValidateTemplate",
                ],
                resources=[f"arn:aws:cloudformation:{region}:{account}:stack/{service_name}*/*"],
            ),
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["route53:GetHostedZone", "route53:ListResourceRecordSets"],
                resources=[hosted_zone_arn],
            ),
        ]
        for statement in statements:
            self._codebuild_role.add_to_policy(statement)

        self._deployment_role = iam.Role(
            self,
            "DeploymentRole",
            role_name=f"{service_name}-deployment-role",
            description=f"Deployment role for {service_name}",
            assumed_by=iam.ServicePrincipal("cloudformation.amazonaws.com"),
            managed_policies=[iam.ManagedPolicy.from_aws_managed_policy_name("AdministratorAccess")],
        )

    @property
    def pipeline_role(self) -> iam.Role:
        return self._pipeline_role

    @property
    def codebuild_role(self) -> iam.Role:
        return self._codebuild_role

    @property
    def deployment_role(self) -> iam.Role:
        return self._deployment_role
