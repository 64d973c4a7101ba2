"""CodeBuild steps used by the deployment pipeline."""

from __future__ import annotations

from aws_cdk import Aws, Duration, aws_codebuild as codebuild, aws_ecr as ecr, aws_iam as iam, pipelines

SYNTH_OUTPUT_DIRECTORY = "cdk.out"


def _plaintext(value: str) -> codebuild.BuildEnvironmentVariable:
    return codebuild.BuildEnvironmentVariable(type=codebuild.BuildEnvironmentVariableType.PLAINTEXT, value=value)


def synth_step(
    *,
    source: pipelines.IFileSetProducer,
    service_name: str,
    environment_name: str,
    role: iam.IRole,
) -> pipelines.CodeBuildStep:
    """Return the step that synthesizes the CDK app for the selected environment."""
    return pipelines.CodeBuildStep(
        "Synth",
        input=source,
        project_name=f"{service_name}-synth",
        role=role,
        install_commands=["npm install -g aws-cdk", "pip install -e ."],
        commands=[
            f'echo "Synthesizing {service_name} for {environment_name}"',
            f"cdk synth --context env={environment_name} --output {SYNTH_OUTPUT_DIRECTORY}",
        ],
        primary_output_directory=SYNTH_OUTPUT_DIRECTORY,
        build_environment=codebuild.BuildEnvironment(
            build_image=codebuild.LinuxBuildImage.STANDARD_7_0,
            compute_type=codebuild.ComputeType.SMALL,
        ),
        env={
            "AWS_ACCOUNT_ID": Aws.ACCOUNT_ID,
            "AWS_DEFAULT_REGION": Aws.REGION,
            "SERVICE_NAME": service_name,
        },
        timeout=Duration.minutes(30),
    )


def image_build_step(
    *,
    source: pipelines.IFileSetProducer,
    service_name: str,
    hosted_zone_name: str,
    role: iam.IRole,
    repository: ecr.IRepository,
) -> pipelines.CodeBuildStep:
    """Return the step that builds and pushes the service image before deployment."""
    return pipelines.CodeBuildStep(
        "BuildImage",
        input=source,
        project_name=f"{service_name}-image",
        role=role,
        commands=[
            'echo "Build started at $(date)"',
            "aws ecr get-login-password | docker login --username AWS --password-stdin $ECR_REPOSITORY_URI",
            "docker build -t $ECR_REPOSITORY_URI:latest .",
            "docker push $ECR_REPOSITORY_URI:latest",
        ],
        build_environment=codebuild.BuildEnvironment(
            build_image=codebuild.LinuxBuildImage.STANDARD_7_0,
            privileged=True,
            compute_type=codebuild.ComputeType.SMALL,
            environment_variables={
                "HOSTED_ZONE_NAME": _plaintext(hosted_zone_name),
                "ECR_REPOSITORY_URI": _plaintext(repository.repository_uri),
            },
        ),
        env={
            "AWS_ACCOUNT_ID": Aws.ACCOUNT_ID,
            "AWS_DEFAULT_REGION": Aws.REGION,
            "SERVICE_NAME": service_name,
        },
        timeout=Duration.minutes(30),
    )
