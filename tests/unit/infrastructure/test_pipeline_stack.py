import json

from aws_cdk import App, Environment
from aws_cdk.assertions import Match, Template

from infrastructure.pipelines.deployment import PipelineStack
from infrastructure.pipelines.deployment.pipeline_stack import WEEKLY_TRIGGER_SCHEDULE


def _stack(app_env) -> PipelineStack:
    app = App()
    return PipelineStack(
        app,
        "orders-api-pipeline",
        app_env=app_env,
        env=Environment(account="123456789012", region="eu-west-1"),
    )


def test_pipeline_named_after_service_without_self_mutation(make_app_env) -> None:
    template = Template.from_stack(_stack(make_app_env("dev")))

    template.has_resource_properties("AWS::CodePipeline::Pipeline", {"Name": "orders-api"})
    pipeline = next(iter(template.find_resources("AWS::CodePipeline::Pipeline").values()))
    stage_names = [stage["Name"] for stage in pipeline["Properties"]["Stages"]]
    assert stage_names[0] == "Source"
    assert "Deploy" in stage_names
    assert "UpdatePipeline" not in stage_names


def test_source_is_service_trigger_file(make_app_env) -> None:
    template = Template.from_stack(_stack(make_app_env("dev")))

    pipeline = next(iter(template.find_resources("AWS::CodePipeline::Pipeline").values()))
    source_stage = pipeline["Properties"]["Stages"][0]
    (action,) = source_stage["Actions"]
    assert action["Name"] == "GetTriggerFile"
    assert action["ActionTypeId"]["Provider"] == "S3"
    assert action["Configuration"]["S3ObjectKey"] == "orders-api/trigger/master"
    assert action["Configuration"]["PollForSourceChanges"] is False


def test_repository_keeps_latest_images(make_app_env) -> None:
    template = Template.from_stack(_stack(make_app_env("dev")))

    repositories = template.find_resources("AWS::ECR::Repository")
    (repository,) = repositories.values()
    assert repository["Properties"]["RepositoryName"] == "orders-api"
    policy = json.loads(repository["Properties"]["LifecyclePolicy"]["LifecyclePolicyText"])
    (rule,) = policy["rules"]
    assert rule["selection"]["tagStatus"] == "any"
    assert rule["selection"]["countNumber"] == 10


def test_codebuild_projects_for_synth_and_image(make_app_env) -> None:
    template = Template.from_stack(_stack(make_app_env("dev")))

    template.has_resource_properties(
        "AWS::CodeBuild::Project",
        {"Name": "orders-api-synth"},
    )
    template.has_resource_properties(
        "AWS::CodeBuild::Project",
        {"Name": "orders-api-image", "Environment": Match.object_like({"PrivilegedMode": True})},
    )


def test_weekly_trigger_rule(make_app_env) -> None:
    template = Template.from_stack(_stack(make_app_env("dev")))

    template.has_resource_properties(
        "AWS::Events::Rule",
        {
            "ScheduleExpression": WEEKLY_TRIGGER_SCHEDULE,
            "State": "ENABLED",
            "Targets": [
                Match.object_like(
                    {"Id": "cron-trigger-for-orders-api", "Input": json.dumps({"PipelineName": "orders-api"})}
                )
            ],
        },
    )


def test_application_stage_deploys_service_stack(make_app_env) -> None:
    stack = _stack(make_app_env("prod"))

    app_stack = stack.application.app_stack
    assert app_stack.stack_name == "orders-api"
    assert app_stack.account == "123456789012"
    assert app_stack.region == "eu-west-1"
    assert app_stack.is_prod is True
