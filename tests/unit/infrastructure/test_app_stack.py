"""AppStack synthesis: log retention, task sizing and service wiring follow the environment."""

from __future__ import annotations

import pytest
from aws_cdk import App, Environment
from aws_cdk.assertions import Match, Template

from infrastructure.config.errors import InvalidEnvironmentConfig
from infrastructure.stacks.app_stack import AppStack


def _synth(app_env) -> Template:
    app = App()
    stack = AppStack(
        app,
        "TestAppStack",
        app_env=app_env,
        env=Environment(account="123456789012", region="eu-west-1"),
    )
    return Template.from_stack(stack)


def _container_definitions(template: Template) -> list[dict]:
    (task_definition,) = template.find_resources("AWS::ECS::TaskDefinition").values()
    return task_definition["Properties"]["ContainerDefinitions"]


def test_log_group_retention_rounds_up(make_app_env) -> None:
    template = _synth(make_app_env("dev", logRetentionDays=10))

    template.has_resource_properties(
        "AWS::Logs::LogGroup",
        {"LogGroupName": "orders-api", "RetentionInDays": 14},
    )


def test_zero_retention_keeps_logs_forever(make_app_env) -> None:
    template = _synth(make_app_env("dev", logRetentionDays=0))

    template.has_resource_properties(
        "AWS::Logs::LogGroup",
        {"LogGroupName": "orders-api", "RetentionInDays": Match.absent()},
    )


def test_task_definition_uses_configured_size(make_app_env) -> None:
    template = _synth(make_app_env("dev", memory=2048, fargateCpu=1024))

    template.has_resource_properties(
        "AWS::ECS::TaskDefinition",
        {
            "Family": "orders-api",
            "Cpu": "1024",
            "Memory": "2048",
            "NetworkMode": "awsvpc",
            "RequiresCompatibilities": ["FARGATE"],
        },
    )


def test_service_uses_desired_count(make_app_env) -> None:
    template = _synth(make_app_env("dev", desiredInstantCount=3))

    template.has_resource_properties(
        "AWS::ECS::Service",
        {
            "ServiceName": "orders-api",
            "DesiredCount": 3,
            "LaunchType": "FARGATE",
            "PlatformVersion": "1.4.0",
            "DeploymentConfiguration": Match.object_like({"MaximumPercent": 200, "MinimumHealthyPercent": 100}),
            "NetworkConfiguration": {
                "AwsvpcConfiguration": Match.object_like({"AssignPublicIp": "DISABLED"}),
            },
        },
    )


def test_service_registered_behind_shared_listener(make_app_env) -> None:
    template = _synth(make_app_env("dev"))

    template.has_resource_properties(
        "AWS::ElasticLoadBalancingV2::TargetGroup",
        {
            "Name": "orders-api-tg",
            "Port": 443,
            "Protocol": "HTTPS",
            "TargetType": "ip",
            "HealthCheckPath": "/actuator/health",
        },
    )
    template.has_resource_properties(
        "AWS::ElasticLoadBalancingV2::ListenerRule",
        {
            "Priority": 100,
            "Conditions": [
                Match.object_like({"Field": "path-pattern", "PathPatternConfig": {"Values": ["/orders-api/*"]}})
            ],
        },
    )


def test_main_container_image_and_environment(make_app_env) -> None:
    (container,) = _container_definitions(_synth(make_app_env("dev")))

    assert container["Name"] == "orders-api"
    assert container["Image"] == "123456789012.dkr.ecr.eu-west-1.amazonaws.com/orders-api:latest"
    assert [mapping["ContainerPort"] for mapping in container["PortMappings"]] == [443]

    environment = {item["Name"]: item["Value"] for item in container["Environment"]}
    assert environment["SERVICE_NAME"] == "orders-api"
    assert environment["ENVIRONMENT"] == "dev"
    assert environment["DD_LOGS_INJECTION"] == "false"


def test_datadog_sidecar_only_in_prod(make_app_env) -> None:
    dev_names = [c["Name"] for c in _container_definitions(_synth(make_app_env("dev")))]
    prod_template = _synth(make_app_env("prod"))
    prod_names = [c["Name"] for c in _container_definitions(prod_template)]

    assert dev_names == ["orders-api"]
    assert prod_names == ["orders-api", "datadog-agent"]
    prod_template.has_resource_properties(
        "AWS::Logs::LogGroup",
        {"LogGroupName": "orders-api-statsd", "RetentionInDays": 7},
    )


@pytest.mark.parametrize(
    ("missing", "field"),
    [
        ("serviceName", "service_name"),
        ("memory", "memory"),
        ("fargateCpu", "fargate_cpu"),
        ("logRetentionDays", "log_retention_days"),
    ],
)
def test_required_settings_fail_at_point_of_use(make_app_env, missing: str, field: str) -> None:
    app_env = make_app_env("dev", **{missing: None})

    with pytest.raises(InvalidEnvironmentConfig, match=field):
        _synth(app_env)
