"""Application stack running the service on ECS Fargate behind the shared load balancer."""

from __future__ import annotations

from typing import Dict, List

from aws_cdk import (
    Duration,
    Fn,
    RemovalPolicy,
    Stack,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_logs as logs,
    aws_ssm as ssm,
)
from constructs import Construct

from infrastructure.config.app_environment import AppEnvironment
from infrastructure.core.iam.application_roles import ApplicationIamRolesConstruct
from infrastructure.core.log_retention import map_retention_days

SERVICE_PORT = 443
HEALTH_CHECK_PATH = "/actuator/health"
DATADOG_IMAGE = "public.ecr.aws/datadog/agent:latest"

# Account-level parameters exported to the container environment
CONFIG_PARAMETERS = {
    "accountName": "/config/account/name",
    "aZCount": "/config/account/az-count",
}


class AppStack(Stack):
    """Fargate service wired into existing VPC, cluster and load balancer exports."""

    def __init__(self, scope: Construct, construct_id: str, *, app_env: AppEnvironment, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.app_env = app_env
        self.service_name: str = app_env.require("service_name")
        self.account_id: str = app_env.require("account")
        self.region_name: str = app_env.require("region")
        self.is_prod = app_env.is_prod

        self.config_params = self._config_parameters()

        self.iam_roles = ApplicationIamRolesConstruct(self, "ApplicationIamRoles", app_env=app_env)

        # Network
        self.vpc = self._import_vpc()
        self.ecs_security_group, self.lb_security_group = self._create_security_groups()
        self.subnets = self._import_subnets()

        # Logging
        self.log_group = logs.LogGroup(
            self,
            "LogGroup",
            log_group_name=self.service_name,
            retention=map_retention_days(app_env.require("log_retention_days")),
            removal_policy=RemovalPolicy.DESTROY,
        )

        # Load balancer routing
        self.target_group = self._create_target_group()
        self._register_with_load_balancer()

        # Task definition and containers
        self.task_definition = self._create_task_definition()
        self.main_container = self._create_main_container()
        if self.is_prod:
            self._add_datadog_agent()

        self.service = self._create_service()

    def _config_parameters(self) -> Dict[str, str]:
        """Resolve account-level SSM parameters at deploy time."""
        return {
            key: ssm.StringParameter.value_for_string_parameter(self, path) for key, path in CONFIG_PARAMETERS.items()
        }

    def _import_vpc(self) -> ec2.IVpc:
        return ec2.Vpc.from_vpc_attributes(
            self,
            "ImportedVPC",
            vpc_id=Fn.import_value("DefaultVPCId"),
            availability_zones=[f"{self.region_name}{suffix}" for suffix in ("a", "b", "c")],
        )

    def _create_security_groups(self) -> tuple[ec2.SecurityGroup, ec2.ISecurityGroup]:
        ecs_security_group = ec2.SecurityGroup(
            self,
            "EcsSecurityGroup",
            vpc=self.vpc,
            description=f"{self.service_name}-task",
            allow_all_outbound=True,
        )
        lb_security_group = ec2.SecurityGroup.from_security_group_id(
            self,
            "ImportedLBSecurityGroup",
            Fn.import_value("load-balancer-security-group-id"),
        )
        ecs_security_group.connections.allow_from(
            lb_security_group,
            ec2.Port.tcp(SERVICE_PORT),
            "Allow HTTPS traffic from load balancer",
        )
        return ecs_security_group, lb_security_group

    def _import_subnets(self) -> List[ec2.ISubnet]:
        return [
            ec2.Subnet.from_subnet_id(self, "PrivateSubnet1", Fn.import_value("PrivateSubnet1ID")),
            ec2.Subnet.from_subnet_id(self, "PrivateSubnet2", Fn.import_value("PrivateSubnet2ID")),
        ]

    def _create_target_group(self) -> elbv2.ApplicationTargetGroup:
        return elbv2.ApplicationTargetGroup(
            self,
            "ServiceTargetGroup",
            target_group_name=f"{self.service_name}-tg",
            vpc=self.vpc,
            port=SERVICE_PORT,
            protocol=elbv2.ApplicationProtocol.HTTPS,
            target_type=elbv2.TargetType.IP,
            health_check=elbv2.HealthCheck(
                enabled=True,
                path=HEALTH_CHECK_PATH,
                healthy_threshold_count=2,
                unhealthy_threshold_count=5,
                interval=Duration.seconds(90),
                timeout=Duration.seconds(30),
                healthy_http_codes="200",
            ),
            deregistration_delay=Duration.seconds(15),
        )

    def _register_with_load_balancer(self) -> elbv2.ApplicationListenerRule:
        listener = elbv2.ApplicationListener.from_application_listener_attributes(
            self,
            "ImportedListener",
            listener_arn=Fn.import_value("load-balancer-listener-arn"),
            security_group=self.lb_security_group,
        )
        return elbv2.ApplicationListenerRule(
            self,
            "LoadBalancerListenerRule",
            listener=listener,
            priority=100,
            conditions=[elbv2.ListenerCondition.path_patterns([f"/{self.service_name}/*"])],
            action=elbv2.ListenerAction.forward([self.target_group]),
        )

    def _environment_variables(self) -> Dict[str, str]:
        """Container environment for the service."""
        flag = str(self.is_prod).lower()
        return {
            "AWS_REGION": self.region_name,
            "AWS_ACCOUNT_ID": self.account_id,
            "ENVIRONMENT": str(self.app_env.name),
            "SERVICE_NAME": self.service_name,
            "SERVICE_PORT": str(SERVICE_PORT),
            "ACCOUNT_NAME": self.config_params["accountName"],
            "LOGGING_LEVEL_ROOT": "INFO",
            "DD_SERVICE_NAME": self.service_name,
            "DD_JMXFETCH_ENABLED": flag,
            "DD_TRACE_ANALYTICS_ENABLED": flag,
            "DD_LOGS_INJECTION": flag,
            "JAVA_OPTS": " ".join(
                [
                    "-XX:+UseContainerSupport",
                    "-XX:MaxRAMPercentage=75.0",
                    "-XX:ActiveProcessorCount=2",
                    "-XX:+UseSerialGC",
                    "-XX:+ExitOnOutOfMemoryError",
                    "-XX:+HeapDumpOnOutOfMemoryError",
                    "-XX:HeapDumpPath=/app/heapdump.hprof",
                ]
            ),
        }

    def _create_task_definition(self) -> ecs.FargateTaskDefinition:
        return ecs.FargateTaskDefinition(
            self,
            "TaskDefinition",
            family=self.service_name,
            cpu=self.app_env.require("fargate_cpu"),
            memory_limit_mib=self.app_env.require("memory"),
            execution_role=self.iam_roles.fargate_execution_role,
            task_role=self.iam_roles.task_role,
        )

    def _create_main_container(self) -> ecs.ContainerDefinition:
        return self.task_definition.add_container(
            "ServiceContainer",
            container_name=self.service_name,
            essential=True,
            linux_parameters=ecs.LinuxParameters(self, "LinuxParameters", init_process_enabled=True),
            health_check=ecs.HealthCheck(
                command=["CMD-SHELL", f"curl -k -f https://localhost:{SERVICE_PORT}{HEALTH_CHECK_PATH} || exit 1"],
                interval=Duration.seconds(90),
                retries=3,
                timeout=Duration.seconds(30),
                start_period=Duration.seconds(120),
            ),
            image=ecs.ContainerImage.from_registry(
                f"{self.account_id}.dkr.ecr.{self.region_name}.amazonaws.com/{self.service_name}:latest"
            ),
            port_mappings=[ecs.PortMapping(container_port=SERVICE_PORT, protocol=ecs.Protocol.TCP)],
            logging=ecs.LogDriver.aws_logs(log_group=self.log_group, stream_prefix=self.service_name),
            environment=self._environment_variables(),
        )

    def _add_datadog_agent(self) -> ecs.ContainerDefinition:
        """Attach the Datadog agent sidecar (production only)."""
        statsd_log_group = logs.LogGroup(
            self,
            "StatsdLogGroup",
            log_group_name=f"{self.service_name}-statsd",
            retention=logs.RetentionDays.ONE_WEEK,
            removal_policy=RemovalPolicy.DESTROY,
        )
        api_key = ssm.StringParameter.value_for_string_parameter(self, "/config/datadog-integration/api-key")
        site = ssm.StringParameter.value_for_string_parameter(self, "/config/datadog-integration/site")
        tags = f"account_id:{self.account_id} account_name:{self.config_params['accountName']} service:{self.service_name}"

        return self.task_definition.add_container(
            "DataDogContainer",
            container_name="datadog-agent",
            essential=True,
            health_check=ecs.HealthCheck(
                command=["CMD-SHELL", "/probe.sh"],
                interval=Duration.seconds(120),
                retries=2,
                timeout=Duration.seconds(5),
                start_period=Duration.seconds(120),
            ),
            image=ecs.ContainerImage.from_registry(DATADOG_IMAGE),
            cpu=64,
            memory_limit_mib=256,
            port_mappings=[
                ecs.PortMapping(container_port=8125, protocol=ecs.Protocol.UDP),
                ecs.PortMapping(container_port=8126, protocol=ecs.Protocol.TCP),
            ],
            logging=ecs.LogDriver.aws_logs(log_group=statsd_log_group, stream_prefix=f"{self.service_name}-statsd"),
            environment={
                "ECS_FARGATE": "true",
                "DD_TAGS": tags,
                "DD_DOGSTATSD_TAGS": tags,
                "DD_APM_ENABLED": "true",
                "DD_API_KEY": api_key,
                "DD_SITE": site,
                "DD_APM_IGNORE_RESOURCES": f"GET {HEALTH_CHECK_PATH}",
                "DD_COLLECT_GCE_TAGS": "false",
                "DD_LOGS_INJECTION": "true",
                "DD_TRACE_SAMPLE_RATE": "1",
                "DD_PROFILING_ENABLED": "true",
            },
        )

    def _create_service(self) -> ecs.FargateService:
        cluster = ecs.Cluster.from_cluster_attributes(
            self,
            "ImportedCluster",
            cluster_name=Fn.import_value("fargate-cluster-name"),
            vpc=self.vpc,
        )
        service = ecs.FargateService(
            self,
            "Service",
            service_name=self.service_name,
            task_definition=self.task_definition,
            cluster=cluster,
            health_check_grace_period=Duration.seconds(120),
            max_healthy_percent=200,
            min_healthy_percent=100,
            platform_version=ecs.FargatePlatformVersion.VERSION1_4,
            desired_count=self.app_env.desired_instant_count,
            vpc_subnets=ec2.SubnetSelection(subnets=self.subnets),
            security_groups=[self.ecs_security_group],
            assign_public_ip=False,
        )
        service.attach_to_application_target_group(self.target_group)
        return service
