## Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
## SPDX-License-Identifier: MIT-0

from aws_cdk import (
    Duration,
    Token,
    aws_certificatemanager as acm,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_efs as efs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_iam as iam,
    aws_logs as logs,
    aws_rds as rds,
    aws_route53 as route53,
    aws_route53_targets as route53_targets,
)
from constructs import Construct

from wp_infra.config import validate_props

CONTAINER_PORT = 8080
SCALE_PERCENT = 90
ORIGIN_HEADER = "X-Custom-Header"
VOLUME_NAME = "wp-vol"


def _as_string(value) -> str:
    if Token.is_unresolved(value):
        return Token.as_string(value)
    return str(value)


class ManagedWordpress(Construct):
    def __init__(
        self, scope: Construct, construct_id: str, props, **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        validate_props(props)

        vpc = props["vpc"]
        hosted_zone = props["hosted-zone"]

        self.file_system = efs.FileSystem(
            self,
            "PersistentStorage",
            vpc=vpc,
            enable_automatic_backups=True,
            encrypted=True,
            performance_mode=efs.PerformanceMode.GENERAL_PURPOSE,
            throughput_mode=efs.ThroughputMode.ELASTIC,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_ISOLATED),
        )

        self.access_point = efs.AccessPoint(
            self,
            "PersistentStorageAccessPoint",
            file_system=self.file_system,
            path="/wordpress",
            create_acl=efs.Acl(owner_uid="1001", owner_gid="0", permissions="0755"),
            posix_user=efs.PosixUser(uid="1001", gid="0"),
        )

        self.task_definition = ecs.TaskDefinition(
            self,
            "TaskDefinition",
            compatibility=ecs.Compatibility.FARGATE,
            memory_mib=_as_string(props["memory"]),
            cpu=_as_string(props["cpu"]),
        )

        self.database_secret = rds.DatabaseSecret.from_secret_name_v2(
            self, "DatabaseSecret", props["db-secret-name"]
        )
        # shared with CloudFront so the load balancer only answers the CDN
        origin_secret = self.database_secret.secret_value_from_json("loadbalancer").unsafe_unwrap()

        environment = {
            "MYSQL_CLIENT_ENABLE_SSL": "yes",
            "WORDPRESS_ENABLE_DATABASE_SSL": "yes",
            "WORDPRESS_EXTRA_WP_CONFIG_CONTENT": "define('FORCE_SSL_ADMIN', true); $_SERVER['HTTPS']='on';",
        }
        secrets = {
            "WORDPRESS_DATABASE_HOST": ecs.Secret.from_secrets_manager(self.database_secret, "host"),
            "WORDPRESS_DATABASE_PORT_NUMBER": ecs.Secret.from_secrets_manager(self.database_secret, "port"),
            "WORDPRESS_DATABASE_USER": ecs.Secret.from_secrets_manager(self.database_secret, "username"),
            "WORDPRESS_DATABASE_PASSWORD": ecs.Secret.from_secrets_manager(self.database_secret, "password"),
        }
        if props.get("database-name"):
            environment["WORDPRESS_DATABASE_NAME"] = props["database-name"]
        else:
            secrets["WORDPRESS_DATABASE_NAME"] = ecs.Secret.from_secrets_manager(self.database_secret, "dbname")

        self.container = self.task_definition.add_container(
            "WebContainer",
            image=ecs.ContainerImage.from_registry(f"bitnami/wordpress:{props['image-version']}"),
            logging=ecs.LogDriver.aws_logs(
                stream_prefix="/ecs/Wordpress",
                log_retention=logs.RetentionDays.ONE_WEEK,
            ),
            environment=environment,
            secrets=secrets,
        )

        self.task_definition.add_volume(
            name=VOLUME_NAME,
            efs_volume_configuration=ecs.EfsVolumeConfiguration(
                file_system_id=self.file_system.file_system_id,
                transit_encryption="ENABLED",
                authorization_config=ecs.AuthorizationConfig(
                    access_point_id=self.access_point.access_point_id,
                    iam="ENABLED",
                ),
            ),
        )
        self.container.add_mount_points(
            ecs.MountPoint(
                container_path="/bitnami/wordpress",
                read_only=False,
                source_volume=VOLUME_NAME,
            )
        )

        self.task_definition.add_to_task_role_policy(
            iam.PolicyStatement(
                actions=[
                    "elasticfilesystem:ClientRootAccess",
                    "elasticfilesystem:ClientWrite",
                    "elasticfilesystem:ClientMount",
                    "elasticfilesystem:DescribeMountTargets",
                ],
                effect=iam.Effect.ALLOW,
                resources=[self.file_system.file_system_arn],
            )
        )
        # grant_read matches the random suffix Secrets Manager appends to the name
        self.database_secret.grant_read(self.task_definition.task_role)

        self.container.add_port_mappings(
            ecs.PortMapping(container_port=CONTAINER_PORT, host_port=CONTAINER_PORT)
        )

        self.load_balancer = elbv2.ApplicationLoadBalancer(
            self,
            "LoadBalancer",
            vpc=vpc,
            internet_facing=True,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
        )

        self.cluster = ecs.Cluster(self, "Cluster", vpc=vpc)

        self.service = ecs.FargateService(
            self,
            "ContainerService",
            cluster=self.cluster,
            task_definition=self.task_definition,
            assign_public_ip=True,
            desired_count=1,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
            min_healthy_percent=50,
            max_healthy_percent=200,
            circuit_breaker=ecs.DeploymentCircuitBreaker(rollback=True),
        )
        self.file_system.connections.allow_default_port_from(self.service)

        self.target_group = elbv2.ApplicationTargetGroup(
            self,
            "TargetGroup",
            port=CONTAINER_PORT,
            protocol=elbv2.ApplicationProtocol.HTTP,
            deregistration_delay=Duration.seconds(5),
            vpc=vpc,
            targets=[
                self.service.load_balancer_target(
                    container_name=self.container.container_name,
                    container_port=CONTAINER_PORT,
                )
            ],
            health_check=elbv2.HealthCheck(
                path="/",
                port=str(CONTAINER_PORT),
                healthy_http_codes="200",
                interval=Duration.seconds(5),
                timeout=Duration.seconds(2),
                healthy_threshold_count=2,
            ),
        )

        self.listener = elbv2.ApplicationListener(
            self,
            "Listener",
            default_action=elbv2.ListenerAction.fixed_response(403, message_body="Access Denied"),
            load_balancer=self.load_balancer,
            open=True,
            port=80,
        )
        elbv2.ApplicationListenerRule(
            self,
            "ListenerRule",
            listener=self.listener,
            priority=1,
            action=elbv2.ListenerAction.forward([self.target_group]),
            conditions=[elbv2.ListenerCondition.http_header(ORIGIN_HEADER, [origin_secret])],
        )

        self.scaling = self.service.auto_scale_task_count(
            min_capacity=props["scaling-min"],
            max_capacity=props["scaling-max"],
        )
        self.scaling.scale_on_cpu_utilization("cpu", target_utilization_percent=SCALE_PERCENT)
        self.scaling.scale_on_memory_utilization("memory", target_utilization_percent=SCALE_PERCENT)

        # CloudFront only accepts certificates from us-east-1
        self.certificate = acm.DnsValidatedCertificate(
            self,
            "Certificate",
            domain_name=hosted_zone.zone_name,
            hosted_zone=hosted_zone,
            region="us-east-1",
        )

        limited_request_policy = cloudfront.OriginRequestPolicy(
            self,
            "Limited",
            query_string_behavior=cloudfront.OriginRequestQueryStringBehavior.all(),
            header_behavior=cloudfront.OriginRequestHeaderBehavior.allow_list("Host"),
        )

        self.distribution = cloudfront.Distribution(
            self,
            "CDN",
            certificate=self.certificate,
            domain_names=[hosted_zone.zone_name],
            price_class=cloudfront.PriceClass.PRICE_CLASS_100,
            default_behavior=cloudfront.BehaviorOptions(
                origin=self._origin(origin_secret),
                allowed_methods=cloudfront.AllowedMethods.ALLOW_ALL,
                cache_policy=cloudfront.CachePolicy.CACHING_DISABLED,
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                origin_request_policy=cloudfront.OriginRequestPolicy.ALL_VIEWER,
            ),
            additional_behaviors={
                "wp-includes/*": cloudfront.BehaviorOptions(
                    origin=self._origin(origin_secret),
                    allowed_methods=cloudfront.AllowedMethods.ALLOW_ALL,
                    cache_policy=cloudfront.CachePolicy.CACHING_OPTIMIZED,
                    viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                    origin_request_policy=limited_request_policy,
                ),
            },
        )

        self.record = route53.ARecord(
            self,
            "DomainARecord",
            record_name=hosted_zone.zone_name,
            target=route53.RecordTarget.from_alias(route53_targets.CloudFrontTarget(self.distribution)),
            zone=hosted_zone,
        )

    def _origin(self, origin_secret: str) -> origins.LoadBalancerV2Origin:
        return origins.LoadBalancerV2Origin(
            self.load_balancer,
            protocol_policy=cloudfront.OriginProtocolPolicy.HTTP_ONLY,
            custom_headers={ORIGIN_HEADER: origin_secret},
        )
