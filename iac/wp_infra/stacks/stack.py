## Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
## SPDX-License-Identifier: MIT-0

import logging

from aws_cdk import (
    CfnOutput,
    CfnParameter,
    Stack,
    Tags,
    aws_ec2 as ec2,
    aws_route53 as route53,
)
from constructs import Construct

from wp_infra.config import settings_from_context
from wp_infra.constructs.managed_wordpress import ManagedWordpress

logger = logging.getLogger(__name__)


class WordpressStack(Stack):

    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        settings = settings_from_context(self.node)

        db_secret_name = CfnParameter(
            self,
            "DatabaseSecretName",
            type="String",
            default="planetscape-mysql",
            description="Name of the Secrets Manager secret holding the database credentials",
        )

        image_version = CfnParameter(
            self,
            "ImageVersion",
            type="String",
            default="6.1.1",
            description="Tag of the bitnami/wordpress container image",
        )

        # no NAT gateways, so private subnets are isolated
        vpc = ec2.Vpc(self, "VPC", max_azs=2, nat_gateways=0)

        hosted_zone = route53.HostedZone.from_lookup(
            self, "HostedZone", domain_name=settings["domainName"]
        )

        props = {}
        props["site-name"] = settings["siteName"]
        props["hosted-zone"] = hosted_zone
        props["vpc"] = vpc
        props["db-secret-name"] = db_secret_name.value_as_string
        props["image-version"] = image_version.value_as_string
        props["memory"] = settings["memory"]
        props["cpu"] = settings["cpu"]
        props["scaling-min"] = settings["scalingMin"]
        props["scaling-max"] = settings["scalingMax"]
        props["database-name"] = settings["databaseName"]

        logger.info(
            "declaring %s for %s (cpu=%s memory=%s scaling=%s-%s)",
            construct_id,
            settings["domainName"],
            props["cpu"],
            props["memory"],
            props["scaling-min"],
            props["scaling-max"],
        )

        self.wordpress = ManagedWordpress(self, "WebService", props)

        Tags.of(self).add("Site", settings["siteName"])

        CfnOutput(self, "DistributionDomainName", value=self.wordpress.distribution.distribution_domain_name)
        CfnOutput(self, "LoadBalancerDNS", value=self.wordpress.load_balancer.load_balancer_dns_name)
        CfnOutput(self, "FileSystemId", value=self.wordpress.file_system.file_system_id)
