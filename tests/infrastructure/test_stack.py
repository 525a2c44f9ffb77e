"""
Tests for the top-level WordpressStack.

Validates:
1. Network layout without NAT gateways
2. Deploy-time parameters and their defaults
3. Site tagging and stack outputs
4. Context overrides reach the construct
"""

import pytest
from aws_cdk import assertions

from wp_infra.config import InvalidPropsError


class TestNetwork:
    def test_vpc_without_nat(self, stack_template):
        stack_template.resource_count_is("AWS::EC2::VPC", 1)
        stack_template.resource_count_is("AWS::EC2::NatGateway", 0)

    def test_public_and_isolated_subnets(self, stack_template):
        # two availability zones, one public and one isolated subnet each
        stack_template.resource_count_is("AWS::EC2::Subnet", 4)
        stack_template.resource_count_is("AWS::EC2::InternetGateway", 1)


class TestParameters:
    def test_database_secret_name(self, stack_template):
        stack_template.has_parameter(
            "DatabaseSecretName", {"Type": "String", "Default": "planetscape-mysql"}
        )

    def test_image_version(self, stack_template):
        stack_template.has_parameter("ImageVersion", {"Type": "String", "Default": "6.1.1"})


class TestSite:
    def test_resources_tagged_with_site_name(self, stack_template):
        stack_template.has_resource_properties(
            "AWS::EC2::VPC",
            {"Tags": assertions.Match.array_with([{"Key": "Site", "Value": "No Premise Cloud"}])},
        )

    @pytest.mark.parametrize("output", ["DistributionDomainName", "LoadBalancerDNS", "FileSystemId"])
    def test_outputs(self, stack_template, output):
        stack_template.has_output(output, {})

    def test_single_service(self, stack_template):
        stack_template.resource_count_is("AWS::ECS::Service", 1)
        stack_template.resource_count_is("AWS::CloudFront::Distribution", 1)
        stack_template.resource_count_is("AWS::Route53::RecordSet", 1)


class TestContextOverrides:
    def test_sizing_from_context(self, synth_stack):
        template = synth_stack(cpu="512", memory="2048", scalingMax="5")

        template.has_resource_properties("AWS::ECS::TaskDefinition", {"Cpu": "512", "Memory": "2048"})
        template.has_resource_properties(
            "AWS::ApplicationAutoScaling::ScalableTarget", {"MinCapacity": 1, "MaxCapacity": 5}
        )

    def test_invalid_scaling_from_context(self, synth_stack):
        with pytest.raises(InvalidPropsError):
            synth_stack(scalingMin=4, scalingMax=2)
