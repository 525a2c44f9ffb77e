"""Pytest fixtures for infrastructure tests."""

import aws_cdk as cdk
import pytest
from aws_cdk import assertions
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_route53 as route53

from wp_infra.constructs.managed_wordpress import ManagedWordpress
from wp_infra.stacks.stack import WordpressStack

ACCOUNT = "123456789012"
REGION = "eu-west-1"
DOMAIN = "nopremise.cloud"


def hosted_zone_context(domain=DOMAIN):
    """Cached lookup result so HostedZone.from_lookup resolves without AWS calls."""
    key = f"hosted-zone:account={ACCOUNT}:domainName={domain}:region={REGION}"
    return {key: {"Id": "/hostedzone/Z0123456789ABCDEFGHIJ", "Name": f"{domain}."}}


def make_props(stack, **overrides):
    """Props for ManagedWordpress matching the stack defaults."""
    props = {
        "site-name": "No Premise Cloud",
        "hosted-zone": route53.HostedZone.from_hosted_zone_attributes(
            stack, "Zone", hosted_zone_id="Z0123456789ABCDEFGHIJ", zone_name=DOMAIN
        ),
        "vpc": ec2.Vpc(stack, "Vpc", max_azs=2, nat_gateways=0),
        "db-secret-name": "planetscape-mysql",
        "memory": 512,
        "cpu": 256,
        "scaling-min": 1,
        "scaling-max": 2,
        "image-version": "6.1.1",
    }
    props.update(overrides)
    return props


@pytest.fixture
def env():
    return cdk.Environment(account=ACCOUNT, region=REGION)


@pytest.fixture
def construct_stack(env):
    """An empty stack to place a ManagedWordpress in."""
    return cdk.Stack(cdk.App(), "Test", env=env)


@pytest.fixture
def synth_construct(construct_stack):
    """Synthesize a ManagedWordpress with props overridden by keyword."""

    def _synth(**overrides):
        ManagedWordpress(construct_stack, "WebService", make_props(construct_stack, **overrides))
        return assertions.Template.from_stack(construct_stack)

    return _synth


def _synth_stack(**context):
    context.update(hosted_zone_context())
    app = cdk.App(context=context)
    stack = WordpressStack(
        app, "Wordpress", env=cdk.Environment(account=ACCOUNT, region=REGION)
    )
    return assertions.Template.from_stack(stack)


@pytest.fixture(scope="module")
def stack_template():
    """Template of the full WordpressStack with default settings."""
    return _synth_stack()


@pytest.fixture
def synth_stack():
    """Synthesize a WordpressStack with the given CDK context."""
    return _synth_stack
