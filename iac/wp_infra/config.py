## Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
## SPDX-License-Identifier: MIT-0

import logging

from aws_cdk import Token

logger = logging.getLogger(__name__)

DEFAULTS = {
    "domainName": "nopremise.cloud",
    "siteName": "No Premise Cloud",
    "memory": 512,
    "cpu": 256,
    "scalingMin": 1,
    "scalingMax": 2,
    "databaseName": None,
}

NUMERIC_SETTINGS = ("memory", "cpu", "scalingMin", "scalingMax")

REQUIRED_PROPS = (
    "site-name",
    "hosted-zone",
    "vpc",
    "db-secret-name",
    "memory",
    "cpu",
    "scaling-min",
    "scaling-max",
    "image-version",
)

# cpu units -> (min memory, max memory, step) in MiB
FARGATE_SIZES = {
    256: (512, 2048, None),
    512: (1024, 4096, 1024),
    1024: (2048, 8192, 1024),
    2048: (4096, 16384, 1024),
    4096: (8192, 30720, 1024),
    8192: (16384, 61440, 4096),
    16384: (32768, 122880, 8192),
}


class InvalidPropsError(ValueError):
    pass


def settings_from_context(node) -> dict:
    """
    Merge CDK context values (cdk.json or `cdk synth -c key=value`) over DEFAULTS.
    Numbers passed on the command line arrive as strings and are coerced.
    """
    settings = {}
    for key, default in DEFAULTS.items():
        value = node.try_get_context(key)
        if value is None:
            value = default
        elif key in NUMERIC_SETTINGS:
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise InvalidPropsError(f"context value {key}={value!r} is not an integer") from None
        settings[key] = value

    logger.debug("resolved settings: %s", settings)
    return settings


def _is_resolved(*values) -> bool:
    return not any(Token.is_unresolved(value) for value in values)


def _is_fargate_size(cpu: int, memory: int) -> bool:
    if cpu not in FARGATE_SIZES:
        return False
    low, high, step = FARGATE_SIZES[cpu]
    if step is None:
        # 0.25 vCPU only accepts 512, 1024 or 2048
        return memory in (512, 1024, 2048)
    return low <= memory <= high and (memory - low) % step == 0


def validate_props(props: dict) -> None:
    """
    Reject props the Fargate and Application Auto Scaling APIs would refuse
    only at deploy time. Unresolved tokens are left to CloudFormation.
    """
    missing = [key for key in REQUIRED_PROPS if props.get(key) is None]
    if missing:
        raise InvalidPropsError(f"missing props: {', '.join(missing)}")

    cpu = props["cpu"]
    memory = props["memory"]
    if _is_resolved(cpu, memory) and not _is_fargate_size(cpu, memory):
        raise InvalidPropsError(f"{memory} MiB memory with {cpu} cpu units is not a valid Fargate size")

    scaling_min = props["scaling-min"]
    scaling_max = props["scaling-max"]
    if _is_resolved(scaling_min) and scaling_min < 1:
        raise InvalidPropsError(f"scaling-min must be at least 1, got {scaling_min}")
    if _is_resolved(scaling_min, scaling_max) and scaling_min > scaling_max:
        raise InvalidPropsError(f"scaling-min ({scaling_min}) is greater than scaling-max ({scaling_max})")

    image_version = props["image-version"]
    if not Token.is_unresolved(image_version) and not image_version.strip():
        raise InvalidPropsError("image-version must not be empty")
