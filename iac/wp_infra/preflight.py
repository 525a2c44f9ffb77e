"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: MIT-0

Check, before `cdk deploy`, that the database secret the stack references
exists and carries every JSON field the WordPress task and the load balancer
rule read from it.

    DB_SECRET_NAME=planetscape-mysql python -m wp_infra.preflight
"""

import json
import logging
import os
import sys

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("dbname", "host", "port", "username", "password", "loadbalancer")


class SecretCheckError(Exception):
    pass


def check_database_secret(secret_name: str, client=None) -> list:
    """
    Return the required fields missing from the secret, empty when it is complete.
    """
    if client is None:
        client = boto3.client("secretsmanager")

    try:
        response = client.get_secret_value(SecretId=secret_name)
    except ClientError as error:
        if error.response["Error"]["Code"] == "ResourceNotFoundException":
            raise SecretCheckError(f"Secret {secret_name} does not exist") from error
        raise SecretCheckError(f"Could not read secret {secret_name}: {error}") from error

    try:
        values = json.loads(response.get("SecretString") or "")
    except json.JSONDecodeError as error:
        raise SecretCheckError(f"Secret {secret_name} is not a JSON document") from error

    if not isinstance(values, dict):
        raise SecretCheckError(f"Secret {secret_name} is not a JSON object")

    return [field for field in REQUIRED_FIELDS if not values.get(field)]


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    secret_name = os.environ.get("DB_SECRET_NAME", "planetscape-mysql")

    try:
        missing = check_database_secret(secret_name)
    except SecretCheckError as error:
        logger.error(error)
        return 2

    if missing:
        logger.error("secret %s is missing fields: %s", secret_name, ", ".join(missing))
        return 1

    logger.info("secret %s has all required fields", secret_name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
