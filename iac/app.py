## Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
## SPDX-License-Identifier: MIT-0
#!/usr/bin/env python3

import logging
import os

import aws_cdk as cdk
from wp_infra.stacks.stack import WordpressStack

log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
    log_level = "INFO"

logging.basicConfig(
    level=log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

account = os.environ.get("CDK_DEFAULT_ACCOUNT")
region = os.environ.get("CDK_DEFAULT_REGION")
logger.info("synthesizing for account=%s region=%s", account, region)

app = cdk.App()
WordpressStack(
    app,
    "Wordpress",
    env=cdk.Environment(account=account, region=region),
)

app.synth()
