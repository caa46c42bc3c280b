"""Write API Gateway Lambda proxy integrations onto operations."""

from __future__ import annotations

from typing import Any

from gatewayspec.models import PassContext

INTEGRATION_KEY = "x-amazon-apigateway-integration"
"""Operation extension API Gateway reads the backend directive from."""

PASSTHROUGH_WHEN_NO_MATCH = "when_no_match"

_LAMBDA_INVOKE_API_VERSION = "2015-03-31"


def lambda_invocation_uri(target: str, context: PassContext) -> str:
    """Build the API Gateway invocation URI for a Lambda function ARN."""
    return (
        f"arn:{context.partition}:apigateway:{context.region}:lambda:path/"
        f"{_LAMBDA_INVOKE_API_VERSION}/functions/{target}/invocations"
    )


def inject_integration(
    operation: dict[str, Any], target: str, context: PassContext
) -> dict[str, Any]:
    """Set the Lambda proxy integration on *operation*, replacing any existing one.

    Lambda proxy integrations are always invoked with ``POST`` regardless of
    the client-facing method.

    Returns:
        The integration mapping written onto the operation.
    """
    integration = {
        "type": "aws_proxy",
        "httpMethod": "POST",
        "uri": lambda_invocation_uri(target, context),
        "passthroughBehavior": PASSTHROUGH_WHEN_NO_MATCH,
    }
    operation[INTEGRATION_KEY] = integration
    return integration
