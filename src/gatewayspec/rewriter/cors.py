"""Synthesize CORS preflight ``options`` operations.

A path gets a preflight operation only when CORS defaults are configured and
the path does not already declare ``options`` (in any letter case). The
synthesized operation is an API Gateway mock integration that answers every
preflight with ``204 No Content`` and the configured CORS headers.

``Access-Control-Allow-Headers`` is always the canonical
:data:`~gatewayspec.models.DEFAULT_CORS_ALLOW_HEADERS` list rather than
``CorsDefaults.allow_headers``; deployments have relied on that value, so it
is kept until configurable allow-headers are agreed on.
"""

from __future__ import annotations

from typing import Any

from gatewayspec.models import DEFAULT_CORS_ALLOW_HEADERS, CorsDefaults
from gatewayspec.rewriter.integration import INTEGRATION_KEY, PASSTHROUGH_WHEN_NO_MATCH

PREFLIGHT_METHOD_KEY = "options"
PREFLIGHT_STATUS = "204"

_RESPONSE_HEADERS = (
    "Access-Control-Allow-Origin",
    "Access-Control-Allow-Methods",
    "Access-Control-Allow-Credentials",
    "Vary",
    "Access-Control-Allow-Headers",
)


def has_preflight(path_item: dict[str, Any]) -> bool:
    """Return ``True`` if *path_item* already declares an ``options`` operation."""
    return any(
        isinstance(key, str) and key.lower() == PREFLIGHT_METHOD_KEY for key in path_item
    )


def _quoted(value: str) -> str:
    """Quote a static value for an API Gateway response parameter mapping."""
    return f"'{value}'"


def preflight_operation(cors: CorsDefaults) -> dict[str, Any]:
    """Build the mock preflight operation for *cors*."""
    # Fresh dicts per header: shared objects would be emitted as YAML anchors.
    return {
        "responses": {
            PREFLIGHT_STATUS: {
                "description": f"{PREFLIGHT_STATUS} response",
                "headers": {
                    name: {"schema": {"type": "string"}} for name in _RESPONSE_HEADERS
                },
            },
        },
        INTEGRATION_KEY: {
            "type": "mock",
            "requestTemplates": {
                "application/json": f'{{"statusCode": {PREFLIGHT_STATUS}}}',
            },
            "passthroughBehavior": PASSTHROUGH_WHEN_NO_MATCH,
            "responses": {
                "default": {
                    "statusCode": PREFLIGHT_STATUS,
                    "responseParameters": {
                        "method.response.header.Access-Control-Allow-Origin": _quoted(
                            ",".join(cors.allow_origins)
                        ),
                        "method.response.header.Access-Control-Allow-Methods": _quoted(
                            ",".join(cors.allow_methods)
                        ),
                        "method.response.header.Access-Control-Allow-Credentials": _quoted(
                            "true" if cors.allow_credentials else "false"
                        ),
                        "method.response.header.Vary": _quoted("Origin"),
                        "method.response.header.Access-Control-Allow-Headers": _quoted(
                            ",".join(DEFAULT_CORS_ALLOW_HEADERS)
                        ),
                    },
                },
            },
        },
    }


def ensure_preflight(path_item: dict[str, Any], cors: CorsDefaults) -> bool:
    """Add a preflight operation to *path_item* unless it already has one.

    Returns:
        ``True`` if an operation was added.
    """
    if has_preflight(path_item):
        return False
    path_item[PREFLIGHT_METHOD_KEY] = preflight_operation(cors)
    return True
