"""Resolve Cognito authorizers per operation and register them once per pool.

Every operation is evaluated on its own from the authorizer choice of the
binding that serves it:

* :class:`~gatewayspec.models.DefaultAuthorizer` -- use the pass-level
  default pool; without one the operation stays unauthenticated.
* :class:`~gatewayspec.models.PoolAuthorizer` -- use the binding's pool.
* :class:`~gatewayspec.models.NoAuthorizer` -- stay unauthenticated.

A pool given by name is expanded into a user pool ARN using the pass
context; a pool given by ARN is used as-is. The ARN is the registration
key: the first operation that needs a pool writes a security scheme into
``components.securitySchemes`` and every later operation on the same ARN
gets the same scheme name back.

Scheme names are ``cognitoAuthorizer_<pool name>``. The pool name is the
supplied name, otherwise the last ``/`` segment of the ARN, otherwise
``default``. If that name is already taken by a scheme for a different ARN,
a short digest of the ARN is appended so the name stays stable across runs.
"""

from __future__ import annotations

import hashlib
import logging
import re
import threading
from typing import Any, Optional

from gatewayspec.exceptions import ConfigError
from gatewayspec.models import (
    DefaultAuthorizer,
    NoAuthorizer,
    PassContext,
    PoolAuthorizer,
    PoolName,
    PoolRef,
    RouteBinding,
)

logger = logging.getLogger(__name__)

AUTHORIZER_PREFIX = "cognitoAuthorizer_"
PLACEHOLDER_POOL_NAME = "default"

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def pool_arn(pool: PoolName | PoolRef, context: PassContext) -> str:
    """Return the fully-qualified ARN for *pool*.

    Raises:
        ConfigError: If a bare pool name must be expanded but the pass
            context has no account id.
    """
    if isinstance(pool, PoolRef):
        return pool.arn
    if not context.account_id:
        raise ConfigError(
            f"Cannot expand user pool name '{pool.name}' into an ARN: no account id configured"
        )
    return (
        f"arn:{context.partition}:cognito-idp:{context.region}:"
        f"{context.account_id}:userpool/{pool.name}"
    )


def pool_display_name(arn: str, supplied: Optional[str] = None) -> str:
    """Pick the human-readable pool name used in the scheme name."""
    name = supplied or arn.rsplit("/", 1)[-1] or PLACEHOLDER_POOL_NAME
    return _UNSAFE_NAME_CHARS.sub("_", name)


def cognito_security_scheme(arn: str) -> dict[str, Any]:
    """Build the API Gateway Cognito security scheme for a user pool ARN."""
    return {
        "type": "apiKey",
        "name": "Authorization",
        "in": "header",
        "x-amazon-apigateway-authtype": "cognito_user_pools",
        "x-amazon-apigateway-authorizer": {
            "type": "cognito_user_pools",
            "providerARNs": [arn],
        },
    }


def _scheme_arns(scheme: Any) -> list[str]:
    """Return the provider ARNs an existing security scheme points at."""
    if not isinstance(scheme, dict):
        return []
    authorizer = scheme.get("x-amazon-apigateway-authorizer")
    if not isinstance(authorizer, dict):
        return []
    arns = authorizer.get("providerARNs")
    return list(arns) if isinstance(arns, list) else []


class AuthorizerRegistry:
    """The shared authorizer table of one pass.

    Wraps the document's ``components.securitySchemes`` mapping, created on
    first registration. Lookup-or-insert is serialized with a lock so that a
    caller processing operations concurrently still writes each pool once.

    Args:
        spec: The document being rewritten. Mutated in place.
    """

    def __init__(self, spec: dict[str, Any]) -> None:
        self._spec = spec
        self._by_arn: dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def registered(self) -> dict[str, str]:
        """Scheme names registered or reused during this pass, mapped to their ARN."""
        return {name: arn for arn, name in self._by_arn.items()}

    def _schemes(self) -> dict[str, Any]:
        components = self._spec.get("components")
        if not isinstance(components, dict):
            components = self._spec["components"] = {}
        schemes = components.get("securitySchemes")
        if not isinstance(schemes, dict):
            schemes = components["securitySchemes"] = {}
        return schemes

    def ensure(self, arn: str, supplied_name: Optional[str] = None) -> str:
        """Return the scheme name for *arn*, registering it on first use.

        An existing scheme in the input document that already points at
        *arn* under the derived name is reused rather than overwritten.
        """
        with self._lock:
            existing = self._by_arn.get(arn)
            if existing is not None:
                return existing

            schemes = self._schemes()
            name = AUTHORIZER_PREFIX + pool_display_name(arn, supplied_name)
            if name in schemes and arn not in _scheme_arns(schemes[name]):
                digest = hashlib.sha256(arn.encode("utf-8")).hexdigest()[:8]
                name = f"{name}_{digest}"

            if name not in schemes:
                schemes[name] = cognito_security_scheme(arn)
                logger.debug("Registered authorizer %s for %s", name, arn)

            self._by_arn[arn] = name
            return name


def resolve_authorizer(
    binding: RouteBinding,
    default_pool: Optional[PoolName | PoolRef],
    context: PassContext,
    registry: AuthorizerRegistry,
) -> Optional[str]:
    """Resolve the authorizer scheme name for an operation served by *binding*.

    Returns:
        The registered scheme name, or ``None`` when the operation stays
        unauthenticated.
    """
    choice = binding.authorizer
    pool: Optional[PoolName | PoolRef]
    if isinstance(choice, DefaultAuthorizer):
        pool = default_pool
    elif isinstance(choice, PoolAuthorizer):
        pool = choice.pool
    else:
        assert isinstance(choice, NoAuthorizer)
        pool = None

    if pool is None:
        return None

    supplied = pool.name if isinstance(pool, PoolName) else None
    return registry.ensure(pool_arn(pool, context), supplied)


def apply_security(operation: dict[str, Any], authorizer: str, scopes: list[str]) -> None:
    """Replace the operation's security requirement with *authorizer* and *scopes*."""
    operation["security"] = [{authorizer: list(scopes)}]
