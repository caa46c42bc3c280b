"""Match document operations to registered route bindings.

Bindings are registered against resource paths the way a developer writes
them (``/widgets``, ``Widgets/``, ``widgets``), so both sides are normalised
before comparison: lower-cased, with a single leading and a single trailing
``/`` trimmed. Methods compare case-insensitively.

The first matching binding in registration order wins; conflict detection
among bindings is the caller's job. A route nothing matches falls back to
the default binding, and a route with neither is fatal for the pass.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Optional

from gatewayspec.exceptions import UnresolvedIntegrationError
from gatewayspec.models import HTTPMethod, IntegrationType, RewriteConfig, RouteBinding

logger = logging.getLogger(__name__)

ANY_METHOD_KEY = "x-amazon-apigateway-any-method"
"""Path-item key API Gateway uses for the catch-all ``ANY`` method."""

_OPERATION_METHODS = frozenset(
    m.value.lower() for m in HTTPMethod if m is not HTTPMethod.ANY
)


@dataclass(frozen=True)
class ResolvedRoute:
    """The binding that serves one operation.

    Attributes:
        binding: The matched binding, or the default binding.
        used_default: ``True`` when no registered binding matched.
    """

    binding: RouteBinding
    used_default: bool = False


def normalize_path(path: str) -> str:
    """Lower-case *path* and trim one leading and one trailing ``/``."""
    path = path.lower()
    if path.startswith("/"):
        path = path[1:]
    if path.endswith("/"):
        path = path[:-1]
    return path


def operation_method(key: str) -> Optional[HTTPMethod]:
    """Map a path-item key to the HTTP method it declares.

    Returns ``None`` for keys that are not operations (``parameters``,
    ``summary``, ``servers``, other ``x-`` extensions).
    """
    if key.lower() == ANY_METHOD_KEY:
        return HTTPMethod.ANY
    if key.lower() in _OPERATION_METHODS:
        return HTTPMethod(key)
    return None


def iter_operations(
    path_item: dict[str, Any],
) -> Iterator[tuple[str, HTTPMethod, dict[str, Any]]]:
    """Yield ``(key, method, operation)`` for every operation on a path item.

    Keys are yielded in document order. The list of keys is taken up front
    so callers may add keys to *path_item* while iterating.
    """
    for key in list(path_item):
        method = operation_method(key)
        operation = path_item[key]
        if method is None or not isinstance(operation, dict):
            continue
        yield key, method, operation


def find_binding(
    bindings: Sequence[RouteBinding], path: str, method: HTTPMethod
) -> Optional[RouteBinding]:
    """Return the first Lambda binding registered for *path* and *method*."""
    wanted = normalize_path(path)
    for binding in bindings:
        if (
            normalize_path(binding.resource_path) == wanted
            and binding.method is method
            and binding.integration_type is IntegrationType.LAMBDA
        ):
            return binding
    return None


def resolve_route(config: RewriteConfig, path: str, method: HTTPMethod) -> ResolvedRoute:
    """Decide which binding serves the operation at *path* / *method*.

    Raises:
        UnresolvedIntegrationError: If no binding matches and there is no
            usable default binding.
    """
    binding = find_binding(config.bindings, path, method)
    if binding is not None:
        logger.debug("%s %s -> binding %s", method.value, path, binding.integration_target)
        return ResolvedRoute(binding=binding)

    default = config.default_binding
    if default is not None and default.integration_type is IntegrationType.LAMBDA:
        logger.debug("%s %s -> default binding %s", method.value, path, default.integration_target)
        return ResolvedRoute(binding=default, used_default=True)

    raise UnresolvedIntegrationError(path, method.value)
