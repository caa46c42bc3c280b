"""Run one merge pass over a spec document.

A pass walks ``paths`` in document order. For every operation it resolves a
binding (:mod:`~gatewayspec.rewriter.routes`), writes the Lambda integration
(:mod:`~gatewayspec.rewriter.integration`) and, when an identity pool
applies, the security requirement (:mod:`~gatewayspec.rewriter.authorizers`).
Once all operations of a path are done, the path is offered to the CORS
synthesizer (:mod:`~gatewayspec.rewriter.cors`).

The pass works on a deep copy of the input tree. Any error aborts the whole
pass and the copy is dropped, so callers never see a half-rewritten
document.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Optional

from gatewayspec.document.loader import parse_document, serialize_document
from gatewayspec.models import (
    DocumentFormat,
    RewriteConfig,
    RewriteReport,
    RewriteResult,
    RouteOutcome,
)
from gatewayspec.rewriter.authorizers import (
    AuthorizerRegistry,
    apply_security,
    resolve_authorizer,
)
from gatewayspec.rewriter.cors import ensure_preflight
from gatewayspec.rewriter.integration import inject_integration
from gatewayspec.rewriter.routes import iter_operations, resolve_route

logger = logging.getLogger(__name__)


def rewrite_document(
    spec: dict[str, Any], config: RewriteConfig
) -> tuple[dict[str, Any], RewriteReport]:
    """Rewrite a parsed spec document.

    Args:
        spec: The parsed document. It is not modified.
        config: Bindings, defaults and context for this pass.

    Returns:
        A ``(new_document, report)`` tuple.

    Raises:
        UnresolvedIntegrationError: For the first operation, in path/method
            document order, that no binding or default covers.
        ConfigError: If a bare pool name must be expanded without an account id.
    """
    document = copy.deepcopy(spec)
    registry = AuthorizerRegistry(document)
    report = RewriteReport()

    paths = document.get("paths")
    if not isinstance(paths, dict):
        logger.info("Document has no paths; nothing to rewrite")
        return document, report

    # YAML aliases can share one path item or operation between paths. A
    # repeat is replaced by a fresh copy of the untouched input node.
    source_paths = spec["paths"]
    seen_items: set[int] = set()
    seen_operations: set[int] = set()

    for raw_path in list(paths):
        path_item = paths[raw_path]
        if not isinstance(path_item, dict):
            continue
        if id(path_item) in seen_items:
            path_item = paths[raw_path] = copy.deepcopy(source_paths[raw_path])
        seen_items.add(id(path_item))
        path = str(raw_path)

        for key, method, operation in iter_operations(path_item):
            if id(operation) in seen_operations:
                operation = path_item[key] = copy.deepcopy(source_paths[raw_path][key])
            seen_operations.add(id(operation))

            route = resolve_route(config, path, method)
            binding = route.binding
            inject_integration(operation, binding.integration_target, config.context)

            authorizer = resolve_authorizer(
                binding, config.default_pool, config.context, registry
            )
            if authorizer is not None:
                apply_security(operation, authorizer, binding.scopes)

            report.routes.append(
                RouteOutcome(
                    path=path,
                    method=method,
                    integration_target=binding.integration_target,
                    used_default=route.used_default,
                    authorizer=authorizer,
                    scopes=binding.scopes if authorizer is not None else [],
                )
            )

        if config.cors is not None and ensure_preflight(path_item, config.cors):
            logger.debug("Added CORS preflight to %s", path)
            report.preflight_paths.append(path)

    report.authorizers = registry.registered
    logger.info(
        "Rewrote %d operations, %d preflight routes added, %d authorizers",
        len(report.routes),
        len(report.preflight_paths),
        len(report.authorizers),
    )
    return document, report


def rewrite_spec(
    content: bytes | str,
    config: RewriteConfig,
    hint: Optional[DocumentFormat] = None,
) -> RewriteResult:
    """Parse, rewrite and re-serialize a raw spec document.

    The output uses the same format as the input: JSON in, JSON out; YAML
    in, YAML out.

    Args:
        content: The raw document.
        config: Bindings, defaults and context for this pass.
        hint: Known input format, skipping detection.

    Raises:
        UnrecognizedFormatError: If the input is neither JSON nor YAML.
        UnresolvedIntegrationError: If an operation has no backend.
        SerializationError: If the result cannot be emitted.
    """
    spec, fmt = parse_document(content, hint=hint)
    document, report = rewrite_document(spec, config)
    return RewriteResult(
        content=serialize_document(document, fmt),
        format=fmt,
        report=report,
    )
