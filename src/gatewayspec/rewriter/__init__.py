"""The merge pass -- bind routes, inject integrations, authorizers and CORS.

This sub-package turns a parsed OpenAPI document plus a
:class:`~gatewayspec.models.RewriteConfig` into a document API Gateway can
import directly.

Typical usage::

    from gatewayspec.rewriter import rewrite_spec

    result = rewrite_spec(raw_bytes, config)
    print(result.content)

Sub-modules:

* :mod:`~gatewayspec.rewriter.routes` -- Binding lookup and the default
  fallback.
* :mod:`~gatewayspec.rewriter.integration` -- Lambda proxy directives.
* :mod:`~gatewayspec.rewriter.authorizers` -- Cognito authorizer
  resolution and de-duplicated registration.
* :mod:`~gatewayspec.rewriter.cors` -- Preflight ``options`` synthesis.
* :mod:`~gatewayspec.rewriter.engine` -- The pass itself.
"""

from gatewayspec.rewriter.engine import rewrite_document, rewrite_spec

__all__ = ["rewrite_document", "rewrite_spec"]
