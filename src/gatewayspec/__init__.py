"""gatewayspec -- Rewrite OpenAPI specs into deployable API Gateway definitions.

This package takes an OpenAPI 3.x document (JSON or YAML) plus a list of
registered route bindings and produces a new document in which every
operation carries an ``x-amazon-apigateway-integration`` directive, operations
backed by an identity pool carry a Cognito ``security`` requirement, and
every path gains a CORS preflight ``options`` operation when one is missing.

Typical usage::

    from gatewayspec import RewriteConfig, rewrite_spec

    config = RewriteConfig.from_wire(json.loads(Path("bindings.json").read_text()))
    result = rewrite_spec(Path("openapi.yaml").read_bytes(), config)
    Path("out.yaml").write_text(result.content)

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models for bindings, CORS defaults and pass reports.
    config: Pass configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    document: Format detection, parsing and serialization of spec documents.
    rewriter: The merge pass itself.
"""

__version__ = "0.1.0"

from gatewayspec.models import RewriteConfig  # noqa: E402
from gatewayspec.rewriter import rewrite_document, rewrite_spec  # noqa: E402

__all__ = ["RewriteConfig", "rewrite_document", "rewrite_spec", "__version__"]
