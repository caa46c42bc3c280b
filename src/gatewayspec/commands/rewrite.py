"""Rewrite command -- produce the API Gateway-ready document.

Loads the source document and the pass configuration, runs one merge pass,
and writes the result in the source format. The document goes to stdout
unless ``--output`` names a file, in which case it is written atomically and
a summary is printed to stderr.
"""

from __future__ import annotations

from typing import Optional

import typer

from gatewayspec.config import load_rewrite_config, write_output
from gatewayspec.document.loader import load_document, serialize_document
from gatewayspec.exceptions import GatewaySpecError
from gatewayspec.models import DocumentFormat
from gatewayspec.output import debug, error, info, print_data, success
from gatewayspec.rewriter import rewrite_document


def rewrite_command(
    spec: str = typer.Argument(
        ..., help="OpenAPI document: file path, http(s) URL, or '-' for stdin."
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Bindings config file (default: ./gatewayspec.json)."
    ),
    output_path: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write the rewritten document to this file."
    ),
    output_format: Optional[DocumentFormat] = typer.Option(
        None,
        "--format",
        help="Emit this format instead of the source document's format.",
        case_sensitive=False,
    ),
    region: Optional[str] = typer.Option(None, "--region", help="AWS region."),
    account_id: Optional[str] = typer.Option(
        None, "--account-id", help="AWS account id, used to expand pool names."
    ),
    partition: Optional[str] = typer.Option(
        None, "--partition", help="AWS partition (default: aws)."
    ),
) -> None:
    """Rewrite an OpenAPI document with integrations, authorizers and CORS routes.

    Example::

        gatewayspec rewrite openapi.yaml -c bindings.json -o build/openapi.yaml
    """
    try:
        rewrite_config = load_rewrite_config(config, region, account_id, partition)
        debug(
            f"Loaded {len(rewrite_config.bindings)} bindings for region "
            f"{rewrite_config.context.region}"
        )
        tree, source_format = load_document(spec)
        document, report = rewrite_document(tree, rewrite_config)
        content = serialize_document(document, output_format or source_format)
        if output_path:
            write_output(output_path, content)
    except GatewaySpecError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not output_path:
        print_data(content)

    defaulted = sum(1 for route in report.routes if route.used_default)
    info(
        f"{len(report.routes)} operations bound ({defaulted} via default), "
        f"{len(report.preflight_paths)} preflight routes added, "
        f"{len(report.authorizers)} authorizers"
    )
    if output_path:
        success(f"Wrote {output_path}")
