"""Plan command -- show how each route would be bound, without writing anything."""

from __future__ import annotations

from typing import Optional

import typer

from gatewayspec.config import load_rewrite_config
from gatewayspec.document.loader import load_document
from gatewayspec.exceptions import GatewaySpecError
from gatewayspec.output import error, get_output, info
from gatewayspec.rewriter import rewrite_document


def plan_command(
    spec: str = typer.Argument(
        ..., help="OpenAPI document: file path, http(s) URL, or '-' for stdin."
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Bindings config file (default: ./gatewayspec.json)."
    ),
    region: Optional[str] = typer.Option(None, "--region", help="AWS region."),
    account_id: Optional[str] = typer.Option(
        None, "--account-id", help="AWS account id, used to expand pool names."
    ),
    partition: Optional[str] = typer.Option(
        None, "--partition", help="AWS partition (default: aws)."
    ),
) -> None:
    """List every operation with the integration and authorizer it would get.

    Runs the full pass, so a plan that succeeds guarantees ``rewrite`` will
    too.

    Example::

        gatewayspec plan openapi.yaml -c bindings.json
        gatewayspec --json plan openapi.yaml
    """
    try:
        rewrite_config = load_rewrite_config(config, region, account_id, partition)
        tree, _ = load_document(spec)
        _, report = rewrite_document(tree, rewrite_config)
    except GatewaySpecError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    headers = ["Method", "Path", "Integration", "Source", "Authorizer", "Scopes"]
    rows = [
        [
            route.method.value,
            route.path,
            route.integration_target,
            "default" if route.used_default else "binding",
            route.authorizer or "-",
            ",".join(route.scopes) or "-",
        ]
        for route in report.routes
    ]
    get_output().print_table(headers, rows, title=f"Routes ({len(rows)})")

    if report.preflight_paths:
        info(f"CORS preflight added to: {', '.join(report.preflight_paths)}")
    for name, arn in report.authorizers.items():
        info(f"Authorizer {name} -> {arn}")
