"""The ``gatewayspec`` command line.

Two sub-commands share one root callback:

* ``rewrite`` -- emit the API Gateway-ready document.
* ``plan`` -- show the per-route decisions without emitting anything.

:func:`main` is the console-script entry point. Library errors become their
exit code from :mod:`gatewayspec.exit_codes`; anything else is written to a
crash log under the data directory (see :func:`gatewayspec.config.get_data_dir`).
"""

from __future__ import annotations

import logging
import sys
import traceback
from datetime import datetime

import typer
from rich.console import Console
from rich.logging import RichHandler

from gatewayspec import __version__
from gatewayspec.commands.plan import plan_command
from gatewayspec.commands.rewrite import rewrite_command
from gatewayspec.exceptions import GatewaySpecError, InvalidUsageError
from gatewayspec.exit_codes import EXIT_GENERIC_FAILURE
from gatewayspec.output import OutputFormat, OutputManager, error, set_output

EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="gatewayspec",
    help="Bind OpenAPI operations to Lambda functions, Cognito authorizers and CORS preflights for API Gateway.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("rewrite")(rewrite_command)
app.command("plan")(plan_command)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gatewayspec {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Print the gatewayspec version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Render tables (plan) as JSON."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Render tables (plan) as tab-separated text."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Never use colour on stderr or stdout."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only print the document, warnings and errors."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log every binding and authorizer decision."
    ),
) -> None:
    """Install the output manager and, with ``--verbose``, debug logging."""
    if json_output and plain_output:
        usage = InvalidUsageError("--json and --plain cannot be combined")
        error(str(usage))
        raise typer.Exit(code=usage.exit_code)

    if json_output:
        table_format = OutputFormat.JSON
    elif plain_output:
        table_format = OutputFormat.PLAIN
    else:
        table_format = OutputFormat.AUTO

    set_output(
        OutputManager(format=table_format, no_color=no_color, quiet=quiet, verbose=verbose)
    )

    if verbose:
        _enable_debug_logging(no_color)


def _enable_debug_logging(no_color: bool) -> None:
    """Send ``gatewayspec`` log records to stderr at DEBUG level."""
    logger = logging.getLogger("gatewayspec")
    logger.setLevel(logging.DEBUG)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True, no_color=no_color),
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)


def _write_crash_log() -> str:
    """Dump the active traceback to ``<data dir>/logs`` and return the file path."""
    from gatewayspec.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(
        f"gatewayspec {__version__}\nargv: {' '.join(sys.argv)}\n\n{traceback.format_exc()}"
    )
    return str(log_path)


def main() -> None:
    """Console-script entry point.

    Raises:
        SystemExit: Always; with the error's exit code for
            :class:`~gatewayspec.exceptions.GatewaySpecError`, 130 on Ctrl-C,
            and :data:`~gatewayspec.exit_codes.EXIT_GENERIC_FAILURE` for
            anything unexpected.
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except GatewaySpecError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
