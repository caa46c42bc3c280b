"""Exception hierarchy for gatewayspec.

All exceptions inherit from :class:`GatewaySpecError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`gatewayspec.exit_codes`.
The top-level error handler in :func:`gatewayspec.app.main` catches
``GatewaySpecError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Every error raised by a merge pass is fatal for the whole pass: no partially
rewritten document is ever returned alongside one of these.

Subclass hierarchy::

    GatewaySpecError (exit 1)
    +-- InvalidUsageError                    (exit 2)
    +-- ConfigError                          (exit 3)
    +-- DocumentLoadError                    (exit 4)
    |   +-- UnrecognizedFormatError          (exit 4)
    +-- UnresolvedIntegrationError           (exit 5)
    +-- AuthorizerConfigError                (exit 6)
    |   +-- AmbiguousAuthorizerConfigError
    |   +-- AmbiguousDefaultPoolError
    |   +-- AmbiguousIntegrationPoolError
    +-- SerializationError                   (exit 7)
"""

from __future__ import annotations

from typing import Optional

from gatewayspec.exit_codes import (
    EXIT_AUTHORIZER_CONFLICT,
    EXIT_CONFIG_ERROR,
    EXIT_DOCUMENT_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SERIALIZATION_ERROR,
    EXIT_UNRESOLVED_INTEGRATION,
)


class GatewaySpecError(Exception):
    """Root of every error a rewrite pass or the CLI can raise on purpose.

    Subclasses pick their process status from :mod:`gatewayspec.exit_codes`
    through the ``exit_code`` class attribute; :func:`gatewayspec.app.main`
    prints the message and exits with it.

    Args:
        message: What went wrong, phrased for the person running the command.
        exit_code: Replaces the subclass default for this one instance.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(GatewaySpecError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(GatewaySpecError):
    """Raised for configuration problems (missing file, invalid content, no region)."""

    exit_code = EXIT_CONFIG_ERROR


class DocumentLoadError(GatewaySpecError):
    """Raised when the source document cannot be read (missing file, HTTP failure, empty input)."""

    exit_code = EXIT_DOCUMENT_ERROR


class UnrecognizedFormatError(DocumentLoadError):
    """Raised when the input is valid under neither JSON nor YAML, or is not a mapping."""


class UnresolvedIntegrationError(GatewaySpecError):
    """Raised when an operation has no matching binding and no default binding.

    Args:
        path: The document path of the unroutable operation (as written in
            the document).
        method: The HTTP method, upper-cased.
    """

    exit_code = EXIT_UNRESOLVED_INTEGRATION

    def __init__(self, path: str, method: str):
        super().__init__(
            f"No Lambda integration found for {method} {path}, "
            "and no default integration was provided"
        )
        self.path = path
        self.method = method


class AuthorizerConfigError(GatewaySpecError):
    """Base class for mutually exclusive authorizer settings supplied together.

    Args:
        message: Human-readable error description.
        field: The offending configuration field(s).
        path: Resource path of the binding at fault, when known.
        method: HTTP method of the binding at fault, when known.
    """

    exit_code = EXIT_AUTHORIZER_CONFLICT

    def __init__(
        self,
        message: str,
        field: str,
        path: Optional[str] = None,
        method: Optional[str] = None,
    ):
        if path is not None:
            message = f"{message} (binding {method or '?'} {path})"
        super().__init__(message)
        self.field = field
        self.path = path
        self.method = method


class AmbiguousAuthorizerConfigError(AuthorizerConfigError):
    """A binding requests the default authorizer AND names a custom identity pool."""


class AmbiguousDefaultPoolError(AuthorizerConfigError):
    """Both a default pool ARN and a default pool name were supplied."""


class AmbiguousIntegrationPoolError(AuthorizerConfigError):
    """A binding supplies both a custom pool ARN and a custom pool name."""


class SerializationError(GatewaySpecError):
    """Raised when the rewritten tree cannot be emitted in the detected format."""

    exit_code = EXIT_SERIALIZATION_ERROR
