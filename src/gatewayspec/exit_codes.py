"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~gatewayspec.exceptions.GatewaySpecError` subclass.
Deployment pipelines can inspect the exit code to tell a bad document from a
bad binding set without parsing stderr.

Example::

    $ gatewayspec rewrite openapi.yaml --config bindings.json
    $ echo $?
    5   # EXIT_UNRESOLVED_INTEGRATION -- a route has no backend
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_CONFIG_ERROR = 3
"""The pass configuration could not be loaded or is incomplete."""

EXIT_DOCUMENT_ERROR = 4
"""The input document could not be read or is neither JSON nor YAML."""

EXIT_UNRESOLVED_INTEGRATION = 5
"""An operation has no matching binding and no default binding exists."""

EXIT_AUTHORIZER_CONFLICT = 6
"""Mutually exclusive authorizer settings were supplied together."""

EXIT_SERIALIZATION_ERROR = 7
"""The rewritten document could not be emitted in the detected format."""
