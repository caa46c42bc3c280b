"""Pass configuration loading, precedence resolution, and atomic output writes.

This module handles everything the CLI needs around a merge pass:

* **Config file** -- A JSON or YAML file holding route bindings, the default
  binding, CORS defaults and the default identity pool. Parsed with the same
  loader as spec documents and turned into a
  :class:`~gatewayspec.models.RewriteConfig` by
  :meth:`~gatewayspec.models.RewriteConfig.from_wire`. When no path is
  given, ``./gatewayspec.json`` is used if present.
* **Precedence resolution** -- :func:`resolve_context` merges CLI flags,
  environment variables and config-file values into the
  :class:`~gatewayspec.models.PassContext`.
* **Directory layout** -- XDG Base Directory compliant data directory for
  crash logs (:func:`get_data_dir`).

Output documents are written with a temp-file-then-rename strategy
(:func:`write_output`) so a failed pass never leaves a truncated file behind.
"""

from __future__ import annotations

import os
import platform
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from gatewayspec.document.loader import format_from_suffix, parse_document
from gatewayspec.exceptions import ConfigError, DocumentLoadError
from gatewayspec.models import PassContext, RewriteConfig

_APP_NAME = "gatewayspec"
_PROJECT_CONFIG_FILENAME = "gatewayspec.json"

ENV_REGION = "GATEWAYSPEC_REGION"
ENV_ACCOUNT_ID = "GATEWAYSPEC_ACCOUNT_ID"
ENV_PARTITION = "GATEWAYSPEC_PARTITION"
AWS_ENV_REGION = "AWS_REGION"
AWS_ENV_ACCOUNT_ID = "AWS_ACCOUNT_ID"


# --- Data directory ---


def get_data_dir() -> Path:
    """Return the directory crash logs are written under, creating it on demand.

    ``$XDG_DATA_HOME/gatewayspec`` (falling back to ``~/.local/share``) on
    Linux and the BSDs, ``~/.gatewayspec`` elsewhere.
    """
    system = platform.system()
    if system == "Linux" or system.endswith("BSD"):
        base = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Output documents ---


def write_output(path: str | Path, content: str) -> Path:
    """Write a rewritten document to *path* without ever exposing a partial file.

    The content goes to a hidden sibling temp file first, is fsynced, and is
    then renamed over *path*. The temp file is removed if anything fails,
    including an interrupt.

    Raises:
        ConfigError: If the directory or file cannot be written.
    """
    target = Path(path)
    tmp_name: Optional[str] = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
        )
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    except BaseException as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        if isinstance(exc, OSError):
            raise ConfigError(f"Cannot write output file {target}: {exc}") from exc
        raise
    return target


# --- Config file ---


def find_config_file(path: Optional[str] = None) -> Path:
    """Locate the pass configuration file.

    Args:
        path: Explicit path from the command line. When ``None``,
            ``./gatewayspec.json`` is used.

    Raises:
        ConfigError: If the file does not exist.
    """
    if path is not None:
        candidate = Path(path).expanduser()
        if not candidate.is_file():
            raise ConfigError(f"Config file not found: {candidate}")
        return candidate

    candidate = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not candidate.is_file():
        raise ConfigError(
            f"No config file given and no {_PROJECT_CONFIG_FILENAME} in {Path.cwd()}"
        )
    return candidate


def read_config_data(path: Path) -> dict[str, Any]:
    """Read and parse a JSON or YAML config file into a dict.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        data, _ = parse_document(content, hint=format_from_suffix(path))
    except DocumentLoadError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc
    return data


# --- Precedence resolution ---


def _first(*values: Optional[str]) -> Optional[str]:
    """Return the first non-empty value."""
    for value in values:
        if value:
            return value
    return None


def resolve_context(
    file_data: Mapping[str, Any],
    cli_region: Optional[str] = None,
    cli_account_id: Optional[str] = None,
    cli_partition: Optional[str] = None,
) -> PassContext:
    """Resolve the pass context with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``--region``, ``--account-id``, ``--partition``)
        2. ``GATEWAYSPEC_REGION`` / ``GATEWAYSPEC_ACCOUNT_ID`` / ``GATEWAYSPEC_PARTITION``
        3. ``AWS_REGION`` / ``AWS_ACCOUNT_ID``
        4. Config file (``region``, ``accountId``, ``partition``)
        5. Defaults (partition ``aws``)

    Raises:
        ConfigError: If no region is available from any source.
    """
    region = _first(
        cli_region,
        os.environ.get(ENV_REGION),
        os.environ.get(AWS_ENV_REGION),
        file_data.get("region"),
    )
    if region is None:
        raise ConfigError(
            f"No region configured. Pass --region, set {ENV_REGION} or "
            f"{AWS_ENV_REGION}, or add 'region' to the config file"
        )

    account_id = _first(
        cli_account_id,
        os.environ.get(ENV_ACCOUNT_ID),
        os.environ.get(AWS_ENV_ACCOUNT_ID),
        file_data.get("accountId"),
    )
    partition = _first(
        cli_partition,
        os.environ.get(ENV_PARTITION),
        file_data.get("partition"),
    ) or "aws"

    # YAML reads unquoted account ids as integers.
    if account_id is not None:
        account_id = str(account_id)

    try:
        return PassContext(region=str(region), account_id=account_id, partition=str(partition))
    except ValidationError as exc:
        raise ConfigError(f"Invalid pass context: {exc}") from exc


def load_rewrite_config(
    path: Optional[str] = None,
    cli_region: Optional[str] = None,
    cli_account_id: Optional[str] = None,
    cli_partition: Optional[str] = None,
) -> RewriteConfig:
    """Load the pass configuration, applying context precedence.

    Raises:
        ConfigError: If the file is missing, invalid, or no region resolves.
        AuthorizerConfigError: If the file sets mutually exclusive
            authorizer fields.
    """
    config_path = find_config_file(path)
    data = read_config_data(config_path)
    context = resolve_context(data, cli_region, cli_account_id, cli_partition)
    return RewriteConfig.from_wire(data, context=context)
