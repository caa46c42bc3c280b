"""Load, parse, and re-serialize OpenAPI documents as JSON or YAML.

This module handles all I/O and format handling for spec documents. A merge
pass must hand back its output in the same format the input arrived in, so
parsing reports the detected :class:`~gatewayspec.models.DocumentFormat`
alongside the tree.

The public functions are:

* :func:`parse_document` -- Detect the format of raw content and parse it.
* :func:`serialize_document` -- Emit a tree in a given format.
* :func:`load_document` -- Read raw content from a file, URL, or stdin and
  parse it.

Format detection never depends on which parser happens to run last. The
JSON grammar is strict (the non-standard ``NaN``, ``Infinity`` and ``-Infinity``
literals are refused outright) and every JSON document is also YAML, so
content the JSON parser accepts is JSON; only content it rejects is offered
to the YAML parser. A caller that knows the format passes it as a hint and
skips detection. Content neither parser accepts, and content that is not a
mapping, are rejected with
:class:`~gatewayspec.exceptions.UnrecognizedFormatError`.

File extensions and HTTP content types are not trusted for the format: a
JSON document saved as ``openapi.yaml`` is still JSON. They only pick which
parser error is reported when the content is valid under neither format.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from gatewayspec.exceptions import (
    DocumentLoadError,
    SerializationError,
    UnrecognizedFormatError,
)
from gatewayspec.models import DocumentFormat


def parse_document(
    content: bytes | str, hint: Optional[DocumentFormat] = None
) -> tuple[dict[str, Any], DocumentFormat]:
    """Parse raw document content as JSON or YAML.

    Args:
        content: The raw document. Bytes are decoded as UTF-8 (a leading
            BOM is tolerated).
        hint: Explicit format. When given, only that parser is tried.

    Returns:
        A ``(tree, detected_format)`` tuple. The tree preserves mapping key
        order.

    Raises:
        UnrecognizedFormatError: If the content cannot be parsed in the
            hinted format, is valid under neither format, or is not a
            mapping.
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise UnrecognizedFormatError(f"Document is not valid UTF-8: {exc}") from exc

    if hint == DocumentFormat.JSON:
        try:
            return _require_mapping(_strict_json_loads(content)), DocumentFormat.JSON
        except (json.JSONDecodeError, _NonStandardJSONError) as exc:
            raise UnrecognizedFormatError(f"Invalid JSON: {exc}") from exc

    if hint == DocumentFormat.YAML:
        try:
            return _require_mapping(yaml.safe_load(content)), DocumentFormat.YAML
        except yaml.YAMLError as exc:
            raise UnrecognizedFormatError(f"Invalid YAML: {exc}") from exc

    json_error: Exception | None = None
    yaml_error: Exception | None = None

    try:
        return _require_mapping(_strict_json_loads(content)), DocumentFormat.JSON
    except _NonStandardJSONError as exc:
        raise UnrecognizedFormatError(f"Invalid JSON: {exc}") from exc
    except json.JSONDecodeError as exc:
        json_error = exc

    try:
        return _require_mapping(yaml.safe_load(content)), DocumentFormat.YAML
    except yaml.YAMLError as exc:
        yaml_error = exc

    raise UnrecognizedFormatError(
        "Document is not a valid JSON or YAML document"
        f"\n  JSON error: {json_error}"
        f"\n  YAML error: {yaml_error}"
    )


class _NonStandardJSONError(ValueError):
    """``NaN`` or ``Infinity`` found where JSON only allows numbers."""


def _reject_constant(name: str) -> Any:
    raise _NonStandardJSONError(f"{name} is not a JSON value")


def _strict_json_loads(content: str) -> Any:
    return json.loads(content, parse_constant=_reject_constant)


def _require_mapping(result: Any) -> dict[str, Any]:
    """Reject parsed documents that are not a top-level mapping."""
    if not isinstance(result, dict):
        got = type(result).__name__ if result is not None else "empty document"
        raise UnrecognizedFormatError(
            f"Document must be a JSON/YAML object (got {got})"
        )
    return result


def serialize_document(spec: dict[str, Any], fmt: DocumentFormat) -> str:
    """Serialize *spec* in the given format.

    JSON output uses two-space indentation; YAML output uses block style.
    Neither sorts keys, so keys keep their insertion order.

    Raises:
        SerializationError: If the tree holds values the format cannot
            represent.
    """
    if fmt == DocumentFormat.JSON:
        try:
            return json.dumps(spec, indent=2, ensure_ascii=False, allow_nan=False) + "\n"
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Could not convert document back to JSON: {exc}") from exc

    try:
        return yaml.safe_dump(
            spec,
            indent=2,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )
    except yaml.YAMLError as exc:
        raise SerializationError(f"Could not convert document back to YAML: {exc}") from exc


def load_document(source: str) -> tuple[dict[str, Any], DocumentFormat]:
    """Load a document from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        A ``(tree, detected_format)`` tuple.

    Raises:
        DocumentLoadError: If the source cannot be read.
        UnrecognizedFormatError: If the content cannot be parsed.
    """
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def _load_from_stdin() -> tuple[dict[str, Any], DocumentFormat]:
    """Read a document from stdin."""
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise DocumentLoadError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise DocumentLoadError("No input received from stdin")

    return parse_document(content)


def _load_from_url(url: str) -> tuple[dict[str, Any], DocumentFormat]:
    """Fetch a document over HTTP(S).

    The format comes from the body. A JSON or YAML content type only
    chooses the error reported for a body that is neither.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise DocumentLoadError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise DocumentLoadError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    declared: Optional[DocumentFormat] = None
    if "json" in content_type:
        declared = DocumentFormat.JSON
    elif "yaml" in content_type or "yml" in content_type:
        declared = DocumentFormat.YAML

    return _parse_declared(response.text, declared)


def _load_from_file(path: str) -> tuple[dict[str, Any], DocumentFormat]:
    """Load a document from a local file, detecting the format from its content."""
    file_path = Path(path)
    if not file_path.is_file():
        raise DocumentLoadError(f"Document file not found: {path}")

    try:
        content = file_path.read_bytes()
    except OSError as exc:
        raise DocumentLoadError(f"Failed to read document file {path}: {exc}") from exc

    if not content.strip():
        raise DocumentLoadError(f"Document file is empty: {path}")

    return _parse_declared(content, format_from_suffix(file_path))


def _parse_declared(
    content: bytes | str, declared: Optional[DocumentFormat]
) -> tuple[dict[str, Any], DocumentFormat]:
    """Detect the format from *content*; *declared* only narrows the error.

    When the content parses under neither format and the source named one,
    the error is that format's own parser message.
    """
    try:
        return parse_document(content)
    except UnrecognizedFormatError as exc:
        if declared is None:
            raise
        try:
            parse_document(content, hint=declared)
        except UnrecognizedFormatError as narrowed:
            raise narrowed from exc
        raise


def format_from_suffix(path: Path) -> Optional[DocumentFormat]:
    """Map a file extension to a :class:`DocumentFormat`, or ``None``."""
    suffix = path.suffix.lower()
    if suffix == ".json":
        return DocumentFormat.JSON
    if suffix in (".yaml", ".yml"):
        return DocumentFormat.YAML
    return None
