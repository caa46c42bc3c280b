"""Spec document I/O -- format detection, parsing, and serialization.

Typical usage::

    from gatewayspec.document import load_document, serialize_document

    tree, fmt = load_document("openapi.yaml")
    text = serialize_document(tree, fmt)
"""

from gatewayspec.document.loader import (
    load_document,
    parse_document,
    serialize_document,
)

__all__ = ["load_document", "parse_document", "serialize_document"]
