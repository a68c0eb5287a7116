"""Convert the compiler service's XML reply into `ResponseNode` trees."""

from __future__ import annotations

from xml.etree import ElementTree

from closure_build.core.types import ResponseNode
from closure_build.exceptions import ProtocolError


def _to_node(element: ElementTree.Element) -> ResponseNode:
    children = list(element)
    value: str | tuple[ResponseNode, ...] = (
        tuple(_to_node(child) for child in children)
        if children
        else (element.text or "")
    )
    return ResponseNode(
        tag=element.tag, value=value, attributes=dict(element.attrib)
    )


def parse_response_tree(body: bytes | str) -> tuple[ResponseNode, ...]:
    """Parse a reply document into nodes for the root's children.

    A node's value is its text when it has no child elements, otherwise the
    tuple of its child nodes.

    Raises:
        ProtocolError: If the document is empty or not well-formed.
    """
    if not body or not body.strip():
        raise ProtocolError("Compiler service returned an empty document")
    try:
        root = ElementTree.fromstring(body)
    except ElementTree.ParseError as e:
        raise ProtocolError(f"Malformed compiler service reply: {e}") from e
    return tuple(_to_node(child) for child in root)
