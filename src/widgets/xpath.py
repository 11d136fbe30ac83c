"""Dotted addressing into a client setting tree.

An xpath such as ``fields.table.status.edit.props`` walks nested
mappings by key; a numeric segment indexes into a list
(``table.columns.0``). Resolution never creates missing nodes.
"""

from typing import Any, Union

Node = Union[dict[str, Any], list[Any], str, int, float, bool, None]


class XPathError(LookupError):
    """Raised when a segment of an xpath does not exist."""

    def __init__(self, xpath: str, segment: str):
        self.xpath = xpath
        self.segment = segment
        super().__init__(f"{xpath}: no such node '{segment}'")


def split(xpath: str) -> list[str]:
    return [s for s in xpath.split(".") if s != ""]


def resolve(tree: Node, xpath: str) -> Node:
    """Return the node addressed by xpath."""
    node = tree
    for segment in split(xpath):
        if isinstance(node, dict):
            if segment not in node:
                raise XPathError(xpath, segment)
            node = node[segment]
        elif isinstance(node, list):
            if not segment.isdigit() or int(segment) >= len(node):
                raise XPathError(xpath, segment)
            node = node[int(segment)]
        else:
            raise XPathError(xpath, segment)
    return node


def replace(tree: Node, xpath: str, name: str, value: Any) -> None:
    """Set key ``name`` of the mapping addressed by xpath to value."""
    target = resolve(tree, xpath)
    if not isinstance(target, dict):
        raise XPathError(xpath, split(xpath)[-1] if split(xpath) else xpath)
    target[name] = value
