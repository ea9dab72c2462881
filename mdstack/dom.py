"""Normalized tree view of generated markup, for structural comparisons."""

from __future__ import annotations

from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Dict, List, Optional, Union

VOID_TAGS = frozenset({"br", "hr", "img", "input", "meta", "link", "source", "wbr"})


@dataclass
class Node:
    tag: str
    attrs: Dict[str, Optional[str]] = field(default_factory=dict)
    children: List[Union["Node", str]] = field(default_factory=list)

    def find_all(self, tag: str) -> List["Node"]:
        """Return every descendant element named ``tag``, in document order."""
        found: List[Node] = []
        for child in self.children:
            if isinstance(child, Node):
                if child.tag == tag:
                    found.append(child)
                found.extend(child.find_all(tag))
        return found

    def text(self) -> str:
        parts: List[str] = []
        for child in self.children:
            parts.append(child.text() if isinstance(child, Node) else child)
        return " ".join(part for part in parts if part)


class _TreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = Node("div")
        self._open: List[Node] = [self.root]

    def handle_starttag(self, tag: str, attrs: List[tuple]) -> None:
        node = Node(tag, dict(attrs))
        self._open[-1].children.append(node)
        if tag not in VOID_TAGS:
            self._open.append(node)

    def handle_startendtag(self, tag: str, attrs: List[tuple]) -> None:
        self._open[-1].children.append(Node(tag, dict(attrs)))

    def handle_endtag(self, tag: str) -> None:
        if tag in VOID_TAGS:
            return
        for depth in range(len(self._open) - 1, 0, -1):
            if self._open[depth].tag == tag:
                del self._open[depth:]
                return

    def handle_data(self, data: str) -> None:
        self._open[-1].children.append(data)


def _normalize(node: Node) -> None:
    children: List[Union[Node, str]] = []
    for child in node.children:
        if isinstance(child, Node):
            _normalize(child)
            children.append(child)
            continue
        text = child.strip()
        if not text:
            continue
        if children and isinstance(children[-1], str):
            children[-1] = f"{children[-1]} {text}"
        else:
            children.append(text)
    node.children = children


def normalized_tree(html: str) -> Node:
    """Parse ``html`` under a ``div`` root with trimmed, merged text nodes."""
    builder = _TreeBuilder()
    builder.feed(html)
    builder.close()
    _normalize(builder.root)
    return builder.root
