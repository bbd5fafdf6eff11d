"""Host tree abstraction and the lxml-backed implementation.

The generator only ever talks to the :class:`Node` and :class:`QueryEvaluator`
protocols. Any host tree (a parsed document, a browser snapshot, a test
double) can be plugged in as long as it provides those two seams.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, Sequence, runtime_checkable

from lxml import etree
from lxml import html as lxml_html

from .errors import EvaluationError, InvalidInputError


@runtime_checkable
class Node(Protocol):
    """Read-only element reference into the host tree."""

    @property
    def tag(self) -> str: ...

    @property
    def id(self) -> str: ...

    @property
    def class_list(self) -> list[str]: ...

    @property
    def parent(self) -> Node | None: ...

    @property
    def children(self) -> list[Node]: ...

    @property
    def previous_sibling(self) -> Node | None: ...

    def get_attribute(self, name: str) -> str | None: ...

    def text_content(self) -> str: ...

    def is_same(self, other: Any) -> bool: ...


@runtime_checkable
class QueryEvaluator(Protocol):
    """Evaluates a locator expression and returns matching element nodes in document order."""

    def evaluate(self, expression: str, scope_root: Node) -> Sequence[Node]: ...


def _is_element(value: Any) -> bool:
    return isinstance(value, etree._Element) and isinstance(value.tag, str)


@dataclass(frozen=True, slots=True, eq=False)
class LxmlNode:
    element: etree._Element

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LxmlNode) and other.element is self.element

    def __hash__(self) -> int:
        return id(self.element)

    @property
    def tag(self) -> str:
        return str(self.element.tag).lower()

    @property
    def id(self) -> str:
        return (self.element.get("id") or "").strip()

    @property
    def class_list(self) -> list[str]:
        return (self.element.get("class") or "").split()

    @property
    def parent(self) -> LxmlNode | None:
        parent = self.element.getparent()
        if parent is None or not _is_element(parent):
            return None
        return LxmlNode(parent)

    @property
    def children(self) -> list[LxmlNode]:
        return [LxmlNode(child) for child in self.element.iterchildren() if _is_element(child)]

    @property
    def previous_sibling(self) -> LxmlNode | None:
        for sibling in self.element.itersiblings(preceding=True):
            if _is_element(sibling):
                return LxmlNode(sibling)
        return None

    def get_attribute(self, name: str) -> str | None:
        return self.element.get(name)

    def text_content(self) -> str:
        return str(self.element.xpath("string()"))

    def is_same(self, other: Any) -> bool:
        if isinstance(other, LxmlNode):
            return other.element is self.element
        return other is self.element


class LxmlQueryEvaluator:
    """XPath 1.0 evaluator over lxml trees."""

    def evaluate(self, expression: str, scope_root: Node) -> list[LxmlNode]:
        if not isinstance(scope_root, LxmlNode):
            raise EvaluationError(expression, "scope root is not an lxml node")
        try:
            result = scope_root.element.xpath(expression)
        except etree.XPathError as exc:
            raise EvaluationError(expression, str(exc)) from exc
        if not isinstance(result, list):
            return []
        return [LxmlNode(item) for item in result if _is_element(item)]


def as_node(value: Any) -> Node:
    """Coerce an lxml element or a Node into a Node, rejecting anything else."""
    if value is None:
        raise InvalidInputError("Invalid element provided: got None.")
    if _is_element(value):
        return LxmlNode(value)
    if isinstance(value, etree._Element):
        raise InvalidInputError("Invalid element provided: comments and processing instructions are not elements.")
    if isinstance(value, Node):
        return value
    raise InvalidInputError(f"Invalid element provided: {type(value).__name__} is not an element reference.")


def is_document_element(node: Node) -> bool:
    return node.parent is None


def document_root(node: Node) -> Node:
    current = node
    parent = current.parent
    while parent is not None:
        current = parent
        parent = current.parent
    return current


def _same_tag_siblings(node: Node) -> list[Node]:
    parent = node.parent
    if parent is None:
        return [node]
    tag = node.tag
    return [child for child in parent.children if child.tag == tag]


def same_tag_sibling_count(node: Node) -> int:
    return len(_same_tag_siblings(node))


def element_position(node: Node) -> int:
    """1-based position of ``node`` among siblings sharing its tag."""
    for index, sibling in enumerate(_same_tag_siblings(node), start=1):
        if sibling.is_same(node):
            return index
    return 1


@dataclass(slots=True)
class HtmlDocument:
    root: LxmlNode
    evaluator: LxmlQueryEvaluator = field(default_factory=LxmlQueryEvaluator)

    @classmethod
    def from_path(cls, path: str | Path) -> HtmlDocument:
        return parse_html(Path(path).read_bytes())

    def find_all(self, expression: str) -> list[LxmlNode]:
        return self.evaluator.evaluate(expression, self.root)

    def find(self, expression: str) -> LxmlNode | None:
        matches = self.find_all(expression)
        return matches[0] if matches else None

    def iter_elements(self) -> list[LxmlNode]:
        return [LxmlNode(item) for item in self.root.element.iter() if _is_element(item)]


def parse_html(markup: str | bytes) -> HtmlDocument:
    markup = markup.strip()
    if not markup:
        raise InvalidInputError("Cannot parse an empty document.")
    try:
        root = lxml_html.document_fromstring(markup)
    except etree.ParserError as exc:
        raise InvalidInputError(f"Cannot parse document: {exc}") from exc
    return HtmlDocument(root=LxmlNode(root))
