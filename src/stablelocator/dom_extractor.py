from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .config import GeneratorOptions
from .dom import HtmlDocument, LxmlNode, parse_html
from .errors import InvalidInputError
from .locator_generator import LocatorGenerator
from .models import LocatorResult
from .tracing import TraceHook
from .validation import validate_live_candidate

if TYPE_CHECKING:
    from playwright.sync_api import ElementHandle, Page

logger = logging.getLogger("stablelocator.browser")

_INDEX_PATH_SCRIPT = """
(el) => {
  const path = [];
  let current = el;
  while (current && current.parentElement) {
    path.unshift(Array.prototype.indexOf.call(current.parentElement.children, current));
    current = current.parentElement;
  }
  return { tag: (el.tagName || '').toLowerCase(), path };
}
"""


def extract_document(page: Page) -> HtmlDocument:
    return parse_html(page.content())


def resolve_element(document: HtmlDocument, element: ElementHandle) -> LxmlNode:
    """Map a live element onto the matching node of a page snapshot."""
    payload: dict[str, Any] = element.evaluate(_INDEX_PATH_SCRIPT) or {}
    tag = str(payload.get("tag", "") or "")
    path = payload.get("path") or []

    node = document.root
    for step in path:
        children = node.children
        index = int(step)
        if index < 0 or index >= len(children):
            raise InvalidInputError(f"Element path {path} does not exist in the page snapshot.")
        node = children[index]

    if tag and node.tag != tag:
        raise InvalidInputError(f"Page snapshot resolved <{node.tag}> where <{tag}> was expected.")
    return node


def generate_for_element(
    page: Page,
    element: ElementHandle,
    options: GeneratorOptions | None = None,
    *,
    trace: TraceHook | None = None,
) -> LocatorResult:
    document = extract_document(page)
    node = resolve_element(document, element)
    result = LocatorGenerator(document.evaluator, options, trace=trace).generate(node)
    if not result.verified:
        return result

    live = validate_live_candidate(element, result.expression)
    if live.unique:
        return result
    logger.warning("Locator %r failed the live check: %s", result.expression, live.message)
    return LocatorResult(
        expression=result.expression,
        verified=False,
        strategy=result.strategy,
        elapsed_ms=result.elapsed_ms,
    )


def locate_element(page: Page, expression: str) -> ElementHandle | None:
    text = str(expression or "").strip()
    if not text:
        return None
    try:
        return page.query_selector(f"xpath={text}")
    except Exception as exc:
        logger.debug("Cannot locate %r in page: %s", text, exc)
        return None
