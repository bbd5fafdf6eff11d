from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .dom import Node, QueryEvaluator

if TYPE_CHECKING:
    from playwright.sync_api import ElementHandle, Page

logger = logging.getLogger("stablelocator.validation")

_LIVE_CHECK_SCRIPT = """
(el, expression) => {
  const snapshot = document.evaluate(
    expression, document, null, XPathResult.ORDERED_NODE_SNAPSHOT_TYPE, null
  );
  return {
    count: snapshot.snapshotLength,
    same: snapshot.snapshotLength > 0 && snapshot.snapshotItem(0) === el,
  };
}
"""


@dataclass(frozen=True, slots=True)
class CandidateCheck:
    accepted: bool
    match_count: int
    message: str


@dataclass(frozen=True, slots=True)
class LiveValidation:
    unique: bool
    match_count: int
    same_element: bool
    message: str


def _matches(evaluator: QueryEvaluator, scope_root: Node, expression: str) -> list[Any] | None:
    if not expression or not expression.strip():
        return None
    try:
        return list(evaluator.evaluate(expression, scope_root))
    except Exception as exc:
        logger.debug("Rejected %r: %s", expression, exc)
        return None


def is_unique_selector(evaluator: QueryEvaluator, scope_root: Node, expression: str) -> bool:
    matches = _matches(evaluator, scope_root, expression)
    return matches is not None and len(matches) == 1


def validate_selector(evaluator: QueryEvaluator, scope_root: Node, expression: str, target: Node) -> bool:
    matches = _matches(evaluator, scope_root, expression)
    if not matches:
        return False
    return target.is_same(matches[0])


def check_candidate(evaluator: QueryEvaluator, scope_root: Node, expression: str, target: Node) -> CandidateCheck:
    matches = _matches(evaluator, scope_root, expression)
    if matches is None:
        return CandidateCheck(False, 0, "Expression could not be evaluated.")
    if len(matches) != 1:
        return CandidateCheck(False, len(matches), "Expression is not unique in document.")
    if not target.is_same(matches[0]):
        return CandidateCheck(False, 1, "Expression resolves to a different element.")
    return CandidateCheck(True, 1, "Expression is unique and resolves to the target.")


def count_live_matches(page: Page, expression: str) -> int:
    text = str(expression or "").strip()
    if not text:
        return 0
    try:
        return page.locator(f"xpath={text}").count()
    except Exception:
        return 0


def validate_live_candidate(element: ElementHandle, expression: str) -> LiveValidation:
    text = str(expression or "").strip()
    if not text:
        return LiveValidation(False, 0, False, "Expression is empty.")
    try:
        payload = element.evaluate(_LIVE_CHECK_SCRIPT, text)
    except Exception as exc:
        logger.debug("Live check failed for %r: %s", text, exc)
        return LiveValidation(False, 0, False, "Expression could not be evaluated in page.")

    match_count = int((payload or {}).get("count", 0) or 0)
    same = bool((payload or {}).get("same"))
    if match_count != 1:
        return LiveValidation(False, match_count, same, "Expression is not unique in page.")
    if not same:
        return LiveValidation(False, match_count, False, "Expression resolves to a different element in page.")
    return LiveValidation(True, 1, True, "Expression is unique and resolves to the element in page.")
