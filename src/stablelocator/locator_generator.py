from __future__ import annotations

import logging
import time
from typing import Any, Callable

from .config import GeneratorOptions
from .dom import LxmlQueryEvaluator, Node, QueryEvaluator, as_node, document_root
from .errors import EvaluationError
from .models import GenerationRequest, LocatorResult
from .simplifier import simplify_path
from .strategies import FALLBACK_STRATEGY, STRATEGY_CHAIN, Strategy
from .tracing import TraceHook

logger = logging.getLogger("stablelocator.generator")


class LocatorGenerator:
    """Builds a locator that re-finds one element after the page re-renders.

    Strategies run in priority order and the first candidate that is unique
    and resolves to the target wins. When none qualifies, a best-effort path
    is returned with ``verified=False``.

    The instance only carries immutable configuration; every ``generate``
    call gets its own :class:`GenerationRequest`.
    """

    def __init__(
        self,
        evaluator: QueryEvaluator | None = None,
        options: GeneratorOptions | None = None,
        *,
        trace: TraceHook | None = None,
        clock: Callable[[], float] = time.monotonic,
        strategies: tuple[Strategy, ...] = STRATEGY_CHAIN,
    ) -> None:
        self.evaluator = evaluator or LxmlQueryEvaluator()
        self.options = options or GeneratorOptions()
        self.trace = trace
        self.clock = clock
        self.strategies = strategies

    def generate(self, node: Any) -> LocatorResult:
        target = as_node(node)
        request = GenerationRequest(
            target=target,
            scope_root=document_root(target),
            evaluator=self.evaluator,
            options=self.options,
            clock=self.clock,
            started_at=self.clock(),
            trace=self.trace,
        )

        for strategy in self.strategies:
            candidate = strategy.build(request, target)
            if candidate is None or not request.accepts(candidate.expression):
                if self.trace is not None:
                    self.trace("strategy_skipped", {"strategy": strategy.name})
                continue
            expression = candidate.expression
            if strategy.simplify:
                expression = simplify_path(expression, request.accepts)
            return self._finish(request, expression, True, strategy.name)

        candidate = FALLBACK_STRATEGY.build(request, target)
        expression = simplify_path(candidate.expression, request.accepts)
        verified = request.accepts(expression)
        if not verified:
            logger.info("No unique locator found for <%s>; returning best-effort %r", target.tag, expression)
        return self._finish(request, expression, verified, FALLBACK_STRATEGY.name)

    def _finish(self, request: GenerationRequest, expression: str, verified: bool, strategy: str) -> LocatorResult:
        result = LocatorResult(
            expression=expression,
            verified=verified,
            strategy=strategy,
            elapsed_ms=round(request.elapsed_ms(), 3),
        )
        logger.debug("Generated %r via %s (verified=%s)", expression, strategy, verified)
        if self.trace is not None:
            self.trace(
                "result",
                {"expression": expression, "strategy": strategy, "verified": verified},
            )
        return result


def generate_locator(
    node: Any,
    evaluator: QueryEvaluator | None = None,
    options: GeneratorOptions | None = None,
    *,
    trace: TraceHook | None = None,
) -> LocatorResult:
    return LocatorGenerator(evaluator, options, trace=trace).generate(node)


def locate(expression: str, scope_root: Any, evaluator: QueryEvaluator | None = None) -> Node | None:
    """Re-resolve a stored locator. Malformed expressions raise ``EvaluationError``."""
    root = as_node(scope_root)
    matches = (evaluator or LxmlQueryEvaluator()).evaluate(expression, root)
    return matches[0] if matches else None


def extract_text(expression: str, scope_root: Any, evaluator: QueryEvaluator | None = None) -> str:
    try:
        node = locate(expression, scope_root, evaluator)
    except EvaluationError as exc:
        logger.warning("Cannot extract text: %s", exc)
        return ""
    if node is None:
        return ""
    return node.text_content().strip()
