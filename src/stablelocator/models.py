from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from .config import GeneratorOptions
from .dom import Node, QueryEvaluator
from .selector_rules import StabilityRules
from .tracing import TraceHook
from .validation import check_candidate


@dataclass(frozen=True, slots=True)
class Candidate:
    expression: str
    strategy: str


@dataclass(frozen=True, slots=True)
class LocatorResult:
    expression: str
    verified: bool
    strategy: str
    elapsed_ms: float = 0.0

    def __str__(self) -> str:
        return self.expression


@dataclass(slots=True)
class GenerationRequest:
    """State of a single ``generate()`` call. Never shared between calls."""

    target: Node
    scope_root: Node
    evaluator: QueryEvaluator
    options: GeneratorOptions
    clock: Callable[[], float]
    started_at: float
    trace: TraceHook | None = None
    _verdicts: dict[str, bool] = field(default_factory=dict)

    @property
    def rules(self) -> StabilityRules:
        return self.options.rules

    def accepts(self, expression: str) -> bool:
        cached = self._verdicts.get(expression)
        if cached is not None:
            return cached
        check = check_candidate(self.evaluator, self.scope_root, expression, self.target)
        self._verdicts[expression] = check.accepted
        if self.trace is not None:
            self.trace(
                "candidate",
                {"expression": expression, "accepted": check.accepted, "matches": check.match_count},
            )
        return check.accepted

    def elapsed_ms(self) -> float:
        return (self.clock() - self.started_at) * 1000.0

    def timed_out(self) -> bool:
        return self.elapsed_ms() > self.options.timeout_ms
