from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .errors import InvalidInputError
from .selector_rules import DEFAULT_RULES, StabilityRules, load_rules

ENV_MAX_DEPTH = "STABLELOCATOR_MAX_DEPTH"
ENV_TIMEOUT_MS = "STABLELOCATOR_TIMEOUT_MS"
ENV_ANCHOR_DEPTH = "STABLELOCATOR_ANCHOR_DEPTH"
ENV_RULES = "STABLELOCATOR_RULES"

DEFAULT_MAX_ANCESTOR_DEPTH = 10
DEFAULT_TIMEOUT_MS = 20000
DEFAULT_ANCHOR_DEPTH = 8


@dataclass(frozen=True, slots=True)
class GeneratorOptions:
    max_ancestor_depth: int = DEFAULT_MAX_ANCESTOR_DEPTH
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    anchor_depth: int = DEFAULT_ANCHOR_DEPTH
    rules: StabilityRules = DEFAULT_RULES

    def __post_init__(self) -> None:
        for name in ("max_ancestor_depth", "timeout_ms", "anchor_depth"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidInputError(f"{name} must be a positive integer, got {value!r}.")
        if not isinstance(self.rules, StabilityRules):
            raise InvalidInputError("rules must be a StabilityRules table.")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> GeneratorOptions:
        env = os.environ if environ is None else environ
        rules_path = str(env.get(ENV_RULES, "")).strip()
        return cls(
            max_ancestor_depth=_int_from_env(env, ENV_MAX_DEPTH, DEFAULT_MAX_ANCESTOR_DEPTH),
            timeout_ms=_int_from_env(env, ENV_TIMEOUT_MS, DEFAULT_TIMEOUT_MS),
            anchor_depth=_int_from_env(env, ENV_ANCHOR_DEPTH, DEFAULT_ANCHOR_DEPTH),
            rules=load_rules(rules_path) if rules_path else DEFAULT_RULES,
        )


def _int_from_env(env: Mapping[str, str], key: str, default: int) -> int:
    raw = str(env.get(key, "")).strip()
    if not raw:
        return default
    if not raw.isdecimal() or int(raw) <= 0:
        raise InvalidInputError(f"{key} must be a positive integer, got {raw!r}.")
    return int(raw)
