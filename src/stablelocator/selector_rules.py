from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from .errors import RulesError

if TYPE_CHECKING:
    from .dom import Node

STRUCTURAL_ATTRIBUTES = (
    "data-testid",
    "data-test",
    "name",
    "role",
    "type",
    "aria-label",
    "aria-labelledby",
)

STRONG_ATTRIBUTES = ("id", "data-testid", "data-test", "role")
ANCHOR_PATH_ATTRIBUTES = ("id", "data-testid", "data-test")

SEMANTIC_LANDMARKS = frozenset({"main", "nav", "header", "footer", "aside", "article", "section", "form"})
IMPLICIT_ELEMENTS = frozenset({"tbody", "thead", "tfoot"})

_VOWELS = frozenset("aeiou")

_DEFAULT_DYNAMIC_ID_PATTERNS = (
    r"^\d+$",
    r"^ember\d+$",
    r"^react-[a-z]+-\d+$",
    r"^ng-[a-z]+-\d+$",
    r"^vue-[a-z]+-\d+$",
    r"^jsx-\d+$",
    r"^[a-z]+-\d{3,}$",
    r"^[a-f0-9]{8,}$",
    r"\d{4,}",
    r"^uid-",
    r"^gen-",
    r"^auto-",
)

_DEFAULT_UNSTABLE_CLASS_PATTERNS = (
    r"^css-",
    r"^jsx-",
    r"^sc-",
    r"^makeStyles-",
    r"^jss\d+",
    r"_[a-z0-9]{5,}$",
    r"^[a-z]{1,2}\d+$",
    r"^\d",
    r"^(?=[a-z]*\d)(?=\d*[a-z])[a-z0-9]{6,}$",
)

_DEFAULT_DATA_VALUE_PATTERNS = (
    r"^\d+$",
    r"^[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}$",
)

_DEFAULT_USER_DATA_PATTERNS = (
    r"^\d+$",
    r"\d{1,3}(,\d{3})+",
)


def _compile(patterns: Sequence[str], kind: str) -> tuple[re.Pattern[str], ...]:
    compiled: list[re.Pattern[str]] = []
    for raw in patterns:
        if not isinstance(raw, str):
            raise RulesError(f"{kind} pattern must be a string, got {type(raw).__name__}")
        try:
            compiled.append(re.compile(raw, re.IGNORECASE))
        except re.error as exc:
            raise RulesError(f"Invalid {kind} pattern {raw!r}: {exc}") from exc
    return tuple(compiled)


@dataclass(frozen=True, slots=True)
class StabilityRules:
    """Versioned table of generated-value fingerprints.

    Framework naming conventions drift over time, so the patterns live here
    rather than in the search code. Replace the table with ``from_mapping`` or
    ``load_rules`` to update them.
    """

    version: str
    dynamic_id_patterns: tuple[re.Pattern[str], ...]
    unstable_class_patterns: tuple[re.Pattern[str], ...]
    data_value_patterns: tuple[re.Pattern[str], ...]
    user_data_patterns: tuple[re.Pattern[str], ...]
    min_vowel_ratio: float = 0.3
    vowel_check_min_length: int = 6
    max_data_value_length: int = 30
    max_user_text_length: int = 50
    min_distinctive_class_length: int = 5
    _source: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> StabilityRules:
        if not isinstance(data, Mapping):
            raise RulesError("Rule table must be a mapping.")
        version = str(data.get("version") or "").strip()
        if not version:
            raise RulesError("Rule table is missing a version.")

        def _patterns(key: str, default: Sequence[str]) -> list[str]:
            raw = data.get(key, default)
            if isinstance(raw, str) or not isinstance(raw, Sequence):
                raise RulesError(f"{key} must be a list of patterns.")
            return list(raw)

        def _number(key: str, default: float) -> float:
            raw = data.get(key, default)
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise RulesError(f"{key} must be a number.")
            return raw

        source = {
            "version": version,
            "dynamic_id_patterns": _patterns("dynamic_id_patterns", _DEFAULT_DYNAMIC_ID_PATTERNS),
            "unstable_class_patterns": _patterns("unstable_class_patterns", _DEFAULT_UNSTABLE_CLASS_PATTERNS),
            "data_value_patterns": _patterns("data_value_patterns", _DEFAULT_DATA_VALUE_PATTERNS),
            "user_data_patterns": _patterns("user_data_patterns", _DEFAULT_USER_DATA_PATTERNS),
            "min_vowel_ratio": float(_number("min_vowel_ratio", 0.3)),
            "vowel_check_min_length": int(_number("vowel_check_min_length", 6)),
            "max_data_value_length": int(_number("max_data_value_length", 30)),
            "max_user_text_length": int(_number("max_user_text_length", 50)),
            "min_distinctive_class_length": int(_number("min_distinctive_class_length", 5)),
        }
        return cls(
            version=version,
            dynamic_id_patterns=_compile(source["dynamic_id_patterns"], "dynamic id"),
            unstable_class_patterns=_compile(source["unstable_class_patterns"], "class"),
            data_value_patterns=_compile(source["data_value_patterns"], "data value"),
            user_data_patterns=_compile(source["user_data_patterns"], "user data"),
            min_vowel_ratio=source["min_vowel_ratio"],
            vowel_check_min_length=source["vowel_check_min_length"],
            max_data_value_length=source["max_data_value_length"],
            max_user_text_length=source["max_user_text_length"],
            min_distinctive_class_length=source["min_distinctive_class_length"],
            _source=source,
        )

    def to_mapping(self) -> dict[str, Any]:
        return {key: (list(value) if isinstance(value, list) else value) for key, value in self._source.items()}


DEFAULT_RULES = StabilityRules.from_mapping({"version": "2024.1"})


def load_rules(path: str | Path) -> StabilityRules:
    rules_path = Path(path)
    try:
        payload = json.loads(rules_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RulesError(f"Cannot read rule table {rules_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise RulesError(f"Rule table {rules_path} is not valid JSON: {exc}") from exc
    return StabilityRules.from_mapping(payload)


def normalize_space(value: str | None, limit: int = 200) -> str:
    if not value:
        return ""
    compact = re.sub(r"\s+", " ", str(value)).strip()
    return compact[:limit] if compact else ""


def vowel_ratio(value: str) -> float:
    text = value.strip().lower()
    if not text:
        return 0.0
    vowels = sum(1 for char in text if char in _VOWELS)
    return vowels / len(text)


def is_stable_id(id_value: str | None, rules: StabilityRules = DEFAULT_RULES) -> bool:
    if not id_value:
        return False
    value = id_value.strip()
    if not value:
        return False
    return not any(pattern.search(value) for pattern in rules.dynamic_id_patterns)


def is_stable_class(token: str | None, rules: StabilityRules = DEFAULT_RULES) -> bool:
    if not token:
        return False
    value = token.strip()
    if not value:
        return False
    if any(pattern.search(value) for pattern in rules.unstable_class_patterns):
        return False
    # hashed tokens read as consonant noise, real words do not
    if value.isalpha() and value.isascii() and len(value) >= rules.vowel_check_min_length:
        return vowel_ratio(value) >= rules.min_vowel_ratio
    return True


def is_distinctive_class(token: str | None, rules: StabilityRules = DEFAULT_RULES) -> bool:
    if not token:
        return False
    if len(token) < rules.min_distinctive_class_length:
        return False
    if "-" not in token and not re.match(r"^[a-z]{2}", token):
        return False
    return re.match(r"^[a-z]\d", token, flags=re.IGNORECASE) is None


def is_data_specific_value(attr: str, value: str | None, rules: StabilityRules = DEFAULT_RULES) -> bool:
    if not value:
        return False
    if any(pattern.search(value) for pattern in rules.data_value_patterns):
        return True
    return len(value) > rules.max_data_value_length and re.fullmatch(r"[a-z0-9]+", value, flags=re.IGNORECASE) is not None


def looks_like_user_data(text: str | None, rules: StabilityRules = DEFAULT_RULES) -> bool:
    if not text:
        return False
    stripped = text.strip()
    if any(pattern.search(stripped) for pattern in rules.user_data_patterns):
        return True
    return len(text) > rules.max_user_text_length


def get_stable_attributes(node: Node, rules: StabilityRules = DEFAULT_RULES) -> list[tuple[str, str]]:
    picks: list[tuple[str, str]] = []
    for attr in STRUCTURAL_ATTRIBUTES:
        value = node.get_attribute(attr)
        if not value:
            continue
        if is_data_specific_value(attr, value, rules):
            continue
        picks.append((attr, value))
    return picks


def get_stable_attribute(node: Node, rules: StabilityRules = DEFAULT_RULES) -> tuple[str, str] | None:
    picks = get_stable_attributes(node, rules)
    return picks[0] if picks else None


def get_stable_class(node: Node, rules: StabilityRules = DEFAULT_RULES) -> str | None:
    classes = [token for token in node.class_list if is_stable_class(token, rules)]
    if not classes:
        return None
    # BEM-style tokens first, then the longest
    classes.sort(key=lambda token: (-token.count("-"), -len(token)))
    return classes[0]


def is_positional_segment(segment: str) -> bool:
    return re.search(r"\[\d+\]$", segment) is not None


def is_anchor_segment(segment: str) -> bool:
    return any(f"[@{attr}=" in segment for attr in ANCHOR_PATH_ATTRIBUTES)
