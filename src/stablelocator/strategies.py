from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .dom import Node, element_position, is_document_element, same_tag_sibling_count
from .models import Candidate, GenerationRequest
from .selector_rules import (
    IMPLICIT_ELEMENTS,
    SEMANTIC_LANDMARKS,
    STRONG_ATTRIBUTES,
    STRUCTURAL_ATTRIBUTES,
    StabilityRules,
    get_stable_attribute,
    get_stable_attributes,
    get_stable_class,
    is_data_specific_value,
    is_distinctive_class,
    is_stable_id,
    looks_like_user_data,
    normalize_space,
)

logger = logging.getLogger("stablelocator.generator")

MAX_CHILD_PATH_STEPS = 10

CandidateBuilder = Callable[[GenerationRequest, Node], Candidate | None]


@dataclass(frozen=True, slots=True)
class Strategy:
    name: str
    build: CandidateBuilder
    simplify: bool = False


def xpath_literal(value: str) -> str:
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    pieces = value.split('"')
    return "concat(" + ", '\"', ".join(f'"{piece}"' for piece in pieces) + ")"


def attribute_segment(tag: str, attr: str, value: str) -> str:
    return f"{tag}[@{attr}={xpath_literal(value)}]"


def tag_segment(node: Node) -> str:
    tag = node.tag
    if same_tag_sibling_count(node) == 1:
        return tag
    return f"{tag}[{element_position(node)}]"


def minimal_segment(node: Node, rules: StabilityRules) -> str:
    stable_attr = get_stable_attribute(node, rules)
    if stable_attr:
        return attribute_segment(node.tag, *stable_attr)
    return tag_segment(node)


def ancestor_segment(node: Node, rules: StabilityRules) -> str:
    tag = node.tag
    if same_tag_sibling_count(node) > 1:
        return f"{tag}[{element_position(node)}]"
    if is_stable_id(node.id, rules):
        return attribute_segment(tag, "id", node.id)
    stable_attr = get_stable_attribute(node, rules)
    if stable_attr:
        return attribute_segment(tag, *stable_attr)
    return tag


def anchor_segment(node: Node, rules: StabilityRules) -> str | None:
    tag = node.tag
    if is_stable_id(node.id, rules):
        return attribute_segment(tag, "id", node.id)
    for attr, value in get_stable_attributes(node, rules):
        if attr in STRONG_ATTRIBUTES:
            return attribute_segment(tag, attr, value)
    if tag in SEMANTIC_LANDMARKS:
        return tag
    return None


def find_stable_anchor(node: Node, rules: StabilityRules, max_depth: int) -> tuple[Node, str] | None:
    current = node.parent
    depth = 0
    while current is not None and not is_document_element(current) and depth < max_depth:
        segment = anchor_segment(current, rules)
        if segment:
            return current, segment
        current = current.parent
        depth += 1
    return None


def descendant_path(node: Node, anchor: Node, rules: StabilityRules) -> str:
    segments: list[str] = []
    current: Node | None = node
    while current is not None and not current.is_same(anchor):
        if current.is_same(node) or current.tag not in IMPLICIT_ELEMENTS:
            segments.insert(0, minimal_segment(current, rules))
        current = current.parent
    return "//" + "//".join(segments) if segments else ""


def child_path(node: Node, anchor: Node) -> str | None:
    steps: list[str] = []
    current: Node | None = node
    while current is not None and not current.is_same(anchor):
        steps.insert(0, tag_segment(current))
        if len(steps) > MAX_CHILD_PATH_STEPS:
            return None
        current = current.parent
    if current is None:
        return None
    return "/" + "/".join(steps)


def minimal_tag_candidate(request: GenerationRequest, node: Node) -> Candidate | None:
    expression = f"//{node.tag}"
    if request.accepts(expression):
        return Candidate(expression, "minimal_tag")
    return None


def stable_attribute_candidate(request: GenerationRequest, node: Node) -> Candidate | None:
    tag = node.tag
    rules = request.rules
    for attr in STRUCTURAL_ATTRIBUTES:
        value = node.get_attribute(attr)
        if not value or is_data_specific_value(attr, value, rules):
            continue
        expression = f"//{attribute_segment(tag, attr, value)}"
        if request.accepts(expression):
            return Candidate(expression, "stable_attribute")

    stable_class = get_stable_class(node, rules)
    if stable_class and is_distinctive_class(stable_class, rules):
        expression = f"//{tag}[contains(@class, {xpath_literal(stable_class)})]"
        if request.accepts(expression):
            return Candidate(expression, "stable_attribute")
    return None


def stable_anchor_candidate(request: GenerationRequest, node: Node) -> Candidate | None:
    rules = request.rules
    found = find_stable_anchor(node, rules, request.options.anchor_depth)
    if not found:
        return None
    anchor, segment = found

    attempts = [f"//{segment}//{minimal_segment(node, rules)}"]
    relative = descendant_path(node, anchor, rules)
    if relative:
        attempts.append(f"//{segment}{relative}")
    direct = child_path(node, anchor)
    if direct:
        attempts.append(f"//{segment}{direct}")

    ordered = sorted(dict.fromkeys(attempts), key=len)
    for expression in ordered:
        if request.accepts(expression):
            return Candidate(expression, "stable_anchor")
    return None


def sibling_relationship_candidate(request: GenerationRequest, node: Node) -> Candidate | None:
    if node.tag != "dd":
        return None
    previous = node.previous_sibling
    if previous is None or previous.tag != "dt":
        return None

    label = normalize_space(previous.text_content())
    if not 3 < len(label) < 30 or looks_like_user_data(label, request.rules):
        return None

    expression = f"//dt[contains(text(), {xpath_literal(label)})]/following-sibling::dd[1]"
    if request.accepts(expression):
        return Candidate(expression, "sibling_relationship")
    return None


def incremental_candidate(request: GenerationRequest, node: Node) -> Candidate | None:
    rules = request.rules
    segment = tag_segment(node)
    expression = f"//{segment}"
    if request.accepts(expression):
        return Candidate(expression, "incremental")

    segments = [segment]
    current = node.parent
    depth = 0
    while current is not None and not is_document_element(current) and depth < request.options.max_ancestor_depth:
        if request.timed_out():
            logger.debug("Incremental search timed out at depth %s", depth)
            if request.trace is not None:
                request.trace("timeout", {"strategy": "incremental", "depth": depth})
            return None

        parent_tag = current.tag
        if parent_tag in IMPLICIT_ELEMENTS:
            current = current.parent
            depth += 1
            continue

        parent_segment = ancestor_segment(current, rules)
        for expression in (f"//{parent_tag}//{segment}", f"//{parent_segment}//{segment}"):
            if request.accepts(expression):
                return Candidate(expression, "incremental")

        segments.insert(0, parent_segment)
        expression = "//" + "//".join(segments)
        if request.accepts(expression):
            return Candidate(expression, "incremental")

        if parent_tag in SEMANTIC_LANDMARKS:
            expression = f"//{parent_tag}//" + "//".join(segments[1:])
            if request.accepts(expression):
                return Candidate(expression, "incremental")
            break

        current = current.parent
        depth += 1

    return Candidate("//" + "//".join(segments), "incremental")


def fallback_candidate(request: GenerationRequest, node: Node) -> Candidate:
    rules = request.rules
    segments: list[str] = []
    current: Node | None = node
    depth = 0
    while current is not None and not is_document_element(current) and depth < request.options.max_ancestor_depth:
        if request.timed_out():
            logger.debug("Fallback path timed out at depth %s", depth)
            if request.trace is not None:
                request.trace("timeout", {"strategy": "fallback", "depth": depth})
            break

        tag = current.tag
        is_target = current.is_same(node)
        if not is_target and (tag in IMPLICIT_ELEMENTS or (current.id and not is_stable_id(current.id, rules))):
            current = current.parent
            depth += 1
            continue

        segments.insert(0, minimal_segment(current, rules))
        if tag in SEMANTIC_LANDMARKS:
            break

        current = current.parent
        depth += 1

    if not segments:
        segments.append(minimal_segment(node, rules))
    return Candidate("//" + "//".join(segments), "fallback")


STRATEGY_CHAIN: tuple[Strategy, ...] = (
    Strategy("minimal_tag", minimal_tag_candidate),
    Strategy("stable_attribute", stable_attribute_candidate),
    Strategy("stable_anchor", stable_anchor_candidate),
    Strategy("sibling_relationship", sibling_relationship_candidate),
    Strategy("incremental", incremental_candidate, simplify=True),
)

FALLBACK_STRATEGY = Strategy("fallback", fallback_candidate, simplify=True)
