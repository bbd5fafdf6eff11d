"""Greedy shortening of ``//``-joined locator paths.

Every reduction is re-validated through the caller's ``accepts`` callback, so
a simplified path is always at least as correct as its input and never has
more segments.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from .selector_rules import is_anchor_segment, is_positional_segment

logger = logging.getLogger("stablelocator.generator")


def split_path_segments(expression: str) -> list[str] | None:
    text = expression.strip()
    if not text.startswith("//"):
        return None

    segments: list[str] = []
    in_quote: str | None = None
    bracket_depth = 0
    paren_depth = 0
    start = 2
    index = 2
    while index < len(text):
        char = text[index]
        if in_quote:
            if char == in_quote:
                in_quote = None
            index += 1
            continue
        if char in {"'", '"'}:
            in_quote = char
        elif char == "[":
            bracket_depth += 1
        elif char == "]":
            bracket_depth = max(0, bracket_depth - 1)
        elif char == "(":
            paren_depth += 1
        elif char == ")":
            paren_depth = max(0, paren_depth - 1)
        elif char == "/" and bracket_depth == 0 and paren_depth == 0 and text.startswith("//", index):
            segments.append(text[start:index])
            index += 2
            start = index
            continue
        index += 1
    segments.append(text[start:])

    if in_quote or any(not segment for segment in segments):
        return None
    return segments


def join_path_segments(segments: list[str]) -> str:
    return "//" + "//".join(segments)


def reduction_candidates(parts: list[str]) -> Iterator[tuple[str, list[str]]]:
    last = len(parts) - 1
    positional = [index for index, part in enumerate(parts) if is_positional_segment(part)]
    first_positional = positional[0] if positional else -1

    for index in range(1, last):
        if index not in positional:
            yield "drop_plain", parts[:index] + parts[index + 1:]

    if len(parts) > 3 and first_positional >= 0:
        for end in range(last - 1, first_positional, -1):
            kept = [part for part in parts[first_positional + 1:end + 1] if is_positional_segment(part)]
            yield "drop_plain_run", parts[:first_positional + 1] + kept + parts[end + 1:]

    for index in positional:
        if index in (first_positional, 0, last):
            continue
        yield "drop_positional", parts[:index] + parts[index + 1:]

    limit = min(first_positional, last - 1) if first_positional >= 0 else last - 1
    for start in range(limit, 0, -1):
        yield "truncate_front", parts[start:]

    if len(parts) > 3:
        anchor = next((index for index, part in enumerate(parts) if is_anchor_segment(part)), -1)
        # the first positional segment must survive every reduction
        if 0 <= anchor < len(parts) - 2 and not 0 <= first_positional < anchor:
            middle = [parts[first_positional]] if anchor < first_positional < len(parts) - 2 else []
            yield "anchor_tail", [parts[anchor], *middle, *parts[-2:]]


def simplify_path(expression: str, accepts: Callable[[str], bool]) -> str:
    parts = split_path_segments(expression)
    if not parts or len(parts) <= 2:
        return expression

    tried: set[str] = set()
    for reduction, candidate in reduction_candidates(parts):
        if len(candidate) >= len(parts):
            continue
        text = join_path_segments(candidate)
        if text in tried:
            continue
        tried.add(text)
        if accepts(text):
            logger.debug("Simplified %r to %r (%s)", expression, text, reduction)
            return text
    return expression
