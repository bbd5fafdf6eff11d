from typing import Any

from stablelocator.dom import parse_html
from stablelocator.validation import (
    check_candidate,
    count_live_matches,
    is_unique_selector,
    validate_live_candidate,
    validate_selector,
)

PAGE = """
<html><body>
  <ul><li>A</li><li>B</li><li data-testid="item-target">C</li></ul>
</body></html>
"""


class _FakeLocator:
    def __init__(self, count: int) -> None:
        self._count = count

    def count(self) -> int:
        return self._count


class _FakePage:
    def __init__(self, count: int = 1, fail: bool = False) -> None:
        self.selectors: list[str] = []
        self._count = count
        self._fail = fail

    def locator(self, selector: str) -> _FakeLocator:
        self.selectors.append(selector)
        if self._fail:
            raise RuntimeError("page closed")
        return _FakeLocator(self._count)


class _FakeElement:
    def __init__(self, payload: Any = None, fail: bool = False) -> None:
        self.calls: list[tuple[str, Any]] = []
        self._payload = payload
        self._fail = fail

    def evaluate(self, script: str, arg: Any = None) -> Any:
        self.calls.append((script, arg))
        if self._fail:
            raise RuntimeError("Execution context was destroyed")
        return self._payload


def test_check_candidate_accepts_unique_match_on_target() -> None:
    document = parse_html(PAGE)
    target = document.find("//li[3]")
    assert target is not None

    check = check_candidate(document.evaluator, document.root, '//li[@data-testid="item-target"]', target)

    assert check.accepted
    assert check.match_count == 1
    assert check.message == "Expression is unique and resolves to the target."


def test_check_candidate_rejects_ambiguous_and_wrong_matches() -> None:
    document = parse_html(PAGE)
    target = document.find("//li[3]")
    assert target is not None

    ambiguous = check_candidate(document.evaluator, document.root, "//li", target)
    wrong = check_candidate(document.evaluator, document.root, "//li[1]", target)
    missing = check_candidate(document.evaluator, document.root, "//table", target)

    assert not ambiguous.accepted and ambiguous.match_count == 3
    assert ambiguous.message == "Expression is not unique in document."
    assert not wrong.accepted and wrong.message == "Expression resolves to a different element."
    assert not missing.accepted and missing.match_count == 0


def test_check_candidate_rejects_malformed_expression() -> None:
    document = parse_html(PAGE)
    target = document.find("//li[3]")
    assert target is not None

    check = check_candidate(document.evaluator, document.root, "//li[@data-testid=", target)

    assert not check.accepted
    assert check.message == "Expression could not be evaluated."
    assert not check_candidate(document.evaluator, document.root, "  ", target).accepted


def test_uniqueness_and_selector_validation() -> None:
    document = parse_html(PAGE)
    target = document.find("//li[2]")
    assert target is not None

    assert is_unique_selector(document.evaluator, document.root, "//ul")
    assert not is_unique_selector(document.evaluator, document.root, "//li")
    assert not is_unique_selector(document.evaluator, document.root, "//li[")
    assert validate_selector(document.evaluator, document.root, "//li[2]", target)
    assert not validate_selector(document.evaluator, document.root, "//li[1]", target)


def test_count_live_matches_prefixes_xpath_engine() -> None:
    page = _FakePage(count=2)

    assert count_live_matches(page, " //li ") == 2
    assert page.selectors == ["xpath=//li"]
    assert count_live_matches(page, "") == 0
    assert count_live_matches(_FakePage(fail=True), "//li") == 0


def test_validate_live_candidate_requires_unique_same_element() -> None:
    good = validate_live_candidate(_FakeElement({"count": 1, "same": True}), "//li[3]")
    ambiguous = validate_live_candidate(_FakeElement({"count": 3, "same": True}), "//li")
    other = validate_live_candidate(_FakeElement({"count": 1, "same": False}), "//li[1]")

    assert good.unique and good.same_element
    assert not ambiguous.unique and ambiguous.match_count == 3
    assert ambiguous.message == "Expression is not unique in page."
    assert not other.unique
    assert other.message == "Expression resolves to a different element in page."


def test_validate_live_candidate_handles_page_errors() -> None:
    element = _FakeElement(fail=True)

    result = validate_live_candidate(element, "//li[3]")

    assert not result.unique
    assert result.message == "Expression could not be evaluated in page."
    assert element.calls[0][1] == "//li[3]"
    assert validate_live_candidate(_FakeElement(), "").message == "Expression is empty."
