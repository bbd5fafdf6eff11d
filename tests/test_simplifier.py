from stablelocator.simplifier import (
    join_path_segments,
    reduction_candidates,
    simplify_path,
    split_path_segments,
)
from stablelocator.dom import parse_html
from stablelocator.selector_rules import is_positional_segment
from stablelocator.validation import check_candidate


def _acceptor(accepted: set[str], seen: list[str] | None = None):
    def _accepts(expression: str) -> bool:
        if seen is not None:
            seen.append(expression)
        return expression in accepted

    return _accepts


def test_split_path_segments_respects_quotes_and_predicates() -> None:
    assert split_path_segments('//div[@title="a//b"]//span') == ['div[@title="a//b"]', "span"]
    assert split_path_segments("//nav//ul//li[2]") == ["nav", "ul", "li[2]"]
    assert split_path_segments('//dt[contains(text(), "Price")]/following-sibling::dd[1]') == [
        'dt[contains(text(), "Price")]/following-sibling::dd[1]'
    ]


def test_split_path_segments_rejects_unsplittable_expressions() -> None:
    assert split_path_segments("/html/body") is None
    assert split_path_segments('//div[@title="open') is None
    assert split_path_segments("//div////span") is None


def test_join_path_segments() -> None:
    assert join_path_segments(["main", "li[2]"]) == "//main//li[2]"


def test_reduction_candidates_start_with_dropping_plain_segments() -> None:
    names = [name for name, _parts in reduction_candidates(["div", "ul", "li[2]"])]

    assert names[0] == "drop_plain"
    assert ("truncate_front", ["ul", "li[2]"]) in list(reduction_candidates(["div", "ul", "li[2]"]))


def test_simplify_path_returns_first_accepted_reduction() -> None:
    accepts = _acceptor({"//div//li[2]", "//li[2]"})

    assert simplify_path("//div//ul//li[2]", accepts) == "//div//li[2]"


def test_simplify_path_truncates_front_when_drop_fails() -> None:
    accepts = _acceptor({"//div//span"})

    assert simplify_path("//section//div//span", accepts) == "//div//span"


def test_simplify_path_drops_plain_run_after_first_positional() -> None:
    parts = ["main", "div[2]", "section", "ul", "li"]

    assert ("drop_plain_run", ["main", "div[2]", "li"]) in list(reduction_candidates(parts))
    assert simplify_path("//main//div[2]//section//ul//li", _acceptor({"//main//div[2]//li"})) == "//main//div[2]//li"


def test_simplify_path_drops_later_positional_segment() -> None:
    accepts = _acceptor({"//main//div[1]//li", "//div[1]//ul[2]//li"})

    assert simplify_path("//main//div[1]//ul[2]//li", accepts) == "//main//div[1]//li"


def test_simplify_path_keeps_anchor_and_tail() -> None:
    accepts = _acceptor({'//nav[@id="main-nav"]//ul//li'})

    assert simplify_path('//body//nav[@id="main-nav"]//div//ul//li', accepts) == '//nav[@id="main-nav"]//ul//li'


def test_anchor_tail_keeps_first_positional_segment() -> None:
    parts = ['nav[@id="x"]', "div", "span[4]", "ul", "li"]

    assert ("anchor_tail", ['nav[@id="x"]', "span[4]", "ul", "li"]) in list(reduction_candidates(parts))
    skipped = ["div[2]", 'nav[@id="x"]', "a", "b", "c"]
    assert "anchor_tail" not in [name for name, _parts in reduction_candidates(skipped)]


def test_reductions_never_drop_first_positional_segment() -> None:
    samples = [
        ["main", "div[2]", "section", "ul", "li"],
        ["body", 'nav[@id="x"]', "div[3]", "ul", "li[2]"],
        ["div[2]", 'nav[@id="x"]', "a", "b", "c"],
        ['nav[@id="x"]', "div", "span[4]", "ul", "li"],
        ["main", "div[1]", "ul[2]", "li"],
    ]
    for parts in samples:
        first_positional = next(index for index, part in enumerate(parts) if is_positional_segment(part))
        for name, candidate in reduction_candidates(parts):
            assert parts[first_positional] in candidate, (name, candidate)


def test_simplify_path_never_lengthens_or_changes_short_paths() -> None:
    seen: list[str] = []
    accepts = _acceptor(set(), seen)

    assert simplify_path("//main//section//div[2]//span", accepts) == "//main//section//div[2]//span"
    assert seen
    assert all(len(split_path_segments(expression) or []) < 4 for expression in seen)
    assert len(seen) == len(set(seen))
    assert simplify_path("//main//span", _acceptor({"//span"})) == "//main//span"
    assert simplify_path("/html/body/div", _acceptor({"//div"})) == "/html/body/div"


def test_simplified_path_still_resolves_to_target() -> None:
    document = parse_html(
        """
        <html><body>
          <main><section><div><span>a</span></div><div><span>b</span></div></section></main>
          <aside><div><span>c</span></div></aside>
        </body></html>
        """
    )
    target = document.find("//main//div[2]/span")
    assert target is not None

    def accepts(expression: str) -> bool:
        return check_candidate(document.evaluator, document.root, expression, target).accepted

    simplified = simplify_path("//main//section//div[2]//span", accepts)

    assert simplified == "//main//div[2]//span"
    assert document.find_all(simplified) == [target]
