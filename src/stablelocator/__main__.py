from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from typing import Sequence

from .config import GeneratorOptions
from .dom import HtmlDocument
from .errors import LocatorError
from .locator_generator import LocatorGenerator, extract_text, locate
from .selector_rules import load_rules
from .tracing import logging_trace_hook

EXIT_OK = 0
EXIT_NO_MATCH = 1
EXIT_USAGE = 2


def _build_logger(verbose: bool) -> logging.Logger:
    logger = logging.getLogger("stablelocator")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if logger.handlers:
        return logger

    logger.propagate = False
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)
    return logger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stablelocator", description="Generate robust XPath locators for HTML elements.")
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="Generate a locator for one element of an HTML file.")
    generate.add_argument("file", help="HTML file to load.")
    generate.add_argument("--node", required=True, help="XPath that selects the target element.")
    generate.add_argument("--max-depth", type=int, default=None, help="Maximum ancestor depth.")
    generate.add_argument("--timeout-ms", type=int, default=None, help="Soft time budget in milliseconds.")
    generate.add_argument("--rules", default=None, help="JSON stability rule table.")
    generate.add_argument("--strict", action="store_true", help="Exit 1 when the locator is not verified.")
    generate.add_argument("--verbose", action="store_true", help="Print strategy details and debug logs.")

    locate_cmd = commands.add_parser("locate", help="Resolve a stored locator against an HTML file.")
    locate_cmd.add_argument("file", help="HTML file to load.")
    locate_cmd.add_argument("--xpath", required=True, help="Locator to resolve.")
    locate_cmd.add_argument("--text", action="store_true", help="Print the element's text instead of its tag.")
    locate_cmd.add_argument("--verbose", action="store_true", help="Print debug logs.")
    return parser


def _options(args: argparse.Namespace) -> GeneratorOptions:
    options = GeneratorOptions.from_env()
    overrides = {}
    if args.max_depth is not None:
        overrides["max_ancestor_depth"] = args.max_depth
    if args.timeout_ms is not None:
        overrides["timeout_ms"] = args.timeout_ms
    if args.rules:
        overrides["rules"] = load_rules(args.rules)
    return dataclasses.replace(options, **overrides) if overrides else options


def _run_generate(args: argparse.Namespace, document: HtmlDocument, logger: logging.Logger) -> int:
    target = document.find(args.node)
    if target is None:
        print(f"No element matches {args.node!r}.", file=sys.stderr)
        return EXIT_NO_MATCH

    trace = logging_trace_hook() if args.verbose else None
    generator = LocatorGenerator(document.evaluator, _options(args), trace=trace)
    result = generator.generate(target)
    print(result.expression)
    if args.verbose:
        print(f"verified={str(result.verified).lower()} strategy={result.strategy} elapsed_ms={result.elapsed_ms}")
    if not result.verified:
        logger.warning("Locator %r is not unique for the target element.", result.expression)
        if args.strict:
            return EXIT_NO_MATCH
    return EXIT_OK


def _run_locate(args: argparse.Namespace, document: HtmlDocument) -> int:
    node = locate(args.xpath, document.root, document.evaluator)
    if node is None:
        print(f"No element matches {args.xpath!r}.", file=sys.stderr)
        return EXIT_NO_MATCH
    if args.text:
        print(extract_text(args.xpath, document.root, document.evaluator))
    else:
        print(node.tag)
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logger = _build_logger(args.verbose)

    try:
        document = HtmlDocument.from_path(args.file)
        if args.command == "generate":
            return _run_generate(args, document, logger)
        return _run_locate(args, document)
    except OSError as exc:
        print(f"Cannot read {args.file}: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except LocatorError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
