from .config import GeneratorOptions
from .dom import HtmlDocument, LxmlNode, LxmlQueryEvaluator, Node, QueryEvaluator, parse_html
from .errors import EvaluationError, InvalidInputError, LocatorError, RulesError
from .locator_generator import LocatorGenerator, extract_text, generate_locator, locate
from .models import LocatorResult
from .selector_rules import DEFAULT_RULES, StabilityRules, load_rules
from .tracing import TraceHook, collecting_trace_hook, logging_trace_hook

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_RULES",
    "EvaluationError",
    "GeneratorOptions",
    "HtmlDocument",
    "InvalidInputError",
    "LocatorError",
    "LocatorGenerator",
    "LocatorResult",
    "LxmlNode",
    "LxmlQueryEvaluator",
    "Node",
    "QueryEvaluator",
    "RulesError",
    "StabilityRules",
    "TraceHook",
    "collecting_trace_hook",
    "extract_text",
    "generate_locator",
    "load_rules",
    "locate",
    "logging_trace_hook",
    "parse_html",
]
