"""
Expression engine for {{ }} templates and branch predicates.

Templates are plain dotted-path lookups into the execution context.
Predicate literals are parsed with simpleeval (no eval() or exec()).
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from simpleeval import InvalidExpression, SimpleEval

from ..core.exceptions import ExpressionEvaluationError
from .types import ExecutionContext

logger = logging.getLogger(__name__)

CONTEXT_ROOTS = ("globals", "input", "output", "variables")

# Lookup order for paths that do not start with a context root
FALLBACK_ROOTS = ("variables", "output", "input", "globals")

TEMPLATE_PATTERN = re.compile(r"\{\{(.+?)\}\}")
INDEX_PATTERN = re.compile(r"\[(\d+)\]")

SYMBOL_OPERATORS = ("===", "!==", "==", "!=", ">=", "<=", ">", "<")
OPERATOR_ALIASES = {"===": "==", "!==": "!="}
COMPARISON_OPERATORS = ("==", "!=", ">", "<", ">=", "<=", "contains")

_MISSING = object()


class ExpressionEngine:
    """
    Safe template and predicate evaluator.

    Templating never raises: unresolved tokens render as "". Predicates raise
    ExpressionEvaluationError when they cannot be parsed.
    """

    def __init__(self) -> None:
        self._setup_evaluator()

    def _setup_evaluator(self) -> None:
        """Set up the literal parser used for predicate operands."""
        self.literal_evaluator = SimpleEval()
        self.literal_evaluator.functions = {}
        self.literal_evaluator.names = {
            "true": True,
            "false": False,
            "null": None,
            "undefined": None,
            "True": True,
            "False": False,
            "None": None,
        }

    # --- Templating ---

    def resolve(self, value: Any, context: ExecutionContext) -> Any:
        """
        Resolve all {{ }} tokens in a value.

        Handles strings, dicts and lists recursively. A string that is exactly
        one token resolves to the typed value instead of its string form; an
        unresolvable token always renders as "".
        """
        if isinstance(value, str):
            return self._resolve_string(value, context)

        if isinstance(value, list):
            return [self.resolve(item, context) for item in value]

        if isinstance(value, dict):
            return {key: self.resolve(val, context) for key, val in value.items()}

        return value

    def _resolve_string(self, string: str, context: ExecutionContext) -> Any:
        trimmed = string.strip()

        if trimmed.startswith("{{") and trimmed.endswith("}}"):
            inner = trimmed[2:-2]
            if "{{" not in inner and "}}" not in inner:
                value = self._lookup(inner, context)
                return "" if value is _MISSING else value

        return self.render(string, context)

    def render(self, template: str, context: ExecutionContext) -> str:
        """Replace every {{ path }} token with its string form."""
        if "{{" not in template:
            return template

        def replacer(match: re.Match[str]) -> str:
            return self._stringify(self.lookup(match.group(1), context))

        return TEMPLATE_PATTERN.sub(replacer, template)

    def lookup(self, path: str, context: ExecutionContext) -> Any:
        """Value at a dotted path, or None when any segment is missing."""
        value = self._lookup(path, context)
        return None if value is _MISSING else value

    def _lookup(self, path: str, context: ExecutionContext) -> Any:
        parts = self._split_path(path)
        if not parts:
            return _MISSING

        roots = context.to_dict()
        if parts[0] in CONTEXT_ROOTS:
            return self._walk(roots[parts[0]], parts[1:])

        for root in FALLBACK_ROOTS:
            value = self._walk(roots[root], parts)
            if value is not _MISSING:
                return value
        return _MISSING

    def _split_path(self, path: str) -> list[str]:
        normalized = INDEX_PATTERN.sub(r".\1", path.strip())
        return [p for p in normalized.split(".") if p]

    def _walk(self, current: Any, parts: list[str]) -> Any:
        for part in parts:
            if isinstance(current, dict):
                if part not in current:
                    return _MISSING
                current = current[part]
            elif isinstance(current, list) and part.lstrip("-").isdigit():
                index = int(part)
                if not -len(current) <= index < len(current):
                    return _MISSING
                current = current[index]
            else:
                return _MISSING
        return current

    def _is_context_path(self, text: str) -> bool:
        parts = self._split_path(text)
        return (
            len(parts) > 0
            and parts[0] in CONTEXT_ROOTS
            and all(re.fullmatch(r"[\w\-]+", p) for p in parts)
        )

    # --- Predicates ---

    def evaluate_predicate(self, expression: str, context: ExecutionContext) -> bool:
        """
        Evaluate a boolean rule such as ``variables.x == '1'``.

        Supports ==, !=, >, <, >=, <=, contains (plus === / !== aliases),
        joined with && and ||. A lone operand is tested for truthiness.
        """
        if not isinstance(expression, str) or not expression.strip():
            raise ExpressionEvaluationError("Empty expression", expression=expression)

        for disjunct in self._split_top_level(expression, "||"):
            if all(
                self._evaluate_comparison(conjunct, context, expression)
                for conjunct in self._split_top_level(disjunct, "&&")
            ):
                return True
        return False

    def _evaluate_comparison(self, text: str, context: ExecutionContext, source: str) -> bool:
        text = text.strip()
        if not text:
            raise ExpressionEvaluationError(f"Malformed expression: {source}", expression=source)

        found = self._find_operator(text)
        if found is None:
            return self._truthy(self.resolve_operand(text, context))

        left_raw, operator, right_raw = found
        if not left_raw.strip() or not right_raw.strip():
            raise ExpressionEvaluationError(
                f"Missing operand for '{operator}' in: {source}", expression=source
            )

        left = self.resolve_operand(left_raw, context)
        right = self.resolve_operand(right_raw, context)
        return self.compare(left, operator, right)

    def resolve_operand(self, raw: Any, context: ExecutionContext) -> Any:
        """
        Resolve one side of a comparison.

        Templates are interpolated, rooted dotted paths are looked up, and
        everything else is parsed as a literal; unparseable text stays a string.
        """
        if not isinstance(raw, str):
            return raw

        text = raw.strip()
        if "{{" in text:
            resolved = self._resolve_string(text, context)
            if not isinstance(resolved, str) or text.startswith("{{") and text.endswith("}}"):
                return resolved
            text = resolved.strip()

        if self._is_context_path(text):
            return self.lookup(text, context)

        return self._parse_literal(text)

    def _parse_literal(self, text: str) -> Any:
        if text == "":
            return ""
        try:
            return self.literal_evaluator.eval(text)
        except (InvalidExpression, SyntaxError, TypeError, ValueError, ArithmeticError):
            return text

    def compare(self, left: Any, operator: str, right: Any) -> bool:
        """Numeric comparison when both sides are numbers, else string comparison."""
        operator = OPERATOR_ALIASES.get(operator, operator)
        if operator not in COMPARISON_OPERATORS:
            raise ExpressionEvaluationError(f"Unsupported operator: {operator}")

        if operator == "contains":
            if isinstance(left, list):
                return any(self._stringify(item) == self._stringify(right) for item in left)
            return self._stringify(right) in self._stringify(left)

        left_number = self._to_number(left)
        right_number = self._to_number(right)
        if left_number is not None and right_number is not None:
            a: Any = left_number
            b: Any = right_number
        else:
            a = self._stringify(left)
            b = self._stringify(right)

        if operator == "==":
            return a == b
        if operator == "!=":
            return a != b
        if operator == ">":
            return a > b
        if operator == "<":
            return a < b
        if operator == ">=":
            return a >= b
        return a <= b

    def _find_operator(self, text: str) -> tuple[str, str, str] | None:
        """Locate the first top-level comparison operator."""
        quote: str | None = None
        depth = 0
        i = 0
        while i < len(text):
            char = text[i]
            if quote:
                if char == "\\":
                    i += 2
                    continue
                if char == quote:
                    quote = None
            elif char in ("'", '"'):
                quote = char
            elif text.startswith("{{", i):
                depth += 1
                i += 2
                continue
            elif text.startswith("}}", i) and depth:
                depth -= 1
                i += 2
                continue
            elif depth == 0:
                for operator in SYMBOL_OPERATORS:
                    if text.startswith(operator, i):
                        return text[:i], operator, text[i + len(operator):]
                match = re.match(r"\s+contains\s+", text[i:], re.IGNORECASE)
                if match:
                    return text[:i], "contains", text[i + match.end():]
            i += 1

        if quote:
            raise ExpressionEvaluationError(f"Unterminated string in: {text}", expression=text)
        return None

    def _split_top_level(self, text: str, separator: str) -> list[str]:
        """Split on a separator that is outside quotes and {{ }} tokens."""
        parts: list[str] = []
        quote: str | None = None
        depth = 0
        start = 0
        i = 0
        while i < len(text):
            char = text[i]
            if quote:
                if char == "\\":
                    i += 2
                    continue
                if char == quote:
                    quote = None
            elif char in ("'", '"'):
                quote = char
            elif text.startswith("{{", i):
                depth += 1
                i += 2
                continue
            elif text.startswith("}}", i) and depth:
                depth -= 1
                i += 2
                continue
            elif depth == 0 and text.startswith(separator, i):
                parts.append(text[start:i])
                i += len(separator)
                start = i
                continue
            i += 1

        if quote:
            raise ExpressionEvaluationError(f"Unterminated string in: {text}", expression=text)
        parts.append(text[start:])
        return parts

    # --- Value helpers ---

    def _to_number(self, value: Any) -> float | None:
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str) and value.strip():
            try:
                number = float(value.strip())
            except ValueError:
                return None
            return number if math.isfinite(number) else None
        return None

    def _truthy(self, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() not in ("", "false", "0", "null", "undefined")
        return bool(value)

    def _stringify(self, value: Any) -> str:
        """Convert value to string for interpolation."""
        if value is None or value is _MISSING:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value)


# Singleton instance
expression_engine = ExpressionEngine()
