# src/formfuzz/forms/domain.py
"""Domain expressions for the static form backend.

A domain is a list of terms in prefix (Polish) notation:

- leaves: ``(field, operator, value)`` triples
- operators: ``"&"`` and ``"|"`` (binary), ``"!"`` (unary)
- consecutive top-level terms are implicitly joined with ``"&"``

Domains may be given as data or as a source string such as
``"[('country_id', '=', parent.country_id)]"``. Strings are evaluated with
a restricted ``ast`` visitor: literals, lists, tuples, unary minus/not, and
names resolved against context bindings (attribute access reads mapping
keys, so ``parent.country_id`` looks up ``bindings["parent"]["country_id"]``).
This is NOT eval().
"""

from __future__ import annotations

import ast
import operator
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any

from formfuzz.contracts import DomainExpr

_LOGIC_OPERATORS = frozenset({"&", "|", "!"})


class DomainError(ValueError):
    """Raised when a domain cannot be parsed or evaluated."""


def _like(value: Any, pattern: Any) -> bool:
    return isinstance(value, str) and str(pattern) in value


def _ilike(value: Any, pattern: Any) -> bool:
    return isinstance(value, str) and str(pattern).lower() in value.lower()


def _in(value: Any, options: Any) -> bool:
    if isinstance(value, list | tuple):
        return any(item in options for item in value)
    return value in options


_LEAF_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    "==": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": _in,
    "not in": lambda value, options: not _in(value, options),
    "like": _like,
    "not like": lambda value, pattern: not _like(value, pattern),
    "ilike": _ilike,
    "not ilike": lambda value, pattern: not _ilike(value, pattern),
}

_UNARY_OPS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Not: operator.not_,
}


class _DomainEvaluator(ast.NodeVisitor):
    """AST visitor that turns a domain source string into data."""

    def __init__(self, bindings: Mapping[str, Any]) -> None:
        self._bindings = bindings

    def generic_visit(self, node: ast.AST) -> Any:
        raise DomainError(f"Forbidden construct in domain: {type(node).__name__}")

    def visit_Expression(self, node: ast.Expression) -> Any:
        return self.visit(node.body)

    def visit_Constant(self, node: ast.Constant) -> Any:
        return node.value

    def visit_Name(self, node: ast.Name) -> Any:
        if node.id not in self._bindings:
            raise DomainError(f"Unknown name in domain: {node.id}")
        return self._bindings[node.id]

    def visit_Attribute(self, node: ast.Attribute) -> Any:
        value = self.visit(node.value)
        if not isinstance(value, Mapping):
            raise DomainError(f"Cannot read '{node.attr}' on {type(value).__name__}")
        # Unset fields read as False, like an empty form value
        return value.get(node.attr, False)

    def visit_List(self, node: ast.List) -> Any:
        return [self.visit(elt) for elt in node.elts]

    def visit_Tuple(self, node: ast.Tuple) -> Any:
        return tuple(self.visit(elt) for elt in node.elts)

    def visit_UnaryOp(self, node: ast.UnaryOp) -> Any:
        op_func = _UNARY_OPS.get(type(node.op))
        if op_func is None:
            raise DomainError(f"Forbidden unary operator: {type(node.op).__name__}")
        return op_func(self.visit(node.operand))


def parse_domain(domain: DomainExpr, bindings: Mapping[str, Any] | None = None) -> list[Any]:
    """Normalize a domain to a list of terms, evaluating source strings.

    Raises:
        DomainError: If the domain is malformed or references unknown names
    """
    if isinstance(domain, str):
        if not domain.strip():
            return []
        try:
            tree = ast.parse(domain.strip(), mode="eval")
        except SyntaxError as e:
            raise DomainError(f"Invalid domain syntax: {domain!r}") from e
        domain = _DomainEvaluator(bindings or {}).visit(tree)
        if not isinstance(domain, list | tuple):
            raise DomainError(f"Domain must evaluate to a list, got {type(domain).__name__}")

    terms: list[Any] = []
    for term in domain:
        if isinstance(term, str):
            if term not in _LOGIC_OPERATORS:
                raise DomainError(f"Unknown domain operator: {term!r}")
            terms.append(term)
        elif isinstance(term, list | tuple) and len(term) == 3:
            left, op, right = term
            if op not in _LEAF_OPERATORS:
                raise DomainError(f"Unknown comparison operator: {op!r}")
            terms.append((left, op, right))
        else:
            raise DomainError(f"Malformed domain term: {term!r}")
    return terms


def matches(domain: DomainExpr, record: Mapping[str, Any], bindings: Mapping[str, Any] | None = None) -> bool:
    """Whether ``record`` satisfies ``domain``. An empty domain matches everything.

    Raises:
        DomainError: If the domain is malformed
    """
    terms = iter(parse_domain(domain, bindings))
    result = True
    for term in terms:
        result = _evaluate(term, terms, record) and result
    return result


def _evaluate(term: Any, rest: Iterator[Any], record: Mapping[str, Any]) -> bool:
    if term == "!":
        return not _evaluate(_next_term(rest), rest, record)
    if term in ("&", "|"):
        left = _evaluate(_next_term(rest), rest, record)
        right = _evaluate(_next_term(rest), rest, record)
        return (left and right) if term == "&" else (left or right)

    left, op, right = term
    # Non-string left operands are literals, e.g. the (1, '=', 1) true leaf
    value = record.get(left, False) if isinstance(left, str) else left
    try:
        return bool(_LEAF_OPERATORS[op](value, right))
    except TypeError as e:
        raise DomainError(f"Cannot evaluate {term!r} against {value!r}: {e}") from e


def _next_term(rest: Iterator[Any]) -> Any:
    try:
        return next(rest)
    except StopIteration as e:
        raise DomainError("Domain operator is missing an operand") from e


def filter_records(
    records: Sequence[Mapping[str, Any]],
    domain: DomainExpr,
    bindings: Mapping[str, Any] | None = None,
) -> list[Mapping[str, Any]]:
    """Records satisfying ``domain``, in their stored order."""
    terms = parse_domain(domain, bindings)
    return [record for record in records if matches(terms, record)]
