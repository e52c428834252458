"""
formula.py: allowlisted arithmetic for template answer formulas.

Formulas such as "num1 + num2" or "(a - b) * c" are parsed with ``ast`` and
walked node by node. Only numeric literals, names bound in the variable map,
unary +/- and the binary operators + - * / are accepted; anything else is
rejected so a catalog entry can never reach code execution.
"""
from __future__ import annotations

import ast
import logging
import math
import operator
from typing import Mapping, Union

logger = logging.getLogger(__name__)

Number = Union[int, float]

# Answers beyond this magnitude fail closed to 0
MAX_ABS_RESULT = 1e12

# Allowlisted binary operators
_SAFE_OPS: dict = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_SAFE_UNARY: dict = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


class FormulaError(ValueError):
    """Formula is malformed, uses a disallowed construct, or cannot be computed."""


def _eval_node(node: ast.AST, variables: Mapping[str, Number]) -> Number:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise FormulaError(f"unsupported literal {node.value!r}")
        return node.value
    if isinstance(node, ast.Name):
        if node.id not in variables:
            raise FormulaError(f"unknown variable '{node.id}'")
        value = variables[node.id]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise FormulaError(f"variable '{node.id}' is not numeric")
        return value
    if isinstance(node, ast.UnaryOp) and type(node.op) in _SAFE_UNARY:
        return _SAFE_UNARY[type(node.op)](_eval_node(node.operand, variables))
    if isinstance(node, ast.BinOp) and type(node.op) in _SAFE_OPS:
        left = _eval_node(node.left, variables)
        right = _eval_node(node.right, variables)
        if isinstance(node.op, ast.Div) and right == 0:
            raise FormulaError("division by zero")
        try:
            return _SAFE_OPS[type(node.op)](left, right)
        except OverflowError as exc:
            raise FormulaError(f"overflow: {exc}") from exc
    raise FormulaError(f"unsupported syntax: {type(node).__name__}")


def parse_formula(formula: str) -> ast.Expression:
    try:
        return ast.parse(formula.strip(), mode="eval")
    except SyntaxError as exc:
        raise FormulaError(f"cannot parse formula {formula!r}: {exc.msg}") from exc


def formula_names(formula: str) -> set[str]:
    """Variable names referenced by a formula."""
    tree = parse_formula(formula)
    return {n.id for n in ast.walk(tree) if isinstance(n, ast.Name)}


def check_formula(formula: str) -> None:
    """Raise FormulaError if the formula uses anything outside the allowlist."""
    tree = parse_formula(formula)
    for node in ast.walk(tree.body):
        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
                raise FormulaError(f"unsupported literal {node.value!r}")
            continue
        if isinstance(node, (ast.Name, ast.Load)):
            continue
        if isinstance(node, ast.UnaryOp) and type(node.op) in _SAFE_UNARY:
            continue
        if isinstance(node, ast.BinOp) and type(node.op) in _SAFE_OPS:
            continue
        if type(node) in _SAFE_OPS or type(node) in _SAFE_UNARY:
            continue
        raise FormulaError(f"unsupported syntax: {type(node).__name__}")


def evaluate_formula(formula: str, variables: Mapping[str, Number]) -> Number:
    """
    Evaluate ``formula`` with ``variables`` bound by name.

    Integral results come back as ``int`` (7.0 -> 7). Raises FormulaError,
    including for NaN, infinity and results beyond ``MAX_ABS_RESULT``.
    """
    result = _eval_node(parse_formula(formula).body, variables)
    if isinstance(result, float) and not math.isfinite(result):
        raise FormulaError(f"non-finite result {result!r}")
    if abs(result) > MAX_ABS_RESULT:
        raise FormulaError(f"result {result!r} out of range")
    if isinstance(result, float) and result.is_integer():
        return int(result)
    return result


def safe_evaluate(formula: str, variables: Mapping[str, Number]) -> Number:
    """Fail-closed wrapper: any evaluation failure yields 0."""
    try:
        return evaluate_formula(formula, variables)
    except FormulaError as exc:
        logger.warning("[formula] evaluation failed for %r: %s", formula, exc)
        return 0
