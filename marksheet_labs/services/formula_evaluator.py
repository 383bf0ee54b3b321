"""
Formula Evaluator
=================

Evaluates calculation-key formulas such as `(sum / count) * 100` against a
student's marks.

Formulas are parsed with `ast` and only numbers, the known mark variables,
parentheses, unary +/- and the binary operators + - * / % are accepted.
Nothing is ever passed to eval().
"""

import ast
import logging
import math
import operator
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

FORMULA_VARIABLES = ("sum", "totalMarks", "totalMaxMarks", "count", "average", "avg")

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
}

_UNARY_OPERATORS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


class FormulaError(ValueError):
    """Formula could not be parsed or evaluated."""


class FormulaResult(BaseModel):
    success: bool
    value: Optional[float] = None
    error: Optional[str] = None


def as_number(value: Any) -> float:
    """Numeric mark value; missing, non-numeric or non-finite marks count as 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def formula_variables(marks: Iterable[Any], max_marks: Iterable[Any]) -> Dict[str, float]:
    """
    Variables available to formulas.

    Args:
        marks: Marks obtained, one per test or subject; absent marks such
            as "AB" count as 0
        max_marks: Maximum marks, same order

    Returns:
        Mapping for sum, totalMarks, totalMaxMarks, count, average and avg
    """
    marks = [as_number(mark) for mark in marks]
    total = sum(marks)
    count = len(marks)
    average = total / count if count else 0.0
    return {
        "sum": total,
        "totalMarks": total,
        "totalMaxMarks": sum(as_number(value) for value in max_marks),
        "count": float(count),
        "average": average,
        "avg": average,
    }


def _evaluate(node: ast.AST, variables: Dict[str, float]) -> float:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body, variables)

    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise FormulaError(f"Unsupported literal: {node.value!r}")
        try:
            return float(node.value)
        except OverflowError:
            raise FormulaError("Number too large")

    if isinstance(node, ast.Name):
        if node.id not in FORMULA_VARIABLES or node.id not in variables:
            raise FormulaError(f"Unknown variable: {node.id}")
        return float(variables[node.id])

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_evaluate(node.operand, variables))

    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        left = _evaluate(node.left, variables)
        right = _evaluate(node.right, variables)
        try:
            return _BINARY_OPERATORS[type(node.op)](left, right)
        except ZeroDivisionError:
            raise FormulaError("Division by zero")

    raise FormulaError(f"Unsupported expression: {type(node).__name__}")


def evaluate_formula(expression: str, variables: Dict[str, float]) -> float:
    """
    Evaluate an arithmetic formula.

    Raises:
        FormulaError: On syntax errors, unknown names, disallowed
            constructs or division by zero
    """
    if not expression or not expression.strip():
        raise FormulaError("Formula is empty")
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise FormulaError(f"Invalid formula syntax: {e.msg}")
    return _evaluate(tree, variables)


def try_evaluate(expression: str, variables: Dict[str, float]) -> FormulaResult:
    """evaluate_formula() that reports failure instead of raising."""
    try:
        return FormulaResult(success=True, value=evaluate_formula(expression, variables))
    except FormulaError as e:
        logger.warning(f"[FORMULA] Failed to evaluate '{expression}': {e}")
        return FormulaResult(success=False, error=str(e))


def format_number(value: float) -> str:
    """Whole numbers without a decimal point, others to two places."""
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return f"{value:.2f}"
