"""Calculator skill: safe arithmetic evaluation."""

from __future__ import annotations

import ast
import math
import operator
import re
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from ...base import BaseSkill
from ...operation import Operation, operation_from_model

if TYPE_CHECKING:
    from ....config import Settings

PERCENT_OF_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%\s*of\s*", re.IGNORECASE)
MAX_EXPONENT = 10_000

_BINARY_OPERATORS: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY_OPERATORS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}
_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "sqrt": math.sqrt,
    "abs": abs,
    "round": round,
    "floor": math.floor,
    "ceil": math.ceil,
    "log": math.log10,
    "ln": math.log,
    "exp": math.exp,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
}
_CONSTANTS: dict[str, float] = {"pi": math.pi, "e": math.e}


class CalculatorInput(BaseModel):
    expression: str = Field(
        ...,
        description='The mathematical expression to evaluate, e.g., "2 + 2", "sqrt(16)", "15% of 200"',
    )


def evaluate(expression: str) -> int | float:
    """Evaluate an arithmetic expression without executing arbitrary code."""

    normalized = PERCENT_OF_RE.sub(lambda match: f"({match.group(1)}/100)*", expression.strip())
    normalized = normalized.replace("^", "**")
    if not normalized:
        raise ValueError("empty expression")
    tree = ast.parse(normalized, mode="eval")
    return _eval_node(tree.body)


def _eval_node(node: ast.AST) -> Any:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
            raise ValueError("exponent too large")
        return _BINARY_OPERATORS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_eval_node(node.operand))
    if isinstance(node, ast.Name) and node.id in _CONSTANTS:
        return _CONSTANTS[node.id]
    if isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and node.func.id in _FUNCTIONS:
        if node.keywords:
            raise ValueError(f"keyword arguments are not supported in {node.func.id}()")
        args = [_eval_node(arg) for arg in node.args]
        return _FUNCTIONS[node.func.id](*args)
    raise ValueError(f"unsupported syntax: {ast.dump(node)[:60]}")


def format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def calculate(params: CalculatorInput) -> str:
    try:
        result = evaluate(params.expression)
    except (SyntaxError, ValueError, TypeError, ZeroDivisionError, OverflowError) as exc:
        return f"Error evaluating expression: {exc}"
    return f"Result: {format_number(result)}"


class CalculatorSkill(BaseSkill):
    def __init__(self) -> None:
        super().__init__(Path(__file__).parent)

    def is_available(self, settings: Settings) -> bool:
        return True

    def operations(self, settings: Settings) -> Sequence[Operation]:
        return [
            operation_from_model(
                CalculatorInput,
                calculate,
                name="calculator",
                description=(
                    "Perform mathematical calculations. Supports basic arithmetic, percentages, "
                    "square roots and trigonometry."
                ),
            )
        ]
