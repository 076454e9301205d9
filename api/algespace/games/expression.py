"""
Evaluation of the arithmetic answers typed into the exercises.
"""
import logging
import re
import tokenize
from enum import Enum
from fractions import Fraction
from typing import Optional

import sympy as sp
from sympy.parsing.sympy_parser import parse_expr, standard_transformations

from algespace.schemas.math import TOLERANCE

logger = logging.getLogger(__name__)

MAX_INPUT_LENGTH = 10
INPUT_PATTERN = re.compile(r"^[0-9+\-*/]*$")
# Python-only operators that a plain calculator does not know
UNSUPPORTED_OPERATORS = ("**", "//")


class InputResult(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    VALIDATION_ERROR = "validation-error"


def is_well_formed(text: str) -> bool:
    """Non-empty, at most MAX_INPUT_LENGTH characters of digits and + - * /."""
    return 0 < len(text) <= MAX_INPUT_LENGTH and INPUT_PATTERN.match(text) is not None


def _parse(text: str) -> Optional[sp.Expr]:
    if any(operator in text for operator in UNSUPPORTED_OPERATORS):
        return None
    try:
        return parse_expr(text, transformations=standard_transformations, evaluate=True)
    except (SyntaxError, TypeError, ValueError, tokenize.TokenError, sp.SympifyError, ZeroDivisionError) as e:
        logger.debug(f"Could not parse '{text}': {e}")
        return None


def evaluate(text: str) -> Optional[Fraction]:
    """
    Evaluate an arithmetic expression exactly.

    Returns:
        The value as a Fraction, or None if the text is not a valid expression
        or has no finite value (e.g., "3+" or "4/0")
    """
    expr = _parse(text)
    if expr is None or not expr.is_Rational:
        return None
    return Fraction(int(expr.p), int(expr.q))


def check_answer(text: str, expected: float) -> InputResult:
    """
    Compare a typed expression with the expected value.

    Syntax errors give VALIDATION_ERROR; a valid expression with another value
    gives INCORRECT, and so does one without a finite value such as "4/0".
    """
    text = text.strip()
    if not is_well_formed(text):
        return InputResult.VALIDATION_ERROR

    expr = _parse(text)
    if expr is None:
        return InputResult.VALIDATION_ERROR
    if not expr.is_Rational:
        return InputResult.INCORRECT
    value = Fraction(int(expr.p), int(expr.q))
    return InputResult.CORRECT if abs(float(value) - expected) <= TOLERANCE else InputResult.INCORRECT
