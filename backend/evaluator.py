"""
PediaDose: Equation Evaluator
=============================
Evaluates the dosing formulas stored in the medication table.

Formulas are plain arithmetic over the symbols W (weight, kg) and D
(secondary dose). They are parsed by a small recursive-descent parser:
numeric literals, the two symbols, + - * /, unary sign and parentheses.
Nothing else is accepted and nothing is ever executed as code.

    expression := term (('+' | '-') term)*
    term       := unary (('*' | '/') unary)*
    unary      := ('+' | '-') unary | primary
    primary    := NUMBER | SYMBOL | '(' expression ')'
"""

import math
import re
from typing import Dict, List, Optional, Tuple

from constants import EQUATION_SYMBOLS
from models import EvaluationError

SYMBOLS = (EQUATION_SYMBOLS.WEIGHT, EQUATION_SYMBOLS.DOSE)

# Deepest parenthesis nesting accepted
MAX_NESTING = 32

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<number>\d+(?:\.\d*)?|\.\d+)|(?P<symbol>[A-Za-z_]\w*)|(?P<op>[-+*/()]))"
)

Token = Tuple[str, str]


def _tokenize(equation: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    text = equation.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise EvaluationError(f"Unexpected character {text[pos:].strip()[0]!r} in '{equation}'")
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    if not tokens:
        raise EvaluationError("Empty equation")
    return tokens


class _Parser:
    """Single-use parser; evaluates while it descends."""

    def __init__(self, tokens: List[Token], bindings: Dict[str, float], source: str):
        self.tokens = tokens
        self.bindings = bindings
        self.source = source
        self.index = 0
        self.depth = 0

    def _peek(self) -> Optional[Token]:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise EvaluationError(f"Unexpected end of equation '{self.source}'")
        self.index += 1
        return token

    def parse(self) -> float:
        value = self._expression()
        leftover = self._peek()
        if leftover is not None:
            raise EvaluationError(f"Unexpected token {leftover[1]!r} in '{self.source}'")
        return value

    def _expression(self) -> float:
        value = self._term()
        while self._peek() in (("op", "+"), ("op", "-")):
            _, op = self._advance()
            rhs = self._term()
            value = value + rhs if op == "+" else value - rhs
        return value

    def _term(self) -> float:
        value = self._unary()
        while self._peek() in (("op", "*"), ("op", "/")):
            _, op = self._advance()
            rhs = self._unary()
            if op == "*":
                value = value * rhs
            else:
                if rhs == 0:
                    raise EvaluationError(f"Division by zero in '{self.source}'")
                value = value / rhs
        return value

    def _unary(self) -> float:
        negative = False
        while self._peek() in (("op", "+"), ("op", "-")):
            _, op = self._advance()
            if op == "-":
                negative = not negative
        operand = self._primary()
        return -operand if negative else operand

    def _primary(self) -> float:
        kind, text = self._advance()
        if kind == "number":
            return float(text)
        if kind == "symbol":
            if text not in SYMBOLS:
                raise EvaluationError(f"Unknown symbol '{text}' in '{self.source}'")
            if text not in self.bindings:
                raise EvaluationError(f"Unresolved symbol '{text}' in '{self.source}'")
            return self.bindings[text]
        if text == "(":
            self.depth += 1
            if self.depth > MAX_NESTING:
                raise EvaluationError(f"Parentheses nested deeper than {MAX_NESTING} in '{self.source}'")
            value = self._expression()
            self.depth -= 1
            closing = self._advance()
            if closing != ("op", ")"):
                raise EvaluationError(f"Expected ')' in '{self.source}'")
            return value
        raise EvaluationError(f"Unexpected token {text!r} in '{self.source}'")


def _check_binding(symbol: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise EvaluationError(f"{symbol} must be numeric, got {type(value).__name__}")
    if not math.isfinite(value) or value <= 0:
        raise EvaluationError(f"{symbol} must be a positive finite number, got {value}")
    return float(value)


def _bindings(weight, dose, uses_dose: bool = True) -> Dict[str, float]:
    bindings = {EQUATION_SYMBOLS.WEIGHT: _check_binding(EQUATION_SYMBOLS.WEIGHT, weight)}
    if dose is not None and uses_dose:
        bindings[EQUATION_SYMBOLS.DOSE] = _check_binding(EQUATION_SYMBOLS.DOSE, dose)
    return bindings


def format_literal(value: float) -> str:
    return f"{float(value):g}"


def substitute(equation: str, bindings: Dict[str, float]) -> str:
    """
    Returns the equation with every bound symbol replaced by its literal value.
    Used for display ("equation used"); evaluation binds symbols directly.
    """
    def replace(match: re.Match) -> str:
        name = match.group(0)
        return format_literal(bindings[name]) if name in bindings else name

    return re.sub(r"[A-Za-z_]\w*", replace, equation)


def evaluate_equation(equation: str, weight: float, dose: Optional[float] = None) -> float:
    """
    Evaluates a dosing formula for the given weight (and dose, when the formula uses D).

    Raises:
        EvaluationError: malformed formula, unresolved symbol, invalid binding,
            division by zero or a non-finite result.
    """
    if not isinstance(equation, str):
        raise EvaluationError(f"Equation must be a string, got {type(equation).__name__}")
    tokens = _tokenize(equation)
    # D is only checked when the formula reads it
    uses_dose = ("symbol", EQUATION_SYMBOLS.DOSE) in tokens
    bindings = _bindings(weight, dose, uses_dose)
    value = _Parser(tokens, bindings, equation).parse()
    if not math.isfinite(value):
        raise EvaluationError(f"Non-finite result for '{equation}'")
    return value


def validate_equation(equation: str, weight: float, dose: Optional[float] = None) -> Tuple[bool, object]:
    """Non-raising variant: (True, value) or (False, error message)."""
    try:
        return True, evaluate_equation(equation, weight, dose)
    except EvaluationError as e:
        return False, str(e)
