"""
Restricted arithmetic evaluator.

Grammar:
    expr   := term (("+" | "-") term)*
    term   := factor (("*" | "/") factor)*
    factor := ("+" | "-") factor | NUMBER | "(" expr ")"

Nothing but numbers and these operators is ever evaluated.
"""

import re


MAX_LENGTH = 256
MAX_DEPTH = 64

_TOKEN_RE = re.compile(r"\s*(?:(\d+\.\d*|\.\d+|\d+)|(.))")


class ArithmeticSyntaxError(ValueError):
    """The expression is not valid arithmetic."""


def tokenize(expression: str) -> list[str]:
    """Split an expression into number and operator tokens."""
    tokens = []
    for number, op in _TOKEN_RE.findall(expression):
        if number:
            tokens.append(number)
        elif op.strip():
            if op not in "+-*/()":
                raise ArithmeticSyntaxError(f"Unexpected character: {op!r}")
            tokens.append(op)
    return tokens


class _Parser:
    def __init__(self, tokens: list[str]):
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    def peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self) -> str:
        token = self.peek()
        if token is None:
            raise ArithmeticSyntaxError("Unexpected end of expression")
        self.pos += 1
        return token

    def parse(self) -> float:
        value = self.expr()
        if self.peek() is not None:
            raise ArithmeticSyntaxError(f"Unexpected token: {self.peek()!r}")
        return value

    def expr(self) -> float:
        value = self.term()
        while self.peek() in ("+", "-"):
            if self.take() == "+":
                value += self.term()
            else:
                value -= self.term()
        return value

    def term(self) -> float:
        value = self.factor()
        while self.peek() in ("*", "/"):
            if self.take() == "*":
                value *= self.factor()
            else:
                value /= self.factor()
        return value

    def factor(self) -> float:
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise ArithmeticSyntaxError("Expression nested too deeply")
        try:
            token = self.take()
            if token == "+":
                return self.factor()
            if token == "-":
                return -self.factor()
            if token == "(":
                value = self.expr()
                if self.take() != ")":
                    raise ArithmeticSyntaxError("Missing closing parenthesis")
                return value
            if token in "*/)":
                raise ArithmeticSyntaxError(f"Unexpected token: {token!r}")
            return float(token)
        finally:
            self.depth -= 1


def evaluate(expression: str) -> int | float:
    """
    Evaluate an arithmetic expression.

    Examples:
        evaluate("2 + 2 * 3") -> 8
        evaluate("(1 + 2) / 4") -> 0.75

    Raises:
        ArithmeticSyntaxError: Invalid characters or syntax.
        ZeroDivisionError: Division by zero.
    """
    if len(expression) > MAX_LENGTH:
        raise ArithmeticSyntaxError("Expression too long")

    tokens = tokenize(expression)
    if not tokens:
        raise ArithmeticSyntaxError("Empty expression")

    result = _Parser(tokens).parse()
    if result.is_integer():
        return int(result)
    return result
