"""Utility helpers for wabot."""

from wabot.utils.arith import ArithmeticSyntaxError, evaluate
from wabot.utils.helpers import format_uptime

__all__ = ["ArithmeticSyntaxError", "evaluate", "format_uptime"]
