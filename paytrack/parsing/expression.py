"""
Quick-Entry Expression Parsing

Users type amounts as a running sum, e.g. "10+15+20". This module turns
that text into a Decimal.

GRAMMAR:
- Decimal number tokens separated by "+"
- Whitespace anywhere is ignored
- No subtraction, multiplication, parentheses or signs

IMPORTANT: parse_expression() never raises. Tokens that are not plain
decimal numbers are dropped and the rest are summed. Empty input is 0.

is_valid_charset() is a separate, weaker check used only to gate input
fields. Passing it does NOT mean parse_expression() returns anything
meaningful ("+++" passes and parses to 0).
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

import structlog


logger = structlog.get_logger(__name__)

# Digits with an optional fractional part, or a bare fraction (".5").
_NUMBER_TOKEN = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")
_ALLOWED_CHARS = re.compile(r"^[\d+.\s]*$")
_WHITESPACE = re.compile(r"\s+")

ZERO = Decimal("0")


def _to_decimal(token: str) -> Optional[Decimal]:
    """Convert one token, or None if it is not a finite plain decimal."""
    if not _NUMBER_TOKEN.match(token):
        return None
    try:
        value = Decimal(token)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def parse_expression(text: Optional[str]) -> Decimal:
    """
    Sum the "+"-separated decimal numbers in a quick-entry string.

    Examples:
        parse_expression("10+15")        -> Decimal("25")
        parse_expression("10.5 + 15.5")  -> Decimal("26.0")
        parse_expression("abc+5")        -> Decimal("5")
        parse_expression("")             -> Decimal("0")
    """
    if not text:
        return ZERO

    compact = _WHITESPACE.sub("", text)
    if not compact:
        return ZERO

    total = ZERO
    dropped = []
    for token in compact.split("+"):
        if not token:
            continue
        value = _to_decimal(token)
        if value is None:
            dropped.append(token)
            continue
        total += value

    if dropped:
        logger.debug("expression_tokens_dropped", dropped=dropped)

    return total


def is_valid_charset(text: Optional[str]) -> bool:
    """True iff every character is a digit, '.', '+' or whitespace."""
    if text is None:
        return True
    return bool(_ALLOWED_CHARS.match(text))
