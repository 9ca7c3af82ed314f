"""Quick-entry expression parsing package."""

from paytrack.parsing.expression import is_valid_charset, parse_expression

__all__ = ["is_valid_charset", "parse_expression"]
