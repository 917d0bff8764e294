"""
Format compiler - translate string format patterns into GBNF expressions.

A StringNode's ``format`` takes one of three forms, checked in this order:

    1. Raw GBNF: ``gbnf:<fragment>``. The fragment is emitted verbatim. It is
       NOT validated; a malformed fragment produces a grammar the downstream
       consumer will reject. Callers own what they inject here.
    2. Named format: one of ``alpha``, ``alpha-space``, ``alphanumeric``,
       ``lowercase``, ``uppercase``, ``numeric``, ``hex``.
    3. Placeholder pattern: any string containing one of the placeholder
       characters below. Every other character is matched literally.

           #, 9  → digit [0-9]
           A     → uppercase letter [A-Z]
           a     → lowercase letter [a-z]
           *     → letter or digit [a-zA-Z0-9]
           ?     → any string character (the ``char`` rule)

Anything else is unrecognized and falls back to the default bounded string
expression, with a warning. Set ``GrammarSettings(strict_formats=True)`` to
raise UnknownFormatError instead.

Example:
    ```python
    from struct_grammar.compiler.formats import FormatCompiler

    FormatCompiler().compile("AA-99")
    # '"\\"" [A-Z] [A-Z] "-" [0-9] [0-9] "\\"" space'
    ```

Every expression produced here ends with ``space`` except raw fragments, which
are expected to include it themselves.
"""

import logging
from typing import Optional

from struct_grammar.compiler.rules import quote_literal
from struct_grammar.schema.types import SchemaError
from struct_grammar.settings import GrammarSettings

logger = logging.getLogger(__name__)

RAW_PREFIX = "gbnf:"

# opening/closing quote of a JSON string
QUOTE = '"\\""'

NAMED_FORMATS = {
    "alpha": "[a-zA-Z]",
    "alpha-space": "[a-zA-Z ]",
    "alphanumeric": "[a-zA-Z0-9]",
    "lowercase": "[a-z]",
    "uppercase": "[A-Z]",
    "numeric": "[0-9]",
    "hex": "[0-9a-fA-F]",
}

NAMED_FORMAT_DESCRIPTIONS = {
    "alpha": "letters only",
    "alpha-space": "letters and spaces only",
    "alphanumeric": "letters and digits only",
    "lowercase": "lowercase letters only",
    "uppercase": "uppercase letters only",
    "numeric": "digits only",
    "hex": "hexadecimal digits only",
}

PLACEHOLDERS = {
    "#": "[0-9]",
    "9": "[0-9]",
    "A": "[A-Z]",
    "a": "[a-z]",
    "*": "[a-zA-Z0-9]",
    "?": "char",
}


class UnknownFormatError(SchemaError):
    """Raised in strict mode when a format string is not recognized."""


def default_string_expression(min_length: int, max_length: int) -> str:
    """Expression for a quoted string of ``char`` with bounded length."""
    return f"{QUOTE} char{{{min_length},{max_length}}} {QUOTE} space"


def is_raw_format(string_format: str) -> bool:
    return string_format.startswith(RAW_PREFIX)


def is_placeholder_pattern(string_format: str) -> bool:
    return any(c in PLACEHOLDERS for c in string_format)


def compile_pattern(pattern: str) -> str:
    """
    Compile a placeholder pattern such as ``(###) ###-####``.

    Returns:
        str: Quote-wrapped sequence of character classes and literals
    """
    parts = [QUOTE]
    for c in pattern:
        parts.append(PLACEHOLDERS.get(c) or quote_literal(c))
    parts.extend([QUOTE, "space"])
    return " ".join(parts)


class FormatCompiler:
    """
    Compiles ``StringNode.format`` values.

    Attributes:
        settings: Grammar settings supplying fallback lengths and strictness
    """

    def __init__(self, settings: Optional[GrammarSettings] = None):
        self.settings = settings or GrammarSettings()

    def compile(self, string_format: str) -> str:
        """
        Compile a format string to a GBNF expression.

        Args:
            string_format: Raw fragment, named format or placeholder pattern

        Returns:
            str: GBNF expression for the string value

        Raises:
            UnknownFormatError: If the format is unrecognized and
                ``strict_formats`` is enabled
        """
        if is_raw_format(string_format):
            return string_format[len(RAW_PREFIX):]

        if string_format in NAMED_FORMATS:
            return f"{QUOTE} {NAMED_FORMATS[string_format]}+ {QUOTE} space"

        if is_placeholder_pattern(string_format):
            return compile_pattern(string_format)

        if self.settings.strict_formats:
            raise UnknownFormatError(f"Unrecognized string format: {string_format!r}")

        logger.warning(
            f"Unrecognized string format {string_format!r}, "
            f"falling back to the default string rule"
        )
        return default_string_expression(
            self.settings.default_min_length, self.settings.default_max_length
        )


def describe_format(string_format: str) -> str:
    """
    Human-readable description of a format, used in sample documents.

    Example:
        ```python
        describe_format("numeric")         # 'digits only'
        describe_format("(###) ###-####")  # 'value in format (###) ###-####'
        ```
    """
    if is_raw_format(string_format):
        return "string value"
    if string_format in NAMED_FORMAT_DESCRIPTIONS:
        return NAMED_FORMAT_DESCRIPTIONS[string_format]
    if is_placeholder_pattern(string_format):
        return f"value in format {string_format}"
    return "string value"
