"""
Settings for the grammar and sample compilers.

Both compilers are configured with small immutable dataclasses. Values are
checked once in ``__post_init__`` so that the compilers themselves can assume a
consistent configuration.

Usage:
    ```python
    from struct_grammar.settings import GrammarSettings, SampleSettings

    grammar_settings = GrammarSettings(default_max_length=128, include_thinking=True)
    sample_settings = SampleSettings(pretty_print=False)
    ```
"""

from dataclasses import dataclass

DEFAULT_OPENING_DELIMITER = "⟨"
DEFAULT_CLOSING_DELIMITER = "⟩"


def _check_delimiters(opening: str, closing: str) -> None:
    if len(opening) != 1 or len(closing) != 1:
        raise ValueError(
            f"Delimiters must be single characters, got {opening!r} and {closing!r}"
        )
    if opening == closing:
        raise ValueError(f"Opening and closing delimiters must differ, got {opening!r}")


def _check_range(label: str, minimum: int, maximum: int) -> None:
    if minimum < 0 or maximum < 0:
        raise ValueError(f"{label} bounds must be non-negative, got {minimum}..{maximum}")
    if minimum > maximum:
        raise ValueError(f"{label} minimum ({minimum}) exceeds maximum ({maximum})")


@dataclass(frozen=True)
class GrammarSettings:
    """
    Configuration for :class:`~struct_grammar.compiler.gbnf.GrammarCompiler`.

    Attributes:
        default_min_length: Minimum string length when a string has no bounds
        default_max_length: Maximum string length when a string has no bounds
        default_min_items: Minimum array length when an array has no bounds
        default_max_items: Maximum array length when an array has no bounds
        opening_delimiter: Placeholder delimiter excluded from the ``char`` rule
        closing_delimiter: Placeholder delimiter excluded from the ``char`` rule
        include_thinking: Allow a free-text thinking block before the JSON. The
            block is only reachable from ``thinking-root`` (see ``entry_rule``);
            ``root`` stays the plain JSON value, so consumers that always start
            at ``root``, such as ``LlamaGrammar.from_string``, ignore it
        max_thinking_length: Upper bound on thinking-block units
        thinking_start: Marker opening the thinking block
        thinking_end: Marker closing the thinking block
        strict_formats: Raise on unrecognized string formats instead of
            falling back to the default string rule
        clamp_array_bounds: Clamp ``min_items`` down to ``max_items`` when they
            conflict; raise when False
    """

    default_min_length: int = 1
    default_max_length: int = 512
    default_min_items: int = 0
    default_max_items: int = 20
    opening_delimiter: str = DEFAULT_OPENING_DELIMITER
    closing_delimiter: str = DEFAULT_CLOSING_DELIMITER
    include_thinking: bool = False
    max_thinking_length: int = 1024
    thinking_start: str = "<think>"
    thinking_end: str = "</think>"
    strict_formats: bool = False
    clamp_array_bounds: bool = True

    def __post_init__(self):
        _check_delimiters(self.opening_delimiter, self.closing_delimiter)
        _check_range("String length", self.default_min_length, self.default_max_length)
        _check_range("Array item", self.default_min_items, self.default_max_items)

        if self.max_thinking_length < 0:
            raise ValueError(
                f"max_thinking_length must be non-negative, got {self.max_thinking_length}"
            )
        if not self.thinking_start:
            raise ValueError("thinking_start must not be empty")
        # think-safe-lt only understands end markers with a single leading "<"
        if (
            len(self.thinking_end) < 2
            or not self.thinking_end.startswith("<")
            or "<" in self.thinking_end[1:]
        ):
            raise ValueError(
                f"thinking_end must start with '<', contain no other '<' and have at least "
                f"two characters, got {self.thinking_end!r}"
            )

    @property
    def entry_rule(self) -> str:
        """Name of the rule a grammar consumer should start from."""
        return "thinking-root" if self.include_thinking else "root"


@dataclass(frozen=True)
class SampleSettings:
    """
    Configuration for :class:`~struct_grammar.compiler.sample.SampleCompiler`.

    Attributes:
        opening_delimiter: Character opening a placeholder span
        closing_delimiter: Character closing a placeholder span
        pretty_print: Emit newlines, indentation and comments
        indent: Indentation unit used when pretty printing
    """

    opening_delimiter: str = DEFAULT_OPENING_DELIMITER
    closing_delimiter: str = DEFAULT_CLOSING_DELIMITER
    pretty_print: bool = True
    indent: str = "    "

    def __post_init__(self):
        _check_delimiters(self.opening_delimiter, self.closing_delimiter)
        if self.indent.strip():
            raise ValueError(f"indent must be whitespace, got {self.indent!r}")
