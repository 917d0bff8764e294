"""
Grammar fragments for an optional free-text "thinking" block.

Reasoning models often emit ``<think> ... </think>`` before answering. When
thinking is enabled the grammar admits that block ahead of the JSON root:

    thinking-root ::= root | "<think>" think-content "</think>" space root

The difficult part is ``think-content``: it must accept ``<`` as ordinary text
(code, comparisons, markup) while never accepting the end marker itself,
otherwise the block could never be closed unambiguously. ``think-safe-lt``
does this by following the end marker one character at a time. For
``</think>`` it reads:

    "<" ([^/<] | "/" ([^t<] | "t" ([^h<] | ... "k" ([^><])...)))

At every position the text either continues with the next marker character
or leaves the marker with any other character except ``<`` (a fresh ``<`` has
to go through ``think-safe-lt`` again). The final marker character is never
offered, so the complete marker cannot appear inside the content. This only
holds because the marker has no other ``<``: a second one would let a
restarted marker hide inside an abandoned one, so such markers are refused.
"""

from typing import List, Tuple

from struct_grammar.compiler.rules import class_char, quote_literal

SAFE_LT_RULE = "think-safe-lt"
CHAR_RULE = "think-char"
CONTENT_RULE = "think-content"
ENTRY_RULE = "thinking-root"


def safe_lt_expression(end_marker: str) -> str:
    """
    Build the ``think-safe-lt`` body for ``end_marker``.

    Args:
        end_marker: Closing marker; ``<`` must be its first and only ``<``
    """
    if len(end_marker) < 2 or not end_marker.startswith("<") or "<" in end_marker[1:]:
        raise ValueError(f"End marker must start with its only '<': {end_marker!r}")

    tail = end_marker[1:]
    expression = _leave(tail[-1])
    for char in reversed(tail[:-1]):
        expression = f"({_leave(char)} | {quote_literal(char)} {expression})"
    return f"{quote_literal('<')} {expression}"


def _leave(char: str) -> str:
    return f"[^{class_char(char)}<]"


def thinking_rules(end_marker: str, max_length: int) -> List[Tuple[str, str]]:
    """Rules to seed into the rule table, in order."""
    return [
        (SAFE_LT_RULE, safe_lt_expression(end_marker)),
        (CHAR_RULE, f"[^<] | {SAFE_LT_RULE}"),
        (CONTENT_RULE, f"{CHAR_RULE}{{0,{max_length}}}"),
    ]


def entry_expression(start_marker: str, end_marker: str) -> str:
    """Body of the ``thinking-root`` entry rule."""
    return (
        f"root | {quote_literal(start_marker)} {CONTENT_RULE} "
        f"{quote_literal(end_marker)} space root"
    )
