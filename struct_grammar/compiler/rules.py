"""
Rule table and GBNF text helpers shared by the grammar compiler.

A RuleTable is created for a single compilation and passed down through the
recursion. It keeps rules in registration order in a plain list, with a set for
membership tests.
"""

import json
import re
from typing import List, Set, Tuple

_RULE_NAME_UNSAFE = re.compile(r"[^a-z0-9-]+")


class RuleTable:
    """
    Ordered collection of ``name ::= body`` rules.

    Attributes:
        rules: (name, body) pairs in registration order
    """

    def __init__(self):
        self.rules: List[Tuple[str, str]] = []
        self._names: Set[str] = set()

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self.rules)

    def add(self, name: str, body: str) -> str:
        """
        Register a rule and return its name.

        Raises:
            ValueError: If a rule with this name already exists
        """
        if name in self._names:
            raise ValueError(f"Rule '{name}' is already defined")
        self._names.add(name)
        self.rules.append((name, body))
        return name

    def names(self) -> List[str]:
        return [name for name, _ in self.rules]

    def render(self) -> str:
        return "\n".join(f"{name} ::= {body}" for name, body in self.rules)


def quote_literal(text: str) -> str:
    """Quote ``text`` as a GBNF string literal."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def quote_json_string(text: str) -> str:
    """GBNF literal matching ``text`` as a quoted JSON string, e.g. ``"\\"red\\""``."""
    return quote_literal(json.dumps(text, ensure_ascii=False))


def class_char(char: str) -> str:
    """Escape a single character for use inside a GBNF character class."""
    if char in "\\]^-":
        return "\\" + char
    if char == "\n":
        return "\\n"
    if char == "\t":
        return "\\t"
    return char


def rule_segment(name: str) -> str:
    """Turn a field name into a valid rule-name segment."""
    segment = _RULE_NAME_UNSAFE.sub("-", name.lower()).strip("-")
    return segment or "field"
