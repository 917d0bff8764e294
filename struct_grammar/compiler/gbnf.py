"""
GBNF grammar compiler - convert schema trees into GBNF grammars.

The grammar restricts a constrained decoder (llama.cpp-style GBNF) to JSON that
matches the schema, key order included.

Usage:
    ```python
    from struct_grammar.compiler import generate_grammar
    from struct_grammar.schema.types import Field, IntegerNode, ObjectNode, StringNode

    schema = ObjectNode("Example", [Field("Text", StringNode()), Field("Number", IntegerNode())])
    print(generate_grammar(schema))
    # char ::= ...
    # space ::= | " " | "\\n" [ \\t]{0,20}
    # root-text-kv ::= "\\"Text\\"" space ":" space "\\"" char{1,512} "\\"" space
    # root-number-kv ::= "\\"Number\\"" space ":" space ("-"? [0] | [1-9] [0-9]{0,15}) space
    # root ::= "{" space root-text-kv "," space root-number-kv "}" space
    ```

Rule Strategy:
    - Rule names follow the path from the root: ``root``, field segments and
      ``item`` for array elements, e.g. ``root-orders-item-price-kv``
    - Every object field gets a ``<path>-kv`` rule
    - Strings with allowed values or a format get a ``<path>`` rule
    - Array elements get a ``<path>-item`` rule, compiled once per path
    - Numbers, booleans, dates, GUIDs, enums and plain strings are inlined
    - Every value expression ends with ``space`` to absorb whitespace
      between tokens

Each call to ``generate`` uses its own RuleTable, so a compiler can be shared
between threads.
"""

import logging
from typing import Optional, Set

from struct_grammar.compiler import thinking
from struct_grammar.compiler.formats import FormatCompiler, default_string_expression
from struct_grammar.compiler.rules import RuleTable, class_char, quote_json_string, rule_segment
from struct_grammar.schema.types import (
    ArrayNode,
    BooleanNode,
    DateNode,
    DecimalNode,
    EnumNode,
    GuidNode,
    IntegerNode,
    ObjectNode,
    SchemaError,
    SchemaNode,
    StringNode,
)
from struct_grammar.settings import GrammarSettings

logger = logging.getLogger(__name__)

ROOT_RULE = "root"

SPACE_RULE = r'| " " | "\n" [ \t]{0,20}'

INTEGER_EXPRESSION = '("-"? [0] | [1-9] [0-9]{0,15}) space'

DECIMAL_EXPRESSION = '("-"? ([0] | [1-9] [0-9]{0,15}) ("." [0-9]{1,15})?) space'

BOOLEAN_EXPRESSION = '("true" | "false") space'

DATE_EXPRESSION = (
    r'"\"" [0-9]{4} "-" ([0][1-9]|[1][0-2]) "-" ([0][1-9]|[12][0-9]|[3][01]) '
    r'"T" ([01][0-9]|[2][0-3]) ":" [0-5][0-9] ":" [0-5][0-9] ("." [0-9]{3})? '
    r'("Z"|([+-] ([01][0-9]|[2][0-3]) ":" [0-5][0-9])) "\"" space'
)

GUID_EXPRESSION = (
    r'"\"" [0-9a-fA-F]{8} "-" [0-9a-fA-F]{4} "-" [0-9a-fA-F]{4} "-" '
    r'[0-9a-fA-F]{4} "-" [0-9a-fA-F]{12} "\"" space'
)


def char_rule(opening_delimiter: str, closing_delimiter: str) -> str:
    """
    Body of the ``char`` rule: one JSON string character.

    Control characters, quote, backslash and the two placeholder delimiters
    are excluded; escape sequences are allowed.
    """
    delimiters = class_char(opening_delimiter) + class_char(closing_delimiter)
    return r'[^"\\\x7F\x00-\x1F' + delimiters + r'] | [\\] (["\\bfnrt] | "u" [0-9a-fA-F]{4})'


class GrammarCompiler:
    """
    Compiles a SchemaNode tree into GBNF grammar text.

    Attributes:
        settings: Grammar settings (lengths, item counts, delimiters, thinking)
        formats: Compiler for ``StringNode.format`` values
    """

    def __init__(self, settings: Optional[GrammarSettings] = None):
        self.settings = settings or GrammarSettings()
        self.formats = FormatCompiler(self.settings)

    def generate(self, schema: SchemaNode) -> str:
        """
        Generate the complete grammar for ``schema``.

        Args:
            schema: Root of the schema tree

        Returns:
            str: ``name ::= expression`` lines. The entry rule is ``root``, or
            ``thinking-root`` when thinking is enabled (see
            ``GrammarSettings.entry_rule``).

        Raises:
            TypeError: If the tree contains an unknown node type
            SchemaError: If a strict-mode policy rejects the schema
        """
        settings = self.settings
        rules = RuleTable()
        rules.add("char", char_rule(settings.opening_delimiter, settings.closing_delimiter))
        rules.add("space", SPACE_RULE)

        if settings.include_thinking:
            for name, body in thinking.thinking_rules(settings.thinking_end, settings.max_thinking_length):
                rules.add(name, body)

        root = self._compile(schema, ROOT_RULE, rules)
        if root != ROOT_RULE:
            rules.add(ROOT_RULE, root)

        if settings.include_thinking:
            rules.add(
                thinking.ENTRY_RULE,
                thinking.entry_expression(settings.thinking_start, settings.thinking_end),
            )

        logger.info(f"Compiled grammar with {len(rules)} rules (entry: {settings.entry_rule})")
        return rules.render()

    def _compile(self, node: SchemaNode, path: str, rules: RuleTable) -> str:
        """Return an inline expression for ``node`` or the name of a registered rule."""
        if isinstance(node, ObjectNode):
            return self._compile_object(node, path, rules)
        elif isinstance(node, ArrayNode):
            return self._compile_array(node, path, rules)
        elif isinstance(node, StringNode):
            return self._compile_string(node, path, rules)
        elif isinstance(node, EnumNode):
            values = "|".join(quote_json_string(v) for v in node.values)
            return f"({values}) space"
        elif isinstance(node, IntegerNode):
            return INTEGER_EXPRESSION
        elif isinstance(node, DecimalNode):
            return DECIMAL_EXPRESSION
        elif isinstance(node, BooleanNode):
            return BOOLEAN_EXPRESSION
        elif isinstance(node, DateNode):
            return DATE_EXPRESSION
        elif isinstance(node, GuidNode):
            return GUID_EXPRESSION
        else:
            raise TypeError(f"Unsupported schema node: {type(node).__name__}")

    def _named(self, name: str, body: str, rules: RuleTable) -> str:
        if name not in rules:
            logger.debug(f"Registering rule {name}")
            rules.add(name, body)
        return name

    def _compile_string(self, node: StringNode, path: str, rules: RuleTable) -> str:
        if node.allowed_values:
            values = "|".join(quote_json_string(v) for v in node.allowed_values)
            return self._named(path, f"({values}) space", rules)

        if node.format:
            return self._named(path, self.formats.compile(node.format), rules)

        min_length = self.settings.default_min_length if node.min_length is None else node.min_length
        max_length = self.settings.default_max_length if node.max_length is None else node.max_length
        if min_length > max_length:
            logger.warning(f"{path}: min_length {min_length} exceeds max_length {max_length}, clamping")
            min_length = max_length

        return default_string_expression(min_length, max_length)

    def _compile_array(self, node: ArrayNode, path: str, rules: RuleTable) -> str:
        item = f"{path}-item"
        if item not in rules:
            expression = self._compile(node.element, item, rules)
            if expression != item:
                self._named(item, expression, rules)

        min_items = self.settings.default_min_items if node.min_items is None else node.min_items
        max_items = self.settings.default_max_items if node.max_items is None else node.max_items
        if min_items > max_items:
            if not self.settings.clamp_array_bounds:
                raise SchemaError(f"{path}: min_items {min_items} exceeds max_items {max_items}")
            logger.warning(f"{path}: min_items {min_items} exceeds max_items {max_items}, clamping")
            min_items = max_items

        more = f'("," space {item})'
        if max_items == 0:
            return '"[" space "]" space'
        elif min_items == 0:
            inner = f"{item}?" if max_items == 1 else f"({item} {more}{{0,{max_items - 1}}})?"
        elif min_items == max_items:
            inner = item if max_items == 1 else f"{item} {more}{{{max_items - 1}}}"
        else:
            inner = f"{item} {more}{{{min_items - 1},{max_items - 1}}}"

        return f'"[" space {inner} "]" space'

    def _compile_object(self, node: ObjectNode, path: str, rules: RuleTable) -> str:
        used: Set[str] = set()
        kv_rules = []

        for field in node.fields:
            field_path = self._field_path(path, field.name, used, rules)
            value = self._compile(field.type, field_path, rules)
            kv_rules.append(
                rules.add(f"{field_path}-kv", f'{quote_json_string(field.name)} space ":" space {value}')
            )

        if not kv_rules:
            return '"{" space "}" space'
        return '"{" space ' + ' "," space '.join(kv_rules) + ' "}" space'

    def _field_path(self, path: str, field_name: str, used: Set[str], rules: RuleTable) -> str:
        """Path for a field, suffixed when it would collide with a sibling's rules."""
        base = f"{path}-{rule_segment(field_name)}"
        candidate = base
        suffix = 1
        while candidate in used or candidate in rules or f"{candidate}-kv" in rules:
            suffix += 1
            candidate = f"{base}-{suffix}"
        used.add(candidate)
        return candidate


def generate_grammar(schema: SchemaNode, settings: Optional[GrammarSettings] = None) -> str:
    """Compile ``schema`` to GBNF with a fresh GrammarCompiler."""
    return GrammarCompiler(settings).generate(schema)
