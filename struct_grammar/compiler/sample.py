"""
Sample compiler - render an annotated placeholder document for a schema.

The sample shows a generator the exact output shape it is expected to produce.
Values are replaced by placeholders wrapped in two delimiter characters
(``⟨`` and ``⟩`` by default) so they cannot be mistaken for JSON punctuation:

    {
        "Name": "⟨string value⟩", // Customer name
        "Size": "⟨S|M|L⟩", // Allowed values: S or M or L
        "Tags": ["⟨string value_1⟩", "⟨Tags_2⟩", "⟨Tags_N⟩"],
        "Total": ⟨decimal value⟩
    }

Arrays always show three elements: a fully rendered first element, then short
placeholders for the second and the N-th, signalling "repeat as needed".

Usage:
    ```python
    from struct_grammar.compiler import SampleCompiler

    compiler = SampleCompiler()
    prompt = f"{compiler.instructions()}\\n\\n{compiler.generate(schema)}"
    ```
"""

import json
from typing import Optional, Union

from struct_grammar.compiler.formats import describe_format
from struct_grammar.schema.types import (
    ArrayNode,
    BooleanNode,
    DateNode,
    DecimalNode,
    EnumNode,
    Field,
    GuidNode,
    IntegerNode,
    ObjectNode,
    SchemaNode,
    StringNode,
)
from struct_grammar.settings import SampleSettings

DATE_DESCRIPTION = "ISO 8601 date value (YYYY-MM-DDThh:mm:ss.sssZ)"
GUID_DESCRIPTION = "GUID value in standard format"

# rendered inside JSON quotes
_QUOTED_NODES = (StringNode, DateNode, GuidNode, EnumNode)


class SampleCompiler:
    """
    Renders SchemaNode trees as annotated sample documents.

    Attributes:
        settings: Delimiters and pretty-print options
    """

    def __init__(self, settings: Optional[SampleSettings] = None):
        self.settings = settings or SampleSettings()

    def generate(self, schema: SchemaNode) -> str:
        """
        Render the sample document for ``schema`` (normally an ObjectNode).

        Raises:
            TypeError: If the tree contains an unknown node type
        """
        return self._render(schema, 0, schema.name)

    def instructions(self) -> str:
        """Instruction sentence telling a generator to fill in every placeholder."""
        o, c = self.settings.opening_delimiter, self.settings.closing_delimiter
        return (
            f"Replace all placeholders ({o}...{c}) in the format with the actual values "
            f"extracted from the text. Do not return placeholders or the {o} and {c} "
            f"characters in the final output."
        )

    def _placeholder(self, text: str, quoted: bool = False) -> str:
        span = f"{self.settings.opening_delimiter}{text}{self.settings.closing_delimiter}"
        return f'"{span}"' if quoted else span

    def _render(self, node: SchemaNode, level: int, field_name: str) -> str:
        if isinstance(node, ObjectNode):
            return self._render_object(node, level)
        elif isinstance(node, ArrayNode):
            return self._render_array(node, level, field_name)
        elif isinstance(node, StringNode):
            if node.allowed_values:
                return self._placeholder("|".join(node.allowed_values), quoted=True)
            if node.format:
                return self._placeholder(describe_format(node.format), quoted=True)
            return self._placeholder("string value", quoted=True)
        elif isinstance(node, EnumNode):
            return self._placeholder("|".join(node.values), quoted=True)
        elif isinstance(node, IntegerNode):
            return self._placeholder("integer value")
        elif isinstance(node, DecimalNode):
            return self._placeholder("decimal value")
        elif isinstance(node, BooleanNode):
            return self._placeholder("true|false")
        elif isinstance(node, DateNode):
            return self._placeholder(DATE_DESCRIPTION, quoted=True)
        elif isinstance(node, GuidNode):
            return self._placeholder(GUID_DESCRIPTION, quoted=True)
        else:
            raise TypeError(f"Unsupported schema node: {type(node).__name__}")

    def _render_object(self, node: ObjectNode, level: int) -> str:
        if not node.fields:
            return "{}"

        pretty = self.settings.pretty_print
        newline = "\n" if pretty else ""
        outer_indent = self.settings.indent * level if pretty else ""
        inner_indent = self.settings.indent * (level + 1) if pretty else ""

        lines = []
        last = len(node.fields) - 1
        for index, field in enumerate(node.fields):
            value = self._render(field.type, level + 1, field.name)
            comma = "," if index < last else ""
            key = json.dumps(field.name, ensure_ascii=False)
            lines.append(f"{inner_indent}{key}: {value}{comma}{self._comment(field)}")

        return "{" + newline + newline.join(lines) + newline + outer_indent + "}"

    def _render_array(self, node: ArrayNode, level: int, field_name: str) -> str:
        first = self._with_index(self._render(node.element, level, field_name), 1)
        second = self._array_placeholder(node.element, field_name, 2)
        nth = self._array_placeholder(node.element, field_name, "N")
        return f"[{first}, {second}, {nth}]"

    def _with_index(self, value: str, index: int) -> str:
        """Insert ``_<index>`` before the closing delimiter of a lone placeholder."""
        o, c = self.settings.opening_delimiter, self.settings.closing_delimiter
        if value.startswith(f'"{o}') and value.endswith(f'{c}"'):
            return f"{value[:-2]}_{index}{value[-2:]}"
        if value.startswith(o) and value.endswith(c):
            return f"{value[:-1]}_{index}{value[-1:]}"
        return value

    def _array_placeholder(self, element: SchemaNode, field_name: str, index: Union[int, str]) -> str:
        label = f"{field_name}_{index}"
        if isinstance(element, (ObjectNode, ArrayNode)):
            return label
        return self._placeholder(label, quoted=isinstance(element, _QUOTED_NODES))

    def _comment(self, field: Field) -> str:
        if not self.settings.pretty_print:
            return ""

        parts = []
        if field.description and field.description.strip():
            parts.append(field.description.strip())
        if isinstance(field.type, StringNode) and field.type.allowed_values:
            parts.append(f"Allowed values: {' or '.join(field.type.allowed_values)}")

        return f" // {'. '.join(parts)}" if parts else ""


def generate_sample(schema: SchemaNode, settings: Optional[SampleSettings] = None) -> str:
    """Render ``schema`` with a fresh SampleCompiler."""
    return SampleCompiler(settings).generate(schema)


def sample_instructions(settings: Optional[SampleSettings] = None) -> str:
    """Instruction sentence matching ``settings``' delimiters."""
    return SampleCompiler(settings).instructions()
