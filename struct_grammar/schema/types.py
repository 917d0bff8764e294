"""
Schema node definitions.

This module defines the closed set of node types used to describe the shape of a
structured record. A tree of these nodes is what both compilers consume.

Type Hierarchy:
    SchemaNode
    ├── ObjectNode: Named object with an ordered tuple of Field entries
    ├── ArrayNode: Homogeneous array with optional item-count bounds
    ├── StringNode: String with allowed values, a format, or length bounds
    ├── EnumNode: Named enumeration of string values
    ├── IntegerNode: Integer number
    ├── DecimalNode: Decimal number
    ├── BooleanNode: true / false
    ├── DateNode: ISO 8601 date-time
    └── GuidNode: Canonical 8-4-4-4-12 GUID

Nodes are frozen dataclasses. Lists passed to the constructors are stored as
tuples, so two trees built from the same description compare equal and can be
hashed. Trees are never mutated; the ``with_*`` helpers on ObjectNode return
new trees.

Example:
    ```python
    from struct_grammar.schema.types import Field, IntegerNode, ObjectNode, StringNode

    schema = ObjectNode(
        name="Person",
        fields=[
            Field("Name", StringNode(max_length=50), description="Full name"),
            Field("Age", IntegerNode()),
        ],
    )
    schema = schema.with_allowed_values("Name", ["Alice", "Bob"])
    ```
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple


class SchemaError(ValueError):
    """Raised when a schema is invalid or uses an unsupported construct."""


class CyclicSchemaError(SchemaError):
    """Raised when a schema refers back to one of its own ancestors."""


def _check_bound(label: str, value) -> Optional[int]:
    """Return ``value`` as a non-negative int; integral floats such as 2.0 are accepted."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaError(f"{label} must be an integer, got {value!r}")
    if value < 0:
        raise SchemaError(f"{label} must be non-negative, got {value}")
    return value


@dataclass(frozen=True)
class SchemaNode:
    """Base class for all schema nodes."""


@dataclass(frozen=True)
class StringNode(SchemaNode):
    """
    A JSON string.

    Only one constraint is active: non-empty ``allowed_values`` win over
    ``format``, which wins over the length bounds. Missing bounds fall back to
    the compiler defaults.

    Attributes:
        allowed_values: Exact values the string may take, in order
        min_length: Minimum length (None = compiler default)
        max_length: Maximum length (None = compiler default)
        format: Named format, placeholder pattern or ``gbnf:`` fragment
        name: Display name
    """

    allowed_values: Tuple[str, ...] = ()
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    format: Optional[str] = None
    name: str = "string"

    def __post_init__(self):
        object.__setattr__(self, "allowed_values", tuple(self.allowed_values))
        object.__setattr__(self, "min_length", _check_bound("min_length", self.min_length))
        object.__setattr__(self, "max_length", _check_bound("max_length", self.max_length))


@dataclass(frozen=True)
class IntegerNode(SchemaNode):
    name: str = "integer"


@dataclass(frozen=True)
class DecimalNode(SchemaNode):
    name: str = "decimal"


@dataclass(frozen=True)
class BooleanNode(SchemaNode):
    name: str = "boolean"


@dataclass(frozen=True)
class DateNode(SchemaNode):
    name: str = "date-time"


@dataclass(frozen=True)
class GuidNode(SchemaNode):
    name: str = "uuid"


@dataclass(frozen=True)
class EnumNode(SchemaNode):
    """
    A named enumeration rendered as one of its quoted values.

    Attributes:
        name: Enumeration name
        values: Member values, in declaration order
    """

    name: str
    values: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class ArrayNode(SchemaNode):
    """
    A homogeneous JSON array.

    Attributes:
        element: Node describing every item
        min_items: Minimum item count (None = compiler default)
        max_items: Maximum item count (None = compiler default)
        name: Display name
    """

    element: SchemaNode
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    name: str = "array"

    def __post_init__(self):
        object.__setattr__(self, "min_items", _check_bound("min_items", self.min_items))
        object.__setattr__(self, "max_items", _check_bound("max_items", self.max_items))


@dataclass(frozen=True)
class Field:
    """
    One property of an ObjectNode.

    Attributes:
        name: Key used in the JSON output
        type: Node describing the value
        description: Optional human description, shown in samples
    """

    name: str
    type: SchemaNode
    description: Optional[str] = None


@dataclass(frozen=True)
class ObjectNode(SchemaNode):
    """
    A JSON object with an ordered list of fields.

    Attributes:
        name: Object (type) name
        fields: Fields in output order
    """

    name: str
    fields: Tuple[Field, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))

    def field(self, name: str) -> Field:
        """Return the field called ``name``, raising SchemaError if absent."""
        for item in self.fields:
            if item.name == name:
                return item
        raise SchemaError(f"Object '{self.name}' has no field '{name}'")

    def with_description(self, path: str, description: str) -> "ObjectNode":
        """
        Return a copy of this tree with a new description on the field at ``path``.

        Args:
            path: Dotted field path, e.g. ``"Address.City"``. Array elements
                are traversed transparently.
            description: Description text

        Returns:
            ObjectNode: Updated tree
        """
        return self._update(_split_path(path), lambda f: replace(f, description=description))

    def with_allowed_values(self, path: str, values: Sequence[str]) -> "ObjectNode":
        """
        Return a copy of this tree restricting the string field at ``path``.

        Arrays of strings are supported; the restriction applies to the items.

        Raises:
            SchemaError: If the path is unknown or does not lead to a string
        """
        values = tuple(values)

        def restrict(target: Field) -> Field:
            return replace(target, type=_restrict_strings(target.type, values, path))

        return self._update(_split_path(path), restrict)

    def _update(self, parts: List[str], change) -> "ObjectNode":
        head, rest = parts[0], parts[1:]
        target = self.field(head)

        if rest:
            nested = _unwrap_arrays(target.type)
            if not isinstance(nested, ObjectNode):
                raise SchemaError(f"Field '{head}' of '{self.name}' is not an object")
            updated = replace(target, type=_rewrap_arrays(target.type, nested._update(rest, change)))
        else:
            updated = change(target)

        return replace(
            self,
            fields=tuple(updated if f is target else f for f in self.fields),
        )


def _split_path(path: str) -> List[str]:
    parts = [p for p in path.split(".") if p]
    if not parts:
        raise SchemaError(f"Invalid field path: {path!r}")
    return parts


def _unwrap_arrays(node: SchemaNode) -> SchemaNode:
    while isinstance(node, ArrayNode):
        node = node.element
    return node


def _rewrap_arrays(original: SchemaNode, inner: SchemaNode) -> SchemaNode:
    if isinstance(original, ArrayNode):
        return replace(original, element=_rewrap_arrays(original.element, inner))
    return inner


def _restrict_strings(node: SchemaNode, values: Tuple[str, ...], path: str) -> SchemaNode:
    target = _unwrap_arrays(node)
    if not isinstance(target, StringNode):
        raise SchemaError(f"Allowed values need a string field, '{path}' is {type(target).__name__}")
    return _rewrap_arrays(node, replace(target, allowed_values=values))
