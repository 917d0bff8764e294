"""
JSON Schema parser - converts JSON Schema documents into schema node trees.

This is the ahead-of-time provider: a schema exported once (for example with
Pydantic's ``model_json_schema()``) can be stored as a file and compiled later
without the original model classes. It handles:
    - ``object``, ``array``, ``string``, ``integer``, ``number``, ``boolean``
    - ``enum``/``const`` on strings (allowed values) and enum definitions
    - ``format: date-time`` and ``format: uuid`` as date and GUID nodes
    - local ``$ref`` into ``$defs``/``definitions``, with cycle detection

Usage:
    ```python
    from struct_grammar.schema import parse_schema

    schema = {
        "type": "object",
        "title": "Person",
        "properties": {
            "name": {"type": "string", "maxLength": 50},
            "age": {"type": "integer"}
        }
    }

    node = parse_schema(schema)
    ```

Enumerations:
    An ``enum`` reached through ``$ref`` is a named enumeration and becomes an
    EnumNode. An inline ``enum`` (or ``const``) on a property restricts that
    string and becomes a StringNode with allowed values. This matches how
    Pydantic exports ``Enum`` classes and ``Literal`` annotations.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from jsonschema.exceptions import SchemaError as MetaSchemaError
from jsonschema.validators import Draft202012Validator, validator_for

from struct_grammar.schema.graph import find_cycle
from struct_grammar.schema.types import (
    ArrayNode,
    BooleanNode,
    CyclicSchemaError,
    DateNode,
    DecimalNode,
    EnumNode,
    Field,
    GuidNode,
    IntegerNode,
    ObjectNode,
    SchemaError,
    SchemaNode,
    StringNode,
)

logger = logging.getLogger(__name__)

_ROOT_REF = "#"
_DEFINITION_PREFIXES = ("#/$defs/", "#/definitions/")
_UNSUPPORTED_KEYWORDS = ["anyOf", "oneOf", "not", "if", "then", "else", "patternProperties"]
_VALID_TYPES = ["object", "array", "string", "integer", "number", "boolean"]


def parse_schema(schema: Union[Dict[str, Any], type]) -> SchemaNode:
    """
    Parse a JSON Schema or Pydantic model into a SchemaNode tree.

    This is the main entry point for schema parsing. It accepts either:
    - A JSON Schema dictionary
    - A Pydantic BaseModel class (read by introspection)

    Args:
        schema: JSON Schema dict or Pydantic model class

    Returns:
        SchemaNode: Root of the schema tree

    Raises:
        SchemaError: If the schema is invalid, cyclic or unsupported
    """
    if isinstance(schema, type):
        from struct_grammar.schema.pydantic_adapter import schema_from_model
        return schema_from_model(schema)

    return parse_json_schema(schema)


def parse_json_schema(schema: Dict[str, Any]) -> SchemaNode:
    """
    Parse a JSON Schema dictionary into a SchemaNode tree.

    The document is checked against its meta-schema and for reference cycles
    before any node is built.

    Raises:
        SchemaError: If the schema is invalid or unsupported
        CyclicSchemaError: If a ``$ref`` chain leads back to itself
    """
    if not isinstance(schema, dict):
        raise SchemaError(f"Schema must be a dict, got: {type(schema).__name__}")

    validate_schema(schema)
    return _JsonSchemaReader(schema).read()


def validate_schema(schema: Dict[str, Any]) -> None:
    """
    Validate that a schema is well-formed and supported.

    Args:
        schema: JSON Schema dictionary

    Raises:
        SchemaError: If schema is invalid or uses unsupported features

    Example:
        ```python
        schema = {"type": "unknown"}
        validate_schema(schema)  # Raises SchemaError
        ```
    """
    validator_cls = validator_for(schema, default=Draft202012Validator)
    try:
        validator_cls.check_schema(schema)
    except MetaSchemaError as e:
        raise SchemaError(f"Invalid JSON Schema: {e.message}") from e

    _check_supported(schema)


def _check_supported(schema: Dict[str, Any]) -> None:
    for keyword in _UNSUPPORTED_KEYWORDS:
        if keyword in schema:
            raise SchemaError(f"Keyword '{keyword}' is not supported")

    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        raise SchemaError(f"Type unions are not supported: {schema_type}")
    if schema_type is not None and schema_type not in _VALID_TYPES:
        raise SchemaError(f"Invalid type: {schema_type}")

    for sub_schema in _children(schema):
        _check_supported(sub_schema)

    for definitions in (schema.get("$defs", {}), schema.get("definitions", {})):
        for sub_schema in definitions.values():
            _check_supported(sub_schema)


def _children(schema: Dict[str, Any]) -> List[Dict[str, Any]]:
    children = list(schema.get("properties", {}).values())
    if isinstance(schema.get("items"), dict):
        children.append(schema["items"])
    children.extend(schema.get("allOf", []))
    return children


def _collect_refs(schema: Dict[str, Any]) -> List[str]:
    refs = []
    if "$ref" in schema:
        refs.append(schema["$ref"])
    for sub_schema in _children(schema):
        refs.extend(_collect_refs(sub_schema))
    return refs


class _JsonSchemaReader:
    """Builds nodes from one JSON Schema document."""

    def __init__(self, document: Dict[str, Any]):
        self.document = document

    def read(self) -> SchemaNode:
        cycle = find_cycle(_ROOT_REF, self._references)
        if cycle:
            names = " -> ".join(ref.rsplit("/", 1)[-1] for ref in cycle)
            raise CyclicSchemaError(f"Cyclic reference detected: {names}")

        return self._parse(self.document, name_hint=None)

    def _references(self, ref: str) -> List[str]:
        return _collect_refs(self._resolve(ref))

    def _resolve(self, ref: str) -> Dict[str, Any]:
        if ref == _ROOT_REF:
            return self.document

        for prefix in _DEFINITION_PREFIXES:
            if ref.startswith(prefix):
                key = ref[len(prefix):]
                definitions = self.document.get(prefix[2:-1], {})
                if key in definitions:
                    return definitions[key]
                break

        raise SchemaError(f"Unresolvable $ref: {ref}")

    def _parse(
        self,
        schema: Dict[str, Any],
        name_hint: Optional[str],
        is_definition: bool = False,
    ) -> SchemaNode:
        if "$ref" in schema:
            ref = schema["$ref"]
            logger.debug(f"Following {ref}")
            return self._parse(self._resolve(ref), ref.rsplit("/", 1)[-1], is_definition=True)

        # Pydantic wraps annotated references as {"allOf": [{"$ref": ...}], "description": ...}
        if "allOf" in schema:
            parts = schema["allOf"]
            if len(parts) != 1:
                raise SchemaError("allOf with more than one schema is not supported")
            merged = {k: v for k, v in schema.items() if k != "allOf"}
            merged.update(parts[0])
            return self._parse(merged, name_hint, is_definition)

        schema_type = schema.get("type")
        if schema_type is None:
            if "properties" in schema:
                schema_type = "object"
            elif "items" in schema:
                schema_type = "array"
            elif "enum" in schema or "const" in schema:
                schema_type = "string"
            else:
                raise SchemaError(f"Cannot infer type of schema: {schema}")

        if schema_type == "object":
            return self._parse_object(schema, name_hint)
        elif schema_type == "array":
            return self._parse_array(schema)
        elif schema_type == "string":
            return _parse_string(schema, name_hint, is_definition)
        elif schema_type == "integer":
            _reject_inline_enum(schema)
            return IntegerNode()
        elif schema_type == "number":
            _reject_inline_enum(schema)
            return DecimalNode()
        elif schema_type == "boolean":
            return BooleanNode()
        else:
            raise SchemaError(f"Unsupported schema type: {schema_type}")

    def _parse_object(self, schema: Dict[str, Any], name_hint: Optional[str]) -> ObjectNode:
        fields = []
        for prop_name, prop_schema in schema.get("properties", {}).items():
            fields.append(
                Field(
                    name=prop_name,
                    type=self._parse(prop_schema, prop_name),
                    description=prop_schema.get("description"),
                )
            )

        name = schema.get("title") or name_hint or "object"
        logger.debug(f"Parsed object '{name}' with {len(fields)} fields")
        return ObjectNode(name=name, fields=fields)

    def _parse_array(self, schema: Dict[str, Any]) -> ArrayNode:
        items_schema = schema.get("items")
        if not isinstance(items_schema, dict):
            raise SchemaError("Arrays must declare a single 'items' schema")

        return ArrayNode(
            element=self._parse(items_schema, None),
            min_items=schema.get("minItems"),
            max_items=schema.get("maxItems"),
        )


def _parse_string(schema: Dict[str, Any], name_hint: Optional[str], is_definition: bool) -> SchemaNode:
    values = schema.get("enum")
    if values is None and "const" in schema:
        values = [schema["const"]]

    if values is not None:
        if not all(isinstance(v, str) for v in values):
            raise SchemaError(f"String enum values must be strings, got: {values}")
        if is_definition:
            return EnumNode(name=schema.get("title") or name_hint or "enum", values=values)
        return StringNode(allowed_values=values)

    string_format = schema.get("format")
    if string_format == "date-time":
        return DateNode()
    if string_format == "uuid":
        return GuidNode()

    return StringNode(
        min_length=schema.get("minLength"),
        max_length=schema.get("maxLength"),
        format=string_format,
    )


def _reject_inline_enum(schema: Dict[str, Any]) -> None:
    if "enum" in schema or "const" in schema:
        raise SchemaError(f"Enumerations are only supported on strings: {schema}")
