"""
Schema providers - pluggable sources of schema node trees.

The compilers only ever see a finished SchemaNode tree. Where the tree comes
from is decided by a SchemaProvider:

    - PydanticSchemaProvider: introspects a Pydantic model class at runtime
    - JsonSchemaProvider: reads a JSON Schema document, e.g. one exported ahead
      of time with ``Model.model_json_schema()`` and stored on disk

For the same model both providers return equal trees.

Usage:
    ```python
    from struct_grammar.schema.provider import get_provider

    provider = get_provider(User)          # PydanticSchemaProvider
    node = provider.build(User)

    provider = get_provider(schema_dict)   # JsonSchemaProvider
    node = provider.build(schema_dict)
    ```
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from struct_grammar.schema.parser import parse_json_schema
from struct_grammar.schema.pydantic_adapter import is_pydantic_model, schema_from_model
from struct_grammar.schema.types import SchemaError, SchemaNode


class SchemaProvider(ABC):
    """Builds a SchemaNode tree from some description of a record type."""

    name: str = "abstract"

    @abstractmethod
    def build(self, source: Any) -> SchemaNode:
        """
        Build the schema tree for ``source``.

        Raises:
            SchemaError: If the source cannot be represented
            CyclicSchemaError: If the source refers back to itself
        """
        pass


class PydanticSchemaProvider(SchemaProvider):
    """Runtime provider backed by Pydantic model introspection."""

    name = "pydantic"

    def build(self, source: type) -> SchemaNode:
        return schema_from_model(source)


class JsonSchemaProvider(SchemaProvider):
    """Ahead-of-time provider backed by a JSON Schema document."""

    name = "json-schema"

    def build(self, source: Dict[str, Any]) -> SchemaNode:
        return parse_json_schema(source)


def get_provider(source: Any) -> SchemaProvider:
    """Pick the provider able to read ``source``."""
    if is_pydantic_model(source):
        return PydanticSchemaProvider()
    if isinstance(source, dict):
        return JsonSchemaProvider()
    raise SchemaError(f"No schema provider for {type(source).__name__}")
