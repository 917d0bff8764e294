"""
Schema model and schema providers.

This module defines the SchemaNode tree consumed by the compilers and the
providers that build such trees from Pydantic models or JSON Schema documents.

Components:
    - types: Node definitions (ObjectNode, StringNode, ArrayNode, ...)
    - parser: JSON Schema document → SchemaNode tree
    - pydantic_adapter: Pydantic model class → SchemaNode tree
    - provider: SchemaProvider interface over both sources
    - graph: Reference-cycle detection run before a tree is built

Example:
    ```python
    from struct_grammar.schema import parse_schema
    from pydantic import BaseModel

    class User(BaseModel):
        name: str
        age: int

    # Introspect a Pydantic model
    node = parse_schema(User)

    # Or parse a JSON Schema dict
    node = parse_schema(User.model_json_schema())
    ```
"""

from struct_grammar.schema.parser import parse_schema, parse_json_schema, validate_schema
from struct_grammar.schema.pydantic_adapter import is_pydantic_model, pydantic_to_schema, schema_from_model
from struct_grammar.schema.provider import (
    JsonSchemaProvider,
    PydanticSchemaProvider,
    SchemaProvider,
    get_provider,
)
from struct_grammar.schema.types import CyclicSchemaError, SchemaError

__all__ = [
    "parse_schema",
    "parse_json_schema",
    "validate_schema",
    "is_pydantic_model",
    "pydantic_to_schema",
    "schema_from_model",
    "SchemaProvider",
    "JsonSchemaProvider",
    "PydanticSchemaProvider",
    "get_provider",
    "SchemaError",
    "CyclicSchemaError",
]
