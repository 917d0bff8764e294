"""
struct-grammar: GBNF grammars and annotated samples for structured LLM output

struct-grammar turns a description of a record type into the two artifacts a
constrained generation loop needs: a GBNF grammar that only admits JSON of the
right shape, and an annotated sample document showing the model what to fill in.

Key Features:
    - Schema trees from Pydantic models or JSON Schema documents
    - Path-named, deterministic GBNF rules with bounded strings and arrays
    - String formats: named classes, placeholder patterns, raw GBNF fragments
    - Optional ``<think>...</think>`` preamble ahead of the JSON
    - Placeholder samples with description comments

Quick Start:
    ```python
    from pydantic import BaseModel, Field
    from struct_grammar import generate_grammar, generate_sample, parse_schema

    class User(BaseModel):
        name: str = Field(max_length=50, description="Full name")
        age: int

    schema = parse_schema(User)
    grammar = generate_grammar(schema)
    sample = generate_sample(schema)
    ```

Architecture:
    1. Schema providers: Pydantic model / JSON Schema → SchemaNode tree
    2. Grammar compiler: SchemaNode tree → GBNF rules
    3. Sample compiler: SchemaNode tree → placeholder document
"""

__version__ = "0.1.0"

# Main API exports - these are the primary user-facing names
from struct_grammar.api import (  # noqa: F401
    GrammarCompiler,
    GrammarSettings,
    JsonSchemaProvider,
    PydanticSchemaProvider,
    SampleCompiler,
    SampleSettings,
    generate_grammar,
    generate_sample,
    get_provider,
    parse_json_schema,
    parse_schema,
    sample_instructions,
    schema_from_model,
)
from struct_grammar.schema.types import CyclicSchemaError, SchemaError  # noqa: F401

__all__ = [
    "GrammarCompiler",
    "GrammarSettings",
    "JsonSchemaProvider",
    "PydanticSchemaProvider",
    "SampleCompiler",
    "SampleSettings",
    "generate_grammar",
    "generate_sample",
    "get_provider",
    "parse_json_schema",
    "parse_schema",
    "sample_instructions",
    "schema_from_model",
    "SchemaError",
    "CyclicSchemaError",
]
