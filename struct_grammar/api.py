"""
High-level Python API for struct-grammar.

This module gathers the user-facing entry points: schema providers, the two
compilers and their settings.
"""

from struct_grammar.compiler.gbnf import GrammarCompiler, generate_grammar
from struct_grammar.compiler.sample import SampleCompiler, generate_sample, sample_instructions
from struct_grammar.schema.parser import parse_json_schema, parse_schema
from struct_grammar.schema.provider import JsonSchemaProvider, PydanticSchemaProvider, get_provider
from struct_grammar.schema.pydantic_adapter import schema_from_model
from struct_grammar.settings import GrammarSettings, SampleSettings

# Re-export for convenience
__all__ = [
    "GrammarCompiler",
    "generate_grammar",
    "SampleCompiler",
    "generate_sample",
    "sample_instructions",
    "parse_schema",
    "parse_json_schema",
    "schema_from_model",
    "JsonSchemaProvider",
    "PydanticSchemaProvider",
    "get_provider",
    "GrammarSettings",
    "SampleSettings",
]
