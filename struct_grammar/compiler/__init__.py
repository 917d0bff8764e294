"""
Grammar and sample compilers.

This module turns SchemaNode trees into the two text artifacts used for
constrained generation: a GBNF grammar and an annotated sample document.

Components:
    - gbnf: GrammarCompiler, SchemaNode tree → GBNF grammar text
    - formats: FormatCompiler for string formats (named formats, placeholder
      patterns, raw ``gbnf:`` fragments)
    - thinking: Grammar fragments for an optional ``<think>`` preamble
    - sample: SampleCompiler, SchemaNode tree → annotated placeholder document
    - rules: Per-compilation rule table and GBNF quoting helpers

Example:
    ```python
    from struct_grammar.compiler import generate_grammar, generate_sample
    from struct_grammar.schema import parse_schema

    schema = parse_schema(Order)
    grammar = generate_grammar(schema)
    sample = generate_sample(schema)
    ```
"""

from struct_grammar.compiler.formats import FormatCompiler, UnknownFormatError, describe_format
from struct_grammar.compiler.gbnf import GrammarCompiler, generate_grammar
from struct_grammar.compiler.sample import SampleCompiler, generate_sample, sample_instructions

__all__ = [
    "FormatCompiler",
    "UnknownFormatError",
    "describe_format",
    "GrammarCompiler",
    "generate_grammar",
    "SampleCompiler",
    "generate_sample",
    "sample_instructions",
]
