"""
CLI command implementations.

This module contains the business logic for each CLI command:
- grammar: Compile a schema to a GBNF grammar
- sample: Render the annotated sample document for a schema

A schema comes either from a JSON Schema file (``--schema``) or from a
Pydantic model given as ``module:Class`` (``--model``).
"""

import importlib
import json
from pathlib import Path
from typing import Any, Dict, Optional

from rich.markup import escape

from struct_grammar.compiler.gbnf import GrammarCompiler
from struct_grammar.compiler.sample import SampleCompiler
from struct_grammar.schema.provider import get_provider
from struct_grammar.schema.pydantic_adapter import is_pydantic_model, pydantic_to_schema
from struct_grammar.schema.types import SchemaNode
from struct_grammar.settings import GrammarSettings, SampleSettings

from .display import (
    print_grammar,
    print_grammar_stats,
    print_header,
    print_info,
    print_sample,
    print_schema,
    print_separator,
    print_success,
)


def load_schema_file(schema_path: Path) -> Dict:
    """
    Load and parse a JSON schema file.

    Args:
        schema_path: Path to schema JSON file

    Returns:
        Parsed schema dictionary

    Raises:
        ValueError: If file doesn't exist or isn't valid JSON
    """
    if not schema_path.exists():
        raise ValueError(f"Schema file not found: {schema_path}")

    try:
        with open(schema_path, encoding="utf-8") as f:
            schema = json.load(f)
        return schema
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in schema file: {e}")


def load_model(reference: str) -> type:
    """
    Import a Pydantic model given as ``package.module:ClassName``.

    Raises:
        ValueError: If the reference is malformed or doesn't name a model
    """
    module_name, _, class_name = reference.partition(":")
    if not module_name or not class_name:
        raise ValueError(f"Model must be given as module:Class, got: {reference}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import module '{module_name}': {e}")

    model = getattr(module, class_name, None)
    if not is_pydantic_model(model):
        raise ValueError(f"'{reference}' is not a Pydantic model class")
    return model


def load_source(schema_path: Optional[Path], model_ref: Optional[str]) -> Any:
    """Return the schema dict or model class selected on the command line."""
    if (schema_path is None) == (model_ref is None):
        raise ValueError("Provide exactly one of --schema or --model")

    if schema_path is not None:
        source = load_schema_file(schema_path)
        print_success(f"Loaded schema from: {escape(str(schema_path))}")
    else:
        source = load_model(model_ref)
        print_success(f"Loaded model: {escape(model_ref)}")
    return source


def build_schema(source: Any, show_schema: bool = False) -> SchemaNode:
    """Build the schema tree with the provider matching ``source``."""
    if show_schema:
        print_schema(pydantic_to_schema(source) if is_pydantic_model(source) else source)

    provider = get_provider(source)
    print_info(f"Provider: [bold]{provider.name}[/bold]")
    return provider.build(source)


def write_output(text: str, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text + "\n", encoding="utf-8")
    print_success(f"Saved to: {escape(str(output_path))}")


def grammar_command(
    schema_path: Optional[Path],
    model_ref: Optional[str],
    settings: GrammarSettings,
    output_path: Optional[Path],
    show_schema: bool,
) -> None:
    """
    Execute the grammar command.

    Args:
        schema_path: Path to JSON schema file
        model_ref: Pydantic model as module:Class
        settings: Grammar settings built from the command options
        output_path: Optional path to save the grammar
        show_schema: Whether to display the JSON schema
    """
    print_header("struct-grammar - GBNF Grammar")

    source = load_source(schema_path, model_ref)
    schema = build_schema(source, show_schema)

    grammar = GrammarCompiler(settings).generate(schema)
    print_success(f"Compiled grammar for: [bold]{escape(schema.name)}[/bold]")

    print_separator()
    if output_path:
        write_output(grammar, output_path)
    else:
        print_grammar(grammar)

    print_grammar_stats(grammar, settings.entry_rule)


def sample_command(
    schema_path: Optional[Path],
    model_ref: Optional[str],
    settings: SampleSettings,
    output_path: Optional[Path],
    include_instructions: bool,
) -> None:
    """
    Execute the sample command.

    Args:
        schema_path: Path to JSON schema file
        model_ref: Pydantic model as module:Class
        settings: Sample settings built from the command options
        output_path: Optional path to save the sample
        include_instructions: Prefix the sample with the instruction sentence
    """
    print_header("struct-grammar - Sample Document")

    source = load_source(schema_path, model_ref)
    schema = build_schema(source)

    compiler = SampleCompiler(settings)
    sample = compiler.generate(schema)
    instructions = compiler.instructions() if include_instructions else None

    print_separator()
    if output_path:
        text = f"{instructions}\n\n{sample}" if instructions else sample
        write_output(text, output_path)
    else:
        print_sample(sample, instructions)
