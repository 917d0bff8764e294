"""
Main CLI entry point using Typer.

This module defines the command-line interface for struct-grammar using Typer.
It provides two commands: grammar and sample.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from typing_extensions import Annotated

from struct_grammar.settings import GrammarSettings, SampleSettings

from .commands import grammar_command, sample_command
from .display import print_error, setup_logging


# Create Typer app
app = typer.Typer(
    name="struct-grammar",
    help="struct-grammar - GBNF grammars and sample documents for structured LLM output",
    add_completion=False,
    rich_markup_mode="rich"
)


SchemaOption = Annotated[
    Optional[Path],
    typer.Option("--schema", "-s", help="Path to JSON schema file", exists=True, file_okay=True, dir_okay=False)
]
ModelOption = Annotated[
    Optional[str],
    typer.Option("--model", "-m", help="Pydantic model as module:Class")
]
OutputOption = Annotated[
    Optional[Path],
    typer.Option("--output", "-o", help="Path to save the output")
]


@app.command("grammar")
def grammar(
    schema: SchemaOption = None,
    model: ModelOption = None,
    thinking: Annotated[
        bool,
        typer.Option("--thinking", help="Allow a <think>...</think> block before the JSON")
    ] = False,
    max_thinking: Annotated[
        int,
        typer.Option("--max-thinking", help="Maximum length of the thinking block")
    ] = 1024,
    min_length: Annotated[
        int,
        typer.Option("--min-length", help="Default minimum string length")
    ] = 1,
    max_length: Annotated[
        int,
        typer.Option("--max-length", help="Default maximum string length")
    ] = 512,
    min_items: Annotated[
        int,
        typer.Option("--min-items", help="Default minimum array length")
    ] = 0,
    max_items: Annotated[
        int,
        typer.Option("--max-items", help="Default maximum array length")
    ] = 20,
    strict_formats: Annotated[
        bool,
        typer.Option("--strict-formats", help="Fail on unrecognized string formats")
    ] = False,
    no_clamp: Annotated[
        bool,
        typer.Option("--no-clamp", help="Fail when an array's minItems exceeds maxItems")
    ] = False,
    output: OutputOption = None,
    show_schema: Annotated[
        bool,
        typer.Option("--show-schema", help="Display the JSON schema before compiling")
    ] = False,
) -> None:
    """
    Compile a schema into a GBNF grammar.

    Example:
        struct-grammar grammar \\
            --schema order.json \\
            --max-items 10 \\
            --thinking \\
            --output order.gbnf
    """
    try:
        settings = GrammarSettings(
            default_min_length=min_length,
            default_max_length=max_length,
            default_min_items=min_items,
            default_max_items=max_items,
            include_thinking=thinking,
            max_thinking_length=max_thinking,
            strict_formats=strict_formats,
            clamp_array_bounds=not no_clamp,
        )
        grammar_command(
            schema_path=schema,
            model_ref=model,
            settings=settings,
            output_path=output,
            show_schema=show_schema
        )
    except Exception as e:
        print_error(f"Command failed: {escape(str(e))}")
        raise typer.Exit(code=1)


@app.command("sample")
def sample(
    schema: SchemaOption = None,
    model: ModelOption = None,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="Single-line output without comments")
    ] = False,
    indent: Annotated[
        int,
        typer.Option("--indent", help="Spaces per indentation level")
    ] = 4,
    instructions: Annotated[
        bool,
        typer.Option("--instructions", help="Prefix the sample with the fill-in instructions")
    ] = False,
    output: OutputOption = None,
) -> None:
    """
    Render the annotated sample document for a schema.

    Example:
        struct-grammar sample \\
            --model myapp.models:Order \\
            --instructions
    """
    try:
        if indent < 0:
            raise ValueError(f"--indent must be non-negative, got {indent}")
        settings = SampleSettings(pretty_print=not compact, indent=" " * indent)
        sample_command(
            schema_path=schema,
            model_ref=model,
            settings=settings,
            output_path=output,
            include_instructions=instructions
        )
    except Exception as e:
        print_error(f"Command failed: {escape(str(e))}")
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option("--version", "-V", help="Show version and exit")
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging")
    ] = False,
) -> None:
    """
    struct-grammar - GBNF grammars and sample documents for structured LLM output.

    Compiles Pydantic models and JSON Schema documents for grammar-constrained decoding.
    """
    if version:
        from struct_grammar import __version__
        typer.echo(f"struct-grammar version {__version__}")
        raise typer.Exit()

    setup_logging(verbose)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def cli() -> None:
    """CLI entry point for the console script."""
    app()


if __name__ == "__main__":
    cli()
