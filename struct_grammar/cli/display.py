"""
Rich terminal display utilities for CLI.

Provides formatted output using the Rich library for:
- Syntax-highlighted schemas, grammars and samples
- Error messages
- Grammar statistics tables
- Success/failure indicators
"""

import json
import logging
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table


console = Console()


def setup_logging(verbose: bool) -> None:
    """
    Route library logging through Rich.

    Args:
        verbose: Log DEBUG records when True, only warnings otherwise
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def print_header(title: str) -> None:
    """Print a formatted header."""
    console.print()
    console.print(f"[bold cyan]{title}[/bold cyan]")
    console.print("=" * len(title))
    console.print()


def print_success(message: str) -> None:
    """Print a success message with checkmark."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message with X mark."""
    console.print(f"[red]✗[/red] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]ℹ[/blue] {message}")


def _print_code(code: str, lexer: str, title: Optional[str]) -> None:
    syntax = Syntax(code, lexer, theme="monokai", line_numbers=False, word_wrap=True)

    if title:
        panel = Panel(syntax, title=f"[bold]{escape(title)}[/bold]", border_style="cyan")
        console.print(panel)
    else:
        console.print(syntax)


def print_json(data: Any, title: Optional[str] = None) -> None:
    """
    Print JSON data with syntax highlighting.

    Args:
        data: JSON-serializable data or JSON string
        title: Optional title for the panel
    """
    if isinstance(data, str):
        json_str = data
    else:
        json_str = json.dumps(data, indent=2)

    _print_code(json_str, "json", title)


def print_schema(schema: Dict, title: str = "Schema") -> None:
    """Print a schema with syntax highlighting."""
    print_json(schema, title)


def print_grammar(grammar: str, title: Optional[str] = "Grammar") -> None:
    """Print GBNF grammar text, highlighted as EBNF."""
    _print_code(grammar, "ebnf", title)


def print_sample(sample: str, instructions: Optional[str] = None, title: Optional[str] = "Sample") -> None:
    """
    Print a sample document, preceded by its instruction sentence if given.

    The sample holds ``//`` comments, so it is highlighted as JavaScript.
    """
    if instructions:
        console.print(instructions, highlight=False, markup=False)
        console.print()
    _print_code(sample, "javascript", title)


def print_grammar_stats(grammar: str, entry_rule: str) -> None:
    """
    Print grammar statistics in a table.

    Args:
        grammar: Generated grammar text
        entry_rule: Rule the consumer should start from
    """
    lines = grammar.splitlines()
    kv_rules = sum(1 for line in lines if line.split(" ::= ", 1)[0].endswith("-kv"))

    table = Table(title="Grammar Statistics", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="cyan", width=20)
    table.add_column("Value", style="white", width=30)

    table.add_row("Entry Rule", entry_rule)
    table.add_row("Rules", str(len(lines)))
    table.add_row("Field Rules", str(kv_rules))
    table.add_row("Size", f"{len(grammar)} chars")

    console.print()
    console.print(table)
    console.print()


def print_separator() -> None:
    """Print a visual separator line."""
    console.print("[dim]" + "─" * 70 + "[/dim]")
