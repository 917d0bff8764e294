"""
Command-line interface for struct-grammar.

Provides commands for:
- grammar: Compile a schema to a GBNF grammar
- sample: Render the annotated sample document for a schema
"""

from .main import app

__all__ = ["app"]
