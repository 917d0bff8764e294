#!/usr/bin/env python3
"""
Demo: Customer order with nested lines.

This demonstrates building both artifacts for a Pydantic model with:
- Length-limited and formatted strings
- Enum and Literal fields
- Array of nested objects with item bounds
- An optional <think> block ahead of the JSON

The grammar can be passed to any GBNF-capable decoder (e.g. llama.cpp's
``--grammar-file``) and the sample pasted into the prompt.
"""

import sys
from enum import Enum
from pathlib import Path
from typing import List, Literal

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import BaseModel, Field

from struct_grammar import GrammarSettings, generate_grammar, generate_sample, parse_schema, sample_instructions


class Status(str, Enum):
    OPEN = "Open"
    PAID = "Paid"
    SHIPPED = "Shipped"


class Line(BaseModel):
    sku: str = Field(json_schema_extra={"format": "AA-9999"}, description="Stock keeping unit")
    quantity: int
    price: float


class Order(BaseModel):
    customer: str = Field(max_length=80, description="Customer name as written")
    status: Status
    channel: Literal["web", "phone", "store"]
    lines: List[Line] = Field(min_length=1, max_length=10)
    express: bool


def main():
    print("=" * 60)
    print("struct-grammar Demo: Customer Order")
    print("=" * 60)

    schema = parse_schema(Order)

    # Customize the tree without touching the model
    schema = schema.with_description("lines.quantity", "Units ordered")

    print("\nGrammar:")
    print(generate_grammar(schema, GrammarSettings(include_thinking=True, max_thinking_length=512)))

    print("\n" + "=" * 60)
    print("Prompt:")
    print("=" * 60)
    print(sample_instructions())
    print()
    print(generate_sample(schema))


if __name__ == "__main__":
    main()
