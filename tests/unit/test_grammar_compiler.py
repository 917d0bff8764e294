"""
Unit tests for the GBNF grammar compiler.
"""

import logging
import re

import pytest

from struct_grammar.compiler.gbnf import (
    BOOLEAN_EXPRESSION,
    DATE_EXPRESSION,
    DECIMAL_EXPRESSION,
    GUID_EXPRESSION,
    INTEGER_EXPRESSION,
    GrammarCompiler,
    generate_grammar,
)
from struct_grammar.schema.types import (
    ArrayNode,
    BooleanNode,
    DateNode,
    DecimalNode,
    EnumNode,
    Field,
    GuidNode,
    IntegerNode,
    ObjectNode,
    SchemaError,
    SchemaNode,
    StringNode,
)
from struct_grammar.settings import GrammarSettings

TOKEN = re.compile(r'"(?:\\.|[^"\\])*"|\[(?:\\.|[^\]\\])*\]|[a-zA-Z][a-zA-Z0-9-]*')


def rules_of(grammar):
    """Split grammar text into an ordered list of (name, body)."""
    return [tuple(line.split(" ::= ", 1)) for line in grammar.splitlines()]


def rule(grammar, name):
    return dict(rules_of(grammar))[name]


def references(body):
    """Rule names referenced by a rule body."""
    return {t for t in TOKEN.findall(body) if t[0] not in '"['}


def object_with(*fields):
    return ObjectNode("Test", list(fields))


@pytest.fixture
def order():
    line = ObjectNode(
        "Line",
        [
            Field("Sku", StringNode(format="AA-9999")),
            Field("Quantity", IntegerNode()),
            Field("Price", DecimalNode()),
        ],
    )
    return ObjectNode(
        "Order",
        [
            Field("Id", GuidNode()),
            Field("Customer", StringNode(max_length=80), description="Customer name"),
            Field("Status", EnumNode("Status", ["Open", "Paid"])),
            Field("Channel", StringNode(allowed_values=["web", "phone"])),
            Field("Lines", ArrayNode(line, min_items=1, max_items=10)),
            Field("Tags", ArrayNode(StringNode(allowed_values=["gift", "rush"]))),
            Field("Placed", DateNode()),
            Field("Paid", BooleanNode()),
        ],
    )


class TestEndToEnd:
    """Test the reference Text/Number scenario."""

    def test_text_and_number(self):
        """Test the complete grammar for a two-field object."""
        schema = ObjectNode("Example", [Field("Text", StringNode()), Field("Number", IntegerNode())])

        assert generate_grammar(schema).splitlines() == [
            r'char ::= [^"\\\x7F\x00-\x1F⟨⟩] | [\\] (["\\bfnrt] | "u" [0-9a-fA-F]{4})',
            r'space ::= | " " | "\n" [ \t]{0,20}',
            r'root-text-kv ::= "\"Text\"" space ":" space "\"" char{1,512} "\"" space',
            r'root-number-kv ::= "\"Number\"" space ":" space ("-"? [0] | [1-9] [0-9]{0,15}) space',
            r'root ::= "{" space root-text-kv "," space root-number-kv "}" space',
        ]


class TestPrimitives:
    """Test expressions for scalar nodes."""

    @pytest.mark.parametrize(
        "node,expression",
        [
            (IntegerNode(), INTEGER_EXPRESSION),
            (DecimalNode(), DECIMAL_EXPRESSION),
            (BooleanNode(), BOOLEAN_EXPRESSION),
            (DateNode(), DATE_EXPRESSION),
            (GuidNode(), GUID_EXPRESSION),
        ],
    )
    def test_inlined(self, node, expression):
        """Test that scalars are inlined into their field rule."""
        grammar = generate_grammar(object_with(Field("Value", node)))

        assert rule(grammar, "root-value-kv") == rf'"\"Value\"" space ":" space {expression}'

    def test_decimal_expression(self):
        """Test the exact decimal expression."""
        assert DECIMAL_EXPRESSION == '("-"? ([0] | [1-9] [0-9]{0,15}) ("." [0-9]{1,15})?) space'

    def test_enum_inlined_in_order(self):
        """Test that enum values are alternated in declared order."""
        grammar = generate_grammar(object_with(Field("Status", EnumNode("Status", ["B", "A", "C"]))))

        assert rule(grammar, "root-status-kv").endswith(r'("\"B\""|"\"A\""|"\"C\"") space')

    def test_delimiters_excluded_from_char(self):
        """Test that custom delimiters end up in the char rule."""
        settings = GrammarSettings(opening_delimiter="«", closing_delimiter="»")
        grammar = generate_grammar(object_with(Field("X", StringNode())), settings)

        assert rule(grammar, "char").startswith(r'[^"\\\x7F\x00-\x1F«»]')


class TestStrings:
    """Test string compilation."""

    def test_allowed_values_rule(self):
        """Test that allowed values get their own rule in declared order."""
        grammar = generate_grammar(object_with(Field("Color", StringNode(allowed_values=["red", "green", "blue"]))))

        assert rule(grammar, "root-color") == r'("\"red\""|"\"green\""|"\"blue\"") space'
        assert rule(grammar, "root-color-kv") == r'"\"Color\"" space ":" space root-color'

    def test_allowed_values_are_escaped(self):
        """Test JSON escaping of allowed values."""
        grammar = generate_grammar(object_with(Field("Q", StringNode(allowed_values=['say "hi"']))))

        assert rule(grammar, "root-q") == r'("\"say \\\"hi\\\"\"") space'

    def test_allowed_values_win_over_format(self):
        """Test precedence of allowed values over format."""
        node = StringNode(allowed_values=["x"], format="numeric", max_length=3)
        grammar = generate_grammar(object_with(Field("V", node)))

        assert rule(grammar, "root-v") == r'("\"x\"") space'

    def test_format_rule(self):
        """Test that formatted strings get their own rule."""
        grammar = generate_grammar(object_with(Field("Plate", StringNode(format="AA-99"))))

        assert rule(grammar, "root-plate") == r'"\"" [A-Z] [A-Z] "-" [0-9] [0-9] "\"" space'
        assert rule(grammar, "root-plate-kv").endswith("space root-plate")

    def test_default_length_fallback(self):
        """Test that unbounded strings use the default bounds."""
        settings = GrammarSettings(default_min_length=3, default_max_length=64)
        grammar = generate_grammar(object_with(Field("S", StringNode())), settings)

        assert rule(grammar, "root-s-kv").endswith(r'"\"" char{3,64} "\"" space')

    def test_explicit_and_partial_bounds(self):
        """Test node bounds, with missing sides taken from the defaults."""
        grammar = generate_grammar(
            object_with(
                Field("A", StringNode(min_length=2, max_length=5)),
                Field("B", StringNode(max_length=10)),
                Field("C", StringNode(min_length=0)),
            )
        )

        assert "char{2,5}" in rule(grammar, "root-a-kv")
        assert "char{1,10}" in rule(grammar, "root-b-kv")
        assert "char{0,512}" in rule(grammar, "root-c-kv")

    def test_inverted_length_clamped(self, caplog):
        """Test that min_length above max_length is clamped with a warning."""
        with caplog.at_level(logging.WARNING, logger="struct_grammar.compiler.gbnf"):
            grammar = generate_grammar(object_with(Field("S", StringNode(min_length=9, max_length=4))))

        assert "char{4,4}" in rule(grammar, "root-s-kv")
        assert "min_length" in caplog.text


class TestArrays:
    """Test array bound encodings."""

    @pytest.mark.parametrize(
        "min_items,max_items,inner",
        [
            (None, None, '(root-numbers-item ("," space root-numbers-item){0,19})?'),
            (0, 5, '(root-numbers-item ("," space root-numbers-item){0,4})?'),
            (0, 1, "root-numbers-item?"),
            (1, 1, "root-numbers-item"),
            (3, 3, 'root-numbers-item ("," space root-numbers-item){2}'),
            (2, 5, 'root-numbers-item ("," space root-numbers-item){1,4}'),
            (1, None, 'root-numbers-item ("," space root-numbers-item){0,19}'),
        ],
    )
    def test_bounds(self, min_items, max_items, inner):
        """Test each bound combination."""
        schema = object_with(Field("Numbers", ArrayNode(IntegerNode(), min_items=min_items, max_items=max_items)))
        grammar = generate_grammar(schema)

        assert rule(grammar, "root-numbers-item") == INTEGER_EXPRESSION
        assert rule(grammar, "root-numbers-kv") == rf'"\"Numbers\"" space ":" space "[" space {inner} "]" space'

    def test_empty_array(self):
        """Test that max_items of zero only admits []."""
        grammar = generate_grammar(object_with(Field("None", ArrayNode(IntegerNode(), max_items=0))))

        assert rule(grammar, "root-none-kv").endswith('space "[" space "]" space')

    def test_default_item_settings(self):
        """Test that unbounded arrays use the item defaults."""
        settings = GrammarSettings(default_min_items=1, default_max_items=4)
        grammar = generate_grammar(object_with(Field("N", ArrayNode(IntegerNode()))), settings)

        assert '{0,3}' in rule(grammar, "root-n-kv")

    def test_inverted_bounds_clamped(self, caplog):
        """Test that min_items above max_items is clamped by default."""
        schema = object_with(Field("N", ArrayNode(IntegerNode(), min_items=5, max_items=2)))

        with caplog.at_level(logging.WARNING, logger="struct_grammar.compiler.gbnf"):
            grammar = generate_grammar(schema)

        assert rule(grammar, "root-n-kv").endswith(
            '"[" space root-n-item ("," space root-n-item){1} "]" space'
        )
        assert "min_items 5 exceeds max_items 2" in caplog.text

    def test_inverted_bounds_raise_without_clamping(self):
        """Test that min_items above max_items raises when clamping is off."""
        schema = object_with(Field("N", ArrayNode(IntegerNode(), min_items=5, max_items=2)))

        with pytest.raises(SchemaError, match="min_items 5 exceeds max_items 2"):
            generate_grammar(schema, GrammarSettings(clamp_array_bounds=False))

    def test_array_of_objects(self):
        """Test that object elements get a named item rule with nested field rules."""
        line = ObjectNode("Line", [Field("Sku", StringNode())])
        grammar = generate_grammar(object_with(Field("Lines", ArrayNode(line, max_items=2))))

        assert rule(grammar, "root-lines-item") == '"{" space root-lines-item-sku-kv "}" space'
        assert "root-lines-item-sku-kv" in dict(rules_of(grammar))

    def test_nested_arrays(self):
        """Test item rules for arrays of arrays."""
        grammar = generate_grammar(object_with(Field("Grid", ArrayNode(ArrayNode(IntegerNode(), max_items=2)))))

        assert rule(grammar, "root-grid-item-item") == INTEGER_EXPRESSION
        assert rule(grammar, "root-grid-item").startswith('"[" space (root-grid-item-item')

    def test_array_of_allowed_values(self):
        """Test that restricted string items are compiled under the item path."""
        grammar = generate_grammar(object_with(Field("Tags", ArrayNode(StringNode(allowed_values=["a", "b"])))))

        assert rule(grammar, "root-tags-item") == r'("\"a\""|"\"b\"") space'


class TestObjects:
    """Test object compilation and rule naming."""

    def test_field_order_preserved(self, order):
        """Test that field rules appear in the root body in declared order."""
        body = rule(generate_grammar(order), "root")
        positions = [body.index(f"root-{name}-kv") for name in
                     ["id", "customer", "status", "channel", "lines", "tags", "placed", "paid"]]

        assert positions == sorted(positions)

    def test_nested_object(self):
        """Test nested object paths."""
        inner = ObjectNode("Address", [Field("City", StringNode())])
        grammar = generate_grammar(object_with(Field("Address", inner)))

        assert rule(grammar, "root-address-kv") == (
            r'"\"Address\"" space ":" space "{" space root-address-city-kv "}" space'
        )

    def test_empty_object(self):
        """Test that an empty object only admits {}."""
        grammar = generate_grammar(ObjectNode("Empty", []))

        assert rule(grammar, "root") == '"{" space "}" space'

    def test_segment_sanitizing(self):
        """Test that field names are lowercased and unsafe characters replaced."""
        grammar = generate_grammar(object_with(Field("Order Date!", IntegerNode()), Field("__", IntegerNode())))
        names = [name for name, _ in rules_of(grammar)]

        assert "root-order-date-kv" in names
        assert "root-field-kv" in names

    def test_colliding_segments(self):
        """Test that fields with the same segment get distinct rules."""
        grammar = generate_grammar(
            object_with(
                Field("First Name", StringNode(allowed_values=["a"])),
                Field("first-name", StringNode(allowed_values=["b"])),
                Field("FIRST_NAME", StringNode(allowed_values=["c"])),
            )
        )

        assert rule(grammar, "root-first-name") == r'("\"a\"") space'
        assert rule(grammar, "root-first-name-2") == r'("\"b\"") space'
        assert rule(grammar, "root-first-name-3") == r'("\"c\"") space'
        assert rule(grammar, "root") == (
            '"{" space root-first-name-kv "," space root-first-name-2-kv "," space root-first-name-3-kv "}" space'
        )

    def test_segment_colliding_with_kv_rule(self):
        """Test a field whose segment equals a sibling's kv rule name."""
        grammar = generate_grammar(
            object_with(
                Field("a", StringNode(allowed_values=["x"])),
                Field("a-kv", StringNode(allowed_values=["y"])),
            )
        )

        assert rule(grammar, "root-a") == r'("\"x\"") space'
        assert rule(grammar, "root-a-kv-2") == r'("\"y\"") space'
        assert rule(grammar, "root-a-kv-2-kv").startswith(r'"\"a-kv\""')

    def test_root_rule_is_last(self, order):
        """Test that root is emitted after the rules it references."""
        names = [name for name, _ in rules_of(generate_grammar(order))]

        assert names[:2] == ["char", "space"]
        assert names[-1] == "root"

    def test_non_object_root(self):
        """Test that a non-object root still produces a root rule."""
        assert rule(generate_grammar(IntegerNode()), "root") == INTEGER_EXPRESSION
        assert rule(generate_grammar(StringNode(allowed_values=["y", "n"])), "root") == r'("\"y\""|"\"n\"") space'

    def test_unknown_node_raises(self):
        """Test that unknown node types are a TypeError."""
        class Mystery(SchemaNode):
            pass

        with pytest.raises(TypeError, match="Mystery"):
            generate_grammar(object_with(Field("M", Mystery())))


class TestGrammarProperties:
    """Test properties that hold for every grammar."""

    @pytest.fixture(params=[False, True], ids=["plain", "thinking"])
    def settings(self, request):
        return GrammarSettings(include_thinking=request.param)

    def test_deterministic(self, order, settings):
        """Test that repeated compilation gives identical text."""
        compiler = GrammarCompiler(settings)

        assert compiler.generate(order) == compiler.generate(order)
        assert compiler.generate(order) == generate_grammar(order, settings)

    def test_rule_names_unique(self, order, settings):
        """Test that no rule is defined twice."""
        names = [name for name, _ in rules_of(generate_grammar(order, settings))]

        assert len(names) == len(set(names))

    def test_references_resolve(self, order, settings):
        """Test that every referenced rule is defined."""
        rules = dict(rules_of(generate_grammar(order, settings)))

        for name, body in rules.items():
            missing = references(body) - set(rules)
            assert not missing, f"{name} references undefined {missing}"

    def test_entry_rule_defined(self, order, settings):
        """Test that the reported entry rule exists."""
        rules = dict(rules_of(generate_grammar(order, settings)))

        assert settings.entry_rule in rules

    def test_every_value_ends_with_space(self, order):
        """Test that every kv rule ends by consuming trailing whitespace."""
        rules = dict(rules_of(generate_grammar(order)))

        for name, body in rules.items():
            if name.endswith("-kv"):
                value = body.split('":" space ', 1)[1]
                assert value.endswith("space") or value in rules, name
