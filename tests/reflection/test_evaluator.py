"""Tests for the literal decoders and operators used by the expression evaluator."""

from __future__ import annotations

import pytest

from blueprint.errors import ValueResolutionError
from blueprint.reflection.evaluator import binary_operation, decode_heredoc, decode_string_literal, parse_integer
from blueprint.reflection.names import NameScope, parse_native_type, split_name_list
from blueprint.values import PhpValue, to_plain


@pytest.mark.parametrize(
    ("literal", "expected"),
    [
        ("42", 42),
        ("1_000", 1000),
        ("0x1F", 31),
        ("0b101", 5),
        ("0o17", 15),
        ("0755", 493),
        ("0", 0),
        ("9223372036854775808", 9.223372036854776e18),
    ],
)
def test_parse_integer(literal: str, expected: float) -> None:
    assert parse_integer(literal) == expected


def test_parse_integer_rejects_garbage() -> None:
    with pytest.raises(ValueResolutionError):
        parse_integer("0x")


@pytest.mark.parametrize(
    ("literal", "expected"),
    [
        ("'plain'", "plain"),
        ("'it\\'s \\\\ \\n'", "it's \\ \\n"),
        ('"line\\nbreak"', "line\nbreak"),
        ('"quote \\" here"', 'quote " here'),
        ('"\\x41\\101\\u{1F600}"', "AA\U0001F600"),
        ('"cost: \\$5"', "cost: $5"),
        ('"lone $ sign"', "lone $ sign"),
        ("b'bytes'", "bytes"),
    ],
)
def test_decode_string_literal(literal: str, expected: str) -> None:
    assert decode_string_literal(literal) == expected


@pytest.mark.parametrize("literal", ['"Hello $name"', '"Hi {$user->name}"', "'unterminated"])
def test_non_constant_strings_raise(literal: str) -> None:
    with pytest.raises(ValueResolutionError):
        decode_string_literal(literal)


def test_decode_heredoc_strips_closing_indentation() -> None:
    literal = "<<<EOT\n    first\n      second\n    EOT"

    assert decode_heredoc(literal) == "first\n  second"


def test_decode_nowdoc_keeps_escapes() -> None:
    assert decode_heredoc("<<<'EOT'\nraw \\t\nEOT") == "raw \\t"


@pytest.mark.parametrize(
    ("operator", "left", "right", "expected"),
    [
        (".", PhpValue.of_string("a"), PhpValue.of_number(1), "a1"),
        ("+", PhpValue.of_number(2), PhpValue.of_string("3"), 5),
        ("/", PhpValue.of_number(6), PhpValue.of_number(3), 2),
        ("/", PhpValue.of_number(7), PhpValue.of_number(2), 3.5),
        ("%", PhpValue.of_number(-7), PhpValue.of_number(3), -1),
        ("**", PhpValue.of_number(2), PhpValue.of_number(10), 1024),
        ("<<", PhpValue.of_number(1), PhpValue.of_number(4), 16),
        ("|", PhpValue.of_number(8), PhpValue.of_number(1), 9),
        ("===", PhpValue.of_number(1), PhpValue.of_string("1"), False),
        ("==", PhpValue.of_number(1), PhpValue.of_string("1"), True),
        ("<=>", PhpValue.of_number(1), PhpValue.of_number(5), -1),
        ("xor", PhpValue.of_bool(True), PhpValue.of_bool(True), False),
    ],
)
def test_binary_operation(operator: str, left: PhpValue, right: PhpValue, expected: object) -> None:
    assert to_plain(binary_operation(operator, left, right)) == expected


def test_array_union_keeps_left_keys() -> None:
    left = PhpValue.of_array([(0, PhpValue.of_string("a")), ("k", PhpValue.of_string("left"))])
    right = PhpValue.of_array([("k", PhpValue.of_string("right")), (1, PhpValue.of_string("b"))])

    assert to_plain(binary_operation("+", left, right)) == {0: "a", "k": "left", 1: "b"}


def test_division_by_zero_is_unresolvable() -> None:
    with pytest.raises(ValueResolutionError):
        binary_operation("/", PhpValue.of_number(1), PhpValue.of_number(0))


def test_name_scope_resolution() -> None:
    scope = NameScope(namespace="App\\Http")
    scope.add_use_declaration("use App\\Contracts\\{Handler, Middleware as Mw};")
    scope.add_use_declaration("use function App\\helper;")
    scope.add_use_declaration("use Psr\\Log\\LoggerInterface;")

    assert scope.resolve_class("Handler") == "App\\Contracts\\Handler"
    assert scope.resolve_class("mw") == "App\\Contracts\\Middleware"
    assert scope.resolve_class("LoggerInterface\\Nested") == "Psr\\Log\\LoggerInterface\\Nested"
    assert scope.resolve_class("helper") == "App\\Http\\helper"
    assert scope.resolve_class("\\Exception") == "Exception"
    assert scope.resolve_class("namespace\\Local") == "App\\Http\\Local"
    assert scope.resolve_class("Self") == "self"


def test_split_name_list() -> None:
    assert split_name_list("implements A, \\B\\C /* note */") == ["A", "\\B\\C"]
    assert split_name_list("use First, Second { First::run insteadof Second; }") == ["First", "Second"]


def test_parse_native_type_shapes() -> None:
    scope = NameScope(namespace="App")

    assert parse_native_type("?Foo", scope).name == "App\\Foo"
    union = parse_native_type("int | string | null", scope)
    assert [member.name for member in union.members] == ["int", "string", "null"]
    dnf = parse_native_type("(A&B)|null", scope)
    assert dnf.members[0].kind == "intersection"
    assert [member.name for member in dnf.members[0].members] == ["App\\A", "App\\B"]
    assert parse_native_type("", scope) is None


@pytest.mark.parametrize(
    ("operator", "left", "right", "expected"),
    [
        ("**", PhpValue.of_number(1.5), PhpValue.of_number(2000), "INF"),
        ("**", PhpValue.of_number(-10.0), PhpValue.of_number(401), "-INF"),
        ("**", PhpValue.of_number(2), PhpValue.of_number(64), 1.8446744073709552e19),
        ("**", PhpValue.of_number(2), PhpValue.of_number(10**10), "INF"),
        ("**", PhpValue.of_number(-1), PhpValue.of_number(10**10), 1),
        ("**", PhpValue.of_number(0), PhpValue.of_number(-1), "INF"),
        ("**", PhpValue.of_number(-8), PhpValue.of_number(0.5), "NAN"),
        ("+", PhpValue.of_number(9223372036854775807), PhpValue.of_number(1), 9.223372036854776e18),
        ("*", PhpValue.of_number(9223372036854775807), PhpValue.of_number(2), 1.8446744073709552e19),
        ("<<", PhpValue.of_number(1), PhpValue.of_number(63), -9223372036854775808),
        ("<<", PhpValue.of_number(1), PhpValue.of_number(10**10), 0),
        (">>", PhpValue.of_number(-8), PhpValue.of_number(10**10), -1),
    ],
)
def test_integer_overflow_follows_php(operator: str, left: PhpValue, right: PhpValue, expected: object) -> None:
    assert to_plain(binary_operation(operator, left, right)) == expected


@pytest.mark.parametrize(
    ("operator", "left", "right"),
    [
        ("%", PhpValue.of_number(float("inf")), PhpValue.of_number(2)),
        ("%", PhpValue.of_number(5), PhpValue.of_number(float("nan"))),
        ("|", PhpValue.of_number(float("-inf")), PhpValue.of_number(1)),
        ("&", PhpValue.of_number(1e300), PhpValue.of_number(1)),
    ],
)
def test_non_finite_integer_operands_are_unresolvable(operator: str, left: PhpValue, right: PhpValue) -> None:
    with pytest.raises(ValueResolutionError):
        binary_operation(operator, left, right)


def test_huge_integer_literal_becomes_infinite_float() -> None:
    assert parse_integer("1" + "0" * 400) == float("inf")
