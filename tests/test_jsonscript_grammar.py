import pytest

from jsonscript.jsonscript_grammar import (
    Call, Get, Lambda, Set, Value, COMMAND_NAMES,
    parse_expression, normalize_script, is_single_expression
)
from jsonscript.jsonscript_datatypes import (
    UnknownCommand, TypeMismatch, ScriptSyntaxError, RawValue
)


def test_command_vocabulary():
    assert COMMAND_NAMES == ("call", "get", "lambda", "set", "value")


@pytest.mark.parametrize(
    "expression,expected",
    [
        (["call", "f"], Call("f", [])),
        (["call", "f", [1, ["get", "a"]]], Call("f", [1, ["get", "a"]])),
        (["call", ["get", "name"]], Call(["get", "name"], [])),
        (["get", "a.b"], Get("a.b")),
        (["get", ["get", "this.a"]], Get(["get", "this.a"])),
        (["lambda", ["x"], ["get", "x"]], Lambda(["x"], ["get", "x"])),
        (["set", "a", 1], Set("a", 1)),
        (["set", "a"], Set("a", None)),
        (["value", [1, 2]], Value([1, 2])),
        (["value"], Value(None)),
    ],
)
def test_parse_expression(expression, expected):
    assert parse_expression(expression) == expected


@pytest.mark.parametrize("expression", [["eval", "x"], ["CALL", "f"], [1, 2], [None]])
def test_unknown_command(expression):
    with pytest.raises(UnknownCommand):
        parse_expression(expression)


@pytest.mark.parametrize(
    "expression",
    [
        ["get"],
        ["get", "a", "b"],
        ["call"],
        ["call", "f", [], "extra"],
        ["lambda", ["x"]],
        ["set"],
        ["value", 1, 2],
    ],
)
def test_wrong_arity(expression):
    with pytest.raises(ScriptSyntaxError):
        parse_expression(expression)


@pytest.mark.parametrize(
    "expression",
    [
        ["call", "f", "not-a-list"],
        ["call", "f", RawValue([1])],
        ["lambda", ["x", 1], []],
        ["set", ["get", "name"], 1],
        [],
        "get",
    ],
)
def test_type_mismatch(expression):
    with pytest.raises(TypeMismatch):
        parse_expression(expression)


def test_single_expression_detection():
    assert is_single_expression(["get", "a"])
    assert not is_single_expression([["get", "a"]])
    assert not is_single_expression([])


def test_normalize_script():
    single = ["get", "a"]
    assert normalize_script(single) == [single]
    many = [["get", "a"], ["get", "b"]]
    assert normalize_script(many) is many
    assert normalize_script([]) == []
    with pytest.raises(TypeMismatch):
        normalize_script("get")
