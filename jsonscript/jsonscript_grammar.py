"""
The jsonscript grammar.

A script is plain data: either a single expression or a list of expressions.
An expression is a list whose first element names a command:

    ["call", target, args?]     invoke a function or method
    ["get", target]             read a value by path
    ["lambda", params, body]    build a closure
    ["set", receiver, source]   assign a value by path
    ["value", payload]          return payload without interpreting it

This module turns those lists into command objects the evaluator matches on.
"""
from dataclasses import dataclass, field
from typing import Any, List, Union

from jsonscript.jsonscript_datatypes import (
    UnknownCommand, TypeMismatch, ScriptSyntaxError, RawValue
)
from jsonscript.jsonscript_printer import Printer

COMMAND_NAMES = ("call", "get", "lambda", "set", "value")

# Type aliases describing the data shapes. They document intent only; scripts
# arrive as decoded JSON and are checked at evaluation time.
Expression = List[Any]
Script = Union[Expression, List[Expression]]


@dataclass
class Call:
    """Invoke a function. `target` is a path string or an expression
    returning a path string or a callable."""
    target: Any
    args: List[Any] = field(default_factory=list)


@dataclass
class Get:
    """Read a value. `target` is a path string or a script returning one."""
    target: Any


@dataclass
class Lambda:
    """Build a function from parameter names and a body script."""
    params: List[str]
    body: Any


@dataclass
class Set:
    """Assign to `receiver` (a path string) the value of `source`."""
    receiver: str
    source: Any = None


@dataclass
class Value:
    """Return `payload` untouched."""
    payload: Any = None


Command = Union[Call, Get, Lambda, Set, Value]


def _arity(expression: Expression, params: list, required: int, optional: int = 0):
    tag = expression[0]
    if len(params) < required:
        raise ScriptSyntaxError(
            f"{tag} expects at least {required} parameter(s), got {len(params)}: {Printer().pformat(expression)}",
            expression,
        )
    if len(params) > required + optional:
        raise ScriptSyntaxError(
            f"{tag} expects at most {required + optional} parameter(s), got {len(params)}: {Printer().pformat(expression)}",
            expression,
        )


def parse_expression(expression: Expression) -> Command:
    """Converts one expression list into its command object."""
    if not isinstance(expression, list) or not expression:
        raise TypeMismatch(f"Expected an expression, got {Printer().pformat(expression)}", expression)
    tag, *params = expression
    match tag:
        case "call":
            _arity(expression, params, 1, 1)
            args = params[1] if len(params) > 1 else []
            if isinstance(args, RawValue) or not isinstance(args, list):
                raise TypeMismatch(f"call arguments must be a list: {Printer().pformat(expression)}", expression)
            return Call(params[0], args)
        case "get":
            _arity(expression, params, 1)
            return Get(params[0])
        case "lambda":
            _arity(expression, params, 2)
            names = params[0]
            if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
                raise TypeMismatch(f"lambda parameters must be a list of names: {Printer().pformat(expression)}", expression)
            return Lambda(names, params[1])
        case "set":
            _arity(expression, params, 1, 1)
            if not isinstance(params[0], str):
                raise TypeMismatch(f"set receiver must be a path string: {Printer().pformat(expression)}", expression)
            return Set(*params)
        case "value":
            _arity(expression, params, 0, 1)
            return Value(*params)
        case _:
            raise UnknownCommand(f"Unknown command {Printer().pformat(tag)} in {Printer().pformat(expression)}", expression)


def is_single_expression(script: Script) -> bool:
    """A non-empty list whose head is not a list is one expression."""
    return bool(script) and not isinstance(script[0], list)


def normalize_script(script: Script) -> List[Expression]:
    """Returns the script as an ordered list of expressions."""
    if not isinstance(script, list):
        raise TypeMismatch(f"Expected a script, got {Printer().pformat(script)}", script)
    return [script] if is_single_expression(script) else script
