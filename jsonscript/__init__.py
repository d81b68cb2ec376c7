"""An interpreter for S-expression scripts stored as JSON data."""

from jsonscript.jsonscript_datatypes import (
    ScriptError, UnknownCommand, TypeMismatch, InvocationError, ScriptSyntaxError, PathSyntaxError,
    Scope, RawValue, ExecutionContext, ScriptFunction, Path, parse_path,
)
from jsonscript.jsonscript_interpreter import Evaluator, execute
from jsonscript.jsonscript_runtime import ScriptRunner, ExecutionResult, script_api_method

__all__ = [
    "execute", "Evaluator", "ScriptRunner", "ExecutionResult", "script_api_method",
    "ScriptError", "UnknownCommand", "TypeMismatch", "InvocationError",
    "ScriptSyntaxError", "PathSyntaxError",
    "Scope", "RawValue", "ExecutionContext", "ScriptFunction", "Path", "parse_path",
]
