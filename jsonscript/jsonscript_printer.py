"""
A pretty-printer for jsonscript scripts and runtime values.
"""
import collections.abc
import json

from jsonscript.jsonscript_datatypes import (
    Scope, RawValue, ScriptFunction, Path, Name, Index, This, LastValue, Variables
)


class Printer:
    """Formats scripts and values as compact, JSON-like text."""

    def __init__(self, indent_width=2):
        self._indent_char = " " * indent_width
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        if obj is This or obj is LastValue or obj is Variables:
            return lambda o, l: repr(o)
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, str): return self._pformat_str
        if isinstance(obj, collections.abc.Mapping): return self._pformat_dict
        if isinstance(obj, (list, tuple)): return self._pformat_list
        if callable(obj): return self._pformat_callable
        return lambda o, l: repr(o)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_primitive,
            float: self._pformat_primitive,
            bool: self._pformat_bool,
            type(None): self._pformat_none,
            list: self._pformat_list,
            tuple: self._pformat_list,
            dict: self._pformat_dict,
            Scope: self._pformat_scope,
            RawValue: self._pformat_raw,
            ScriptFunction: self._pformat_script_function,
            Path: self._pformat_path,
            Name: lambda o, l: o.text,
            Index: lambda o, l: f"[{o.value}]",
        }

    def _pformat_primitive(self, obj, level):
        return str(obj)

    def _pformat_str(self, obj, level):
        return json.dumps(str(obj), ensure_ascii=False)

    def _pformat_bool(self, obj, level):
        return 'true' if obj else 'false'

    def _pformat_none(self, obj, level):
        return 'null'

    def _is_multi_expression_script(self, obj):
        return len(obj) > 1 and all(isinstance(x, list) and x and isinstance(x[0], str) for x in obj)

    def _pformat_list(self, obj, level):
        if self._is_multi_expression_script(obj):
            return self._pformat_block(obj, level)
        return "[" + ", ".join(self.pformat(item, level) for item in obj) + "]"

    def _pformat_block(self, nodes, level):
        outer_indent = self._indent_char * level
        inner_indent = self._indent_char * (level + 1)
        lines = [inner_indent + self.pformat(node, level + 1) for node in nodes]
        return "[\n" + ",\n".join(lines) + f"\n{outer_indent}]"

    def _pformat_dict(self, obj, level):
        items = ", ".join(f"{self.pformat(str(k), level)}: {self.pformat(v, level)}" for k, v in obj.items())
        return "{" + items + "}"

    def _pformat_scope(self, obj, level):
        keys = ", ".join(obj.keys())
        return f"<scope {keys}>" if keys else "<scope>"

    def _pformat_raw(self, obj, level):
        return f"raw {self.pformat(obj.payload, level)}"

    def _pformat_script_function(self, obj, level):
        return self.pformat(["lambda", list(obj.params), obj.body], level)

    def _pformat_path(self, obj, level):
        return obj.text

    def _pformat_callable(self, obj, level):
        name = getattr(obj, '__qualname__', None) or getattr(obj, '__name__', None)
        if isinstance(name, str) and name:
            return f"<function {name}>"
        return f"<callable {type(obj).__name__}>"
