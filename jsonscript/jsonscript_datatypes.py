
"""
Defines the core data types for the jsonscript runtime.

This module provides the error hierarchy, the prototype-chained variable
scope, the parsed path representation and the runtime values (closures,
raw literals, execution contexts) the interpreter works with.
"""

import re
import functools
from abc import ABC
from dataclasses import dataclass, replace
from typing import List, Dict, Any, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from jsonscript.jsonscript_interpreter import Evaluator


# =================================================================
# Errors
# =================================================================

class ScriptError(Exception):
    """Base class for every error raised while evaluating a script.

    Attributes:
        script_obj: the offending expression, path or value, if known.
        script_stack: snapshot of the call stack when the error escaped a call.
    """
    def __init__(self, message: str, script_obj: Any = None):
        super().__init__(message)
        self.script_obj = script_obj
        self.script_stack: Optional[List[Dict[str, Any]]] = None


class UnknownCommand(ScriptError):
    """The leading tag of an expression is not a known command."""


class TypeMismatch(ScriptError):
    """A value of the wrong type was found where the grammar requires another."""


class InvocationError(ScriptError):
    """A call target does not resolve to something callable."""


class ScriptSyntaxError(ScriptError):
    """An expression has missing or surplus parameters."""


class PathSyntaxError(ScriptError):
    """A path string is malformed or names an unsupported receiver."""


# =================================================================
# Abstract Base Classes
# =================================================================

class ScriptCallable(ABC):
    """Abstract base class for callables created by scripts."""
    pass


class PathSegment(ABC):
    """Abstract base class for all components of a Path."""
    pass


# =================================================================
# Core Runtime Types
# =================================================================

class Scope:
    """A variable scope with a prototype parent.

    Lookups walk the chain parent-ward on a miss; writes always land in this
    scope's own bindings and never touch a parent. The root scope of an
    execution wraps the host's variables dict directly, so writes made by a
    script are visible to the host afterwards.
    """
    def __init__(self, parent: Optional['Scope'] = None, bindings: Optional[Dict[str, Any]] = None):
        self.bindings: Dict[str, Any] = bindings if bindings is not None else {}
        self._parent = parent

    def __setitem__(self, key: str, value: Any):
        if not isinstance(key, str):
            raise TypeError(f"Scope key must be a str, not {type(key)}")
        self.bindings[key] = value

    def __getitem__(self, key: str) -> Any:
        owner = self.find_owner(key)
        if owner is not None:
            return owner.bindings[key]
        raise KeyError(f"'{key}'")

    def __delitem__(self, key: str):
        if key not in self.bindings:
            raise KeyError(f"'{key}'")
        del self.bindings[key]

    def __contains__(self, key: Any) -> bool:
        """Checks if a key exists in this Scope or its parents."""
        if isinstance(key, str):
            return self.find_owner(key) is not None
        return False

    def find_owner(self, key: str) -> Optional['Scope']:
        """Finds the Scope in the lookup chain that owns key."""
        scope = self
        while scope is not None:
            if key in scope.bindings:
                return scope
            scope = scope._parent
        return None

    def get(self, key: str, default: Any = None) -> Any:
        """Gets a value, returning a default if not found."""
        owner = self.find_owner(key)
        if owner is not None:
            return owner.bindings[key]
        return default

    @property
    def parent(self) -> Optional['Scope']:
        """Returns the parent scope."""
        return self._parent

    def keys(self):
        """Returns a view of keys in the current scope only."""
        return self.bindings.keys()

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        parent_id = f", parent=#{id(self.parent)}" if self.parent else ""
        return f"<Scope bindings=[{keys}]{parent_id}>"


class RawValue:
    """Marks a payload as literal data inside a script.

    Lists in a script are always code. Wrapping one in RawValue makes it an
    opaque literal wherever a value source is read (call arguments and the
    value of a set).
    """
    __slots__ = ("payload",)

    def __init__(self, payload: Any):
        self.payload = payload

    def __repr__(self) -> str:
        return f"RawValue({self.payload!r})"

    def __eq__(self, other):
        return isinstance(other, RawValue) and self.payload == other.payload


def is_raw_value(value: Any) -> bool:
    """True when value must be used verbatim instead of being evaluated."""
    return isinstance(value, RawValue) or not isinstance(value, list)


def unwrap_raw(value: Any) -> Any:
    return value.payload if isinstance(value, RawValue) else value


@dataclass
class ExecutionContext:
    """The evaluator's working state for one sequence of expressions."""
    this: Any
    variables: Scope
    last_value: Any = None

    def derive(self, **changes) -> 'ExecutionContext':
        """Returns a copy with some fields replaced; self is left untouched."""
        return replace(self, **changes)


class ScriptFunction(ScriptCallable):
    """A closure created by the `lambda` command.

    Bundles the parameter names, the body script and the context in which the
    lambda was defined. Instances are ordinary Python callables so they can be
    handed to host APIs as callbacks.
    """
    def __init__(self, params: List[str], body: Any, closure: ExecutionContext, evaluator: 'Evaluator'):
        self.params = params
        self.body = body
        self.closure = closure
        self.evaluator = evaluator

    def __call__(self, *args: Any) -> Any:
        call_scope = Scope(parent=self.closure.variables)
        for index, name in enumerate(self.params):
            call_scope[name] = args[index] if index < len(args) else None
        return self.evaluator.eval(self.body, self.closure.derive(variables=call_scope))

    def __repr__(self) -> str:
        from jsonscript.jsonscript_printer import Printer
        return Printer().pformat(self)

    def __eq__(self, other):
        if not isinstance(other, ScriptFunction):
            return NotImplemented
        # NOTE: closure comparison is intentionally omitted.
        return self.params == other.params and self.body == other.body

    __hash__ = object.__hash__


# =================================================================
# Path and Segment Types
# =================================================================

class Name(PathSegment):
    """A name segment in a path, e.g., 'user' in `user.name`."""
    def __init__(self, text: str):
        self.text = text

    @property
    def key(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Name<{self.text!r}>"

    def __eq__(self, other):
        return isinstance(other, Name) and self.text == other.text

    def __hash__(self):
        return hash(self.text)


class Index(PathSegment):
    """An index segment in a path, e.g., `[0]` or `.0`."""
    def __init__(self, value: int):
        self.value = value

    @property
    def key(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"Index({self.value!r})"

    def __eq__(self, other):
        return isinstance(other, Index) and self.value == other.value

    def __hash__(self):
        return hash(("index", self.value))


class _RootSelector:
    """Internal helper class for the stateless root selectors of a path."""
    def __init__(self, name):
        self._name = name
    def __repr__(self):
        return f"{self._name.capitalize()}<>"

# Singleton instances for the objects a path can start from
This = _RootSelector("this")
LastValue = _RootSelector("last-value")
Variables = _RootSelector("variables")


class Path:
    """A parsed path: a root selector plus the segments below it."""
    def __init__(self, root: _RootSelector, segments: Tuple[PathSegment, ...], text: str):
        self.root = root
        self.segments = tuple(segments)
        self.text = text

    def parent(self) -> Optional['Path']:
        """The path with its last segment removed, or None for a bare name or root."""
        if not self.segments:
            return None
        if self.root is Variables and len(self.segments) == 1:
            return None
        return Path(self.root, self.segments[:-1], self.text)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"<Path root={self.root!r} segments={list(self.segments)!r}>"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self.root is other.root and self.segments == other.segments

    def __hash__(self) -> int:
        return hash((id(self.root), self.segments))


_NAME_RE = re.compile(r"[^.\[\]]+")
_BRACKET_RE = re.compile(
    r"""\[(?:
        (?P<quote>["'])(?P<quoted>(?:\\.|(?!(?P=quote)).)*)(?P=quote)
      | (?P<bare>[^\]"']+)
    )\]""",
    re.VERBOSE,
)


def _segment_for(text: str) -> PathSegment:
    if text.isdigit():
        return Index(int(text))
    return Name(text)


@functools.lru_cache(maxsize=1024)
def parse_path(text: str) -> Path:
    """Parses a dotted/bracketed path string such as `this.items[0]["a.b"]`.

    A first segment of exactly `this` selects the context object and exactly
    `$` selects the last value; any other path starts from the variables.
    """
    if not isinstance(text, str) or not text:
        raise PathSyntaxError(f"Invalid path: {text!r}", text)
    segments: List[PathSegment] = []
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch == '.':
            m = _NAME_RE.match(text, pos + 1) if pos > 0 else None
            if not m:
                raise PathSyntaxError(f"Invalid path: {text!r} (empty name at offset {pos})", text)
            segments.append(_segment_for(m.group()))
            pos = m.end()
        elif ch == '[':
            m = _BRACKET_RE.match(text, pos)
            if not m:
                raise PathSyntaxError(f"Invalid path: {text!r} (bad bracket at offset {pos})", text)
            if m.group('quote'):
                segments.append(Name(re.sub(r"\\(.)", r"\1", m.group('quoted'))))
            else:
                segments.append(_segment_for(m.group('bare').strip()))
            pos = m.end()
        else:
            m = _NAME_RE.match(text, pos)
            if pos != 0 or not m:
                raise PathSyntaxError(f"Invalid path: {text!r} (unexpected {ch!r} at offset {pos})", text)
            segments.append(_segment_for(m.group()))
            pos = m.end()

    first = segments[0]
    if isinstance(first, Name) and text[0] != '[':
        if first.text == 'this':
            return Path(This, tuple(segments[1:]), text)
        if first.text == '$':
            return Path(LastValue, tuple(segments[1:]), text)
    return Path(Variables, tuple(segments), text)
