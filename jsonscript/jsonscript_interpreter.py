"""
The core jsonscript interpreter, containing the Evaluator and PathResolver.
"""
import collections.abc
import inspect
import os
import sys
from typing import Any, Dict, List, Optional

from jsonscript.jsonscript_datatypes import (
    Scope, ExecutionContext, ScriptFunction, Path, PathSegment, Index,
    This, LastValue, parse_path, is_raw_value, unwrap_raw,
    TypeMismatch, InvocationError, PathSyntaxError
)
from jsonscript.jsonscript_grammar import (
    Call, Get, Lambda, Set, Value, Script, parse_expression, normalize_script
)
from jsonscript.jsonscript_printer import Printer

# Values that are replaced, not descended into, when a write path runs through them
_SCALARS = (str, bytes, int, float, bool)


class PathResolver:
    """Handles all path traversal and assignment logic."""
    def __init__(self, evaluator: 'Evaluator'):
        self.evaluator = evaluator

    def _root_value(self, path: Path, ctx: ExecutionContext) -> Any:
        if path.root is This:
            return ctx.this
        if path.root is LastValue:
            return ctx.last_value
        return ctx.variables

    def _read_field(self, container: Any, segment: PathSegment) -> Any:
        """Reads one segment below container. A miss yields None."""
        key = segment.key
        if isinstance(container, Scope):
            return container.get(str(key))
        if isinstance(container, collections.abc.Mapping):
            if key in container:
                return container[key]
            if isinstance(segment, Index):
                return container.get(str(key))
            return None
        if isinstance(segment, Index):
            if isinstance(container, (collections.abc.Sequence, str)):
                return container[key] if key < len(container) else None
            try:
                return container[key]
            except (LookupError, TypeError):
                return None
        # Attribute access on host objects; private names stay hidden.
        if key.startswith('_'):
            return None
        return getattr(container, key, None)

    def _write_field(self, owner: Any, segment: PathSegment, new_val: Any):
        key = segment.key
        if isinstance(owner, Scope):
            owner[str(key)] = new_val
            return
        if isinstance(owner, collections.abc.MutableMapping):
            if isinstance(segment, Index) and key not in owner:
                key = str(key)
            owner[key] = new_val
            return
        if isinstance(owner, list):
            if not isinstance(segment, Index):
                raise TypeMismatch(f"Cannot set field {key!r} on a list", segment)
            if key >= len(owner):
                owner.extend([None] * (key + 1 - len(owner)))
            owner[key] = new_val
            return
        if owner is None or isinstance(owner, _SCALARS):
            raise TypeMismatch(f"Cannot set {key!r} on {Printer().pformat(owner)}", owner)
        if isinstance(segment, Index):
            try:
                owner[key] = new_val
            except TypeError as e:
                raise TypeMismatch(f"Cannot set index {key} on {type(owner).__name__}: {e}", owner) from e
            return
        if key.startswith('_'):
            raise TypeMismatch(f"Cannot set private attribute {key!r}", owner)
        setattr(owner, key, new_val)

    def get(self, path: Path, ctx: ExecutionContext) -> Any:
        """Resolves a path to its value; missing paths resolve to None."""
        container = self._root_value(path, ctx)
        for segment in path.segments:
            if container is None:
                return None
            container = self._read_field(container, segment)
        return container

    def set(self, path: Path, value: Any, ctx: ExecutionContext):
        """Writes value at path, creating intermediate containers as needed."""
        if path.root is LastValue:
            raise PathSyntaxError(f"Cannot assign to the last value: {path.text!r}", path)
        if not path.segments:
            raise PathSyntaxError(f"Cannot assign to the bare context object: {path.text!r}", path)
        container = self._root_value(path, ctx)
        if container is None:
            raise TypeMismatch(f"Cannot assign {path.text!r}: the context object is null", path)

        segments = path.segments
        for segment, next_segment in zip(segments, segments[1:]):
            child = self._read_field(container, segment)
            if child is None or isinstance(child, _SCALARS):
                child = [] if isinstance(next_segment, Index) else {}
                self._write_field(container, segment, child)
            container = child
        self._write_field(container, segments[-1], value)


class Evaluator:
    """The jsonscript execution engine."""
    def __init__(self):
        self.path_resolver = PathResolver(self)
        self.call_stack: List[Dict[str, Any]] = []

    def _dbg(self, *parts):
        if os.environ.get("JSONSCRIPT_DEBUG"):
            try:
                print("[DBG]", *parts, file=sys.stderr)
            except Exception:
                pass

    def eval(self, script: Script, ctx: ExecutionContext) -> Any:
        """Evaluates a script left-to-right and returns the last value.

        Each expression's result becomes the `$` value seen by the next one.
        The sequence runs on its own copy of ctx, so a nested script never
        disturbs the last value of the sequence that contains it.
        """
        frame = ctx.derive()
        result = None
        for expression in normalize_script(script):
            result = self._eval_expression(expression, frame)
            frame.last_value = result
        return result

    def _eval_expression(self, expression: list, ctx: ExecutionContext) -> Any:
        command = parse_expression(expression)
        self._dbg("eval", type(command).__name__.lower(), "params", len(expression) - 1)
        match command:
            case Call(target=target, args=args):
                return self._eval_call(expression, target, args, ctx)
            case Get(target=target):
                return self._eval_get(expression, target, ctx)
            case Lambda(params=params, body=body):
                return ScriptFunction(params, body, ctx.derive(), self)
            case Set(receiver=receiver, source=source):
                value = self._eval_source(source, ctx)
                self.path_resolver.set(parse_path(receiver), value, ctx)
                return value
            case Value(payload=payload):
                return unwrap_raw(payload)

    def _eval_source(self, source: Any, ctx: ExecutionContext) -> Any:
        """Evaluates a value source unless it is a raw value."""
        if is_raw_value(source):
            return unwrap_raw(source)
        return self.eval(source, ctx)

    def _eval_get(self, expression: list, target: Any, ctx: ExecutionContext) -> Any:
        path_text = target if isinstance(target, str) else self.eval(target, ctx)
        if not isinstance(path_text, str):
            raise TypeMismatch(
                f"Expected string in get, got {type(path_text).__name__} from {Printer().pformat(target)}",
                expression,
            )
        return self.path_resolver.get(parse_path(path_text), ctx)

    def _eval_call(self, expression: list, target: Any, args: List[Any], ctx: ExecutionContext) -> Any:
        resolved = target if isinstance(target, str) else self.eval(target, ctx)
        receiver = ctx.this
        if isinstance(resolved, str):
            path = parse_path(resolved)
            name = path.text
            func = self.path_resolver.get(path, ctx)
            parent = path.parent()
            if parent is not None:
                receiver = self.path_resolver.get(parent, ctx)
        elif callable(resolved):
            func = resolved
            name = Printer().pformat(target)
        else:
            raise InvocationError(
                f"Call target {Printer().pformat(target)} evaluated to {Printer().pformat(resolved)}, "
                "expected a path string or a function",
                expression,
            )

        call_args = [self._eval_source(arg, ctx) for arg in args]
        if not callable(func):
            raise InvocationError(f"{name} is not a function (got {Printer().pformat(func)})", expression)
        return self.call(func, call_args, receiver, name=name)

    def _accepts_receiver(self, func: Any) -> bool:
        """True when func declares a keyword-only `this` parameter."""
        target = getattr(func, '__func__', func)
        needs = getattr(target, '_script_accepts_this', None)
        if isinstance(needs, bool):
            return needs
        try:
            param = inspect.signature(func).parameters.get('this')
            needs = param is not None and param.kind is inspect.Parameter.KEYWORD_ONLY
        except (TypeError, ValueError):
            needs = False
        try:
            setattr(target, '_script_accepts_this', needs)
        except (AttributeError, TypeError):
            pass
        return needs

    def call(self, func: Any, args: List[Any], receiver: Any = None, name: Optional[str] = None) -> Any:
        """Calls a callable with the given receiver and returns its result verbatim.

        Closures created by `lambda` keep the `this` they captured. Host
        callables receive the receiver only when they ask for it with a
        keyword-only `this` parameter; bound methods already carry their own.
        Awaitables are returned as they are.
        """
        self._dbg("call", name or Printer().pformat(func), "argc", len(args))
        self.call_stack.append({'name': name or Printer().pformat(func), 'args': args})
        try:
            if not isinstance(func, ScriptFunction) and self._accepts_receiver(func):
                return func(*args, this=receiver)
            return func(*args)
        except Exception as e:
            if getattr(e, 'script_stack', None) is None:
                try:
                    e.script_stack = [dict(frame) for frame in self.call_stack]
                except AttributeError:
                    pass
            raise
        finally:
            self.call_stack.pop()


def execute(script: Script, this: Any = None, variables: Optional[Dict[str, Any]] = None,
            evaluator: Optional[Evaluator] = None) -> Any:
    """Runs a script against a context object and a variables dict.

    `this` defaults to a new empty dict and `variables` to a new empty dict.
    The variables dict is used in place, so top-level `set`s are visible to
    the caller. Returns the value of the last expression, or None for an
    empty script. Errors propagate as ScriptError subclasses.
    """
    ctx = ExecutionContext(
        this={} if this is None else this,
        variables=Scope(bindings={} if variables is None else variables),
    )
    return (evaluator or Evaluator()).eval(script, ctx)
