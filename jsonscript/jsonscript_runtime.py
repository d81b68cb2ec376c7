import inspect
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from jsonscript.jsonscript_interpreter import Evaluator
from jsonscript.jsonscript_datatypes import Scope, ExecutionContext, ScriptError, ScriptFunction
from jsonscript.jsonscript_printer import Printer

# ===================================================================
# 1. Host Binding
# ===================================================================

def script_api_method(func):
    """A decorator to explicitly mark host methods as callable by name from scripts."""
    func._is_script_api = True
    return func


# ===================================================================
# 2. Script Execution
# ===================================================================

@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_kind: Optional[str] = None

    def format_error(self) -> str:
        """Formats the error message, prefixed with its kind when known."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        if self.error_kind and not msg.startswith(f"{self.error_kind}:"):
            return f"{self.error_kind}: {msg}"
        return msg


class ScriptRunner:
    """Executes scripts on behalf of a host and reports structured results.

    Methods of `host_object` marked with @script_api_method are bound by name
    into a global scope that sits above each run's variables. When no `this`
    is passed to run(), the host object is the context.
    """

    def __init__(self, host_object: Optional[Any] = None, variables: Optional[Dict[str, Any]] = None):
        self.host_object = host_object
        self.evaluator = Evaluator()
        self.root_scope = Scope(bindings=dict(variables or {}))
        self._host_api_names: set[str] = set()
        self._bind_host_api_methods()

    def _bind_host_api_methods(self):
        """Bind @script_api_method methods of the host into the root scope."""
        for n in list(self._host_api_names):
            self.root_scope.bindings.pop(n, None)
        self._host_api_names = set()

        host = self.host_object
        if host is None:
            return
        for name, member in inspect.getmembers(host):
            if not callable(member):
                continue
            # Decorator may mark the bound method or the underlying function
            is_api = getattr(member, "_is_script_api", False)
            if not is_api:
                func = getattr(member, "__func__", None)
                if func is not None:
                    is_api = getattr(func, "_is_script_api", False)
            if is_api is not True:
                continue
            self.root_scope[name] = member
            self._host_api_names.add(name)

    def _format_stacktrace(self, e: BaseException) -> str:
        stack = getattr(e, 'script_stack', None) or []
        if not stack:
            return ""
        pf = Printer().pformat

        def fmt(arg):
            match arg:
                case ScriptFunction():
                    return "lambda"
                case list():
                    return f"[{len(arg)}]"
                case dict():
                    return "{...}"
                case _:
                    return pf(arg)

        frames = []
        for frame in stack:
            args_s = " ".join(fmt(a) for a in frame.get('args') or [])
            frames.append(f"({frame.get('name') or '<call>'}{' ' + args_s if args_s else ''})")
        return "Script stacktrace: " + " ".join(frames)

    def _format_runtime_error(self, e: BaseException) -> tuple[str, str]:
        match e:
            case ScriptError():
                kind = type(e).__name__
                msg = f"{kind}: {e}"
            case _:
                kind = "HostError"
                msg = f"HostError: {type(e).__name__}: {e}"
        st = self._format_stacktrace(e)
        if st:
            msg += "\n" + st
        return msg, kind

    def run(self, script: Any, this: Any = None, variables: Optional[Dict[str, Any]] = None) -> ExecutionResult:
        """Evaluates a script and wraps the outcome in an ExecutionResult."""
        self.evaluator.call_stack.clear()
        if this is None:
            this = self.host_object if self.host_object is not None else {}
        ctx = ExecutionContext(
            this=this,
            variables=Scope(parent=self.root_scope, bindings={} if variables is None else variables),
        )
        try:
            value = self.evaluator.eval(script, ctx)
        except Exception as e:
            err_msg, kind = self._format_runtime_error(e)
            return ExecutionResult(status='error', error_message=err_msg, error_kind=kind)
        return ExecutionResult(status='success', value=value)
