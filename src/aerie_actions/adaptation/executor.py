"""Sandboxed evaluation of sequence adaptation source.

Every call to ``SandboxExecutor.execute`` builds a new ``ExecutionContext``:
its own globals, its own copy of the restricted builtins, its own ``module``
and ``exports`` objects. Source is compiled with RestrictedPython, so private
attributes are unreadable and anything the adaptation did not create itself
is read-only (see ``guards``).

Adaptation source is evaluated as a module body::

    from codemirror.language import LRLanguage   # gated: registry lookup only
    re = require("re")                           # same gate, by name

    def parse(text):
        ...

    module.exports = {"parse": parse}            # or: exports.parse = parse

The adaptation's value is the last bare expression of the source when that is
not ``None``, otherwise ``module.exports``.
"""

from __future__ import annotations

import ast
import asyncio
import builtins
import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from types import CodeType, SimpleNamespace
from typing import Any

from RestrictedPython import compile_restricted_eval, compile_restricted_exec

from aerie_actions.adaptation.errors import AdaptationExecutionError, AdaptationTimeoutError
from aerie_actions.adaptation.guards import (
    ADAPTATION_MODULE,
    guarded_delattr,
    guarded_getattr,
    guarded_setattr,
    restricted_globals,
)
from aerie_actions.adaptation.registry import CapabilityRegistry
from aerie_actions.utils.config import get_settings

logger = logging.getLogger(__name__)

# Output of sandboxed code lands here so hosts can route it like their own logs
sandbox_logger = logging.getLogger("aerie_actions.adaptation.sandbox")

_BLOCKED_BUILTINS = frozenset({
    "eval", "exec", "compile", "open", "input", "breakpoint",
    "globals", "locals", "vars", "memoryview",
    "exit", "quit", "help", "copyright", "credits", "license",
})

# How often the awaiting coroutine checks on the evaluation thread
_POLL_INTERVAL = 0.001


@dataclass
class ExecutionResult:
    """Raw outcome of one evaluation, before shape validation."""

    value: Any
    output: list[str] = field(default_factory=list)
    execution_time_ms: int = 0


class SandboxConsole:
    """``console`` object exposed to adaptations; also collects ``print`` calls."""

    def __init__(self, context: ExecutionContext):
        self._context = context

    def _emit(self, level: int, args: tuple[Any, ...], sep: str = " ") -> None:
        line = sep.join(str(arg) for arg in args)
        self._context.output.append(line)
        sandbox_logger.log(level, f"[{self._context.label}] {line}")

    def log(self, *args: Any) -> None:
        self._emit(logging.INFO, args)

    info = log

    def debug(self, *args: Any) -> None:
        self._emit(logging.DEBUG, args)

    def warn(self, *args: Any) -> None:
        self._emit(logging.WARNING, args)

    warning = warn

    def error(self, *args: Any) -> None:
        self._emit(logging.ERROR, args)

    def _call_print(self, *args: Any, sep: str | None = " ", end: str | None = None,
                    file: Any = None, flush: bool = False) -> None:
        """Target of rewritten ``print`` calls; ``end``, ``file`` and ``flush`` are ignored."""
        self._emit(logging.INFO, args, sep=" " if sep is None else sep)


class ExecutionContext:
    """Isolated global environment for a single adaptation evaluation."""

    def __init__(self, registry: CapabilityRegistry, label: str = "adaptation"):
        self.registry = registry
        self.label = label
        self.output: list[str] = []
        self.exports = SimpleNamespace()
        self.module = SimpleNamespace(exports=self.exports)
        self.console = SandboxConsole(self)
        self.globals: dict[str, Any] = {
            **restricted_globals(),
            "__builtins__": self._build_builtins(),
            "__name__": ADAPTATION_MODULE,
            "_print_": self._printer,
            "_print": self.console,
            "console": self.console,
            "require": self.require,
            "module": self.module,
            "exports": self.exports,
        }

    def _build_builtins(self) -> dict[str, Any]:
        """Fresh restricted builtins; ``import`` statements go through the registry."""
        safe_builtins = {
            name: getattr(builtins, name)
            for name in dir(builtins)
            if not name.startswith("_") and name not in _BLOCKED_BUILTINS
        }
        # class statements need it
        safe_builtins["__build_class__"] = builtins.__build_class__
        safe_builtins["__import__"] = self.gated_import
        safe_builtins["getattr"] = guarded_getattr
        safe_builtins["setattr"] = guarded_setattr
        safe_builtins["delattr"] = guarded_delattr
        safe_builtins["print"] = self.console._call_print
        return safe_builtins

    def _printer(self, _getattr_: Any = None) -> SandboxConsole:
        return self.console

    def require(self, name: str) -> Any:
        """Return the registered capability for ``name`` or ``None``."""
        capability = self.registry.get(name)
        if capability is None:
            logger.debug(f"[{self.label}] capability {name!r} is not available")
        return capability

    def gated_import(
        self,
        name: str,
        globals: Any = None,
        locals: Any = None,
        fromlist: Any = (),
        level: int = 0,
    ) -> Any:
        """``__import__`` that only ever consults the capability registry."""
        if level:
            return None
        if fromlist:
            return self.require(name)
        # "import a.b" binds "a", so hand back a view of everything under it
        return self.registry.package_view(name.partition(".")[0])

    def evaluate(self, body: CodeType, tail: CodeType | None) -> Any:
        exec(body, self.globals)
        value = eval(tail, self.globals) if tail is not None else None
        if value is None:
            value = self.module.exports
        return value


def _restricted(result: Any) -> CodeType:
    if result.errors:
        raise SyntaxError("; ".join(result.errors))
    for warning in result.warnings:
        logger.debug(f"RestrictedPython: {warning}")
    return result.code


def compile_adaptation(source: str, filename: str) -> tuple[CodeType, CodeType | None]:
    """Compile source as a restricted module body, splitting off a trailing expression."""
    tree = ast.parse(source, filename=filename, mode="exec")
    if not tree.body or not isinstance(tree.body[-1], ast.Expr):
        return _restricted(compile_restricted_exec(source, filename)), None

    last = tree.body[-1]
    lines = source.splitlines(keepends=True)
    # col_offset counts UTF-8 bytes
    head = lines[last.lineno - 1].encode("utf-8")[:last.col_offset].decode("utf-8")
    body_source = "".join(lines[:last.lineno - 1]) + head
    tail_source = ast.get_source_segment(source, last.value)
    body = _restricted(compile_restricted_exec(body_source, filename))
    tail = _restricted(compile_restricted_eval(tail_source, filename))
    return body, tail


class SandboxExecutor:
    """Evaluate adaptation source against a capability registry.

    ``execute`` is the only entry point; swapping the evaluation engine means
    replacing this class, not its callers.
    """

    def __init__(self, timeout_seconds: float | None = None):
        if timeout_seconds is None:
            timeout_seconds = get_settings().adaptation_timeout_seconds
        self.timeout_seconds = timeout_seconds

    async def execute(
        self,
        source: str,
        registry: CapabilityRegistry,
        *,
        adaptation_id: Any = None,
        parcel_id: int | None = None,
        workspace_id: int | None = None,
    ) -> ExecutionResult:
        """Evaluate ``source`` in a fresh context.

        Each evaluation runs on its own daemon thread, so an adaptation that
        never returns holds only that thread and never a shared pool worker.

        Raises:
            AdaptationExecutionError: the source failed to compile or raised.
            AdaptationTimeoutError: evaluation ran past ``timeout_seconds``.
        """
        ids = {"adaptation_id": adaptation_id, "parcel_id": parcel_id, "workspace_id": workspace_id}
        label = f"adaptation {adaptation_id} (parcel {parcel_id})"
        start_time = time.time()

        try:
            body, tail = compile_adaptation(source, f"<adaptation {adaptation_id}>")
        except Exception as e:
            logger.warning(f"Failed to compile {label}: {type(e).__name__}: {e}")
            raise AdaptationExecutionError(
                f"Sequence adaptation {adaptation_id} for parcel {parcel_id} "
                f"could not be compiled: {type(e).__name__}: {e}",
                cause=e,
                **ids,
            ) from e

        context = ExecutionContext(registry, label=label)
        outcome: Future[Any] = Future()

        def run_in_thread() -> None:
            try:
                outcome.set_result(context.evaluate(body, tail))
            except BaseException as e:
                error = AdaptationExecutionError(
                    f"Sequence adaptation {adaptation_id} for parcel {parcel_id} "
                    f"raised {type(e).__name__}: {e}",
                    cause=e,
                    **ids,
                )
                error.__cause__ = e
                outcome.set_exception(error)

        threading.Thread(
            target=run_in_thread, name=f"adaptation-{adaptation_id}", daemon=True
        ).start()

        deadline = time.monotonic() + self.timeout_seconds
        while not outcome.done():
            if time.monotonic() >= deadline:
                logger.error(f"{label} exceeded {self.timeout_seconds}s")
                raise AdaptationTimeoutError(
                    f"Sequence adaptation {adaptation_id} for parcel {parcel_id} "
                    f"exceeded {self.timeout_seconds}s timeout",
                    timeout_seconds=self.timeout_seconds,
                    **ids,
                )
            await asyncio.sleep(_POLL_INTERVAL)

        try:
            value = outcome.result()
        except AdaptationExecutionError as e:
            logger.warning(f"Evaluation of {label} failed: {e.cause!r}")
            raise

        execution_time = int((time.time() - start_time) * 1000)
        logger.debug(f"Evaluated {label} in {execution_time}ms")

        return ExecutionResult(
            value=value,
            output=context.output,
            execution_time_ms=execution_time,
        )
