"""Tests for the adaptation sandbox executor."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace

import pytest

from aerie_actions.adaptation.errors import (
    AdaptationErrorKind,
    AdaptationExecutionError,
    AdaptationTimeoutError,
)
from aerie_actions.adaptation.executor import ExecutionContext, SandboxExecutor
from aerie_actions.adaptation.registry import CapabilityRegistry, UnavailableCapability


class TestSandboxExecutor:
    """Tests for SandboxExecutor."""

    @pytest.fixture
    def executor(self) -> SandboxExecutor:
        """Create an executor with a generous timeout."""
        return SandboxExecutor(timeout_seconds=5)

    @pytest.mark.asyncio
    async def test_module_exports_dict(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test an adaptation that replaces module.exports."""
        source = 'module.exports = {"parse": lambda: 1}'

        result = await executor.execute(source, registry)

        assert result.value["parse"]() == 1

    @pytest.mark.asyncio
    async def test_exports_attributes(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test an adaptation that populates the exports container."""
        source = """
def parse(text):
    return text.split()

exports.parse = parse
exports.name = "demo"
"""

        result = await executor.execute(source, registry)

        assert result.value.parse("a b") == ["a", "b"]
        assert result.value.name == "demo"

    @pytest.mark.asyncio
    async def test_trailing_expression_is_value(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test that a final bare expression is the adaptation's value."""
        result = await executor.execute("x = 2\nx + 3", registry)
        assert result.value == 5

    @pytest.mark.asyncio
    async def test_trailing_none_falls_back_to_exports(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test that a trailing call returning None does not hide the exports."""
        source = """
exports.ready = True
console.log("done")
"""

        result = await executor.execute(source, registry)

        assert result.value.ready is True

    @pytest.mark.asyncio
    async def test_class_definitions(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test that adaptations can define classes."""
        source = """
class Linter:
    def lint(self, text):
        return [] if text else ["empty"]

module.exports = {"linter": Linter()}
"""

        result = await executor.execute(source, registry)

        assert result.value["linter"].lint("") == ["empty"]

    @pytest.mark.asyncio
    async def test_console_output_is_captured_and_logged(
        self,
        executor: SandboxExecutor,
        registry: CapabilityRegistry,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test console and print output reach the host."""
        source = """
console.log("loading", 42)
console.warn("careful")
print("a", "b")
"""

        with caplog.at_level(logging.INFO, logger="aerie_actions.adaptation.sandbox"):
            result = await executor.execute(source, registry, adaptation_id=42, parcel_id=3)

        assert result.output == ["loading 42", "careful", "a b"]
        assert "loading 42" in caplog.text
        assert any(r.levelno == logging.WARNING and "careful" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_syntax_error(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test syntax errors become execution failures."""
        source = """
def broken(
    # Missing closing paren
"""

        with pytest.raises(AdaptationExecutionError) as exc_info:
            await executor.execute(source, registry, adaptation_id=42, parcel_id=3)

        err = exc_info.value
        assert err.kind == AdaptationErrorKind.EXECUTION_FAILURE
        assert isinstance(err.cause, SyntaxError)
        assert err.adaptation_id == 42
        assert err.parcel_id == 3

    @pytest.mark.asyncio
    async def test_runtime_error_keeps_cause(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test runtime errors carry the original exception."""
        with pytest.raises(AdaptationExecutionError) as exc_info:
            await executor.execute("x = undeclared_name + 1", registry, adaptation_id=42, parcel_id=3)

        err = exc_info.value
        assert isinstance(err.cause, NameError)
        assert err.__cause__ is err.cause
        assert "42" in str(err)
        assert "parcel 3" in str(err)

    @pytest.mark.asyncio
    async def test_blocked_builtins(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test that file and eval builtins are not reachable."""
        with pytest.raises(AdaptationExecutionError) as exc_info:
            await executor.execute('open("/etc/passwd")', registry)
        assert isinstance(exc_info.value.cause, NameError)

        # eval and exec calls are refused when the source is compiled
        for source in ('eval("1")', 'exec("x = 1")'):
            with pytest.raises(AdaptationExecutionError) as exc_info:
                await executor.execute(source, registry)
            assert isinstance(exc_info.value.cause, SyntaxError)

    @pytest.mark.asyncio
    async def test_timeout_error_raised_by_source_is_not_a_timeout(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test that an adaptation raising TimeoutError is an execution failure."""
        with pytest.raises(AdaptationExecutionError) as exc_info:
            await executor.execute('raise TimeoutError("nope")', registry)

        assert isinstance(exc_info.value.cause, TimeoutError)

    @pytest.mark.asyncio
    async def test_system_exit_is_contained(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test that SystemExit inside the sandbox does not escape raw."""
        with pytest.raises(AdaptationExecutionError) as exc_info:
            await executor.execute("raise SystemExit(3)", registry)

        assert isinstance(exc_info.value.cause, SystemExit)

    @pytest.mark.asyncio
    async def test_execution_timeout(self) -> None:
        """Test that slow adaptations fail with a timeout."""
        registry = CapabilityRegistry({"clock": SimpleNamespace(sleep=time.sleep)})
        executor = SandboxExecutor(timeout_seconds=0.05)

        with pytest.raises(AdaptationTimeoutError) as exc_info:
            await executor.execute('require("clock").sleep(0.5)', registry, adaptation_id=9)

        assert exc_info.value.kind == AdaptationErrorKind.TIMEOUT
        assert exc_info.value.timeout_seconds == 0.05
        assert exc_info.value.adaptation_id == 9

    @pytest.mark.asyncio
    async def test_fresh_context_per_call(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test that globals from one evaluation are not visible to the next."""
        first = await executor.execute('leaked = "yes"\nexports.marker = 1', registry)
        assert first.value.marker == 1

        with pytest.raises(AdaptationExecutionError) as exc_info:
            await executor.execute("leaked", registry)
        assert isinstance(exc_info.value.cause, NameError)

        second = await executor.execute("pass", registry)
        assert vars(second.value) == {}

    @pytest.mark.asyncio
    async def test_builtins_are_per_context(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test that shadowing or reaching for builtins does not leak across evaluations."""
        await executor.execute("len = lambda x: -1\nexports.n = len([1, 2])", registry)
        with pytest.raises(AdaptationExecutionError) as exc_info:
            await executor.execute('__builtins__["len"] = lambda x: -1', registry)
        assert isinstance(exc_info.value.cause, SyntaxError)

        result = await executor.execute('module.exports = {"n": len([1, 2])}', registry)

        assert result.value["n"] == 2
        first, second = ExecutionContext(registry), ExecutionContext(registry)
        assert first.globals["__builtins__"] is not second.globals["__builtins__"]

    @pytest.mark.asyncio
    async def test_deeply_nested_source_is_an_execution_failure(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test that source too deep to compile is wrapped, not raised raw."""
        source = "x = " + "-" * 200000 + "1"

        with pytest.raises(AdaptationExecutionError) as exc_info:
            await executor.execute(source, registry, adaptation_id=42, parcel_id=3)

        err = exc_info.value
        assert err.kind == AdaptationErrorKind.EXECUTION_FAILURE
        assert isinstance(err.cause, (MemoryError, RecursionError, SyntaxError))
        assert err.adaptation_id == 42

    @pytest.mark.asyncio
    async def test_runaway_adaptation_does_not_starve_later_loads(
        self, registry: CapabilityRegistry
    ) -> None:
        """Test that a timed-out busy loop holds no shared executor worker."""
        release = threading.Event()
        gated = registry.extend({"gate": SimpleNamespace(released=release.is_set)})
        loop = asyncio.get_running_loop()
        # One worker: if evaluation used the default executor the spinning loop would hold it
        loop.set_default_executor(ThreadPoolExecutor(max_workers=1))
        source = 'while not require("gate").released():\n    pass\n'

        try:
            with pytest.raises(AdaptationTimeoutError):
                await SandboxExecutor(timeout_seconds=0.1).execute(source, gated, adaptation_id=1)

            result = await SandboxExecutor(timeout_seconds=5).execute(
                "exports.ready = True", gated, adaptation_id=2
            )
            assert result.value.ready is True
            assert await loop.run_in_executor(None, lambda: "free") == "free"
        finally:
            release.set()

    @pytest.mark.asyncio
    async def test_augmented_assignment_and_unpacking(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test the restricted compiler still runs ordinary adaptation code."""
        source = """
total = 0
for name, count in [("a", 1), ("b", 2)]:
    total += count
first, second = sorted({"b": 1, "a": 2})
module.exports = {"total": total, "first": first, "second": second}
"""

        result = await executor.execute(source, registry)

        assert result.value == {"total": 3, "first": "a", "second": "b"}


class TestGatedImport:
    """Tests for import gating inside the sandbox."""

    @pytest.fixture
    def executor(self) -> SandboxExecutor:
        return SandboxExecutor(timeout_seconds=5)

    @pytest.mark.asyncio
    async def test_require_registered_and_missing(self, executor: SandboxExecutor) -> None:
        """Test require returns registered objects and None otherwise."""
        seqlib = SimpleNamespace(VERSION="1.2")
        registry = CapabilityRegistry({"seqlib": seqlib})
        source = """
module.exports = {
    "seqlib": require("seqlib"),
    "os": require("os"),
    "subprocess": require("subprocess"),
}
"""

        result = await executor.execute(source, registry)

        assert result.value["seqlib"] is seqlib
        assert result.value["os"] is None
        assert result.value["subprocess"] is None

    @pytest.mark.asyncio
    async def test_import_statement_uses_registry(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test that import statements never reach the host importer."""
        source = """
import json
import os
import sys

module.exports = {
    "dumped": json.dumps({"a": 1}),
    "os": os,
    "sys": sys,
}
"""

        result = await executor.execute(source, registry)

        assert result.value["dumped"] == '{"a": 1}'
        assert result.value["os"] is None
        assert result.value["sys"] is None

    @pytest.mark.asyncio
    async def test_from_import_editor_stub(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test importing an editor primitive yields a falsy stub."""
        source = """
from codemirror.language import LRLanguage
import codemirror.view

language = LRLanguage.define(parser=None)
module.exports = {
    "language": LRLanguage,
    "defined": language,
    "has_view": bool(codemirror.view),
}
"""

        result = await executor.execute(source, registry)

        assert isinstance(result.value["language"], UnavailableCapability)
        assert result.value["defined"] is None
        assert result.value["has_view"] is False

    @pytest.mark.asyncio
    async def test_from_import_of_missing_name_fails(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test that from-importing out of a missing capability is an execution failure."""
        with pytest.raises(AdaptationExecutionError):
            await executor.execute("from os import path", registry)

    def test_relative_import_is_unavailable(self, registry: CapabilityRegistry) -> None:
        """Test that relative imports resolve to nothing."""
        context = ExecutionContext(registry)
        assert context.gated_import("json", fromlist=("dumps",), level=1) is None


class TestCapabilityBoundary:
    """Tests for what sandboxed code can reach through its capabilities."""

    @pytest.fixture
    def executor(self) -> SandboxExecutor:
        return SandboxExecutor(timeout_seconds=5)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "source",
        [
            'module.exports = {"sys": require("typing").sys}',
            'module.exports = {"os": require("collections").sys.modules["os"]}',
            'module.exports = {"g": getattr(require("json").dumps, "__globals__")}',
        ],
    )
    async def test_host_internals_are_not_reachable(
        self, executor: SandboxExecutor, registry: CapabilityRegistry, source: str
    ) -> None:
        """Test capabilities expose neither modules nor private attributes."""
        with pytest.raises(AdaptationExecutionError) as exc_info:
            await executor.execute(source, registry)

        assert isinstance(exc_info.value.cause, AttributeError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "source",
        [
            'module.exports = {"g": require("json").dumps.__globals__}',
            'module.exports = {"m": require("json")._members}',
            "def gen():\n    yield 1\n\nmodule.exports = {'f': gen().gi_frame}",
        ],
    )
    async def test_introspection_is_refused_at_compile_time(
        self, executor: SandboxExecutor, registry: CapabilityRegistry, source: str
    ) -> None:
        """Test dunder and frame attributes are rejected before evaluation."""
        with pytest.raises(AdaptationExecutionError) as exc_info:
            await executor.execute(source, registry)

        assert isinstance(exc_info.value.cause, SyntaxError)

    @pytest.mark.asyncio
    async def test_modules_in_custom_capabilities_are_hidden(
        self, executor: SandboxExecutor
    ) -> None:
        """Test a module attached to a registered object is still unreachable."""
        import os

        registry = CapabilityRegistry({"tools": SimpleNamespace(os=os, name="tools")})

        with pytest.raises(AdaptationExecutionError) as exc_info:
            await executor.execute('module.exports = {"os": require("tools").os}', registry)

        assert isinstance(exc_info.value.cause, AttributeError)
        result = await executor.execute('module.exports = {"n": require("tools").name}', registry)
        assert result.value == {"n": "tools"}

    @pytest.mark.asyncio
    async def test_adaptation_can_modify_what_it_creates(
        self, executor: SandboxExecutor, registry: CapabilityRegistry
    ) -> None:
        """Test writes to the adaptation's own objects are allowed."""
        source = """
class Counter:
    def __init__(self):
        self.count = 0

    def bump(self):
        self.count = self.count + 1
        return self.count

counter = Counter()
counter.bump()
table = {}
table["seen"] = counter.count
setattr(exports, "counter", counter)
exports.table = table
"""

        result = await executor.execute(source, registry)

        assert result.value.counter.count == 1
        assert result.value.table == {"seen": 1}
