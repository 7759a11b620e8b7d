import asyncio

import pytest

from hal_coder.exceptions import ToolArgumentsError, ToolExecutionError, ToolNotFoundError
from hal_coder.tools.registry import Tool, ToolRegistry, ToolResult


class EchoTool(Tool):
    name = "echo"
    description = "Echo"
    parameters = {
        "type": "object",
        "properties": {"msg": {"type": "string"}},
        "required": ["msg"],
    }

    def __init__(self):
        self.received: list[dict] = []

    async def execute(self, **kwargs):
        self.received.append(kwargs)
        return ToolResult(success=True, content=str(kwargs.get("msg", "")))


class BrokenTool(Tool):
    name = "broken"
    description = "Raises"
    parameters = {"type": "object", "properties": {}, "required": []}

    async def execute(self, **kwargs):
        raise RuntimeError("kaboom")


class SoftFailTool(Tool):
    name = "soft_fail"
    description = "Reports failure"
    parameters = {"type": "object", "properties": {}, "required": []}

    async def execute(self, **kwargs):
        return ToolResult(success=False, content="exit code 2")


class SlowTool(Tool):
    name = "slow"
    description = "Slow"
    parameters = {
        "type": "object",
        "properties": {},
        "required": [],
    }
    timeout_seconds = 1.0

    async def execute(self, **kwargs):
        await asyncio.sleep(2.0)
        return ToolResult(success=True, content="done")


class CancellableTool(Tool):
    name = "cancellable"
    description = "Cancellable"
    parameters = {
        "type": "object",
        "properties": {},
        "required": [],
    }
    timeout_seconds = 20.0

    def __init__(self):
        self.cancelled = False
        self.abort_event: asyncio.Event | None = None

    async def execute(self, **kwargs):
        self.abort_event = kwargs.get("_abort_event")
        try:
            await asyncio.sleep(10.0)
            return ToolResult(success=True, content="done")
        except asyncio.CancelledError:
            self.cancelled = True
            raise


def test_tool_result_populates_error_from_content_on_failure() -> None:
    result = ToolResult(success=False, content="command failed with exit code 1")

    assert result.error == "command failed with exit code 1"


def test_tool_result_keeps_explicit_error_on_failure() -> None:
    result = ToolResult(success=False, content="stderr output", error="explicit error")

    assert result.error == "explicit error"


def test_tool_result_falls_back_to_generic_error() -> None:
    result = ToolResult(success=False)

    assert result.error == "Tool execution failed"


def test_definitions_follow_registration_order():
    registry = ToolRegistry()
    registry.register(EchoTool())
    registry.register(SlowTool())

    definitions = registry.get_definitions()

    assert [d.name for d in definitions] == ["echo", "slow"]
    assert definitions[0].parameters["required"] == ["msg"]
    assert registry.list_tools() == ["echo", "slow"]


def test_unregister_removes_tool():
    registry = ToolRegistry()
    registry.register(EchoTool())
    registry.unregister("echo")

    assert registry.has_tool("echo") is False
    with pytest.raises(ToolNotFoundError):
        registry.get("echo")


@pytest.mark.asyncio
async def test_call_decodes_json_arguments_and_returns_content():
    registry = ToolRegistry()
    tool = EchoTool()
    registry.register(tool)

    result = await registry.call("echo", '{"msg": "hi"}')

    assert result == "hi"
    assert tool.received[0]["msg"] == "hi"
    assert isinstance(tool.received[0]["_abort_event"], asyncio.Event)


@pytest.mark.asyncio
async def test_call_rejects_malformed_json():
    registry = ToolRegistry()
    registry.register(EchoTool())

    with pytest.raises(ToolArgumentsError):
        await registry.call("echo", "{not json")


@pytest.mark.asyncio
async def test_call_rejects_non_object_arguments():
    registry = ToolRegistry()
    registry.register(EchoTool())

    with pytest.raises(ToolArgumentsError, match="JSON object"):
        await registry.call("echo", '["hi"]')


@pytest.mark.asyncio
async def test_call_reports_missing_required_argument():
    registry = ToolRegistry()
    registry.register(EchoTool())

    with pytest.raises(ToolExecutionError, match="Missing required argument: msg"):
        await registry.call("echo", "{}")


@pytest.mark.asyncio
async def test_call_unknown_tool_raises_not_found():
    registry = ToolRegistry()

    with pytest.raises(ToolNotFoundError, match="Tool not found: ghost"):
        await registry.call("ghost", "{}")


@pytest.mark.asyncio
async def test_call_raises_for_failed_result():
    registry = ToolRegistry()
    registry.register(SoftFailTool())

    with pytest.raises(ToolExecutionError, match="exit code 2"):
        await registry.call("soft_fail", "{}")


@pytest.mark.asyncio
async def test_unexpected_tool_exception_is_wrapped():
    registry = ToolRegistry()
    registry.register(BrokenTool())

    with pytest.raises(ToolExecutionError, match="Tool 'broken' failed: kaboom"):
        await registry.execute("broken", {})


@pytest.mark.asyncio
async def test_registry_uses_tool_level_timeout_seconds():
    registry = ToolRegistry()
    registry.register(SlowTool())

    with pytest.raises(ToolExecutionError, match="timed out"):
        await registry.execute("slow", {})


@pytest.mark.asyncio
async def test_cancelling_the_caller_cancels_the_tool_and_sets_its_abort_event():
    registry = ToolRegistry()
    tool = CancellableTool()
    registry.register(tool)

    execution = asyncio.create_task(registry.execute("cancellable", {}))
    await asyncio.sleep(0.05)
    execution.cancel()

    with pytest.raises(asyncio.CancelledError):
        await execution
    assert tool.cancelled is True
    assert tool.abort_event is not None
    assert tool.abort_event.is_set()
