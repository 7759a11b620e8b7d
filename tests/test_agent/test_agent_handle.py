import pytest

from hal_coder.agent import Agent
from hal_coder.exceptions import CompletionError, ToolNotFoundError
from hal_coder.llm import Message, Text
from hal_coder.llm.mock import MockCompletionModel
from hal_coder.tools.project import FinishTool
from hal_coder.tools.registry import ToolRegistry


@pytest.mark.asyncio
async def test_completion_passes_preamble_and_settings():
    seen = {}

    class RecordingModel(MockCompletionModel):
        async def complete(self, history, prompt="", tools=None, **kwargs):
            seen.update(kwargs)
            return await super().complete(history, prompt, tools, preamble=kwargs.get("preamble"))

    model = RecordingModel(default=[Text("ok")])
    agent = Agent(model, preamble="you are pro", temperature=0.3, max_tokens=256)

    response = await agent.completion("", [Message.user("hi")])

    assert response.text == "ok"
    assert seen == {"preamble": "you are pro", "temperature": 0.3, "max_tokens": 256}
    assert model.calls[0]["tools"] is None


@pytest.mark.asyncio
async def test_completion_does_not_share_the_callers_history():
    model = MockCompletionModel(default=[Text("ok")])
    agent = Agent(model)
    history = [Message.user("hi")]

    await agent.completion("", history)
    history.append(Message.user("later"))

    assert model.calls[0]["history"] == [Message.user("hi")]


@pytest.mark.asyncio
async def test_unexpected_model_errors_become_completion_errors():
    model = MockCompletionModel([ConnectionResetError("peer reset")])
    agent = Agent(model)

    with pytest.raises(CompletionError, match="Agent completion request failed: peer reset"):
        await agent.completion("", [Message.user("hi")])


@pytest.mark.asyncio
async def test_call_tool_without_registry_is_not_found():
    agent = Agent(MockCompletionModel())

    with pytest.raises(ToolNotFoundError):
        await agent.call_tool("finish", "{}")
    assert agent.tool_definitions() == []


@pytest.mark.asyncio
async def test_call_tool_dispatches_through_registry():
    registry = ToolRegistry()
    registry.register(FinishTool())
    agent = Agent(MockCompletionModel(), tools=registry)

    result = await agent.call_tool("finish", '{"summary": "done"}')

    assert '"summary": "done"' in result
    assert [d.name for d in agent.tool_definitions()] == ["finish"]
