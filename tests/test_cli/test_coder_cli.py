import importlib

import pytest
from rich.console import Console
from typer.testing import CliRunner

from hal_coder.agent import Agent
from hal_coder.coder import CoderConfig
from hal_coder.coder.events import (
    JuniorExecutionError,
    JuniorToolCallAttempted,
    ProPlanReceived,
    SessionFailed,
)
from hal_coder.config import CoderSettings, Config
from hal_coder.llm import Message, Text, ToolCall
from hal_coder.llm.mock import MockCompletionModel
from hal_coder.main import app, build_coder_config, render_event, run_turn
from hal_coder.tools.project import FinishTool
from hal_coder.tools.registry import ToolRegistry

main_module = importlib.import_module("hal_coder.main")


def make_config(pro_script, junior_script) -> CoderConfig:
    registry = ToolRegistry()
    registry.register(FinishTool())
    pro = Agent(MockCompletionModel(pro_script), name="pro")
    junior = Agent(MockCompletionModel(junior_script), tools=registry, name="junior")
    return CoderConfig.from_settings(pro, junior, CoderSettings())


def test_render_event_prints_plan_tool_call_and_errors():
    out = Console(record=True, width=100)

    render_event(ProPlanReceived(plan="step one"), out)
    render_event(JuniorToolCallAttempted(call=ToolCall(id="c", name="read_file", arguments={"path": "x"})), out)
    render_event(JuniorExecutionError(error="boom"), out)
    render_event(SessionFailed(error="fatal"), out)

    text = out.export_text()
    assert "Tech Lead Plan" in text
    assert "step one" in text
    assert "Tool: read_file" in text
    assert "Junior error: boom" in text
    assert "Session failed: fatal" in text


@pytest.mark.asyncio
async def test_run_turn_carries_pro_history_forward(monkeypatch):
    monkeypatch.setattr(main_module, "console", Console(record=True))
    config = make_config(
        [[Text("plan")], [Text("analysis")]],
        [[ToolCall(id="f", name="finish", arguments={"summary": "ok"})]],
    )

    history = await run_turn(config, "build it", [])

    assert history[0] == Message.user("build it")
    assert history[-1] == Message.assistant_text("analysis")


@pytest.mark.asyncio
async def test_run_turn_keeps_previous_history_on_failure(monkeypatch):
    monkeypatch.setattr(main_module, "console", Console(record=True))
    config = make_config([[]], [])
    previous = [Message.user("earlier"), Message.assistant_text("noted")]

    history = await run_turn(config, "build it", previous)

    assert history == previous


@pytest.mark.asyncio
async def test_run_turn_keeps_previous_history_when_stream_stops_early(monkeypatch):
    out = Console(record=True)
    monkeypatch.setattr(main_module, "console", out)

    async def truncated_session(config, user_request, initial_history=None):
        yield ProPlanReceived(plan="plan")

    monkeypatch.setattr(main_module, "run_coder_session", truncated_session)
    previous = [Message.user("earlier"), Message.assistant_text("noted")]

    history = await run_turn(make_config([], []), "build it", previous)

    assert history == previous
    assert "ended unexpectedly" in out.export_text()


def test_build_coder_config_wires_both_agents():
    cfg = Config()
    cfg.agents.pro.provider = "mock"
    cfg.agents.junior.provider = "mock"
    cfg.coder.max_junior_iterations = 7

    coder_config, models = build_coder_config(cfg)

    assert coder_config.pro_agent.name == "pro"
    assert coder_config.junior_agent.tools is not None
    assert coder_config.max_junior_iterations == 7
    assert "finish" in [d.name for d in coder_config.tool_defs]
    assert len(models) == 2


def test_version_command():
    result = CliRunner().invoke(app, ["version"])

    assert result.exit_code == 0
    assert "HAL Coder v0.1.0" in result.stdout
