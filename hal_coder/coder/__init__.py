"""Agent execution core: executor, event channel and Pro/Junior sessions."""

from typing import AsyncGenerator, Sequence

from hal_coder.coder.channel import ChannelClosed, EventChannel
from hal_coder.coder.config import CoderConfig
from hal_coder.coder.events import (
    AnalysisReceived,
    CoderEvent,
    ExecutionError,
    ExecutorEvent,
    Finished,
    JuniorExecutionError,
    JuniorFinished,
    JuniorThinking,
    JuniorToolCallAttempted,
    JuniorToolCallCompleted,
    ProPlanReceived,
    SessionEnded,
    SessionFailed,
    Thinking,
    ToolCallAttempted,
    ToolCallCompleted,
)
from hal_coder.coder.executor import AgentExecutor, ExecutionOutcome
from hal_coder.coder import session
from hal_coder.llm import Message


def run_coder_session(
    config: CoderConfig,
    user_request: str,
    initial_history: Sequence[Message] | None = None,
) -> AsyncGenerator[CoderEvent, None]:
    """Start a Pro/Junior session; iterate the result to drive it."""
    return session.run(config, user_request, initial_history)


__all__ = [
    "AgentExecutor",
    "AnalysisReceived",
    "ChannelClosed",
    "CoderConfig",
    "CoderEvent",
    "EventChannel",
    "ExecutionError",
    "ExecutionOutcome",
    "ExecutorEvent",
    "Finished",
    "JuniorExecutionError",
    "JuniorFinished",
    "JuniorThinking",
    "JuniorToolCallAttempted",
    "JuniorToolCallCompleted",
    "ProPlanReceived",
    "SessionEnded",
    "SessionFailed",
    "Thinking",
    "ToolCallAttempted",
    "ToolCallCompleted",
    "run_coder_session",
]
