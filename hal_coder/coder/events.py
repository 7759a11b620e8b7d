"""Events emitted by the agent executor and by coder sessions."""

from dataclasses import dataclass, field

from hal_coder.llm import Message, ToolCall


class ExecutorEvent:
    """Base class for events produced by ``AgentExecutor``."""


@dataclass(frozen=True)
class Thinking(ExecutorEvent):
    """The agent produced explanatory text."""

    text: str


@dataclass(frozen=True)
class ToolCallAttempted(ExecutorEvent):
    """The agent is about to run a tool."""

    call: ToolCall


@dataclass(frozen=True)
class ToolCallCompleted(ExecutorEvent):
    """A tool call returned successfully."""

    id: str
    result: str
    tool_name: str


@dataclass(frozen=True)
class ExecutionError(ExecutorEvent):
    """A tool failure (``fatal=False``) or the error that ended the run."""

    error: str
    fatal: bool = False


@dataclass(frozen=True)
class Finished(ExecutorEvent):
    """The agent called the ``finish`` tool."""

    summary: str


class CoderEvent:
    """Base class for events produced by a Pro/Junior coder session."""


@dataclass(frozen=True)
class ProPlanReceived(CoderEvent):
    plan: str


@dataclass(frozen=True)
class JuniorThinking(CoderEvent):
    text: str


@dataclass(frozen=True)
class JuniorToolCallAttempted(CoderEvent):
    call: ToolCall


@dataclass(frozen=True)
class JuniorToolCallCompleted(CoderEvent):
    id: str
    result: str
    tool_name: str


@dataclass(frozen=True)
class JuniorExecutionError(CoderEvent):
    error: str


@dataclass(frozen=True)
class JuniorFinished(CoderEvent):
    summary: str


@dataclass(frozen=True)
class AnalysisReceived(CoderEvent):
    analysis: str


@dataclass(frozen=True)
class SessionEnded(CoderEvent):
    """Terminal success event; ``history`` is the Pro agent's conversation."""

    final_analysis: str
    history: list[Message] = field(default_factory=list)


@dataclass(frozen=True)
class SessionFailed(CoderEvent):
    """Terminal failure event."""

    error: str


def to_coder_event(event: ExecutorEvent) -> CoderEvent:
    """Map a Junior executor event onto its session-level counterpart."""
    if isinstance(event, Thinking):
        return JuniorThinking(text=event.text)
    if isinstance(event, ToolCallAttempted):
        return JuniorToolCallAttempted(call=event.call)
    if isinstance(event, ToolCallCompleted):
        return JuniorToolCallCompleted(id=event.id, result=event.result, tool_name=event.tool_name)
    if isinstance(event, ExecutionError):
        return JuniorExecutionError(error=event.error)
    if isinstance(event, Finished):
        return JuniorFinished(summary=event.summary)
    raise TypeError(f"Unknown executor event: {event!r}")
