"""Pro/Junior coder session: plan, execute, analyze."""

import asyncio
import json
from typing import AsyncGenerator, Sequence

from hal_coder.coder.channel import EventChannel
from hal_coder.coder.config import CoderConfig
from hal_coder.coder.events import (
    AnalysisReceived,
    CoderEvent,
    ExecutorEvent,
    ProPlanReceived,
    SessionEnded,
    SessionFailed,
    to_coder_event,
)
from hal_coder.coder.executor import AgentExecutor, ExecutionOutcome
from hal_coder.exceptions import CompletionError, EmptyPlanError
from hal_coder.llm import Message, Text, ToolCall, ToolResult
from hal_coder.logging import get_logger

log = get_logger(__name__)

EMPTY_ANALYSIS = "Analysis complete."

ANALYSIS_PROMPT_TEMPLATE = (
    "Analyze the implementation of the plan by the junior developer based on the following log:\n\n"
    "<junior_developer_log>\n{log}\n</junior_developer_log>\n\n"
    "Your goal is to:\n"
    "1. Analyze how well the junior developer followed the plan\n"
    "2. Identify any issues or improvements in the implementation\n"
    "3. State clearly whether the original request is now satisfied\n\n"
    "Answer with your complete analysis."
)


def junior_prompt(plan: str) -> str:
    """Wrap the Pro plan as the Junior's single instruction."""
    return f"<user_task>{plan}</user_task>\nDo NOTHING else."


def message_to_analysis_text(message: Message) -> str:
    """Render one turn for the Pro agent's review."""
    parts: list[str] = []
    for item in message.content:
        if isinstance(item, ToolResult):
            parts.append(f"Tool Result (ID: {item.id}):\n---\n{item.text}\n---")
        elif isinstance(item, ToolCall):
            try:
                args = json.dumps(item.arguments)
            except (TypeError, ValueError):
                args = "{ serialization error }"
            parts.append(f"Assistant Tool Call:\n  ID: {item.id}\n  Name: {item.name}\n  Args: {args}")
        elif message.role == "assistant":
            parts.append(f"Assistant Thought/Response:\n{item.text}")
        else:
            parts.append(f"User Task/Input:\n{item.text}")
    return "\n".join(parts)


def format_transcript(history: Sequence[Message]) -> str:
    """Render a full transcript, one block per turn."""
    return "\n\n".join(message_to_analysis_text(message) for message in history)


def _text_only(items: Sequence[object], stage: str) -> str:
    texts: list[str] = []
    for item in items:
        if isinstance(item, Text):
            texts.append(item.text)
        else:
            log.warning("Ignoring non-text content from Pro agent", stage=stage, item_type=type(item).__name__)
    return "\n".join(texts).strip()


async def _request_plan(config: CoderConfig, history: list[Message], user_request: str) -> str:
    history.append(Message.user(user_request))
    log.info("Requesting plan from Pro agent", request_len=len(user_request))
    response = await config.pro_agent.completion("", history)
    plan = _text_only(response.choice, "plan")
    if not plan:
        raise EmptyPlanError()
    history.append(Message.assistant_text(plan))
    return plan


async def _request_analysis(config: CoderConfig, history: list[Message], junior_log: Sequence[Message]) -> str:
    history.append(Message.user(ANALYSIS_PROMPT_TEMPLATE.format(log=format_transcript(junior_log))))
    log.info("Requesting analysis from Pro agent", junior_turns=len(junior_log))
    response = await config.pro_agent.completion("", history)
    analysis = _text_only(response.choice, "analysis")
    if not analysis:
        log.warning("Pro agent returned an empty analysis")
        analysis = EMPTY_ANALYSIS
    history.append(Message.assistant_text(analysis))
    return analysis


async def _stop_junior(task: asyncio.Task[ExecutionOutcome], channel: EventChannel[ExecutorEvent]) -> None:
    channel.close()
    if task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        log.debug("Junior task cancelled")


async def run(
    config: CoderConfig,
    user_request: str,
    initial_history: Sequence[Message] | None = None,
) -> AsyncGenerator[CoderEvent, None]:
    """Run one Pro/Junior session as a stream of events.

    The last event is always ``SessionEnded`` or ``SessionFailed``. The Pro
    agent continues ``initial_history``; the Junior starts from scratch.
    """
    pro_history: list[Message] = list(initial_history or [])
    junior_task: asyncio.Task[ExecutionOutcome] | None = None
    channel: EventChannel[ExecutorEvent] = EventChannel(maxsize=config.event_buffer)

    try:
        # Plan
        try:
            plan = await _request_plan(config, pro_history, user_request)
        except EmptyPlanError as e:
            log.error("Pro agent returned an empty plan")
            yield SessionFailed(error=str(e))
            return
        except CompletionError as e:
            log.error("Pro agent planning failed", error=str(e))
            yield SessionFailed(error=f"Pro agent planning failed: {e}")
            return
        yield ProPlanReceived(plan=plan)

        # Execute
        executor = AgentExecutor(config.junior_agent, config.tool_defs, config.max_junior_iterations)
        junior_task = asyncio.create_task(executor.run(junior_prompt(plan), channel))
        async for event in channel:
            yield to_coder_event(event)
        outcome = await junior_task

        if outcome.error is not None:
            log.error("Junior execution failed", error=str(outcome.error), junior_turns=len(outcome.history))
            yield SessionFailed(error=f"Junior agent execution failed: {outcome.error}")
            return
        log.info("Junior finished", summary=outcome.summary, junior_turns=len(outcome.history))

        # Analyze
        try:
            analysis = await _request_analysis(config, pro_history, outcome.history)
        except CompletionError as e:
            log.error("Pro agent analysis failed", error=str(e))
            yield SessionFailed(error=f"Pro agent analysis failed: {e}")
            return
        yield AnalysisReceived(analysis=analysis)
        yield SessionEnded(final_analysis=analysis, history=list(pro_history))
    except Exception as e:
        log.error("Coder session failed unexpectedly", error=str(e))
        yield SessionFailed(error=f"Internal coder error: {e}")
    finally:
        if junior_task is not None:
            await _stop_junior(junior_task, channel)
