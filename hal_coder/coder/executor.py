"""Agent executor for tool-using agent interactions.

The executor drives one conversation from a single instruction to a
``finish`` tool call:

1. Append the instruction as a user turn and ask the model for a response.
2. Drain the response queue in order. Text items are reported as thoughts.
   Tool calls are executed and their results appended as tool-result turns,
   after which the model is asked to react.
3. When the queue runs dry, nudge the model with a continuation prompt.
4. Stop on ``finish``, on the iteration cap (which bounds both drain passes
   and reaction/continuation calls), when the model stops producing
   content, or when a completion call fails.

Every step is reported on an ``EventChannel`` in the same order as the
history is mutated. Tool failures are fed back to the model as JSON error
payloads and do not end the run.
"""

import json
from collections import deque
from dataclasses import dataclass, field
from typing import Sequence

from hal_coder.agent import Agent
from hal_coder.coder.channel import ChannelClosed, EventChannel
from hal_coder.coder.events import (
    ExecutionError,
    ExecutorEvent,
    Finished,
    Thinking,
    ToolCallAttempted,
    ToolCallCompleted,
)
from hal_coder.exceptions import (
    CoderError,
    CompletionError,
    ExecutionCancelledError,
    ExecutorBusyError,
    HalError,
    MaxIterationsReachedError,
    NoInitialResponseError,
    StoppedRespondingError,
    ToolArgumentsError,
    ToolError,
)
from hal_coder.llm import AssistantContent, CompletionResponse, Message, Text, ToolCall, ToolDefinition
from hal_coder.logging import get_logger

log = get_logger(__name__)

FINISH_TOOL_NAME = "finish"
DEFAULT_FINISH_SUMMARY = "Task completed"
EMPTY_TOOL_RESULT = json.dumps({"result": "Tool returned no result"})
CONTINUE_PROMPT = (
    "Have you completed the specific instruction given to you? Remember:\n"
    "1. If you were asked to read or gather information, and you've done that, call the 'finish' tool.\n"
    "2. If you were asked to implement something, and you've done that, call the 'finish' tool.\n"
    "3. If you're unsure or need clarification, call the 'finish' tool to get help."
)


def extract_finish_summary(result: str) -> str:
    """Read ``summary`` from the finish tool's JSON result."""
    try:
        data = json.loads(result)
    except (TypeError, ValueError):
        return DEFAULT_FINISH_SUMMARY
    if isinstance(data, dict) and isinstance(data.get("summary"), str):
        return data["summary"]
    return DEFAULT_FINISH_SUMMARY


@dataclass
class ExecutionOutcome:
    """Final state of one executor run."""

    history: list[Message] = field(default_factory=list)
    finished: bool = False
    summary: str | None = None
    error: HalError | None = None

    @property
    def succeeded(self) -> bool:
        return self.finished and self.error is None


class AgentExecutor:
    """Runs one agent until it calls ``finish`` or the run fails.

    History and response queue belong to the instance, so an executor must
    not be driven by two ``execute`` calls at once. Sequential reuse is fine:
    each run starts again from the seeded history.
    """

    def __init__(
        self,
        agent: Agent,
        tool_defs: Sequence[ToolDefinition],
        max_iterations: int,
    ):
        if isinstance(max_iterations, bool) or not isinstance(max_iterations, int) or max_iterations < 1:
            raise ValueError("max_iterations must be a positive integer")
        self.agent = agent
        self.tool_defs: tuple[ToolDefinition, ...] = tuple(tool_defs)
        self.max_iterations = max_iterations
        self._seed_history: list[Message] = []
        self._history: list[Message] = []
        self._responses: deque[AssistantContent] = deque()
        self._round_trips = 0
        self._running = False

    def with_history(self, history: Sequence[Message]) -> "AgentExecutor":
        """Start runs from an existing conversation."""
        self._seed_history = list(history)
        self._history = list(history)
        return self

    @property
    def history(self) -> list[Message]:
        """Snapshot of the current conversation."""
        return list(self._history)

    @property
    def is_running(self) -> bool:
        return self._running

    async def run(self, initial_prompt: str, sink: EventChannel[ExecutorEvent]) -> ExecutionOutcome:
        """Execute and end ``sink`` afterwards so its consumer stops."""
        try:
            return await self.execute(initial_prompt, sink)
        finally:
            sink.end()

    async def execute(self, initial_prompt: str, sink: EventChannel[ExecutorEvent]) -> ExecutionOutcome:
        """Run the agent loop, reporting every step on ``sink``.

        Fatal conditions are emitted once as ``ExecutionError(fatal=True)``
        and recorded in the outcome; the history accumulated so far is
        always returned.

        Raises:
            ExecutorBusyError if this instance is already running
            ValueError if ``initial_prompt`` is blank
        """
        if self._running:
            raise ExecutorBusyError()
        if not str(initial_prompt or "").strip():
            raise ValueError("initial_prompt must be a non-empty string")

        self._running = True
        self._history = list(self._seed_history)
        self._responses.clear()
        self._round_trips = 0
        log.info(
            "Starting agent execution",
            agent=self.agent.name,
            prompt_len=len(initial_prompt),
            max_iterations=self.max_iterations,
        )
        try:
            summary = await self._drive(initial_prompt, sink)
            return ExecutionOutcome(history=self.history, finished=True, summary=summary)
        except ChannelClosed:
            log.warning("Event channel closed by receiver, aborting execution", history_len=len(self._history))
            return ExecutionOutcome(history=self.history, error=ExecutionCancelledError())
        except (CoderError, CompletionError) as e:
            log.error("Agent execution failed", error=str(e), history_len=len(self._history))
            await self._emit_fatal(sink, e)
            return ExecutionOutcome(history=self.history, error=e)
        finally:
            self._responses.clear()
            self._running = False

    async def _emit_fatal(self, sink: EventChannel[ExecutorEvent], error: HalError) -> None:
        try:
            await sink.send(ExecutionError(error=str(error), fatal=True))
        except ChannelClosed:
            log.debug("Receiver gone, fatal error not delivered", error=str(error))

    @staticmethod
    def _checkpoint(sink: EventChannel[ExecutorEvent]) -> None:
        """Stop before the next model or tool call if nobody is listening."""
        if sink.is_closed:
            raise ChannelClosed()

    def _push(self, message: Message) -> None:
        self._history.append(message)

    async def _drive(self, initial_prompt: str, sink: EventChannel[ExecutorEvent]) -> str:
        self._push(Message.user(initial_prompt))

        response = await self._request(sink)
        if not response.choice:
            log.warning("Agent returned no initial response")
            raise NoInitialResponseError()
        self._responses.extend(response.choice)

        iteration_count = 0
        while True:
            if iteration_count >= self.max_iterations:
                log.warning("Execution reached max iterations", max_iterations=self.max_iterations)
                raise MaxIterationsReachedError(self.max_iterations)
            iteration_count += 1
            log.debug("Starting loop iteration", iteration=iteration_count)

            processed = False
            while self._responses:
                content = self._responses.popleft()
                processed = True
                self._push(Message.assistant(content))

                if isinstance(content, Text):
                    log.info("Agent thought", thought=content.text)
                    await sink.send(Thinking(text=content.text))
                    continue

                summary = await self._handle_tool_call(content, sink)
                if summary is not None:
                    log.info("Agent called finish tool, exiting loop", summary=summary)
                    return summary

            if not processed:
                log.warning("Response queue empty and nothing processed in iteration")
                raise StoppedRespondingError(self._history)

            log.debug("Response queue empty, prompting to continue/finish")
            await self._prompt_to_continue(sink)

    async def _handle_tool_call(self, call: ToolCall, sink: EventChannel[ExecutorEvent]) -> str | None:
        """Run one tool call; return the summary if it was ``finish``."""
        log.debug("Tool call initiated", tool_name=call.name, tool_id=call.id, tool_args=call.arguments)
        await sink.send(ToolCallAttempted(call=call))

        try:
            result = await self._execute_tool_call(call, sink)
        except ToolError as e:
            error_msg = f"Tool call '{call.name}' failed: {e}"
            log.error("Tool call execution failed", tool_name=call.name, error=str(e))
            await sink.send(ExecutionError(error=error_msg))
            self._push(Message.tool_result(call.id, json.dumps({"error": error_msg})))
            await self._request_reaction(sink)
            return None

        log.debug("Tool call completed", tool_name=call.name, tool_id=call.id, result_len=len(result))
        await sink.send(ToolCallCompleted(id=call.id, result=result, tool_name=call.name))
        self._push(Message.tool_result(call.id, result))

        if call.name == FINISH_TOOL_NAME:
            summary = extract_finish_summary(result)
            await sink.send(Finished(summary=summary))
            return summary

        await self._request_reaction(sink)
        return None

    async def _execute_tool_call(self, call: ToolCall, sink: EventChannel[ExecutorEvent]) -> str:
        try:
            args_json = json.dumps(call.arguments)
        except (TypeError, ValueError) as e:
            raise ToolArgumentsError(call.name, str(e)) from e

        self._checkpoint(sink)
        result = await self.agent.call_tool(call.name, args_json)

        if not result.strip():
            log.warning("Tool returned empty result", tool_name=call.name)
            return EMPTY_TOOL_RESULT
        return result

    async def _request(self, sink: EventChannel[ExecutorEvent]) -> CompletionResponse:
        """Completion call over the full history; new turns travel in history."""
        self._checkpoint(sink)
        return await self.agent.completion("", self._history, self.tool_defs)

    def _spend_round_trip(self) -> None:
        """Count one reaction or continuation call against the cap."""
        if self._round_trips >= self.max_iterations:
            log.warning("Execution reached max iterations", max_iterations=self.max_iterations)
            raise MaxIterationsReachedError(self.max_iterations)
        self._round_trips += 1

    async def _request_reaction(self, sink: EventChannel[ExecutorEvent]) -> None:
        log.debug("Requesting agent reaction", history_len=len(self._history))
        self._spend_round_trip()
        response = await self._request(sink)
        if not response.choice:
            log.warning("Agent returned no reaction to tool result")
        self._responses.extend(response.choice)

    async def _prompt_to_continue(self, sink: EventChannel[ExecutorEvent]) -> None:
        self._spend_round_trip()
        self._push(Message.user(CONTINUE_PROMPT))
        response = await self._request(sink)
        if not response.choice:
            log.warning("Agent returned no response to continue prompt, ending loop")
            raise StoppedRespondingError(self._history)
        self._responses.extend(response.choice)
