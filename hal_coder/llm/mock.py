"""Scripted completion model for tests and offline runs."""

from collections import deque
from typing import Any, Iterable

from hal_coder.llm import (
    AssistantContent,
    CompletionModel,
    CompletionResponse,
    Message,
    Text,
    ToolDefinition,
)


class MockCompletionModel(CompletionModel):
    """Returns queued responses (or raises queued errors) in order.

    Once the script runs out, ``default`` is returned for every further
    call. Each call is recorded with a snapshot of the history it received.
    """

    def __init__(
        self,
        script: Iterable[list[AssistantContent] | BaseException] | None = None,
        default: list[AssistantContent] | None = None,
    ):
        self._script: deque[list[AssistantContent] | BaseException] = deque(script or [])
        self.default: list[AssistantContent] = list(default or [])
        self.calls: list[dict[str, Any]] = []

    def push(self, *items: AssistantContent) -> None:
        """Queue one response made of the given content items."""
        self._script.append(list(items))

    def push_text(self, text: str) -> None:
        self.push(Text(text))

    def push_error(self, error: BaseException) -> None:
        self._script.append(error)

    @property
    def remaining(self) -> int:
        return len(self._script)

    async def complete(
        self,
        history: list[Message],
        prompt: str = "",
        tools: list[ToolDefinition] | None = None,
        *,
        preamble: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResponse:
        self.calls.append({
            "history": list(history),
            "prompt": prompt,
            "tools": list(tools) if tools is not None else None,
            "preamble": preamble,
        })
        if not self._script:
            return CompletionResponse(choice=list(self.default), model="mock")
        step = self._script.popleft()
        if isinstance(step, BaseException):
            raise step
        return CompletionResponse(choice=list(step), model="mock")
