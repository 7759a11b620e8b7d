"""Agent handle: a completion model bundled with its preamble and tools."""

from typing import Sequence

from hal_coder.exceptions import CompletionError, ToolNotFoundError
from hal_coder.llm import CompletionModel, CompletionResponse, Message, ToolDefinition
from hal_coder.logging import get_logger
from hal_coder.tools.registry import ToolRegistry

log = get_logger(__name__)


class Agent:
    """Model-backed agent.

    Holds no conversation state, so one instance can serve any number of
    sessions; callers own their histories.
    """

    def __init__(
        self,
        model: CompletionModel,
        preamble: str = "",
        tools: ToolRegistry | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        name: str = "agent",
    ):
        self.model = model
        self.preamble = preamble
        self.tools = tools
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.name = name

    def tool_definitions(self) -> list[ToolDefinition]:
        """Definitions of the tools this agent can call."""
        if self.tools is None:
            return []
        return self.tools.get_definitions()

    async def completion(
        self,
        prompt: str,
        history: Sequence[Message],
        tools: Sequence[ToolDefinition] | None = None,
    ) -> CompletionResponse:
        """Request a completion for a copy of ``history``.

        Raises:
            CompletionError if the model call fails for any reason
        """
        try:
            return await self.model.complete(
                list(history),
                prompt,
                list(tools) if tools else None,
                preamble=self.preamble or None,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except CompletionError:
            raise
        except Exception as e:
            log.error("Completion model raised unexpected error", agent=self.name, error=str(e))
            raise CompletionError(f"Agent completion request failed: {e}") from e

    async def call_tool(self, name: str, args_json: str) -> str:
        """Run one of the agent's tools with JSON-encoded arguments."""
        if self.tools is None:
            raise ToolNotFoundError(name)
        return await self.tools.call(name, args_json)
