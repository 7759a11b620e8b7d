"""Configuration for coder sessions."""

from dataclasses import dataclass
from typing import Sequence

from hal_coder.agent import Agent
from hal_coder.config import CoderSettings, get_config
from hal_coder.llm import ToolDefinition


@dataclass(frozen=True)
class CoderConfig:
    """Agents, tool definitions and limits for a Pro/Junior session.

    Frozen so that one instance can back several concurrent sessions; the
    agents it references keep no per-session state.
    """

    # Plans the work and reviews the Junior's transcript.
    pro_agent: Agent
    # Executes the plan; its tool registry serves the tool calls.
    junior_agent: Agent
    # Definitions advertised to the Junior on every completion call.
    tool_defs: tuple[ToolDefinition, ...]
    max_junior_iterations: int
    # Capacity of the Junior event channel; 0 means unbounded.
    event_buffer: int = 32

    def __post_init__(self) -> None:
        object.__setattr__(self, "tool_defs", tuple(self.tool_defs))
        iterations = self.max_junior_iterations
        if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
            raise ValueError("max_junior_iterations must be a positive integer")
        if isinstance(self.event_buffer, bool) or not isinstance(self.event_buffer, int) or self.event_buffer < 0:
            raise ValueError("event_buffer must be >= 0")

    @classmethod
    def from_settings(
        cls,
        pro_agent: Agent,
        junior_agent: Agent,
        settings: CoderSettings | None = None,
        tool_defs: Sequence[ToolDefinition] | None = None,
    ) -> "CoderConfig":
        """Build a config from loaded settings and the Junior's own tools."""
        coder_settings = settings or get_config().coder
        return cls(
            pro_agent=pro_agent,
            junior_agent=junior_agent,
            tool_defs=tuple(tool_defs if tool_defs is not None else junior_agent.tool_definitions()),
            max_junior_iterations=coder_settings.max_junior_iterations,
            event_buffer=coder_settings.event_buffer,
        )
