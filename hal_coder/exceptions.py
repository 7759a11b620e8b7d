"""Custom exceptions for HAL Coder."""

from typing import Any


class HalError(Exception):
    """Base exception for HAL Coder."""

    pass


class ConfigurationError(HalError):
    """Configuration-related errors."""

    pass


class CompletionError(HalError):
    """Completion model errors."""

    pass


class LLMAPIError(CompletionError):
    """Provider API errors (rate limit, auth, etc.)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ToolError(HalError):
    """Tool execution errors."""

    pass


class ToolExecutionError(ToolError):
    """Tool execution failed."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name


class ToolNotFoundError(ToolError):
    """Tool not found in registry."""

    def __init__(self, tool_name: str):
        super().__init__(f"Tool not found: {tool_name}")
        self.tool_name = tool_name


class ToolArgumentsError(ToolError):
    """Tool arguments could not be encoded or decoded."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"Failed to serialize tool arguments for '{tool_name}': {message}")
        self.tool_name = tool_name


class PermissionDeniedError(ToolError):
    """Operation not allowed by session permissions."""

    def __init__(self, operation: str, target: str):
        super().__init__(f"Permission denied: {operation} {target}")
        self.operation = operation
        self.target = target


class CoderError(HalError):
    """Errors raised by the agent executor and coder sessions."""

    pass


class EmptyPlanError(CoderError):
    """Pro agent answered the planning request with nothing usable."""

    def __init__(self):
        super().__init__("Pro agent returned an empty plan")


class NoInitialResponseError(CoderError):
    """Agent returned no content for the first request."""

    def __init__(self):
        super().__init__("Agent provided no initial response")


class StoppedRespondingError(CoderError):
    """Agent produced nothing new and nothing is pending."""

    def __init__(self, history: list[Any] | None = None):
        super().__init__("Agent stopped responding")
        self.history = list(history or [])


class MaxIterationsReachedError(CoderError):
    """Executor loop hit its iteration cap."""

    def __init__(self, max_iterations: int):
        super().__init__(f"Junior execution reached maximum iterations ({max_iterations})")
        self.max_iterations = max_iterations


class ExecutorBusyError(CoderError):
    """Executor instance already has a run in flight."""

    def __init__(self):
        super().__init__("Agent executor is already running")


class ExecutionCancelledError(CoderError):
    """Event receiver went away before the run finished."""

    def __init__(self):
        super().__init__("Execution cancelled: event channel closed by receiver")
