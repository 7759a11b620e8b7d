"""Conversation types, the completion model interface and the Ollama provider."""

import json
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Union

import httpx

from hal_coder.exceptions import CompletionError, LLMAPIError
from hal_coder.logging import get_logger

log = get_logger(__name__)


OLLAMA_NATIVE_BASE_URL = "http://127.0.0.1:11434"


@dataclass(frozen=True)
class Text:
    """Plain text content."""

    text: str


@dataclass(frozen=True)
class ToolCall:
    """A tool call from the model."""

    id: str
    name: str
    arguments: Any = field(default_factory=dict)

    @property
    def arguments_json(self) -> str:
        """Arguments encoded as a JSON string."""
        return json.dumps(self.arguments)


@dataclass(frozen=True)
class ToolResult:
    """Result of a tool call, keyed by the id of the call it answers."""

    id: str
    content: tuple[Text, ...]

    @property
    def text(self) -> str:
        return "\n".join(part.text for part in self.content)


UserContent = Union[Text, ToolResult]
AssistantContent = Union[Text, ToolCall]


@dataclass(frozen=True)
class Message:
    """A single turn in the conversation."""

    role: str  # "user", "assistant"
    content: tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", tuple(self.content))
        if self.role == "user":
            allowed: tuple[type, ...] = (Text, ToolResult)
        elif self.role == "assistant":
            allowed = (Text, ToolCall)
        else:
            raise ValueError(f"Unsupported message role: {self.role!r}")
        if not self.content:
            raise ValueError("Message content must not be empty")
        for item in self.content:
            if not isinstance(item, allowed):
                raise TypeError(f"{type(item).__name__} is not valid {self.role} content")

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role="user", content=(Text(text),))

    @classmethod
    def assistant(cls, item: AssistantContent) -> "Message":
        return cls(role="assistant", content=(item,))

    @classmethod
    def assistant_text(cls, text: str) -> "Message":
        return cls(role="assistant", content=(Text(text),))

    @classmethod
    def tool_result(cls, call_id: str, text: str) -> "Message":
        return cls(role="user", content=(ToolResult(id=call_id, content=(Text(text),)),))


@dataclass
class CompletionResponse:
    """Response from the completion model."""

    choice: list[AssistantContent] = field(default_factory=list)
    model: str = ""
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Concatenated text items, tool calls skipped."""
        return "\n".join(item.text for item in self.choice if isinstance(item, Text))


@dataclass(frozen=True)
class ToolDefinition:
    """Definition of a tool for the model."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema


class CompletionModel(ABC):
    """Abstract base class for completion models."""

    @abstractmethod
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
        """Send the history (plus an optional trailing user prompt) to the model.

        Implementations must not mutate ``history`` and raise
        ``CompletionError`` on failure.
        """
        pass


class OllamaProvider(CompletionModel):
    """Direct Ollama API provider."""

    def __init__(
        self,
        model: str = "qwen2.5-coder:14b",
        base_url: str = OLLAMA_NATIVE_BASE_URL,
        temperature: float = 0.2,
        max_tokens: int = 8192,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize Ollama provider.

        Args:
            model: Ollama model name (e.g., 'llama3.2', 'qwen2.5-coder:14b')
            base_url: Ollama API base URL
            temperature: Sampling temperature
            max_tokens: Max tokens to generate
            api_key: Optional API key (Ollama usually doesn't need one locally)
            client: Optional preconfigured HTTP client
        """
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = api_key

        self.client = client or httpx.AsyncClient(
            timeout=120.0,
            follow_redirects=True,
        )

    def _convert_messages(
        self,
        history: list[Message],
        prompt: str = "",
        preamble: str | None = None,
    ) -> list[dict[str, Any]]:
        """Convert messages to Ollama format."""
        result: list[dict[str, Any]] = []
        if preamble:
            result.append({"role": "system", "content": preamble})

        # Ollama tool messages carry the tool name, not the call id.
        call_names: dict[str, str] = {}
        for msg in history:
            if msg.role == "assistant":
                texts = [item.text for item in msg.content if isinstance(item, Text)]
                calls = [item for item in msg.content if isinstance(item, ToolCall)]
                entry: dict[str, Any] = {"role": "assistant", "content": "\n".join(texts)}
                if calls:
                    entry["tool_calls"] = [
                        {"function": {"name": call.name, "arguments": call.arguments}}
                        for call in calls
                    ]
                    call_names.update({call.id: call.name for call in calls})
                result.append(entry)
                continue

            for item in msg.content:
                if isinstance(item, Text):
                    result.append({"role": "user", "content": item.text})
                else:
                    tool_entry = {"role": "tool", "content": item.text}
                    if item.id in call_names:
                        tool_entry["tool_name"] = call_names[item.id]
                    result.append(tool_entry)

        if prompt:
            result.append({"role": "user", "content": prompt})
        return result

    def _convert_tools(self, tools: list[ToolDefinition]) -> list[dict[str, Any]]:
        """Convert tools to Ollama format."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description or "",
                    "parameters": tool.parameters or {},
                },
            }
            for tool in tools
            if tool.name
        ]

    def _parse_response(self, data: dict[str, Any]) -> CompletionResponse:
        """Turn an Ollama chat payload into assistant content items."""
        message = data.get("message", {}) or {}
        choice: list[AssistantContent] = []

        content = message.get("content", "") or ""
        if content.strip():
            choice.append(Text(content))

        for tc in message.get("tool_calls") or []:
            function = tc.get("function", {}) or {}
            arguments = function.get("arguments", {})
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments)
                except json.JSONDecodeError:
                    log.warning("Tool call arguments are not valid JSON", tool=function.get("name"))
            choice.append(ToolCall(
                id=str(tc.get("id") or f"ollama_call_{uuid.uuid4().hex[:12]}"),
                name=function.get("name", ""),
                arguments=arguments,
            ))

        usage = {
            "prompt_tokens": data.get("prompt_eval_count", 0),
            "completion_tokens": data.get("eval_count", 0),
            "total_tokens": (data.get("prompt_eval_count", 0) + data.get("eval_count", 0)),
        }
        return CompletionResponse(choice=choice, model=self.model, usage=usage)

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
        """Generate a completion."""
        url = f"{self.base_url}/api/chat"

        ollama_messages = self._convert_messages(history, prompt, preamble)
        ollama_tools = self._convert_tools(list(tools)) if tools else None

        options: dict[str, Any] = {
            "num_ctx": 65536,
            "temperature": self.temperature if temperature is None else temperature,
        }
        if max_tokens or self.max_tokens:
            options["num_predict"] = max_tokens or self.max_tokens

        body: dict[str, Any] = {
            "model": self.model,
            "messages": ollama_messages,
            "stream": False,
            "options": options,
        }
        if ollama_tools:
            body["tools"] = ollama_tools

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            log.debug("Calling Ollama", model=self.model, url=url, msg_count=len(ollama_messages))
            response = await self.client.post(url, json=body, headers=headers)
            log.debug("Ollama response status", status=response.status_code)

            if not response.is_success:
                raise LLMAPIError(
                    f"Ollama API error {response.status_code}: {response.text}",
                    status_code=response.status_code,
                )

            return self._parse_response(response.json())

        except LLMAPIError:
            raise
        except httpx.HTTPError as e:
            raise LLMAPIError(f"Ollama HTTP error: {e}") from e
        except json.JSONDecodeError as e:
            raise CompletionError(f"Ollama response decode error: {e}") from e

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()


def create_provider(
    provider: str = "ollama",
    model: str = "qwen2.5-coder:14b",
    api_key: str | None = None,
    base_url: str | None = None,
    temperature: float = 0.2,
    max_tokens: int = 8192,
) -> CompletionModel:
    """Create a completion model.

    Args:
        provider: Provider name (ollama, mock)
        model: Model name
        api_key: Optional API key
        base_url: Optional base URL
        temperature: Default temperature
        max_tokens: Default max tokens

    Returns:
        Configured CompletionModel instance
    """
    name = (provider or "").strip().lower()
    if name == "ollama":
        return OllamaProvider(
            model=model,
            base_url=base_url or OLLAMA_NATIVE_BASE_URL,
            temperature=temperature,
            max_tokens=max_tokens,
            api_key=api_key,
        )
    if name == "mock":
        from hal_coder.llm.mock import MockCompletionModel

        return MockCompletionModel()
    raise ValueError(f"Provider '{provider}' not supported. Use 'ollama' or 'mock'.")


__all__ = [
    "AssistantContent",
    "CompletionModel",
    "CompletionResponse",
    "Message",
    "OllamaProvider",
    "Text",
    "ToolCall",
    "ToolDefinition",
    "ToolResult",
    "UserContent",
    "create_provider",
]
