"""Configuration management for HAL Coder."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Paths
DEFAULT_CONFIG_PATH = Path("~/.hal/config.yaml").expanduser()
LOCAL_CONFIG_FILENAME = "config.yaml"


class ModelConfig(BaseModel):
    """Completion model configuration for one agent."""

    provider: str = "ollama"
    model: str = "qwen2.5-coder:14b"
    temperature: float = 0.2
    max_tokens: int = 8192
    api_key: str = ""
    base_url: str = ""


def _default_pro_model() -> ModelConfig:
    return ModelConfig(model="qwen2.5:32b", temperature=0.4)


class AgentsConfig(BaseModel):
    """Pro (planner/reviewer) and Junior (tool user) model settings."""

    pro: ModelConfig = Field(default_factory=_default_pro_model)
    junior: ModelConfig = Field(default_factory=ModelConfig)


class CoderSettings(BaseModel):
    """Coder session limits."""

    max_junior_iterations: int = 50
    event_buffer: int = 32

    @field_validator("max_junior_iterations")
    @classmethod
    def _positive_iterations(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_junior_iterations must be a positive integer")
        return value

    @field_validator("event_buffer")
    @classmethod
    def _non_negative_buffer(cls, value: int) -> int:
        if value < 0:
            raise ValueError("event_buffer must be >= 0 (0 means unbounded)")
        return value


class ShellToolConfig(BaseModel):
    """Shell tool configuration."""

    timeout: int = 30
    blocked: list[str] = [
        "rm -rf /",
        "mkfs",
        ":(){:|:&};:",
    ]
    allowed_commands: list[str] = ["ls"]


class ReadToolConfig(BaseModel):
    """File read tool configuration."""

    max_bytes: int = 100_000


class ToolsConfig(BaseModel):
    """Tools configuration."""

    enabled: list[str] = [
        "finish",
        "think",
        "request_permission",
        "read_file",
        "write_file",
        "execute_shell_command",
    ]
    shell: ShellToolConfig = Field(default_factory=ShellToolConfig)
    read: ReadToolConfig = Field(default_factory=ReadToolConfig)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"


class Config(BaseSettings):
    """Main configuration for HAL Coder."""

    agents: AgentsConfig = Field(default_factory=AgentsConfig)
    coder: CoderSettings = Field(default_factory=CoderSettings)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="HAL_",
        env_file=".env",
        env_nested_delimiter="__",
    )

    @classmethod
    def resolve_default_config_path(cls) -> Path:
        """Resolve default config path with local-first precedence."""
        local_path = Path.cwd() / LOCAL_CONFIG_FILENAME
        if local_path.exists():
            return local_path
        return DEFAULT_CONFIG_PATH

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> "Config":
        """Load configuration from YAML file."""
        config_path = Path(path).expanduser() if path else cls.resolve_default_config_path()

        if not config_path.exists():
            return cls()

        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def load(cls) -> "Config":
        """Load configuration; HAL_ env vars fill values the YAML file leaves unset."""
        return cls.from_yaml()

    def save(self, path: Path | str | None = None) -> None:
        """Save configuration to YAML file."""
        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(exclude_none=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
