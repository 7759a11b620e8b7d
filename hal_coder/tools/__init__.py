"""Tools package for HAL Coder."""

from hal_coder.config import Config, get_config
from hal_coder.tools.permissions import SessionPermissions, basic_path_validation
from hal_coder.tools.project import FinishTool, RequestPermissionTool, ThinkTool
from hal_coder.tools.read import ReadFileTool
from hal_coder.tools.registry import Tool, ToolRegistry, ToolResult
from hal_coder.tools.shell import ShellTool
from hal_coder.tools.write import WriteFileTool


def build_default_registry(
    permissions: SessionPermissions | None = None,
    config: Config | None = None,
) -> ToolRegistry:
    """Build a registry with every enabled built-in tool.

    Args:
        permissions: Shared session permissions; a fresh set is created if omitted
        config: Configuration to read tool settings from (defaults to global)

    Returns:
        ToolRegistry containing the enabled tools
    """
    cfg = config or get_config()
    perms = permissions or SessionPermissions(allowed_commands=cfg.tools.shell.allowed_commands)
    candidates: list[Tool] = [
        FinishTool(),
        ThinkTool(),
        RequestPermissionTool(perms),
        ReadFileTool(perms, max_bytes=cfg.tools.read.max_bytes),
        WriteFileTool(perms),
        ShellTool(perms, blocked=cfg.tools.shell.blocked, timeout=cfg.tools.shell.timeout),
    ]
    enabled = set(cfg.tools.enabled)
    registry = ToolRegistry()
    for tool in candidates:
        if tool.name in enabled:
            registry.register(tool)
    return registry


__all__ = [
    "FinishTool",
    "ReadFileTool",
    "RequestPermissionTool",
    "SessionPermissions",
    "ShellTool",
    "ThinkTool",
    "Tool",
    "ToolRegistry",
    "ToolResult",
    "WriteFileTool",
    "basic_path_validation",
    "build_default_registry",
]
