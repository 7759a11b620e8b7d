"""Control tools: finish, think and request_permission."""

import json
from datetime import datetime, timezone
from typing import Any

from hal_coder.logging import get_logger
from hal_coder.tools.permissions import SessionPermissions, basic_path_validation
from hal_coder.tools.registry import Tool, ToolResult

log = get_logger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class FinishTool(Tool):
    """Signal that the current task is done."""

    name = "finish"
    description = (
        "Finish the task by summarizing the results. This tool ends the current "
        "conversation. Use it when the task is complete, when you are not making "
        "progress, or when you need more information. Include a summary of what "
        "was accomplished."
    )
    parameters = {
        "type": "object",
        "properties": {
            "summary": {
                "type": "string",
                "description": "The summary of the task process and results.",
            },
        },
        "required": ["summary"],
    }

    async def execute(self, summary: str = "", **kwargs: Any) -> ToolResult:
        if not str(summary or "").strip():
            return ToolResult(
                success=False,
                error="Summary cannot be empty. Please provide a brief description of the task results.",
            )

        log.info("Task finished", summary=summary)
        return ToolResult(
            success=True,
            content=json.dumps({
                "success": True,
                "task_completed": True,
                "timestamp": _timestamp(),
                "summary": summary,
                "message": "Task completed successfully",
            }),
        )


class ThinkTool(Tool):
    """Record a thought without side effects."""

    name = "think"
    description = (
        "Use the tool to think about something. It will not obtain new information "
        "or change anything, but just append the thought to the log. Use it when "
        "complex reasoning or some cache memory is needed."
    )
    parameters = {
        "type": "object",
        "properties": {
            "thought": {
                "type": "string",
                "description": "A thought to think about",
            },
        },
        "required": ["thought"],
    }

    async def execute(self, thought: str = "", **kwargs: Any) -> ToolResult:
        if not str(thought or "").strip():
            return ToolResult(success=False, error="Thought cannot be empty")

        log.info("Thought process", thought=thought)
        return ToolResult(
            success=True,
            content=json.dumps({
                "success": True,
                "thought_logged": True,
                "timestamp": _timestamp(),
                "message": "Thought recorded successfully",
            }),
        )


class RequestPermissionTool(Tool):
    """Grant read/write access to a directory or allow a command."""

    name = "request_permission"
    description = (
        "Request permission before performing operations - use 'read' or 'write' for "
        "file access with a directory path, or 'execute' with the command as path. "
        "Must be called before using other tools. Directory permissions cover all "
        "contents; command permissions cover the named program only."
    )
    parameters = {
        "type": "object",
        "properties": {
            "operation": {
                "type": "string",
                "enum": ["read", "write", "execute"],
                "description": "Type of permission to request",
            },
            "path": {
                "type": "string",
                "description": "Directory or file path, or for 'execute' the command to run",
            },
        },
        "required": ["operation", "path"],
    }

    def __init__(self, permissions: SessionPermissions):
        self.permissions = permissions

    async def execute(self, operation: str, path: str, **kwargs: Any) -> ToolResult:
        op = str(operation or "").strip().lower()
        target = str(path or "").strip()
        if not target:
            return ToolResult(success=False, error="Path cannot be empty")

        if op in ("read", "write"):
            basic_path_validation(target)
            if op == "read":
                granted = self.permissions.allow_read(target)
            else:
                granted = self.permissions.allow_write(target)
            message = f"{op.capitalize()} permission granted for directory: {granted}"
        elif op == "execute":
            program = self.permissions.allow_command(target)
            message = f"Execute permission granted for command: {program}"
        else:
            return ToolResult(success=False, error=f"Unknown operation: {operation}")

        return ToolResult(
            success=True,
            content=json.dumps({"granted": True, "message": message}),
        )
