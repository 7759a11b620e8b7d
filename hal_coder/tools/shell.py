"""Shell tool for executing commands."""

import asyncio
import json
import os
import re
import shlex
from pathlib import Path
from typing import Any

from hal_coder.exceptions import PermissionDeniedError
from hal_coder.logging import get_logger
from hal_coder.tools.permissions import SessionPermissions, basic_path_validation
from hal_coder.tools.registry import Tool, ToolResult

log = get_logger(__name__)

_ASSIGNMENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=.*$")
_SHELL_SEPARATOR_TOKENS = {";", "&&", "||", "|", "&"}
_SHELL_WRAPPER_TOKENS = {"sudo", "command", "builtin", "nohup", "time"}
_MAX_OUTPUT_CHARS = 10000


def _compile_shell_pattern(pattern: str) -> re.Pattern[str]:
    """Compile regex pattern with literal fallback for invalid regex input."""
    try:
        return re.compile(pattern)
    except re.error:
        return re.compile(re.escape(pattern))


def _split_shell_segments(command: str) -> list[list[str]]:
    """Split shell command into tokenized segments separated by control operators."""
    lexer = shlex.shlex(command, posix=True, punctuation_chars=";&|")
    lexer.whitespace_split = True
    lexer.commenters = ""
    segments: list[list[str]] = []
    current: list[str] = []
    for token in lexer:
        if token in _SHELL_SEPARATOR_TOKENS:
            if current:
                segments.append(current)
                current = []
            continue
        current.append(token)
    if current:
        segments.append(current)
    return segments


def _extract_segment_base_command(tokens: list[str]) -> str:
    """Extract executable command token from a tokenized shell segment."""
    for token in tokens:
        token = str(token).strip()
        if not token or token in _SHELL_WRAPPER_TOKENS:
            continue
        if _ASSIGNMENT_RE.match(token) and "/" not in token:
            continue
        return token
    return ""


def extract_shell_base_commands(command: str) -> list[str]:
    """Extract base command token from each shell segment."""
    cleaned = str(command or "").strip()
    if not cleaned:
        return []
    try:
        segments = _split_shell_segments(cleaned)
    except ValueError:
        return []
    return [base for segment in segments if (base := _extract_segment_base_command(segment))]


def is_blocked_shell_command(command: str, blocked_patterns: list[str]) -> tuple[bool, str]:
    """Evaluate command against blocked patterns using parsed command matching."""
    cleaned = str(command or "").strip()
    if not cleaned:
        return True, "empty_command"

    try:
        segments = _split_shell_segments(cleaned)
    except ValueError:
        return True, "unparseable_command"
    if not segments:
        return True, "unparseable_command"

    segment_texts = [" ".join(tokens) for tokens in segments]
    base_commands = [
        base
        for segment in segments
        if (base := _extract_segment_base_command(segment))
    ]
    if not base_commands:
        return True, "unparseable_command"

    for raw_pattern in blocked_patterns or []:
        pattern = str(raw_pattern or "").strip()
        if not pattern:
            continue
        compiled = _compile_shell_pattern(pattern)
        segment_level_pattern = bool(re.search(r"\s", pattern))
        targets = segment_texts if segment_level_pattern else base_commands
        matcher = compiled.search if segment_level_pattern else compiled.match
        for target in targets:
            if matcher(target):
                return True, pattern
    return False, ""


class ShellTool(Tool):
    """Execute shell commands that the session allowed."""

    name = "execute_shell_command"
    description = (
        "Execute a shell command and return its stdout, stderr and exit code. "
        "Every program in the command needs execute permission first."
    )
    timeout_seconds = 30.0
    parameters = {
        "type": "object",
        "properties": {
            "command": {
                "type": "string",
                "description": "The shell command to execute",
            },
            "working_dir": {
                "type": "string",
                "description": "Directory to run the command in (needs read permission)",
            },
            "timeout": {
                "type": "number",
                "description": "Timeout in seconds (optional)",
            },
        },
        "required": ["command"],
    }

    def __init__(
        self,
        permissions: SessionPermissions,
        blocked: list[str] | None = None,
        timeout: float = 30.0,
    ):
        self.permissions = permissions
        self.blocked = list(blocked or [])
        self.timeout_seconds = float(timeout or 30.0)

    def _check_command(self, command: str) -> None:
        """Raise if the command is blocked or not allowed for this session."""
        blocked, matched = is_blocked_shell_command(command, self.blocked)
        if blocked:
            if matched == "empty_command":
                reason = "Command is empty"
            elif matched == "unparseable_command":
                reason = "Command is not parseable"
            else:
                reason = f"Command matches blocked pattern: {matched}"
            log.warning("Blocked unsafe command", command=command, reason=reason)
            raise PermissionDeniedError("execute", f"{command} ({reason})")

        for base_cmd in extract_shell_base_commands(command):
            normalized = base_cmd.split("/")[-1]
            if not (
                self.permissions.can_execute_command(base_cmd)
                or self.permissions.can_execute_command(normalized)
            ):
                raise PermissionDeniedError("execute", base_cmd)

    async def execute(
        self,
        command: str,
        working_dir: str | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> ToolResult:
        """Execute a shell command.

        Args:
            command: Shell command to execute
            working_dir: Optional working directory
            timeout: Optional timeout override

        Returns:
            ToolResult with a JSON object of stdout, stderr and exit_code
        """
        self._check_command(command)

        cwd: Path | None = None
        if working_dir:
            cwd = Path(working_dir).expanduser().resolve()
            basic_path_validation(cwd)
            if not self.permissions.can_read(cwd):
                raise PermissionDeniedError("read", str(cwd))

        timeout = max(1.0, float(timeout or self.timeout_seconds))

        abort_event = kwargs.get("_abort_event")
        if isinstance(abort_event, asyncio.Event) and abort_event.is_set():
            return ToolResult(success=False, error="Command aborted")

        env = os.environ.copy()
        env["PATH"] = os.environ.get("PATH", "/usr/local/bin:/usr/bin:/bin")

        log.info("Executing shell command", command=command, timeout=timeout, cwd=str(cwd or ""))
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=env,
            )
        except OSError as e:
            log.error("Shell command failed to start", command=command, error=str(e))
            return ToolResult(success=False, error=str(e))

        communicate_task = asyncio.create_task(process.communicate())
        abort_wait_task: asyncio.Task[bool] | None = None
        if isinstance(abort_event, asyncio.Event):
            abort_wait_task = asyncio.create_task(abort_event.wait())
        try:
            wait_tasks: set[asyncio.Task[Any]] = {communicate_task}
            if abort_wait_task is not None:
                wait_tasks.add(abort_wait_task)
            done, _ = await asyncio.wait(
                wait_tasks,
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )

            if communicate_task not in done:
                process.kill()
                await process.wait()
                communicate_task.cancel()
                try:
                    await communicate_task
                except asyncio.CancelledError:
                    pass
                if abort_wait_task is not None and abort_wait_task in done:
                    return ToolResult(success=False, error="Command aborted")
                return ToolResult(success=False, error=f"Command timed out after {timeout:g}s")

            stdout, stderr = await communicate_task
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            communicate_task.cancel()
            raise
        finally:
            if abort_wait_task is not None and not abort_wait_task.done():
                abort_wait_task.cancel()
                try:
                    await abort_wait_task
                except asyncio.CancelledError:
                    pass

        stdout_text = stdout.decode("utf-8", errors="replace")
        stderr_text = stderr.decode("utf-8", errors="replace")
        if len(stdout_text) > _MAX_OUTPUT_CHARS:
            stdout_text = stdout_text[:_MAX_OUTPUT_CHARS] + f"\n... [truncated, {len(stdout_text)} total chars]"

        # Non-zero exit codes are reported, not raised; the model decides what to do.
        return ToolResult(
            success=True,
            content=json.dumps({
                "stdout": stdout_text,
                "stderr": stderr_text,
                "exit_code": process.returncode,
            }),
        )
