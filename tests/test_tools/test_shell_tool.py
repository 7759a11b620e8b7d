import json
from pathlib import Path

import pytest

import hal_coder.tools.permissions as permissions_module
from hal_coder.exceptions import PermissionDeniedError
from hal_coder.tools.permissions import SessionPermissions
from hal_coder.tools.registry import ToolRegistry
from hal_coder.tools.shell import ShellTool, extract_shell_base_commands, is_blocked_shell_command


def test_base_commands_are_extracted_from_pipelines():
    assert extract_shell_base_commands("FOO=1 grep -r x . | sort && echo done") == ["grep", "sort", "echo"]


def test_blocked_pattern_matches_segment_text():
    blocked, pattern = is_blocked_shell_command("ls && rm -rf /", ["rm -rf /"])

    assert blocked is True
    assert pattern == "rm -rf /"


def test_empty_command_is_blocked():
    assert is_blocked_shell_command("   ", []) == (True, "empty_command")


@pytest.mark.asyncio
async def test_allowed_command_returns_stdout_and_exit_code():
    perms = SessionPermissions(allowed_commands=["echo"])
    registry = ToolRegistry()
    registry.register(ShellTool(perms))

    result = json.loads(await registry.call("execute_shell_command", '{"command": "echo hello"}'))

    assert result["stdout"].strip() == "hello"
    assert result["exit_code"] == 0


@pytest.mark.asyncio
async def test_non_zero_exit_is_reported_not_raised():
    perms = SessionPermissions(allowed_commands=["false"])

    result = await ShellTool(perms).execute(command="false")

    assert result.success is True
    assert json.loads(result.content)["exit_code"] != 0


@pytest.mark.asyncio
async def test_command_without_permission_is_denied():
    perms = SessionPermissions(allowed_commands=["ls"])

    with pytest.raises(PermissionDeniedError, match="execute"):
        await ShellTool(perms).execute(command="ls | wc -l")


@pytest.mark.asyncio
async def test_blocked_command_is_denied_even_when_allowed():
    perms = SessionPermissions(allowed_commands=["rm"])

    with pytest.raises(PermissionDeniedError, match="blocked pattern"):
        await ShellTool(perms, blocked=["rm -rf /"]).execute(command="rm -rf /")


@pytest.mark.asyncio
async def test_working_dir_needs_read_permission(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(permissions_module, "DANGEROUS_PATHS", ("/etc",))
    perms = SessionPermissions(allowed_commands=["ls"])
    (tmp_path / "marker.txt").write_text("", encoding="utf-8")
    tool = ShellTool(perms)

    with pytest.raises(PermissionDeniedError, match="read"):
        await tool.execute(command="ls", working_dir=str(tmp_path))

    perms.allow_read(tmp_path)
    result = await tool.execute(command="ls", working_dir=str(tmp_path))
    assert "marker.txt" in json.loads(result.content)["stdout"]


@pytest.mark.asyncio
async def test_long_running_command_times_out():
    perms = SessionPermissions(allowed_commands=["sleep"])

    result = await ShellTool(perms, timeout=1).execute(command="sleep 5")

    assert result.success is False
    assert result.error == "Command timed out after 1s"
