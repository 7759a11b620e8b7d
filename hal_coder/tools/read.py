"""Read tool for showing file contents."""

from pathlib import Path
from typing import Any

from hal_coder.exceptions import PermissionDeniedError
from hal_coder.logging import get_logger
from hal_coder.tools.permissions import SessionPermissions, basic_path_validation
from hal_coder.tools.registry import Tool, ToolResult

log = get_logger(__name__)


class ReadFileTool(Tool):
    """Read file contents."""

    name = "read_file"
    description = "Read the contents of a file. Requires read permission for its directory."
    parameters = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Path to the file to read",
            },
            "limit": {
                "type": "number",
                "description": "Maximum number of lines to read",
            },
            "offset": {
                "type": "number",
                "description": "Line number to start reading from (1-indexed)",
            },
        },
        "required": ["path"],
    }

    def __init__(self, permissions: SessionPermissions, max_bytes: int = 100_000):
        self.permissions = permissions
        self.max_bytes = max_bytes

    async def execute(
        self,
        path: str,
        limit: int | None = None,
        offset: int | None = None,
        **kwargs: Any,
    ) -> ToolResult:
        """Read a file.

        Args:
            path: Path to file
            limit: Optional line limit
            offset: Optional line offset

        Returns:
            ToolResult with file contents
        """
        file_path = Path(path).expanduser().resolve()
        basic_path_validation(file_path)
        if not self.permissions.can_read(file_path):
            raise PermissionDeniedError("read", str(file_path))

        if not file_path.exists():
            return ToolResult(success=False, error=f"File not found: {path}")
        if not file_path.is_file():
            return ToolResult(success=False, error=f"Not a file: {path}")

        file_size = file_path.stat().st_size
        if file_size > self.max_bytes:
            return ToolResult(
                success=False,
                error=f"File too large: {file_size} bytes (max {self.max_bytes})",
            )

        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.error("Read failed", path=path, error=str(e))
            return ToolResult(success=False, error=str(e))

        lines = content.splitlines()
        start = max(int(offset or 1), 1)
        selected = lines[start - 1:]
        if limit:
            selected = selected[:int(limit)]

        info = f"[{file_path} {len(lines)} lines]"
        if offset or limit:
            info += f" [lines {start}-{start + len(selected) - 1}]"

        return ToolResult(success=True, content=f"{info}\n" + "\n".join(selected))
