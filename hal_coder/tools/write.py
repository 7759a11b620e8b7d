"""Write tool for creating and overwriting files."""

from pathlib import Path
from typing import Any

from hal_coder.exceptions import PermissionDeniedError
from hal_coder.logging import get_logger
from hal_coder.tools.permissions import SessionPermissions, basic_path_validation
from hal_coder.tools.registry import Tool, ToolResult

log = get_logger(__name__)


class WriteFileTool(Tool):
    """Write content to files."""

    name = "write_file"
    description = (
        "Create or overwrite a file with content. Requires write permission for "
        "the file's directory."
    )
    parameters = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Path to the file to write",
            },
            "content": {
                "type": "string",
                "description": "Content to write to the file",
            },
            "append": {
                "type": "boolean",
                "description": "Append to file instead of overwriting",
            },
        },
        "required": ["path", "content"],
    }

    def __init__(self, permissions: SessionPermissions):
        self.permissions = permissions

    async def execute(self, path: str, content: str, append: bool = False, **kwargs: Any) -> ToolResult:
        """Write content to a file.

        Args:
            path: Path to file
            content: Content to write
            append: Whether to append instead of overwrite

        Returns:
            ToolResult with status
        """
        file_path = Path(path).expanduser().resolve()
        basic_path_validation(file_path)
        if not self.permissions.can_write(file_path):
            raise PermissionDeniedError("write", str(file_path))

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            mode = "a" if append else "w"
            with open(file_path, mode, encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            log.error("Write failed", path=path, error=str(e))
            return ToolResult(success=False, error=str(e))

        action = "Appended" if append else "Written"
        return ToolResult(success=True, content=f"{action} {len(content)} chars to {file_path}")
