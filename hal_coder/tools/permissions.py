"""Session-scoped permissions for file and command tools."""

from pathlib import Path

from hal_coder.exceptions import PermissionDeniedError
from hal_coder.logging import get_logger

log = get_logger(__name__)

DANGEROUS_PATHS: tuple[str, ...] = ("/etc", "/bin", "/dev", "/usr", "/tmp")


def _canonical(path: Path | str) -> Path:
    return Path(path).expanduser().resolve()


def basic_path_validation(path: Path | str) -> None:
    """Reject paths inside system directories.

    Raises:
        PermissionDeniedError if the path is inside a protected directory
    """
    candidate = _canonical(path)
    for dangerous in DANGEROUS_PATHS:
        root = _canonical(dangerous)
        if candidate == root or root in candidate.parents:
            raise PermissionDeniedError("access", f"{path} (system directory {dangerous})")


class SessionPermissions:
    """Directories and commands the agent was granted during a session.

    Write access implies read access. Directory grants cover everything
    below them. Commands are matched on their program name.
    """

    def __init__(self, allowed_commands: list[str] | None = None):
        self.read_allowed_dirs: set[Path] = set()
        self.write_allowed_dirs: set[Path] = set()
        self.allowed_commands: set[str] = {
            self._program(cmd) for cmd in (allowed_commands or []) if self._program(cmd)
        }

    @staticmethod
    def _program(command: str) -> str:
        parts = str(command or "").split()
        return parts[0] if parts else ""

    @staticmethod
    def _covered(path: Path, allowed_dirs: set[Path]) -> bool:
        return any(path == allowed or allowed in path.parents for allowed in allowed_dirs)

    def can_read(self, path: Path | str) -> bool:
        return self._covered(_canonical(path), self.read_allowed_dirs)

    def can_write(self, path: Path | str) -> bool:
        target = _canonical(path)
        # Files are checked through their directory; new files do not exist yet.
        if not target.is_dir():
            target = target.parent
        return self._covered(target, self.write_allowed_dirs)

    def can_execute_command(self, command: str) -> bool:
        return self._program(command) in self.allowed_commands

    def allow_read(self, directory: Path | str) -> Path:
        resolved = _canonical(directory)
        log.info("Granting read permission", directory=str(resolved))
        self.read_allowed_dirs.add(resolved)
        return resolved

    def allow_write(self, directory: Path | str) -> Path:
        resolved = _canonical(directory)
        log.info("Granting write permission", directory=str(resolved))
        self.write_allowed_dirs.add(resolved)
        self.read_allowed_dirs.add(resolved)
        return resolved

    def allow_command(self, command: str) -> str:
        program = self._program(command)
        if not program:
            raise ValueError("Command must not be empty")
        log.info("Adding command to allowlist", command=program)
        self.allowed_commands.add(program)
        return program
