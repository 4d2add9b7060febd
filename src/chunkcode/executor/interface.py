"""Engine protocol and tool availability utilities.

This module defines the interface for codec-engine handles and utilities
to locate the external tools they drive.
"""

from __future__ import annotations

import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from chunkcode.executor.workspace import Workspace

# Install hints shown when a required tool is missing
_TOOL_HINTS: dict[str, str] = {
    "ffmpeg": (
        "Install ffmpeg (https://ffmpeg.org/download.html) "
        "or set CHUNKCODE_FFMPEG_PATH"
    ),
    "ffprobe": "ffprobe ships with ffmpeg; install it or set CHUNKCODE_FFPROBE_PATH",
}


class ToolNotAvailableError(RuntimeError):
    """Raised when a required external tool cannot be found.

    Attributes:
        tool_name: Name of the missing tool.
    """

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        hint = _TOOL_HINTS.get(tool_name, "")
        message = f"Required tool not available: {tool_name}"
        if hint:
            message += f". {hint}"
        super().__init__(message)


class EngineError(Exception):
    """Raised when the codec engine cannot complete an invocation.

    Attributes:
        returncode: Process return code (-1 on timeout).
        stderr_tail: Last lines of engine diagnostics.
    """

    def __init__(
        self, message: str, returncode: int = -1, stderr_tail: str = ""
    ) -> None:
        self.returncode = returncode
        self.stderr_tail = stderr_tail
        super().__init__(message)


class EngineTerminated(EngineError):
    """Raised when an engine is used or running after terminate()."""

    def __init__(self, message: str = "Engine was terminated") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class EngineRun:
    """Result of one codec-engine invocation.

    This is a frozen dataclass; the engine never mutates a run after
    returning it.
    """

    returncode: int
    """Process return code, or -1 if the run timed out."""

    stderr_lines: list[str] = field(default_factory=list)
    """Diagnostic output of the engine."""

    timed_out: bool = False
    """True if the run was killed because it exceeded its timeout."""

    @property
    def success(self) -> bool:
        """True if the engine exited cleanly."""
        return self.returncode == 0 and not self.timed_out

    def stderr_tail(self, lines: int = 10) -> str:
        """Get the last lines of engine diagnostics as one string."""
        return "".join(self.stderr_lines[-lines:]).strip()

    def describe_failure(self) -> str:
        """Human-readable failure cause for logs and error messages."""
        if self.timed_out:
            reason = "engine timed out"
        else:
            reason = f"engine exited with code {self.returncode}"
        tail = self.stderr_tail(3)
        return f"{reason}: {tail}" if tail else reason


class Engine(Protocol):
    """Protocol for codec-engine handles.

    An engine is bound to exactly one workspace (its private virtual
    filesystem); argument lists refer to workspace entries by bare name.
    """

    workspace: Workspace

    def exec(self, args: Sequence[str]) -> EngineRun:
        """Run the engine with the given arguments.

        Args:
            args: Engine arguments, without the executable itself.

        Returns:
            EngineRun with the return code and diagnostics.

        Raises:
            EngineTerminated: If the engine was terminated.
        """
        ...

    def terminate(self) -> None:
        """Kill any running invocation and refuse further ones."""
        ...

    def close(self) -> None:
        """Release the engine and destroy its workspace."""
        ...


# =============================================================================
# Tool Resolution Functions
# =============================================================================


def find_tool(tool_name: str, configured: Path | None = None) -> Path | None:
    """Locate an external tool.

    Args:
        tool_name: Name of the tool (e.g. "ffmpeg").
        configured: Explicitly configured path, checked first.

    Returns:
        Path to the executable, or None if it cannot be found.
    """
    if configured is not None:
        configured = configured.expanduser()
        if configured.is_file():
            return configured
        found = shutil.which(str(configured))
        return Path(found) if found else None

    found = shutil.which(tool_name)
    return Path(found) if found else None


def require_tool(tool_name: str, configured: Path | None = None) -> Path:
    """Get path to a required tool, raising an error if not available.

    Args:
        tool_name: Name of the tool to find.
        configured: Explicitly configured path, checked first.

    Returns:
        Path to the tool executable.

    Raises:
        ToolNotAvailableError: If the tool is not available.
    """
    path = find_tool(tool_name, configured)
    if path is None:
        raise ToolNotAvailableError(tool_name)
    return path


def check_tool_availability(
    ffmpeg_path: Path | None = None,
    ffprobe_path: Path | None = None,
) -> dict[str, bool]:
    """Check which external tools are available on the system.

    Returns:
        Dict mapping tool name to availability.
    """
    return {
        "ffmpeg": find_tool("ffmpeg", ffmpeg_path) is not None,
        "ffprobe": find_tool("ffprobe", ffprobe_path) is not None,
    }
