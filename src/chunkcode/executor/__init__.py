"""Executor module for chunkcode.

Engine handles, their private workspaces, and the ffmpeg argument lists
the pipeline runs through them.
"""

from chunkcode.executor.command import (
    CodecArgs,
    CodecCommandBuilder,
    build_concat_command,
    build_concat_manifest,
    build_segment_cut_command,
    build_transcode_command,
)
from chunkcode.executor.engine import FFmpegEngine
from chunkcode.executor.interface import (
    Engine,
    EngineError,
    EngineRun,
    EngineTerminated,
    ToolNotAvailableError,
    check_tool_availability,
    find_tool,
    require_tool,
)
from chunkcode.executor.workspace import Workspace, WorkspaceError

__all__ = [
    # Commands
    "CodecArgs",
    "CodecCommandBuilder",
    "build_concat_command",
    "build_concat_manifest",
    "build_segment_cut_command",
    "build_transcode_command",
    # Engine
    "Engine",
    "EngineError",
    "EngineRun",
    "EngineTerminated",
    "FFmpegEngine",
    # Tools
    "ToolNotAvailableError",
    "check_tool_availability",
    "find_tool",
    "require_tool",
    # Workspace
    "Workspace",
    "WorkspaceError",
]
