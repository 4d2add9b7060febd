"""FFmpeg engine handle bound to a private workspace.

An FFmpegEngine runs ffmpeg with its working directory set to the
workspace, so argument lists address entries by bare name. Each pool slot
owns one engine; the job owns another for probing, cutting and joining.
"""

import logging
import queue
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import threading
import time
from collections.abc import Sequence
from pathlib import Path

from chunkcode.executor.interface import EngineRun, EngineTerminated
from chunkcode.executor.workspace import Workspace

logger = logging.getLogger(__name__)


class FFmpegEngine:
    """Codec-engine handle running ffmpeg inside one workspace.

    Provides:
    - Invocation with cwd inside the workspace
    - Threaded stderr capture with an optional timeout
    - Immediate, non-graceful termination from another thread

    At most one invocation runs at a time per engine.
    """

    BASE_ARGS: tuple[str, ...] = ("-hide_banner", "-nostdin", "-y")
    STDERR_DRAIN_TIMEOUT: float = 5.0  # Timeout for draining stderr after process ends

    def __init__(
        self,
        workspace: Workspace,
        ffmpeg_path: Path,
        timeout: float | None = None,
        name: str = "engine",
    ) -> None:
        """Initialize the engine.

        Args:
            workspace: Private namespace this engine reads and writes.
            ffmpeg_path: Path to the ffmpeg executable.
            timeout: Per-invocation timeout in seconds. None = no limit.
            name: Label used in log messages.
        """
        self.workspace = workspace
        self.name = name
        self._ffmpeg_path = ffmpeg_path
        self._timeout = timeout
        self._lock = threading.Lock()
        self._process: subprocess.Popen[str] | None = None
        self._terminated = False

    @property
    def terminated(self) -> bool:
        return self._terminated

    def exec(self, args: Sequence[str]) -> EngineRun:
        """Run ffmpeg with the given arguments inside the workspace.

        Args:
            args: ffmpeg arguments, without the executable.

        Returns:
            EngineRun with the return code and stderr lines.

        Raises:
            EngineTerminated: If the engine was terminated before or during
                the run.
            OSError: If ffmpeg cannot be started.
        """
        cmd = [str(self._ffmpeg_path), *self.BASE_ARGS, *args]
        logger.debug("%s executing: %s", self.name, " ".join(cmd))

        with self._lock:
            if self._terminated:
                raise EngineTerminated(f"{self.name} was terminated")
            process = subprocess.Popen(  # nosec B603 - args are built internally
                cmd,
                cwd=self.workspace.path,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
            self._process = process

        try:
            returncode, stderr_lines, timed_out = self._wait(process)
        finally:
            with self._lock:
                self._process = None

        if self._terminated:
            raise EngineTerminated(f"{self.name} was terminated during a run")

        run = EngineRun(
            returncode=returncode, stderr_lines=stderr_lines, timed_out=timed_out
        )
        if not run.success:
            logger.debug("%s run failed: %s", self.name, run.describe_failure())
        return run

    def _wait(self, process: subprocess.Popen[str]) -> tuple[int, list[str], bool]:
        """Wait for a process while reading stderr in a separate thread.

        Returns:
            Tuple of (returncode, stderr_lines, timed_out). returncode is -1
            on timeout.
        """
        stderr_output: list[str] = []
        stderr_queue: queue.Queue[str | None] = queue.Queue()

        def read_stderr() -> None:
            """Read stderr lines and put them in the queue."""
            try:
                assert process.stderr is not None
                for line in process.stderr:
                    stderr_queue.put(line)
            except (ValueError, OSError) as e:
                # Pipe closed or process killed
                logger.debug("Stderr reader stopped: %s", e)
            finally:
                stderr_queue.put(None)  # Signal end of output

        reader_thread = threading.Thread(
            target=read_stderr, daemon=True, name=f"{self.name}-stderr"
        )
        reader_thread.start()

        start_time = time.monotonic()
        timed_out = False

        while True:
            if self._timeout is not None:
                if time.monotonic() - start_time >= self._timeout:
                    timed_out = True
                    break
            try:
                line = stderr_queue.get(timeout=0.5)
            except queue.Empty:
                if process.poll() is not None and not reader_thread.is_alive():
                    break
                continue
            if line is None:
                break  # End of stderr
            stderr_output.append(line)

        if timed_out:
            logger.warning("%s timed out after %s seconds", self.name, self._timeout)
            process.kill()

        process.wait()
        reader_thread.join(timeout=self.STDERR_DRAIN_TIMEOUT)

        # Drain whatever the reader queued before it stopped
        while True:
            try:
                line = stderr_queue.get_nowait()
            except queue.Empty:
                break
            if line is not None:
                stderr_output.append(line)

        if timed_out:
            return -1, stderr_output, True
        return process.returncode, stderr_output, False

    def terminate(self) -> None:
        """Kill any running invocation and refuse further ones."""
        with self._lock:
            self._terminated = True
            process = self._process
        if process is not None and process.poll() is None:
            logger.debug("%s killing running ffmpeg (pid %s)", self.name, process.pid)
            try:
                process.kill()
            except ProcessLookupError:
                pass

    def close(self) -> None:
        """Terminate the engine and destroy its workspace."""
        self.terminate()
        self.workspace.destroy()
