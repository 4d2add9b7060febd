"""Shared test fixtures for chunkcode."""

import shutil
import tempfile
import threading
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from chunkcode.executor.interface import EngineRun, EngineTerminated
from chunkcode.executor.workspace import Workspace
from chunkcode.introspector.interface import MediaMetadata


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


class ConcurrencyTracker:
    """Counts engine runs in flight across every engine sharing it."""

    def __init__(self) -> None:
        self.current = 0
        self.max_seen = 0
        self._lock = threading.Lock()

    def enter(self) -> None:
        with self._lock:
            self.current += 1
            self.max_seen = max(self.max_seen, self.current)

    def exit(self) -> None:
        with self._lock:
            self.current -= 1


def _arg_after(args: Sequence[str], flag: str) -> str:
    return args[list(args).index(flag) + 1]


class FakeEngine:
    """Codec engine double emulating ffmpeg on a real workspace.

    - Segment cut (-ss/-t): writes b"cut:<start>-<duration>;"
    - Concat (-f concat): joins the manifest's entries in listed order
    - Anything else is a transcode: wraps the input as b"enc[...]"

    Args:
        workspace: Workspace the engine reads and writes.
        delay: Seconds to block per call, or a callable of the args.
        fail_when: Predicate on the args; matching calls exit with code 1.
        tracker: Shared ConcurrencyTracker.
    """

    def __init__(
        self,
        workspace: Workspace,
        name: str = "fake",
        delay: float | Callable[[list[str]], float] = 0.0,
        fail_when: Callable[[list[str]], bool] | None = None,
        tracker: ConcurrencyTracker | None = None,
    ) -> None:
        self.workspace = workspace
        self.name = name
        self.delay = delay
        self.fail_when = fail_when
        self.tracker = tracker
        self.calls: list[list[str]] = []
        self.closed = False
        self._terminated = threading.Event()
        self._lock = threading.Lock()

    @property
    def terminated(self) -> bool:
        return self._terminated.is_set()

    @property
    def concat_calls(self) -> list[list[str]]:
        return [c for c in self.calls if is_concat(c)]

    def exec(self, args: Sequence[str]) -> EngineRun:
        args = list(args)
        with self._lock:
            self.calls.append(args)
        if self._terminated.is_set():
            raise EngineTerminated(f"{self.name} was terminated")

        if self.tracker is not None:
            self.tracker.enter()
        try:
            delay = self.delay(args) if callable(self.delay) else self.delay
            if delay:
                self._terminated.wait(delay)
            if self._terminated.is_set():
                raise EngineTerminated(f"{self.name} was terminated during a run")
            if self.fail_when is not None and self.fail_when(args):
                return EngineRun(returncode=1, stderr_lines=["Conversion failed!\n"])
            self._emulate(args)
            return EngineRun(returncode=0)
        finally:
            if self.tracker is not None:
                self.tracker.exit()

    def _emulate(self, args: list[str]) -> None:
        output = args[-1]
        if is_concat(args):
            manifest = self.workspace.read_file(_arg_after(args, "-i")).decode()
            joined = b""
            for line in manifest.splitlines():
                name = line[len("file '") : -1]
                joined += self.workspace.read_file(name)
            self.workspace.write_file(output, joined)
        elif "-ss" in args:
            start = _arg_after(args, "-ss")
            duration = _arg_after(args, "-t")
            self.workspace.write_file(output, f"cut:{start}-{duration};".encode())
        else:
            data = self.workspace.read_file(_arg_after(args, "-i"))
            self.workspace.write_file(output, b"enc[" + data + b"]")

    def terminate(self) -> None:
        self._terminated.set()

    def close(self) -> None:
        self.terminate()
        self.closed = True
        self.workspace.destroy()


def is_concat(args: Sequence[str]) -> bool:
    """Check if engine args are a concat invocation."""
    args = list(args)
    return "-f" in args and _arg_after(args, "-f") == "concat"


def segment_index_of_args(args: Sequence[str]) -> int | None:
    """Extract the segment index from a transcode invocation's input name."""
    name = _arg_after(args, "-i")
    parts = name.split("_")
    if len(parts) >= 3 and parts[-1].startswith("in."):
        return int(parts[-2])
    return None


class FakeProber:
    """DurationProber double returning a fixed duration."""

    def __init__(self, duration: float = 30.0, error: Exception | None = None) -> None:
        self.duration = duration
        self.error = error
        self.calls: list[tuple[Path, str]] = []

    def probe_file(self, path: Path, source_format: str = "") -> MediaMetadata:
        self.calls.append((path, source_format))
        if self.error is not None:
            raise self.error
        return MediaMetadata(
            duration_seconds=self.duration,
            format_name="mov,mp4,m4a,3gp,3g2,mj2",
            video_streams=1,
            audio_streams=1,
        )


@pytest.fixture
def workspace(temp_dir: Path):
    """A fresh workspace, destroyed after the test."""
    ws = Workspace.create("test", temp_dir)
    yield ws
    ws.destroy()


@pytest.fixture
def make_engine(temp_dir: Path):
    """Factory building FakeEngines on fresh workspaces under temp_dir."""
    engines: list[FakeEngine] = []

    def _make(name: str = "fake", **kwargs) -> FakeEngine:
        engine = FakeEngine(Workspace.create(name, temp_dir), name=name, **kwargs)
        engines.append(engine)
        return engine

    yield _make
    for engine in engines:
        engine.workspace.destroy()


@pytest.fixture
def tracker() -> ConcurrencyTracker:
    """Shared concurrency counter for FakeEngines."""
    return ConcurrencyTracker()


@pytest.fixture
def make_prober():
    """Factory building FakeProbers."""
    return FakeProber


@pytest.fixture
def segment_index_of():
    """Helper extracting a segment index from transcode args (None otherwise)."""
    return segment_index_of_args
