"""Fixtures for CLI tests."""

import logging
from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep the user's config file and CHUNKCODE_* variables out of CLI runs.

    The group callback reconfigures the root logger, so its state is restored
    afterwards.
    """
    monkeypatch.setenv("CHUNKCODE_CONFIG_PATH", str(tmp_path / "no-config.toml"))
    for var in (
        "CHUNKCODE_WORKERS",
        "CHUNKCODE_CHUNK_SECONDS",
        "CHUNKCODE_CHUNK_DIVISOR",
        "CHUNKCODE_LOG_LEVEL",
        "CHUNKCODE_LOG_FILE",
        "CHUNKCODE_LOG_FORMAT",
        "CHUNKCODE_FFMPEG_PATH",
        "CHUNKCODE_FFPROBE_PATH",
    ):
        monkeypatch.delenv(var, raising=False)

    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers[:] = original_handlers
    root.setLevel(original_level)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()
