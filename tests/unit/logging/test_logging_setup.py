"""Unit tests for configure_logging."""

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from chunkcode.config.models import LoggingConfig
from chunkcode.logging.config import build_formatter, configure_logging
from chunkcode.logging.context import WorkerContextFilter, slot_context
from chunkcode.logging.handlers import JSONFormatter, SlotTextFormatter


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Save and restore root logger state between tests."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    for handler in root.handlers:
        if handler not in original_handlers:
            handler.close()
    root.handlers[:] = original_handlers
    root.setLevel(original_level)


def _flush(handlers) -> None:
    for handler in handlers:
        handler.flush()


class TestBuildFormatter:
    """Tests for build_formatter."""

    def test_text(self) -> None:
        assert isinstance(build_formatter("text"), SlotTextFormatter)

    def test_json_any_case(self) -> None:
        assert isinstance(build_formatter("JSON"), JSONFormatter)


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_default_stderr_handler(self) -> None:
        handlers = configure_logging(LoggingConfig())

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(handlers) == 1
        assert type(handlers[0]) is logging.StreamHandler
        assert handlers[0] in root.handlers
        assert any(isinstance(f, WorkerContextFilter) for f in handlers[0].filters)

    @pytest.mark.parametrize(
        "level,expected",
        [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("error", 40)],
    )
    def test_levels(self, level, expected) -> None:
        handlers = configure_logging(LoggingConfig(level=level))
        assert logging.getLogger().level == expected
        assert handlers[0].level == expected

    def test_json_format(self) -> None:
        handlers = configure_logging(LoggingConfig(format="json"))
        assert isinstance(handlers[0].formatter, JSONFormatter)

    def test_file_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "chunkcode.log"
        handlers = configure_logging(
            LoggingConfig(file=log_file, max_bytes=1000, backup_count=2)
        )

        assert len(handlers) == 1
        handler = handlers[0]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 1000
        assert handler.backupCount == 2
        assert log_file.parent.is_dir()

    def test_file_and_stderr(self, tmp_path: Path) -> None:
        config = LoggingConfig(file=tmp_path / "x.log", include_stderr=True)
        handlers = configure_logging(config)

        assert len(handlers) == 2
        assert isinstance(handlers[0], RotatingFileHandler)

    def test_unwritable_file_falls_back_to_stderr(self, tmp_path: Path, capsys):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        handlers = configure_logging(LoggingConfig(file=blocker / "x.log"))

        assert len(handlers) == 1
        assert not isinstance(handlers[0], RotatingFileHandler)
        assert "cannot open log file" in capsys.readouterr().err

    def test_reconfigure_replaces_own_handlers_only(self, tmp_path: Path) -> None:
        root = logging.getLogger()
        foreign = logging.NullHandler()
        root.addHandler(foreign)

        first = configure_logging(LoggingConfig(file=tmp_path / "a.log"))
        second = configure_logging(LoggingConfig(file=tmp_path / "b.log"))

        assert first[0] not in root.handlers
        assert second[0] in root.handlers
        assert foreign in root.handlers

    def test_text_lines_carry_worker_tag(self, tmp_path: Path) -> None:
        log_file = tmp_path / "x.log"
        handlers = configure_logging(LoggingConfig(file=log_file))

        with slot_context(3, "job9", 1):
            logging.getLogger("chunkcode.test").info("transcoding")
        _flush(handlers)

        line = log_file.read_text().strip()
        assert "INFO    [S03:job9:seg0001] chunkcode.test: transcoding" in line

    def test_json_lines_carry_slot_fields(self, tmp_path: Path) -> None:
        log_file = tmp_path / "x.json"
        handlers = configure_logging(LoggingConfig(file=log_file, format="json"))

        with slot_context(0, "job9", 4):
            logging.getLogger("chunkcode.test").warning("failed", extra={"rc": 1})
        _flush(handlers)

        entry = json.loads(log_file.read_text().strip())
        assert entry["msg"] == "failed"
        assert entry["slot"] == 0
        assert entry["job"] == "job9"
        assert entry["segment"] == 4
        assert entry["extra"] == {"rc": 1}
