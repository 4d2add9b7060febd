"""Tests for CLI output helpers."""

import json

import pytest

from chunkcode.cli.exit_codes import ExitCode
from chunkcode.cli.output import CLIResult, error_exit, success_output


class TestCLIResult:
    """Tests for CLIResult.to_json."""

    def test_success(self) -> None:
        result = CLIResult(success=True, message="done", data={"segments": 4})
        assert json.loads(result.to_json()) == {
            "status": "completed",
            "message": "done",
            "segments": 4,
        }

    def test_failure(self) -> None:
        result = CLIResult(
            success=False, message="boom", exit_code=ExitCode.CONCAT_FAILURE
        )
        data = json.loads(result.to_json())
        assert data["status"] == "failed"
        assert data["error"] == {"code": "CONCAT_FAILURE", "message": "boom"}

    def test_failure_with_plain_int(self) -> None:
        result = CLIResult(success=False, message="boom", exit_code=7)
        assert json.loads(result.to_json())["error"]["code"] == "UNKNOWN_ERROR"


class TestErrorExit:
    """Tests for error_exit."""

    def test_text(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            error_exit("bad input", ExitCode.TARGET_NOT_FOUND)

        assert exc_info.value.code == 20
        assert capsys.readouterr().err == "Error: bad input\n"

    def test_json(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            error_exit("bad input", ExitCode.TARGET_NOT_FOUND, json_output=True)

        assert exc_info.value.code == 20
        data = json.loads(capsys.readouterr().err)
        assert data["error"]["code"] == "TARGET_NOT_FOUND"


def test_success_output(capsys) -> None:
    success_output(CLIResult(success=True, message="Converted"), json_output=False)
    assert capsys.readouterr().out == "Converted\n"
