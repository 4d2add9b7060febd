"""Tests for the formats CLI command."""

import json

from chunkcode.cli import main
from chunkcode.core.codecs import supported_targets


def test_lists_every_target(runner):
    result = runner.invoke(main, ["formats"])

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0].startswith("FORMAT")
    assert len(lines) == len(supported_targets()) + 1


def test_json_rows(runner):
    result = runner.invoke(main, ["formats", "--json"])

    assert result.exit_code == 0, result.output
    rows = {row["format"]: row for row in json.loads(result.output)}
    assert rows["mp4v"]["extension"] == "mp4"
    assert rows["mp4v"]["mime_type"] == "video/mp4"
    assert rows["webm"]["group"] == "vp8_vorbis"
    assert rows["3gp"]["strategy"] == "mobile_h264_aac"
    assert rows["flac"]["mime_type"] == "audio/flac"
