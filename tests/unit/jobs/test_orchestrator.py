"""Unit tests for JobOrchestrator, run end to end against fake engines."""

import threading
import time

import pytest

from chunkcode.config.models import PipelineConfig
from chunkcode.exceptions import (
    ConcatFailure,
    JobCancelled,
    ProbeFailure,
    SegmentFailure,
    UnsupportedFormat,
)
from chunkcode.jobs.models import ConversionRequest
from chunkcode.jobs.orchestrator import JobOrchestrator
from chunkcode.jobs.pool import WorkerPool


def _request(
    target: str = "webm",
    file_name: str = "clip.mp4",
    data: bytes = b"source-bytes",
    mime: str | None = "video/mp4",
) -> ConversionRequest:
    return ConversionRequest(
        file_bytes=data,
        file_name=file_name,
        declared_mime_type=mime,
        target_format=target,
    )


@pytest.fixture
def setup(make_engine, make_prober, tracker):
    """Build an orchestrator over 3 fake slots and a fake job engine.

    Returns a factory taking slot engine options, a prober and a config.
    """
    pools: list[WorkerPool] = []

    def _setup(
        prober=None,
        config: PipelineConfig | None = None,
        job_kwargs=None,
        **slot_kwargs,
    ):
        slot_engines = [
            make_engine(f"slot{i:02d}", tracker=tracker, **slot_kwargs)
            for i in range(3)
        ]
        pool = WorkerPool(slot_engines)
        pools.append(pool)
        job_engine = make_engine("job", **(job_kwargs or {}))
        orchestrator = JobOrchestrator(
            pool,
            job_engine,
            prober or make_prober(duration=12.0),
            config=config,
        )
        return orchestrator, job_engine, slot_engines

    yield _setup
    for pool in pools:
        pool.terminate_all()
        pool.close()


def _all_empty(job_engine, slot_engines) -> bool:
    return all(e.workspace.list_dir() == [] for e in [job_engine, *slot_engines])


class TestJobOrchestratorRun:
    """Tests for the happy path."""

    def test_converts_in_segment_order(self, setup) -> None:
        orchestrator, job_engine, slot_engines = setup()

        result = orchestrator.run(_request())

        assert result.output_bytes == (
            b"enc[cut:0-5;]enc[cut:5-5;]enc[cut:10-2;]"
        )
        assert result.output_name == "clip.webm"
        assert result.mime_type == "video/webm"
        assert result.segment_count == 3
        assert result.duration_seconds == 12.0
        assert len(job_engine.concat_calls) == 1

    def test_order_independent_of_completion(self, setup, segment_index_of) -> None:
        """Early segments finishing last still land first in the output."""

        def delay(args):
            index = segment_index_of(args)
            return {0: 0.15, 1: 0.1}.get(index, 0.0)

        orchestrator, _, _ = setup(delay=delay)

        result = orchestrator.run(_request())

        assert result.output_bytes.startswith(b"enc[cut:0-5;]enc[cut:5-5;]")

    def test_cleans_every_workspace(self, setup) -> None:
        orchestrator, job_engine, slot_engines = setup()

        orchestrator.run(_request())

        assert _all_empty(job_engine, slot_engines)

    def test_bounded_concurrency(self, setup, make_prober, tracker) -> None:
        """Never more engine runs in flight than pool slots."""
        orchestrator, _, _ = setup(prober=make_prober(duration=60.0), delay=0.02)

        result = orchestrator.run(_request())

        assert result.segment_count == 12
        assert 1 <= tracker.max_seen <= 3

    def test_chunk_divisor(self, setup, make_prober) -> None:
        config = PipelineConfig(chunk_divisor=4)
        orchestrator, _, _ = setup(prober=make_prober(duration=10.0), config=config)

        result = orchestrator.run(_request())

        assert result.segment_count == 4

    def test_same_group_uses_stream_copy(self, setup) -> None:
        orchestrator, _, slot_engines = setup()

        orchestrator.run(_request(target="mov"))

        transcodes = [args for e in slot_engines for args in e.calls]
        assert transcodes
        for args in transcodes:
            assert args[args.index("-c:v") + 1] == "copy"
            assert args[args.index("-c:a") + 1] == "copy"

    def test_raw_stream_is_sliced_by_bytes(self, setup, make_prober) -> None:
        """Raw streams skip the cut step and force a demuxer on transcode."""
        orchestrator, job_engine, slot_engines = setup(
            prober=make_prober(duration=10.0)
        )

        result = orchestrator.run(
            _request(target="mp4", file_name="clip.h264", data=b"0123456789")
        )

        assert result.output_bytes == b"enc[01234]enc[56789]"
        assert [c for c in job_engine.calls if "-ss" in c] == []
        transcodes = [args for e in slot_engines for args in e.calls]
        assert all(args[:2] == ["-f", "h264"] for args in transcodes)

    def test_runs_consecutive_jobs(self, setup) -> None:
        orchestrator, _, _ = setup()

        first = orchestrator.run(_request())
        second = orchestrator.run(_request(target="avi"))

        assert first.output_bytes == second.output_bytes
        assert second.output_name == "clip.avi"


class TestJobOrchestratorFailures:
    """Tests for each way a job rejects."""

    def test_unsupported_target_before_any_work(self, setup, make_prober) -> None:
        prober = make_prober()
        orchestrator, job_engine, slot_engines = setup(prober=prober)

        with pytest.raises(UnsupportedFormat) as exc_info:
            orchestrator.run(_request(target="xyz"))

        assert exc_info.value.target == "xyz"
        assert exc_info.value.job_id is not None
        assert prober.calls == []
        assert job_engine.calls == []
        assert all(e.calls == [] for e in slot_engines)

    def test_probe_failure(self, setup, make_prober) -> None:
        prober = make_prober(error=ProbeFailure("no duration"))
        orchestrator, job_engine, slot_engines = setup(prober=prober)

        with pytest.raises(ProbeFailure) as exc_info:
            orchestrator.run(_request())

        assert exc_info.value.job_id is not None
        assert job_engine.calls == []
        assert _all_empty(job_engine, slot_engines)

    def test_segment_failure_voids_job(
        self, setup, make_prober, segment_index_of
    ) -> None:
        """Segment 3 of 6 fails: no manifest, no concat, nothing left behind."""
        orchestrator, job_engine, slot_engines = setup(
            prober=make_prober(duration=30.0),
            fail_when=lambda args: segment_index_of(args) == 3,
        )

        with pytest.raises(SegmentFailure) as exc_info:
            orchestrator.run(_request())

        assert exc_info.value.index == 3
        assert job_engine.concat_calls == []
        assert _all_empty(job_engine, slot_engines)
        # Every other segment still ran to completion
        transcoded = sorted(
            segment_index_of(args) for e in slot_engines for args in e.calls
        )
        assert transcoded == [0, 1, 2, 3, 4, 5]

    def test_concat_failure(self, setup) -> None:
        orchestrator, job_engine, slot_engines = setup(
            job_kwargs={"fail_when": lambda args: "concat" in args}
        )

        with pytest.raises(ConcatFailure):
            orchestrator.run(_request())

        assert len(job_engine.concat_calls) == 1
        assert _all_empty(job_engine, slot_engines)


class TestJobOrchestratorCancel:
    """Tests for cancel()."""

    def test_cancel_rejects_running_job(self, setup) -> None:
        orchestrator, job_engine, slot_engines = setup(delay=10.0)
        outcome: list[BaseException] = []

        def run() -> None:
            try:
                orchestrator.run(_request())
            except BaseException as e:
                outcome.append(e)

        thread = threading.Thread(target=run)
        thread.start()
        deadline = time.monotonic() + 5
        while not any(e.calls for e in slot_engines):
            assert time.monotonic() < deadline, "no segment was dispatched"
            time.sleep(0.01)

        orchestrator.cancel()
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert len(outcome) == 1
        assert isinstance(outcome[0], JobCancelled)
        assert orchestrator.cancelled
        assert job_engine.terminated
        assert all(e.terminated for e in slot_engines)
        assert job_engine.concat_calls == []

        # Slot threads unwind after the job returns; their leftovers must not
        # survive the purge. Workspaces are still live here, engines not closed.
        deadline = time.monotonic() + 5
        while orchestrator.pool.active_count:
            assert time.monotonic() < deadline, "slot threads never went idle"
            time.sleep(0.01)
        assert not any(e.closed for e in [job_engine, *slot_engines])
        assert _all_empty(job_engine, slot_engines)

    def test_cancel_before_run(self, setup) -> None:
        orchestrator, job_engine, _ = setup()
        orchestrator.cancel()

        with pytest.raises(JobCancelled):
            orchestrator.run(_request())

        assert job_engine.calls == []
