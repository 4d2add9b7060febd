"""Job orchestrator: sequences one conversion job end to end.

validate target -> probe duration -> segment -> build codec arguments ->
submit every segment to the pool -> join all -> reassemble -> JobResult.

Any stage's failure short-circuits the later ones. Entries already written
to the job workspace or to slot workspaces are deleted on every exit path,
and cleanup problems are logged without masking the original failure.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, as_completed
from pathlib import Path

from chunkcode.config.models import ChunkcodeConfig, PipelineConfig
from chunkcode.core.codecs import mime_type_for
from chunkcode.core.naming import compress_file_name, derive_output_name
from chunkcode.exceptions import JobCancelled, PipelineError, PoolTerminated
from chunkcode.executor.command import CodecCommandBuilder
from chunkcode.executor.engine import FFmpegEngine
from chunkcode.executor.interface import Engine, EngineTerminated, require_tool
from chunkcode.executor.workspace import Workspace
from chunkcode.introspector import DurationProber, FFprobeIntrospector
from chunkcode.jobs.models import (
    ConversionRequest,
    JobResult,
    MediaJob,
    SegmentErr,
    SegmentOk,
    SegmentResult,
)
from chunkcode.jobs.pool import WorkerPool
from chunkcode.jobs.progress import NullProgressReporter, ProgressReporter
from chunkcode.jobs.reassembler import Reassembler
from chunkcode.jobs.segmenter import (
    Segmenter,
    cut_extension,
    plan_segments,
    resolve_chunk_seconds,
    uses_byte_slicing,
)
from chunkcode.jobs.transcoder import SegmentTranscoder
from chunkcode.logging import slot_context

logger = logging.getLogger(__name__)


class JobOrchestrator:
    """Runs conversion jobs against an injected pool and job engine.

    The pool and the job engine are built by the caller (see convert()) and
    passed in; the orchestrator never creates engines itself. One job runs at
    a time per orchestrator.
    """

    def __init__(
        self,
        pool: WorkerPool,
        engine: Engine,
        prober: DurationProber,
        builder: CodecCommandBuilder | None = None,
        config: PipelineConfig | None = None,
        reporter: ProgressReporter | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            pool: Worker pool running segment transcodes.
            engine: The job's own engine, used for cutting and joining.
            prober: Duration prober for the source.
            builder: Codec command builder (default built from config).
            config: Pipeline configuration (default PipelineConfig()).
            reporter: Progress reporter (default: no output).
        """
        self.pool = pool
        self.engine = engine
        self.prober = prober
        self.config = config or PipelineConfig()
        self.builder = builder or CodecCommandBuilder(
            mkv_audio_codec=self.config.mkv_audio_codec,
            raw_video_codec=self.config.raw_video_codec,
        )
        self.reporter = reporter or NullProgressReporter()
        self._run_lock = threading.Lock()
        self._cancelled = threading.Event()
        self._current_job: MediaJob | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Abort the running job immediately.

        Terminates the pool and the job engine; in-flight engine runs are
        killed and the job rejects with JobCancelled. The orchestrator cannot
        run further jobs afterwards.
        """
        job = self._current_job
        logger.info("Cancelling job %s", job.id if job else "(none running)")
        self._cancelled.set()
        self.pool.terminate_all()
        self.engine.terminate()

    def run(self, request: ConversionRequest) -> JobResult:
        """Convert the requested file.

        Args:
            request: Source bytes, name, declared mime type and target.

        Returns:
            JobResult with the joined output.

        Raises:
            UnsupportedFormat: No strategy for the target (before any work).
            ProbeFailure: Source duration unavailable (before any work).
            SegmentFailure: A segment failed to transcode.
            ConcatFailure: Joining the transcoded segments failed.
            JobCancelled: cancel() was called while the job ran.
            RuntimeError: Another job is already running on this orchestrator.
        """
        if not self._run_lock.acquire(blocking=False):
            raise RuntimeError("A job is already running on this orchestrator")
        job = MediaJob.from_request(request)
        self._current_job = job
        try:
            with slot_context(None, job.id):
                return self._run(job)
        except (PoolTerminated, EngineTerminated) as e:
            if self.cancelled:
                raise JobCancelled(job.id) from e
            raise
        except PipelineError as e:
            if e.job_id is None:
                e.job_id = job.id
            raise
        finally:
            self._cleanup(job)
            self._current_job = None
            self._run_lock.release()

    def _run(self, job: MediaJob) -> JobResult:
        display_name = compress_file_name(job.file_name)
        if self.cancelled:
            raise JobCancelled(job.id)

        # Cheap failures first, before anything is written
        target = self.builder.validate_target(job.target_format)
        logger.info(
            "Converting %s (%s -> %s, %d bytes)",
            display_name,
            job.source_format or "unknown",
            target,
            len(job.source_bytes),
        )

        workspace = self.engine.workspace
        source_extension = job.source_format or "bin"
        source_name = f"source.{source_extension}"
        workspace.write_file(source_name, job.source_bytes)

        metadata = self.prober.probe_file(
            workspace.resolve(source_name), job.source_format
        )
        chunk_seconds = resolve_chunk_seconds(
            metadata.duration_seconds,
            self.config.chunk_seconds,
            self.config.chunk_divisor,
        )
        plans = plan_segments(metadata.duration_seconds, chunk_seconds)
        logger.info(
            "Duration %.3fs, %d segments of %.3fs",
            metadata.duration_seconds,
            len(plans),
            chunk_seconds,
        )

        segments = Segmenter(self.engine, job.id).split(
            source_name, job.source_format, plans
        )
        codec_args = self.builder.build(job.source_format, target)
        input_extension = (
            source_extension
            if uses_byte_slicing(job.source_format)
            else cut_extension(job.source_format)
        )

        # Fan out
        self.reporter.on_start(len(segments), display_name)
        futures: dict[Future[SegmentResult], int] = {}
        for segment in segments:
            transcoder = SegmentTranscoder(
                job_id=job.id,
                segment=segment,
                codec_args=codec_args,
                source_format=job.source_format,
                target_format=target,
                input_extension=input_extension,
                reporter=self.reporter,
            )
            futures[self.pool.submit(transcoder)] = segment.index
        # Payloads now live in the submitted tasks only
        del segments

        # Fan in: wait for every segment before reassembly is attempted
        reassembler = Reassembler(self.engine, target, job.id)
        results: list[SegmentResult] = []
        success = False
        try:
            for future in as_completed(futures):
                result = self._settled_result(future, futures[future])
                results.append(result)
                if isinstance(result, SegmentOk):
                    reassembler.stage(result)
                self.reporter.on_item_complete(
                    result.index, isinstance(result, SegmentOk)
                )

            if self.cancelled:
                raise JobCancelled(job.id)
            output = reassembler.reassemble(results, len(futures))
            success = True
        finally:
            if not success:
                reassembler.discard()
            self.reporter.on_complete(success)

        result = JobResult(
            output_bytes=output,
            output_name=derive_output_name(job.file_name, target),
            mime_type=mime_type_for(target),
            segment_count=len(futures),
            duration_seconds=metadata.duration_seconds,
        )
        logger.info(
            "Converted %s -> %s (%d bytes)",
            display_name,
            result.output_name,
            len(result.output_bytes),
        )
        return result

    @staticmethod
    def _settled_result(future: Future[SegmentResult], index: int) -> SegmentResult:
        """Unwrap a settled future into a tagged result.

        Raises:
            PoolTerminated: If the pool abandoned the task.
        """
        try:
            return future.result()
        except PoolTerminated:
            raise
        except Exception as e:
            return SegmentErr(index, f"task raised: {e}")

    def _cleanup(self, job: MediaJob) -> None:
        """Delete every entry the job left behind. Never raises."""
        try:
            workspace = self.engine.workspace
            leftovers = workspace.list_dir()
            if leftovers:
                logger.debug("Removing %d job workspace entries", len(leftovers))
                workspace.discard(*leftovers)
            self.pool.purge(prefix=f"{job.id}_")
        except OSError as e:
            logger.warning("Cleanup after job %s failed: %s", job.id, e)


def build_engine(
    ffmpeg_path: Path,
    label: str,
    config: PipelineConfig,
) -> FFmpegEngine:
    """Create an engine handle with a fresh private workspace."""
    workspace = Workspace.create(label, config.temp_directory)
    return FFmpegEngine(
        workspace, ffmpeg_path, timeout=config.engine_timeout, name=label
    )


def convert(
    request: ConversionRequest,
    config: ChunkcodeConfig | None = None,
    reporter: ProgressReporter | None = None,
) -> JobResult:
    """Convert one file with a pool and engines built from configuration.

    Engines and workspaces are created for this job and destroyed when it
    settles.

    Args:
        request: The conversion request.
        config: Configuration (default ChunkcodeConfig()).
        reporter: Progress reporter.

    Returns:
        JobResult on success.

    Raises:
        ToolNotAvailableError: If ffmpeg or ffprobe cannot be found.
        PipelineError: If the job fails (see JobOrchestrator.run).
    """
    config = config or ChunkcodeConfig()
    pipeline = config.pipeline
    ffmpeg_path = require_tool("ffmpeg", config.tools.ffmpeg)
    prober = FFprobeIntrospector(config.tools.ffprobe)

    job_engine = build_engine(ffmpeg_path, "job", pipeline)
    try:
        with WorkerPool.create(
            pipeline.workers,
            lambda slot_id: build_engine(ffmpeg_path, f"slot{slot_id:02d}", pipeline),
        ) as pool:
            orchestrator = JobOrchestrator(
                pool, job_engine, prober, config=pipeline, reporter=reporter
            )
            return orchestrator.run(request)
    finally:
        job_engine.close()
