"""Reassembler: join transcoded segments in index order.

Fail-fast: a single failed segment voids the job. Staged outputs are
deleted and no manifest is written, so no partial output ever leaves the
pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from chunkcode.core.codecs import output_extension
from chunkcode.exceptions import ConcatFailure, PipelineError, SegmentFailure
from chunkcode.executor.command import build_concat_command, build_concat_manifest
from chunkcode.executor.interface import Engine
from chunkcode.jobs.models import SegmentErr, SegmentOk, SegmentResult

logger = logging.getLogger(__name__)

MANIFEST_NAME = "concat_manifest.txt"


class Reassembler:
    """Stages segment outputs in the job workspace and concatenates them.

    Segments may be staged in any order; reassembly always consumes them by
    index.
    """

    def __init__(
        self, engine: Engine, target_format: str, job_id: str | None = None
    ) -> None:
        """Initialize the reassembler.

        Args:
            engine: The job's engine handle.
            target_format: Target format of the job.
            job_id: Owning job, attached to raised errors.
        """
        self.engine = engine
        self.target_format = target_format
        self.job_id = job_id
        self._extension = output_extension(target_format)
        self._staged: set[int] = set()

    @property
    def staged_indexes(self) -> list[int]:
        return sorted(self._staged)

    @property
    def output_name(self) -> str:
        return f"joined.{self._extension}"

    def segment_name(self, index: int) -> str:
        """Workspace entry name of a staged segment output."""
        return f"segment_{index:04d}.{self._extension}"

    def stage(self, result: SegmentOk) -> None:
        """Write a successful segment output into the job workspace."""
        self.engine.workspace.write_file(
            self.segment_name(result.index), result.output_bytes
        )
        self._staged.add(result.index)

    def discard(self) -> None:
        """Delete staged outputs, the manifest and the joined output."""
        names = [self.segment_name(i) for i in sorted(self._staged)]
        self.engine.workspace.discard(*names, MANIFEST_NAME, self.output_name)
        self._staged.clear()

    def reassemble(self, results: Sequence[SegmentResult], segment_count: int) -> bytes:
        """Join all segment outputs into the final payload.

        Args:
            results: Settled results, in any order.
            segment_count: Number of segments the job was split into.

        Returns:
            The joined output bytes.

        Raises:
            SegmentFailure: If any segment failed (lowest failing index).
            ConcatFailure: If the stream-copy join failed.
            PipelineError: If results do not cover every segment exactly once.
        """
        succeeded: list[SegmentOk] = []
        failed: list[SegmentErr] = []
        for result in results:
            if isinstance(result, SegmentOk):
                succeeded.append(result)
            elif isinstance(result, SegmentErr):
                failed.append(result)
            else:
                raise TypeError(f"Unexpected segment result: {result!r}")

        if failed:
            first = min(failed, key=lambda r: r.index)
            logger.warning(
                "%d of %d segments failed, discarding %d staged outputs",
                len(failed),
                segment_count,
                len(self._staged),
            )
            self.discard()
            raise SegmentFailure(first.index, first.cause, self.job_id)

        ordered = sorted(succeeded, key=lambda r: r.index)
        if [r.index for r in ordered] != list(range(segment_count)):
            self.discard()
            raise PipelineError(
                f"Expected results for segments 0..{segment_count - 1}, "
                f"got {[r.index for r in ordered]}",
                self.job_id,
            )

        workspace = self.engine.workspace
        try:
            for result in ordered:
                if result.index not in self._staged:
                    self.stage(result)
            names = [self.segment_name(r.index) for r in ordered]
            workspace.write_file(MANIFEST_NAME, build_concat_manifest(names).encode())

            run = self.engine.exec(
                build_concat_command(MANIFEST_NAME, self.output_name)
            )
            if not run.success:
                raise ConcatFailure(run.describe_failure(), self.job_id)
            try:
                output = workspace.read_file(self.output_name)
            except FileNotFoundError as e:
                raise ConcatFailure("engine produced no output", self.job_id) from e
        finally:
            self.discard()

        logger.info("Joined %d segments (%d bytes)", len(ordered), len(output))
        return output
