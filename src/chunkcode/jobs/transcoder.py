"""Segment transcoder: the task body run inside a pool slot."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chunkcode.core.codecs import output_extension
from chunkcode.executor.command import CodecArgs, build_transcode_command
from chunkcode.executor.interface import EngineError
from chunkcode.jobs.models import (
    Segment,
    SegmentErr,
    SegmentOk,
    SegmentResult,
    SegmentStatus,
)
from chunkcode.logging import slot_context

if TYPE_CHECKING:
    from chunkcode.jobs.pool import PoolSlot
    from chunkcode.jobs.progress import ProgressReporter

logger = logging.getLogger(__name__)


class SegmentTranscoder:
    """Transcodes one segment on whichever slot runs it.

    Steps: write the payload into the slot's workspace under a task-scoped
    name, run the engine, read the output back. Both entries are deleted on
    every exit path. Failures come back as SegmentErr; nothing raises past
    the pool boundary.
    """

    def __init__(
        self,
        job_id: str,
        segment: Segment,
        codec_args: CodecArgs,
        source_format: str,
        target_format: str,
        input_extension: str,
        reporter: ProgressReporter | None = None,
    ) -> None:
        """Initialize the task.

        Args:
            job_id: Owning job, used to scope entry names.
            segment: Segment to transcode.
            codec_args: Codec arguments shared by the job.
            source_format: Source format, for raw stream demuxers.
            target_format: Target format.
            input_extension: Extension of the segment payload's container.
            reporter: Told when the segment starts transcoding.
        """
        self.job_id = job_id
        self.segment = segment
        self.codec_args = codec_args
        self.source_format = source_format
        self.target_format = target_format
        self.input_extension = input_extension
        self.reporter = reporter

    @property
    def index(self) -> int:
        return self.segment.index

    @property
    def input_name(self) -> str:
        return f"{self.job_id}_{self.index:04d}_in.{self.input_extension}"

    @property
    def output_name(self) -> str:
        extension = output_extension(self.target_format)
        return f"{self.job_id}_{self.index:04d}_out.{extension}"

    def __call__(self, slot: PoolSlot) -> SegmentResult:
        """Run the task on a pool slot.

        Args:
            slot: Slot the pool dispatched this task to.

        Returns:
            SegmentOk with the transcoded bytes, or SegmentErr with the cause.
        """
        workspace = slot.engine.workspace
        with slot_context(slot.slot_id, self.job_id, self.index):
            with workspace.scoped(self.input_name, self.output_name):
                if self.reporter is not None:
                    self.reporter.on_item_start(self.index)
                self.segment.status = SegmentStatus.TRANSCODING
                result = self._transcode(slot)

            if isinstance(result, SegmentOk):
                self.segment.status = SegmentStatus.DONE
                logger.debug(
                    "Segment done (%d -> %d bytes)",
                    len(self.segment.payload),
                    len(result.output_bytes),
                )
            else:
                self.segment.status = SegmentStatus.FAILED
                logger.warning("Segment failed: %s", result.cause)
            return result

    def _transcode(self, slot: PoolSlot) -> SegmentResult:
        workspace = slot.engine.workspace
        try:
            workspace.write_file(self.input_name, self.segment.payload)
            run = slot.engine.exec(
                build_transcode_command(
                    self.input_name,
                    self.output_name,
                    self.codec_args,
                    self.source_format,
                )
            )
            if not run.success:
                return SegmentErr(self.index, run.describe_failure())
            return SegmentOk(self.index, workspace.read_file(self.output_name))
        except EngineError as e:
            return SegmentErr(self.index, str(e))
        except FileNotFoundError:
            return SegmentErr(self.index, "engine produced no output")
        except OSError as e:
            return SegmentErr(self.index, f"workspace error: {e}")
        except Exception as e:
            logger.exception("Unexpected error transcoding segment %d", self.index)
            return SegmentErr(self.index, f"unexpected error: {e}")
