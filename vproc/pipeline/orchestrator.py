"""Batch driver for the remaster pipeline.

Processes input files strictly one at a time, in the order given:

    probe -> classify orientation -> compute geometry -> (dry run | encode) -> report

A file that is missing, unreadable, already converted (without --overwrite) or
rejected by ffmpeg never stops the batch. Presentation (console lines, progress
bar, notifications) subscribes to the events published here.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional
from vproc.config.models import RunConfig
from vproc.domain.events import (
    BatchFinished,
    BatchInterrupted,
    EncodeStarted,
    FileCompleted,
    FileFailed,
    FilePlanned,
    FileSkipped,
    Notice,
)
from vproc.domain.geometry import classify_orientation, compute_geometry
from vproc.domain.models import FILE_NOT_FOUND, BatchState, FileJob, FileStatus
from vproc.infrastructure.event_bus import EventBus
from vproc.infrastructure.ffmpeg import FFmpegAdapter
from vproc.infrastructure.ffprobe import FFprobeAdapter
from vproc.infrastructure.files import file_size
from vproc.infrastructure.housekeeping import HousekeepingService
from vproc.utils.formatting import format_ratio


class Orchestrator:
    """Runs the per-file state machine over a batch and owns the BatchState.

    Args:
        config: Validated RunConfig for the whole batch.
        event_bus: EventBus for lifecycle and progress events.
        ffprobe_adapter: Probe adapter (resolution, rotation, duration).
        ffmpeg_adapter: Encode adapter; publishes progress events while it runs.
        housekeeping: Removes incomplete outputs on failure or interrupt.
    """

    def __init__(
        self,
        config: RunConfig,
        event_bus: EventBus,
        ffprobe_adapter: FFprobeAdapter,
        ffmpeg_adapter: FFmpegAdapter,
        housekeeping: Optional[HousekeepingService] = None,
    ):
        self.config = config
        self.event_bus = event_bus
        self.ffprobe_adapter = ffprobe_adapter
        self.ffmpeg_adapter = ffmpeg_adapter
        self.housekeeping = housekeeping or HousekeepingService()
        self.logger = logging.getLogger(__name__)
        self.state = BatchState()

    def _output_path_for(self, source: Path) -> Path:
        return self.config.output_dir / source.name

    def _fail(self, job: FileJob, message: str):
        job.status = FileStatus.FAILED
        job.error_message = message
        self.state.mark_failed()
        self.logger.error(f"{message}: {job.source_path}")
        self.event_bus.publish(FileFailed(job=job, error_message=message))

    def _plan(self, job: FileJob) -> bool:
        """Probing -> GeometryComputed. Returns False when the file failed."""
        job.status = FileStatus.PROBING
        try:
            descriptor = self.ffprobe_adapter.probe(job.source_path)
        except Exception as e:
            self.logger.debug(f"Probe error for {job.source_path}: {e}")
            self._fail(job, "Failed to read video resolution (file may be corrupted or not a valid video)")
            return False

        job.descriptor = descriptor
        job.orientation = classify_orientation(descriptor.effective_width, descriptor.effective_height)
        try:
            job.plan = compute_geometry(
                descriptor.effective_width,
                descriptor.effective_height,
                self.config.target_ratio(),
                self.config.scale,
                self.config.scale_mode,
                job.orientation,
            )
        except ValueError as e:
            self._fail(job, f"Failed to calculate geometry ({e})")
            return False

        job.status = FileStatus.PLANNED
        self.event_bus.publish(FilePlanned(job=job))
        return True

    def _encode(self, job: FileJob):
        """Encoding -> EncodeDone (or FAILED)."""
        descriptor = job.descriptor
        plan = job.plan
        self.logger.info(
            f"Start processing {job.source_path}, filter: {plan.filter_chain}, "
            f"size: {job.input_size_bytes}b, orientation: {job.orientation.value}, "
            f"rotation: {descriptor.rotation or 0}°, scaled by: {plan.scaled_by.value}"
        )

        job.status = FileStatus.ENCODING
        self.state.begin_output(job.output_path)
        self.event_bus.publish(EncodeStarted(job=job))
        self.ffmpeg_adapter.encode(job, self.config)
        self.state.clear_output()

        if job.status != FileStatus.COMPLETED:
            if self.housekeeping.remove_incomplete_output(job.output_path):
                self.logger.warning(f"Incomplete output file removed: {job.output_path}")
            self._fail(job, job.error_message or "ffmpeg failed")
            return

        job.output_size_bytes = file_size(job.output_path)
        self.state.mark_processed()
        self.logger.info(f"Done: {job.output_path}")
        self.logger.info(
            f"Size (bytes): {job.input_size_bytes} -> {job.output_size_bytes}, "
            f"compression: {format_ratio(job.compression_ratio)}"
        )
        self.event_bus.publish(FileCompleted(job=job))

    def _process_file(self, source: Path) -> FileJob:
        """Runs one file through its lifecycle. Only KeyboardInterrupt escapes."""
        job = FileJob(source_path=source, output_path=self._output_path_for(source))
        self.state.attempted += 1

        try:
            if not source.is_file():
                self._fail(job, FILE_NOT_FOUND)
                return job

            job.input_size_bytes = file_size(source)
            if not self._plan(job):
                return job

            output_exists = job.output_path.exists()

            if self.config.dry_run:
                if output_exists:
                    self._warn(f"Output file already exists: {job.output_path}")
                job.status = FileStatus.DRY_RUN
                self.state.mark_processed()
                self.event_bus.publish(FileCompleted(job=job))
                return job

            if output_exists and not self.config.overwrite:
                job.status = FileStatus.SKIPPED
                self.state.mark_skipped()
                reason = "output file already exists (use --overwrite to replace)"
                self.logger.warning(f"{reason}: {job.output_path}")
                self.event_bus.publish(FileSkipped(job=job, reason=reason))
                return job
            if output_exists:
                self._warn(f"Output file was overwritten: {job.output_path}")

            self._encode(job)
        except KeyboardInterrupt:
            if job.status in (FileStatus.ENCODING, FileStatus.PLANNED, FileStatus.PROBING):
                job.status = FileStatus.INTERRUPTED
            raise
        except Exception as e:
            # Unexpected errors stay contained to this file
            self.logger.exception(f"Exception processing {source.name}")
            if self.housekeeping.remove_incomplete_output(self.state.current_output):
                self.logger.warning(f"Incomplete output file removed: {self.state.current_output}")
            self.state.clear_output()
            self._fail(job, f"Exception: {e}")
        return job

    def _warn(self, message: str):
        self.logger.warning(message)
        self.event_bus.publish(Notice(message=message))

    def _handle_interrupt(self):
        removed: Optional[Path] = None
        self.logger.warning("Processing interrupted.")
        current = self.state.current_output
        if self.housekeeping.remove_incomplete_output(current):
            removed = current
            self.logger.warning(f"Incomplete output file removed: {current}")
        self.state.clear_output()

        if self.state.processed > 0:
            self.logger.warning(
                f"Processing interrupted by user. Successfully processed: "
                f"{self.state.processed} out of {self.state.total_files}"
            )
        else:
            self.logger.warning("Processing interrupted by user. No files were processed.")
        self.event_bus.publish(BatchInterrupted(
            processed=self.state.processed,
            total=self.state.total_files,
            removed_output=removed,
        ))

    def run(self, inputs: Iterable[Path]) -> BatchState:
        """Processes every input in order and returns the final BatchState.

        KeyboardInterrupt is re-raised after the partial output has been
        removed and BatchInterrupted has been published.
        """
        files: List[Path] = [Path(p) for p in inputs]
        self.state = BatchState(total_files=len(files))
        self.logger.info(f"Batch started: {len(files)} files, output_dir={self.config.output_dir}")

        try:
            for source in files:
                self._process_file(source)
        except KeyboardInterrupt:
            self._handle_interrupt()
            raise

        self.logger.info(
            f"Processing complete. Successfully processed: "
            f"{self.state.processed} out of {self.state.total_files}"
        )
        self.event_bus.publish(BatchFinished(processed=self.state.processed, total=self.state.total_files))
        return self.state
