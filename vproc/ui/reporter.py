from rich.console import Console
from rich.text import Text
from vproc.infrastructure.event_bus import EventBus
from vproc.domain.events import (
    BatchFinished,
    BatchInterrupted,
    FileCompleted,
    FileFailed,
    FilePlanned,
    FileSkipped,
    Notice,
)
from vproc.domain.models import FileStatus
from vproc.utils.formatting import format_number, format_ratio, format_time

class ConsoleReporter:
    """Subscribes to EventBus and prints per-file and batch summaries."""

    def __init__(self, bus: EventBus, console: Console, err_console: Console):
        self.bus = bus
        self.console = console
        self.err_console = err_console
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(FilePlanned, self.on_file_planned)
        self.bus.subscribe(FileCompleted, self.on_file_completed)
        self.bus.subscribe(FileSkipped, self.on_file_skipped)
        self.bus.subscribe(FileFailed, self.on_file_failed)
        self.bus.subscribe(Notice, self.on_notice)
        self.bus.subscribe(BatchFinished, self.on_batch_finished)
        self.bus.subscribe(BatchInterrupted, self.on_batch_interrupted)

    def _warning(self, message: str):
        self.err_console.print(Text(f"WARNING: {message}", style="yellow"))

    def on_file_planned(self, event: FilePlanned):
        job = event.job
        desc = job.descriptor
        plan = job.plan
        header = (
            f"======= {job.source_path.name} : {desc.width}x{desc.height} "
            f"({job.orientation.value}) : {format_time(desc.duration_seconds)} ======="
        )
        self.console.print()
        self.console.print(Text(header, style="bold yellow"))
        if desc.rotation:
            self.console.print(Text(f"Rotation metadata: {desc.rotation}°", style="bold green"))
        size_line = Text("Original size (bytes): ")
        size_line.append(format_number(job.input_size_bytes), style="bold green")
        self.console.print(size_line)
        self.console.print(
            Text(
                f"Filter: {plan.filter_chain} → {plan.output_width}x{plan.output_height} "
                f"(scaled by {plan.scaled_by.value})"
            )
        )
        self.console.print(Text(f"Output: {job.output_path}"))

    def on_file_completed(self, event: FileCompleted):
        job = event.job
        if job.status == FileStatus.DRY_RUN:
            self.console.print("Dry run: encoding skipped")
            return
        size_line = Text("Output size (bytes): ")
        size_line.append(format_number(job.output_size_bytes or 0), style="bold green")
        self.console.print(size_line)
        self.console.print(Text(f"Compression: {format_ratio(job.compression_ratio)}"))
        self.console.print(Text(f"Done: {job.output_path}"))

    def on_file_skipped(self, event: FileSkipped):
        self._warning(event.reason)

    def on_file_failed(self, event: FileFailed):
        self.err_console.print(
            Text(f"Error: {event.error_message}: {event.job.source_path}", style="bold red")
        )

    def on_notice(self, event: Notice):
        self._warning(event.message)

    def on_batch_finished(self, event: BatchFinished):
        self.console.print()
        self.console.print(
            f"Processing complete. Successfully processed: {event.processed} out of {event.total}"
        )

    def on_batch_interrupted(self, event: BatchInterrupted):
        self.err_console.print()
        if event.removed_output is not None:
            self._warning(f"Incomplete output file removed: {event.removed_output}")
        if event.processed > 0:
            self._warning(
                f"Processing interrupted by user. Successfully processed: "
                f"{event.processed} out of {event.total}"
            )
        else:
            self._warning("Processing interrupted by user. No files were processed.")
