from vproc.infrastructure.event_bus import EventBus
from vproc.infrastructure.notifier import DesktopNotifier
from vproc.domain.events import BatchFinished, FileCompleted, FileFailed
from vproc.domain.models import FILE_NOT_FOUND, FileStatus

FILE_TIMEOUT_MS = 5000
ERROR_TIMEOUT_MS = 8000
SUMMARY_TIMEOUT_MS = 15000

class NotificationManager:
    """Maps lifecycle events to desktop notifications."""

    def __init__(self, bus: EventBus, notifier: DesktopNotifier):
        self.bus = bus
        self.notifier = notifier
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(FileCompleted, self.on_file_completed)
        self.bus.subscribe(FileFailed, self.on_file_failed)
        self.bus.subscribe(BatchFinished, self.on_batch_finished)

    def on_file_completed(self, event: FileCompleted):
        if event.job.status == FileStatus.DRY_RUN:
            return
        self.notifier.notify("Video processed", event.job.source_path.name, "video-x-generic", FILE_TIMEOUT_MS)

    def on_file_failed(self, event: FileFailed):
        title = FILE_NOT_FOUND if event.error_message == FILE_NOT_FOUND else "Processing failed"
        self.notifier.notify(title, event.job.source_path.name, "dialog-error", ERROR_TIMEOUT_MS)

    def on_batch_finished(self, event: BatchFinished):
        summary = f"{event.processed} out of {event.total}"
        if event.total > 0 and event.processed == event.total:
            self.notifier.notify("All files processed", summary, "checkbox-checked", SUMMARY_TIMEOUT_MS)
        elif event.processed > 0:
            self.notifier.notify(
                "Processing finished with errors",
                f"Successfully processed: {summary}",
                "dialog-warning",
                SUMMARY_TIMEOUT_MS,
            )
        else:
            self.notifier.notify(
                "All files failed",
                f"Successfully processed: 0 out of {event.total}",
                "dialog-error",
                SUMMARY_TIMEOUT_MS,
            )
