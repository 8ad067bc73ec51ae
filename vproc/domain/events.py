"""Domain events for the remaster pipeline.

Events flow through the EventBus, decoupling the batch orchestrator from the
console reporter, the progress bar and desktop notifications.

See `infrastructure/event_bus.py` for the pub/sub mechanism.
"""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel
from .models import FileJob


class Event(BaseModel):
    """Base class for all domain events."""

    pass


class FileEvent(Event):
    """Base class for events related to a single input file."""

    job: FileJob


class FilePlanned(FileEvent):
    """Emitted once probe and geometry are known, before dry-run or encode."""

    pass


class EncodeStarted(FileEvent):
    """Emitted right before ffmpeg is launched."""

    pass


class FileCompleted(FileEvent):
    """Emitted when a file counts as processed (encoded or dry run)."""

    pass


class FileSkipped(FileEvent):
    """Emitted when the output exists and overwrite is disabled."""

    reason: str


class FileFailed(FileEvent):
    """Emitted for missing files, probe/geometry failures and ffmpeg errors."""

    error_message: str


class Notice(Event):
    """Warning-level message for the user that does not change the file outcome."""

    message: str


class ProgressEvent(Event):
    """Base class for structured ffmpeg `-progress` reports."""

    pass


class EncodeTimeAdvanced(ProgressEvent):
    """Encoded media time so far, in microseconds."""

    elapsed_us: int


class EncodeSpeedReported(ProgressEvent):
    """Encoding speed as a multiple of real time; None when ffmpeg reports N/A."""

    speed: Optional[float] = None


class EncodeEnded(ProgressEvent):
    """ffmpeg reported `progress=end`."""

    pass


class BatchFinished(Event):
    """Emitted after every input has been attempted."""

    processed: int
    total: int


class BatchInterrupted(Event):
    """Emitted when SIGINT/SIGTERM stops the batch."""

    processed: int
    total: int
    removed_output: Optional[Path] = None
