from typing import Optional
from rich.console import Console
from rich.live import Live
from rich.text import Text
from vproc.infrastructure.event_bus import EventBus
from vproc.domain.events import (
    BatchInterrupted,
    EncodeEnded,
    EncodeSpeedReported,
    EncodeStarted,
    EncodeTimeAdvanced,
    FileCompleted,
    FileFailed,
)
from vproc.utils.formatting import format_speed, format_time

RESERVED_COLUMNS = 30
MIN_BAR_WIDTH = 30
MAX_BAR_WIDTH = 70


def bar_width_for(columns: int) -> int:
    return max(MIN_BAR_WIDTH, min(MAX_BAR_WIDTH, columns - RESERVED_COLUMNS))


def render_progress_line(elapsed: int, duration: int, speed_label: str, width: int) -> Text:
    """[####------]  42% | 1:03 | 2.5x"""
    # Unknown duration: bar stays empty, only the elapsed label moves
    proportion = min(1.0, elapsed / duration) if duration > 0 else 0.0
    filled = int(proportion * width)
    percent = int(proportion * 100)

    line = Text("[")
    line.append("#" * filled, style="bold green")
    line.append("-" * (width - filled), style="blue")
    line.append("] ")
    line.append(f"{percent:3d}%", style="bold yellow")
    line.append(f" | {format_time(elapsed)} | {speed_label}")
    return line


def render_final_line(duration: int, speed_label: str, width: int) -> Text:
    line = Text("[")
    line.append("#" * width, style="green")
    line.append(f"] 100% | {format_time(duration)} | {speed_label}")
    return line


class ProgressTracker:
    """Single-line progress bar for the file being encoded.

    Fed by progress events from the ffmpeg adapter. Elapsed time never moves
    backwards and is clamped to the probed duration when that is known.
    """

    def __init__(self, bus: EventBus, console: Console):
        self.bus = bus
        self.console = console
        self.duration = 0
        self.elapsed = 0
        self.speed: Optional[float] = None
        self.width = bar_width_for(console.width)
        self._live: Optional[Live] = None
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(EncodeStarted, self.on_encode_started)
        self.bus.subscribe(EncodeTimeAdvanced, self.on_time_advanced)
        self.bus.subscribe(EncodeSpeedReported, self.on_speed_reported)
        self.bus.subscribe(EncodeEnded, self.on_encode_ended)
        self.bus.subscribe(FileCompleted, self.on_file_finished)
        self.bus.subscribe(FileFailed, self.on_file_finished)
        self.bus.subscribe(BatchInterrupted, self.on_file_finished)

    @property
    def speed_label(self) -> str:
        return format_speed(self.speed)

    @property
    def active(self) -> bool:
        return self._live is not None

    def begin(self, duration: int):
        self.close()
        self.duration = max(0, duration)
        self.elapsed = 0
        self.speed = None
        self.width = bar_width_for(self.console.width)
        self._live = Live(
            self.current_line(),
            console=self.console,
            auto_refresh=False,
            transient=False,
        )
        self._live.start()

    def current_line(self) -> Text:
        return render_progress_line(self.elapsed, self.duration, self.speed_label, self.width)

    def advance(self, elapsed_us: int):
        elapsed = max(self.elapsed, elapsed_us // 1_000_000)
        if self.duration > 0:
            elapsed = min(elapsed, self.duration)
        self.elapsed = elapsed
        self._redraw(self.current_line())

    def finish(self):
        """Draws the completed bar and ends the line."""
        if self.duration > 0:
            self.elapsed = self.duration
        self._redraw(render_final_line(self.duration, self.speed_label, self.width))
        self.close()

    def close(self):
        if self._live is not None:
            self._live.stop()
            self._live = None

    def _redraw(self, line: Text):
        if self._live is not None:
            self._live.update(line, refresh=True)

    def on_encode_started(self, event: EncodeStarted):
        duration = event.job.descriptor.duration_seconds if event.job.descriptor else 0
        self.begin(duration)

    def on_time_advanced(self, event: EncodeTimeAdvanced):
        self.advance(event.elapsed_us)

    def on_speed_reported(self, event: EncodeSpeedReported):
        self.speed = event.speed

    def on_encode_ended(self, event: EncodeEnded):
        self.finish()

    def on_file_finished(self, event):
        self.close()
