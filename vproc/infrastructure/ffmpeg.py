import re
import subprocess
import logging
from collections import deque
from typing import List, Optional
from vproc.config.models import RunConfig
from vproc.domain.models import FileJob, FileStatus
from vproc.domain.events import EncodeEnded, EncodeSpeedReported, EncodeTimeAdvanced, ProgressEvent
from vproc.infrastructure.event_bus import EventBus

AUDIO_CODEC = "aac"
AUDIO_BITRATE = "128k"
VIDEO_CODEC = "libx265"
ERROR_TAIL_LINES = 5
PROGRESS_LINE = re.compile(r"^[\w.]+=")


def _parse_speed(value: str) -> Optional[float]:
    text = value.strip().rstrip("x").strip()
    try:
        speed = float(text)
    except ValueError:
        return None
    return speed if speed >= 0 else None


def parse_progress_line(line: str) -> Optional[ProgressEvent]:
    """Translates one `-progress` key=value line into a progress event.

    Returns None for keys that are not tracked and for non key=value lines.
    """
    key, sep, value = line.strip().partition("=")
    if not sep:
        return None
    key = key.strip()
    value = value.strip()
    if key == "out_time_ms":
        # ffmpeg reports out_time_ms in microseconds despite the name
        try:
            return EncodeTimeAdvanced(elapsed_us=max(0, int(value)))
        except ValueError:
            return None
    if key == "speed":
        return EncodeSpeedReported(speed=_parse_speed(value))
    if key == "progress" and value == "end":
        return EncodeEnded()
    return None


class FFmpegAdapter:
    """Wrapper around ffmpeg for the crop+scale HEVC re-encode."""

    def __init__(self, event_bus: EventBus):
        self.event_bus = event_bus
        self.logger = logging.getLogger(__name__)

    def _build_command(self, job: FileJob, config: RunConfig) -> List[str]:
        """Constructs the ffmpeg command line arguments."""
        if job.plan is None:
            raise ValueError(f"No geometry plan for {job.source_path}")
        return [
            "ffmpeg",
            "-nostdin",
            "-hide_banner",
            "-loglevel", "error",
            "-i", str(job.source_path),
            "-vf", job.plan.filter_chain,
            # Crop/scale already works on rotation-corrected frames
            "-metadata:s:v:0", "rotate=0",
            "-c:v", VIDEO_CODEC,
            "-preset", config.preset.value,
            "-crf", str(config.crf),
            "-c:a", AUDIO_CODEC,
            "-b:a", AUDIO_BITRATE,
            "-movflags", "+faststart",
            "-y" if config.overwrite else "-n",
            str(job.output_path),
            "-progress", "pipe:1",
        ]

    def _stop_process(self, process: subprocess.Popen, grace_period_s: float):
        """Gives ffmpeg a chance to finish on its own SIGINT, then terminates it."""
        try:
            process.wait(timeout=grace_period_s)
            return
        except subprocess.TimeoutExpired:
            pass
        process.terminate()
        try:
            process.wait(timeout=3)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    def encode(self, job: FileJob, config: RunConfig):
        """Runs ffmpeg for one job, publishing progress events while it runs.

        Sets job.status to COMPLETED or FAILED. On KeyboardInterrupt the process
        is stopped, job.status becomes INTERRUPTED and the interrupt is re-raised.
        """
        filename = job.source_path.name
        cmd = self._build_command(job, config)
        self.logger.debug(f"FFMPEG_CMD: {' '.join(cmd)}")

        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            universal_newlines=True,
            bufsize=1
        )

        error_tail: "deque[str]" = deque(maxlen=ERROR_TAIL_LINES)
        try:
            for line in process.stdout or []:
                event = parse_progress_line(line)
                if event is not None:
                    self.event_bus.publish(event)
                elif line.strip() and not PROGRESS_LINE.match(line.strip()):
                    error_tail.append(line.strip())
            process.wait()
        except KeyboardInterrupt:
            self.logger.info(f"FFMPEG_INTERRUPTED: {filename}")
            self._stop_process(process, config.grace_period_s)
            job.status = FileStatus.INTERRUPTED
            job.error_message = "Interrupted by user"
            raise

        if process.returncode != 0:
            job.status = FileStatus.FAILED
            detail = "; ".join(error_tail)
            job.error_message = f"ffmpeg exited with code {process.returncode}"
            if detail:
                job.error_message = f"{job.error_message}: {detail}"
            self.logger.debug(f"FFMPEG_END: {filename} status=failed code={process.returncode}")
        else:
            job.status = FileStatus.COMPLETED
            self.logger.debug(f"FFMPEG_END: {filename} status=completed")
