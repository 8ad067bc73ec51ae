import subprocess
import json
from pathlib import Path
from typing import Dict, Any, Optional
from vproc.domain.models import VideoDescriptor


class ProbeError(RuntimeError):
    """ffprobe could not read a usable resolution from the file."""


class FFprobeAdapter:
    """Wrapper around ffprobe to extract resolution, rotation and duration."""

    @staticmethod
    def _to_float(value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    @staticmethod
    def _to_rotation(value: Any) -> Optional[int]:
        if value is None or value == "":
            return None
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None

    @classmethod
    def _parse_duration_tag(cls, value: Any) -> float:
        if value is None:
            return 0.0
        text = str(value).strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            pass
        if ":" in text:
            parts = text.split(":")
            if len(parts) in (2, 3):
                try:
                    parts_f = [float(p) for p in parts]
                except ValueError:
                    return 0.0
                if len(parts_f) == 2:
                    minutes, seconds = parts_f
                    return minutes * 60 + seconds
                hours, minutes, seconds = parts_f
                return hours * 3600 + minutes * 60 + seconds
        return 0.0

    @classmethod
    def _extract_rotation(cls, video_stream: Dict[str, Any]) -> Optional[int]:
        """Rotation from the stream `rotate` tag, else from displaymatrix side data."""
        tags = video_stream.get("tags", {}) or {}
        rotation = cls._to_rotation(tags.get("rotate"))
        if rotation is not None:
            return rotation
        for side_data in video_stream.get("side_data_list", []) or []:
            rotation = cls._to_rotation(side_data.get("rotation"))
            if rotation is not None:
                return rotation
        return None

    @classmethod
    def _extract_duration(cls, data: Dict[str, Any], video_stream: Dict[str, Any]) -> float:
        # Fallback order: format.duration, format tags, stream.duration, stream tags
        fmt = data.get("format", {}) or {}
        duration = cls._to_float(fmt.get("duration"))
        if duration <= 0:
            tags = fmt.get("tags", {}) or {}
            duration = cls._parse_duration_tag(tags.get("DURATION") or tags.get("duration"))
        if duration <= 0:
            duration = cls._to_float(video_stream.get("duration"))
        if duration <= 0:
            tags = video_stream.get("tags", {}) or {}
            duration = cls._parse_duration_tag(tags.get("DURATION") or tags.get("duration"))
        return max(duration, 0.0)

    def probe(self, file_path: Path) -> VideoDescriptor:
        """Runs ffprobe on the first video stream and returns its descriptor."""
        cmd = [
            "ffprobe",
            "-v", "error",
            "-select_streams", "v:0",
            "-print_format", "json",
            "-show_streams",
            "-show_format",
            str(file_path)
        ]

        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise ProbeError(f"ffprobe could not be started: {e}") from e
        if result.returncode != 0:
            raise ProbeError(f"ffprobe failed for {file_path}: {result.stderr.strip()}")

        try:
            data = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise ProbeError(f"ffprobe returned invalid JSON for {file_path}") from e

        video_stream = next(
            (s for s in data.get("streams", []) if s.get("codec_type", "video") == "video"),
            None,
        )
        if not video_stream:
            raise ProbeError(f"No video stream found in {file_path}")

        width = int(self._to_float(video_stream.get("width")))
        height = int(self._to_float(video_stream.get("height")))
        if width <= 0 or height <= 0:
            raise ProbeError(f"Failed to read video resolution for: {file_path}")

        return VideoDescriptor(
            path=file_path,
            width=width,
            height=height,
            rotation=self._extract_rotation(video_stream),
            # Fractional seconds are truncated
            duration_seconds=int(self._extract_duration(data, video_stream)),
        )
