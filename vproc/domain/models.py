from enum import Enum
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

class OrientationClass(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    SQUARE = "square"

class ScaleMode(str, Enum):
    AUTO = "auto"
    WIDTH = "width"
    HEIGHT = "height"
    LONG = "long"
    SHORT = "short"

class ScaleAxis(str, Enum):
    WIDTH = "width"
    HEIGHT = "height"

class EncoderPreset(str, Enum):
    """x265 speed presets, fastest first."""
    ULTRAFAST = "ultrafast"
    SUPERFAST = "superfast"
    VERYFAST = "veryfast"
    FASTER = "faster"
    FAST = "fast"
    MEDIUM = "medium"
    SLOW = "slow"
    SLOWER = "slower"
    VERYSLOW = "veryslow"
    PLACEBO = "placebo"

class FileStatus(str, Enum):
    PENDING = "PENDING"
    PROBING = "PROBING"
    PLANNED = "PLANNED"
    ENCODING = "ENCODING"
    DRY_RUN = "DRY_RUN"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"
    INTERRUPTED = "INTERRUPTED"  # Ctrl+C / SIGTERM during encode

QUARTER_TURNS = {90, 270, -90, -270}

FILE_NOT_FOUND = "File not found"

class VideoDescriptor(BaseModel):
    """Probed properties of one input file (pre-rotation width/height)."""
    model_config = ConfigDict(frozen=True)

    path: Path
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    rotation: Optional[int] = None
    duration_seconds: int = Field(default=0, ge=0)

    @property
    def is_quarter_turn(self) -> bool:
        return self.rotation in QUARTER_TURNS

    @property
    def effective_width(self) -> int:
        return self.height if self.is_quarter_turn else self.width

    @property
    def effective_height(self) -> int:
        return self.width if self.is_quarter_turn else self.height

class GeometryPlan(BaseModel):
    """Centered crop followed by a proportional scale."""
    model_config = ConfigDict(frozen=True)

    crop_width: int
    crop_height: int
    crop_offset_x: int
    crop_offset_y: int
    output_width: int
    output_height: int
    scaled_by: ScaleAxis

    @property
    def filter_chain(self) -> str:
        return (
            f"crop={self.crop_width}:{self.crop_height}:{self.crop_offset_x}:{self.crop_offset_y},"
            f"scale={self.output_width}:{self.output_height}"
        )

class FileJob(BaseModel):
    source_path: Path
    output_path: Path
    status: FileStatus = FileStatus.PENDING
    input_size_bytes: int = 0
    output_size_bytes: Optional[int] = None
    descriptor: Optional[VideoDescriptor] = None
    orientation: Optional[OrientationClass] = None
    plan: Optional[GeometryPlan] = None
    error_message: Optional[str] = None

    @property
    def compression_ratio(self) -> Optional[float]:
        """Input/output size ratio, None when either size is unknown or zero."""
        if not self.input_size_bytes or not self.output_size_bytes:
            return None
        return self.input_size_bytes / self.output_size_bytes

class BatchState:
    """Counters and the in-flight output marker for a single run.

    Owned by the orchestrator; the marker is what interrupt cleanup removes.
    """

    def __init__(self, total_files: int = 0):
        self.total_files = total_files
        self.attempted = 0
        self.processed = 0
        self.skipped = 0
        self.failed = 0
        self.current_output: Optional[Path] = None

    def begin_output(self, path: Path):
        self.current_output = path

    def clear_output(self):
        self.current_output = None

    def mark_processed(self):
        self.processed += 1

    def mark_skipped(self):
        self.skipped += 1

    def mark_failed(self):
        self.failed += 1
