import re
from fractions import Fraction
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from vproc.domain.models import EncoderPreset, ScaleMode

ASPECT_SOURCE = "source"
ASPECT_PATTERN = re.compile(r"^(\d+):(\d+)$")

class RunConfig(BaseModel):
    """Options for one batch run. Validated once at startup, never mutated."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    aspect: str = ASPECT_SOURCE
    scale: int = Field(default=960, gt=0)
    scale_mode: ScaleMode = ScaleMode.AUTO
    crf: int = Field(default=28, ge=0, le=51)
    preset: EncoderPreset = EncoderPreset.SLOW
    notify: bool = True
    overwrite: bool = False
    output_dir: Path = Path("_remaster")
    dry_run: bool = False
    log_file: Optional[Path] = None
    debug: bool = False
    grace_period_s: float = Field(default=2.0, ge=0.0)

    @field_validator("aspect")
    @classmethod
    def validate_aspect(cls, v: str) -> str:
        v = v.strip()
        if v == ASPECT_SOURCE:
            return v
        match = ASPECT_PATTERN.match(v)
        if not match:
            raise ValueError(f"invalid aspect ratio '{v}'. Expected 'source' or W:H (e.g. 16:9)")
        if int(match.group(1)) == 0 or int(match.group(2)) == 0:
            raise ValueError(f"invalid aspect ratio '{v}'. Both terms must be greater than zero")
        return v

    def target_ratio(self) -> Optional[Fraction]:
        """Returns the W:H ratio as an exact fraction, or None to keep the source ratio."""
        if self.aspect == ASPECT_SOURCE:
            return None
        width, height = self.aspect.split(":")
        return Fraction(int(width), int(height))
