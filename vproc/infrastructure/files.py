import shutil
from pathlib import Path
from typing import Iterable, List

REQUIRED_TOOLS = ("ffmpeg", "ffprobe")


def file_size(path: Path) -> int:
    """Size in bytes, 0 when the file is missing or unreadable."""
    try:
        return path.stat().st_size if path.is_file() else 0
    except OSError:
        return 0


def missing_tools(tools: Iterable[str] = REQUIRED_TOOLS) -> List[str]:
    """Names from `tools` that are not found on PATH, in the given order."""
    return [tool for tool in tools if shutil.which(tool) is None]
