import logging
from pathlib import Path
from typing import Optional

class HousekeepingService:
    """Creates the output directory and removes incomplete outputs."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def ensure_output_dir(self, directory: Path):
        """Creates the directory (and parents). OSError propagates to the caller."""
        directory.mkdir(parents=True, exist_ok=True)

    def remove_incomplete_output(self, path: Optional[Path]) -> bool:
        """Deletes a partially written output file. Returns True if a file was removed."""
        if path is None or not path.is_file():
            return False
        try:
            path.unlink()
        except OSError as e:
            self.logger.warning(f"Failed to remove incomplete output {path}: {e}")
            return False
        return True
