import shutil
import subprocess
import logging
from typing import Optional

class DesktopNotifier:
    """Best-effort desktop notifications through `notify-send`.

    When the binary is missing the notifier is silently disabled.
    """

    def __init__(self, command: str = "notify-send", enabled: bool = True):
        self.command = command
        self.logger = logging.getLogger(__name__)
        self._binary: Optional[str] = shutil.which(command) if enabled else None

    @property
    def available(self) -> bool:
        return self._binary is not None

    def notify(self, title: str, body: str, icon: str, timeout_ms: int) -> bool:
        if not self._binary:
            return False
        cmd = [self._binary, "-i", icon, "-t", str(timeout_ms), title, body]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=5)
        except (OSError, subprocess.TimeoutExpired) as e:
            self.logger.debug(f"Notification failed: {e}")
            return False
        if result.returncode != 0:
            self.logger.debug(f"Notification failed: {result.stderr.strip()}")
            return False
        return True
