import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = '[%(asctime)s] %(levelname)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def default_log_path(now: Optional[datetime] = None) -> Path:
    """Auto-generated log file name in the current directory."""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return Path(f"vproc_{stamp}.log")

def setup_logging(log_file: Optional[Path] = None, debug: bool = False) -> logging.Logger:
    """
    Setup logging configuration for vproc.

    Console output belongs to the reporter, so records only go to a file,
    and only when a log file is requested.

    Args:
        log_file: Optional path to the log file (appended to, parents created)
        debug: If True, enable DEBUG level logging (ffmpeg command lines, timings)
    """
    level = logging.DEBUG if debug else logging.INFO

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file)
    else:
        handler = logging.NullHandler()

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[handler],
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger("vproc")
    if log_file is not None:
        logger.info(f"Logging initialized: {log_file} (debug={'ON' if debug else 'OFF'})")

    return logger
