import sys
import typer
from pathlib import Path
from typing import List, Optional
from pydantic import ValidationError
from rich.console import Console

from vproc.config.loader import load_config
from vproc.config.models import RunConfig
from vproc.infrastructure.logging import setup_logging, default_log_path
from vproc.infrastructure.event_bus import EventBus
from vproc.infrastructure.ffprobe import FFprobeAdapter
from vproc.infrastructure.ffmpeg import FFmpegAdapter
from vproc.infrastructure.files import missing_tools
from vproc.infrastructure.housekeeping import HousekeepingService
from vproc.infrastructure.notifier import DesktopNotifier
from vproc.pipeline.interrupt import InterruptGuard
from vproc.pipeline.orchestrator import Orchestrator
from vproc.ui.notifications import NotificationManager
from vproc.ui.progress import ProgressTracker
from vproc.ui.reporter import ConsoleReporter

__version__ = "1.3.0"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130

AUTO_LOG = ""  # value of a bare --log

app = typer.Typer(
    help="vproc - center-crop and scale videos to a target aspect ratio (H.265/AAC).",
    add_completion=False,
)


def normalize_log_flag(argv: List[str]) -> List[str]:
    """Turns a bare `--log` (last, or followed by another option) into `--log=`.

    `--log FILE` is left untouched, so the next non-option word is the log file.
    """
    result: List[str] = []
    for index, arg in enumerate(argv):
        if arg == "--log":
            following = argv[index + 1] if index + 1 < len(argv) else None
            if following is None or following.startswith("-"):
                result.append(f"--log={AUTO_LOG}")
                continue
        result.append(arg)
    return result


def _error(message: str):
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", ())) or "config"
        msg = str(error.get("msg", "")).removeprefix("Value error, ")
        parts.append(f"--{field.replace('_', '-')}: {msg}")
    return "; ".join(parts)


def _version_callback(value: bool):
    if value:
        typer.echo(f"vproc v{__version__}")
        raise typer.Exit()


@app.command()
def remaster(
    inputs: Optional[List[Path]] = typer.Argument(None, help="Input video files, processed in the given order"),
    aspect: Optional[str] = typer.Option(None, "--aspect", help="Target aspect ratio: 'source' or W:H (e.g. 4:3). Default: source"),
    scale: Optional[int] = typer.Option(None, "--scale", help="Target output dimension in pixels (see --scale-mode). Default: 960"),
    scale_mode: Optional[str] = typer.Option(
        None,
        "--scale-mode",
        help="Axis pinned to --scale: auto (width for horizontal/square, height for vertical), width, height, long, short",
    ),
    crf: Optional[int] = typer.Option(None, "--crf", help="H.265 CRF quality 0-51, lower = better. Default: 28"),
    preset: Optional[str] = typer.Option(None, "--preset", help="x265 preset (ultrafast ... placebo). Default: slow"),
    notify: Optional[bool] = typer.Option(None, "--notify/--no-notify", help="Desktop notifications via notify-send"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite output files if they exist"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="Directory for processed files. Default: _remaster"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only calculate filter parameters, do not encode"),
    log: Optional[str] = typer.Option(None, "--log", help="Write a log file; without FILE a timestamped name is generated"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML file with default options"),
    debug: bool = typer.Option(False, "--debug", help="Verbose debug logging (ffmpeg command lines)"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
):
    """Center-crop each input to the target aspect ratio and scale it for re-encoding."""
    if not inputs:
        _error("please specify at least one video file")
        typer.echo("Use --help for usage instructions", err=True)
        raise typer.Exit(code=EXIT_FAILED)

    log_file: Optional[Path] = None
    if log is not None:
        log_file = default_log_path() if log == AUTO_LOG else Path(log)

    try:
        config: RunConfig = load_config(config_path, overrides={
            "aspect": aspect,
            "scale": scale,
            "scale_mode": scale_mode,
            "crf": crf,
            "preset": preset,
            "notify": notify,
            "overwrite": overwrite or None,
            "output_dir": output_dir,
            "dry_run": dry_run or None,
            "log_file": log_file,
            "debug": debug or None,
        })
    except ValidationError as exc:
        _error(_format_validation_error(exc))
        raise typer.Exit(code=EXIT_FAILED)
    except (OSError, ValueError) as exc:
        _error(str(exc))
        raise typer.Exit(code=EXIT_FAILED)

    required = ("ffprobe",) if config.dry_run else ("ffmpeg", "ffprobe")
    missing = missing_tools(required)
    if missing:
        _error(f"missing required dependencies: {', '.join(missing)}")
        typer.echo("Please install them and try again.", err=True)
        raise typer.Exit(code=EXIT_FAILED)

    logger = setup_logging(config.log_file, debug=config.debug)
    logger.info(
        f"Config: aspect={config.aspect}, scale={config.scale}, scale_mode={config.scale_mode.value}, "
        f"crf={config.crf}, preset={config.preset.value}, output_dir={config.output_dir}, "
        f"overwrite={config.overwrite}, dry_run={config.dry_run}"
    )

    housekeeper = HousekeepingService()
    try:
        housekeeper.ensure_output_dir(config.output_dir)
    except OSError as exc:
        logger.error(f"Cannot create output directory '{config.output_dir}': {exc}")
        _error(f"cannot create output directory '{config.output_dir}'")
        raise typer.Exit(code=EXIT_FAILED)

    console = Console()
    err_console = Console(stderr=True)
    bus = EventBus()
    # Subscribed first so the live bar is closed before outcome lines print
    progress = ProgressTracker(bus, console)
    ConsoleReporter(bus, console, err_console)

    if config.notify:
        notifier = DesktopNotifier()
        if notifier.available:
            NotificationManager(bus, notifier)
        else:
            logger.debug("notify-send not found, notifications disabled")

    orchestrator = Orchestrator(
        config=config,
        event_bus=bus,
        ffprobe_adapter=FFprobeAdapter(),
        ffmpeg_adapter=FFmpegAdapter(event_bus=bus),
        housekeeping=housekeeper,
    )

    try:
        with InterruptGuard():
            state = orchestrator.run(inputs)
    except KeyboardInterrupt:
        raise typer.Exit(code=EXIT_INTERRUPTED)
    except Exception as e:
        logger.exception("Fatal error")
        typer.secho(f"Fatal Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_FAILED)
    finally:
        progress.close()

    raise typer.Exit(code=EXIT_OK if state.processed > 0 else EXIT_FAILED)


def run():
    """Console-script entry point."""
    app(args=normalize_log_flag(sys.argv[1:]), prog_name="vproc")


if __name__ == "__main__":
    run()
