import subprocess
import pytest
from pathlib import Path
from unittest.mock import patch, MagicMock
from vproc.config.models import RunConfig
from vproc.domain.events import EncodeEnded, EncodeSpeedReported, EncodeTimeAdvanced
from vproc.domain.models import FileJob, FileStatus, GeometryPlan, ScaleAxis
from vproc.infrastructure.ffmpeg import FFmpegAdapter, parse_progress_line


def _job():
    plan = GeometryPlan(
        crop_width=1440,
        crop_height=1080,
        crop_offset_x=240,
        crop_offset_y=0,
        output_width=720,
        output_height=540,
        scaled_by=ScaleAxis.WIDTH,
    )
    return FileJob(source_path=Path("input.mp4"), output_path=Path("_remaster/input.mp4"), plan=plan)


def test_build_command():
    config = RunConfig(crf=23, preset="medium")
    cmd = FFmpegAdapter(event_bus=MagicMock())._build_command(_job(), config)

    assert cmd[0] == "ffmpeg"
    assert cmd[cmd.index("-i") + 1] == "input.mp4"
    assert cmd[cmd.index("-vf") + 1] == "crop=1440:1080:240:0,scale=720:540"
    assert cmd[cmd.index("-c:v") + 1] == "libx265"
    assert cmd[cmd.index("-preset") + 1] == "medium"
    assert cmd[cmd.index("-crf") + 1] == "23"
    assert cmd[cmd.index("-c:a") + 1] == "aac"
    assert cmd[cmd.index("-b:a") + 1] == "128k"
    assert cmd[cmd.index("-metadata:s:v:0") + 1] == "rotate=0"
    assert "+faststart" in cmd
    assert "-n" in cmd and "-y" not in cmd
    assert cmd[-2:] == ["-progress", "pipe:1"]
    assert str(Path("_remaster/input.mp4")) in cmd


def test_build_command_overwrite_uses_y():
    cmd = FFmpegAdapter(event_bus=MagicMock())._build_command(_job(), RunConfig(overwrite=True))
    assert "-y" in cmd and "-n" not in cmd


def test_build_command_requires_plan():
    job = FileJob(source_path=Path("a.mp4"), output_path=Path("b.mp4"))
    with pytest.raises(ValueError):
        FFmpegAdapter(event_bus=MagicMock())._build_command(job, RunConfig())


def test_parse_progress_line():
    event = parse_progress_line("out_time_ms=5500000\n")
    assert isinstance(event, EncodeTimeAdvanced)
    assert event.elapsed_us == 5_500_000

    event = parse_progress_line("speed=2.35x")
    assert isinstance(event, EncodeSpeedReported)
    assert event.speed == pytest.approx(2.35)

    event = parse_progress_line("speed=N/A")
    assert isinstance(event, EncodeSpeedReported)
    assert event.speed is None

    assert isinstance(parse_progress_line("progress=end"), EncodeEnded)


def test_parse_progress_line_ignores_untracked_lines():
    assert parse_progress_line("progress=continue") is None
    assert parse_progress_line("frame=120") is None
    assert parse_progress_line("out_time_ms=N/A") is None
    assert parse_progress_line("Some error text without a separator") is None
    assert parse_progress_line("") is None


def test_encode_success_publishes_progress():
    bus = MagicMock()
    job = _job()

    with patch("subprocess.Popen") as mock_popen:
        process = mock_popen.return_value
        process.stdout = [
            "frame=10\n",
            "out_time_ms=1000000\n",
            "speed=1.5x\n",
            "progress=continue\n",
            "out_time_ms=2000000\n",
            "progress=end\n",
        ]
        process.wait.return_value = 0
        process.returncode = 0

        FFmpegAdapter(event_bus=bus).encode(job, RunConfig())

    assert job.status == FileStatus.COMPLETED
    published = [call.args[0] for call in bus.publish.call_args_list]
    assert [type(e) for e in published] == [
        EncodeTimeAdvanced,
        EncodeSpeedReported,
        EncodeTimeAdvanced,
        EncodeEnded,
    ]
    kwargs = mock_popen.call_args.kwargs
    assert kwargs["stdout"] == subprocess.PIPE
    assert kwargs["stderr"] == subprocess.STDOUT


def test_encode_failure_keeps_error_tail():
    job = _job()

    with patch("subprocess.Popen") as mock_popen:
        process = mock_popen.return_value
        process.stdout = [
            "out_time_ms=0\n",
            "File '_remaster/input.mp4' already exists. Exiting.\n",
        ]
        process.wait.return_value = 1
        process.returncode = 1

        FFmpegAdapter(event_bus=MagicMock()).encode(job, RunConfig())

    assert job.status == FileStatus.FAILED
    assert "code 1" in job.error_message
    assert "already exists" in job.error_message


def test_encode_interrupt_stops_process_and_reraises():
    job = _job()

    def interrupted_stdout():
        yield "out_time_ms=1000000\n"
        raise KeyboardInterrupt

    with patch("subprocess.Popen") as mock_popen:
        process = mock_popen.return_value
        process.stdout = interrupted_stdout()
        process.wait.side_effect = [subprocess.TimeoutExpired("ffmpeg", 0), 0]

        with pytest.raises(KeyboardInterrupt):
            FFmpegAdapter(event_bus=MagicMock()).encode(job, RunConfig(grace_period_s=0))

    assert job.status == FileStatus.INTERRUPTED
    process.terminate.assert_called_once()
    process.kill.assert_not_called()


def test_stop_process_kills_when_terminate_is_ignored():
    process = MagicMock()
    process.wait.side_effect = [
        subprocess.TimeoutExpired("ffmpeg", 0),
        subprocess.TimeoutExpired("ffmpeg", 3),
        0,
    ]

    FFmpegAdapter(event_bus=MagicMock())._stop_process(process, 0)

    process.terminate.assert_called_once()
    process.kill.assert_called_once()


def test_stop_process_leaves_exited_process_alone():
    process = MagicMock()
    process.wait.return_value = 0

    FFmpegAdapter(event_bus=MagicMock())._stop_process(process, 2.0)

    process.terminate.assert_not_called()
