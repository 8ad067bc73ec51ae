import pytest
from pathlib import Path
from pydantic import ValidationError
from vproc.domain.models import (
    BatchState,
    FileJob,
    FileStatus,
    GeometryPlan,
    ScaleAxis,
    VideoDescriptor,
)


def test_video_descriptor_without_rotation_keeps_dimensions():
    desc = VideoDescriptor(path=Path("a.mp4"), width=1920, height=1080)
    assert desc.rotation is None
    assert desc.is_quarter_turn is False
    assert (desc.effective_width, desc.effective_height) == (1920, 1080)


@pytest.mark.parametrize("rotation", [90, 270, -90, -270])
def test_quarter_turn_swaps_dimensions(rotation):
    desc = VideoDescriptor(path=Path("a.mp4"), width=1920, height=1080, rotation=rotation)
    assert desc.is_quarter_turn
    assert (desc.effective_width, desc.effective_height) == (1080, 1920)


@pytest.mark.parametrize("rotation", [0, 180, -180, 45])
def test_other_rotations_keep_dimensions(rotation):
    desc = VideoDescriptor(path=Path("a.mp4"), width=1920, height=1080, rotation=rotation)
    assert (desc.effective_width, desc.effective_height) == (1920, 1080)


def test_video_descriptor_rejects_non_positive_size():
    with pytest.raises(ValidationError):
        VideoDescriptor(path=Path("a.mp4"), width=0, height=1080)
    with pytest.raises(ValidationError):
        VideoDescriptor(path=Path("a.mp4"), width=1920, height=1080, duration_seconds=-1)


def test_video_descriptor_is_frozen():
    desc = VideoDescriptor(path=Path("a.mp4"), width=1920, height=1080)
    with pytest.raises(ValidationError):
        desc.width = 10


def test_geometry_plan_filter_chain():
    plan = GeometryPlan(
        crop_width=1440,
        crop_height=1080,
        crop_offset_x=240,
        crop_offset_y=0,
        output_width=720,
        output_height=540,
        scaled_by=ScaleAxis.WIDTH,
    )
    assert plan.filter_chain == "crop=1440:1080:240:0,scale=720:540"


def test_file_job_defaults():
    job = FileJob(source_path=Path("in/a.mp4"), output_path=Path("out/a.mp4"))
    assert job.status == FileStatus.PENDING
    assert job.plan is None
    assert job.compression_ratio is None


def test_compression_ratio():
    job = FileJob(source_path=Path("a.mp4"), output_path=Path("b.mp4"), input_size_bytes=3000)
    job.output_size_bytes = 1000
    assert job.compression_ratio == pytest.approx(3.0)

    job.output_size_bytes = 0
    assert job.compression_ratio is None


def test_batch_state_counters_and_marker():
    state = BatchState(total_files=3)
    assert state.current_output is None

    state.begin_output(Path("out/a.mp4"))
    assert state.current_output == Path("out/a.mp4")
    state.clear_output()
    assert state.current_output is None

    state.mark_processed()
    state.mark_skipped()
    state.mark_failed()
    assert (state.processed, state.skipped, state.failed) == (1, 1, 1)
    assert state.total_files == 3
