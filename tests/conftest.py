import pytest
import yaml
from pathlib import Path
from typing import Dict, List, Optional
from vproc.config.models import RunConfig
from vproc.domain.models import FileStatus, VideoDescriptor
from vproc.infrastructure.event_bus import EventBus
from vproc.infrastructure.ffprobe import ProbeError

# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def output_dir(tmp_path):
    """Output directory for a batch run (created)."""
    out = tmp_path / "_remaster"
    out.mkdir()
    return out

@pytest.fixture
def run_config(output_dir):
    """Default RunConfig pointing at a temporary output directory."""
    return RunConfig(output_dir=output_dir, notify=False, grace_period_s=0.0)

@pytest.fixture
def config_yaml_path(tmp_path):
    """Creates a temporary YAML config file."""
    conf_file = tmp_path / "vproc.yaml"
    content = {
        "aspect": "4:3",
        "scale": 720,
        "scale-mode": "height",
        "crf": 23,
        "preset": "medium",
        "notify": False,
    }
    with open(conf_file, "w") as f:
        yaml.dump(content, f)
    return conf_file

# ============================================================================
# EventBus Fixtures
# ============================================================================

@pytest.fixture
def event_bus():
    """Returns a fresh EventBus instance."""
    return EventBus()

@pytest.fixture
def recorded_events(event_bus):
    """Collects every published event, in order."""
    events = []
    original_publish = event_bus.publish

    def publish(event):
        events.append(event)
        original_publish(event)

    event_bus.publish = publish
    return events

# ============================================================================
# File System Fixtures
# ============================================================================

@pytest.fixture
def input_dir(tmp_path):
    """Creates a test input directory."""
    directory = tmp_path / "input"
    directory.mkdir()
    return directory

@pytest.fixture
def dummy_videos(input_dir):
    """Three dummy 'videos' with distinct names and sizes."""
    files = []
    for i in range(3):
        f = input_dir / f"clip{i}.mp4"
        f.write_bytes(b"dummy video content " * (100 * (i + 1)))
        files.append(f)
    return files

# ============================================================================
# Fake adapters
# ============================================================================

class FakeProbe:
    """Stands in for FFprobeAdapter: returns canned descriptors by file name."""

    def __init__(self, descriptors: Optional[Dict[str, VideoDescriptor]] = None, default=(1920, 1080, None, 10)):
        self.descriptors = descriptors or {}
        self.default = default
        self.calls: List[Path] = []

    def probe(self, path: Path) -> VideoDescriptor:
        self.calls.append(path)
        if path.name in self.descriptors:
            desc = self.descriptors[path.name]
            if desc is None:
                raise ProbeError(f"Failed to read video resolution for: {path}")
            return desc
        width, height, rotation, duration = self.default
        return VideoDescriptor(path=path, width=width, height=height, rotation=rotation, duration_seconds=duration)


class FakeEncoder:
    """Stands in for FFmpegAdapter: writes a small output file and marks the job."""

    def __init__(self, output_bytes: bytes = b"x" * 100, fail_names=(), interrupt_names=()):
        self.output_bytes = output_bytes
        self.fail_names = set(fail_names)
        self.interrupt_names = set(interrupt_names)
        self.calls: List[Path] = []

    def encode(self, job, config):
        self.calls.append(job.source_path)
        job.output_path.write_bytes(self.output_bytes)
        name = job.source_path.name
        if name in self.interrupt_names:
            job.status = FileStatus.INTERRUPTED
            raise KeyboardInterrupt
        if name in self.fail_names:
            job.status = FileStatus.FAILED
            job.error_message = "ffmpeg exited with code 1"
            return
        job.status = FileStatus.COMPLETED


@pytest.fixture
def fake_probe():
    return FakeProbe()


@pytest.fixture
def fake_encoder():
    return FakeEncoder()


@pytest.fixture
def probe_factory():
    """FakeProbe class, for tests that need custom descriptors."""
    return FakeProbe


@pytest.fixture
def encoder_factory():
    """FakeEncoder class, for tests that need failing or interrupted encodes."""
    return FakeEncoder

# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
