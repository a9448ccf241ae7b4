"""
Nether Render - Pipeline Configuration
One immutable record threaded through the renderer, sequencer and encoder.
"""

import math
import numbers
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path

from nether.errors import ConfigurationError, OutputDirectoryError

logger = logging.getLogger(__name__)

# ── Defaults ─────────────────────────────────────────────────────────────────
DEFAULT_WIDTH = 320
DEFAULT_HEIGHT = 160
DEFAULT_FPS = 60
DEFAULT_DURATION = 4.0
DEFAULT_OUTPUT_DIR = "frames"
DEFAULT_OUTPUT_FILE = "nether.mp4"

# printf-style pattern shared by the frame writer and the encoder input
FRAME_NAME_PATTERN = "frame_%04d.ppm"


def default_workers() -> int:
    """Render thread count: every core, but at least 2 and at most 6."""
    return max(2, min(os.cpu_count() or 4, 6))


@dataclass(frozen=True)
class PipelineConfig:
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    fps: int = DEFAULT_FPS
    duration: float = DEFAULT_DURATION
    output_dir: str = DEFAULT_OUTPUT_DIR
    output_file: str = DEFAULT_OUTPUT_FILE
    workers: int = field(default_factory=default_workers)
    resume: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"Width and height must be positive. Got {self.width}x{self.height}"
            )
        if not isinstance(self.fps, numbers.Integral) or isinstance(self.fps, bool):
            raise ConfigurationError(f"FPS must be a whole number. Got {self.fps!r}")
        if self.fps <= 0:
            raise ConfigurationError(f"FPS must be positive. Got {self.fps}")
        if not math.isfinite(self.duration) or self.duration <= 0:
            raise ConfigurationError(f"Duration must be positive. Got {self.duration}")
        if self.output_dir is None or not str(self.output_dir).strip():
            raise ConfigurationError("Output directory name must not be empty.")
        if self.output_file is None or not str(self.output_file).strip():
            raise ConfigurationError("Output file name must not be empty.")
        if self.workers < 1:
            raise ConfigurationError(f"Workers must be at least 1. Got {self.workers}")
        if self.total_frames < 1:
            raise ConfigurationError(
                f"{self.fps} FPS for {self.duration}s yields no frames."
            )

    @property
    def total_frames(self) -> int:
        """round(fps * duration), halves rounding up."""
        return int(math.floor(self.fps * self.duration + 0.5))

    def frame_time(self, index: int) -> float:
        return index / float(self.fps)

    def frame_name(self, index: int) -> str:
        return FRAME_NAME_PATTERN % index

    def frame_path(self, index: int) -> Path:
        return Path(self.output_dir) / self.frame_name(index)

    @property
    def input_pattern(self) -> str:
        return str(Path(self.output_dir) / FRAME_NAME_PATTERN)


# ═══════════════════════════════════════════════════════════════════════════════
# OUTPUT DIRECTORY
# ═══════════════════════════════════════════════════════════════════════════════

def _is_writable(path: Path) -> bool:
    """Check if directory is writable by writing and removing a probe file."""
    try:
        test_file = path / ".write_test"
        with open(test_file, "w") as f:
            f.write("test")
        os.remove(test_file)
        return True
    except OSError:
        return False


def prepare_output_directory(dir_name: str) -> Path:
    """Create the frame directory if needed and make sure it can be written."""
    if dir_name is None or not str(dir_name).strip():
        raise ConfigurationError("Output directory name must not be empty.")

    directory = Path(dir_name)
    if directory.exists():
        if not directory.is_dir():
            raise OutputDirectoryError(
                f"Output path exists and is not a directory: {directory.resolve()}"
            )
    else:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(
                f"Failed to create output directory: {directory.resolve()}: {e}"
            ) from e

    if not _is_writable(directory):
        raise OutputDirectoryError(f"Output directory is not writable: {directory.resolve()}")

    logger.info("Using output directory: %s", directory.resolve())
    return directory
