"""
Nether Render - Engine Package
Procedural "nether" animation: shader, PPM frame writer, frame sequencer and FFmpeg bridge.
"""

from nether.config import PipelineConfig, prepare_output_directory
from nether.errors import (
    NetherError, ConfigurationError, InvalidOperation, OutputDirectoryError,
    FrameWriteError, RenderCancelled, EncoderError,
)
from nether.vector import Vec3, Vec4
from nether.shader import shade, shade_rgb, to_byte
from nether.renderer import NetherRenderer, render_frame, write_ppm, read_ppm_header
from nether.sequencer import FrameSequencer, render_all
from nether.encoder import encode_video, probe_video

__version__ = "1.0.0"

__all__ = [
    "PipelineConfig", "prepare_output_directory",
    "NetherError", "ConfigurationError", "InvalidOperation", "OutputDirectoryError",
    "FrameWriteError", "RenderCancelled", "EncoderError",
    "Vec3", "Vec4", "shade", "shade_rgb", "to_byte",
    "NetherRenderer", "render_frame", "write_ppm", "read_ppm_header",
    "FrameSequencer", "render_all", "encode_video", "probe_video",
]
