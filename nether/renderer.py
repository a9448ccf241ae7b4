"""
Nether Render - Frame Renderer
Samples the scene shader over the pixel grid and writes binary PPM (P6) frames.
"""

import os
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image

from nether.config import PipelineConfig
from nether.shader import color_to_bytes, shade

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def ppm_header(width: int, height: int) -> bytes:
    return f"P6\n{width} {height}\n255\n".encode("ascii")


def expected_ppm_size(width: int, height: int) -> int:
    """Total byte size of a frame file: header plus one RGB triple per pixel."""
    return len(ppm_header(width, height)) + width * height * 3


class NetherRenderer:
    """
    Renders whole frames of the nether scene at a fixed resolution.
    Pixel-center coordinates are computed once and reused for every frame.
    """

    def __init__(self, width: int, height: int):
        self.w = width
        self.h = height
        y_grid, x_grid = np.mgrid[0:height, 0:width].astype(np.float64)
        self.u = (x_grid + 0.5) / width
        self.v = (y_grid + 0.5) / height

    def render_frame(self, t: float) -> np.ndarray:
        """Render one frame at time t. Returns an (H, W, 3) uint8 RGB array."""
        return color_to_bytes(shade(self.u, self.v, t))


def render_frame(config: PipelineConfig, time: float,
                 renderer: Optional[NetherRenderer] = None) -> np.ndarray:
    renderer = renderer or NetherRenderer(config.width, config.height)
    return renderer.render_frame(time)


# ═══════════════════════════════════════════════════════════════════════════════
# PPM I/O
# ═══════════════════════════════════════════════════════════════════════════════

def write_ppm(path: PathLike, frame: np.ndarray):
    """Write an (H, W, 3) uint8 frame as binary PPM. Raises OSError on failure."""
    if frame.ndim != 3 or frame.shape[2] != 3 or frame.dtype != np.uint8:
        raise ValueError(f"Expected an (H, W, 3) uint8 frame, got {frame.shape} {frame.dtype}")
    height, width = frame.shape[:2]
    with open(path, "wb") as f:
        f.write(ppm_header(width, height))
        f.write(np.ascontiguousarray(frame).tobytes())


def read_ppm_header(path: PathLike) -> Tuple[int, int, int, int]:
    """
    Parse a P6 header.

    Returns:
        (width, height, maxval, data_offset)
    """
    with open(path, "rb") as f:
        head = f.read(1024)

    fields = []
    pos = 0
    while len(fields) < 4:
        # Skip whitespace and comment lines between fields
        while pos < len(head) and head[pos:pos + 1].isspace():
            pos += 1
        if head[pos:pos + 1] == b"#":
            while pos < len(head) and head[pos:pos + 1] != b"\n":
                pos += 1
            continue
        start = pos
        while pos < len(head) and not head[pos:pos + 1].isspace():
            pos += 1
        if start == pos:
            raise ValueError(f"Truncated PPM header: {path}")
        fields.append(head[start:pos])

    if fields[0] != b"P6":
        raise ValueError(f"Not a binary PPM file: {path}")
    width, height, maxval = (int(x) for x in fields[1:])
    # Exactly one whitespace byte separates the header from pixel data
    return width, height, maxval, pos + 1


def read_ppm(path: PathLike) -> np.ndarray:
    width, height, _, offset = read_ppm_header(path)
    data = Path(path).read_bytes()[offset:offset + width * height * 3]
    return np.frombuffer(data, dtype=np.uint8).reshape(height, width, 3)


def render_frame_file(config: PipelineConfig, index: int,
                      renderer: Optional[NetherRenderer] = None) -> Path:
    """Render frame ``index`` and write it to its fixed path in the output directory."""
    path = config.frame_path(index)
    frame = render_frame(config, config.frame_time(index), renderer)
    write_ppm(path, frame)
    return path


def is_complete_frame(config: PipelineConfig, path: PathLike) -> bool:
    """True when ``path`` already holds a full frame at the configured size."""
    try:
        return os.path.getsize(path) == expected_ppm_size(config.width, config.height)
    except OSError:
        return False


def save_preview(config: PipelineConfig, time: float, path: PathLike) -> Path:
    """Render one frame and save it in any format Pillow supports (PNG by default)."""
    frame = render_frame(config, time)
    Image.fromarray(frame).save(path)
    logger.info("Preview saved to %s", path)
    return Path(path)
