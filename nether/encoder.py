"""
Nether Render - Encoder Bridge
Runs FFmpeg over the finished frame sequence and checks the result.

FFmpeg's merged stdout/stderr is drained on its own thread while the caller
waits for the process, so a full pipe buffer can never stall the encode.
"""

import os
import sys
import shutil
import logging
import subprocess
import threading
from collections import deque
from pathlib import Path
from typing import Dict, List, Optional, TextIO

import cv2

from nether.config import PipelineConfig
from nether.errors import EncoderError

logger = logging.getLogger(__name__)

VIDEO_CODEC = "libx264"
PIXEL_FORMAT = "yuv420p"

# Lines of encoder output kept for the error message
OUTPUT_TAIL_LINES = 10

FFMPEG_ENV_VAR = "NETHER_FFMPEG"


def _get_ffmpeg_path() -> str:
    """Find FFmpeg executable: env override, bundled copy, then system PATH."""
    override = os.environ.get(FFMPEG_ENV_VAR, "").strip()
    if override:
        return override

    # 1. Bundled copy in ./ffmpeg next to the project or the frozen exe
    search_bases = [os.path.dirname(os.path.dirname(os.path.abspath(__file__))), os.getcwd()]
    if getattr(sys, 'frozen', False):
        search_bases.insert(0, os.path.dirname(sys.executable))
    exe_name = "ffmpeg.exe" if os.name == "nt" else "ffmpeg"
    for base in search_bases:
        bundled = os.path.join(base, "ffmpeg", exe_name)
        if os.path.isfile(bundled) and os.access(bundled, os.X_OK):
            return bundled

    # 2. System PATH
    found = shutil.which("ffmpeg")
    if found:
        return found

    # 3. Last resort: bare name, let the OS resolve it at launch
    return "ffmpeg"


def check_ffmpeg() -> bool:
    """Check if FFmpeg is available (override, bundled or in PATH)."""
    path = _get_ffmpeg_path()
    return os.path.isfile(path) or shutil.which(path) is not None


def build_ffmpeg_command(config: PipelineConfig, ffmpeg_path: Optional[str] = None) -> List[str]:
    return [
        ffmpeg_path or _get_ffmpeg_path(),
        "-y",
        "-framerate", str(config.fps),
        "-i", config.input_pattern,
        "-c:v", VIDEO_CODEC,
        "-pix_fmt", PIXEL_FORMAT,
        config.output_file,
    ]


def encode_video(config: PipelineConfig, ffmpeg_path: Optional[str] = None,
                 stream: Optional[TextIO] = None) -> Path:
    """
    Encode the frame sequence in ``config.output_dir`` into ``config.output_file``.

    Every line FFmpeg prints is echoed to ``stream`` (stdout by default) with
    an ``[FFMPEG]`` prefix.

    Raises:
        EncoderError: FFmpeg could not be started (exit_code is None) or
            exited with a non-zero status (exit_code holds it).
    """
    stream = stream or sys.stdout
    ff_cmd = build_ffmpeg_command(config, ffmpeg_path)
    logger.info("Starting ffmpeg to create video: %s", config.output_file)
    logger.debug("FFmpeg cmd: %s", " ".join(ff_cmd))

    try:
        proc = subprocess.Popen(
            ff_cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
        )
    except OSError as e:
        raise EncoderError(
            "Failed to start ffmpeg. Ensure ffmpeg is installed and available in your PATH "
            f"(or set {FFMPEG_ENV_VAR}). Original error: {e}"
        ) from e

    tail = deque(maxlen=OUTPUT_TAIL_LINES)

    def _drain_output():
        for raw in iter(proc.stdout.readline, b''):
            line = raw.decode('utf-8', errors='replace').rstrip()
            tail.append(line)
            print(f"[FFMPEG] {line}", file=stream, flush=True)

    drain_thread = threading.Thread(target=_drain_output, name="ffmpeg-drain", daemon=True)
    drain_thread.start()

    try:
        returncode = proc.wait()
        drain_thread.join()
    except BaseException:
        proc.kill()
        proc.wait()
        raise
    finally:
        proc.stdout.close()

    if returncode != 0:
        raise EncoderError(
            f"ffmpeg exited with non-zero code: {returncode}. "
            "Check the ffmpeg logs above for details.",
            exit_code=returncode,
            output_tail="\n".join(tail),
        )

    logger.info("ffmpeg finished successfully.")
    return Path(config.output_file)


# ═══════════════════════════════════════════════════════════════════════════════
# OUTPUT CHECK
# ═══════════════════════════════════════════════════════════════════════════════

def probe_video(video_path) -> Dict[str, float]:
    """
    Read basic stream properties of an encoded video.

    Returns:
        dict with frames, fps, width, height
    """
    cap = cv2.VideoCapture(str(video_path))
    if not cap.isOpened():
        raise ValueError(f"Cannot open video file: {video_path}")
    try:
        return {
            "frames": int(cap.get(cv2.CAP_PROP_FRAME_COUNT)),
            "fps": float(cap.get(cv2.CAP_PROP_FPS)),
            "width": int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            "height": int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        }
    finally:
        cap.release()
