"""
Nether Render - Command Line Application
Renders the procedural nether animation to PPM frames and encodes them with FFmpeg.

Usage:
    python app.py                          # 320x160, 60 FPS, 4s -> nether.mp4
    python app.py --width 640 --height 320 --workers 4
    python app.py --frame 120 --preview frame.png
    python app.py --resume --no-encode
"""

import argparse
import logging
import sys
from typing import List, Optional

from nether import __version__
from nether.config import (
    DEFAULT_DURATION, DEFAULT_FPS, DEFAULT_HEIGHT, DEFAULT_OUTPUT_DIR,
    DEFAULT_OUTPUT_FILE, DEFAULT_WIDTH, PipelineConfig, default_workers,
    prepare_output_directory,
)
from nether.encoder import check_ffmpeg, encode_video, probe_video
from nether.errors import NetherError
from nether.renderer import save_preview
from nether.sequencer import FrameSequencer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nether-render",
        description="Render the procedural nether animation and encode it with FFmpeg",
    )
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH, help="Frame width in pixels")
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT, help="Frame height in pixels")
    parser.add_argument("--fps", type=int, default=DEFAULT_FPS, help="Frames per second")
    parser.add_argument("--duration", type=float, default=DEFAULT_DURATION,
                        help="Duration in seconds")
    parser.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR,
                        help="Directory for the PPM frame sequence")
    parser.add_argument("--output", default=DEFAULT_OUTPUT_FILE, help="Output video path")
    parser.add_argument("--workers", type=int, default=default_workers(),
                        help="Number of frame render threads")
    parser.add_argument("--resume", action="store_true",
                        help="Keep complete frames already in the output directory")
    parser.add_argument("--no-encode", action="store_true",
                        help="Stop after rendering frames, do not run FFmpeg")
    parser.add_argument("--frame", type=int, default=None,
                        help="Preview a single frame number and exit")
    parser.add_argument("--preview", default=None,
                        help="Preview image path (default: preview-frame-NNNN.png)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def run(config: PipelineConfig, encode: bool = True):
    """Render every frame, then (after the barrier) hand the sequence to FFmpeg."""
    prepare_output_directory(config.output_dir)

    if encode and not check_ffmpeg():
        logger.warning("FFmpeg was not found; encoding will likely fail")

    sequencer = FrameSequencer(config)
    sequencer.render_all()

    if not encode:
        print(f"[OK] All frames rendered to: {config.output_dir}")
        return

    output = encode_video(config)
    try:
        info = probe_video(output)
        logger.info(
            "Video check: %d frames, %.2f fps, %dx%d",
            info["frames"], info["fps"], info["width"], info["height"],
        )
    except ValueError as e:
        logger.warning("Could not inspect encoded video: %s", e)

    print(f"[OK] All frames rendered and video created: {output}")


def preview(config: PipelineConfig, frame: int, path: Optional[str]):
    if not 0 <= frame < config.total_frames:
        logger.warning("Frame %d is outside 0..%d, rendering it anyway", frame, config.total_frames - 1)
    path = path or f"preview-frame-{frame:04d}.png"
    save_preview(config, config.frame_time(frame), path)
    print(f"[OK] Preview of frame {frame} saved to: {path}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = PipelineConfig(
            width=args.width,
            height=args.height,
            fps=args.fps,
            duration=args.duration,
            output_dir=args.output_dir,
            output_file=args.output,
            workers=args.workers,
            resume=args.resume,
        )
        if args.frame is not None:
            preview(config, args.frame, args.preview)
        else:
            run(config, encode=not args.no_encode)
    except NetherError as e:
        print(f"[{e.label}] {e}", file=sys.stderr)
        return e.exit_status
    except OSError as e:
        print(f"[IO ERROR] {e}", file=sys.stderr)
        return 3
    except KeyboardInterrupt:
        print("[INTERRUPTED] Rendering or encoding was interrupted.", file=sys.stderr)
        return 130
    except Exception as e:
        logger.exception("Unexpected unrecoverable error: %s", e)
        print(f"[FATAL] Unexpected unrecoverable error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
