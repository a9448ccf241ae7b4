"""
Nether Render - Frame Sequencer
Turns the configured duration and frame rate into an ordered batch of frame
files, rendered by a pool of worker threads.

Each frame is a pure function of its index, written to its own path, so the
workers share nothing and need no locking. Cancellation is cooperative and
checked before every frame is started, never mid-frame.
"""

import time
import logging
import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, List, Optional

from nether.config import PipelineConfig
from nether.errors import FrameWriteError, RenderCancelled
from nether.renderer import NetherRenderer, is_complete_frame, render_frame_file

logger = logging.getLogger(__name__)

# Log every Nth frame index (plus the final frame)
PROGRESS_EVERY = 10

ProgressCallback = Callable[[int, int, int], None]


class FrameSequencer:
    """
    Renders every frame of a PipelineConfig to disk.
    Handles the worker pool, progress callbacks and cancellation.
    """

    def __init__(self, config: PipelineConfig, stop_event: Optional[threading.Event] = None):
        self.config = config
        self._stop_event = stop_event or threading.Event()
        self._generating = False

    @property
    def is_generating(self) -> bool:
        return self._generating

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def stop(self):
        """Signal the sequencer to stop starting new frames."""
        self._stop_event.set()

    def _render_one(self, renderer: NetherRenderer, index: int) -> Path:
        path = self.config.frame_path(index)
        if self.config.resume and is_complete_frame(self.config, path):
            logger.debug("Frame %d already on disk, skipping", index)
            return path
        try:
            return render_frame_file(self.config, index, renderer)
        except OSError as e:
            raise FrameWriteError(index, path.resolve(), e) from e

    def render_all(self, progress_callback: Optional[ProgressCallback] = None) -> List[Path]:
        """
        Render all frames and return their paths in index order.

        Returns only once every frame is on disk; that return is the barrier
        before encoding.

        Args:
            progress_callback: Called with (completed, total, frame_index)
                after each frame finishes.

        Raises:
            RenderCancelled: stop() was called; carries the first frame that
                was never started.
            FrameWriteError: a frame could not be written; no further frames
                are started.
        """
        cfg = self.config
        total = cfg.total_frames
        workers = max(1, min(cfg.workers, total or 1))
        logger.info(
            "Rendering %d frames at %dx%d @ %d FPS using %d workers",
            total, cfg.width, cfg.height, cfg.fps, workers,
        )

        renderer = NetherRenderer(cfg.width, cfg.height)
        paths: List[Optional[Path]] = [None] * total
        error: Optional[FrameWriteError] = None
        next_index = 0
        completed = 0
        render_start = time.time()

        self._generating = True
        try:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="nether-frame") as pool:
                pending = {}
                while True:
                    # Start frames in index order while there is a free worker
                    while (next_index < total and len(pending) < workers
                           and error is None and not self._stop_event.is_set()):
                        future = pool.submit(self._render_one, renderer, next_index)
                        pending[future] = next_index
                        next_index += 1

                    if not pending:
                        break

                    try:
                        done, _ = wait(pending, return_when=FIRST_COMPLETED)
                    except KeyboardInterrupt:
                        logger.warning("Interrupt received, finishing frames in flight")
                        self.stop()
                        continue

                    for future in sorted(done, key=pending.get):
                        index = pending.pop(future)
                        try:
                            paths[index] = future.result()
                        except FrameWriteError as e:
                            if error is None or e.index < error.index:
                                error = e
                            continue

                        completed += 1
                        if index % PROGRESS_EVERY == 0 or index == total - 1:
                            elapsed = time.time() - render_start
                            fps_actual = completed / elapsed if elapsed > 0 else 0.0
                            logger.info(
                                "Rendered frame %d/%d (%d done, %.1f fps)",
                                index, total - 1, completed, fps_actual,
                            )
                        if progress_callback:
                            progress_callback(completed, total, index)
        finally:
            self._generating = False

        if error is not None:
            raise error
        if next_index < total:
            raise RenderCancelled(next_index, total)

        logger.info("All %d frames rendered in %.1fs", total, time.time() - render_start)
        return paths


def render_all(config: PipelineConfig,
               progress_callback: Optional[ProgressCallback] = None,
               stop_event: Optional[threading.Event] = None) -> List[Path]:
    """Render every frame of ``config``; see FrameSequencer.render_all()."""
    return FrameSequencer(config, stop_event).render_all(progress_callback)
