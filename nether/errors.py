"""
Nether Render - Error Taxonomy
Every failure the pipeline reports to the command line derives from NetherError.
"""

from typing import Optional


class NetherError(Exception):
    """Base class for all pipeline errors."""

    exit_status = 1
    label = "ERROR"


class ConfigurationError(NetherError, ValueError):
    """Invalid dimensions, timing or output names. Raised before any rendering."""

    exit_status = 2
    label = "CONFIG ERROR"


class InvalidOperation(NetherError, ArithmeticError):
    """Vector arithmetic with a missing operand or a zero divisor."""


class OutputDirectoryError(NetherError, OSError):
    """The output directory cannot be created or written."""

    exit_status = 3
    label = "IO ERROR"


class FrameWriteError(NetherError, OSError):
    """A single frame file could not be written."""

    exit_status = 3
    label = "IO ERROR"

    def __init__(self, index: int, path, cause: BaseException):
        self.index = index
        self.path = path
        super().__init__(f"Failed to write frame {index} to {path}: {cause}")


class RenderCancelled(NetherError, InterruptedError):
    """Cancellation was observed between frames.

    ``next_index`` is the first frame that was never started. Frames already
    on disk are left in place.
    """

    exit_status = 130
    label = "INTERRUPTED"

    def __init__(self, next_index: int, total_frames: int):
        self.next_index = next_index
        self.total_frames = total_frames
        super().__init__(
            f"Rendering interrupted before frame {next_index} of {total_frames}"
        )


class EncoderError(NetherError):
    """The encoder could not be started or exited with a non-zero status."""

    exit_status = 4
    label = "ENCODER ERROR"

    def __init__(self, message: str, exit_code: Optional[int] = None, output_tail: str = ""):
        self.exit_code = exit_code
        self.output_tail = output_tail
        super().__init__(message)
