"""Exceptions raised while assembling an animated GIF."""
from __future__ import annotations

from typing import Optional


class GifCreatorError(Exception):
    """Base class for every assembly failure.

    ``frame_index`` identifies the offending input frame, or is ``None`` when
    the failure concerns the call as a whole (e.g. a malformed frame list).
    """

    def __init__(self, message: str, frame_index: Optional[int] = None) -> None:
        self.message = message
        self.frame_index = frame_index
        if frame_index is None:
            super().__init__(message)
        else:
            super().__init__(f"Frame {frame_index}: {message}")


class InvalidInputShape(GifCreatorError):
    pass


class UnsupportedFrameType(GifCreatorError):
    pass


class SourceReadFailure(GifCreatorError):
    pass


class DecodeFailure(GifCreatorError):
    pass


class NotAGif(GifCreatorError):
    pass


class AnimatedSourceUnsupported(GifCreatorError):
    pass
