from __future__ import annotations

import logging
import numbers
import struct
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from gifcreator.core.errors import InvalidInputShape
from gifcreator.core.frame_normalizer import FrameNormalizer
from gifcreator.core.gif_frame import (
    COLOR_TABLE_FLAG,
    COLOR_TABLE_SIZE_MASK,
    TRAILER,
    CanonicalFrame,
)

logger = logging.getLogger(__name__)

OUTPUT_SIGNATURE = b"GIF89a"
RESTORE_TO_BACKGROUND = 2
NO_TRANSPARENCY = -1
MAX_UINT16 = 0xFFFF


def graphics_control_block(
    delay: int, disposal_method: int, transparent_index: Optional[int] = None
) -> bytes:
    """Build the 8-byte graphics control extension preceding an image."""
    flag = 0 if transparent_index is None else 1
    return struct.pack(
        "<3sBHBB",
        b"!\xF9\x04",
        (disposal_method << 2) | flag,
        delay,
        transparent_index or 0,
        0,
    )


def loop_extension(loop: int) -> bytes:
    """NETSCAPE2.0 application extension carrying the loop count (0 = forever)."""
    return b"!\xFF\x0BNETSCAPE2.0\x03\x01" + struct.pack("<H", loop) + b"\x00"


@dataclass
class AssemblyState:
    loop: int = 0
    disposal_method: int = RESTORE_TO_BACKGROUND
    transparent_color: int = NO_TRANSPARENCY
    frame_emitted: bool = False
    output: bytearray = field(default_factory=lambda: bytearray(OUTPUT_SIGNATURE))


class GifAssembler:
    """
    Combine single-frame GIFs into one animated GIF89a stream.

    Frame 0 supplies the canvas, the global color table and the transparent
    color; later frames are re-encoded against it. Each ``create`` call works
    on a fresh :class:`AssemblyState`, so one instance can be reused
    sequentially but must not be shared by concurrent callers.
    """

    def __init__(self, normalizer: Optional[FrameNormalizer] = None) -> None:
        self.normalizer = normalizer or FrameNormalizer()
        self._result: Optional[bytes] = None

    def reset(self) -> None:
        self._result = None

    def get_result(self) -> Optional[bytes]:
        return self._result

    def create(
        self,
        frames: Sequence,
        durations: Optional[Sequence[int]] = None,
        loop: int = 0,
    ) -> bytes:
        """
        Build an animated GIF.

        Args:
            frames: Ordered frame sources (Pillow images, numpy arrays, file
                paths, URLs or image bytes).
            durations: Per-frame delay in hundredths of a second. Frames
                without an entry get 0.
            loop: Number of loops, 0 meaning forever. Negative values are
                clamped to 0.

        Returns:
            The GIF bytes, also available through :meth:`get_result`.
        """
        self.reset()
        delays = self._check_input_shape(frames, durations, loop)

        canonical = self.validate_frames(frames)
        state = AssemblyState(loop=_clamp_uint16(int(loop)))
        state.transparent_color = self._resolve_transparent_color(canonical[0])

        self._add_header(state, canonical[0])
        for frame in canonical:
            delay = delays[frame.index] if frame.index < len(delays) else 0
            self._add_frame(state, frame, canonical[0], _clamp_uint16(delay))
        state.output.append(TRAILER)

        self._result = bytes(state.output)
        logger.info("Assembled %d frame(s) into %d bytes", len(canonical), len(self._result))
        return self._result

    def validate_frames(self, frames: Sequence) -> List[CanonicalFrame]:
        """Normalize and validate every frame before anything is emitted."""
        canonical = []
        for i, frame in enumerate(frames):
            data = self.normalizer.normalize(frame, i)
            canonical.append(CanonicalFrame.from_bytes(i, data))
            logger.debug("Frame %d validated (%d bytes)", i, len(data))
        return canonical

    @staticmethod
    def _check_input_shape(frames, durations, loop) -> List[int]:
        if not isinstance(frames, (list, tuple)):
            raise InvalidInputShape("Input must be arrays for frames and durations.")
        if durations is None:
            durations = []
        if not isinstance(durations, (list, tuple)):
            raise InvalidInputShape("Input must be arrays for frames and durations.")
        if not frames:
            raise InvalidInputShape("At least one frame is required.")
        for i, delay in enumerate(durations):
            if isinstance(delay, bool) or not isinstance(delay, numbers.Integral):
                raise InvalidInputShape(f"Duration must be an integer, got {delay!r}.", i)
        if isinstance(loop, bool) or not isinstance(loop, numbers.Integral):
            raise InvalidInputShape(f"Loop count must be an integer, got {loop!r}.")
        return [int(delay) for delay in durations]

    @staticmethod
    def _resolve_transparent_color(first: CanonicalFrame) -> int:
        if first.transparent_index is None:
            return NO_TRANSPARENCY
        rgb = first.color_at(first.transparent_index)
        if rgb is None:
            logger.debug(
                "Transparent index %d lies outside the first frame's color table",
                first.transparent_index,
            )
            return NO_TRANSPARENCY
        return rgb

    def _add_header(self, state: AssemblyState, first: CanonicalFrame) -> None:
        state.output += first.logical_screen_descriptor
        if not first.has_color_table:
            logger.warning(
                "First frame has no global color table; writing no palette or loop extension"
            )
            return
        state.output += first.color_table
        state.output += loop_extension(state.loop)

    def _add_frame(
        self, state: AssemblyState, frame: CanonicalFrame, first: CanonicalFrame, delay: int
    ) -> None:
        transparent_index = None
        if state.transparent_color != NO_TRANSPARENCY and frame.active_color_table:
            transparent_index = frame.find_color(state.transparent_color)
        gce = graphics_control_block(delay, state.disposal_method, transparent_index)

        descriptor = bytearray(frame.image_descriptor)
        local_table = b""
        if frame.has_color_table and state.frame_emitted and not frame.has_own_local_table:
            if frame.color_table != first.color_table:
                packed = (descriptor[9] | COLOR_TABLE_FLAG) & (0xFF ^ COLOR_TABLE_SIZE_MASK)
                descriptor[9] = packed | frame.table_size_bits
                local_table = frame.color_table
                logger.debug("Frame %d keeps its own color table", frame.index)

        state.output += gce
        state.output += descriptor
        state.output += local_table
        state.output += frame.image_data
        state.frame_emitted = True


def _clamp_uint16(value: int) -> int:
    return max(0, min(value, MAX_UINT16))
