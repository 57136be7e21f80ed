from __future__ import annotations

from typing import List, Optional

import numpy as np

from gifcreator.core.gif_assembler import GifAssembler
from gifcreator.utils.file_handler import FrameStackHandler


def fps_to_delay(fps: int) -> int:
    """Frame delay in hundredths of a second for a frame rate."""
    return round(100 / max(1, fps))


class GifGenerator:
    def __init__(self, fps: int = 10, loop: int = 0, assembler: Optional[GifAssembler] = None) -> None:
        self.frames: List[np.ndarray] = []
        self.fps = fps
        self.loop = loop
        self.assembler = assembler or GifAssembler()

    def generate_gif(self, image_stack: List[np.ndarray], output_path: str, fps: Optional[int] = None) -> str:
        delay = fps_to_delay(self.fps if fps is None else fps)
        data = self.assembler.create(list(image_stack), [delay] * len(image_stack), self.loop)
        return FrameStackHandler().write_gif(data, output_path)

    def add_frame(self, image: np.ndarray) -> None:
        self.frames.append(image)

    def save(self, output_path: str) -> str:
        """Write the frames collected with :meth:`add_frame`."""
        return self.generate_gif(self.frames, output_path)
