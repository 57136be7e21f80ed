from __future__ import annotations

from pathlib import Path
from typing import List

from gifcreator.core.frame_normalizer import is_url

IMAGE_SUFFIXES = (".gif", ".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff")


class FrameStackHandler:
    def __init__(self) -> None:
        self.files: List[str] = []

    def load_frame_stack(self, directory_or_files) -> List[str]:
        """Collect frame sources from a directory or an explicit list.

        Directories expand to their image files sorted by name. Items of an
        explicit list are kept in the given order; directories inside the list
        are expanded in place and URLs are kept as-is.
        """
        if not isinstance(directory_or_files, (list, tuple)):
            directory_or_files = [directory_or_files]
        paths: List[str] = []
        for p in directory_or_files:
            if is_url(str(p)):
                paths.append(str(p))
                continue
            base = Path(p)
            if base.is_dir():
                # Case-insensitive filter on image suffixes
                for child in sorted(base.iterdir()):
                    if child.is_file() and child.suffix.lower() in IMAGE_SUFFIXES:
                        paths.append(str(child))
            else:
                paths.append(str(p))
        self.files = paths
        return self.files

    def get_frame_count(self) -> int:
        return len(self.files)

    def write_gif(self, data: bytes, output_path) -> str:
        out = Path(output_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(data)
        return str(out)
