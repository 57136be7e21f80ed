from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from urllib.parse import urlparse

import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from gifcreator.core.errors import (
    AnimatedSourceUnsupported,
    DecodeFailure,
    SourceReadFailure,
    UnsupportedFrameType,
)
from gifcreator.core.gif_frame import GIF_SIGNATURES, HEADER_SIZE
from gifcreator.utils.image_utils import numpy_to_pil

logger = logging.getLogger(__name__)

DEFAULT_URL_TIMEOUT = 5.0


def is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class FrameNormalizer:
    """
    Turn any supported frame source into a single-frame GIF byte string.

    GIF bytes pass through untouched; every other source is decoded and
    re-encoded with Pillow.
    """

    def __init__(self, url_timeout: float = DEFAULT_URL_TIMEOUT) -> None:
        self.url_timeout = url_timeout

    def normalize(self, frame, index: int) -> bytes:
        if isinstance(frame, Image.Image):
            return self.encode_image(frame, index)
        if isinstance(frame, np.ndarray):
            try:
                image = numpy_to_pil(frame)
            except (ValueError, TypeError) as e:
                raise DecodeFailure(f"Failed to create image from array: {e}", index) from e
            return self.encode_image(image, index)
        if isinstance(frame, (bytes, bytearray, memoryview)):
            return self.normalize_bytes(bytes(frame), index)
        if isinstance(frame, Path):
            return self.normalize_bytes(self.read_file(frame, index), index)
        if isinstance(frame, str):
            if os.path.isfile(frame):
                return self.normalize_bytes(self.read_file(frame, index), index)
            if is_url(frame):
                return self.normalize_bytes(self.fetch_url(frame, index), index)
        raise UnsupportedFrameType(
            "Frame must be an image, array, valid file/URL path, or image bytes.", index
        )

    def normalize_bytes(self, data: bytes, index: int) -> bytes:
        if data[:HEADER_SIZE] in GIF_SIGNATURES:
            return data
        try:
            with Image.open(io.BytesIO(data)) as image:
                return self.encode_image(image, index)
        except UnidentifiedImageError as e:
            raise DecodeFailure("Failed to create image from string.", index) from e

    def encode_image(self, image: Image.Image, index: int) -> bytes:
        if getattr(image, "n_frames", 1) > 1:
            raise AnimatedSourceUnsupported(
                "Animated images as source frames are not supported.", index
            )
        try:
            image.load()
            frame = image.copy()
            # Drop comments, loop counts and durations carried over from the source
            frame.info = {k: v for k, v in image.info.items() if k == "transparency"}
            buffer = io.BytesIO()
            frame.save(buffer, format="GIF")
        except (OSError, ValueError) as e:
            raise DecodeFailure(f"Failed to encode frame as GIF: {e}", index) from e
        logger.debug("Frame %d encoded from %s image (%dx%d)", index, image.mode, *image.size)
        return buffer.getvalue()

    def read_file(self, path, index: int) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise SourceReadFailure(
                f"Failed to read frame data from source. Path: {path}", index
            ) from e

    def fetch_url(self, url: str, index: int) -> bytes:
        try:
            response = requests.get(url, timeout=self.url_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SourceReadFailure(
                f"Failed to read frame data from source. URL: {url}", index
            ) from e
        logger.debug("Frame %d fetched from %s (%d bytes)", index, url, len(response.content))
        return response.content
