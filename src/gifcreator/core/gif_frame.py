"""Single-frame GIF byte streams with their block offsets precomputed."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from gifcreator.core.errors import AnimatedSourceUnsupported, NotAGif

GIF_SIGNATURES = (b"GIF87a", b"GIF89a")
HEADER_SIZE = 6
LSD_SIZE = 7
IMAGE_DESCRIPTOR_SIZE = 10

COLOR_TABLE_FLAG = 0x80
COLOR_TABLE_SIZE_MASK = 0x07

EXTENSION_INTRODUCER = 0x21  # "!"
IMAGE_SEPARATOR = 0x2C  # ","
TRAILER = 0x3B  # ";"
GRAPHICS_CONTROL_LABEL = 0xF9
NETSCAPE_ID = b"NETSCAPE"


def color_table_length(packed: int) -> int:
    """Number of bytes in the color table announced by a packed field."""
    return 3 * (2 << (packed & COLOR_TABLE_SIZE_MASK))


@dataclass(frozen=True)
class CanonicalFrame:
    """
    A validated single-image GIF.

    Build instances with :meth:`from_bytes`; the constructor trusts its
    offsets.
    """

    index: int
    data: bytes
    table_end: int
    descriptor_offset: int
    trailer_offset: int
    transparent_index: Optional[int] = None

    @property
    def packed(self) -> int:
        return self.data[HEADER_SIZE + 4]

    @property
    def has_color_table(self) -> bool:
        return bool(self.packed & COLOR_TABLE_FLAG)

    @property
    def table_size_bits(self) -> int:
        return self.packed & COLOR_TABLE_SIZE_MASK

    @property
    def logical_screen_descriptor(self) -> bytes:
        return self.data[HEADER_SIZE:HEADER_SIZE + LSD_SIZE]

    @property
    def color_table(self) -> bytes:
        """RGB triplets of the global color table (empty when absent)."""
        return self.data[HEADER_SIZE + LSD_SIZE:self.table_end]

    @property
    def image_descriptor(self) -> bytes:
        start = self.descriptor_offset
        return self.data[start:start + IMAGE_DESCRIPTOR_SIZE]

    @property
    def image_data(self) -> bytes:
        """Everything after the image descriptor up to the trailer."""
        return self.data[self.descriptor_offset + IMAGE_DESCRIPTOR_SIZE:self.trailer_offset]

    @property
    def has_own_local_table(self) -> bool:
        return bool(self.image_descriptor[9] & COLOR_TABLE_FLAG)

    @property
    def active_color_table(self) -> bytes:
        """The table the image is drawn with: its local table if it has one, else the global one."""
        if self.has_own_local_table:
            start = self.descriptor_offset + IMAGE_DESCRIPTOR_SIZE
            return self.data[start:start + color_table_length(self.image_descriptor[9])]
        return self.color_table

    def find_color(self, rgb: int) -> Optional[int]:
        """Return the first color table index holding ``rgb``, if any."""
        target = rgb.to_bytes(3, "big")
        table = self.active_color_table
        for i in range(len(table) // 3):
            if table[3 * i:3 * i + 3] == target:
                return i
        return None

    def color_at(self, index: int) -> Optional[int]:
        """Packed RGB value of a color table entry, or None if out of range."""
        table = self.active_color_table
        if index < 0 or 3 * index + 3 > len(table):
            return None
        r, g, b = table[3 * index:3 * index + 3]
        return (r << 16) | (g << 8) | b

    @classmethod
    def from_bytes(cls, index: int, data: bytes) -> CanonicalFrame:
        """
        Validate ``data`` and compute its block offsets.

        Raises:
            NotAGif: wrong signature or malformed block stream.
            AnimatedSourceUnsupported: the stream carries a NETSCAPE
                extension or more than one image.
        """
        data = bytes(data)
        if data[:HEADER_SIZE] not in GIF_SIGNATURES:
            raise NotAGif("Source is not a valid GIF image.", index)
        if len(data) < HEADER_SIZE + LSD_SIZE:
            raise NotAGif("GIF is too short to hold a logical screen descriptor.", index)

        packed = data[HEADER_SIZE + 4]
        table_end = HEADER_SIZE + LSD_SIZE
        if packed & COLOR_TABLE_FLAG:
            table_end += color_table_length(packed)
        if len(data) < table_end:
            raise NotAGif("GIF is too short to hold its global color table.", index)

        descriptor_offset, trailer_offset, transparent_index = _walk_blocks(index, data, table_end)
        return cls(
            index=index,
            data=data,
            table_end=table_end,
            descriptor_offset=descriptor_offset,
            trailer_offset=trailer_offset,
            transparent_index=transparent_index,
        )


def _skip_sub_blocks(index: int, data: bytes, pos: int) -> int:
    """Return the offset just past the zero-length block terminating a run of sub-blocks."""
    while True:
        if pos >= len(data):
            raise NotAGif("GIF block stream is truncated.", index)
        size = data[pos]
        pos += 1
        if size == 0:
            return pos
        pos += size


def _walk_blocks(index: int, data: bytes, pos: int):
    descriptor_offset: Optional[int] = None
    transparent_index: Optional[int] = None
    while True:
        if pos >= len(data):
            raise NotAGif("GIF block stream ends without a trailer.", index)
        introducer = data[pos]
        if introducer == TRAILER:
            break
        if introducer == EXTENSION_INTRODUCER:
            if data[pos + 3:pos + 11] == NETSCAPE_ID:
                raise AnimatedSourceUnsupported(
                    "Animated GIFs as source frames are not supported.", index
                )
            # Transparency written by the source encoder ahead of its image
            if (
                descriptor_offset is None
                and data[pos + 1:pos + 2] == bytes([GRAPHICS_CONTROL_LABEL])
                and pos + 6 < len(data)
                and data[pos + 3] & 0x01
            ):
                transparent_index = data[pos + 6]
            pos = _skip_sub_blocks(index, data, pos + 2)
        elif introducer == IMAGE_SEPARATOR:
            if descriptor_offset is not None:
                raise AnimatedSourceUnsupported(
                    "Source holds more than one image; animated GIFs are not supported.", index
                )
            if pos + IMAGE_DESCRIPTOR_SIZE >= len(data):
                raise NotAGif("GIF image descriptor is truncated.", index)
            descriptor_offset = pos
            flags = data[pos + 9]
            pos += IMAGE_DESCRIPTOR_SIZE
            if flags & COLOR_TABLE_FLAG:
                pos += color_table_length(flags)
            # LZW minimum code size precedes the data sub-blocks
            pos = _skip_sub_blocks(index, data, pos + 1)
        else:
            raise NotAGif(f"Unexpected block introducer 0x{introducer:02X} at offset {pos}.", index)

    if descriptor_offset is None:
        raise NotAGif("GIF contains no image.", index)
    return descriptor_offset, pos, transparent_index
