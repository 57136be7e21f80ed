import struct

import pytest


def _lzw_encode(pixels, min_code_size):
    """Encode indices with a clear code before each pixel so every code keeps the same width."""
    clear = 1 << min_code_size
    end = clear + 1
    width = min_code_size + 1
    codes = []
    for p in pixels:
        codes.extend((clear, p))
    codes.append(end)

    out = bytearray()
    bits = 0
    nbits = 0
    for code in codes:
        bits |= code << nbits
        nbits += width
        while nbits >= 8:
            out.append(bits & 0xFF)
            bits >>= 8
            nbits -= 8
    if nbits:
        out.append(bits & 0xFF)
    return bytes(out)


def _sub_blocks(payload):
    out = bytearray()
    for i in range(0, len(payload), 255):
        chunk = payload[i:i + 255]
        out.append(len(chunk))
        out += chunk
    out.append(0)
    return bytes(out)


def _table_bits(color_count):
    bits = 0
    while (2 << bits) < color_count:
        bits += 1
    return bits


def build_gif(
    palette,
    pixels,
    width,
    height,
    transparent_index=None,
    version=b"GIF89a",
    global_table=True,
    pre_image_blocks=b"",
    post_image_blocks=b"",
    extra_images=0,
):
    """Build a single-image GIF byte stream with an exact color table."""
    bits = _table_bits(len(palette))
    table = bytearray()
    for r, g, b in palette:
        table += bytes((r, g, b))
    table += b"\x00" * (3 * (2 << bits) - len(table))

    data = bytearray(version)
    packed = (0x80 | bits) if global_table else 0
    data += struct.pack("<HHBBB", width, height, packed, 0, 0)
    if global_table:
        data += table
    data += pre_image_blocks
    if transparent_index is not None:
        data += b"!\xF9\x04\x01\x00\x00" + bytes([transparent_index]) + b"\x00"

    min_code_size = max(2, bits + 1)
    image = bytearray(b",")
    image += struct.pack("<HHHHB", 0, 0, width, height, 0 if global_table else (0x80 | bits))
    if not global_table:
        image += table
    image.append(min_code_size)
    image += _sub_blocks(_lzw_encode(pixels, min_code_size))
    for _ in range(1 + extra_images):
        data += image
    data += post_image_blocks
    data += b";"
    return bytes(data)


@pytest.fixture
def gif_factory():
    """Factory building hand-made single-frame GIFs."""
    return build_gif


PALETTE_A = [(0, 0, 0), (255, 0, 0), (0, 255, 0), (0, 0, 255)]
PALETTE_B = [(255, 255, 255), (10, 20, 30), (0, 255, 0), (0, 0, 255)]
PIXELS_2X2 = [0, 1, 2, 3]


@pytest.fixture
def frame_a():
    return build_gif(PALETTE_A, PIXELS_2X2, 2, 2)


@pytest.fixture
def frame_a_copy():
    return build_gif(PALETTE_A, [3, 2, 1, 0], 2, 2)


@pytest.fixture
def frame_b():
    return build_gif(PALETTE_B, PIXELS_2X2, 2, 2)
