"""
.img 纹理（CTE）读写，仅支持 A8。

头部 0x80 字节（小端序）：b"\\x00cte", u32 format, u32 width, u32 height,
u32 reserved, u32 data_offset，其余补零。
像素按 8x8 tile 存储：tile 按行排列，tile 内部按 Morton（Z 序）排列，
所以宽高都必须是 8 的倍数。
"""

import struct
from pathlib import Path

from PIL import Image

from .errors import TextureFormatError
from .models import AtlasImage, FORMAT_A8

MAGIC = b"\x00cte"
HEADER = struct.Struct("<4s5I")
DATA_OFFSET = 0x80
TILE = 8

FORMAT_NAMES = {
    FORMAT_A8: "A8",
}


def _morton_table() -> list[tuple[int, int]]:
    """tile 内第 i 个字节对应的 (x, y)。x 取偶数位，y 取奇数位。"""
    table = []
    for i in range(TILE * TILE):
        x = (i & 1) | ((i >> 1) & 2) | ((i >> 2) & 4)
        y = ((i >> 1) & 1) | ((i >> 2) & 2) | ((i >> 3) & 4)
        table.append((x, y))
    return table


MORTON = _morton_table()


def _check_size(width: int, height: int) -> None:
    if width % TILE or height % TILE:
        raise TextureFormatError(f"texture size {width}x{height} is not a multiple of {TILE}")


def swizzle(linear: bytes, width: int, height: int) -> bytes:
    out = bytearray(width * height)
    pos = 0
    for tile_y in range(0, height, TILE):
        for tile_x in range(0, width, TILE):
            for x, y in MORTON:
                out[pos] = linear[(tile_y + y) * width + tile_x + x]
                pos += 1
    return bytes(out)


def unswizzle(tiled: bytes, width: int, height: int) -> bytes:
    out = bytearray(width * height)
    pos = 0
    for tile_y in range(0, height, TILE):
        for tile_x in range(0, width, TILE):
            for x, y in MORTON:
                out[(tile_y + y) * width + tile_x + x] = tiled[pos]
                pos += 1
    return bytes(out)


def encode_cte(atlas: AtlasImage) -> bytes:
    if atlas.format not in FORMAT_NAMES:
        raise TextureFormatError(f"unsupported pixel format 0x{atlas.format:02X}")
    width, height = atlas.size
    _check_size(width, height)

    if width * height == 0:
        alpha = b""
    else:
        image = atlas.image if atlas.image.mode == "RGBA" else atlas.image.convert("RGBA")
        alpha = image.getchannel("A").tobytes()

    header = HEADER.pack(MAGIC, atlas.format, width, height, 0, DATA_OFFSET)
    return header.ljust(DATA_OFFSET, b"\x00") + swizzle(alpha, width, height)


def decode_cte(data: bytes) -> AtlasImage:
    if len(data) < HEADER.size:
        raise TextureFormatError(f"truncated header ({len(data)} bytes)")
    magic, format_, width, height, _, data_offset = HEADER.unpack_from(data)
    if magic != MAGIC:
        raise TextureFormatError(f"bad magic {magic!r}, expected {MAGIC!r}")
    if format_ not in FORMAT_NAMES:
        raise TextureFormatError(f"unsupported pixel format 0x{format_:02X} (only A8 is handled)")
    _check_size(width, height)

    size = width * height
    pixels = data[data_offset:data_offset + size]
    if len(pixels) < size:
        raise TextureFormatError(f"truncated pixel data: need {size} bytes, got {len(pixels)}")

    if size == 0:
        return AtlasImage(image=Image.new("RGBA", (width, height)), format=format_)

    alpha = Image.frombytes("L", (width, height), unswizzle(pixels, width, height))
    zero = Image.new("L", (width, height), 0)
    image = Image.merge("RGBA", (zero, zero, zero, alpha))
    return AtlasImage(image=image, format=format_)


def read_texture(path: str | Path) -> AtlasImage:
    with open(path, "rb") as f:
        return decode_cte(f.read())
