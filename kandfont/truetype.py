"""
从 TrueType/OpenType 字体导入字形：freetype-py 负责光栅化，
这里把结果转换为与 build 输入相同的 (元数据, LA 位图) 形式。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol

import freetype
from PIL import Image

from .config import DEFAULT_RESERVED
from .errors import FontLoadError, GlyphRasterError
from .models import Glyph, GlyphMetadata
from .naming import out_of_range_fields


@dataclass(frozen=True)
class GlyphMetrics:
    xmin: int
    ymin: int
    width: int
    height: int
    advance_width: float


class Rasterizer(Protocol):
    def rasterize(self, char: str, scale: int) -> tuple[GlyphMetrics, bytes]:
        ...


class FreetypeRasterizer:
    """
    ymin 为位图下边缘相对基线的高度（向上为正），与 xmin 一起描述位图包围盒。
    返回的亮度位图逐行紧密排列，共 width * height 字节。
    """

    def __init__(self, font_path: str | Path):
        self.path = Path(font_path)
        try:
            self.face = freetype.Face(str(self.path))
        except freetype.FT_Exception as e:
            raise FontLoadError(self.path, str(e)) from e

    def rasterize(self, char: str, scale: int) -> tuple[GlyphMetrics, bytes]:
        face = self.face
        try:
            # 固定尺寸的点阵字体不支持的像素高度也会在这里报错
            face.set_pixel_sizes(0, scale)
            index = face.get_char_index(ord(char))
            if index == 0:
                raise GlyphRasterError(char, f"no glyph in {self.path.name}")
            face.load_glyph(index, freetype.FT_LOAD_RENDER)
        except freetype.FT_Exception as e:
            raise GlyphRasterError(char, str(e)) from e

        slot = face.glyph
        bmp = slot.bitmap
        w, h = bmp.width, bmp.rows
        pitch = abs(bmp.pitch)
        buf = bmp.buffer

        pixels = bytearray()
        if bmp.pixel_mode == freetype.FT_PIXEL_MODE_MONO:
            # 点阵字体：每行 pitch 字节，1 bit 一个像素
            for y in range(h):
                row = buf[y * pitch:(y + 1) * pitch]
                for x in range(w):
                    bit = (row[x >> 3] >> (7 - (x & 7))) & 1
                    pixels.append(255 if bit else 0)
        else:
            for y in range(h):
                pixels += bytes(buf[y * pitch:y * pitch + w])

        metrics = GlyphMetrics(
            xmin=slot.bitmap_left,
            ymin=slot.bitmap_top - h,
            width=w,
            height=h,
            advance_width=slot.advance.x / 64,
        )
        return metrics, bytes(pixels)


def luminance_to_la(luminance: bytes, width: int, height: int) -> Image.Image:
    """亮度作为 alpha，配一个恒为 0 的亮度通道；空字形用 1x1 透明占位。"""
    if width == 0 or height == 0:
        return Image.new("LA", (1, 1), (0, 0))
    data = bytearray(width * height * 2)
    data[1::2] = luminance[:width * height]
    return Image.frombytes("LA", (width, height), bytes(data))


def outline_glyph(char: str, rasterizer: Rasterizer, scale: int,
                  reserved: tuple[int, int] = DEFAULT_RESERVED) -> Glyph:
    code = ord(char)
    if code > 0xFFFF:
        raise GlyphRasterError(char, "code point does not fit in 16 bits")

    metrics, luminance = rasterizer.rasterize(char, scale)
    if len(luminance) < metrics.width * metrics.height:
        raise GlyphRasterError(
            char, f"rasterizer returned {len(luminance)} bytes for a {metrics.width}x{metrics.height} glyph"
        )

    meta = GlyphMetadata(
        char_code=code,
        x_bearing=int(metrics.xmin),
        y_bearing=scale - metrics.height - int(metrics.ymin),
        advance=int(metrics.advance_width),
        reserved4=reserved[0],
        reserved5=reserved[1],
    )
    bad = out_of_range_fields(meta)
    if bad:
        raise GlyphRasterError(char, f"{', '.join(bad)} out of range at scale {scale}")

    bitmap = luminance_to_la(luminance, metrics.width, metrics.height)
    return Glyph(metadata=meta, bitmap=bitmap)


def import_glyphs(chars: Iterable[str], rasterizer: Rasterizer, scale: int,
                  reserved: tuple[int, int] = DEFAULT_RESERVED,
                  on_glyph=None) -> tuple[list[Glyph], list[GlyphRasterError]]:
    """
    逐字光栅化。单个字符失败只记录在返回的错误列表中，不影响其余字符。
    字符去重后按码位升序处理；on_glyph(char) 在每个字符开始前被调用。
    """
    glyphs = []
    failures = []
    for char in sorted(set(chars)):
        if on_glyph is not None:
            on_glyph(char)
        try:
            glyphs.append(outline_glyph(char, rasterizer, scale, reserved))
        except GlyphRasterError as e:
            failures.append(e)
    return glyphs, failures


def read_char_list(path: str | Path) -> list[str]:
    """读取 UTF-8 字符列表文件；BOM 与换行不算在内。"""
    text = Path(path).read_text(encoding="utf-8")
    text = text.replace("\ufeff", "")
    return sorted({ch for ch in text if ch not in "\r\n"})
