from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image

# 纹理像素格式标记（.img 头中的 format 字段）。本工具只读写 A8。
FORMAT_A8 = 0x08


@dataclass(frozen=True)
class GlyphMetadata:
    """写在文件名里的字形元数据（不含尺寸与图集位置）。"""

    char_code: int
    x_bearing: int
    y_bearing: int
    advance: int
    reserved4: int
    reserved5: int


@dataclass(frozen=True)
class GlyphRecord:
    """.dic 中的一条字形记录：身份、图集内位置与排版参数。"""

    char_code: int
    origin_x: int
    origin_y: int
    width: int
    height: int
    x_bearing: int
    y_bearing: int
    advance: int
    reserved4: int
    reserved5: int

    @classmethod
    def from_metadata(cls, meta: GlyphMetadata, width: int, height: int,
                      origin: tuple[int, int] = (0, 0)) -> "GlyphRecord":
        return cls(
            char_code=meta.char_code,
            origin_x=origin[0],
            origin_y=origin[1],
            width=width,
            height=height,
            x_bearing=meta.x_bearing,
            y_bearing=meta.y_bearing,
            advance=meta.advance,
            reserved4=meta.reserved4,
            reserved5=meta.reserved5,
        )

    @property
    def metadata(self) -> GlyphMetadata:
        return GlyphMetadata(
            char_code=self.char_code,
            x_bearing=self.x_bearing,
            y_bearing=self.y_bearing,
            advance=self.advance,
            reserved4=self.reserved4,
            reserved5=self.reserved5,
        )

    @property
    def box(self) -> tuple[int, int, int, int]:
        """PIL 风格的 (left, upper, right, lower)。"""
        return (self.origin_x, self.origin_y,
                self.origin_x + self.width, self.origin_y + self.height)


@dataclass
class Glyph:
    """一个独立的字形位图及其元数据；source 为其来源文件（若有）。"""

    metadata: GlyphMetadata
    bitmap: Image.Image
    source: Path | None = None

    @property
    def char_code(self) -> int:
        return self.metadata.char_code


@dataclass
class GlyphDictionary:
    records: list[GlyphRecord] = field(default_factory=list)
    reserved1: int = 0
    reserved2: int = 0


@dataclass
class AtlasImage:
    image: Image.Image
    format: int = FORMAT_A8

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


@dataclass
class PackedAtlas:
    atlas: AtlasImage
    records: list[GlyphRecord]
