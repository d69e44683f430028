"""
图集打包与切分。

打包：按给定顺序逐行贪心放置（名义宽度 512），超出则换行到已占用的最低处。
结果只取决于输入顺序，同样的输入总是得到同样的布局。
切分：按记录中的矩形从图集裁出每个字形，是打包的逆操作。
"""

from typing import NamedTuple

from PIL import Image

from .config import ATLAS_ALIGN, ATLAS_WIDTH
from .errors import GlyphTooWide, PlacementOutOfBounds
from .models import AtlasImage, FORMAT_A8, Glyph, GlyphRecord, PackedAtlas

MAX_COORD = 0xFFFF

ATLAS_MODE = "RGBA"


def round_up(value: int, align: int = ATLAS_ALIGN) -> int:
    """向上取整到 align 的倍数，0 仍为 0。"""
    if value <= 0:
        return 0
    return ((value - 1) // align + 1) * align


class PackState(NamedTuple):
    pos_x: int = 0
    pos_y: int = 0
    row_bottom: int = 0
    max_width: int = 0


def place(state: PackState, char_code: int, width: int, height: int,
          atlas_width: int = ATLAS_WIDTH) -> tuple[PackState, tuple[int, int]]:
    """放置一个字形，返回新的状态与字形左上角位置。"""
    pos_x, pos_y = state.pos_x, state.pos_y
    if pos_x + width >= atlas_width:
        pos_x = 0
        pos_y = state.row_bottom
    if pos_x + width > MAX_COORD or pos_y + height > MAX_COORD:
        raise GlyphTooWide(char_code, (pos_x, pos_y), (width, height))
    new_state = PackState(
        pos_x=pos_x + width,
        pos_y=pos_y,
        row_bottom=max(state.row_bottom, pos_y + height),
        max_width=max(state.max_width, width),
    )
    return new_state, (pos_x, pos_y)


def layout(glyphs: list[Glyph], atlas_width: int = ATLAS_WIDTH) -> tuple[PackState, list[GlyphRecord]]:
    state = PackState()
    records = []
    for glyph in glyphs:
        width, height = glyph.bitmap.size
        state, origin = place(state, glyph.char_code, width, height, atlas_width)
        records.append(GlyphRecord.from_metadata(glyph.metadata, width, height, origin))
    return state, records


def atlas_size(state: PackState, atlas_width: int = ATLAS_WIDTH) -> tuple[int, int]:
    return round_up(max(atlas_width, state.max_width)), round_up(state.row_bottom)


def pack_glyphs(glyphs: list[Glyph], atlas_width: int = ATLAS_WIDTH) -> PackedAtlas:
    """
    把按 char_code 升序排好的字形打包进一张图集。
    重复 char_code 的检查在扫描目录时已经完成，这里不再处理。
    """
    state, records = layout(glyphs, atlas_width)
    width, height = atlas_size(state, atlas_width)

    image = Image.new(ATLAS_MODE, (width, height), (0, 0, 0, 0))
    for glyph, record in zip(glyphs, records):
        bitmap = glyph.bitmap
        if bitmap.mode != ATLAS_MODE:
            bitmap = bitmap.convert(ATLAS_MODE)
        # 不带 mask 的 paste 是逐像素覆盖，不做混合
        image.paste(bitmap, (record.origin_x, record.origin_y))

    return PackedAtlas(atlas=AtlasImage(image=image, format=FORMAT_A8), records=records)


def _crop(atlas: AtlasImage, record: GlyphRecord) -> Image.Image:
    # 空矩形（如空格）无法保存为图片，换成 1x1 透明占位，与导入时的处理一致
    if record.width == 0 or record.height == 0:
        return Image.new(atlas.image.mode, (1, 1))
    return atlas.image.crop(record.box)


def slice_atlas(atlas: AtlasImage, records: list[GlyphRecord]) -> list[tuple[GlyphRecord, Image.Image]]:
    """按记录裁出每个字形。先检查全部矩形，任何一个越界都不返回结果。"""
    width, height = atlas.size
    for record in records:
        if record.origin_x + record.width > width or record.origin_y + record.height > height:
            raise PlacementOutOfBounds(record, (width, height))
    return [(record, _crop(atlas, record)) for record in records]
