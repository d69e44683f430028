import random

import pytest
from PIL import Image

from conftest import make_bitmap, make_glyph
from kandfont.atlas import PackState, pack_glyphs, place, round_up, slice_atlas
from kandfont.errors import GlyphTooWide, PlacementOutOfBounds
from kandfont.models import AtlasImage, Glyph, GlyphMetadata, GlyphRecord


def origins(packed):
    return [(r.origin_x, r.origin_y) for r in packed.records]


@pytest.mark.parametrize("value, expected", [(0, 0), (1, 8), (7, 8), (8, 8), (9, 16), (512, 512), (513, 520)])
def test_round_up(value, expected):
    assert round_up(value) == expected


def test_wrap_rule_example():
    # 10 + 500 = 510 < 512 仍在第一行；510 + 5 = 515 >= 512 换行
    glyphs = [make_glyph(1, 10, 20), make_glyph(2, 500, 20), make_glyph(3, 5, 5)]
    packed = pack_glyphs(glyphs)
    assert origins(packed) == [(0, 0), (10, 0), (0, 20)]
    assert packed.atlas.size == (512, 32)


def test_exact_fit_wraps():
    # 结束位置恰好等于 512 也会换行
    packed = pack_glyphs([make_glyph(1, 500, 8), make_glyph(2, 12, 8)])
    assert origins(packed) == [(0, 0), (0, 8)]
    assert packed.atlas.size == (512, 16)


def test_first_glyph_wider_than_nominal_width():
    packed = pack_glyphs([make_glyph(1, 601, 3), make_glyph(2, 4, 4)])
    assert origins(packed) == [(0, 0), (0, 3)]
    assert packed.atlas.size == (608, 8)


def test_row_starts_below_tallest_glyph():
    glyphs = [make_glyph(1, 200, 10), make_glyph(2, 200, 30), make_glyph(3, 200, 5), make_glyph(4, 10, 10)]
    packed = pack_glyphs(glyphs)
    assert origins(packed) == [(0, 0), (200, 0), (0, 30), (200, 30)]
    assert packed.atlas.size == (512, 40)


def test_empty_glyph_set():
    packed = pack_glyphs([])
    assert packed.records == []
    assert packed.atlas.size == (512, 0)


def test_no_overlap_and_inside_atlas():
    rng = random.Random(1234)
    glyphs = [make_glyph(code, rng.randint(1, 40), rng.randint(1, 40)) for code in range(32, 232)]
    packed = pack_glyphs(glyphs)
    width, height = packed.atlas.size
    assert width % 8 == 0 and height % 8 == 0

    boxes = [r.box for r in packed.records]
    for left, top, right, bottom in boxes:
        assert 0 <= left and right <= width
        assert 0 <= top and bottom <= height
    for i, a in enumerate(boxes):
        for b in boxes[i + 1:]:
            disjoint = a[2] <= b[0] or b[2] <= a[0] or a[3] <= b[1] or b[3] <= a[1]
            assert disjoint, (a, b)


def test_packing_is_deterministic():
    rng = random.Random(99)
    sizes = [(rng.randint(1, 64), rng.randint(1, 64)) for _ in range(80)]
    first = pack_glyphs([make_glyph(i, w, h) for i, (w, h) in enumerate(sizes)])
    second = pack_glyphs([make_glyph(i, w, h) for i, (w, h) in enumerate(sizes)])
    assert first.records == second.records
    assert first.atlas.size == second.atlas.size
    assert first.atlas.image.tobytes() == second.atlas.image.tobytes()


def test_pack_then_slice_restores_glyphs():
    glyphs = [
        make_glyph(0x41, 9, 14, x_bearing=-2, y_bearing=4, advance=11, reserved4=1, reserved5=65535),
        make_glyph(0x42, 300, 7),
        make_glyph(0x43, 250, 20, y_bearing=-7),
        make_glyph(0x3042, 1, 1),
    ]
    packed = pack_glyphs(glyphs)
    sliced = slice_atlas(packed.atlas, packed.records)
    assert len(sliced) == len(glyphs)
    for glyph, (record, bitmap) in zip(glyphs, sliced):
        assert record.metadata == glyph.metadata
        assert (record.width, record.height) == glyph.bitmap.size
        assert bitmap.mode == "RGBA"
        assert bitmap.tobytes() == glyph.bitmap.tobytes()


def test_pack_converts_la_glyphs():
    bitmap = make_bitmap(4, 3, mode="LA")
    meta = GlyphMetadata(65, 0, 0, 4, 10, 10)
    packed = pack_glyphs([Glyph(metadata=meta, bitmap=bitmap)])
    (_, out), = slice_atlas(packed.atlas, packed.records)
    assert out.getchannel("A").tobytes() == bitmap.getchannel("A").tobytes()


def test_sliced_bitmap_is_independent():
    packed = pack_glyphs([make_glyph(1, 4, 4)])
    (_, bitmap), = slice_atlas(packed.atlas, packed.records)
    bitmap.putpixel((0, 0), (1, 2, 3, 4))
    assert packed.atlas.image.getpixel((0, 0)) != (1, 2, 3, 4)


def test_glyph_too_wide():
    with pytest.raises(GlyphTooWide):
        place(PackState(), 1, 70000, 1)


def test_glyph_below_coordinate_range():
    state = PackState(pos_x=0, pos_y=65530, row_bottom=65530)
    with pytest.raises(GlyphTooWide) as excinfo:
        place(state, 7, 10, 10)
    assert excinfo.value.char_code == 7


def test_slice_out_of_bounds():
    atlas = AtlasImage(image=Image.new("RGBA", (512, 16)))
    record = GlyphRecord(char_code=65, origin_x=505, origin_y=0, width=10, height=8,
                         x_bearing=0, y_bearing=0, advance=10, reserved4=0, reserved5=0)
    with pytest.raises(PlacementOutOfBounds) as excinfo:
        slice_atlas(atlas, [record])
    assert excinfo.value.record is record
    assert excinfo.value.atlas_size == (512, 16)


def test_slice_empty_rectangle_gives_placeholder():
    atlas = AtlasImage(image=Image.new("RGBA", (512, 8), (0, 0, 0, 255)))
    record = GlyphRecord(char_code=32, origin_x=511, origin_y=8, width=0, height=0,
                         x_bearing=0, y_bearing=18, advance=5, reserved4=10, reserved5=10)
    (_, bitmap), = slice_atlas(atlas, [record])
    assert bitmap.size == (1, 1)
    assert bitmap.getpixel((0, 0)) == (0, 0, 0, 0)
