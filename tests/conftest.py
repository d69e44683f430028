import pytest
from PIL import Image

from kandfont.models import Glyph, GlyphMetadata

ENV_NAMES = ("KANDFONT_SCALE", "KANDFONT_IMAGE_EXT", "KANDFONT_RESERVED")


def make_bitmap(width, height, seed=0, mode="RGBA"):
    channels = len(mode)
    data = bytes((i * 7 + seed * 13) % 256 for i in range(width * height * channels))
    return Image.frombytes(mode, (width, height), data)


def make_alpha_bitmap(width, height, seed=0):
    """RGB 为 0、只有 alpha 有内容的位图：经过 A8 纹理后仍能逐字节还原。"""
    alpha = bytes((i * 11 + seed * 5) % 256 for i in range(width * height))
    zero = Image.new("L", (width, height), 0)
    return Image.merge("RGBA", (zero, zero, zero, Image.frombytes("L", (width, height), alpha)))


def make_glyph(char_code, width, height, seed=None, **fields):
    meta = GlyphMetadata(
        char_code=char_code,
        x_bearing=fields.get("x_bearing", 0),
        y_bearing=fields.get("y_bearing", 0),
        advance=fields.get("advance", width),
        reserved4=fields.get("reserved4", 10),
        reserved5=fields.get("reserved5", 10),
    )
    return Glyph(metadata=meta, bitmap=make_bitmap(width, height, seed if seed is not None else char_code))


@pytest.fixture
def clean_env(monkeypatch):
    # setenv 再 delenv，保证测试结束后 load_dotenv 写入的值也会被撤销
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch
