"""
字形文件名 <-> 元数据。

文件名主干由六个以 "_" 分隔的十进制整数组成：
  charid_xbearing_ybearing_advance_reserved4_reserved5
扩展名由调用方另行给出。
"""

import re
from pathlib import Path

from .errors import MalformedName
from .models import GlyphMetadata

SCHEMA_VERSION = 1
LAYOUT = "charid_xbearing_ybearing_advance_reserved4_reserved5.ext"

U16 = (0, 0xFFFF)
I16 = (-0x8000, 0x7FFF)

# (字段名, 取值范围)，顺序即文件名中的顺序
FIELDS = (
    ("char_code", U16),
    ("x_bearing", I16),
    ("y_bearing", I16),
    ("advance", U16),
    ("reserved4", U16),
    ("reserved5", U16),
)

_UNSIGNED = re.compile(r"\+?[0-9]+")
_SIGNED = re.compile(r"[+-]?[0-9]+")


def _parse_field(text: str, bounds: tuple[int, int]) -> int | None:
    low, high = bounds
    pattern = _SIGNED if low < 0 else _UNSIGNED
    if not pattern.fullmatch(text):
        return None
    value = int(text, 10)
    if not low <= value <= high:
        return None
    return value


def decode_stem(stem: str, path: str | Path | None = None) -> GlyphMetadata:
    """解析文件名主干；多余的字段被忽略。path 仅用于报错信息。"""
    where = path if path is not None else stem
    expected = f"{LAYOUT}, naming schema v{SCHEMA_VERSION}"
    tokens = stem.split("_")
    values = {}
    for i, (name, bounds) in enumerate(FIELDS):
        if i >= len(tokens):
            raise MalformedName(where, name, expected=expected)
        value = _parse_field(tokens[i], bounds)
        if value is None:
            raise MalformedName(where, name, tokens[i], expected)
        values[name] = value
    return GlyphMetadata(**values)


def decode_path(path: str | Path) -> GlyphMetadata:
    path = Path(path)
    return decode_stem(path.stem, path)


def encode_stem(meta: GlyphMetadata) -> str:
    return "_".join(str(getattr(meta, name)) for name, _ in FIELDS)


def file_name(meta: GlyphMetadata, ext: str) -> str:
    return f"{encode_stem(meta)}.{ext.lstrip('.')}"


def out_of_range_fields(meta: GlyphMetadata) -> list[str]:
    """返回超出取值范围的字段名（用于由字体等外部来源构造的元数据）。"""
    bad = []
    for name, (low, high) in FIELDS:
        if not low <= getattr(meta, name) <= high:
            bad.append(name)
    return bad
