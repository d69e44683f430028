"""
.dic 字形字典（KAND）读写。

小端序：
  头部   4s 魔数 b"KAND", u16 reserved1, u16 reserved2, u32 字形数
  记录   每条 20 字节：char, start_x, start_y, width, height,
         x_bearing(i16), y_bearing(i16), advance, reserved4, reserved5
"""

import struct
from pathlib import Path
from typing import BinaryIO

from .errors import DictionaryFormatError
from .models import GlyphDictionary, GlyphRecord

MAGIC = b"KAND"
HEADER = struct.Struct("<4sHHI")
RECORD = struct.Struct("<HHHHHhhHHH")


def read_kand(f: BinaryIO) -> GlyphDictionary:
    head = f.read(HEADER.size)
    if len(head) < HEADER.size:
        raise DictionaryFormatError(f"truncated header ({len(head)} of {HEADER.size} bytes)")
    magic, reserved1, reserved2, count = HEADER.unpack(head)
    if magic != MAGIC:
        raise DictionaryFormatError(f"bad magic {magic!r}, expected {MAGIC!r}")

    table = f.read(RECORD.size * count)
    if len(table) < RECORD.size * count:
        raise DictionaryFormatError(
            f"truncated glyph table: {count} glyphs need {RECORD.size * count} bytes, got {len(table)}"
        )

    records = []
    seen = set()
    for fields in RECORD.iter_unpack(table):
        (char, start_x, start_y, width, height,
         x_bearing, y_bearing, advance, reserved4, reserved5) = fields
        if char in seen:
            raise DictionaryFormatError(f"character {char} appears more than once")
        seen.add(char)
        records.append(GlyphRecord(
            char_code=char,
            origin_x=start_x,
            origin_y=start_y,
            width=width,
            height=height,
            x_bearing=x_bearing,
            y_bearing=y_bearing,
            advance=advance,
            reserved4=reserved4,
            reserved5=reserved5,
        ))
    return GlyphDictionary(records=records, reserved1=reserved1, reserved2=reserved2)


def kand_bytes(dictionary: GlyphDictionary) -> bytes:
    out = bytearray(HEADER.pack(MAGIC, dictionary.reserved1, dictionary.reserved2,
                                len(dictionary.records)))
    for r in dictionary.records:
        try:
            out += RECORD.pack(r.char_code, r.origin_x, r.origin_y, r.width, r.height,
                               r.x_bearing, r.y_bearing, r.advance, r.reserved4, r.reserved5)
        except struct.error as e:
            raise DictionaryFormatError(f"glyph {r.char_code} can't be stored: {e}") from None
    return bytes(out)


def read_dictionary(path: str | Path) -> GlyphDictionary:
    with open(path, "rb") as f:
        return read_kand(f)
