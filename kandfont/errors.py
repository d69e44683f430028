"""kandfont 的错误类型。所有错误都继承 KandFontError，由 CLI 统一报告后以非零状态退出。"""

from pathlib import Path


class KandFontError(Exception):
    pass


class ConfigError(KandFontError):
    pass


class MalformedName(KandFontError):
    """文件名不符合 charid_xbearing_ybearing_advance_reserved4_reserved5.ext 格式。"""

    def __init__(self, path: str | Path, field: str, text: str | None = None,
                 expected: str = "charid_xbearing_ybearing_advance_reserved4_reserved5.ext"):
        self.path = Path(path)
        self.field = field
        self.text = text
        self.expected = expected
        if text is None:
            detail = f"missing field {field!r}"
        else:
            detail = f"field {field!r} has invalid value {text!r}"
        super().__init__(
            f"{self.path.name}: {detail} "
            f"(expected \"{expected}\")"
        )


class DuplicateGlyphId(KandFontError):
    def __init__(self, char_code: int, path: str | Path, other: str | Path):
        self.char_code = char_code
        self.path = Path(path)
        self.other = Path(other)
        super().__init__(
            f"{self.path} represents character {char_code} which is also used by {self.other}"
        )


class GlyphImageError(KandFontError):
    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"can't read the glyph image {self.path}: {reason}")


class PlacementOutOfBounds(KandFontError):
    def __init__(self, record, atlas_size: tuple[int, int]):
        self.record = record
        self.atlas_size = atlas_size
        super().__init__(
            f"glyph {record.char_code} at ({record.origin_x}, {record.origin_y}) "
            f"size {record.width}x{record.height} does not fit the "
            f"{atlas_size[0]}x{atlas_size[1]} atlas"
        )


class GlyphTooWide(KandFontError):
    def __init__(self, char_code: int, position: tuple[int, int], size: tuple[int, int]):
        self.char_code = char_code
        self.position = position
        self.size = size
        super().__init__(
            f"glyph {char_code} of size {size[0]}x{size[1]} can't be placed at "
            f"{position}: placement exceeds the 16-bit coordinate range"
        )


class DictionaryFormatError(KandFontError):
    pass


class TextureFormatError(KandFontError):
    pass


class FontLoadError(KandFontError):
    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"can't load the font {self.path}: {reason}")


class GlyphRasterError(KandFontError):
    """单个字符光栅化失败。导入时逐字报告，不中断整批。"""

    def __init__(self, char: str, reason: str):
        self.char = char
        self.reason = reason
        super().__init__(f"can't rasterize {char!r} (U+{ord(char):04X}): {reason}")
