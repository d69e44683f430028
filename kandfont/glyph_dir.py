"""字形目录：每个字形一张图片，文件名即元数据。"""

import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import DuplicateGlyphId, GlyphImageError, GlyphTooWide
from .models import Glyph, GlyphMetadata
from .naming import decode_path, file_name

MAX_SIZE = 0xFFFF


def list_glyph_files(input_dir: Path) -> list[tuple[GlyphMetadata, Path]]:
    """
    解析目录中所有字形文件名，按 char_code 升序返回。
    先解析全部文件名再读图片，重复的 char_code 在读取任何图片前就会报错。
    """
    by_char: dict[int, tuple[GlyphMetadata, Path]] = {}
    for path in sorted(Path(input_dir).iterdir()):
        if path.name.startswith(".") or not path.is_file():
            continue
        meta = decode_path(path)
        if meta.char_code in by_char:
            raise DuplicateGlyphId(meta.char_code, path, by_char[meta.char_code][1])
        by_char[meta.char_code] = (meta, path)
    return [by_char[code] for code in sorted(by_char)]


def load_glyph(meta: GlyphMetadata, path: Path) -> Glyph:
    try:
        with Image.open(path) as img:
            bitmap = img.convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        raise GlyphImageError(path, str(e)) from e
    if bitmap.width > MAX_SIZE or bitmap.height > MAX_SIZE:
        raise GlyphTooWide(meta.char_code, (0, 0), bitmap.size)
    return Glyph(metadata=meta, bitmap=bitmap, source=path)


def scan_glyph_dir(input_dir: str | Path) -> list[Glyph]:
    return [load_glyph(meta, path) for meta, path in list_glyph_files(Path(input_dir))]


def encode_glyph_files(glyphs: list[Glyph], output_dir: str | Path, ext: str = "png") -> dict[Path, bytes]:
    """把每个字形编码为图片字节，返回 {目标路径: 内容}；任何一个失败都不写文件。"""
    output_dir = Path(output_dir)
    fmt = Image.registered_extensions().get(f".{ext.lower()}")
    files = {}
    for glyph in glyphs:
        target = output_dir / file_name(glyph.metadata, ext)
        buf = io.BytesIO()
        try:
            glyph.bitmap.save(buf, format=fmt)
        except (OSError, ValueError, KeyError) as e:
            raise GlyphImageError(target, str(e)) from e
        files[target] = buf.getvalue()
    return files
