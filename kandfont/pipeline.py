"""
extract / build / import 三个操作的流程编排。
每个操作都先在内存中完成全部解析、打包或光栅化，再写任何输出文件。
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import click

from .atlas import pack_glyphs, slice_atlas
from .config import DEFAULT_RESERVED
from .cte import encode_cte, read_texture
from .errors import GlyphRasterError
from .glyph_dir import encode_glyph_files, scan_glyph_dir
from .kand import kand_bytes, read_dictionary
from .models import Glyph, GlyphDictionary, PackedAtlas
from .truetype import FreetypeRasterizer, Rasterizer, import_glyphs, read_char_list


def _write_all(outputs: dict[Path, bytes]) -> None:
    """先把所有内容写到同目录的临时文件，全部成功后再逐个替换到目标路径。"""
    staged = []
    try:
        for target, data in outputs.items():
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
            staged.append((tmp, target))
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        for tmp, target in staged:
            os.replace(tmp, target)
    finally:
        for tmp, _ in staged:
            if os.path.exists(tmp):
                os.remove(tmp)


def extract(dic_input: Path, img_input: Path, output: Path,
            ext: str = "png", verbose: bool = False) -> list[Path]:
    click.echo(f"正在导出可编辑字形到 {output}")
    dictionary = read_dictionary(dic_input)
    atlas = read_texture(img_input)
    if verbose:
        click.echo(f"图集 {atlas.width}x{atlas.height}，共 {len(dictionary.records)} 个字形")

    glyphs = [Glyph(metadata=record.metadata, bitmap=bitmap)
              for record, bitmap in slice_atlas(atlas, dictionary.records)]
    files = encode_glyph_files(glyphs, output, ext)
    output.mkdir(parents=True, exist_ok=True)
    _write_all(files)
    written = list(files)
    click.echo(f"完成，已写出 {len(written)} 个字形")
    return written


def build(input_dir: Path, dic_output: Path, img_output: Path,
          preview: Path | None = None, verbose: bool = False) -> PackedAtlas:
    click.echo(f"开始生成 {dic_output} 与 {img_output}")
    glyphs = scan_glyph_dir(input_dir)
    click.echo(f"从 {input_dir} 读取了 {len(glyphs)} 个字形")

    packed = pack_glyphs(glyphs)
    if verbose:
        for record in packed.records:
            click.echo(f"  {record.char_code}: {record.width}x{record.height} 位于 "
                       f"({record.origin_x}, {record.origin_y})")
    click.echo(f"图集尺寸 {packed.atlas.width}x{packed.atlas.height}")

    dictionary = GlyphDictionary(records=packed.records, reserved1=0, reserved2=0)
    _write_all({
        Path(dic_output): kand_bytes(dictionary),
        Path(img_output): encode_cte(packed.atlas),
    })

    if preview is not None:
        if packed.atlas.height == 0:
            click.echo("图集为空，未生成预览图", err=True)
        else:
            packed.atlas.image.save(preview, format="PNG")
            click.echo(f"预览图: {preview}")
    click.echo("完成")
    return packed


@dataclass
class ImportReport:
    written: list[Path] = field(default_factory=list)
    failures: list[GlyphRasterError] = field(default_factory=list)


def import_outline(char_list_path: Path, font_path: Path, output: Path, scale: int,
                   reserved: tuple[int, int] = DEFAULT_RESERVED, ext: str = "png",
                   strict: bool = False, verbose: bool = False,
                   rasterizer: Rasterizer | None = None) -> ImportReport:
    """
    strict 时任一字符失败则不写任何文件；否则跳过失败的字符，写出其余字形。
    """
    chars = read_char_list(char_list_path)
    click.echo(f"共 {len(chars)} 个字符待导出")
    if rasterizer is None:
        rasterizer = FreetypeRasterizer(font_path)

    def on_glyph(char: str) -> None:
        if verbose:
            click.echo(f"正在渲染 {char!r}")

    glyphs, failures = import_glyphs(chars, rasterizer, scale, reserved, on_glyph)
    report = ImportReport(failures=failures)
    for failure in failures:
        click.echo(f"警告: {failure}", err=True)

    if failures and strict:
        return report

    files = encode_glyph_files(glyphs, output, ext)
    output.mkdir(parents=True, exist_ok=True)
    _write_all(files)
    report.written = list(files)
    click.echo(f"完成，已向 {output} 写出 {len(report.written)} 个字形")
    return report
