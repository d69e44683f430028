#!/usr/bin/env python3
"""
kandfont：.dic/.img 位图字体 <-> 可编辑字形目录。

使用：
  kandfont extract font.dic font.img glyphs/
  kandfont build glyphs/ out.dic out.img --preview atlas.png
  kandfont import chars.txt SourceHanSans.otf glyphs/ 18
"""

from contextlib import contextmanager
from pathlib import Path

import click

from . import pipeline
from .config import check_image_ext, load_settings
from .errors import ConfigError, KandFontError


@contextmanager
def _report_errors():
    try:
        yield
    except (KandFontError, OSError) as e:
        raise SystemExit(f"错误: {e}")


def _validate_ext(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    if value is None:
        return None
    try:
        return check_image_ext(value, "--ext")
    except ConfigError as e:
        raise click.BadParameter(str(e)) from None


@click.group(help="在 .dic/.img 位图字体与可编辑的字形图片目录之间转换")
@click.option("-v", "--verbose", is_flag=True, help="输出每个字形的详细信息")
@click.option("--env-file", type=click.Path(dir_okay=False, path_type=Path), help="读取此 .env 文件（默认当前目录下的 .env）")
@click.pass_context
def main(ctx: click.Context, verbose: bool, env_file: Path | None) -> None:
    ctx.ensure_object(dict)
    with _report_errors():
        ctx.obj["settings"] = load_settings(env_file)
    ctx.obj["verbose"] = verbose


@main.command(help="读取 .dic 与 .img，把每个字形导出为一张图片")
@click.argument("dic_input", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("img_input", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(file_okay=False, path_type=Path))
@click.option("--ext", callback=_validate_ext, help="字形图片扩展名（默认取 KANDFONT_IMAGE_EXT 或 png）")
@click.pass_context
def extract(ctx: click.Context, dic_input: Path, img_input: Path, output: Path, ext: str | None) -> None:
    settings = ctx.obj["settings"]
    with _report_errors():
        pipeline.extract(dic_input, img_input, output, ext or settings.image_ext,
                         verbose=ctx.obj["verbose"])


@main.command(help="读取 extract 格式的字形目录，生成 .dic 与 .img")
@click.argument("input_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("dic_output", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("img_output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--preview", type=click.Path(dir_okay=False, path_type=Path), help="另存一张打包后的图集 PNG 供检查")
@click.pass_context
def build(ctx: click.Context, input_dir: Path, dic_output: Path, img_output: Path, preview: Path | None) -> None:
    with _report_errors():
        pipeline.build(input_dir, dic_output, img_output, preview=preview,
                       verbose=ctx.obj["verbose"])


@main.command("import", help="用 TrueType/OpenType 字体渲染字符列表，输出可被 build 读取的字形目录")
@click.argument("char_list", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("font", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(file_okay=False, path_type=Path))
@click.argument("scale", type=click.IntRange(1, 0x7FFF), required=False)
@click.option("--strict", is_flag=True, help="任一字符渲染失败即不输出任何文件并以非零状态退出")
@click.option("--ext", callback=_validate_ext, help="字形图片扩展名（默认取 KANDFONT_IMAGE_EXT 或 png）")
@click.pass_context
def import_(ctx: click.Context, char_list: Path, font: Path, output: Path,
            scale: int | None, strict: bool, ext: str | None) -> None:
    """
    CHAR_LIST 为 UTF-8 文本，其中出现的每个字符都会被导出（可重复出现）。
    SCALE 为字体像素高度，默认取 KANDFONT_SCALE 或 18。
    """
    settings = ctx.obj["settings"]
    with _report_errors():
        report = pipeline.import_outline(
            char_list, font, output,
            scale=scale or settings.scale,
            reserved=settings.reserved,
            ext=ext or settings.image_ext,
            strict=strict,
            verbose=ctx.obj["verbose"],
        )
    if strict and report.failures:
        raise SystemExit(f"错误: {len(report.failures)} 个字符渲染失败，未写出任何文件")
