"""
运行配置。参照 .env 约定：先从当前目录的 .env 读取，再读环境变量（已有环境变量优先）。

  KANDFONT_SCALE       import 的默认像素高度（默认 18）
  KANDFONT_IMAGE_EXT   extract/import 输出的字形图片扩展名（默认 png）
  KANDFONT_RESERVED    import 生成字形的两个保留字段，"a,b"（默认 10,10）
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from PIL import Image

from .errors import ConfigError

# 打包时的名义图集宽度，以及宽高的对齐粒度
ATLAS_WIDTH = 512
ATLAS_ALIGN = 8

DEFAULT_SCALE = 18
DEFAULT_IMAGE_EXT = "png"
DEFAULT_RESERVED = (10, 10)


@dataclass(frozen=True)
class Settings:
    scale: int = DEFAULT_SCALE
    image_ext: str = DEFAULT_IMAGE_EXT
    reserved: tuple[int, int] = DEFAULT_RESERVED


def _parse_int(name: str, value: str, low: int, high: int) -> int:
    try:
        number = int(value.strip(), 10)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if not low <= number <= high:
        raise ConfigError(f"{name} must be between {low} and {high}, got {number}")
    return number


def check_image_ext(ext: str, name: str = "image extension") -> str:
    """去掉前导的 "."，并确认 Pillow 能以该扩展名保存图片。"""
    ext = ext.strip().lstrip(".")
    fmt = Image.registered_extensions().get(f".{ext.lower()}") if ext else None
    if fmt is None or fmt not in Image.SAVE:
        raise ConfigError(f"{name}: Pillow can't write images with the extension {ext!r}")
    return ext


def load_settings(env_file: str | Path | None = None) -> Settings:
    load_dotenv(Path(env_file) if env_file else Path.cwd() / ".env")

    scale = DEFAULT_SCALE
    raw = os.environ.get("KANDFONT_SCALE")
    if raw:
        scale = _parse_int("KANDFONT_SCALE", raw, 1, 0x7FFF)

    image_ext = check_image_ext(os.environ.get("KANDFONT_IMAGE_EXT") or DEFAULT_IMAGE_EXT,
                                "KANDFONT_IMAGE_EXT")

    reserved = DEFAULT_RESERVED
    raw = os.environ.get("KANDFONT_RESERVED")
    if raw:
        parts = raw.split(",")
        if len(parts) != 2:
            raise ConfigError(f"KANDFONT_RESERVED must look like \"a,b\", got {raw!r}")
        reserved = tuple(_parse_int("KANDFONT_RESERVED", p, 0, 0xFFFF) for p in parts)

    return Settings(scale=scale, image_ext=image_ext, reserved=reserved)
