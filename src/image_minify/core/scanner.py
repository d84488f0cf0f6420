"""源目录扫描与文件分类逻辑。"""

from __future__ import annotations

import os
from pathlib import Path

from image_minify.core.models import SourceEntry

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp"})


def file_extension(name: str) -> str:
    """返回最后一个扩展名（包含点号），没有则为空字符串。"""

    return os.path.splitext(name)[1]


def is_eligible(name: str) -> bool:
    """按扩展名（忽略大小写）判断条目是否为可处理的图片。"""

    return file_extension(name).lower() in IMAGE_EXTENSIONS


def list_source_entries(directory: Path) -> list[SourceEntry]:
    """列出目录下的直接条目，不递归，按名称排序。"""

    entries = [
        SourceEntry(name=path.name, extension=file_extension(path.name), path=path)
        for path in directory.iterdir()
    ]
    entries.sort(key=lambda entry: entry.name)
    return entries
