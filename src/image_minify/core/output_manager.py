"""输出路径计算与输出目录管理模块。"""

from __future__ import annotations

import logging
import re
from itertools import count
from pathlib import Path

from image_minify.core.config import OperationConfig, OperationMode, OutputConfig
from image_minify.core.exceptions import InvalidConfigurationError

LOGGER = logging.getLogger(__name__)

_FINAL_SUFFIX_RE = re.compile(r"\.[^/.]+$")


def substitute_suffix(name: str, extension: str) -> str:
    """将文件名的最后一个扩展名替换为 ``.extension``；没有扩展名时原样返回。"""

    return _FINAL_SUFFIX_RE.sub(f".{extension.lower()}", name)


class OutputManager:
    """根据操作类型计算输出路径，并在首次使用时创建输出目录。

    同一批次内多个源文件映射到同一输出文件名时（如 ``a.png`` 与 ``a.jpg``
    转换为 ``a.webp``），后到的文件会被重命名，保证每个任务写入独立的文件。
    """

    def __init__(self, config: OutputConfig, operation: OperationConfig) -> None:
        self.config = config
        self.operation = operation
        self.output_dir = config.directory_for(operation.mode)
        self._prepared = False
        self._reserved: set[Path] = set()

    @property
    def prepared(self) -> bool:
        return self._prepared

    def resolve(self, source_name: str) -> Path:
        """计算单个文件的输出路径，并为本批次预留该路径。"""

        self.ensure_output_dir()
        destination = self.output_dir / self.destination_name(source_name)

        if destination in self._reserved:
            renamed = self._generate_renamed_path(destination)
            LOGGER.warning("输出文件名冲突：%s -> 重命名为 %s", destination.name, renamed.name)
            destination = renamed

        self._reserved.add(destination)
        return destination

    def destination_name(self, source_name: str) -> str:
        mode = self.operation.mode
        if mode is OperationMode.COMPRESS:
            return source_name
        if mode is OperationMode.CONVERT:
            assert self.operation.target_format is not None
            return substitute_suffix(source_name, self.operation.target_format.value)
        raise InvalidConfigurationError(f"未知的操作类型: {mode}")

    def ensure_output_dir(self) -> Path:
        """幂等地创建输出目录，每次运行只检查一次。"""

        if self._prepared:
            return self.output_dir

        if not self.output_dir.is_dir():
            try:
                self.output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise InvalidConfigurationError(f"无法创建输出目录 {self.output_dir}: {exc}") from exc
            LOGGER.info("已创建输出目录：%s", self.output_dir)
        self._prepared = True
        return self.output_dir

    def _generate_renamed_path(self, destination: Path) -> Path:
        """在本批次已预留的路径之外生成新的文件名。"""

        stem = destination.stem
        suffix = destination.suffix

        for idx in count(1):
            candidate = destination.with_name(f"{stem}_{idx}{suffix}")
            if candidate not in self._reserved:
                return candidate

        # 理论上不会执行到此处
        return destination
