"""处理任务的配置模型。"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from image_minify.core.exceptions import InvalidConfigurationError

API_KEY_ENV = "API_KEY"
DEFAULT_SERVICE_URL = "https://api.tinify.com"


class OperationMode(str, Enum):
    """批处理操作类型。"""

    COMPRESS = "compress"
    CONVERT = "convert"


class TargetFormat(str, Enum):
    """格式转换的目标格式，值即输出文件扩展名。"""

    PNG = "png"
    WEBP = "webp"
    JPEG = "jpeg"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @property
    def pillow_format(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class OperationConfig:
    """一次运行的操作选择，构造时即完成校验。"""

    mode: OperationMode
    target_format: Optional[TargetFormat] = None

    def __post_init__(self) -> None:
        if self.mode is OperationMode.CONVERT and self.target_format is None:
            raise InvalidConfigurationError("格式转换必须指定目标格式")
        if self.mode is OperationMode.COMPRESS and self.target_format is not None:
            raise InvalidConfigurationError("压缩模式不接受目标格式")

    @classmethod
    def compress(cls) -> "OperationConfig":
        return cls(mode=OperationMode.COMPRESS)

    @classmethod
    def convert(cls, target_format: TargetFormat) -> "OperationConfig":
        return cls(mode=OperationMode.CONVERT, target_format=target_format)


@dataclass(slots=True)
class ServiceConfig:
    """远程压缩服务的连接配置。"""

    api_key: str
    base_url: str = DEFAULT_SERVICE_URL
    timeout: float = 60.0


@dataclass(slots=True)
class OutputConfig:
    """输出目录配置。"""

    compressed_dir: Path = Path("Compressed")
    converted_dir: Path = Path("Converted")

    def directory_for(self, mode: OperationMode) -> Path:
        if mode is OperationMode.COMPRESS:
            return self.compressed_dir
        if mode is OperationMode.CONVERT:
            return self.converted_dir
        raise InvalidConfigurationError(f"未知的操作类型: {mode}")


@dataclass(slots=True)
class JobConfig:
    """单次批处理任务的配置集合。"""

    source_dir: Path
    operation: OperationConfig
    output: OutputConfig
    max_workers: int = 4  # 0 表示不限制并发
    task_timeout: Optional[float] = None  # 单个文件的总耗时上限（秒）
    report_filename: Optional[str] = "report.csv"


def load_service_config(
    api_key: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    base_url: str = DEFAULT_SERVICE_URL,
    timeout: float = 60.0,
) -> ServiceConfig:
    """读取 API Key 并构造服务配置。

    未显式传入 ``api_key`` 时先加载 ``.env``，再从环境变量 ``API_KEY`` 读取。
    """

    if api_key is None:
        if environ is None:
            load_dotenv()
            environ = os.environ
        api_key = environ.get(API_KEY_ENV)

    api_key = (api_key or "").strip()
    if not api_key:
        raise InvalidConfigurationError(f"未设置 {API_KEY_ENV}，无法访问压缩服务")
    if timeout <= 0:
        raise InvalidConfigurationError("超时时间必须大于 0")

    return ServiceConfig(api_key=api_key, base_url=base_url, timeout=timeout)
