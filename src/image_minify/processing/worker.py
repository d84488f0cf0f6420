"""单个文件的压缩/转换工作单元。"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import threading
from concurrent.futures import Executor
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncContextManager, Optional

from image_minify.core.config import OperationConfig, OperationMode
from image_minify.core.exceptions import ImageMinifyError, InvalidConfigurationError, TransformTimeout
from image_minify.core.models import TransformOutcome
from image_minify.processing.payload_check import check_payload
from image_minify.service.tinify_client import CompressionService

LOGGER = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".part"


@dataclass(slots=True)
class TransformTask:
    """描述单个文件的处理任务。"""

    source_name: str
    source_path: Path
    dest_path: Path
    operation: OperationConfig


def transform_file(
    task: TransformTask,
    service: CompressionService,
    abandoned: Optional[threading.Event] = None,
) -> TransformOutcome:
    """在工作线程中执行：读取源文件、调用远程服务、校验并写出结果。

    失败时抛出 ``ImageMinifyError`` 或 ``OSError``，由 ``run_task`` 统一转换为结果记录。
    ``abandoned`` 被置位（任务已超时）时不再写出结果。
    """

    data = task.source_path.read_bytes()
    operation = task.operation

    if operation.mode is OperationMode.COMPRESS:
        payload = service.compress(data)
        check_payload(payload)
    elif operation.mode is OperationMode.CONVERT:
        assert operation.target_format is not None
        payload = service.convert(data, operation.target_format)
        check_payload(payload, operation.target_format)
    else:
        raise InvalidConfigurationError(f"未知的操作类型: {operation.mode}")

    if abandoned is not None and abandoned.is_set():
        raise TransformTimeout(f"{task.source_name} 已超时，放弃写出结果")

    _write_atomically(task.dest_path, payload)

    return TransformOutcome(
        source_name=task.source_name,
        success=True,
        output_path=task.dest_path,
        original_size=len(data),
        output_size=len(payload),
    )


async def run_task(
    task: TransformTask,
    service: CompressionService,
    limiter: Optional[AsyncContextManager] = None,
    executor: Optional[Executor] = None,
    timeout: Optional[float] = None,
) -> TransformOutcome:
    """异步执行单个任务，任何单文件错误都不会越过此边界。

    ``timeout`` 从任务取得并发名额后开始计时，限制单个文件的总耗时。
    """

    loop = asyncio.get_running_loop()
    abandoned = threading.Event()

    try:
        async with limiter or contextlib.nullcontext():
            future = loop.run_in_executor(executor, transform_file, task, service, abandoned)
            try:
                return await asyncio.wait_for(future, timeout)
            except asyncio.TimeoutError:
                abandoned.set()
                raise TransformTimeout(f"处理超过 {timeout:g} 秒未完成") from None
    except (ImageMinifyError, OSError) as exc:
        return TransformOutcome(
            source_name=task.source_name,
            success=False,
            error_message=str(exc) or exc.__class__.__name__,
        )
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("任务执行异常：%s", task.source_name)
        return TransformOutcome(
            source_name=task.source_name,
            success=False,
            error_message=f"{exc.__class__.__name__}: {exc}",
        )


def _write_atomically(destination: Path, payload: bytes) -> None:
    partial = destination.with_name(destination.name + PARTIAL_SUFFIX)
    try:
        partial.write_bytes(payload)
        os.replace(partial, destination)
    except OSError:
        partial.unlink(missing_ok=True)
        raise
