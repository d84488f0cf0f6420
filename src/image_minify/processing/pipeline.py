"""处理流水线：扫描源目录、分类、并发调用远程服务并汇总结果。"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from image_minify.core.config import JobConfig, OperationMode
from image_minify.core.exceptions import InvalidConfigurationError
from image_minify.core.models import BatchResult, TransformOutcome
from image_minify.core.output_manager import OutputManager
from image_minify.core.progress import ProgressCallback, ProgressUpdate
from image_minify.core.report import write_csv_report
from image_minify.core.scanner import is_eligible, list_source_entries
from image_minify.processing.worker import TransformTask, run_task
from image_minify.service.tinify_client import CompressionService

LOGGER = logging.getLogger(__name__)


def process_batch(
    config: JobConfig,
    service: CompressionService,
    progress_callback: ProgressCallback = None,
) -> BatchResult:
    """同步入口：在新的事件循环中执行整批任务并等待全部结束。"""

    return asyncio.run(run_batch(config, service, progress_callback))


async def run_batch(
    config: JobConfig,
    service: CompressionService,
    progress_callback: ProgressCallback = None,
) -> BatchResult:
    """批量处理入口：扫描、分类、逐个启动任务，并在所有任务结束后返回。"""

    source_dir = config.source_dir
    if not source_dir.is_dir():
        raise InvalidConfigurationError(f"源目录不存在: {source_dir}")

    LOGGER.info("开始扫描源目录：%s", source_dir)
    entries = list_source_entries(source_dir)

    result = BatchResult()
    output_manager = OutputManager(config.output, config.operation)
    pending: list[TransformTask] = []

    for entry in entries:
        if not is_eligible(entry.name):
            LOGGER.info("跳过非图片文件：%s", entry.name)
            result.skipped.append(entry.name)
            continue

        pending.append(
            TransformTask(
                source_name=entry.name,
                source_path=entry.path,
                dest_path=output_manager.resolve(entry.name),
                operation=config.operation,
            )
        )

    total = len(pending)
    LOGGER.info("发现 %d 个图片文件，跳过 %d 个条目", total, len(result.skipped))

    if not pending:
        _emit_progress(progress_callback, result, total, "没有需要处理的图片")
        return result

    # 线程池与信号量同样大小，排队等待的任务不占用超时计时。
    pool_size = config.max_workers if config.max_workers > 0 else total
    limiter = asyncio.Semaphore(pool_size)
    with ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="transform") as executor:
        tasks = [
            asyncio.create_task(run_task(task, service, limiter, executor, config.task_timeout))
            for task in pending
        ]
        for finished in asyncio.as_completed(tasks):
            outcome = await finished
            result.record(outcome)
            _log_outcome(outcome, config)
            _emit_progress(progress_callback, result, total, _describe(outcome))

    _write_report(config, output_manager, result)
    LOGGER.info("处理完成：成功 %d 个，失败 %d 个", len(result.succeeded), len(result.failed))
    return result


def _log_outcome(outcome: TransformOutcome, config: JobConfig) -> None:
    if not outcome.success:
        LOGGER.error("处理 %s 时出错：%s", outcome.source_name, outcome.error_message)
        return

    operation = config.operation
    if operation.mode is OperationMode.COMPRESS:
        LOGGER.info(
            "已压缩并保存：%s（%s → %s 字节）",
            outcome.source_name,
            outcome.original_size,
            outcome.output_size,
        )
    else:
        assert operation.target_format is not None
        LOGGER.info(
            "已转换并保存：%s → %s 格式（%s 字节）",
            outcome.source_name,
            operation.target_format.name,
            outcome.output_size,
        )


def _describe(outcome: TransformOutcome) -> str:
    if outcome.success:
        return f"完成 {outcome.source_name}"
    return f"失败 {outcome.source_name}"


def _emit_progress(
    callback: ProgressCallback,
    result: BatchResult,
    total: int,
    message: Optional[str] = None,
) -> None:
    if not callback:
        return
    callback(ProgressUpdate(total=total, completed=result.attempted, failed=len(result.failed), message=message))


def _write_report(config: JobConfig, output_manager: OutputManager, result: BatchResult) -> None:
    if not config.report_filename:
        return
    try:
        write_csv_report(result.all_outcomes(), output_manager.output_dir, config.report_filename)
    except OSError as exc:
        LOGGER.error("写入报告失败：%s", exc)
