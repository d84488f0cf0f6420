"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from image_minify.cli.selector import select_operation
from image_minify.core.config import JobConfig, OperationMode, OutputConfig, load_service_config
from image_minify.core.exceptions import InvalidConfigurationError, InvalidSelectionError
from image_minify.core.progress import ProgressUpdate
from image_minify.processing.pipeline import process_batch
from image_minify.service.tinify_client import TinifyClient
from image_minify.utils.logging import setup_logging

app = typer.Typer(help="通过 Tinify 服务批量压缩图片或转换图片格式。")

EXIT_FAILURES = 1
EXIT_USAGE = 2


def _prompt(text: str) -> str:
    return typer.prompt(text, default="", show_default=False)


def _build_progress_callback(progress: Progress):
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if update.total == 0:
            return
        if task_id is None:
            task_id = progress.add_task("处理图片", total=update.total)
        progress.update(task_id, completed=update.completed)

    return callback


@app.command("run")
def run_cli(  # noqa: PLR0913
    operation: Optional[str] = typer.Option(
        None, "--operation", "-m", help="操作类型 compress/convert，缺省时交互询问"
    ),
    target_format: Optional[str] = typer.Option(
        None, "--format", "-f", help="转换目标格式 png/webp/jpeg，缺省时交互询问"
    ),
    source: Path = typer.Option(Path("target"), "--source", "-s", help="源图片目录（不递归）"),
    compressed_dir: Path = typer.Option(Path("Compressed"), "--compressed-dir", help="压缩结果输出目录"),
    converted_dir: Path = typer.Option(Path("Converted"), "--converted-dir", help="转换结果输出目录"),
    max_workers: int = typer.Option(4, "--workers", "-w", min=0, help="同时进行的远程请求数量，0 表示不限制"),
    timeout: float = typer.Option(60.0, "--timeout", help="单个文件的处理超时（秒），包含上传与下载两次请求"),
    api_key: Optional[str] = typer.Option(None, "--api-key", envvar="API_KEY", help="Tinify API Key"),
    report: bool = typer.Option(True, "--report/--no-report", help="是否在输出目录写入 CSV 报告"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
) -> None:
    """选择操作并执行批量处理。"""

    setup_logging(logging.DEBUG if verbose else logging.INFO)
    logger = logging.getLogger(__name__)

    try:
        service_config = load_service_config(api_key, timeout=timeout)
        selected = select_operation(_prompt, operation, target_format)
    except InvalidSelectionError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=EXIT_USAGE) from exc
    except InvalidConfigurationError as exc:
        typer.echo(f"配置错误：{exc}", err=True)
        raise typer.Exit(code=EXIT_USAGE) from exc

    source_dir = source.expanduser()
    if not source_dir.is_dir():
        typer.echo(f"源目录不存在：{source_dir}", err=True)
        raise typer.Exit(code=EXIT_USAGE)

    job = JobConfig(
        source_dir=source_dir,
        operation=selected,
        output=OutputConfig(
            compressed_dir=compressed_dir.expanduser(),
            converted_dir=converted_dir.expanduser(),
        ),
        max_workers=max_workers,
        task_timeout=timeout,
        report_filename="report.csv" if report else None,
    )
    logger.debug("CLI 参数解析完成：%s", selected)

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
    )

    client = TinifyClient(service_config)
    try:
        with progress:
            result = process_batch(job, client, progress_callback=_build_progress_callback(progress))
    except InvalidConfigurationError as exc:
        typer.echo(f"配置错误：{exc}", err=True)
        raise typer.Exit(code=EXIT_USAGE) from exc
    finally:
        client.close()

    if client.compression_count is not None:
        typer.echo(f"本月已使用压缩次数：{client.compression_count}")

    typer.echo(
        f"处理完成：成功 {len(result.succeeded)} 张，失败 {len(result.failed)} 张，跳过 {len(result.skipped)} 个条目。"
    )
    if result.attempted:
        output_dir = job.output.directory_for(selected.mode)
        label = "压缩" if selected.mode is OperationMode.COMPRESS else "转换"
        typer.echo(f"{label}结果目录：{output_dir}")

    if result.has_failures:
        raise typer.Exit(code=EXIT_FAILURES)


if __name__ == "__main__":
    app()
