"""报告生成工具。"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from image_minify.core.models import TransformOutcome

HEADER = ["source_name", "output_path", "status", "message", "original_size", "output_size"]


def write_csv_report(outcomes: Iterable[TransformOutcome], output_dir: Path, filename: str) -> Path:
    """将处理结果写入 CSV 报告。"""

    report_path = output_dir / filename
    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for record in outcomes:
            writer.writerow(
                [
                    record.source_name,
                    str(record.output_path) if record.output_path else "",
                    record.status,
                    record.error_message or "",
                    _format_size(record.original_size),
                    _format_size(record.output_size),
                ]
            )
    return report_path


def _format_size(value: int | None) -> str:
    if value is None:
        return ""
    return str(value)
