"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(slots=True)
class SourceEntry:
    """扫描源目录得到的单个条目。"""

    name: str
    extension: str
    path: Path


@dataclass(slots=True)
class TransformOutcome:
    """记录单个文件的处理结果（用于报告/日志）。"""

    source_name: str
    success: bool
    output_path: Optional[Path] = None
    error_message: Optional[str] = None
    original_size: Optional[int] = None
    output_size: Optional[int] = None

    @property
    def status(self) -> str:
        return "processed" if self.success else "failed"


@dataclass(slots=True)
class BatchResult:
    """一次批处理的汇总结果。"""

    succeeded: list[TransformOutcome] = field(default_factory=list)
    failed: list[TransformOutcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    def record(self, outcome: TransformOutcome) -> None:
        if outcome.success:
            self.succeeded.append(outcome)
        else:
            self.failed.append(outcome)

    def all_outcomes(self) -> list[TransformOutcome]:
        """返回所有结果记录，方便生成报告。"""

        return [*self.succeeded, *self.failed]
