"""进度更新的数据模型。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(slots=True)
class ProgressUpdate:
    """批处理过程中每个任务结束后的进度信息。"""

    total: int
    completed: int
    failed: int = 0
    message: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.completed >= self.total


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]
