"""测试共用的假压缩服务与图片构造工具。"""

from __future__ import annotations

import threading
import time
from io import BytesIO
from pathlib import Path
from typing import Iterable, Optional

import pytest
from PIL import Image

from image_minify.core.config import TargetFormat
from image_minify.core.exceptions import ClientError


def make_image_bytes(color: str = "blue", fmt: str = "PNG", size: tuple[int, int] = (32, 32)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def write_image(path: Path, color: str = "blue") -> bytes:
    fmt = {".jpg": "JPEG", ".jpeg": "JPEG", ".webp": "WEBP"}.get(path.suffix.lower(), "PNG")
    data = make_image_bytes(color, fmt)
    path.write_bytes(data)
    return data


class FakeService:
    """进程内的假服务：压缩原样返回，转换用 Pillow 重新编码。"""

    def __init__(
        self,
        failing_payloads: Iterable[bytes] = (),
        delay: float = 0.0,
        barrier: Optional[threading.Barrier] = None,
    ) -> None:
        self.failing_payloads = set(failing_payloads)
        self.delay = delay
        self.barrier = barrier
        self.calls: list[tuple[str, Optional[TargetFormat]]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def compress(self, data: bytes) -> bytes:
        self._enter("compress", None)
        try:
            self._maybe_fail(data)
            return data
        finally:
            self._leave()

    def convert(self, data: bytes, target: TargetFormat) -> bytes:
        self._enter("convert", target)
        try:
            self._maybe_fail(data)
            buffer = BytesIO()
            with Image.open(BytesIO(data)) as img:
                img.convert("RGB").save(buffer, format=target.pillow_format)
            return buffer.getvalue()
        finally:
            self._leave()

    def _enter(self, name: str, target: Optional[TargetFormat]) -> None:
        with self._lock:
            self.calls.append((name, target))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        if self.barrier is not None:
            self.barrier.wait()
        if self.delay:
            time.sleep(self.delay)

    def _leave(self) -> None:
        with self._lock:
            self.in_flight -= 1

    def _maybe_fail(self, data: bytes) -> None:
        if data in self.failing_payloads:
            raise ClientError("Input file is rejected (HTTP 415/Unsupported media type)", status=415)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    path = tmp_path / "target"
    path.mkdir()
    return path
