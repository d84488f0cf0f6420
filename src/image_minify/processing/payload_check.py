"""服务返回数据的图片校验。"""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from image_minify.core.config import TargetFormat
from image_minify.core.exceptions import InvalidPayloadError

LOGGER = logging.getLogger(__name__)


def check_payload(data: bytes, expected_format: Optional[TargetFormat] = None) -> str:
    """校验字节内容是否为完整图片，返回 Pillow 识别出的格式名。

    指定 ``expected_format`` 时，识别出的格式必须与目标格式一致。
    """

    if not data:
        raise InvalidPayloadError("压缩服务返回了空内容")

    try:
        with Image.open(BytesIO(data)) as img:
            detected = img.format or ""
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        LOGGER.debug("无法识别服务返回的图片数据: %s", exc)
        raise InvalidPayloadError("压缩服务返回的数据不是有效图片") from exc

    if expected_format is not None and detected != expected_format.pillow_format:
        raise InvalidPayloadError(f"期望 {expected_format.pillow_format} 格式，实际收到 {detected or '未知格式'}")

    return detected
