"""交互式操作选择：压缩或转换，以及转换的目标格式。"""

from __future__ import annotations

from typing import Callable, Optional

from image_minify.core.config import OperationConfig, OperationMode, TargetFormat
from image_minify.core.exceptions import InvalidSelectionError

OPERATION_PROMPT = "选择操作：\n1. 压缩图片\n2. 转换图片格式\n请输入选项 (1/2)"
FORMAT_PROMPT = "选择输出格式：\n1. PNG\n2. WebP\n3. JPEG\n请输入选项 (1/2/3)"

OPERATION_CHOICES = {
    "1": OperationMode.COMPRESS,
    "2": OperationMode.CONVERT,
}

FORMAT_CHOICES = {
    "1": TargetFormat.PNG,
    "2": TargetFormat.WEBP,
    "3": TargetFormat.JPEG,
}

Prompt = Callable[[str], str]


def parse_operation_choice(answer: str) -> OperationMode:
    """解析操作菜单的输入，支持序号或名称。"""

    value = answer.strip().lower()
    if value in OPERATION_CHOICES:
        return OPERATION_CHOICES[value]
    try:
        return OperationMode(value)
    except ValueError:
        raise InvalidSelectionError("输入无效，请输入 '1' 或 '2'。") from None


def parse_format_choice(answer: str) -> TargetFormat:
    """解析目标格式菜单的输入，支持序号或格式名。"""

    value = answer.strip().lower()
    if value in FORMAT_CHOICES:
        return FORMAT_CHOICES[value]
    if value == "jpg":
        return TargetFormat.JPEG
    try:
        return TargetFormat(value)
    except ValueError:
        raise InvalidSelectionError("输入无效，请输入 '1'、'2' 或 '3'。") from None


def select_operation(
    prompt: Prompt,
    operation: Optional[str] = None,
    target_format: Optional[str] = None,
) -> OperationConfig:
    """依次确定操作与目标格式；命令行已给出的值不再询问。"""

    mode = parse_operation_choice(operation if operation is not None else prompt(OPERATION_PROMPT))

    if mode is OperationMode.COMPRESS:
        if target_format is not None:
            raise InvalidSelectionError("压缩模式不接受 --format 参数。")
        return OperationConfig.compress()

    answer = target_format if target_format is not None else prompt(FORMAT_PROMPT)
    return OperationConfig.convert(parse_format_choice(answer))
