"""Tinify（TinyPNG）HTTP API 客户端。

服务分两步：先把源文件字节上传到 ``/shrink``，服务返回压缩结果的地址；
压缩模式直接下载该结果，转换模式则请求服务端重新编码后再下载。
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests
from requests.exceptions import RequestException, Timeout

from image_minify.core.config import ServiceConfig, TargetFormat
from image_minify.core.exceptions import (
    AccountError,
    ClientError,
    ServerError,
    ServiceConnectionError,
    ServiceError,
    TransformTimeout,
)

LOGGER = logging.getLogger(__name__)


class CompressionService(Protocol):
    """远程服务约定：提交图片字节，取回处理后的字节。"""

    def compress(self, data: bytes) -> bytes:
        ...

    def convert(self, data: bytes, target: TargetFormat) -> bytes:
        ...


class TinifyClient:
    """
    阻塞式 Tinify 客户端。

    所有调用共用一个 ``requests.Session``，流水线在工作线程中调用它。
    """

    def __init__(self, config: ServiceConfig, session: Optional[requests.Session] = None):
        """
        初始化客户端。

        Args:
            config: 服务地址、API Key 与单次请求超时
            session: 可选的现成会话（测试中注入 mock）
        """
        self.config = config
        self.session = session or requests.Session()
        self.session.auth = ("api", config.api_key)
        self.session.headers.update({"User-Agent": "image-minify"})
        self.compression_count: Optional[int] = None

    def close(self) -> None:
        self.session.close()

    def compress(self, data: bytes) -> bytes:
        """压缩图片字节，保持原格式。"""
        location = self._shrink(data)
        response = self._request("GET", location)
        return response.content

    def convert(self, data: bytes, target: TargetFormat) -> bytes:
        """压缩图片字节并由服务端重新编码为 ``target`` 格式。"""
        location = self._shrink(data)
        response = self._request("POST", location, json={"convert": {"type": target.mime_type}})
        return response.content

    def _shrink(self, data: bytes) -> str:
        url = f"{self.config.base_url.rstrip('/')}/shrink"
        response = self._request("POST", url, data=data)
        location = response.headers.get("Location")
        if not location:
            raise ServerError("压缩服务未返回结果地址", status=response.status_code)
        return location

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        发送 API 请求。

        Raises:
            TransformTimeout: 请求超过配置的超时时间
            ServiceError: 网络错误或服务返回错误状态
        """
        try:
            response = self.session.request(method, url, timeout=self.config.timeout, **kwargs)
        except Timeout as e:
            raise TransformTimeout(f"压缩服务超过 {self.config.timeout:g} 秒未响应") from e
        except RequestException as e:
            raise ServiceConnectionError(f"连接压缩服务失败: {e}") from e

        self._record_count(response)

        if response.ok:
            return response

        raise build_service_error(response)

    def _record_count(self, response: requests.Response) -> None:
        count = response.headers.get("Compression-Count")
        if count is None:
            return
        try:
            self.compression_count = int(count)
        except ValueError:
            return
        LOGGER.debug("本月压缩次数：%d", self.compression_count)


def build_service_error(response: requests.Response) -> ServiceError:
    """将错误响应转换为对应的 ``ServiceError``。"""
    status = response.status_code
    try:
        details = response.json()
    except ValueError:
        details = {}
    if not isinstance(details, dict):
        details = {}

    kind = details.get("error") or response.reason or "Error"
    message = details.get("message") or f"HTTP {status}"
    text = f"{message} (HTTP {status}/{kind})"

    if status in (401, 429):
        return AccountError(text, status=status, kind=kind)
    if 400 <= status < 500:
        return ClientError(text, status=status, kind=kind)
    if status >= 500:
        return ServerError(text, status=status, kind=kind)
    return ServiceError(text, status=status, kind=kind)
