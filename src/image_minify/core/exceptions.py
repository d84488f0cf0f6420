"""项目内使用的自定义异常定义。"""


class ImageMinifyError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(ImageMinifyError):
    """配置不合法时抛出。"""


class InvalidSelectionError(InvalidConfigurationError):
    """交互菜单输入无效时抛出。"""


class TransformFailure(ImageMinifyError):
    """单个文件的压缩/转换失败。"""


class ServiceError(TransformFailure):
    """远程压缩服务返回错误。"""

    def __init__(self, message: str, status: int | None = None, kind: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.kind = kind


class AccountError(ServiceError):
    """API Key 无效或额度耗尽。"""


class ClientError(ServiceError):
    """请求被服务拒绝（例如文件格式不受支持）。"""


class ServerError(ServiceError):
    """服务端内部错误。"""


class ServiceConnectionError(ServiceError):
    """无法连接远程服务。"""


class TransformTimeout(TransformFailure):
    """远程调用超时。"""


class InvalidPayloadError(TransformFailure):
    """服务返回的数据不是预期的图片。"""
