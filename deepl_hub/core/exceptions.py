# deepl_hub/core/exceptions.py
"""
本模块定义了 deepl-hub 中所有自定义的、语义化的异常类型。

调用方可以按异常类型区分“调用参数有误”“服务端拒绝”“文档尚未就绪”以及
“文档翻译流水线部分失败”等情形，并据此决定后续处理。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from deepl_hub.core.types import DocumentHandle


class DeepLHubError(Exception):
    """
    所有 deepl-hub 自定义异常的通用基类。
    捕获此异常可以处理所有源自本项目的预期错误。
    """

    pass


class ConfigurationError(DeepLHubError):
    """表示在加载或校验配置时发生的错误，例如缺少认证密钥。"""

    pass


class ValidationError(DeepLHubError, ValueError):
    """
    表示调用方传入的参数无效，在发出任何网络请求之前即被检测到。
    继承自 ValueError 是为了保持与标准库参数校验行为的一致性。此类错误永不重试。
    """

    pass


class ApiError(DeepLHubError):
    """
    表示与翻译服务 API 交互时发生的错误。
    通常对应非 2xx 的响应，消息取自响应体（如有）。
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthorizationError(ApiError):
    """认证密钥无效或无权访问 (HTTP 403)。"""


class QuotaExceededError(ApiError):
    """当前计费周期的额度已用尽 (HTTP 456)。"""


class NotFoundError(ApiError):
    """请求的资源不存在 (HTTP 404)。"""


class GlossaryNotFoundError(NotFoundError):
    """请求的术语表不存在。"""


class BadRequestError(ApiError):
    """服务端判定请求格式或参数有误 (HTTP 400)。"""


class TooManyRequestsError(ApiError):
    """请求过于频繁 (HTTP 429)。"""


class ServiceConnectionError(ApiError):
    """网络层错误、超时或服务暂不可用。"""


class DocumentNotReadyError(ApiError):
    """在文档翻译尚未完成时尝试下载结果。"""


class DocumentTranslationError(DeepLHubError):
    """
    包装文档翻译流水线（上传 → 等待 → 下载）中任一阶段的失败。

    Attributes:
        cause: 原始异常，同时也是 ``__cause__``。取消时为 ``asyncio.CancelledError``。
        document_handle: 截至失败时已获得的文档句柄；若失败发生在上传阶段或之前则为 None。
            调用方可凭此句柄继续等待和下载，无需重新上传。

    """

    def __init__(
        self,
        message: str,
        cause: BaseException,
        document_handle: Optional[DocumentHandle] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.document_handle = document_handle
