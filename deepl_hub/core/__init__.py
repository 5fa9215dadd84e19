# deepl_hub/core/__init__.py
"""
本核心包定义了 deepl-hub 中最基础、最稳定的构建块。

这里包含了核心数据类型、REST 客户端接口协议和自定义异常，它们共同构成了
整个库的“契约”。其他模块都依赖于此核心包，但本包不依赖于项目中的任何其他模块。
"""

from .exceptions import (
    ApiError,
    AuthorizationError,
    BadRequestError,
    ConfigurationError,
    DeepLHubError,
    DocumentNotReadyError,
    DocumentTranslationError,
    GlossaryNotFoundError,
    NotFoundError,
    QuotaExceededError,
    ServiceConnectionError,
    TooManyRequestsError,
    ValidationError,
)
from .interfaces import FileContent, FormParams, RestClient
from .types import (
    DocumentHandle,
    DocumentState,
    DocumentStatus,
    DocumentTranslateOptions,
    Formality,
    GlossaryInfo,
    GlossaryLanguagePair,
    Language,
    SentenceSplittingMode,
    TextResult,
    TextTranslateOptions,
    Usage,
    UsageDetail,
)

__all__ = [
    # from exceptions.py
    "DeepLHubError",
    "ConfigurationError",
    "ValidationError",
    "ApiError",
    "AuthorizationError",
    "QuotaExceededError",
    "NotFoundError",
    "GlossaryNotFoundError",
    "BadRequestError",
    "TooManyRequestsError",
    "ServiceConnectionError",
    "DocumentNotReadyError",
    "DocumentTranslationError",
    # from interfaces.py
    "RestClient",
    "FormParams",
    "FileContent",
    # from types.py
    "DocumentHandle",
    "DocumentState",
    "DocumentStatus",
    "DocumentTranslateOptions",
    "TextTranslateOptions",
    "Formality",
    "SentenceSplittingMode",
    "GlossaryInfo",
    "GlossaryLanguagePair",
    "Language",
    "TextResult",
    "Usage",
    "UsageDetail",
]
