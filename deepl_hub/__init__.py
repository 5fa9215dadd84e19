# deepl_hub/__init__.py
"""deepl-hub: 将长时间运行的文档翻译任务与术语表准备过程封装为简单的异步调用。

该模块提供了对外入口 Translator、配置模型以及常用的数据类型与异常。
"""

__version__ = "1.0.0"

from .config import DeepLHubConfig
from .core import (
    ApiError,
    DeepLHubError,
    DocumentHandle,
    DocumentNotReadyError,
    DocumentStatus,
    DocumentTranslateOptions,
    DocumentTranslationError,
    Formality,
    GlossaryInfo,
    SentenceSplittingMode,
    TextResult,
    TextTranslateOptions,
    ValidationError,
)
from .documents import DocumentTranslator
from .glossaries import GlossaryEntries, GlossaryManager
from .translator import Translator

__all__ = [
    "__version__",
    "Translator",
    "DeepLHubConfig",
    "DocumentTranslator",
    "GlossaryManager",
    "GlossaryEntries",
    "DocumentHandle",
    "DocumentStatus",
    "DocumentTranslateOptions",
    "TextTranslateOptions",
    "TextResult",
    "GlossaryInfo",
    "Formality",
    "SentenceSplittingMode",
    "DeepLHubError",
    "ValidationError",
    "ApiError",
    "DocumentNotReadyError",
    "DocumentTranslationError",
]
