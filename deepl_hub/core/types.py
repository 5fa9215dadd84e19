# deepl_hub/core/types.py
"""
本模块定义了 deepl-hub 的核心数据类型。

所有模型均为不可变的 Pydantic 模型：服务端响应被解析为新的值对象，
每次轮询都会产生一个取代上一次结果的新快照，而不是就地修改。
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator


class Formality(str, Enum):
    """译文的正式程度。DEFAULT 不会出现在请求参数中。"""

    DEFAULT = "default"
    LESS = "less"
    MORE = "more"


class SentenceSplittingMode(str, Enum):
    """文本翻译时的断句策略，枚举值即为请求中的参数值。"""

    ALL = "1"
    NO_NEWLINES = "nonewlines"
    OFF = "0"


class DocumentState(str, Enum):
    """服务端报告的文档翻译任务状态。"""

    QUEUED = "queued"
    TRANSLATING = "translating"
    DONE = "done"
    ERROR = "error"


class DocumentHandle(BaseModel):
    """
    一次进行中的文档翻译任务的不透明句柄 (document_id, document_key)。

    句柄只能由成功的上传产生，之后在每次状态查询与下载时原样回传。
    document_key 相当于该任务的访问凭据，因此以 SecretStr 保存，不会出现在 repr 或日志中。
    """

    model_config = ConfigDict(frozen=True)

    document_id: str
    document_key: SecretStr


class DocumentStatus(BaseModel):
    """单次状态查询得到的瞬时快照。"""

    model_config = ConfigDict(frozen=True)

    document_id: Optional[str] = None
    status: DocumentState
    seconds_remaining: Optional[int] = Field(default=None, ge=0)
    billed_characters: Optional[int] = None
    error_message: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_ok_done_form(cls, data: Any) -> Any:
        # 兼容只含 ok/done 标志的精简响应
        if isinstance(data, dict) and "status" not in data and "ok" in data:
            data = dict(data)
            if not data.pop("ok"):
                data["status"] = DocumentState.ERROR
            elif data.pop("done", False):
                data["status"] = DocumentState.DONE
            else:
                data["status"] = DocumentState.TRANSLATING
            data.pop("done", None)
        return data

    @property
    def ok(self) -> bool:
        """为 False 时表示任务已终止失败，不允许再对该句柄轮询。"""
        return self.status is not DocumentState.ERROR

    @property
    def done(self) -> bool:
        """为 True 时表示任务已成功结束，此时才可以下载结果。"""
        return self.status is DocumentState.DONE


class DocumentTranslateOptions(BaseModel):
    """影响文档翻译的选项。文档翻译只支持术语表与正式程度。"""

    model_config = ConfigDict(frozen=True)

    glossary_id: Optional[str] = None
    formality: Formality = Formality.DEFAULT


class TextTranslateOptions(DocumentTranslateOptions):
    """影响文本翻译的选项，在文档选项的基础上增加了断句与标签处理。"""

    sentence_splitting_mode: SentenceSplittingMode = SentenceSplittingMode.ALL
    preserve_formatting: bool = False
    tag_handling: Optional[str] = None
    outline_detection: bool = True
    non_splitting_tags: tuple[str, ...] = ()
    splitting_tags: tuple[str, ...] = ()
    ignore_tags: tuple[str, ...] = ()


class TextResult(BaseModel):
    """单段文本的翻译结果。"""

    model_config = ConfigDict(frozen=True)

    text: str
    detected_source_language: str


class GlossaryInfo(BaseModel):
    """术语表的描述信息，不包含词条本身。"""

    model_config = ConfigDict(frozen=True)

    glossary_id: str
    name: str
    ready: bool
    source_lang: str
    target_lang: str
    creation_time: datetime
    entry_count: int


class GlossaryLanguagePair(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_lang: str
    target_lang: str


class Language(BaseModel):
    """服务支持的一种源语言或目标语言。"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code: str = Field(alias="language")
    name: str
    supports_formality: Optional[bool] = None


class UsageDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int
    limit: int

    @property
    def limit_reached(self) -> bool:
        return self.count >= self.limit


class Usage(BaseModel):
    """当前计费周期内的账户用量。服务端未返回的类别为 None。"""

    model_config = ConfigDict(frozen=True)

    character: Optional[UsageDetail] = None
    document: Optional[UsageDetail] = None
    team_document: Optional[UsageDetail] = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> Usage:
        details: dict[str, UsageDetail] = {}
        for kind in ("character", "document", "team_document"):
            count = payload.get(f"{kind}_count")
            limit = payload.get(f"{kind}_limit")
            if count is not None and limit is not None:
                details[kind] = UsageDetail(count=count, limit=limit)
        return cls(**details)

    @property
    def any_limit_reached(self) -> bool:
        return any(
            detail.limit_reached
            for detail in (self.character, self.document, self.team_document)
            if detail is not None
        )
