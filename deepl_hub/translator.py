# deepl_hub/translator.py
"""本模块包含 deepl-hub 的对外入口 Translator，它持有共享的 REST 客户端并组合各个编排器。"""

import asyncio
from collections.abc import Mapping, Sequence
from types import TracebackType
from typing import IO, Optional, Union, overload

import structlog
from pydantic import ValidationError as PydanticValidationError

from deepl_hub.config import DeepLHubConfig
from deepl_hub.core.exceptions import ApiError, ConfigurationError, ValidationError
from deepl_hub.core.interfaces import FileContent, RestClient
from deepl_hub.core.types import (
    DocumentHandle,
    DocumentStatus,
    DocumentTranslateOptions,
    GlossaryInfo,
    GlossaryLanguagePair,
    Language,
    TextResult,
    TextTranslateOptions,
    Usage,
)
from deepl_hub.documents import DocumentTranslator, PathLike
from deepl_hub.glossaries import GlossaryEntries, GlossaryManager, GlossaryRef
from deepl_hub.params import build_text_params
from deepl_hub.polling import Sleeper
from deepl_hub.transport import (
    HttpxRestClient,
    check_status_code,
    invalid_response_error,
    is_free_account_key,
    parse_response_list,
)

logger = structlog.get_logger(__name__)


class Translator:
    """
    翻译服务的异步客户端。

    所有方法都可以在多个协程中并发调用；每次调用只持有自己的状态，
    唯一共享的是底层带连接池的 REST 客户端。推荐以 ``async with`` 使用以确保连接被释放。
    """

    def __init__(
        self,
        auth_key: Optional[str] = None,
        *,
        config: Optional[DeepLHubConfig] = None,
        client: Optional[RestClient] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.config = config or DeepLHubConfig()
        self._owned_client: Optional[HttpxRestClient] = None

        if client is None:
            if auth_key is None and self.config.auth_key is not None:
                auth_key = self.config.auth_key.get_secret_value()
            auth_key = (auth_key or "").strip()
            if not auth_key:
                raise ConfigurationError("缺少认证密钥 (DH_AUTH_KEY)。")
            self._owned_client = HttpxRestClient.create(
                auth_key=auth_key,
                server_url=self.config.server_url,
                headers=self.config.headers,
                timeout_total=self.config.timeout_total,
                timeout_connect=self.config.timeout_connect,
                max_connections=self.config.max_connections,
            )
            client = self._owned_client

        self._client: RestClient = client
        self.documents = DocumentTranslator(client, sleep=sleep)
        self.glossaries = GlossaryManager(client, sleep=sleep)

    @staticmethod
    def is_free_account(auth_key: str) -> bool:
        return is_free_account_key(auth_key)

    async def close(self) -> None:
        """关闭由本实例创建的 HTTP 客户端；外部传入的客户端由调用方负责关闭。"""
        if self._owned_client is not None:
            await self._owned_client.aclose()

    async def __aenter__(self) -> "Translator":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    async def get_usage(self) -> Usage:
        response = await self._client.get("/v2/usage")
        await check_status_code(response)
        try:
            return Usage.from_api(response.json())
        except (PydanticValidationError, ValueError, AttributeError) as e:
            raise invalid_response_error(response, e) from e

    @overload
    async def translate_text(
        self,
        text: str,
        target_lang: str,
        *,
        source_lang: Optional[str] = None,
        options: Optional[TextTranslateOptions] = None,
    ) -> TextResult: ...

    @overload
    async def translate_text(
        self,
        text: Sequence[str],
        target_lang: str,
        *,
        source_lang: Optional[str] = None,
        options: Optional[TextTranslateOptions] = None,
    ) -> list[TextResult]: ...

    async def translate_text(
        self,
        text: Union[str, Sequence[str]],
        target_lang: str,
        *,
        source_lang: Optional[str] = None,
        options: Optional[TextTranslateOptions] = None,
    ) -> Union[TextResult, list[TextResult]]:
        """翻译一段或多段文本。传入 str 时返回单个结果，传入序列时按顺序返回结果列表。"""
        texts = [text] if isinstance(text, str) else list(text)
        if not texts:
            raise ValidationError("待翻译文本不能为空。")
        if any(not item for item in texts):
            raise ValidationError("待翻译文本中不能包含空字符串。")

        params = build_text_params(source_lang, target_lang, options)
        params.extend(("text", item) for item in texts)
        response = await self._client.post("/v2/translate", data=params)
        await check_status_code(response)
        results = parse_response_list(TextResult, response, "translations")
        if len(results) != len(texts):
            raise ApiError(
                f"服务端返回了 {len(results)} 条译文，应为 {len(texts)} 条。",
                response.status_code,
            )
        logger.debug("文本翻译完成。", count=len(results), target_lang=target_lang)
        return results[0] if isinstance(text, str) else results

    async def _get_languages(self, kind: str) -> list[Language]:
        response = await self._client.get("/v2/languages", params=[("type", kind)])
        await check_status_code(response)
        return parse_response_list(Language, response)

    async def get_source_languages(self) -> list[Language]:
        return await self._get_languages("source")

    async def get_target_languages(self) -> list[Language]:
        return await self._get_languages("target")

    async def get_glossary_languages(self) -> list[GlossaryLanguagePair]:
        response = await self._client.get("/v2/glossary-language-pairs")
        await check_status_code(response)
        return parse_response_list(
            GlossaryLanguagePair, response, "supported_languages"
        )

    # --- 文档翻译 ---

    async def translate_document(
        self,
        content: FileContent,
        filename: str,
        sink: IO[bytes],
        target_lang: str,
        *,
        source_lang: Optional[str] = None,
        options: Optional[DocumentTranslateOptions] = None,
    ) -> None:
        await self.documents.translate(
            content, filename, sink, target_lang, source_lang=source_lang, options=options
        )

    async def translate_document_file(
        self,
        input_path: PathLike,
        output_path: PathLike,
        target_lang: str,
        *,
        source_lang: Optional[str] = None,
        options: Optional[DocumentTranslateOptions] = None,
    ) -> None:
        await self.documents.translate_file(
            input_path, output_path, target_lang, source_lang=source_lang, options=options
        )

    async def translate_document_upload(
        self,
        content: FileContent,
        filename: str,
        target_lang: str,
        *,
        source_lang: Optional[str] = None,
        options: Optional[DocumentTranslateOptions] = None,
    ) -> DocumentHandle:
        return await self.documents.upload(
            content, filename, target_lang, source_lang=source_lang, options=options
        )

    async def translate_document_upload_file(
        self,
        input_path: PathLike,
        target_lang: str,
        *,
        source_lang: Optional[str] = None,
        options: Optional[DocumentTranslateOptions] = None,
    ) -> DocumentHandle:
        return await self.documents.upload_file(
            input_path, target_lang, source_lang=source_lang, options=options
        )

    async def translate_document_status(self, handle: DocumentHandle) -> DocumentStatus:
        return await self.documents.get_status(handle)

    async def translate_document_wait_until_done(
        self, handle: DocumentHandle
    ) -> DocumentStatus:
        return await self.documents.wait_until_done(handle)

    async def translate_document_download(
        self, handle: DocumentHandle, sink: IO[bytes]
    ) -> None:
        await self.documents.download(handle, sink)

    async def translate_document_download_file(
        self, handle: DocumentHandle, output_path: PathLike
    ) -> None:
        await self.documents.download_to_file(handle, output_path)

    # --- 术语表 ---

    async def create_glossary(
        self,
        name: str,
        source_lang: str,
        target_lang: str,
        entries: Union[GlossaryEntries, Mapping[str, str]],
    ) -> GlossaryInfo:
        return await self.glossaries.create(name, source_lang, target_lang, entries)

    async def get_glossary(self, glossary: GlossaryRef) -> GlossaryInfo:
        return await self.glossaries.get(glossary)

    async def wait_until_glossary_ready(self, glossary: GlossaryRef) -> GlossaryInfo:
        return await self.glossaries.wait_until_ready(glossary)

    async def list_glossaries(self) -> list[GlossaryInfo]:
        return await self.glossaries.list_all()

    async def get_glossary_entries(self, glossary: GlossaryRef) -> GlossaryEntries:
        return await self.glossaries.get_entries(glossary)

    async def delete_glossary(self, glossary: GlossaryRef) -> None:
        await self.glossaries.delete(glossary)
