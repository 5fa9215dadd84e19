# deepl_hub/documents.py
"""
本模块包含文档翻译任务的编排器：上传 → 轮询直至完成 → 下载。

状态流转为 NotStarted → Uploaded → Translating → Done 或 Failed。上传失败时不存在句柄。
组合操作 ``translate`` 在单一错误边界内依次执行三个阶段，任何失败都会被包装为
DocumentTranslationError，并携带截至失败时已取得的句柄，调用方可据此继续等待和下载而无需重新上传。
"""

import asyncio
from pathlib import Path
from typing import IO, Optional, Union

import structlog

from deepl_hub.core.exceptions import ApiError, DocumentTranslationError
from deepl_hub.core.interfaces import FileContent, RestClient
from deepl_hub.core.types import (
    DocumentHandle,
    DocumentStatus,
    DocumentTranslateOptions,
)
from deepl_hub.params import build_document_params
from deepl_hub.polling import PollDecision, Sleeper, decide, document_wait_time
from deepl_hub.transport import check_status_code, parse_response

logger = structlog.get_logger(__name__)

PathLike = Union[str, Path]


def _remove_quietly(path: Path) -> None:
    """[私有] 尽力删除写了一半的输出文件，删除失败时忽略。"""
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("无法删除未完成的输出文件。", path=str(path))


class DocumentTranslator:
    """
    文档翻译任务的异步编排器。

    每次调用都只持有自己的句柄与状态快照，同一实例上的并发任务相互独立。
    唯一共享的资源是 RestClient。
    """

    def __init__(self, client: RestClient, sleep: Sleeper = asyncio.sleep):
        self._client = client
        self._sleep = sleep

    async def upload(
        self,
        content: FileContent,
        filename: str,
        target_lang: str,
        *,
        source_lang: Optional[str] = None,
        options: Optional[DocumentTranslateOptions] = None,
    ) -> DocumentHandle:
        """
        上传文档并开始翻译。

        参数校验在任何网络请求之前完成；参数无效时抛出 ValidationError。
        """
        params = build_document_params(source_lang, target_lang, options)
        response = await self._client.upload(
            "/v2/document/", data=params, content=content, filename=filename
        )
        await check_status_code(response)
        handle = parse_response(DocumentHandle, response)
        logger.info(
            "文档已上传。", document_id=handle.document_id, filename=filename
        )
        return handle

    async def upload_file(
        self,
        input_path: PathLike,
        target_lang: str,
        *,
        source_lang: Optional[str] = None,
        options: Optional[DocumentTranslateOptions] = None,
    ) -> DocumentHandle:
        """上传本地文件，文件名用于让服务端判断文档类型。"""
        input_path = Path(input_path)
        with input_path.open("rb") as input_file:
            return await self.upload(
                input_file,
                input_path.name,
                target_lang,
                source_lang=source_lang,
                options=options,
            )

    async def get_status(self, handle: DocumentHandle) -> DocumentStatus:
        """查询一次文档翻译状态。"""
        response = await self._client.post(
            f"/v2/document/{handle.document_id}",
            data=[("document_key", handle.document_key.get_secret_value())],
        )
        await check_status_code(response)
        return parse_response(DocumentStatus, response)

    async def wait_until_done(self, handle: DocumentHandle) -> DocumentStatus:
        """
        反复查询状态，直到翻译完成或失败。

        每两次查询之间按剩余时间提示退避等待；等待可被取消，取消时
        asyncio.CancelledError 直接向上传播。

        Returns:
            最终的已完成状态。

        Raises:
            ApiError: 服务端报告翻译失败，消息取自 error_message。

        """
        status = await self.get_status(handle)
        while (decision := decide(status)) is PollDecision.CONTINUE:
            wait = document_wait_time(status.seconds_remaining)
            logger.debug(
                "文档仍在翻译中，稍后再次查询。",
                document_id=handle.document_id,
                state=status.status.value,
                seconds_remaining=status.seconds_remaining,
                wait_seconds=wait,
            )
            await self._sleep(wait)
            status = await self.get_status(handle)

        if decision is PollDecision.FAIL:
            logger.warning(
                "文档翻译失败。",
                document_id=handle.document_id,
                error=status.error_message,
            )
            raise ApiError(status.error_message or "Unknown error")

        logger.info(
            "文档翻译已完成。",
            document_id=handle.document_id,
            billed_characters=status.billed_characters,
        )
        return status

    async def download(self, handle: DocumentHandle, sink: IO[bytes]) -> None:
        """
        将翻译结果以流式方式写入 sink。

        Raises:
            DocumentNotReadyError: 服务端表示结果尚未就绪。
            ApiError: 其他非 2xx 响应。

        """
        async with self._client.stream_post(
            f"/v2/document/{handle.document_id}/result",
            data=[("document_key", handle.document_key.get_secret_value())],
        ) as response:
            await check_status_code(response, downloading_document=True)
            async for chunk in response.aiter_bytes():
                sink.write(chunk)
        logger.info("翻译结果已下载。", document_id=handle.document_id)

    async def download_to_file(
        self, handle: DocumentHandle, output_path: PathLike
    ) -> None:
        """下载到新建的文件；文件已存在时抛出 FileExistsError，失败时删除写了一半的文件。"""
        output_path = Path(output_path)
        output_file = output_path.open("xb")
        try:
            with output_file:
                await self.download(handle, output_file)
        except BaseException:
            _remove_quietly(output_path)
            raise

    async def translate(
        self,
        content: FileContent,
        filename: str,
        sink: IO[bytes],
        target_lang: str,
        *,
        source_lang: Optional[str] = None,
        options: Optional[DocumentTranslateOptions] = None,
    ) -> None:
        """
        完整执行上传、等待与下载。

        Raises:
            DocumentTranslationError: 任一阶段失败（包括被取消）。其 document_handle
                在上传成功后为上传返回的句柄，否则为 None。

        """
        handle: Optional[DocumentHandle] = None
        try:
            handle = await self.upload(
                content,
                filename,
                target_lang,
                source_lang=source_lang,
                options=options,
            )
            await self.wait_until_done(handle)
            await self.download(handle, sink)
        except (Exception, asyncio.CancelledError) as e:
            raise DocumentTranslationError(
                f"文档翻译过程中发生错误: {e}", cause=e, document_handle=handle
            ) from e

    async def translate_file(
        self,
        input_path: PathLike,
        output_path: PathLike,
        target_lang: str,
        *,
        source_lang: Optional[str] = None,
        options: Optional[DocumentTranslateOptions] = None,
    ) -> None:
        """
        翻译本地文件并写入新建的输出文件。

        输出文件以独占方式创建，已存在时抛出 FileExistsError 且不会触碰原文件。
        流水线中任一阶段失败时，写了一半的输出文件会被删除，随后原错误继续向上传播。
        """
        input_path = Path(input_path)
        output_path = Path(output_path)
        with input_path.open("rb") as input_file:
            output_file = output_path.open("xb")
            try:
                with output_file:
                    await self.translate(
                        input_file,
                        input_path.name,
                        output_file,
                        target_lang,
                        source_lang=source_lang,
                        options=options,
                    )
            except BaseException:
                _remove_quietly(output_path)
                raise
