# deepl_hub/transport.py
"""
本模块提供基于 httpx 的 REST 客户端实现、响应状态码到异常的映射，以及响应体到模型的解析。

客户端内部使用带连接池的 ``httpx.AsyncClient``，可安全地被多个协程并发使用。
本模块不做传输层重试。
"""

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any, Optional, TypeVar

import httpx
import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from deepl_hub import __version__
from deepl_hub.core.exceptions import (
    ApiError,
    AuthorizationError,
    BadRequestError,
    DocumentNotReadyError,
    GlossaryNotFoundError,
    NotFoundError,
    QuotaExceededError,
    ServiceConnectionError,
    TooManyRequestsError,
)
from deepl_hub.core.interfaces import FileContent, FormParams

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SERVER_URL_PRO = "https://api.deepl.com"
SERVER_URL_FREE = "https://api-free.deepl.com"


def is_free_account_key(auth_key: str) -> bool:
    """免费账户的认证密钥以 ``:fx`` 结尾。"""
    return auth_key.rstrip().endswith(":fx")


def resolve_server_url(auth_key: str, server_url: Optional[str] = None) -> str:
    if server_url:
        return server_url
    return SERVER_URL_FREE if is_free_account_key(auth_key) else SERVER_URL_PRO


def _to_form(params: Optional[FormParams]) -> dict[str, list[str]]:
    """[私有] 将有序参数序列转换为 httpx 可编码的表单，重复的键按出现顺序保留。"""
    form: dict[str, list[str]] = {}
    for key, value in params or ():
        form.setdefault(key, []).append(value)
    return form


def _extract_error_message(response: httpx.Response) -> str:
    """[私有] 从错误响应体中提取 message 与 detail 字段。"""
    try:
        body = response.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    parts = [str(body[field]) for field in ("message", "detail") if body.get(field)]
    return ": ".join(parts)


async def check_status_code(
    response: httpx.Response,
    *,
    downloading_document: bool = False,
    glossary: bool = False,
) -> None:
    """
    检查响应状态码，非 2xx 时抛出对应的 ApiError 子类。

    Args:
        response: 待检查的响应，流式响应会先被完整读取。
        downloading_document: 为 True 时 503 表示文档尚未就绪，而不是服务不可用。
        glossary: 为 True 时 404 映射为 GlossaryNotFoundError。

    """
    status = response.status_code
    if 200 <= status < 300:
        return

    await response.aread()
    api_message = _extract_error_message(response)

    def describe(default: str) -> str:
        return api_message or default

    if status == 403:
        raise AuthorizationError(describe("授权失败，请检查认证密钥。"), status)
    if status == 456:
        raise QuotaExceededError(describe("当前计费周期的额度已用尽。"), status)
    if status == 404:
        if glossary:
            raise GlossaryNotFoundError(describe("术语表不存在。"), status)
        raise NotFoundError(describe("请求的资源不存在。"), status)
    if status == 400:
        raise BadRequestError(describe("请求无效。"), status)
    if status == 429:
        raise TooManyRequestsError(describe("请求过于频繁，请稍后再试。"), status)
    if status == 503:
        if downloading_document:
            raise DocumentNotReadyError(describe("文档尚未翻译完成。"), status)
        raise ServiceConnectionError(describe("服务暂时不可用。"), status)
    raise ApiError(describe(f"意外的状态码: {status}"), status)


def invalid_response_error(response: httpx.Response, error: Exception) -> ApiError:
    return ApiError(f"服务端响应格式无效: {error}", response.status_code)


def parse_response(model: type[ModelT], response: httpx.Response) -> ModelT:
    """将 2xx 响应体解析为模型。响应体不是合法 JSON 或与模型不符时抛出 ApiError。"""
    try:
        return model.model_validate(response.json())
    except (PydanticValidationError, ValueError) as e:
        raise invalid_response_error(response, e) from e


def parse_response_list(
    model: type[ModelT], response: httpx.Response, key: Optional[str] = None
) -> list[ModelT]:
    """将 2xx 响应体中的数组（或 key 对应的数组）逐项解析为模型。"""
    try:
        body: Any = response.json()
        items = body.get(key, []) if key is not None else body
        if not isinstance(items, list):
            raise TypeError(f"期望数组，实际为 {type(items).__name__}")
        return [model.model_validate(item) for item in items]
    except (PydanticValidationError, ValueError, AttributeError, TypeError) as e:
        raise invalid_response_error(response, e) from e


class HttpxRestClient:
    """基于 ``httpx.AsyncClient`` 的 RestClient 实现。"""

    def __init__(self, http_client: httpx.AsyncClient):
        self._http = http_client

    @classmethod
    def create(
        cls,
        *,
        auth_key: str,
        server_url: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout_total: float = 30.0,
        timeout_connect: float = 5.0,
        max_connections: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "HttpxRestClient":
        """根据认证密钥构建客户端。调用方提供的请求头优先（大小写不敏感）。"""
        merged_headers = httpx.Headers(dict(headers or {}))
        merged_headers.setdefault("User-Agent", f"deepl-hub/{__version__}")
        merged_headers.setdefault("Authorization", f"DeepL-Auth-Key {auth_key}")

        base_url = resolve_server_url(auth_key, server_url)
        http_client = httpx.AsyncClient(
            base_url=base_url,
            headers=merged_headers,
            timeout=httpx.Timeout(timeout_total, connect=timeout_connect),
            limits=httpx.Limits(max_connections=max_connections),
            transport=transport,
        )
        logger.debug("HTTP 客户端已创建。", base_url=base_url)
        return cls(http_client)

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    async def aclose(self) -> None:
        if not self._http.is_closed:
            await self._http.aclose()
            logger.debug("HTTP 客户端已关闭。")

    async def _send(self, method: str, path: str, **kwargs: object) -> httpx.Response:
        try:
            return await self._http.request(method, path, **kwargs)  # type: ignore[arg-type]
        except httpx.TransportError as e:
            raise ServiceConnectionError(f"连接翻译服务失败: {e}") from e

    async def get(
        self,
        path: str,
        *,
        params: Optional[FormParams] = None,
        accept: Optional[str] = None,
    ) -> httpx.Response:
        headers = {"Accept": accept} if accept else None
        return await self._send(
            "GET", path, params=list(params) if params else None, headers=headers
        )

    async def post(
        self, path: str, *, data: Optional[FormParams] = None
    ) -> httpx.Response:
        return await self._send("POST", path, data=_to_form(data))

    async def upload(
        self,
        path: str,
        *,
        data: FormParams,
        content: FileContent,
        filename: str,
    ) -> httpx.Response:
        return await self._send(
            "POST", path, data=_to_form(data), files={"file": (filename, content)}
        )

    async def delete(self, path: str) -> httpx.Response:
        return await self._send("DELETE", path)

    @asynccontextmanager
    async def stream_post(
        self, path: str, *, data: Optional[FormParams] = None
    ) -> AsyncIterator[httpx.Response]:
        try:
            async with self._http.stream("POST", path, data=_to_form(data)) as response:
                yield response
        except httpx.TransportError as e:
            raise ServiceConnectionError(f"连接翻译服务失败: {e}") from e
