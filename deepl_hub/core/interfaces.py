# deepl_hub/core/interfaces.py
"""
本模块使用 typing.Protocol 定义了编排层所依赖的 REST 客户端接口协议。

编排层只依赖此协议；连接管理、认证头注入与超时由实现方负责。
实现必须支持在多个协程间并发使用，编排层不会为其加锁。
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import IO, Optional, Protocol, Union

import httpx

FormParams = Sequence[tuple[str, str]]
"""有序的 (键, 值) 参数序列，允许重复的键。"""

FileContent = Union[bytes, IO[bytes]]


class RestClient(Protocol):
    """定义了通用 REST 客户端的纯异步接口协议。"""

    async def get(
        self,
        path: str,
        *,
        params: Optional[FormParams] = None,
        accept: Optional[str] = None,
    ) -> httpx.Response: ...

    async def post(
        self, path: str, *, data: Optional[FormParams] = None
    ) -> httpx.Response: ...

    async def upload(
        self,
        path: str,
        *,
        data: FormParams,
        content: FileContent,
        filename: str,
    ) -> httpx.Response: ...

    async def delete(self, path: str) -> httpx.Response: ...

    def stream_post(
        self, path: str, *, data: Optional[FormParams] = None
    ) -> AbstractAsyncContextManager[httpx.Response]:
        """以流式方式发出 POST 请求，响应体在上下文内按块读取。"""
        ...
