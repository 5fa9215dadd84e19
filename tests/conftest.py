# tests/conftest.py
"""项目全局共享的测试 Fixtures。"""

from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any, Union
from urllib.parse import parse_qsl

import httpx
import pytest
import pytest_asyncio
from pytest_mock import MockerFixture
from rich.console import Console

from deepl_hub.transport import HttpxRestClient

TEST_AUTH_KEY = "test-auth-key:fx"

Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


@pytest.fixture(scope="session", autouse=True)
def disable_rich_colors_for_tests(
    session_mocker: MockerFixture,
) -> Generator[None, None, None]:
    """全局禁用 rich 库的颜色输出，以确保测试结果的确定性。"""
    original_init = Console.__init__

    def new_init(self: Console, *args: Any, **kwargs: Any) -> None:
        kwargs["force_terminal"] = False
        kwargs["color_system"] = None
        original_init(self, *args, **kwargs)

    session_mocker.patch("rich.console.Console.__init__", new=new_init)
    yield


class FakeApi:
    """
    按脚本应答的翻译服务替身，作为 ``httpx.MockTransport`` 的处理函数使用。

    每个 (方法, 路径) 对应一个先进先出的应答队列；队列耗尽时测试立即失败。
    应答可以是构造好的响应、要抛出的异常，或根据请求生成响应的函数。
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], list[Reply]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        *,
        json: Any = None,
        content: Union[bytes, str, None] = None,
        error: Union[Exception, None] = None,
        handler: Union[Callable[[httpx.Request], httpx.Response], None] = None,
    ) -> "FakeApi":
        reply: Reply
        if error is not None:
            reply = error
        elif handler is not None:
            reply = handler
        elif json is not None:
            reply = httpx.Response(status_code, json=json)
        else:
            reply = httpx.Response(status_code, content=content or b"")
        self._routes.setdefault((method, path), []).append(reply)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            raise AssertionError(
                f"未预期的请求: {request.method} {request.url.path}"
            )
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and r.url.path == path
        ]

    @staticmethod
    def form(request: httpx.Request) -> list[tuple[str, str]]:
        """解析 urlencoded 表单请求体，保留参数顺序。"""
        return parse_qsl(request.content.decode(), keep_blank_values=True)


class RecordingSleep:
    """记录每次等待时长的休眠替身，不真正等待。"""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest_asyncio.fixture
async def rest_client(fake_api: FakeApi) -> AsyncGenerator[HttpxRestClient, None]:
    """提供一个请求全部由 FakeApi 应答的 HttpxRestClient。"""
    client = HttpxRestClient.create(
        auth_key=TEST_AUTH_KEY, transport=httpx.MockTransport(fake_api)
    )
    yield client
    await client.aclose()
