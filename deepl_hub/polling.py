# deepl_hub/polling.py
"""本模块提供轮询所需的纯函数：等待时长计算与状态判定，与实际的休眠和网络调用分离。"""

from collections.abc import Awaitable
from enum import Enum
from typing import Callable, Optional

from deepl_hub.core.types import DocumentStatus

Sleeper = Callable[[float], Awaitable[None]]
"""可取消的异步休眠函数，默认为 asyncio.sleep，测试中可替换。"""

MIN_DOCUMENT_WAIT = 1.0
MAX_DOCUMENT_WAIT = 60.0
GLOSSARY_POLL_INTERVAL = 2.0


class PollDecision(str, Enum):
    """对一次文档状态快照的处理决定。"""

    CONTINUE = "continue"
    SUCCEED = "succeed"
    FAIL = "fail"


def document_wait_time(seconds_remaining: Optional[int]) -> float:
    """
    根据服务端给出的剩余时间提示，计算下一次查询前的等待秒数。

    取提示的一半再加 1 秒，以便在预计完成前再查询一次；
    结果限制在 [1, 60] 秒之间。没有提示时按 0 处理。
    """
    hint = seconds_remaining or 0
    wait = hint / 2.0 + 1.0
    return max(MIN_DOCUMENT_WAIT, min(wait, MAX_DOCUMENT_WAIT))


def decide(status: DocumentStatus) -> PollDecision:
    """ok 为 False 即终止失败；done 为 True 即终止成功；其余情况继续轮询。"""
    if not status.ok:
        return PollDecision.FAIL
    if status.done:
        return PollDecision.SUCCEED
    return PollDecision.CONTINUE
