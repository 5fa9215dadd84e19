# deepl_hub/glossaries.py
"""本模块提供术语表词条的 TSV 转换，以及术语表的管理与就绪轮询。"""

import asyncio
from collections.abc import Iterator, Mapping
from typing import Optional, Union

import structlog

from deepl_hub.core.exceptions import ValidationError
from deepl_hub.core.interfaces import RestClient
from deepl_hub.core.types import GlossaryInfo
from deepl_hub.language_codes import remove_regional_variant
from deepl_hub.polling import GLOSSARY_POLL_INTERVAL, Sleeper
from deepl_hub.transport import (
    check_status_code,
    parse_response,
    parse_response_list,
)

logger = structlog.get_logger(__name__)

_FORBIDDEN_CHARS = frozenset(
    [chr(c) for c in range(0, 32)]
    + [chr(c) for c in range(128, 160)]
    + ["\u2028", "\u2029"]
)


def validate_glossary_term(term: str) -> None:
    """术语不能为空，也不能包含 C0/C1 控制字符或行/段分隔符。"""
    if not term:
        raise ValidationError("术语不能为空。")
    for char in term:
        if char in _FORBIDDEN_CHARS:
            raise ValidationError(
                f"术语 '{term}' 包含无效字符 U+{ord(char):04X}。"
            )


class GlossaryEntries(Mapping[str, str]):
    """术语表词条：按插入顺序保存的 源术语 → 目标术语 映射。"""

    def __init__(
        self, entries: Optional[Mapping[str, str]] = None, *, skip_checks: bool = False
    ):
        self._entries: dict[str, str] = dict(entries or {})
        if not skip_checks:
            for source, target in self._entries.items():
                validate_glossary_term(source)
                validate_glossary_term(target)

    @classmethod
    def from_tsv(cls, tsv: str, *, skip_checks: bool = False) -> "GlossaryEntries":
        """
        解析以制表符分隔的词条文本，每行一条。空行会被忽略。

        Raises:
            ValidationError: 某行不是恰好两列，或源术语重复。

        """
        entries: dict[str, str] = {}
        for line_number, line in enumerate(tsv.splitlines(), start=1):
            if not line.strip():
                continue
            parts = line.split("\t")
            if len(parts) != 2:
                raise ValidationError(
                    f"第 {line_number} 行格式无效，应包含且仅包含一个制表符: '{line}'"
                )
            source, target = (part.strip() for part in parts)
            if source in entries:
                raise ValidationError(
                    f"第 {line_number} 行的源术语 '{source}' 重复。"
                )
            entries[source] = target
        return cls(entries, skip_checks=skip_checks)

    def to_tsv(self) -> str:
        return "\n".join(f"{source}\t{target}" for source, target in self._entries.items())

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"GlossaryEntries({self._entries!r})"


GlossaryRef = Union[str, GlossaryInfo]


def _glossary_id(glossary: GlossaryRef) -> str:
    return glossary.glossary_id if isinstance(glossary, GlossaryInfo) else glossary


class GlossaryManager:
    """术语表的增删查，以及等待新建术语表就绪。"""

    def __init__(self, client: RestClient, sleep: Sleeper = asyncio.sleep):
        self._client = client
        self._sleep = sleep

    async def create(
        self,
        name: str,
        source_lang: str,
        target_lang: str,
        entries: Union[GlossaryEntries, Mapping[str, str]],
    ) -> GlossaryInfo:
        """创建术语表。语言对按主语言比较，区域后缀会被去掉。"""
        if not name:
            raise ValidationError("术语表名称不能为空。")
        if not isinstance(entries, GlossaryEntries):
            entries = GlossaryEntries(entries)
        if not entries:
            raise ValidationError("术语表至少需要包含一条词条。")

        params = [
            ("name", name),
            ("source_lang", remove_regional_variant(source_lang)),
            ("target_lang", remove_regional_variant(target_lang)),
            ("entries_format", "tsv"),
            ("entries", entries.to_tsv()),
        ]
        response = await self._client.post("/v2/glossaries", data=params)
        await check_status_code(response, glossary=True)
        info = parse_response(GlossaryInfo, response)
        logger.info(
            "术语表已创建。",
            glossary_id=info.glossary_id,
            entry_count=info.entry_count,
            ready=info.ready,
        )
        return info

    async def get(self, glossary: GlossaryRef) -> GlossaryInfo:
        response = await self._client.get(f"/v2/glossaries/{_glossary_id(glossary)}")
        await check_status_code(response, glossary=True)
        return parse_response(GlossaryInfo, response)

    async def wait_until_ready(self, glossary: GlossaryRef) -> GlossaryInfo:
        """
        以固定间隔查询术语表，直到其可用于翻译。

        术语表的准备时间短且有上限，因此使用固定的 2 秒间隔而非递增退避。
        等待可被取消，取消时 asyncio.CancelledError 直接向上传播。
        """
        glossary_id = _glossary_id(glossary)
        info = await self.get(glossary_id)
        while not info.ready:
            logger.debug(
                "术语表尚未就绪，稍后再次查询。",
                glossary_id=glossary_id,
                wait_seconds=GLOSSARY_POLL_INTERVAL,
            )
            await self._sleep(GLOSSARY_POLL_INTERVAL)
            info = await self.get(glossary_id)
        logger.info("术语表已就绪。", glossary_id=glossary_id)
        return info

    async def list_all(self) -> list[GlossaryInfo]:
        response = await self._client.get("/v2/glossaries")
        await check_status_code(response, glossary=True)
        return parse_response_list(GlossaryInfo, response, "glossaries")

    async def get_entries(self, glossary: GlossaryRef) -> GlossaryEntries:
        response = await self._client.get(
            f"/v2/glossaries/{_glossary_id(glossary)}/entries",
            accept="text/tab-separated-values",
        )
        await check_status_code(response, glossary=True)
        return GlossaryEntries.from_tsv(response.text, skip_checks=True)

    async def delete(self, glossary: GlossaryRef) -> None:
        glossary_id = _glossary_id(glossary)
        response = await self._client.delete(f"/v2/glossaries/{glossary_id}")
        await check_status_code(response, glossary=True)
        logger.info("术语表已删除。", glossary_id=glossary_id)
