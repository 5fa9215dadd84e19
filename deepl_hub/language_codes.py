# deepl_hub/language_codes.py
"""
本模块负责语言代码的标准化与校验。

标准形式为：主语言子标签小写，其余子标签大写，例如 ``"en-us"`` → ``"en-US"``。
格式校验沿用 ``langcodes`` 库的 BCP 47 解析。
"""

import re
from collections.abc import Mapping
from types import MappingProxyType

from langcodes import Language
from langcodes.tag_parser import LanguageTagError

from deepl_hub.core.exceptions import ValidationError

# 语言子标签应该由 2-3 个字母组成 (BCP 47)
LANGUAGE_SUBTAG_PATTERN = re.compile(r"^[a-zA-Z]{2,3}$")

DEPRECATED_TARGET_LANGS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "en": ("en-GB", "en-US"),
        "pt": ("pt-PT", "pt-BR"),
    }
)
"""已弃用的目标语言代码 → 建议改用的区域变体。新增弃用项只需在此登记。"""


def standardize(code: str) -> str:
    """
    将语言代码转换为标准形式。

    Raises:
        ValidationError: 代码为空，或不是合法的 BCP 47 语言标签。

    """
    code = code.strip().replace("_", "-")
    if not code:
        raise ValidationError("语言代码不能为空。")
    try:
        lang = Language.get(code)
        if not lang.language or not LANGUAGE_SUBTAG_PATTERN.match(lang.language):
            raise LanguageTagError(
                f"Tag '{code}' lacks a valid 2-3 letter language subtag."
            )
    except LanguageTagError as e:
        raise ValidationError(f"提供的语言代码 '{code}' 格式无效。原因: {e}") from e

    primary, *rest = code.split("-")
    return "-".join([primary.lower(), *(part.upper() for part in rest)])


def remove_regional_variant(code: str) -> str:
    """去掉区域后缀，只保留小写的主语言代码，例如 ``"en-US"`` → ``"en"``。"""
    return standardize(code).split("-", 1)[0]


def check_target_not_deprecated(target_lang: str) -> None:
    """若标准化后的目标语言位于弃用登记表中，则抛出 ValidationError 并给出替代建议。"""
    replacements = DEPRECATED_TARGET_LANGS.get(target_lang)
    if replacements is None:
        return
    suggested = " 或 ".join(f'"{code}"' for code in replacements)
    raise ValidationError(
        f'目标语言 "{target_lang}" 已弃用，请改用 {suggested}。'
    )
