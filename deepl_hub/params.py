# deepl_hub/params.py
"""
本模块负责将语言代码与翻译选项组装为有序的请求参数列表。

参数顺序是确定的、只追加的：target_lang, source_lang, glossary_id, formality，
随后（仅文本翻译）依次为断句、保留格式与标签处理相关字段。
只有与默认值不同的字段才会被追加，以保持请求最小化。
"""

from typing import Optional

from deepl_hub.core.exceptions import ValidationError
from deepl_hub.core.types import (
    DocumentTranslateOptions,
    Formality,
    SentenceSplittingMode,
    TextTranslateOptions,
)
from deepl_hub.language_codes import check_target_not_deprecated, standardize

RequestParams = list[tuple[str, str]]


def _build_common_params(
    source_lang: Optional[str],
    target_lang: str,
    options: Optional[DocumentTranslateOptions],
) -> RequestParams:
    """[私有] 校验语言对，并生成文本与文档翻译共有的参数。"""
    target = standardize(target_lang)
    source = standardize(source_lang) if source_lang is not None else None
    check_target_not_deprecated(target)

    params: RequestParams = [("target_lang", target)]
    if source is not None:
        params.append(("source_lang", source))
    if options is None:
        return params

    if options.glossary_id is not None:
        if source is None:
            raise ValidationError("使用术语表时必须提供源语言 (source_lang)。")
        params.append(("glossary_id", options.glossary_id))
    if options.formality is not Formality.DEFAULT:
        params.append(("formality", options.formality.value))
    return params


def build_text_params(
    source_lang: Optional[str],
    target_lang: str,
    options: Optional[TextTranslateOptions] = None,
) -> RequestParams:
    """生成文本翻译请求的参数列表。"""
    params = _build_common_params(source_lang, target_lang, options)
    if options is None:
        return params

    if options.sentence_splitting_mode is not SentenceSplittingMode.ALL:
        params.append(("split_sentences", options.sentence_splitting_mode.value))
    if options.preserve_formatting:
        params.append(("preserve_formatting", "1"))
    if options.tag_handling is not None:
        params.append(("tag_handling", options.tag_handling))
    if not options.outline_detection:
        params.append(("outline_detection", "0"))
    if options.non_splitting_tags:
        params.append(("non_splitting_tags", ",".join(options.non_splitting_tags)))
    if options.splitting_tags:
        params.append(("splitting_tags", ",".join(options.splitting_tags)))
    if options.ignore_tags:
        params.append(("ignore_tags", ",".join(options.ignore_tags)))
    return params


def build_document_params(
    source_lang: Optional[str],
    target_lang: str,
    options: Optional[DocumentTranslateOptions] = None,
) -> RequestParams:
    """生成文档上传请求的参数列表，只有术语表与正式程度会生效。"""
    return _build_common_params(source_lang, target_lang, options)
