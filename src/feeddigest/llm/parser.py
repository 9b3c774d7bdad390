"""解析并校验模型返回的 JSON."""

import json
from typing import Any

from feeddigest.llm.base import SchemaError, SummaryResult

_CLOSERS = {"[": "]", "{": "}"}


def find_json_span(text: str, opener: str) -> str | None:
    """
    找到第一个括号配对完整的 JSON 片段.

    使用括号深度计数（会跳过字符串里的括号），而不是贪婪正则；
    无法解码的候选片段会被跳过，继续从下一个开括号查找。

    Args:
        text: 模型输出的原始文本，可能带有说明文字或代码块标记
        opener: "[" 或 "{"

    Returns:
        可以解码的 JSON 片段，找不到时返回 None
    """
    closer = _CLOSERS[opener]
    start = text.find(opener)

    while start != -1:
        end = _match_bracket(text, start, opener, closer)
        if end is not None:
            candidate = text[start : end + 1]
            try:
                json.loads(candidate)
            except ValueError:
                pass
            else:
                return candidate
        start = text.find(opener, start + 1)

    return None


def _match_bracket(text: str, start: int, opener: str, closer: str) -> int | None:
    """返回与 start 处开括号配对的闭括号位置."""
    depth = 0
    in_string = False
    escaped = False

    for pos in range(start, len(text)):
        char = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return pos

    return None


def _to_result(item: Any, translate: bool) -> SummaryResult:
    """校验单个元素并转换为 SummaryResult."""
    if not isinstance(item, dict):
        msg = "Invalid summary structure in LLM response"
        raise SchemaError(msg)

    title = item.get("title")
    summary = item.get("summary")
    if title is None or summary is None:
        msg = "Invalid summary structure in LLM response"
        raise SchemaError(msg)

    translated = item.get("translated_content") if translate else None
    if translated is not None:
        translated = str(translated)
        if not translated.strip():
            translated = None

    return SummaryResult(
        title=str(title),
        summary=str(summary),
        translated_content=translated,
    )


def parse_summaries(raw: str, expected_count: int) -> list[SummaryResult]:
    """解析摘要模式的 JSON 数组，数量必须与批次一致."""
    span = find_json_span(raw, "[")
    summaries = json.loads(span) if span is not None else None

    if not isinstance(summaries, list) or len(summaries) != expected_count:
        got = len(summaries) if isinstance(summaries, list) else 0
        msg = f"Expected {expected_count} summaries, got {got}"
        raise SchemaError(msg)

    return [_to_result(item, translate=False) for item in summaries]


def parse_translation(raw: str) -> list[SummaryResult]:
    """解析翻译模式的 JSON 对象."""
    span = find_json_span(raw, "{")
    data = json.loads(span) if span is not None else None

    if not isinstance(data, dict):
        msg = "Expected a JSON object in translation response"
        raise SchemaError(msg)

    return [_to_result(data, translate=True)]


def parse_response(raw: str, expected_count: int, translate: bool) -> list[SummaryResult]:
    """按模式解析模型输出."""
    if translate:
        return parse_translation(raw)
    return parse_summaries(raw, expected_count)
