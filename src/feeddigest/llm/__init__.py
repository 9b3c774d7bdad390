"""LLM 调用层."""

from feeddigest.llm.base import (
    ConfigurationMissingError,
    DigestError,
    EncodingError,
    HttpStatusError,
    MalformedResponseError,
    Message,
    SchemaError,
    SummaryResult,
    TransportError,
)
from feeddigest.llm.client import ConnectionTestResult, ModelClient, check_connection
from feeddigest.llm.parser import parse_response, parse_summaries, parse_translation
from feeddigest.llm.prompts import (
    build_articles_prompt,
    build_system_prompt,
    is_translate_mode,
)

__all__ = [
    "ConfigurationMissingError",
    "ConnectionTestResult",
    "DigestError",
    "EncodingError",
    "HttpStatusError",
    "MalformedResponseError",
    "Message",
    "ModelClient",
    "SchemaError",
    "SummaryResult",
    "TransportError",
    "build_articles_prompt",
    "build_system_prompt",
    "check_connection",
    "is_translate_mode",
    "parse_response",
    "parse_summaries",
    "parse_translation",
]
