"""LLM 基础类型与错误定义."""

from pydantic import BaseModel


class Message(BaseModel):
    """对话消息."""

    role: str  # "system" | "user" | "assistant"
    content: str


class SummaryResult(BaseModel):
    """模型返回的单篇文章摘要."""

    title: str
    summary: str
    translated_content: str | None = None  # 仅翻译模式使用，None 表示保留原文


class DigestError(Exception):
    """摘要流程错误基类."""


class ConfigurationMissingError(DigestError):
    """未配置 API 密钥，跳过整个维护流程."""


class TransportError(DigestError):
    """网络或连接失败（包括超时）."""


class HttpStatusError(DigestError):
    """接口返回非 200 状态码."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"API returned HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class MalformedResponseError(DigestError):
    """响应中缺少 choices[0].message.content."""


class SchemaError(DigestError):
    """模型输出的 JSON 结构或数量不符合预期."""


class EncodingError(DigestError):
    """文章内容无法序列化为 JSON."""
