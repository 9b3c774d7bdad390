"""OpenAI 兼容 Chat Completions 客户端."""

import asyncio
import json
import logging
from typing import Any

import httpx
from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
)
from openai.types.chat import ChatCompletion
from pydantic import BaseModel

from feeddigest.config import ProcessingConfig
from feeddigest.llm.base import (
    HttpStatusError,
    MalformedResponseError,
    Message,
    TransportError,
)

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 30.0
DIGEST_TIMEOUT = 180.0  # 大批次摘要可能较慢
TEST_TIMEOUT = 30.0

TEST_SYSTEM_PROMPT = """You are testing an API connection. Summarize the following article concisely in {dest_language}.
Respond with a JSON object: {{"title": "translated title", "summary": "your summary"}}"""

TEST_USER_PROMPT = """Article to summarize:
Title: "New AI Model Released"
Content: "A new artificial intelligence model was released today by researchers. The model shows significant improvements in natural language understanding and generation tasks. It is now available for testing.\""""


class ConnectionTestResult(BaseModel):
    """连接测试结果."""

    success: bool
    message: str


class ModelClient:
    """Chat Completions 客户端，每次调用发送一个请求，不自动重试."""

    def __init__(
        self,
        config: ProcessingConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        http_client = httpx.AsyncClient(transport=transport) if transport else None
        self.client = AsyncOpenAI(
            api_key=config.secret_key,
            base_url=config.base_url,
            max_retries=0,
            timeout=httpx.Timeout(DIGEST_TIMEOUT, connect=CONNECT_TIMEOUT),
            http_client=http_client,
        )

    async def close(self) -> None:
        """关闭客户端."""
        await self.client.close()

    async def __aenter__(self) -> "ModelClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        timeout: float = DIGEST_TIMEOUT,
    ) -> str:
        """发送 system + user 两条消息，返回模型输出的原始文本."""
        messages = [
            Message(role="system", content=system_prompt),
            Message(role="user", content=user_prompt),
        ]
        completion = await self._create(messages, timeout)
        content = _extract_content(completion)
        _log_usage(completion)
        return content

    async def _create(
        self, messages: list[Message], timeout: float
    ) -> ChatCompletion:
        """调用接口，并把 SDK 异常转换为摘要流程的错误."""
        openai_messages: list[dict[str, Any]] = [
            {"role": m.role, "content": m.content} for m in messages
        ]
        request_timeout = httpx.Timeout(timeout, connect=min(CONNECT_TIMEOUT, timeout))

        try:
            completion = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.config.model,
                    messages=openai_messages,  # type: ignore[arg-type]
                    timeout=request_timeout,
                ),
                timeout=timeout,
            )
        except (TimeoutError, APITimeoutError) as e:
            msg = f"API call timed out after {timeout:.0f}s"
            raise TransportError(msg) from e
        except APIConnectionError as e:
            msg = f"API call failed: {e.__cause__ or e}"
            raise TransportError(msg) from e
        except APIStatusError as e:
            raise HttpStatusError(e.status_code, e.response.text) from e
        except APIError as e:
            msg = f"Invalid API response format: {e}"
            raise MalformedResponseError(msg) from e
        except httpx.InvalidURL as e:
            msg = f"API call failed: {e}"
            raise TransportError(msg) from e

        # 响应体不是 JSON 时 SDK 直接返回文本
        if not isinstance(completion, ChatCompletion):
            msg = "Invalid API response format: body is not a chat completion"
            raise MalformedResponseError(msg)
        return completion


def _extract_content(completion: ChatCompletion) -> str:
    """提取 choices[0].message.content."""
    try:
        content = completion.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as e:
        msg = "Invalid API response format: missing choices[0].message.content"
        raise MalformedResponseError(msg) from e

    if not isinstance(content, str):
        msg = "Invalid API response format: message content is not a string"
        raise MalformedResponseError(msg)
    return content


def _log_usage(completion: ChatCompletion) -> None:
    """记录 token 用量（服务商未返回时忽略）."""
    usage = getattr(completion, "usage", None)
    if usage is None:
        return
    logger.info(
        f"Token 用量: prompt={getattr(usage, 'prompt_tokens', None)}, "
        f"completion={getattr(usage, 'completion_tokens', None)}, "
        f"total={getattr(usage, 'total_tokens', None)}"
    )


def _error_message(error: HttpStatusError) -> str:
    """从错误响应中取出服务商的错误信息."""
    try:
        body = json.loads(error.body)
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message")
        if message:
            return str(message)
    return f"HTTP {error.status_code}"


async def check_connection(
    config: ProcessingConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ConnectionTestResult:
    """用一篇示例文章测试 API 连接，不抛出异常."""
    system_prompt = TEST_SYSTEM_PROMPT.format(dest_language=config.dest_language)

    try:
        async with ModelClient(config, transport=transport) as client:
            result = await client.complete(
                system_prompt, TEST_USER_PROMPT, timeout=TEST_TIMEOUT
            )
    except HttpStatusError as e:
        return ConnectionTestResult(
            success=False, message=f"API 连接失败: API Error: {_error_message(e)}"
        )
    except MalformedResponseError:
        # 接口可达，只是没有返回内容
        result = ""
    except Exception as e:
        return ConnectionTestResult(success=False, message=f"API 连接失败: {e}")

    return ConnectionTestResult(success=True, message=f"API 连接成功，响应: {result}")
