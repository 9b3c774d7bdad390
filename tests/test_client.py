"""测试 Chat Completions 客户端."""

import asyncio
import logging

import httpx
import pytest

from feeddigest.config import ProcessingConfig
from feeddigest.llm.base import HttpStatusError, MalformedResponseError, TransportError
from feeddigest.llm.client import ModelClient, check_connection

from .conftest import FakeModelServer


class TestComplete:
    """测试 complete()."""

    async def test_returns_content(
        self, model_server: FakeModelServer, processing_config: ProcessingConfig
    ) -> None:
        """返回 choices[0].message.content，并发送正确的请求."""
        model_server.reply_content("hello")

        async with model_server.client(processing_config) as client:
            result = await client.complete("system text", "user text")

        assert result == "hello"
        request = model_server.requests[0]
        assert str(request.url) == "https://llm.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert request.headers["Content-Type"] == "application/json"
        payload = model_server.payload()
        assert payload["model"] == "test-model"
        assert payload["messages"] == [
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ]

    async def test_logs_token_usage(
        self,
        model_server: FakeModelServer,
        processing_config: ProcessingConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """返回 usage 时记录 token 用量."""
        model_server.reply_content(
            "ok",
            usage={"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
        )

        with caplog.at_level(logging.INFO, logger="feeddigest.llm.client"):
            async with model_server.client(processing_config) as client:
                await client.complete("s", "u")

        assert "prompt=12, completion=3, total=15" in caplog.text

    async def test_non_200_status(
        self, model_server: FakeModelServer, processing_config: ProcessingConfig
    ) -> None:
        """非 200 状态码 -> HttpStatusError，保留状态码和响应体."""
        model_server.reply(httpx.Response(401, text="unauthorized"))

        async with model_server.client(processing_config) as client:
            with pytest.raises(HttpStatusError) as exc_info:
                await client.complete("s", "u")

        assert exc_info.value.status_code == 401
        assert len(model_server.requests) == 1  # 不自动重试
        assert exc_info.value.body == "unauthorized"
        assert "HTTP 401" in str(exc_info.value)

    async def test_body_not_json(
        self, model_server: FakeModelServer, processing_config: ProcessingConfig
    ) -> None:
        """响应体不是 JSON -> MalformedResponseError."""
        model_server.reply(httpx.Response(200, text="<html>oops</html>"))

        async with model_server.client(processing_config) as client:
            with pytest.raises(MalformedResponseError):
                await client.complete("s", "u")

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"choices": []},
            {"choices": [{"message": {}}]},
            {"choices": [{"message": {"content": None}}]},
        ],
    )
    async def test_missing_content(
        self,
        model_server: FakeModelServer,
        processing_config: ProcessingConfig,
        body: dict,
    ) -> None:
        """缺少 choices[0].message.content -> MalformedResponseError."""
        model_server.reply(httpx.Response(200, json=body))

        async with model_server.client(processing_config) as client:
            with pytest.raises(MalformedResponseError):
                await client.complete("s", "u")

    async def test_connection_error(
        self, model_server: FakeModelServer, processing_config: ProcessingConfig
    ) -> None:
        """连接失败 -> TransportError."""
        model_server.reply(httpx.ConnectError("connection refused"))

        async with model_server.client(processing_config) as client:
            with pytest.raises(TransportError, match="connection refused"):
                await client.complete("s", "u")

    async def test_total_timeout(self, processing_config: ProcessingConfig) -> None:
        """超过总超时时间 -> TransportError."""

        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json={})

        client = ModelClient(processing_config, transport=httpx.MockTransport(slow))
        async with client:
            with pytest.raises(TransportError, match="timed out"):
                await client.complete("s", "u", timeout=0.05)


class TestCheckConnection:
    """测试连接测试."""

    async def test_success(
        self, model_server: FakeModelServer, processing_config: ProcessingConfig
    ) -> None:
        """成功时返回模型输出."""
        model_server.reply_content('{"title": "T", "summary": "S"}')

        result = await check_connection(
            processing_config, transport=httpx.MockTransport(model_server.handler)
        )

        assert result.success is True
        assert result.message == 'API 连接成功，响应: {"title": "T", "summary": "S"}'
        system_prompt = model_server.payload()["messages"][0]["content"]
        assert "English" in system_prompt

    async def test_api_error_message(
        self, model_server: FakeModelServer, processing_config: ProcessingConfig
    ) -> None:
        """错误响应中有 error.message 时使用它."""
        model_server.reply(
            httpx.Response(401, json={"error": {"message": "Invalid API key"}})
        )

        result = await check_connection(
            processing_config, transport=httpx.MockTransport(model_server.handler)
        )

        assert result.success is False
        assert result.message == "API 连接失败: API Error: Invalid API key"

    async def test_api_error_without_message(
        self, model_server: FakeModelServer, processing_config: ProcessingConfig
    ) -> None:
        """错误响应没有 error.message 时使用状态码."""
        model_server.reply(httpx.Response(502, text="Bad Gateway"))

        result = await check_connection(
            processing_config, transport=httpx.MockTransport(model_server.handler)
        )

        assert result.message == "API 连接失败: API Error: HTTP 502"

    async def test_transport_error(
        self, model_server: FakeModelServer, processing_config: ProcessingConfig
    ) -> None:
        """网络错误不会抛出."""
        model_server.reply(httpx.ConnectError("no route to host"))

        result = await check_connection(
            processing_config, transport=httpx.MockTransport(model_server.handler)
        )

        assert result.success is False
        assert result.message.startswith("API 连接失败: ")
        assert "no route to host" in result.message

    async def test_empty_reply_counts_as_success(
        self, model_server: FakeModelServer, processing_config: ProcessingConfig
    ) -> None:
        """接口返回 200 但没有内容时仍视为连接成功."""
        model_server.reply(httpx.Response(200, json={"choices": []}))

        result = await check_connection(
            processing_config, transport=httpx.MockTransport(model_server.handler)
        )

        assert result.success is True
        assert result.message == "API 连接成功，响应: "

    async def test_invalid_endpoint(
        self, model_server: FakeModelServer, processing_config: ProcessingConfig
    ) -> None:
        """接口地址无效时返回失败而不是抛出异常."""
        config = processing_config.model_copy(
            update={"api_endpoint": "https://llm.test:notaport/v1"}
        )

        result = await check_connection(
            config, transport=httpx.MockTransport(model_server.handler)
        )

        assert result.success is False
        assert result.message.startswith("API 连接失败: ")
        assert model_server.requests == []
