"""测试配置和 fixtures."""

import json
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from feeddigest import config as config_module
from feeddigest.config import ProcessingConfig, Settings
from feeddigest.llm.client import ModelClient
from feeddigest.main import app
from feeddigest.models.database import get_session
from feeddigest.models.entry import Entry
from feeddigest.models.feed import Feed

TEST_ENDPOINT = "https://llm.test/v1"


class FakeModelServer:
    """按顺序返回预设响应的模型服务，并记录收到的请求."""

    def __init__(self) -> None:
        self.replies: list[httpx.Response | Exception] = []
        self.requests: list[httpx.Request] = []

    def reply(self, response: httpx.Response | Exception) -> None:
        """追加一个原始响应（或要抛出的异常）."""
        self.replies.append(response)

    def reply_content(self, content: str, usage: dict | None = None) -> None:
        """追加一个正常的 Chat Completions 响应."""
        body: dict[str, Any] = {"choices": [{"message": {"content": content}}]}
        if usage is not None:
            body["usage"] = usage
        self.reply(httpx.Response(200, json=body))

    def reply_summaries(self, count: int) -> None:
        """追加一个包含 count 条摘要的响应."""
        items = [
            {"title": f"Title {i}", "summary": f"Summary {i}"}
            for i in range(1, count + 1)
        ]
        self.reply_content(json.dumps(items))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            return httpx.Response(500, text="no reply queued")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def payload(self, index: int = -1) -> dict:
        """第 index 个请求的 JSON 请求体."""
        return json.loads(self.requests[index].content)

    def client(self, config: ProcessingConfig) -> ModelClient:
        """创建连接到本服务的客户端."""
        return ModelClient(config, transport=httpx.MockTransport(self.handler))


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """不读取本机环境变量和 .env，使用默认配置."""
    settings = Settings(
        _env_file=None,
        api_endpoint="https://api.openai.com/v1",
        secret_key="",
        model="gpt-5-nano",
        dest_language="English",
        max_content_length=4000,
    )
    monkeypatch.setattr(config_module, "get_settings", lambda: settings)
    return settings


@pytest_asyncio.fixture
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """创建测试用的内存数据库会话."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def client(async_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """创建测试用的 HTTP 客户端（使用内存数据库）."""

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        yield async_session

    app.dependency_overrides[get_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def model_server() -> FakeModelServer:
    """模拟的模型服务."""
    return FakeModelServer()


@pytest.fixture
def processing_config() -> ProcessingConfig:
    """测试用的摘要配置."""
    return ProcessingConfig(
        api_endpoint=TEST_ENDPOINT,
        secret_key="sk-test",
        model="test-model",
        dest_language="English",
        max_content_length=4000,
    )


@pytest_asyncio.fixture
async def sample_feed(async_session: AsyncSession) -> Feed:
    """创建开启摘要的测试 Feed."""
    feed = Feed(
        name="Tech News",
        url="https://example.com/feed.xml",
        description="Daily technology news",
        website="https://example.com",
        digest_enabled=True,
        digest_batch_size=10,
    )
    async_session.add(feed)
    await async_session.commit()
    await async_session.refresh(feed)
    return feed


@pytest.fixture
def add_entries(
    async_session: AsyncSession,
) -> Callable[..., Awaitable[list[Entry]]]:
    """批量创建未读文章，ID 按创建顺序递增."""

    async def _add(feed: Feed, count: int, content: str | None = None) -> list[Entry]:
        entries = []
        for i in range(1, count + 1):
            entry = Entry(
                guid=f"https://example.com/{feed.id}/{i}",
                feed_id=feed.id,
                title=f"Article {i}",
                author="Alice",
                content=content or f"<p>Body of article {i}.</p>",
                link=f"https://example.com/articles/{i}",
                tags="tech",
            )
            async_session.add(entry)
            entries.append(entry)
        await async_session.commit()
        return entries

    return _add
