"""维护任务与订阅源设置的入口函数."""

import logging
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from feeddigest.config import ProcessingConfig, build_processing_config
from feeddigest.core.processor import DigestProcessor, FeedDigestStats
from feeddigest.core.repository import ConfigStore, FeedRepository, normalize_batch_size
from feeddigest.llm.base import ConfigurationMissingError
from feeddigest.llm.client import ModelClient
from feeddigest.models.feed import Feed

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ProcessingConfig], ModelClient]


async def load_processing_config(session: AsyncSession) -> ProcessingConfig:
    """加载本次运行的配置，未配置 API 密钥时抛出 ConfigurationMissingError."""
    stored = await ConfigStore(session).get_all()
    config = build_processing_config(stored)
    if not config.secret_key:
        msg = "no API key configured"
        raise ConfigurationMissingError(msg)
    return config


async def handle_user_maintenance(
    session: AsyncSession,
    client_factory: ClientFactory | None = None,
) -> list[FeedDigestStats]:
    """维护任务入口：处理所有开启摘要的 Feed，从不抛出异常."""
    logger.info("摘要维护任务已触发")

    try:
        config = await load_processing_config(session)
    except ConfigurationMissingError:
        logger.warning("跳过摘要: 未配置 API 密钥")
        return []

    factory = client_factory or ModelClient
    try:
        async with factory(config) as client:
            processor = DigestProcessor(session, client)
            return await processor.run(config)
    except Exception:
        logger.exception("摘要维护任务失败")
        return []


def handle_feed_before_insert(
    feed: Feed, enabled: bool, batch_size: int | None
) -> Feed:
    """新建 Feed 前写入摘要设置."""
    feed.digest_enabled = enabled
    feed.digest_batch_size = normalize_batch_size(batch_size)
    return feed


async def handle_feed_settings_update(
    session: AsyncSession,
    feed_id: int,
    enabled: bool,
    batch_size: int | None,
) -> Feed | None:
    """保存已有 Feed 的摘要设置，Feed 不存在时返回 None."""
    feeds = FeedRepository(session)
    feed = await feeds.get(feed_id)
    if feed is None:
        logger.warning(f"Feed 不存在: {feed_id}")
        return None

    await feeds.update_digest_settings(feed, enabled, batch_size)
    logger.info(f"已保存 Feed 摘要设置: {feed.name}")
    return feed
