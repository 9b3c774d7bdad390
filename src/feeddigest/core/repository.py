"""文章 / 订阅源 / 配置存储的数据访问层.

每个写操作单独提交（单次调用原子），调用之间没有事务。
"""

import logging
from collections.abc import Mapping, Sequence

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from feeddigest.models.database import utc_now
from feeddigest.models.entry import Entry
from feeddigest.models.feed import DEFAULT_BATCH_SIZE, Feed
from feeddigest.models.settings import SettingItem

logger = logging.getLogger(__name__)

UNREAD_FETCH_LIMIT = 200


def normalize_batch_size(batch_size: int | None) -> int:
    """批次大小必须 >= 1，否则使用默认值 10."""
    if batch_size is None or batch_size < 1:
        return DEFAULT_BATCH_SIZE
    return batch_size


class EntryRepository:
    """文章仓库."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_unread_by_feed(
        self,
        feed_id: int,
        limit: int = UNREAD_FETCH_LIMIT,
        ascending: bool = True,
    ) -> list[Entry]:
        """按 ID 顺序获取某个 Feed 的未读文章."""
        order = col(Entry.id).asc() if ascending else col(Entry.id).desc()
        stmt = (
            select(Entry)
            .where(Entry.feed_id == feed_id, col(Entry.is_read).is_(False))
            .order_by(order)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get(self, entry_id: int) -> Entry | None:
        """按 ID 获取文章."""
        return await self.session.get(Entry, entry_id)

    async def get_many(self, entry_ids: Sequence[int]) -> list[Entry]:
        """按 ID 顺序重新加载多篇文章（覆盖会话中已过期的状态）."""
        if not entry_ids:
            return []
        stmt = (
            select(Entry)
            .where(col(Entry.id).in_(list(entry_ids)))
            .order_by(col(Entry.id).asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add_entry(self, entry: Entry) -> Entry:
        """插入新文章."""
        self.session.add(entry)
        await self._commit()
        return entry

    async def update_entry(self, entry: Entry) -> None:
        """保存文章的修改."""
        self.session.add(entry)
        await self._commit()

    async def mark_read(self, entry_ids: Sequence[int], is_read: bool = True) -> int:
        """批量标记已读，返回受影响的行数."""
        if not entry_ids:
            return 0
        stmt = (
            update(Entry)
            .where(col(Entry.id).in_(list(entry_ids)))
            .values(is_read=is_read)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        await self._commit()
        return result.rowcount or 0

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise


class FeedRepository:
    """订阅源仓库."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_feeds(self) -> list[Feed]:
        """获取全部订阅源."""
        result = await self.session.execute(select(Feed).order_by(col(Feed.id).asc()))
        return list(result.scalars().all())

    async def get(self, feed_id: int) -> Feed | None:
        """按 ID 获取订阅源."""
        return await self.session.get(Feed, feed_id)

    async def add_feed(self, feed: Feed) -> Feed:
        """新增订阅源."""
        feed.digest_batch_size = normalize_batch_size(feed.digest_batch_size)
        self.session.add(feed)
        await self.session.commit()
        await self.session.refresh(feed)
        return feed

    async def update_digest_settings(
        self,
        feed: Feed,
        enabled: bool,
        batch_size: int | None,
    ) -> Feed:
        """更新订阅源的摘要设置."""
        feed.digest_enabled = enabled
        feed.digest_batch_size = normalize_batch_size(batch_size)
        feed.updated_at = utc_now()
        self.session.add(feed)
        await self.session.commit()
        return feed


class ConfigStore:
    """键值配置存储."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, key: str, default: str | None = None) -> str | None:
        """读取单个配置项."""
        item = await self.session.get(SettingItem, key)
        return item.value if item else default

    async def get_all(self) -> dict[str, str]:
        """读取全部配置项."""
        result = await self.session.execute(select(SettingItem))
        return {item.key: item.value for item in result.scalars().all()}

    async def set_many(self, values: Mapping[str, str | int]) -> None:
        """批量保存配置项."""
        for key, value in values.items():
            item = await self.session.get(SettingItem, key)
            if item:
                item.value = str(value)
                item.updated_at = utc_now()
            else:
                self.session.add(SettingItem(key=key, value=str(value)))
        await self.session.commit()
        logger.info(f"配置已保存: {', '.join(values)}")
