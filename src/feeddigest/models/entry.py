"""Entry 文章模型."""

import time

from sqlmodel import Field, SQLModel

_last_entry_id = 0


def new_entry_id() -> int:
    """生成新的文章 ID（微秒时间戳，保证单调递增）."""
    global _last_entry_id
    candidate = time.time_ns() // 1000
    _last_entry_id = max(candidate, _last_entry_id + 1)
    return _last_entry_id


class Entry(SQLModel, table=True):
    """RSS 文章."""

    __tablename__ = "entries"  # type: ignore[assignment]

    id: int = Field(default_factory=new_entry_id, primary_key=True)
    guid: str = Field(index=True, description="全局唯一标识")
    feed_id: int = Field(foreign_key="feeds.id", index=True, description="关联 Feed")
    title: str = Field(default="", description="标题")
    author: str = Field(default="", description="作者")
    content: str = Field(default="", description="HTML 内容")
    link: str = Field(default="", description="原文链接")
    date: int = Field(default_factory=lambda: int(time.time()), description="发布时间")
    last_seen: int = Field(
        default_factory=lambda: int(time.time()), description="最后一次见到的时间"
    )
    hash: str = Field(default="", description="内容 md5")
    is_read: bool = Field(default=False, description="是否已读")
    is_favorite: bool = Field(default=False, description="是否收藏")
    tags: str = Field(default="", description="标签")
