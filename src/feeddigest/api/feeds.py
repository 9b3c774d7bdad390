"""Feed 订阅源 API."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from feeddigest.core.hooks import handle_feed_before_insert, handle_feed_settings_update
from feeddigest.core.repository import FeedRepository
from feeddigest.models.database import get_session
from feeddigest.models.feed import DEFAULT_BATCH_SIZE, Feed

router = APIRouter(prefix="/api/feeds", tags=["feeds"])


class FeedCreateRequest(BaseModel):
    """新建 Feed 请求."""

    name: str
    url: str = ""
    description: str = ""
    website: str = ""
    digest_enabled: bool = False
    digest_batch_size: int | None = DEFAULT_BATCH_SIZE


class DigestSettingsRequest(BaseModel):
    """Feed 摘要设置请求."""

    enabled: bool
    batch_size: int | None = None


def _feed_to_dict(feed: Feed) -> dict:
    return {
        "id": feed.id,
        "name": feed.name,
        "url": feed.url,
        "description": feed.description,
        "website": feed.website,
        "digest_enabled": feed.digest_enabled,
        "digest_batch_size": feed.batch_size,
    }


@router.get("")
async def list_feeds(
    session: AsyncSession = Depends(get_session),
) -> dict:
    """获取订阅列表."""
    feeds = await FeedRepository(session).list_feeds()
    return {
        "total": len(feeds),
        "feeds": [_feed_to_dict(feed) for feed in feeds],
    }


@router.get("/{feed_id}")
async def get_feed(
    feed_id: int,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """获取 Feed 详情."""
    feed = await FeedRepository(session).get(feed_id)
    if not feed:
        raise HTTPException(status_code=404, detail="Feed 不存在")

    data = _feed_to_dict(feed)
    data["created_at"] = feed.created_at.isoformat()
    data["updated_at"] = feed.updated_at.isoformat()
    return data


@router.post("", status_code=201)
async def create_feed(
    request: FeedCreateRequest,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """新建 Feed，同时写入摘要设置."""
    feed = Feed(
        name=request.name,
        url=request.url,
        description=request.description,
        website=request.website,
    )
    handle_feed_before_insert(feed, request.digest_enabled, request.digest_batch_size)
    feed = await FeedRepository(session).add_feed(feed)
    return _feed_to_dict(feed)


@router.put("/{feed_id}/digest")
async def update_digest_settings(
    feed_id: int,
    request: DigestSettingsRequest,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """更新 Feed 摘要设置，批次大小 <= 0 时使用 10."""
    feed = await handle_feed_settings_update(
        session, feed_id, request.enabled, request.batch_size
    )
    if feed is None:
        raise HTTPException(status_code=404, detail="Feed 不存在")

    return {
        "id": feed.id,
        "digest_enabled": feed.digest_enabled,
        "digest_batch_size": feed.digest_batch_size,
        "updated_at": feed.updated_at.isoformat(),
    }
