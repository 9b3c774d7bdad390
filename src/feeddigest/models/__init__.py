"""数据模型."""

from feeddigest.models.database import get_session, init_db
from feeddigest.models.entry import Entry
from feeddigest.models.feed import Feed
from feeddigest.models.settings import SettingItem

__all__ = [
    "Entry",
    "Feed",
    "SettingItem",
    "get_session",
    "init_db",
]
