"""Feed 订阅源模型."""

from datetime import datetime

from sqlmodel import Field, SQLModel

from feeddigest.models.database import utc_now

DEFAULT_BATCH_SIZE = 10


class Feed(SQLModel, table=True):
    """RSS 订阅源."""

    __tablename__ = "feeds"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(description="Feed 名称")
    url: str = Field(default="", description="Feed URL")
    description: str = Field(default="", description="Feed 描述")
    website: str = Field(default="", description="网站 URL")
    digest_enabled: bool = Field(default=False, description="是否开启摘要")
    digest_batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE, ge=1, description="每批摘要的文章数"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def batch_size(self) -> int:
        """有效批次大小（无效值回退到默认值）."""
        if not self.digest_batch_size or self.digest_batch_size < 1:
            return DEFAULT_BATCH_SIZE
        return self.digest_batch_size
