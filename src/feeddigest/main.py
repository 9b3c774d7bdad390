"""Feed Digest 主应用入口."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from feeddigest import __version__
from feeddigest.api import digest, feeds, settings
from feeddigest.config import get_settings
from feeddigest.models.database import close_db, init_db
from feeddigest.scheduler import create_scheduler, shutdown_scheduler

# 配置日志
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """应用生命周期管理."""
    app_settings = get_settings()

    logger.info("正在初始化数据库...")
    await init_db(app_settings.database_url)

    logger.info("正在启动定时任务...")
    create_scheduler(app_settings)

    logger.info("Feed Digest 启动完成！")
    yield

    logger.info("正在关闭...")
    await shutdown_scheduler()
    await close_db()
    logger.info("Feed Digest 已关闭")


app = FastAPI(
    title="Feed Digest",
    description="RSS 文章 AI 摘要与翻译",
    version=__version__,
    lifespan=lifespan,
)

# 注册路由
app.include_router(feeds.router)
app.include_router(settings.router)
app.include_router(digest.router)


@app.get("/")
async def root() -> dict:
    """根路径."""
    return {
        "name": "Feed Digest",
        "version": __version__,
        "description": "RSS 文章 AI 摘要与翻译",
    }


@app.get("/health")
async def health() -> dict:
    """健康检查."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "feeddigest.main:app",
        host="0.0.0.0",
        port=8000,
    )
