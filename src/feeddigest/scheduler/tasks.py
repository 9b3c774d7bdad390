"""定时任务定义."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from feeddigest.config import Settings

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None
_running = False


def is_running() -> bool:
    """是否有摘要任务正在运行."""
    return _running


async def digest_task() -> None:
    """摘要维护任务：定时触发与手动触发共用."""
    from feeddigest.core.hooks import handle_user_maintenance
    from feeddigest.models.database import async_session_maker

    global _running

    # 同一进程内不同时运行两次
    if _running:
        logger.info("已有摘要任务在运行，跳过本次调度")
        return

    _running = True
    try:
        session_factory = async_session_maker()
        async with session_factory() as session:
            results = await handle_user_maintenance(session)

        processed = sum(stats.processed for stats in results)
        artifacts = sum(stats.artifacts for stats in results)
        logger.info(
            f"摘要任务完成: Feed 数={len(results)}, "
            f"已处理={processed}, 新摘要={artifacts}"
        )
    except Exception as e:
        logger.exception(f"摘要任务失败: {e}")
    finally:
        _running = False


def create_scheduler(settings: Settings) -> AsyncIOScheduler:
    """创建并启动定时任务调度器."""
    global _scheduler

    _scheduler = AsyncIOScheduler()

    _scheduler.add_job(
        digest_task,
        "interval",
        minutes=settings.digest_interval_minutes,
        id="digest_task",
        name="摘要维护任务",
        replace_existing=True,
    )

    # 启动时立即执行一次
    _scheduler.add_job(
        digest_task,
        "date",
        id="digest_task_initial",
        name="初始摘要任务",
    )

    _scheduler.start()
    logger.info(
        f"定时任务调度器已启动，摘要间隔: {settings.digest_interval_minutes} 分钟"
    )

    return _scheduler


async def shutdown_scheduler() -> None:
    """关闭定时任务调度器."""
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        logger.info("定时任务调度器已关闭")
        _scheduler = None
