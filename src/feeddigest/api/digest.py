"""摘要任务 API."""

from fastapi import APIRouter, BackgroundTasks

from feeddigest.scheduler.tasks import digest_task, is_running

router = APIRouter(prefix="/api/digest", tags=["digest"])


@router.post("/run")
async def run_digest(background_tasks: BackgroundTasks) -> dict:
    """在后台触发一次摘要维护任务."""
    if is_running():
        return {"started": False, "message": "已有摘要任务在运行"}

    background_tasks.add_task(digest_task)
    return {"started": True, "message": "摘要任务已在后台启动"}
