"""定时任务调度."""

from feeddigest.scheduler.tasks import create_scheduler, shutdown_scheduler

__all__ = ["create_scheduler", "shutdown_scheduler"]
