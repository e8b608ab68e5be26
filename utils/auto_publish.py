"""
媒体自动发布调度（基于 JobQueue 的一次性任务）

每个用户最多一个待触发任务；任务触发时由回调自行确认待发布内容是否仍然存在。
"""
import logging
from typing import Awaitable, Callable

from telegram.ext import CallbackContext, JobQueue

logger = logging.getLogger(__name__)

AutoPublishCallback = Callable[[], Awaitable[None]]


def job_name(user_id: int) -> str:
    return f"auto_publish_{user_id}"


class JobQueueScheduler:
    def __init__(self, job_queue: JobQueue):
        self._job_queue = job_queue

    def is_armed(self, user_id: int) -> bool:
        return any(not job.removed for job in self._job_queue.get_jobs_by_name(job_name(user_id)))

    def arm(self, user_id: int, delay: float, callback: AutoPublishCallback) -> bool:
        """
        安排自动发布

        已有待触发任务时不重新计时，返回 False。
        """
        if self.is_armed(user_id):
            logger.info(f"自动发布任务已存在，不重置计时: user_id={user_id}")
            return False
        self._job_queue.run_once(
            _run_auto_publish,
            when=delay,
            data=callback,
            name=job_name(user_id),
            user_id=user_id,
        )
        logger.info(f"已安排 {delay:.0f} 秒后自动发布: user_id={user_id}")
        return True

    def cancel(self, user_id: int) -> None:
        for job in self._job_queue.get_jobs_by_name(job_name(user_id)):
            job.schedule_removal()


async def _run_auto_publish(context: CallbackContext) -> None:
    callback = context.job.data
    try:
        await callback()
    except Exception as e:
        logger.error(f"自动发布任务执行失败: {e}", exc_info=True)
