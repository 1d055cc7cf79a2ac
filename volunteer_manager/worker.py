"""
ARQ Background Worker for Async Jobs
Handles outgoing messages and notifications so that requests don't block on them
"""

import json
import logging
import os
from typing import Optional

from arq import create_pool
from arq.connections import RedisSettings

from .config import TASK_QUEUE_ENABLED
from .database import SessionLocal
from .email_service import send_volunteer_message
from .logs import SEVERITY_ERROR, LogType, write_log

logger = logging.getLogger(__name__)

NOTIFICATION_CHANNEL_PREFIX = "volunteer-manager:notifications"


def get_redis_settings() -> RedisSettings:
    """Redis connection of the task queue, from REDIS_URL or the individual REDIS_* settings"""
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        # rediss:// enables TLS
        return RedisSettings.from_dsn(redis_url)

    return RedisSettings(
        host=os.getenv("REDIS_HOST", "localhost"),
        port=int(os.getenv("REDIS_PORT", "6379")),
        password=os.getenv("REDIS_PASSWORD"),
        ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
        conn_timeout=int(os.getenv("REDIS_CONN_TIMEOUT", "15")),
    )


async def schedule_task(task_name: str, **params) -> Optional[str]:
    """
    Enqueue `task_name` on the worker. Scheduling is fail-open: when the queue is
    disabled or unavailable the task is dropped with a warning.

    Returns:
        The job id, or None when the task was not enqueued
    """
    if not TASK_QUEUE_ENABLED:
        logger.info(f"⏭️ Task queue disabled, not scheduling {task_name}")
        return None

    try:
        pool = await create_pool(get_redis_settings())
        try:
            job = await pool.enqueue_job(task_name, **params)
        finally:
            await pool.close()

        if job is None:
            return None
        logger.info(f"📋 Task queued: {task_name} ({job.job_id})")
        return job.job_id
    except Exception as e:
        logger.warning(f"⚠️ Failed to queue {task_name}: {e}")
        return None


async def send_email_task(
    ctx,
    to: str,
    subject: str,
    markdown: str,
    sender: str,
    source_user_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
):
    """
    Background task to send a message to a volunteer

    Args:
        ctx: ARQ context
        to: Recipient e-mail address
        subject: Subject of the message
        markdown: Body of the message
        sender: Display name of the sender
        source_user_id: User on whose behalf the message is sent
        target_user_id: User who receives the message
    """
    logger.info(f"🚀 ARQ Worker: Sending message to user {target_user_id} (job {ctx.get('job_id', 'unknown')})")

    try:
        await send_volunteer_message(to=to, subject=subject, markdown=markdown, sender=sender)
    except Exception as e:
        logger.error(f"❌ Failed to send message to user {target_user_id}: {e}")

        db = SessionLocal()
        try:
            write_log(
                db,
                LogType.DatabaseError,
                severity=SEVERITY_ERROR,
                source=source_user_id,
                target=target_user_id,
                data={"message": f"Unable to send e-mail: {e}", "subject": subject},
            )
        finally:
            db.close()
        raise

    return {"success": True}


async def publish_notification_task(
    ctx, type: str, type_id: int, source_user_id: Optional[int], message: dict
):
    """Publish a notification to subscribers listening on the type's Redis channel"""
    channel = f"{NOTIFICATION_CHANNEL_PREFIX}:{type}:{type_id}"
    payload = json.dumps({"type": type, "typeId": type_id, "sourceUserId": source_user_id, "message": message})

    receivers = await ctx["redis"].publish(channel, payload)
    logger.info(f"📣 Published {type} notification to {receivers} subscriber(s)")
    return {"receivers": receivers}


class WorkerSettings:
    """ARQ Worker Settings"""

    functions = [
        send_email_task,
        publish_notification_task,
    ]
    redis_settings = get_redis_settings()

    max_jobs = int(os.getenv("ARQ_MAX_JOBS", "10"))
    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", "120"))
    keep_result = int(os.getenv("ARQ_KEEP_RESULT", "3600"))

    # Retry settings for failed jobs
    max_tries = 3
