"""Appointment background tasks"""

from celery import Task
from celery.utils.log import get_task_logger
from datetime import datetime
from typing import Any, Dict, Optional
import asyncio

from wellness.core.celery_app import celery_app
from wellness.core.database import engine, get_db_context

logger = get_task_logger(__name__)


class AppointmentTask(Task):
    """Base appointment task with retry logic"""
    autoretry_for = (Exception,)
    retry_kwargs = {"max_retries": 3}
    retry_backoff = True
    retry_backoff_max = 600
    retry_jitter = True


async def sweep_elapsed_appointments(now: Optional[datetime] = None) -> Dict[str, Any]:
    """Complete every confirmed appointment that has already ended"""
    from wellness.api.v1.appointments.services import AppointmentService

    async with get_db_context() as db:
        completed = await AppointmentService(db).complete_elapsed(now)

    return {
        "success": True,
        "updated": len(completed),
        "appointment_ids": [str(appointment_id) for appointment_id in completed],
    }


async def _run_sweep() -> Dict[str, Any]:
    try:
        return await sweep_elapsed_appointments()
    finally:
        # pooled connections belong to this task's event loop
        await engine.dispose()


@celery_app.task(base=AppointmentTask, name="wellness.tasks.appointment_tasks.complete_elapsed_appointments")
def complete_elapsed_appointments():
    """Periodic auto-completion of finished appointments"""
    result = asyncio.run(_run_sweep())
    logger.info(f"Appointment sweep completed {result['updated']} appointment(s)")
    return result
