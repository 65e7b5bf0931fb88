"""
ARQ background worker.
Delivers cancellation mails and re-relays outbox entries that were not enqueued
right after their cancellation committed.

Run with: arq app.worker.WorkerSettings
"""

import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage

from arq.connections import RedisSettings
from arq.cron import cron
from arq.worker import func

from app.config import settings
from app.db import engine
from app.jobs import CANCELLATION_MAIL, ArqJobQueue, relay_pending_jobs
from app.logging_setup import setup_logging
from app.notifications import format_slot

logger = logging.getLogger(__name__)


def build_cancellation_mail(payload: dict) -> EmailMessage:
    provider = payload["provider"]
    slot = datetime.fromisoformat(payload["date"])

    message = EmailMessage()
    message["From"] = settings.MAIL_FROM
    message["To"] = f"{provider['name']} <{provider['email']}>"
    message["Subject"] = "Appointment cancelled"
    message.set_content(
        f"Hello {provider['name']},\n\n"
        f"{payload['user']['name']} cancelled the appointment of {format_slot(slot)}.\n"
    )
    return message


def send_mail(message: EmailMessage):
    if not settings.SMTP_HOST:
        logger.info(f"SMTP not configured, mail to {message['To']} not sent: {message['Subject']}")
        return

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as smtp:
        smtp.send_message(message)
    logger.info(f"Mail sent to {message['To']}: {message['Subject']}")


async def cancellation_mail(ctx, payload: dict):
    """
    Send the cancellation mail to the provider.

    Args:
        ctx: ARQ context
        payload: appointment snapshot staged by the cancellation
    """
    logger.info(f"Sending cancellation mail for appointment {payload['id']}")
    send_mail(build_cancellation_mail(payload))
    return {"appointment_id": payload["id"]}


async def relay_outbox(ctx):
    """Enqueue outbox entries left pending by failed post-commit relays."""
    queue = ArqJobQueue(pool=ctx["redis"])
    dispatched = await relay_pending_jobs(engine, queue)
    if dispatched:
        logger.info(f"Relayed {dispatched} pending outbox entries")
    return dispatched


async def startup(ctx):
    setup_logging(settings.LOG_LEVEL)


class WorkerSettings:
    """ARQ Worker Settings"""

    functions = [func(cancellation_mail, name=CANCELLATION_MAIL)]
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    on_startup = startup

    max_tries = 3

    # every minute, at second 0
    cron_jobs = [cron(relay_outbox, run_at_startup=True)]

