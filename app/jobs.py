# app/jobs.py
"""
Cancellation job emission.

A cancellation stages an OutboxEntry in the same transaction that sets
``canceled_at``. After the commit the entry is relayed to the arq queue by
``relay_pending_jobs``; entries that fail to enqueue stay pending and are
picked up again by the worker's relay cron. The external worker must tolerate
at-least-once delivery.
"""

import asyncio
import logging
from typing import Optional, Protocol

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from fastapi import Request
from sqlmodel import Session, select

from app.config import settings
from app.core import to_utc, utcnow
from app.models import Appointment, OutboxEntry, User

logger = logging.getLogger(__name__)

CANCELLATION_MAIL = "cancellation_mail"


class JobQueue(Protocol):
    async def enqueue(self, job_kind: str, payload: dict, job_id: Optional[str] = None) -> Optional[str]:
        ...


class ArqJobQueue:
    """JobQueue backed by an arq Redis pool, created on first use."""

    def __init__(self, redis_settings: RedisSettings = None, pool: ArqRedis = None):
        self.redis_settings = redis_settings or RedisSettings.from_dsn(settings.REDIS_URL)
        self._pool = pool
        self._pool_lock = asyncio.Lock()

    async def enqueue(self, job_kind: str, payload: dict, job_id: Optional[str] = None) -> Optional[str]:
        if self._pool is None:
            # concurrent relays on one loop must share a single pool
            async with self._pool_lock:
                if self._pool is None:
                    self._pool = await create_pool(self.redis_settings)
        job = await self._pool.enqueue_job(job_kind, payload, _job_id=job_id)
        # arq returns None when a job with the same id already exists
        return job.job_id if job is not None else job_id

    async def close(self):
        if self._pool is not None:
            await self._pool.close(close_connection_pool=True)
            self._pool = None


def appointment_snapshot(session: Session, appointment: Appointment) -> dict:
    provider = session.get(User, appointment.provider_id)
    client = session.get(User, appointment.user_id)
    return {
        "id": appointment.id,
        "date": to_utc(appointment.date).isoformat(),
        "canceled_at": to_utc(appointment.canceled_at).isoformat() if appointment.canceled_at else None,
        "provider": {
            "id": provider.id,
            "name": provider.name,
            "email": provider.email,
        },
        "user": {
            "id": client.id,
            "name": client.name,
        },
    }


def emit_cancellation_job(session: Session, appointment: Appointment) -> OutboxEntry:
    """Stage the cancellation mail job. The caller commits it with the cancellation."""
    entry = OutboxEntry(
        job_kind=CANCELLATION_MAIL,
        payload=appointment_snapshot(session, appointment),
    )
    session.add(entry)
    return entry


async def relay_pending_jobs(engine, queue: JobQueue, limit: int = None) -> int:
    """Push undispatched outbox entries to the queue. Returns how many were dispatched."""
    limit = limit or settings.OUTBOX_BATCH_SIZE
    dispatched = 0

    with Session(engine) as session:
        entries = session.exec(
            select(OutboxEntry)
            .where(OutboxEntry.dispatched_at == None)  # noqa: E711
            .order_by(OutboxEntry.id)
            .limit(limit)
        ).all()

        for entry in entries:
            try:
                await queue.enqueue(entry.job_kind, entry.payload, job_id=f"{entry.job_kind}:{entry.id}")
            except Exception as e:
                # left pending; the worker cron retries it
                entry.attempts += 1
                entry.last_error = str(e)[:500]
                logger.warning(f"Failed to enqueue {entry.job_kind} job for outbox entry {entry.id}: {e}")
            else:
                entry.attempts += 1
                entry.last_error = None
                entry.dispatched_at = utcnow()
                dispatched += 1
                logger.info(f"Enqueued {entry.job_kind} job for outbox entry {entry.id}")

            session.add(entry)
            session.commit()

    return dispatched


def get_job_queue(request: Request) -> JobQueue:
    """Dependency: the queue opened by the application lifespan. Overridden in tests."""
    return request.app.state.job_queue
