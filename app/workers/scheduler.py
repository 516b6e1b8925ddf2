"""Startup scheduler that enqueues due registry audits."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone

from croniter import croniter
from redis import Redis
from rq import Queue

from sqlalchemy.orm import Session

from matching.registry import EntityType
from matching.settings import settings
from models import AuditSchedule, SessionLocal


logger = logging.getLogger(__name__)

QUEUE_NAME = "audits"


def lock_key(registry: str) -> str:
    return f"audit:{registry}:lock"


def calculate_next_due(cron: str, last_run: datetime | None, now: datetime) -> datetime:
    """Return the next datetime matching the cron schedule."""

    base = last_run or now
    if base.tzinfo is None:
        base = base.replace(tzinfo=timezone.utc)
    iterator = croniter(cron, base)
    next_occurrence = iterator.get_next(datetime)
    if next_occurrence.tzinfo is None:
        next_occurrence = next_occurrence.replace(tzinfo=timezone.utc)
    return next_occurrence


def _ensure_schedule_rows(session: Session) -> None:
    for entity_type in EntityType:
        if session.get(AuditSchedule, entity_type.value) is None:
            session.add(
                AuditSchedule(
                    registry_name=entity_type.value,
                    cadence_cron=settings.audit_cadence(entity_type.value),
                    enabled=True,
                )
            )


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _compute_due_at(schedule: AuditSchedule, now: datetime) -> datetime:
    if schedule.next_due_at:
        return _as_utc(schedule.next_due_at)
    if schedule.last_run_at:
        return calculate_next_due(schedule.cadence_cron, schedule.last_run_at, now)
    return now


def enqueue_due_audits(now: datetime | None = None) -> list[str]:
    """Enqueue an audit for every enabled registry that is due.

    Returns the registries that were enqueued.
    """

    current_time = now or datetime.now(timezone.utc)
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    lock_ttl = int(os.getenv("AUDIT_LOCK_TTL", "1800"))
    redis = Redis.from_url(redis_url)
    queue = Queue(QUEUE_NAME, connection=redis)

    enqueued: list[str] = []
    with SessionLocal() as session:
        _ensure_schedule_rows(session)
        session.flush()

        schedules = (
            session.query(AuditSchedule)
            .filter(AuditSchedule.enabled.is_(True))
            .order_by(AuditSchedule.registry_name)
            .all()
        )

        for schedule in schedules:
            try:
                EntityType(schedule.registry_name)
            except ValueError:
                logger.warning("Audit schedule for unknown registry %s", schedule.registry_name)
                continue

            if _compute_due_at(schedule, current_time) > current_time:
                continue

            if not redis.set(lock_key(schedule.registry_name), str(current_time.timestamp()), nx=True, ex=lock_ttl):
                logger.debug("Audit for %s already locked", schedule.registry_name)
                continue

            logger.info("Enqueuing registry audit for %s", schedule.registry_name)
            queue.enqueue("workers.tasks.run_audit", schedule.registry_name, job_timeout="30m")
            enqueued.append(schedule.registry_name)

        session.commit()

    return enqueued
