"""RQ task definitions."""

from __future__ import annotations

import logging
import os
import traceback
from collections import defaultdict
from datetime import datetime, timezone
from itertools import combinations

from redis import Redis
from sqlalchemy import select
from sqlalchemy.orm import Session

from matching.registry import EntityType
from matching.settings import settings
from matching.similarity import is_similar, similarity
from models import AuditRun, AuditSchedule, DuplicateFinding, SessionLocal

from workers.scheduler import calculate_next_due, lock_key


logger = logging.getLogger(__name__)


def _scoped_rows(session: Session, entity_type: EntityType) -> dict[str | None, list]:
    model = entity_type.model
    rows = session.execute(select(model).order_by(model.id)).scalars().all()
    groups: dict[str | None, list] = defaultdict(list)
    for row in rows:
        scope = row.branch if entity_type.branch_scoped else None
        groups[scope].append(row)
    return groups


def find_duplicate_pairs(session: Session, entity_type: EntityType) -> list[DuplicateFinding]:
    """Every pair of registry rows whose names score at or above the threshold.

    Unlike the entry-time check, names equal after normalization are reported
    too: here they are two records for one name.
    """
    findings: list[DuplicateFinding] = []
    for scope, rows in _scoped_rows(session, entity_type).items():
        for left, right in combinations(rows, 2):
            score = similarity(left.name, right.name)
            if not is_similar(score):
                continue
            findings.append(
                DuplicateFinding(
                    registry_name=entity_type.value,
                    scope=scope,
                    left_id=left.id,
                    left_name=left.name,
                    right_id=right.id,
                    right_name=right.name,
                    score=round(score, 4),
                )
            )
    return findings


def _advance_schedule(session: Session, registry: str, finished_at: datetime) -> None:
    schedule = session.get(AuditSchedule, registry)
    if schedule is None:
        schedule = AuditSchedule(registry_name=registry, cadence_cron=settings.audit_cadence(registry))
        session.add(schedule)
    schedule.last_run_at = finished_at
    schedule.next_due_at = calculate_next_due(schedule.cadence_cron, finished_at, finished_at)


def run_audit(registry: str) -> int | None:
    """Audit one registry for near-duplicate names and store the findings.

    Returns the audit run id.
    """
    entity_type = EntityType(registry)
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    redis = Redis.from_url(redis_url)

    with SessionLocal() as session:
        run = AuditRun(registry_name=registry, started_at=datetime.now(timezone.utc), status="running")
        session.add(run)
        session.flush()

        try:
            findings = find_duplicate_pairs(session, entity_type)
            for finding in findings:
                finding.run_id = run.id
            session.add_all(findings)
            run.status = "success"
            run.item_count = len(findings)
            logger.info("Audit of %s found %d near-duplicate pairs", registry, len(findings))
        except Exception as exc:  # pragma: no cover - safety
            logger.exception("Audit of %s failed", registry)
            session.rollback()
            run = AuditRun(
                registry_name=registry,
                started_at=run.started_at,
                status="error",
                error_log=f"{exc}\n{traceback.format_exc()}",
            )
            session.add(run)
        finally:
            run.finished_at = datetime.now(timezone.utc)
            if run.status == "success":
                _advance_schedule(session, registry, run.finished_at)
            session.commit()
            run_id = run.id

    redis.delete(lock_key(registry))
    return run_id
