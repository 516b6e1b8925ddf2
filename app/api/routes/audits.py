"""Registry audit runs, findings and schedules."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from croniter import croniter
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from api.deps.auth import require_user
from api.deps.db import get_db
from models import AuditRun, AuditSchedule, DuplicateFinding


router = APIRouter(
    prefix="/api/audits",
    tags=["audits"],
    dependencies=[Depends(require_user)],
)


def _serialize_schedule(schedule: AuditSchedule) -> dict[str, Any]:
    return {
        "registry": schedule.registry_name,
        "cadence_cron": schedule.cadence_cron,
        "last_run_at": schedule.last_run_at,
        "next_due_at": schedule.next_due_at,
        "enabled": schedule.enabled,
    }


def _serialize_finding(finding: DuplicateFinding) -> dict[str, Any]:
    return {
        "id": finding.id,
        "run_id": finding.run_id,
        "registry": finding.registry_name,
        "scope": finding.scope,
        "left": {"id": str(finding.left_id), "name": finding.left_name},
        "right": {"id": str(finding.right_id), "name": finding.right_name},
        "score": float(finding.score) if isinstance(finding.score, Decimal) else finding.score,
    }


@router.get("/runs")
def list_runs(registry: str | None = None, db: Session = Depends(get_db)) -> list[dict]:
    query = db.query(AuditRun)
    if registry:
        query = query.filter(AuditRun.registry_name == registry)
    runs = query.order_by(AuditRun.started_at.desc()).limit(50).all()
    return [
        {
            "id": run.id,
            "registry": run.registry_name,
            "status": run.status,
            "started_at": run.started_at,
            "finished_at": run.finished_at,
            "item_count": run.item_count,
        }
        for run in runs
    ]


@router.get("/findings")
def list_findings(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    registry: str | None = None,
    run_id: int | None = None,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    query = db.query(DuplicateFinding)
    if registry:
        query = query.filter(DuplicateFinding.registry_name == registry)
    if run_id is not None:
        query = query.filter(DuplicateFinding.run_id == run_id)

    total = query.count()
    findings = (
        query.order_by(DuplicateFinding.score.desc(), DuplicateFinding.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )

    return {
        "items": [_serialize_finding(finding) for finding in findings],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.get("/schedules")
def list_schedules(db: Session = Depends(get_db)) -> dict[str, Any]:
    schedules = db.query(AuditSchedule).order_by(AuditSchedule.registry_name.asc()).all()
    return {
        "items": [_serialize_schedule(schedule) for schedule in schedules],
        "total": len(schedules),
    }


@router.put("/schedules/{registry}")
def update_schedule(registry: str, payload: dict[str, Any], db: Session = Depends(get_db)) -> dict[str, Any]:
    schedule = db.get(AuditSchedule, registry)
    if schedule is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule not found")

    if "cadence_cron" in payload:
        cadence = payload["cadence_cron"]
        if not isinstance(cadence, str) or not croniter.is_valid(cadence):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid cron expression")
        schedule.cadence_cron = cadence
        schedule.next_due_at = None
    if "enabled" in payload:
        schedule.enabled = bool(payload["enabled"])

    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    return _serialize_schedule(schedule)
