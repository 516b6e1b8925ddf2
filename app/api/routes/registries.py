"""Canonical name registry endpoints for suppliers, materials and products."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from api.deps.auth import require_user
from api.deps.db import get_db
from matching.registry import EntityType, check_name, find_existing


router = APIRouter(
    prefix="/api/registries",
    tags=["registries"],
    dependencies=[Depends(require_user)],
)


def entity_type_or_404(value: str) -> EntityType:
    try:
        return EntityType(value)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown registry") from exc


def _serialize_entry(entity_type: EntityType, entry) -> dict[str, Any]:
    data = {
        "id": str(entry.id),
        "name": entry.name,
        "created_at": entry.created_at,
    }
    if entity_type.branch_scoped:
        data["branch"] = entry.branch
    return data


def _required_name(payload: dict[str, Any]) -> str:
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
    return name.strip()


@router.get("/{entity_type}")
def list_entries(
    entity_type: str,
    branch: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    kind = entity_type_or_404(entity_type)
    model = kind.model
    query = db.query(model)
    if kind.branch_scoped and branch:
        query = query.filter(model.branch == branch)

    total = query.count()
    entries = (
        query.order_by(model.name.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )

    return {
        "items": [_serialize_entry(kind, entry) for entry in entries],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.post("/{entity_type}/check")
def check_entry_name(entity_type: str, payload: dict[str, Any], db: Session = Depends(get_db)) -> dict[str, Any]:
    kind = entity_type_or_404(entity_type)
    name = payload.get("name")
    if not isinstance(name, str):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")

    candidate = check_name(db, kind, name, branch=payload.get("branch"))
    return candidate.model_dump()


@router.post("/{entity_type}", status_code=status.HTTP_201_CREATED)
def create_entry(entity_type: str, payload: dict[str, Any], db: Session = Depends(get_db)) -> dict[str, Any]:
    kind = entity_type_or_404(entity_type)
    name = _required_name(payload)
    branch = payload.get("branch")
    if kind.branch_scoped and not branch:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="branch is required for materials")

    if find_existing(db, kind, name, branch) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{kind.value} already exists")

    if not payload.get("confirmed"):
        candidate = check_name(db, kind, name, branch=branch)
        if candidate.has_warning:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=jsonable_encoder(
                    {"message": "Similar names already exist", "duplicates": [candidate.model_dump()]}
                ),
            )

    entry = kind.model(name=name, branch=branch) if kind.branch_scoped else kind.model(name=name)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return _serialize_entry(kind, entry)


@router.get("/{entity_type}/{entry_id}")
def get_entry(entity_type: str, entry_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    kind = entity_type_or_404(entity_type)
    entry = db.get(kind.model, entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return _serialize_entry(kind, entry)


@router.delete("/{entity_type}/{entry_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_entry(entity_type: str, entry_id: int, db: Session = Depends(get_db)) -> Response:
    kind = entity_type_or_404(entity_type)
    entry = db.get(kind.model, entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")

    db.delete(entry)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
