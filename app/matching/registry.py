"""Canonical name registries backed by the supplier, material and product tables."""

from __future__ import annotations

import enum
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from models import Material, Product, Supplier

from .settings import settings
from .similarity import build_duplicate_candidate, normalize
from .types import CanonicalNameEntry, DuplicateCandidate


logger = logging.getLogger(__name__)


class EntityType(str, enum.Enum):
    SUPPLIER = "supplier"
    MATERIAL = "material"
    PRODUCT = "product"

    @property
    def model(self):
        return _MODELS[self]

    @property
    def branch_scoped(self) -> bool:
        return self is EntityType.MATERIAL


_MODELS = {
    EntityType.SUPPLIER: Supplier,
    EntityType.MATERIAL: Material,
    EntityType.PRODUCT: Product,
}


def _registry_query(entity_type: EntityType, branch: str | None):
    model = entity_type.model
    query = select(model).order_by(model.id)
    if entity_type.branch_scoped and branch:
        query = query.where(model.branch == branch)
    return query


def load_entries(session: Session, entity_type: EntityType, branch: str | None = None) -> list[CanonicalNameEntry]:
    """Existing canonical names; materials are narrowed to ``branch`` when given."""
    rows = session.execute(_registry_query(entity_type, branch)).scalars().all()
    return [CanonicalNameEntry(id=str(row.id), name=row.name) for row in rows]


def check_name(
    session: Session,
    entity_type: EntityType,
    name: str,
    branch: str | None = None,
    limit: int | None = None,
) -> DuplicateCandidate:
    entries = load_entries(session, entity_type, branch)
    candidate = build_duplicate_candidate(
        name,
        entries,
        limit=limit or settings.result_limit,
        entity_type=entity_type.value,
    )
    if candidate.has_warning:
        logger.info(
            "%s name %r resembles %d existing entries",
            entity_type.value,
            name,
            len(candidate.similar_items),
        )
    return candidate


def find_existing(session: Session, entity_type: EntityType, name: str, branch: str | None = None):
    """The registry row that ``name`` reuses, ignoring whitespace and case."""
    target = normalize(name)
    rows = session.execute(_registry_query(entity_type, branch)).scalars()
    return next((row for row in rows if normalize(row.name) == target), None)


def ensure_entry(session: Session, entity_type: EntityType, name: str, branch: str | None = None):
    """Register ``name`` unless the registry already holds it up to whitespace and case."""
    existing = find_existing(session, entity_type, name, branch)
    if existing is not None:
        return existing

    model = entity_type.model
    if entity_type.branch_scoped:
        if not branch:
            raise ValueError("materials are registered per branch")
        entry = model(name=name, branch=branch)
    else:
        entry = model(name=name)
    session.add(entry)
    session.flush()
    logger.info("Registered new %s %r", entity_type.value, name)
    return entry
