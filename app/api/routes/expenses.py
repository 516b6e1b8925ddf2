"""Simple expense endpoints with supplier and material name checks."""

from __future__ import annotations

import logging
import datetime
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from api.deps.auth import require_user
from api.deps.db import get_db
from matching import DuplicateCandidate, InvalidResolution, SaveCancelled, choice_for, resolve_duplicate
from matching.registry import EntityType, check_name, ensure_entry
from models import SimpleExpense


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/expenses",
    tags=["expenses"],
    dependencies=[Depends(require_user)],
)

MATERIAL_CATEGORY = "material"


class ExpenseItemPayload(BaseModel):
    description: str = Field(min_length=1)
    quantity: int = Field(1, ge=1)
    unit_price: Decimal = Decimal(0)
    amount: Decimal | None = None

    def total(self) -> Decimal:
        if self.amount is not None:
            return self.amount
        return self.unit_price * self.quantity


class ExpensePayload(BaseModel):
    date: datetime.date
    branch_id: str = Field(min_length=1)
    branch_name: str | None = None
    supplier: str | None = None
    category: str = "other"
    sub_category: str | None = None
    payment_method: str = "card"
    items: list[ExpenseItemPayload] = Field(min_length=1)
    # entity type -> {typed name: final name, or None to cancel}
    resolutions: dict[str, dict[str, str | None]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _material_branch(self) -> "ExpensePayload":
        # Materials are registered per branch name.
        if self.category == MATERIAL_CATEGORY and not (self.branch_name or "").strip():
            raise ValueError("branch_name is required for material expenses")
        return self


class ImportRow(BaseModel):
    purchase_date: datetime.date
    supplier: str | None = None
    description: str = Field(min_length=1)
    quantity: int = Field(1, ge=1)
    unit_price: Decimal = Decimal(0)
    amount: Decimal = Decimal(0)
    category: str = "other"
    sub_category: str | None = None
    payment_method: str = "card"


class ImportPayload(BaseModel):
    branch_id: str = Field(min_length=1)
    branch_name: str | None = None
    rows: list[ImportRow]


def _serialize_expense(expense: SimpleExpense) -> dict[str, Any]:
    def _number(value):
        return float(value) if isinstance(value, Decimal) else value

    return {
        "id": expense.id,
        "date": expense.date,
        "supplier": expense.supplier,
        "category": expense.category,
        "sub_category": expense.sub_category,
        "payment_method": expense.payment_method,
        "description": expense.description,
        "quantity": expense.quantity,
        "unit_price": _number(expense.unit_price),
        "amount": _number(expense.amount),
        "branch_id": expense.branch_id,
        "branch_name": expense.branch_name,
        "created_at": expense.created_at,
    }


class _NameResolver:
    """Runs the duplicate check for each typed name once and applies the client's answers."""

    def __init__(self, db: Session, resolutions: dict[str, dict[str, str | None]]) -> None:
        self.db = db
        self.resolutions = resolutions
        self.unresolved: list[DuplicateCandidate] = []
        self._resolved: dict[tuple[EntityType, str], str] = {}

    def resolve(self, entity_type: EntityType, name: str, branch: str | None = None) -> str:
        key = (entity_type, name)
        if key in self._resolved:
            return self._resolved[key]

        candidate = check_name(self.db, entity_type, name, branch=branch)
        final_name = name
        if candidate.has_warning:
            answers = self.resolutions.get(entity_type.value, {})
            if name in answers:
                chosen = answers[name]
                final_name = resolve_duplicate(candidate, choice_for(candidate, chosen), chosen)
            else:
                self.unresolved.append(candidate)

        self._resolved[key] = final_name
        return final_name


@router.get("/")
def list_expenses(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    branch_id: str | None = None,
    category: str | None = None,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    query = db.query(SimpleExpense)
    if branch_id:
        query = query.filter(SimpleExpense.branch_id == branch_id)
    if category:
        query = query.filter(SimpleExpense.category == category)

    total = query.count()
    expenses = (
        query.order_by(SimpleExpense.date.desc(), SimpleExpense.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )

    return {
        "items": [_serialize_expense(expense) for expense in expenses],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_expense(payload: ExpensePayload, db: Session = Depends(get_db)) -> Any:
    resolver = _NameResolver(db, payload.resolutions)
    is_material = payload.category == MATERIAL_CATEGORY

    try:
        supplier = (payload.supplier or "").strip() or None
        if supplier:
            supplier = resolver.resolve(EntityType.SUPPLIER, supplier)

        descriptions = []
        for item in payload.items:
            description = item.description.strip()
            if is_material:
                description = resolver.resolve(EntityType.MATERIAL, description, branch=payload.branch_name)
            descriptions.append(description)
    except SaveCancelled as exc:
        logger.info("Expense save cancelled at %r", exc.input_name)
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": "cancelled", "input_name": exc.input_name, "items": []},
        )
    except InvalidResolution as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if resolver.unresolved:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=jsonable_encoder(
                {
                    "message": "Similar names already exist",
                    "duplicates": [candidate.model_dump() for candidate in resolver.unresolved],
                }
            ),
        )

    if supplier:
        supplier = ensure_entry(db, EntityType.SUPPLIER, supplier).name

    expenses: list[SimpleExpense] = []
    for item, description in zip(payload.items, descriptions):
        if is_material:
            description = ensure_entry(db, EntityType.MATERIAL, description, branch=payload.branch_name).name
        expense = SimpleExpense(
            date=payload.date,
            supplier=supplier,
            category=payload.category,
            sub_category=payload.sub_category,
            payment_method=payload.payment_method,
            description=description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            amount=item.total(),
            branch_id=payload.branch_id,
            branch_name=payload.branch_name,
        )
        db.add(expense)
        expenses.append(expense)

    db.commit()
    for expense in expenses:
        db.refresh(expense)
    logger.info("Recorded %d expense items for branch %s", len(expenses), payload.branch_id)
    return {"status": "created", "items": [_serialize_expense(expense) for expense in expenses]}


@router.post("/import", status_code=status.HTTP_201_CREATED)
def import_expenses(payload: ImportPayload, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Bulk insert spreadsheet rows, skipping ones already recorded for the branch.

    A row is a repeat when an existing expense of the same branch has the same
    date, supplier and description.
    """
    existing = (
        db.query(SimpleExpense.date, SimpleExpense.supplier, SimpleExpense.description)
        .filter(SimpleExpense.branch_id == payload.branch_id)
        .all()
    )
    seen = {(row.date, row.supplier, row.description) for row in existing}

    created: list[SimpleExpense] = []
    duplicates: list[dict[str, Any]] = []
    for row in payload.rows:
        if (row.purchase_date, row.supplier, row.description) in seen:
            duplicates.append({**jsonable_encoder(row), "reason": "matches an existing expense"})
            continue
        expense = SimpleExpense(
            date=row.purchase_date,
            supplier=row.supplier,
            category=row.category,
            sub_category=row.sub_category,
            payment_method=row.payment_method,
            description=row.description,
            quantity=row.quantity,
            unit_price=row.unit_price,
            amount=row.amount,
            branch_id=payload.branch_id,
            branch_name=payload.branch_name,
        )
        db.add(expense)
        created.append(expense)

    db.commit()
    if duplicates:
        logger.warning("Skipped %d repeated rows in import for branch %s", len(duplicates), payload.branch_id)

    return {
        "created": len(created),
        "duplicates": duplicates,
    }
