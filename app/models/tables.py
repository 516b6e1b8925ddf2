"""Registry, expense and audit tables."""

from __future__ import annotations

import datetime as dt
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class Supplier(Base):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Material(Base):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    branch: Mapped[str] = mapped_column(String, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Product(Base):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class SimpleExpense(Base):
    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    supplier: Mapped[str | None] = mapped_column(String)
    category: Mapped[str] = mapped_column(String, nullable=False, default="other")
    sub_category: Mapped[str | None] = mapped_column(String)
    payment_method: Mapped[str] = mapped_column(String, nullable=False, default="card")
    description: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    unit_price: Mapped[float] = mapped_column(Numeric, default=0)
    amount: Mapped[float] = mapped_column(Numeric, default=0)
    branch_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    branch_name: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class AuditSchedule(Base):
    registry_name: Mapped[str] = mapped_column("registry", String, primary_key=True)
    cadence_cron: Mapped[str] = mapped_column(String, nullable=False)
    last_run_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    next_due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    enabled: Mapped[bool] = mapped_column(default=True)


class AuditRun(Base):
    id: Mapped[int] = mapped_column(primary_key=True)
    registry_name: Mapped[str] = mapped_column("registry", String, nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String, nullable=False)
    item_count: Mapped[int] = mapped_column(Integer, default=0)
    error_log: Mapped[str | None] = mapped_column(Text)

    findings: Mapped[list["DuplicateFinding"]] = relationship(back_populates="run", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("status IN ('queued','running','success','error')", name="audit_run_status_check"),
    )


class DuplicateFinding(Base):
    id: Mapped[int] = mapped_column(primary_key=True)
    run_id: Mapped[int] = mapped_column(ForeignKey("audit_run.id", ondelete="CASCADE"))
    registry_name: Mapped[str] = mapped_column("registry", String, nullable=False)
    scope: Mapped[str | None] = mapped_column(String)
    left_id: Mapped[int] = mapped_column(Integer, nullable=False)
    left_name: Mapped[str] = mapped_column(String, nullable=False)
    right_id: Mapped[int] = mapped_column(Integer, nullable=False)
    right_name: Mapped[str] = mapped_column(String, nullable=False)
    score: Mapped[float] = mapped_column(Numeric, nullable=False)

    run: Mapped[AuditRun] = relationship(back_populates="findings")
