"""SQLAlchemy models and session utilities."""

from .base import Base
from .session import SessionLocal, engine
from .tables import (
    AuditRun,
    AuditSchedule,
    DuplicateFinding,
    Material,
    Product,
    SimpleExpense,
    Supplier,
)

__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "AuditRun",
    "AuditSchedule",
    "DuplicateFinding",
    "Material",
    "Product",
    "SimpleExpense",
    "Supplier",
]
