"""SQLAlchemy declarative base shared by every back-office table."""

import re

from sqlalchemy.orm import DeclarativeBase, declared_attr


_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


class Base(DeclarativeBase):
    """Base class deriving snake_case table names from class names."""

    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return _CAMEL_RE.sub("_", cls.__name__).lower()

    def __repr__(self) -> str:
        primary_keys = [column.key for column in self.__mapper__.primary_key]  # type: ignore[attr-defined]
        attrs = [f"{key}={getattr(self, key)!r}" for key in primary_keys]
        name = getattr(self, "name", None)
        if name is not None:
            attrs.append(f"name={name!r}")
        return f"<{self.__class__.__name__} {' '.join(attrs)}>"
