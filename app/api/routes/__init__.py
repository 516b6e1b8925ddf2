"""Root router exports."""

from . import audits, expenses, health, registries

__all__ = ["health", "registries", "expenses", "audits"]
