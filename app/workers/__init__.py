"""Worker module exports."""

from .scheduler import enqueue_due_audits
from .tasks import run_audit

__all__ = ["enqueue_due_audits", "run_audit"]
