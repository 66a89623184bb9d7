"""Background job implementations executed by the RQ worker."""

from __future__ import annotations

from .reminders import dispatch_due_reminders_job

__all__ = ["dispatch_due_reminders_job"]
