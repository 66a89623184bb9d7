"""Payloads for the browser Notification API."""

from __future__ import annotations

from datetime import datetime

from ..models import Reminder, Task, ensure_aware
from ..schemas import NotificationPayload


def build_task_reminder_notification(
    reminder: Reminder,
    task: Task,
    *,
    base_url: str = "",
) -> NotificationPayload:
    due: datetime | None = ensure_aware(task.due_date)
    body = f"Don't forget: {task.title}"
    if due is not None:
        body = f"{body} (Due: {due.date().isoformat()})"
    return NotificationPayload(
        title="Task Reminder",
        body=body,
        tag=f"task-reminder-{reminder.id}",
        data={
            "type": "task-reminder",
            "reminder_id": reminder.id,
            "task_id": task.id,
            "task_title": task.title,
            "due_date": due.isoformat() if due is not None else None,
            "url": f"{base_url.rstrip('/')}/app/tasks/{task.id}",
        },
    )


__all__ = ["build_task_reminder_notification"]
