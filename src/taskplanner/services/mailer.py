"""Outbound email.

Messages are rendered from Jinja templates and handed to an ``EmailSender``.
The default sender only logs; there is no SMTP transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..core.config import Settings, get_settings
from ..core.templates import get_template_environment

logger = logging.getLogger("taskplanner.services.mailer")


@dataclass(slots=True)
class EmailMessage:
    to: str
    subject: str
    text: str
    html: str | None = None
    sender: str = ""


class EmailSender(Protocol):
    def send(self, message: EmailMessage) -> bool:  # pragma: no cover - interface definition
        """Deliver ``message``; return ``True`` on success."""


@dataclass
class LoggingEmailSender:
    """Sender that records messages in the log and keeps them in ``outbox``."""

    outbox: list[EmailMessage] = field(default_factory=list)

    def send(self, message: EmailMessage) -> bool:
        self.outbox.append(message)
        logger.info(
            "Email queued for %s: %s",
            message.to,
            message.subject,
            extra={"email_to": message.to, "email_subject": message.subject},
        )
        return True


_default_sender = LoggingEmailSender()


def get_email_sender() -> EmailSender:
    return _default_sender


class EmailService:
    """Render and send the planner's transactional emails."""

    def __init__(self, sender: EmailSender | None = None, settings: Settings | None = None) -> None:
        self._sender = sender or get_email_sender()
        self._settings = settings or get_settings()

    def _render(self, template_base: str, context: dict[str, Any]) -> tuple[str, str]:
        environment = get_template_environment()
        payload = {"settings": self._settings, **context}
        text = environment.get_template(f"emails/{template_base}.txt").render(payload)
        html = environment.get_template(f"emails/{template_base}.html").render(payload)
        return text, html

    def _send(self, *, to: str, subject: str, template_base: str, context: dict[str, Any]) -> bool:
        text, html = self._render(template_base, context)
        message = EmailMessage(
            to=to,
            subject=subject,
            text=text,
            html=html,
            sender=self._settings.email_from_address,
        )
        try:
            return self._sender.send(message)
        except Exception:
            logger.exception("Failed to send email to %s", to)
            return False

    def send_reminder(self, *, to: str, task_title: str, due_date: str | None, task_url: str) -> bool:
        return self._send(
            to=to,
            subject=f"Reminder: {task_title}",
            template_base="reminder",
            context={"task_title": task_title, "due_date": due_date, "task_url": task_url},
        )

    def send_password_reset(self, *, to: str, username: str, reset_url: str) -> bool:
        return self._send(
            to=to,
            subject="Reset your password",
            template_base="password_reset",
            context={
                "username": username,
                "reset_url": reset_url,
                "ttl_minutes": self._settings.password_reset_ttl_minutes,
            },
        )


__all__ = ["EmailMessage", "EmailSender", "EmailService", "LoggingEmailSender", "get_email_sender"]
