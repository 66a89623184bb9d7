"""Helpers shared by the HTML form handlers."""

from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo

from starlette.datastructures import FormData
from starlette.requests import Request
from starlette.responses import RedirectResponse

from ..core.session import add_flash_message, validate_csrf_token
from ..errors import ValidationError


def clean_text(raw: object) -> str:
    return str(raw or "").strip()


def parse_optional_int(raw: object, *, field: str) -> int | None:
    value = clean_text(raw)
    if not value:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ValidationError(f"{field.replace('_', ' ').capitalize()} must be a number.", details={"field": field}) from exc


def parse_local_datetime(raw: object, zone: tzinfo, *, field: str) -> datetime | None:
    """Parse ``YYYY-MM-DD`` or ``YYYY-MM-DDTHH:MM`` entered in ``zone`` into UTC.

    A bare date means the start of that day.
    """
    value = clean_text(raw)
    if not value:
        return None
    try:
        if "T" in value:
            parsed = datetime.fromisoformat(value)
        else:
            parsed = datetime.combine(date.fromisoformat(value), time.min)
    except ValueError as exc:
        raise ValidationError("Invalid date.", details={"field": field}) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed.astimezone(timezone.utc)


def form_ids(form: FormData, name: str) -> list[int]:
    ids: list[int] = []
    for raw in form.getlist(name):
        value = parse_optional_int(raw, field=name)
        if value is not None:
            ids.append(value)
    return ids


def csrf_rejected(request: Request, form: FormData) -> bool:
    """Flash an error and return ``True`` when the form's CSRF token is invalid."""
    if validate_csrf_token(request.session, form.get("csrf_token")):
        return False
    add_flash_message(request.session, "error", "The form has expired. Please try again.")
    return True


def redirect_to(request: Request, route_name: str, **path_params: object) -> RedirectResponse:
    return RedirectResponse(request.url_for(route_name, **path_params), status_code=303)


def redirect_back(request: Request, fallback: str, **path_params: object) -> RedirectResponse:
    """Return to the page the form was posted from when it is on this site."""
    referer = request.headers.get("referer", "")
    base = str(request.base_url)
    if referer.startswith(base):
        return RedirectResponse(referer, status_code=303)
    return redirect_to(request, fallback, **path_params)


__all__ = [
    "clean_text",
    "csrf_rejected",
    "form_ids",
    "parse_local_datetime",
    "parse_optional_int",
    "redirect_back",
    "redirect_to",
]
