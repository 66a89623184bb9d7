"""Shared annotated field types."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from ..models import ensure_aware

# SQLite hands back naive values; everything is stored in UTC.
UTCDatetime = Annotated[datetime, AfterValidator(ensure_aware)]

__all__ = ["UTCDatetime"]
