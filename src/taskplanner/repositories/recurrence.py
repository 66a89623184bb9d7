"""Repository for recurrence rules."""

from __future__ import annotations

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Recurrence
from .base import BaseRepository


class RecurrenceRepository(BaseRepository[Recurrence]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Recurrence)

    async def get_for_task(self, task_id: int) -> Recurrence | None:
        return await self._first(select(Recurrence).where(Recurrence.task_id == task_id))
