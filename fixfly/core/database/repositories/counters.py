"""
Sequence counter repository.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.counters import Counter
from .base import AsyncBaseRepository


class CounterRepository(AsyncBaseRepository[Counter]):
    """Repository issuing values from named sequences."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Counter)

    async def next_value(self, name: str) -> int:
        """Increment the named sequence and return the new value.

        The row is locked with ``SELECT ... FOR UPDATE`` on databases that
        support it, so concurrent callers never receive the same value.

        Args:
            name: Sequence name, e.g. ``support_ticket``

        Returns:
            The next value, starting at 1
        """
        result = await self.session.execute(select(Counter).where(Counter.name == name).with_for_update())
        counter = result.scalars().first()
        if counter is None:
            counter = Counter(name=name, seq=0)
            self.session.add(counter)
        counter.seq += 1
        await self.session.flush()
        return counter.seq
