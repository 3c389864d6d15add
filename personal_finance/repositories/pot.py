"""Pot persistence."""

from decimal import Decimal

from personal_finance.models.pot import POT_QUERY_SPEC, PotDto
from personal_finance.repositories.base import BaseRepository


class PotRepository(BaseRepository[PotDto]):
    spec = POT_QUERY_SPEC

    async def change_total_saved(self, user_id: str, pot_id: str, delta: Decimal) -> PotDto:
        """Atomic add to total_saved; returns the pot as stored afterwards."""
        await self.increment(user_id, pot_id, "total_saved", delta)
        return await self.get_or_raise(user_id, pot_id)
