"""
Pot use cases.

Money operations re-read the pot, check, then apply an atomic increment
to total_saved. The read and the increment are two separate store calls:
two withdrawals running at the same time can both pass the funds check
against the same balance, and together take the pot below zero. The
increment itself never loses an update.
"""

from typing import Any, Optional

from personal_finance.audit import AuditLogger
from personal_finance.models.pagination import PagedResponse
from personal_finance.models.pot import PotCreate, PotDto, PotUpdate
from personal_finance.repositories.pot import PotRepository
from personal_finance.use_cases.base import UseCaseBase, changed_fields, ensure_unique_name
from personal_finance.validation import EntityValidator


class PotUseCases(UseCaseBase):

    def __init__(
        self,
        pots: PotRepository,
        validator: EntityValidator,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(validator, audit_logger)
        self._pots = pots

    async def create(self, user_id: str, payload: Any) -> PotDto:
        data = self._validator.validate(PotCreate, payload)
        await ensure_unique_name(self._pots, user_id, data.name)

        pot = await self._pots.create(user_id, data.model_dump())
        await self._audit.log_created(user_id, "pot", pot.id, pot.name)
        return pot

    async def get(self, user_id: str, pot_id: str) -> PotDto:
        pot_id = self._validator.require_id(pot_id)
        return await self._pots.get_or_raise(user_id, pot_id)

    async def list_all(self, user_id: str) -> list[PotDto]:
        return await self._pots.list_all(user_id)

    async def get_paginated(self, user_id: str, params: Any = None) -> PagedResponse:
        return await self._pots.get_paginated(user_id, params)

    async def update(self, user_id: str, pot_id: str, payload: Any) -> PotDto:
        pot_id = self._validator.require_id(pot_id)
        data = self._validator.validate(PotUpdate, payload)
        current = await self._pots.get_or_raise(user_id, pot_id)

        changes = changed_fields(current, data)
        if not changes:
            return current
        if "name" in changes:
            await ensure_unique_name(self._pots, user_id, changes["name"], pot_id)

        pot = await self._pots.update(user_id, pot_id, changes)
        await self._audit.log_updated(user_id, "pot", pot_id, sorted(changes))
        return pot

    async def delete(self, user_id: str, pot_id: str) -> None:
        pot_id = self._validator.require_id(pot_id)
        await self._pots.get_or_raise(user_id, pot_id)
        await self._pots.delete(user_id, pot_id)
        await self._audit.log_deleted(user_id, "pot", pot_id)

    async def add_money(self, user_id: str, pot_id: str, payload: Any) -> PotDto:
        pot_id = self._validator.require_id(pot_id)
        operation = self._validator.validate_money_operation(payload)
        await self._pots.get_or_raise(user_id, pot_id)

        pot = await self._pots.change_total_saved(user_id, pot_id, operation.amount)
        await self._audit.log_money_added(user_id, pot_id, operation.amount)
        return pot

    async def withdraw_money(self, user_id: str, pot_id: str, payload: Any) -> PotDto:
        """
        Raises:
            InsufficientFundsError: If amount exceeds the pot's current total_saved
        """
        pot_id = self._validator.require_id(pot_id)
        operation = self._validator.validate_money_operation(payload)
        current = await self._pots.get_or_raise(user_id, pot_id)
        self._validator.ensure_sufficient_funds(current, operation.amount)

        pot = await self._pots.change_total_saved(user_id, pot_id, -operation.amount)
        await self._audit.log_money_withdrawn(user_id, pot_id, operation.amount)
        return pot
