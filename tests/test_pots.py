"""
Tests for pot use cases: CRUD and the money operations.
"""

import asyncio

import pytest
from decimal import Decimal

from factories import USER_ID, pot_payload
from personal_finance.errors import (
    DomainRuleError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from personal_finance.orchestrator import create_app_components
from personal_finance.services.storage import InMemoryDocumentStore


class HeldReadStore(InMemoryDocumentStore):
    """
    Holds every read once hold_reads is set, until two readers are
    waiting. Lets two money operations see the same balance.
    """

    def __init__(self):
        super().__init__()
        self.hold_reads = False
        self._waiting = 0
        self._release = asyncio.Event()

    async def get(self, collection, doc_id):
        doc = await super().get(collection, doc_id)
        if self.hold_reads and not self._release.is_set():
            self._waiting += 1
            if self._waiting >= 2:
                self._release.set()
            await self._release.wait()
        return doc


class TestPotCrud:

    @pytest.mark.asyncio
    async def test_create_pot(self, components):
        pot = await components.pots.create(USER_ID, pot_payload())
        assert pot.total_saved == Decimal("50.00")
        assert pot.target == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_create_pot_without_target(self, components):
        pot = await components.pots.create(USER_ID, pot_payload(target=None, total_saved="0"))
        assert pot.target is None
        assert pot.total_saved == Decimal("0")

    @pytest.mark.asyncio
    async def test_update_cannot_touch_total_saved(self, components):
        pot = await components.pots.create(USER_ID, pot_payload())
        with pytest.raises(ValidationError) as exc_info:
            await components.pots.update(USER_ID, pot.id, {"total_saved": "999"})
        assert "total_saved" in exc_info.value.errors

        unchanged = await components.pots.get(USER_ID, pot.id)
        assert unchanged.total_saved == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_update_name_and_target(self, components):
        pot = await components.pots.create(USER_ID, pot_payload())
        updated = await components.pots.update(
            USER_ID, pot.id, {"name": "Summer holiday", "target": None}
        )
        assert updated.name == "Summer holiday"
        assert updated.target is None
        assert updated.total_saved == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_delete_pot(self, components):
        pot = await components.pots.create(USER_ID, pot_payload())
        await components.pots.delete(USER_ID, pot.id)
        assert await components.pots.list_all(USER_ID) == []

    @pytest.mark.asyncio
    async def test_sort_by_total_saved(self, components):
        await components.pots.create(USER_ID, pot_payload())
        await components.pots.create(USER_ID, pot_payload(name="Car", total_saved="300"))
        await components.pots.create(USER_ID, pot_payload(name="Gift", total_saved="0"))

        page = await components.pots.get_paginated(
            USER_ID, {"sort": {"field": "total_saved", "order": "desc"}}
        )
        assert [p.name for p in page.data] == ["Car", "Holiday", "Gift"]


class TestPotMoney:
    """Adding and withdrawing money."""

    @pytest.mark.asyncio
    async def test_add_then_withdraw(self, components):
        pot = await components.pots.create(USER_ID, pot_payload())

        pot = await components.pots.add_money(USER_ID, pot.id, {"amount": "25.50"})
        assert pot.total_saved == Decimal("75.50")

        pot = await components.pots.withdraw_money(USER_ID, pot.id, {"amount": "75.50"})
        assert pot.total_saved == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_accepts_bare_amount(self, components):
        pot = await components.pots.create(USER_ID, pot_payload())
        pot = await components.pots.add_money(USER_ID, pot.id, "10")
        assert pot.total_saved == Decimal("60.00")

    @pytest.mark.asyncio
    async def test_withdraw_more_than_saved(self, components):
        pot = await components.pots.create(USER_ID, pot_payload())

        with pytest.raises(InsufficientFundsError) as exc_info:
            await components.pots.withdraw_money(USER_ID, pot.id, {"amount": "100"})

        assert isinstance(exc_info.value, DomainRuleError)
        assert str(exc_info.value) == "Insufficient funds in pot"
        assert exc_info.value.available == Decimal("50.00")

        unchanged = await components.pots.get(USER_ID, pot.id)
        assert unchanged.total_saved == Decimal("50.00")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-10", "1.005", "abc"])
    async def test_invalid_amount(self, components, amount):
        pot = await components.pots.create(USER_ID, pot_payload())
        with pytest.raises(ValidationError) as exc_info:
            await components.pots.add_money(USER_ID, pot.id, {"amount": amount})
        assert "amount" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_money_on_missing_pot(self, components):
        with pytest.raises(NotFoundError):
            await components.pots.add_money(USER_ID, "nope", {"amount": "5"})
        with pytest.raises(NotFoundError):
            await components.pots.withdraw_money(USER_ID, "nope", {"amount": "5"})

    @pytest.mark.asyncio
    async def test_concurrent_deposits_are_not_lost(self, components):
        pot = await components.pots.create(USER_ID, pot_payload(total_saved="0"))

        await asyncio.gather(*[
            components.pots.add_money(USER_ID, pot.id, {"amount": "1.00"})
            for _ in range(20)
        ])

        final = await components.pots.get(USER_ID, pot.id)
        assert final.total_saved == Decimal("20.00")

    @pytest.mark.asyncio
    async def test_concurrent_withdrawals_can_overdraw(self, auth_provider):
        """
        Both withdrawals pass the funds check against the same balance of
        50 before either applies its increment.
        """
        store = HeldReadStore()
        app = create_app_components(store=store, auth_provider=auth_provider)
        try:
            pot = await app.pots.create(USER_ID, pot_payload())
            store.hold_reads = True

            await asyncio.gather(
                app.pots.withdraw_money(USER_ID, pot.id, {"amount": "40"}),
                app.pots.withdraw_money(USER_ID, pot.id, {"amount": "40"}),
            )

            final = await app.pots.get(USER_ID, pot.id)
            assert final.total_saved == Decimal("-30.00")
        finally:
            app.close()
