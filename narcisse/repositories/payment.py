from __future__ import annotations

from datetime import datetime

from sqlalchemy import select

from narcisse.domain.payment import Payment, PaymentLedger
from narcisse.repositories.base import BaseRepository


class PaymentRepository(BaseRepository[Payment]):
    model = Payment

    async def get_by_intent(self, intent_id: str) -> Payment | None:
        result = await self._session.execute(select(Payment).where(Payment.intent_id == intent_id))
        return result.scalars().first()

    async def get_by_order(self, order_id: str) -> Payment | None:
        result = await self._session.execute(select(Payment).where(Payment.order_id == order_id))
        return result.scalars().first()

    async def list_for_booking(self, booking_id: str) -> list[Payment]:
        result = await self._session.execute(
            select(Payment).where(Payment.booking_id == booking_id).order_by(Payment.created_at.desc())
        )
        return list(result.scalars().all())

    async def delete_for_booking(self, booking_id: str) -> int:
        return await self.delete_where(Payment.booking_id == booking_id)


class LedgerRepository(BaseRepository[PaymentLedger]):
    model = PaymentLedger

    async def list_for_booking(self, booking_id: str) -> list[PaymentLedger]:
        result = await self._session.execute(
            select(PaymentLedger)
            .where(PaymentLedger.booking_id == booking_id)
            .order_by(PaymentLedger.occurred_at.desc())
        )
        return list(result.scalars().all())

    async def list_between(self, start: datetime | None, end: datetime | None) -> list[PaymentLedger]:
        """Entries with start <= occurred_at < end."""
        q = select(PaymentLedger)
        if start is not None:
            q = q.where(PaymentLedger.occurred_at >= start)
        if end is not None:
            q = q.where(PaymentLedger.occurred_at < end)
        result = await self._session.execute(q.order_by(PaymentLedger.occurred_at.asc()))
        return list(result.scalars().all())

    async def list_newest(self, limit: int = 200) -> list[PaymentLedger]:
        result = await self._session.execute(
            select(PaymentLedger).order_by(PaymentLedger.occurred_at.desc()).limit(limit)
        )
        return list(result.scalars().all())
