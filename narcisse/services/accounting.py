"""Back-office accounting: planning blocks, daily closures, cash drawer and ledger entries."""

from __future__ import annotations

import hashlib
import json
import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from narcisse.core.cache import invalidate_date_after_commit, notify_planning_after_commit
from narcisse.core.exceptions import BadRequestError, ConflictError, NotFoundError
from narcisse.core.timeutils import as_utc, day_bounds, utcnow
from narcisse.domain.accounting import BlockedInterval, CashMovement, CashSession, DailyClosure
from narcisse.domain.payment import PaymentLedger
from narcisse.repositories.accounting import (
    BlockRepository,
    CashMovementRepository,
    CashSessionRepository,
    ClosureRepository,
)
from narcisse.repositories.payment import LedgerRepository
from narcisse.schemas.accounting import BlockCreate, BlockUpdate, CashAction, LedgerEntryCreate
from narcisse.services.activity_log import create_log
from narcisse.services.vat import compute_vat_from_gross

logger = logging.getLogger(__name__)

_LOCAL_MINUTES = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def normalize_block_datetime(value: str) -> datetime:
    """Planning form values are UTC wall instants; `YYYY-MM-DDTHH:MM` gets `:00Z`, anything without `Z` gets one."""
    value = value.strip()
    if _LOCAL_MINUTES.match(value):
        value = f"{value}:00Z"
    elif not value.endswith("Z"):
        value = f"{value}Z"
    try:
        return as_utc(datetime.fromisoformat(value[:-1] + "+00:00"))
    except ValueError as exc:
        raise BadRequestError(f"Date invalide: {value}") from exc


def days_in_range(start: datetime, end: datetime) -> list[date]:
    first, last = as_utc(start).date(), as_utc(end).date()
    return [first + timedelta(days=i) for i in range((last - first).days + 1)]


def closure_snapshot(entries: list[PaymentLedger]) -> dict[str, Any]:
    """Totals per provider, with vouchers keyed by their method type."""
    totals: dict[str, int] = {}
    vouchers: dict[str, int] = {}
    for entry in entries:
        if entry.provider == "voucher":
            key = entry.method_type or "voucher"
            vouchers[key] = vouchers.get(key, 0) + round(entry.amount or 0)
        else:
            totals[entry.provider] = totals.get(entry.provider, 0) + round(entry.amount or 0)
    return {"totals": totals, "vouchers": vouchers, "count": len(entries)}


def canonical_json(snapshot: dict[str, Any]) -> str:
    return json.dumps(snapshot, sort_keys=True, separators=(",", ":"))


def snapshot_hash(canonical: str) -> str:
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

class BlockService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._blocks = BlockRepository(session)

    async def list_blocks(self) -> list[BlockedInterval]:
        return await self._blocks.list_recent_first()

    @staticmethod
    def _check_range(start: datetime, end: datetime) -> None:
        if end <= start:
            raise BadRequestError("La fin doit être après le début.")

    async def _invalidate(self, *ranges: tuple[datetime, datetime]) -> None:
        days: set[date] = set()
        for start, end in ranges:
            days.update(days_in_range(start, end))
        for day in sorted(days):
            invalidate_date_after_commit(self._session, day.isoformat())
        notify_planning_after_commit(self._session)

    async def create_block(self, data: BlockCreate, actor_id: Optional[str]) -> BlockedInterval:
        start, end = normalize_block_datetime(data.start), normalize_block_datetime(data.end)
        self._check_range(start, end)
        block = await self._blocks.create(
            start=start, end=end, scope=data.scope, reason=data.reason, created_by_id=actor_id
        )
        suffix = f" ({data.reason})" if data.reason else ""
        create_log(self._session, "BLOCK_ADD", f"Blocage {data.scope} du {data.start} au {data.end}{suffix}", actor_id)
        await self._invalidate((start, end))
        return block

    async def update_block(self, data: BlockUpdate, actor_id: Optional[str]) -> BlockedInterval:
        block = await self._blocks.get_by_id(data.id)
        if block is None:
            raise NotFoundError("Block", data.id)
        previous = (as_utc(block.start), as_utc(block.end))

        start = normalize_block_datetime(data.start) if data.start else previous[0]
        end = normalize_block_datetime(data.end) if data.end else previous[1]
        self._check_range(start, end)
        changes: dict[str, Any] = {"start": start, "end": end}
        if data.scope is not None:
            changes["scope"] = data.scope
        if data.reason is not None:
            changes["reason"] = data.reason
        block = await self._blocks.update(block, **changes)

        create_log(
            self._session,
            "BLOCK_UPDATE",
            f"Mise à jour blocage {block.scope} ({start.isoformat()} -> {end.isoformat()})",
            actor_id,
        )
        await self._invalidate(previous, (start, end))
        return block

    async def delete_block(self, block_id: Optional[str], actor_id: Optional[str]) -> None:
        if not block_id:
            raise BadRequestError("ID manquant")
        block = await self._blocks.get_by_id(block_id)
        if block is None:
            raise NotFoundError("Block", block_id)
        start, end = as_utc(block.start), as_utc(block.end)
        await self._blocks.delete(block)
        create_log(
            self._session,
            "BLOCK_DELETE",
            f"Suppression blocage {block.scope} ({start.isoformat()} -> {end.isoformat()})",
            actor_id,
        )
        await self._invalidate((start, end))


# ---------------------------------------------------------------------------
# Closures, cash drawer, ledger
# ---------------------------------------------------------------------------

class AccountingService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._closures = ClosureRepository(session)
        self._cash = CashSessionRepository(session)
        self._movements = CashMovementRepository(session)
        self._ledger = LedgerRepository(session)

    # ── Daily closures ───────────────────────────────────────────────────

    async def list_closures(self) -> list[DailyClosure]:
        return await self._closures.list_recent(60)

    async def close_day(self, day: date, actor_id: Optional[str]) -> DailyClosure:
        """Seal the ledger totals of a UTC day; one closure per day."""
        if await self._closures.get_by_day(day) is not None:
            raise ConflictError("Journée déjà clôturée", code="ALREADY_CLOSED")

        start, end = day_bounds(day)
        entries = await self._ledger.list_between(start, end)
        canonical = canonical_json(closure_snapshot(entries))
        closure = await self._closures.create(
            day=day,
            closed_by_id=actor_id,
            totals_json=canonical,
            hash=snapshot_hash(canonical),
            locked=True,
        )
        create_log(self._session, "DAY_CLOSURE", f"Clôture du {day.isoformat()} ({len(entries)} écritures)", actor_id)
        logger.info("Day %s closed with %d ledger entries", day, len(entries))
        return closure

    # ── Cash drawer ──────────────────────────────────────────────────────

    async def list_cash_sessions(self) -> list[CashSession]:
        return await self._cash.list_recent(20)

    async def _open_session(self, session_id: Optional[str]) -> CashSession:
        if not session_id:
            raise BadRequestError("sessionId requis")
        cash_session = await self._cash.get_by_id(session_id)
        if cash_session is None:
            raise NotFoundError("Cash session", session_id)
        if cash_session.closed_at is not None:
            raise ConflictError("Session de caisse clôturée", code="SESSION_CLOSED")
        return await self._cash.reload(cash_session.id)

    @staticmethod
    def expected_amount(cash_session: CashSession) -> int:
        total = cash_session.opening_float
        for movement in cash_session.movements:
            total += movement.amount if movement.kind == "IN" else -movement.amount
        return total

    async def handle_cash_action(self, data: CashAction, actor_id: Optional[str]) -> CashSession | CashMovement:
        if data.action == "open":
            cash_session = await self._cash.create(opening_float=data.opening_float or 0, opened_by_id=actor_id)
            create_log(self._session, "CASH_OPEN", f"Ouverture caisse (fond {cash_session.opening_float})", actor_id)
            return await self._cash.reload(cash_session.id)

        if data.action == "close":
            cash_session = await self._open_session(data.session_id)
            if data.closing_count is None:
                raise BadRequestError("closingCount requis")
            expected = self.expected_amount(cash_session)
            await self._cash.update(
                cash_session,
                closed_at=utcnow(),
                closed_by_id=actor_id,
                closing_count=data.closing_count,
                expected_amount=expected,
                variance=data.closing_count - expected,
            )
            create_log(
                self._session,
                "CASH_CLOSE",
                f"Clôture caisse {cash_session.id}: compté {data.closing_count}, attendu {expected}",
                actor_id,
            )
            return await self._cash.reload(cash_session.id)

        if data.action == "movement":
            cash_session = await self._open_session(data.session_id)
            if data.kind is None or data.amount is None:
                raise BadRequestError("kind et amount requis")
            movement = await self._movements.create(
                session_id=cash_session.id, kind=data.kind, amount=data.amount, note=data.note
            )
            create_log(self._session, "CASH_MOVEMENT", f"Mouvement {data.kind} {data.amount}", actor_id)
            return movement

        raise BadRequestError("Unknown action", code="UNKNOWN_ACTION")

    # ── Ledger ───────────────────────────────────────────────────────────

    async def list_ledger(self) -> list[PaymentLedger]:
        return await self._ledger.list_newest(200)

    async def create_ledger_entry(self, data: LedgerEntryCreate, actor_id: Optional[str]) -> PaymentLedger:
        vat = compute_vat_from_gross(data.amount)
        entry = await self._ledger.create(
            event_type=data.event_type,
            booking_id=data.booking_id,
            payment_id=data.payment_id,
            provider=data.provider,
            method_type=data.method_type,
            amount=data.amount,
            currency=data.currency.upper(),
            vat_rate=vat.rate_percent,
            net_amount=vat.net,
            vat_amount=vat.vat,
            gross_amount=vat.gross,
            actor_id=actor_id,
            note=data.note,
        )
        create_log(
            self._session,
            "LEDGER_ENTRY",
            f"Écriture {data.event_type} {data.provider} {data.amount} {entry.currency}",
            actor_id,
        )
        return entry
