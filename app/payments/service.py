"""Payout review and prize pool totals."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Deposit, Payment, PrizePool

logger = logging.getLogger(__name__)


async def get_active_prize_pool(session: AsyncSession) -> Optional[PrizePool]:
    """Most recent pool with status 'active'."""
    result = await session.execute(
        select(PrizePool)
        .where(PrizePool.status == "active")
        .order_by(PrizePool.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def refresh_prize_pool(session: AsyncSession) -> Optional[PrizePool]:
    """
    Re-total the active pool from deposits.

    Confirmed deposits are ``total_approved``, pending ones
    ``total_pending``; participants are distinct users with a confirmed
    deposit. Does not commit.
    """
    pool = await get_active_prize_pool(session)
    if pool is None:
        return None

    result = await session.execute(
        select(Deposit.status, func.coalesce(func.sum(Deposit.amount), 0))
        .where(Deposit.status.in_(["confirmed", "pending"]))
        .group_by(Deposit.status)
    )
    totals = {status: float(amount) for status, amount in result.all()}

    result = await session.execute(
        select(func.count(func.distinct(Deposit.user_id))).where(Deposit.status == "confirmed")
    )

    pool.total_approved = totals.get("confirmed", 0.0)
    pool.total_pending = totals.get("pending", 0.0)
    pool.participants_count = result.scalar_one()
    pool.updated_at = datetime.utcnow()
    session.add(pool)
    await session.flush()

    logger.info(
        f"Prize pool {pool.id} refreshed: approved={pool.total_approved} "
        f"pending={pool.total_pending} participants={pool.participants_count}"
    )
    return pool


def serialize_prize_pool(pool: Optional[PrizePool]) -> Optional[dict]:
    if pool is None:
        return None
    return {
        "id": pool.id,
        "tournamentId": pool.tournament_id,
        "seasonId": pool.season_id,
        "totalApproved": pool.total_approved,
        "totalPending": pool.total_pending,
        "totalDistributed": pool.total_distributed,
        "participantsCount": pool.participants_count,
        "currency": pool.currency,
        "status": pool.status,
    }


def review_payment(
    payment: Payment,
    approve: bool,
    admin_id: str,
    admin_name: str,
    rejection_reason: Optional[str] = None,
) -> Payment:
    """Stamp an admin decision on a payout request."""
    now = datetime.utcnow()
    payment.status = "approved" if approve else "rejected"
    payment.admin_id = admin_id
    payment.admin_name = admin_name
    payment.processed_at = now
    payment.updated_at = now
    if not approve:
        payment.rejection_reason = rejection_reason
    return payment


def review_deposit(deposit: Deposit, confirm: bool, notes: Optional[str] = None) -> Deposit:
    """Confirm or cancel an entry fee."""
    now = datetime.utcnow()
    if confirm:
        deposit.status = "confirmed"
        deposit.confirmed_at = now
    else:
        deposit.status = "cancelled"
        deposit.cancelled_at = now
        if notes:
            deposit.notes = notes
    return deposit
