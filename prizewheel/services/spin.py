"""
Spin transaction handler

Wallet spins: validate, check balance, draw, then debit + spin row + ledger
row in one database transaction, then dispatch delivery. Token spins redeem
a signed single-use token from a paid checkout session instead of the wallet.
"""

import logging
import random
import secrets
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from prizewheel.core.auth import CurrentUser
from prizewheel.core.errors import (
    InvalidTierError,
    InsufficientBalanceError,
    NoPrizesAvailableError,
    PaymentNotFoundError,
    TokenAlreadyUsedError,
)
from prizewheel.core.metrics import SPIN_COUNT
from prizewheel.models.enums import LedgerEntryType, TIERS
from prizewheel.models.prize import Prize
from prizewheel.repos.ledger_repo import create_ledger_entry
from prizewheel.repos.pricing_repo import get_spin_cost
from prizewheel.repos.prize_repo import get_active_prizes, get_delivery_for_prize, resolve_delivery_content
from prizewheel.repos.spin_repo import create_spin, get_spin_by_token_hash, get_won_prize_ids
from prizewheel.repos.transaction_repo import get_paid_transaction
from prizewheel.repos.wallet_repo import get_or_create_wallet, debit_wallet_atomic
from prizewheel.services.delivery import DeliveryDispatcher
from prizewheel.services.draw import draw_prize
from prizewheel.services.spin_token import verify_token, hash_token

# Configure logging
logger = logging.getLogger(__name__)


def validate_tier(tier) -> str:
    if not isinstance(tier, str) or tier not in TIERS:
        raise InvalidTierError(tier)
    return tier


def prize_payload(prize: Prize, content: Optional[str], include_content: bool = True) -> Dict:
    payload = {
        "id": str(prize.id),
        "name": prize.name,
        "emoji": prize.emoji,
        "type": prize.fulfillment_type,
    }
    if include_content:
        payload["delivery_content"] = content
    return payload


async def _draw(session: AsyncSession, email: str, tier: str, rng: Optional[random.Random]) -> Prize:
    prizes = await get_active_prizes(session)
    won_prize_ids = await get_won_prize_ids(session, email)
    prize = draw_prize(prizes, tier, won_prize_ids, rng)
    logger.info(f"Drew prize {prize.id} ({prize.name}) for {email} on {tier} tier")
    return prize


async def _resolve_content(session: AsyncSession, prize: Prize, tier: str) -> Optional[str]:
    delivery = await get_delivery_for_prize(session, prize.id)
    content = resolve_delivery_content(delivery, tier)
    if content is None:
        logger.error(f"Data integrity error: prize {prize.id} has no delivery content for {tier} tier")
    return content


async def spin_with_wallet(
    session: AsyncSession,
    user: CurrentUser,
    tier: str,
    dispatcher: DeliveryDispatcher,
    rng: Optional[random.Random] = None
) -> Dict:
    """
    Spend wallet balance on one spin.

    Args:
        session: Database session
        user: Authenticated caller
        tier: basic, gold or vip
        dispatcher: Delivery dispatcher for the won prize
        rng: Random source for the draw (optional)

    Returns:
        {"prize": {...}, "newBalance": float}

    Raises:
        InvalidTierError: unknown tier
        InsufficientBalanceError: balance below the tier cost
        NoPrizesAvailableError: nothing drawable for the tier
    """
    tier = validate_tier(tier)

    wallet = await get_or_create_wallet(session, user.id)
    cost = await get_spin_cost(session, tier)
    balance = Decimal(wallet.balance)
    if balance < cost:
        logger.warning(f"User {user.id} cannot afford {tier} spin: balance {balance}, cost {cost}")
        SPIN_COUNT.labels(tier=tier, status="insufficient_balance").inc()
        raise InsufficientBalanceError(balance=balance, required=cost)

    try:
        prize = await _draw(session, user.email, tier, rng)
    except NoPrizesAvailableError:
        logger.error(f"No prizes available for {tier} tier")
        SPIN_COUNT.labels(tier=tier, status="no_prizes").inc()
        raise
    content = await _resolve_content(session, prize, tier)

    try:
        success, error, new_balance = await debit_wallet_atomic(session, user.id, cost)
        if not success:
            await session.rollback()
            SPIN_COUNT.labels(tier=tier, status="insufficient_balance").inc()
            raise InsufficientBalanceError(balance=new_balance or Decimal("0"), required=cost)

        spin = await create_spin(
            session,
            email=user.email,
            prize_id=prize.id,
            tier=tier,
            amount_paid=cost,
            token_hash=f"wallet_{secrets.token_hex(16)}",
            user_id=user.id,
        )
        await create_ledger_entry(
            session,
            wallet_id=wallet.id,
            user_id=user.id,
            amount=-cost,
            tx_type=LedgerEntryType.DEBIT,
            description=f"Spin - {tier.upper()} tier",
            spin_id=spin.id,
        )
        await session.commit()
    except InsufficientBalanceError:
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Spin transaction failed for user {user.id}, nothing debited: {e}")
        SPIN_COUNT.labels(tier=tier, status="error").inc()
        raise

    await session.refresh(spin)
    SPIN_COUNT.labels(tier=tier, status="success").inc()
    logger.info(f"Spin {spin.id}: user {user.id} paid {cost} for {tier}, balance now {new_balance}")

    # payload is built first; a failed delivery rolls back and expires the prize
    result = {
        "prize": prize_payload(prize, content),
        "newBalance": float(new_balance),
    }
    await dispatcher.dispatch(session, spin, prize, content)
    return result


async def spin_with_token(
    session: AsyncSession,
    token: str,
    tier: str,
    dispatcher: DeliveryDispatcher,
    rng: Optional[random.Random] = None,
    now_ms: Optional[int] = None
) -> Dict:
    """
    Redeem a signed spin token from a paid checkout session.

    Args:
        session: Database session
        token: session_id:tier:timestamp_ms:signature
        tier: basic, gold or vip (must match the token)
        dispatcher: Delivery dispatcher for the won prize
        rng: Random source for the draw (optional)
        now_ms: Current time override for expiry checks (optional)

    Returns:
        {"prize": {...}}

    Raises:
        InvalidTierError, InvalidSpinTokenError, TokenAlreadyUsedError,
        PaymentNotFoundError, NoPrizesAvailableError
    """
    tier = validate_tier(tier)
    claims = verify_token(token, tier, now_ms=now_ms)

    token_hash = hash_token(token)
    if await get_spin_by_token_hash(session, token_hash):
        logger.warning(f"Spin token for session {claims.session_id} already used")
        SPIN_COUNT.labels(tier=tier, status="token_reused").inc()
        raise TokenAlreadyUsedError()

    transaction = await get_paid_transaction(session, claims.session_id, tier)
    if not transaction:
        logger.warning(f"No paid {tier} transaction for session {claims.session_id}")
        raise PaymentNotFoundError()

    prize = await _draw(session, transaction.email, tier, rng)
    content = await _resolve_content(session, prize, tier)

    try:
        spin = await create_spin(
            session,
            email=transaction.email,
            prize_id=prize.id,
            tier=tier,
            amount_paid=transaction.amount,
            token_hash=token_hash,
            stripe_payment_id=claims.session_id,
        )
        await session.commit()
    except IntegrityError:
        # concurrent redemption of the same token won the unique constraint
        await session.rollback()
        SPIN_COUNT.labels(tier=tier, status="token_reused").inc()
        raise TokenAlreadyUsedError()
    except Exception:
        await session.rollback()
        raise

    await session.refresh(spin)
    SPIN_COUNT.labels(tier=tier, status="success").inc()
    logger.info(f"Spin {spin.id}: token for session {claims.session_id} redeemed on {tier} tier")

    result = {"prize": prize_payload(prize, content)}
    await dispatcher.dispatch(session, spin, prize, content)
    return result
