"""
Payment verification and wallet top-ups
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from prizewheel.core.config import settings
from prizewheel.core.errors import PaymentGatewayError, PaymentVerificationError
from prizewheel.models.enums import LedgerEntryType, TIERS
from prizewheel.repos.wallet_repo import get_or_create_wallet, credit_wallet_atomic, get_wallet_for_user
from prizewheel.repos.ledger_repo import create_ledger_entry, get_ledger_entry_by_payment
from prizewheel.repos.transaction_repo import record_paid_transaction
from prizewheel.services.spin_token import sign_token

# Configure logging
logger = logging.getLogger(__name__)

WALLET_TOPUP = "wallet_topup"
TIER_PURCHASE = "tier_purchase"


@dataclass
class CheckoutSession:
    id: str
    payment_status: str
    amount_total: int
    email: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def amount(self) -> Decimal:
        """Amount paid in major currency units."""
        return (Decimal(self.amount_total or 0) / Decimal(100)).quantize(Decimal("0.01"))


class StripeClient:
    """Reads checkout sessions from the Stripe REST API"""

    def __init__(self, secret_key: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.secret_key = secret_key if secret_key is not None else settings.stripe_secret_key
        self.base_url = (base_url or settings.stripe_base_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """
        Fetch a checkout session.

        Raises:
            PaymentGatewayError: if the gateway is unconfigured, unreachable or rejects the lookup
        """
        if not self.secret_key:
            raise PaymentGatewayError("Payment gateway not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    f"{self.base_url}/v1/checkout/sessions/{session_id}",
                    headers={"Authorization": f"Bearer {self.secret_key}"},
                )
        except httpx.HTTPError as e:
            raise PaymentGatewayError(f"Stripe request failed: {e}") from e

        if response.status_code >= 400:
            raise PaymentGatewayError(
                f"Stripe returned {response.status_code} for session {session_id}",
                status_code=response.status_code,
            )

        data = response.json()
        customer = data.get("customer_details") or {}
        return CheckoutSession(
            id=data.get("id", session_id),
            payment_status=data.get("payment_status", ""),
            amount_total=data.get("amount_total") or 0,
            email=customer.get("email") or data.get("customer_email"),
            metadata=data.get("metadata") or {},
        )


async def _credit_topup(session: AsyncSession, checkout: CheckoutSession) -> Dict:
    try:
        user_id = UUID(checkout.metadata.get("user_id", ""))
    except ValueError:
        raise PaymentVerificationError("Top-up session has no valid user_id")

    amount = checkout.amount
    if amount <= 0:
        raise PaymentVerificationError("Top-up amount must be positive")

    wallet = await get_or_create_wallet(session, user_id)

    existing = await get_ledger_entry_by_payment(session, checkout.id)
    if existing:
        logger.info(f"Top-up {checkout.id} already credited to user {user_id}")
        await session.refresh(wallet)
        return {"type": WALLET_TOPUP, "amount": float(amount), "newBalance": float(wallet.balance), "credited": False}

    try:
        success, error, new_balance = await credit_wallet_atomic(session, user_id, amount)
        if not success:
            raise PaymentVerificationError(error or "Failed to credit wallet", status_code=500)
        await create_ledger_entry(
            session,
            wallet_id=wallet.id,
            user_id=user_id,
            amount=amount,
            tx_type=LedgerEntryType.CREDIT,
            description=f"Wallet top-up ({checkout.id})",
            stripe_payment_id=checkout.id,
        )
        await session.commit()
    except IntegrityError:
        # another verification of the same session committed first
        await session.rollback()
        wallet = await get_wallet_for_user(session, user_id)
        return {"type": WALLET_TOPUP, "amount": float(amount), "newBalance": float(wallet.balance), "credited": False}
    except Exception:
        await session.rollback()
        raise

    logger.info(f"Top-up {checkout.id}: credited {amount} to user {user_id}, balance {new_balance}")
    return {"type": WALLET_TOPUP, "amount": float(amount), "newBalance": float(new_balance), "credited": True}


async def _record_tier_purchase(session: AsyncSession, checkout: CheckoutSession) -> Dict:
    tier = checkout.metadata.get("tier") or "basic"
    if tier not in TIERS:
        raise PaymentVerificationError(f"Invalid tier: {tier}")
    email = checkout.email or ""

    await record_paid_transaction(session, checkout.id, email, tier, checkout.amount)
    return {"type": TIER_PURCHASE, "token": sign_token(checkout.id, tier), "tier": tier, "email": email}


async def verify_payment(session: AsyncSession, session_id: str, gateway: StripeClient) -> Dict:
    """
    Confirm a checkout session and apply it.

    Wallet top-ups credit the wallet once per session; tier purchases record a
    paid transaction and return a signed spin token.

    Args:
        session: Database session
        session_id: Checkout session ID
        gateway: Payment gateway client

    Returns:
        Response body with verified=True and type-specific fields

    Raises:
        PaymentVerificationError: if the payment is not completed or cannot be applied
    """
    if not session_id:
        raise PaymentVerificationError("Session ID is required")

    try:
        checkout = await gateway.retrieve_checkout_session(session_id)
    except PaymentGatewayError as e:
        logger.error(f"Could not retrieve checkout session {session_id}: {e}")
        raise PaymentVerificationError("Could not verify payment", status_code=502)

    if checkout.payment_status != "paid":
        logger.warning(f"Checkout session {session_id} not paid ({checkout.payment_status})")
        raise PaymentVerificationError("Payment not completed")

    if checkout.metadata.get("type") == WALLET_TOPUP:
        result = await _credit_topup(session, checkout)
    else:
        result = await _record_tier_purchase(session, checkout)

    return {"verified": True, **result}
