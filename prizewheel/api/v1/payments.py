"""
Payment verification API endpoints
"""

import logging

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from prizewheel.api.deps import get_payment_gateway
from prizewheel.core.errors import PaymentVerificationError
from prizewheel.db.session import get_db
from prizewheel.services.payments import StripeClient, verify_payment

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()


class VerifyPaymentRequest(BaseModel):
    """Payment verification request model"""
    sessionId: str = Field(..., min_length=1, description="Checkout session ID")


@router.post("/verify")
async def verify_checkout_payment(
    request: VerifyPaymentRequest,
    session: AsyncSession = Depends(get_db),
    gateway: StripeClient = Depends(get_payment_gateway)
):
    """
    Confirm a checkout session.

    Wallet top-ups credit the wallet once; tier purchases return a spin token.
    """
    try:
        return await verify_payment(session, request.sessionId, gateway)
    except PaymentVerificationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
