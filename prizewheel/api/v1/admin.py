"""
Admin API endpoints
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, status, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from prizewheel.api.deps import get_email_client, get_retry_policy
from prizewheel.core.auth import CurrentUser, get_current_admin
from prizewheel.core.errors import CatalogValidationError, FulfillmentError
from prizewheel.db.session import get_db
from prizewheel.models.enums import AppRole, FulfillmentStatus, FulfillmentType, NotificationStatus, PaymentStatus, Tier
from prizewheel.repos.audit_log_repo import create_audit_log, get_audit_logs
from prizewheel.repos.ledger_repo import get_debits_for_spin
from prizewheel.repos.notification_repo import get_email_logs_for_spin, get_notifications, get_webhook_logs_for_spin
from prizewheel.repos.pricing_repo import update_price
from prizewheel.repos.prize_repo import (
    create_prize,
    get_all_prizes,
    get_delivery_for_prize,
    get_prize_by_id,
    update_prize,
    validate_catalog,
)
from prizewheel.repos.spin_repo import (
    get_revenue_by_date,
    get_spend_by_email,
    get_spin_by_id,
    get_spin_stats,
    get_spins_for_user,
    list_spins,
)
from prizewheel.repos.transaction_repo import list_transactions
from prizewheel.repos.user_role_repo import grant_role, list_roles, revoke_role
from prizewheel.services.email import EmailClient
from prizewheel.services.fulfillment import fulfill_manual_prize, list_pending_prizes, update_notification_status
from prizewheel.services.retry import RetryPolicy
from prizewheel.tasks.delivery import redeliver_prize

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()


class FulfillRequest(BaseModel):
    """Manual prize fulfillment request model"""
    spinId: UUID
    prizeLink: str = Field(..., min_length=1)


class NotificationUpdate(BaseModel):
    """Admin notification status change"""
    status: NotificationStatus


class PrizeCreate(BaseModel):
    """Prize creation request model"""
    name: str = Field(..., min_length=1, max_length=128)
    emoji: str = Field("🎁", max_length=16)
    fulfillment_type: FulfillmentType = FulfillmentType.AUTOMATIC
    active: bool = True
    position: int = 0
    weight_basic: int = Field(0, ge=0)
    weight_gold: int = Field(0, ge=0)
    weight_vip: int = Field(0, ge=0)
    is_tier_specific: bool = False
    delivery_content: Optional[str] = None
    delivery_content_basic: Optional[str] = None
    delivery_content_gold: Optional[str] = None
    delivery_content_vip: Optional[str] = None


class PrizeUpdate(BaseModel):
    """Prize update request model; omitted fields are unchanged"""
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    emoji: Optional[str] = Field(None, max_length=16)
    fulfillment_type: Optional[FulfillmentType] = None
    active: Optional[bool] = None
    position: Optional[int] = None
    weight_basic: Optional[int] = Field(None, ge=0)
    weight_gold: Optional[int] = Field(None, ge=0)
    weight_vip: Optional[int] = Field(None, ge=0)
    is_tier_specific: Optional[bool] = None
    delivery_content: Optional[str] = None
    delivery_content_basic: Optional[str] = None
    delivery_content_gold: Optional[str] = None
    delivery_content_vip: Optional[str] = None


class PriceUpdate(BaseModel):
    """Tier price change request model"""
    tier: str
    price: Decimal = Field(..., gt=0)
    stripe_price_id: str = Field(..., min_length=1)
    reason: Optional[str] = None


class RoleGrant(BaseModel):
    """Role grant request model"""
    userId: UUID
    role: AppRole = AppRole.ADMIN


def _since(days: Optional[int]) -> Optional[datetime]:
    return datetime.now(timezone.utc) - timedelta(days=days) if days else None


def _prize_values(model: BaseModel, exclude_unset: bool) -> dict:
    values = model.model_dump(exclude_unset=exclude_unset)
    if isinstance(values.get("fulfillment_type"), FulfillmentType):
        values["fulfillment_type"] = values["fulfillment_type"].value
    return values


async def _prize_with_delivery(session: AsyncSession, prize) -> dict:
    delivery = await get_delivery_for_prize(session, prize.id)
    data = prize.to_dict()
    data["delivery"] = {
        "is_tier_specific": delivery.is_tier_specific if delivery else False,
        "delivery_content": delivery.delivery_content if delivery else None,
        "delivery_content_basic": delivery.delivery_content_basic if delivery else None,
        "delivery_content_gold": delivery.delivery_content_gold if delivery else None,
        "delivery_content_vip": delivery.delivery_content_vip if delivery else None,
    }
    return data


@router.get("/admin/pending-prizes")
async def get_pending_prizes(
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Manual prizes waiting for fulfillment, oldest first.
    """
    prizes = await list_pending_prizes(session)
    return {"success": True, "count": len(prizes), "prizes": prizes}


@router.post("/admin/fulfill")
async def fulfill_prize(
    request: FulfillRequest,
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
    policy: RetryPolicy = Depends(get_retry_policy)
):
    """
    Send the prepared prize to the winner and mark the spin completed.
    """
    try:
        return await fulfill_manual_prize(
            session, request.spinId, request.prizeLink, current_admin, email_client, policy
        )
    except FulfillmentError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/admin/notifications")
async def list_notifications(
    status_filter: Optional[NotificationStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    List admin notifications, optionally by status.
    """
    notifications = await get_notifications(
        session, status=status_filter.value if status_filter else None, limit=limit, offset=offset
    )
    return {"notifications": [n.to_dict() for n in notifications], "limit": limit, "offset": offset}


@router.patch("/admin/notifications/{notification_id}")
async def patch_notification(
    notification_id: UUID,
    update: NotificationUpdate,
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Mark a notification completed or dismissed.
    """
    try:
        return await update_notification_status(session, notification_id, update.status, current_admin)
    except FulfillmentError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/admin/spins/{spin_id}/redeliver", status_code=status.HTTP_202_ACCEPTED)
async def redeliver_spin(
    spin_id: UUID,
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Queue automatic delivery again for a spin that never reached the winner.
    """
    spin = await get_spin_by_id(session, spin_id)
    if not spin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Spin not found")

    prize = await get_prize_by_id(session, spin.prize_id)
    if prize is None or prize.is_manual:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only automatic prizes can be redelivered"
        )
    if spin.fulfillment_status != FulfillmentStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Spin is already {spin.fulfillment_status}"
        )

    task = redeliver_prize.delay(str(spin_id))
    await create_audit_log(
        session,
        admin_id=current_admin.id,
        action="prize_redelivery_queued",
        resource_type="spin",
        resource_id=spin_id,
        details={"task_id": str(task.id)}
    )
    logger.info(f"Admin {current_admin.id} queued redelivery of spin {spin_id} (task {task.id})")
    return {"queued": True, "spinId": str(spin_id), "taskId": str(task.id)}


@router.get("/admin/prizes")
async def list_prizes(
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Full catalog including inactive prizes and delivery payloads.
    """
    prizes = await get_all_prizes(session)
    return {"prizes": [await _prize_with_delivery(session, p) for p in prizes]}


@router.post("/admin/prizes", status_code=status.HTTP_201_CREATED)
async def add_prize(
    request: PrizeCreate,
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Create a prize. Rejected when a drawable tier has no delivery payload.
    """
    try:
        prize = await create_prize(session, _prize_values(request, exclude_unset=False))
    except CatalogValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid prize", "problems": e.problems}
        )

    await create_audit_log(
        session,
        admin_id=current_admin.id,
        action="prize_created",
        resource_type="prize",
        resource_id=prize.id,
        details={"name": prize.name}
    )
    return await _prize_with_delivery(session, prize)


@router.patch("/admin/prizes/{prize_id}")
async def edit_prize(
    prize_id: UUID,
    request: PrizeUpdate,
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Update a prize. Deactivate with active=false; prizes are never deleted.
    """
    values = _prize_values(request, exclude_unset=True)
    try:
        prize = await update_prize(session, prize_id, values)
    except CatalogValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid prize", "problems": e.problems}
        )
    if prize is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prize not found")

    await create_audit_log(
        session,
        admin_id=current_admin.id,
        action="prize_updated",
        resource_type="prize",
        resource_id=prize.id,
        details={"fields": sorted(values)}
    )
    return await _prize_with_delivery(session, prize)


@router.get("/admin/catalog/check")
async def check_catalog(
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Report catalog invariant violations in the live catalog.
    """
    problems = await validate_catalog(session)
    return {"ok": not problems, "problems": problems}


@router.put("/admin/pricing")
async def set_price(
    request: PriceUpdate,
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Change a tier's spin price; the change is kept in pricing history.
    """
    try:
        config = await update_price(
            session, request.tier, request.price, request.stripe_price_id,
            changed_by=current_admin.id, reason=request.reason
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await create_audit_log(
        session,
        admin_id=current_admin.id,
        action="price_updated",
        resource_type="pricing",
        resource_id=config.id,
        details={"tier": config.tier, "price": str(config.price), "reason": request.reason}
    )
    return {
        "success": True,
        "tier": config.tier,
        "price": float(config.price),
        "stripe_price_id": config.stripe_price_id
    }


@router.get("/admin/spins")
async def list_spin_history(
    tier: Optional[Tier] = Query(None),
    status_filter: Optional[FulfillmentStatus] = Query(None, alias="status"),
    email: Optional[str] = Query(None),
    days: Optional[int] = Query(None, ge=1, le=366),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Spin history, newest first, filtered by tier, fulfillment status, winner or age.
    """
    rows = await list_spins(
        session,
        tier=tier.value if tier else None,
        status=status_filter.value if status_filter else None,
        email=email,
        since=_since(days),
        limit=limit,
        offset=offset
    )
    spins = []
    for spin, prize_name in rows:
        item = spin.to_dict()
        item["prize_name"] = prize_name
        spins.append(item)
    return {"spins": spins, "limit": limit, "offset": offset}


@router.get("/admin/spins/{spin_id}")
async def get_spin_detail(
    spin_id: UUID,
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    One spin with its wallet debit and every delivery attempt.
    """
    spin = await get_spin_by_id(session, spin_id)
    if not spin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Spin not found")

    prize = await get_prize_by_id(session, spin.prize_id)
    return {
        "spin": spin.to_dict(),
        "prize": prize.to_dict() if prize else None,
        "debits": [d.to_dict() for d in await get_debits_for_spin(session, spin_id)],
        "emails": [log.to_dict() for log in await get_email_logs_for_spin(session, spin_id)],
        "webhooks": [log.to_dict() for log in await get_webhook_logs_for_spin(session, spin_id)],
    }


@router.get("/admin/analytics")
async def get_analytics(
    days: Optional[int] = Query(None, ge=1, le=366, description="Only the last N days"),
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Spin counts and revenue per tier and per day.
    """
    since = _since(days)
    by_tier = await get_spin_stats(session, since=since)
    by_date = await get_revenue_by_date(session, since=since)

    return {
        "days": days,
        "totalSpins": sum(s["spins"] for s in by_tier.values()),
        "totalRevenue": float(sum((s["revenue"] for s in by_tier.values()), Decimal("0"))),
        "tiers": {tier: {"spins": s["spins"], "revenue": float(s["revenue"])} for tier, s in by_tier.items()},
        "revenueByDate": [
            {"date": d["date"], "spins": d["spins"], "revenue": float(d["revenue"])} for d in by_date
        ],
    }


@router.get("/admin/transactions")
async def list_legacy_transactions(
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    tier: Optional[Tier] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Paid checkout sessions recorded for token spins, newest first.
    """
    transactions = await list_transactions(
        session,
        status=status_filter.value if status_filter else None,
        tier=tier.value if tier else None,
        limit=limit,
        offset=offset
    )
    return {"transactions": [t.to_dict() for t in transactions], "limit": limit, "offset": offset}


@router.get("/admin/users")
async def list_players(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Players seen in spin history with their spin count and spend.
    """
    players = await get_spend_by_email(session, limit=limit, offset=offset)
    return {
        "users": [
            {
                "email": p["email"],
                "total_spins": p["total_spins"],
                "total_spent": float(p["total_spent"]),
                "last_spin_at": p["last_spin_at"].isoformat() if p["last_spin_at"] else None,
            }
            for p in players
        ],
        "limit": limit,
        "offset": offset,
    }


@router.get("/admin/users/{user_id}/spins")
async def list_user_spins(
    user_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Wallet spins of one user, newest first.
    """
    spins = await get_spins_for_user(session, user_id, limit=limit, offset=offset)
    return {"spins": [s.to_dict() for s in spins], "limit": limit, "offset": offset}


@router.get("/admin/audit-logs")
async def list_audit_logs(
    action: Optional[str] = Query(None, description="Filter by action type"),
    admin_id: Optional[UUID] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Admin actions and delivery failures, newest first.
    """
    logs = await get_audit_logs(session, limit=limit, offset=offset, action=action, admin_id=admin_id)
    return {"logs": [log.to_dict() for log in logs], "limit": limit, "offset": offset}


@router.get("/admin/roles")
async def get_roles(
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Every role grant.
    """
    return {"roles": [r.to_dict() for r in await list_roles(session)]}


@router.post("/admin/roles", status_code=status.HTTP_201_CREATED)
async def add_role(
    request: RoleGrant,
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Grant a role to a user. Granting a role the user already holds is a no-op.
    """
    user_role = await grant_role(session, request.userId, request.role)
    await create_audit_log(
        session,
        admin_id=current_admin.id,
        action="role_granted",
        resource_type="user",
        resource_id=request.userId,
        details={"role": request.role.value}
    )
    logger.info(f"Admin {current_admin.id} granted {request.role.value} to {request.userId}")
    return user_role.to_dict()


@router.delete("/admin/roles/{user_id}/{role}")
async def remove_role(
    user_id: UUID,
    role: AppRole,
    current_admin: CurrentUser = Depends(get_current_admin),
    session: AsyncSession = Depends(get_db)
):
    """
    Revoke a role. Admins cannot revoke their own admin role.
    """
    if user_id == current_admin.id and role == AppRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Admins cannot revoke their own admin role"
        )

    if not await revoke_role(session, user_id, role):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not granted")

    await create_audit_log(
        session,
        admin_id=current_admin.id,
        action="role_revoked",
        resource_type="user",
        resource_id=user_id,
        details={"role": role.value}
    )
    logger.info(f"Admin {current_admin.id} revoked {role.value} from {user_id}")
    return {"success": True, "userId": str(user_id), "role": role.value}
