"""
User role repository
"""

from typing import List, Optional
from uuid import UUID
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from prizewheel.models.user_role import UserRole
from prizewheel.models.enums import AppRole

# Configure logging
logger = logging.getLogger(__name__)


async def has_role(session: AsyncSession, user_id: UUID, role: AppRole) -> bool:
    """
    Check whether a user holds a role.

    Args:
        session: Database session
        user_id: User UUID
        role: Role to check

    Returns:
        True if a matching user_roles row exists
    """
    result = await session.execute(
        select(UserRole.id).where(UserRole.user_id == user_id, UserRole.app_role == role.value)
    )
    return result.first() is not None


async def grant_role(session: AsyncSession, user_id: UUID, role: AppRole) -> UserRole:
    """Grant a role, returning the existing row when already granted."""
    result = await session.execute(
        select(UserRole).where(UserRole.user_id == user_id, UserRole.app_role == role.value)
    )
    existing = result.scalar_one_or_none()
    if existing:
        return existing

    user_role = UserRole(user_id=user_id, app_role=role.value)
    session.add(user_role)
    await session.commit()
    await session.refresh(user_role)
    logger.info(f"Granted {role.value} role to user {user_id}")
    return user_role


async def list_roles(session: AsyncSession, role: Optional[AppRole] = None) -> List[UserRole]:
    query = select(UserRole).order_by(UserRole.created_at)
    if role:
        query = query.where(UserRole.app_role == role.value)
    result = await session.execute(query)
    return list(result.scalars().all())


async def revoke_role(session: AsyncSession, user_id: UUID, role: AppRole) -> bool:
    """
    Revoke a role.

    Args:
        session: Database session
        user_id: User UUID
        role: Role to remove

    Returns:
        True if a row was removed, False when the user did not hold the role
    """
    result = await session.execute(
        delete(UserRole).where(UserRole.user_id == user_id, UserRole.app_role == role.value)
    )
    await session.commit()
    if result.rowcount:
        logger.info(f"Revoked {role.value} role from user {user_id}")
    return bool(result.rowcount)
