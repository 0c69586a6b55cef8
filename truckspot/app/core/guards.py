"""
Security guards for role-based and ownership-based access control.

Provides dependencies for protecting endpoints.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from truckspot.app.models.enums import UserRole
from truckspot.app.models.food_truck import FoodTruck
from truckspot.app.core.dependencies import get_current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.put("/trucks/{truck_id}/location")
        async def check_in(current_user: dict = Depends(require_role([UserRole.OWNER]))):
            ...

    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint

    Returns:
        FastAPI dependency function that validates user role

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )

        # Convert string role to UserRole enum
        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """
    Dependency for admin-only endpoints.

    Returns:
        User payload if admin, raises 403 otherwise
    """
    if current_user.get("role") != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )

    return current_user


def owns_truck(truck: FoodTruck, current_user: dict) -> bool:
    """Admins may act on any truck; owners only on their own."""
    if current_user.get("role") == UserRole.ADMIN.value:
        return True
    return current_user.get("user_id") == truck.owner_id


class TruckOwnershipGuard:
    """
    Ownership guard for truck-scoped owner endpoints.

    Usage:
        truck = await get_truck(db, truck_id)
        ownership_guard.enforce(truck, current_user)
    """

    def enforce(self, truck: FoodTruck, current_user: dict):
        """
        Raise 403 unless the current user owns ``truck``.

        Raises:
            HTTPException 403 if ownership check fails
        """
        if not owns_truck(truck, current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. You do not have permission to manage this truck."
            )
