"""
Database seeding script for development.

Creates an ADMIN, an OWNER and a CUSTOMER user plus a few food trucks, and
prints access tokens for trying the API by hand.
Run this script after database is set up but before first use.
"""

import asyncio

from sqlalchemy import select

from truckspot.app.core.jwt import create_access_token
from truckspot.app.db.session import AsyncSessionLocal, Base, engine
from truckspot.app.models.enums import UserRole
from truckspot.app.models.food_truck import FoodTruck
from truckspot.app.models.user import User
from truckspot.app.models.tracking_session import LiveTrackingSession  # noqa: F401
from truckspot.app.models.audit_log import AuditLog  # noqa: F401

SEED_USERS = [
    ("admin", "admin@truckspot.dev", UserRole.ADMIN),
    ("truckowner", "owner@truckspot.dev", UserRole.OWNER),
    ("customer", "customer@truckspot.dev", UserRole.CUSTOMER),
]

SEED_TRUCKS = [
    # name, cuisine, allow customer reports, require verification
    ("Taco Fiesta", "Mexican", True, False),
    ("Seoul Food", "Korean", True, True),
    ("Sushi Express", "Japanese", False, False),
]


async def seed_trucks():
    """
    Seed users and trucks.

    Creates:
    - 1 ADMIN, 1 OWNER and 1 CUSTOMER user
    - 3 trucks owned by the OWNER with different tracking preferences
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        result = await db.execute(select(User).where(User.username == "admin"))
        if result.scalar_one_or_none():
            print("ℹ️  Seed users already exist, skipping seeding")
            return

        users = {}
        for username, email, role in SEED_USERS:
            user = User(email=email, username=username, role=role, is_active=True)
            db.add(user)
            users[role] = user
        await db.commit()
        print("✅ Created ADMIN, OWNER and CUSTOMER users")

        owner = users[UserRole.OWNER]
        for name, cuisine, allow_reports, require_verification in SEED_TRUCKS:
            db.add(FoodTruck(
                owner_id=owner.id,
                name=name,
                business_name=name,
                cuisine_type=cuisine,
                allow_customer_reports=allow_reports,
                require_location_verification=require_verification,
                location_history=[],
            ))
            print(f"✅ Created truck {name} (customer reports: {allow_reports}, verification: {require_verification})")
        await db.commit()

        print("\n🎉 Seeding completed successfully!")
        print("\nAccess tokens:")
        for user in users.values():
            token = create_access_token({"sub": user.username, "user_id": user.id, "role": user.role.value})
            print(f"  - {user.role.value:<8} {user.username}: {token}")


if __name__ == "__main__":
    asyncio.run(seed_trucks())
