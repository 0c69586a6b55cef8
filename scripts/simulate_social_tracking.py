"""
Social Media Tracking Simulation.

Replays sample Instagram/Facebook/Twitter location posts and customer
sightings against a running server:
1. Looks up seeded trucks by name
2. Posts social locations to the internal endpoint
3. Posts customer sightings as the seeded customer

Usage:
    python -m scripts.simulate_social_tracking [--base-url http://127.0.0.1:8000]
"""

import argparse
import asyncio
import sys

import httpx
from sqlalchemy import select

from truckspot.app.core.jwt import create_access_token
from truckspot.app.db.session import AsyncSessionLocal
from truckspot.app.models.food_truck import FoodTruck
from truckspot.app.models.user import User

SOCIAL_UPDATES = [
    {
        "truck_name": "Taco Fiesta",
        "platform": "instagram",
        "latitude": 40.7589,
        "longitude": -73.9851,
        "address": "Times Square, NYC",
        "city": "New York",
        "state": "NY",
        "confidence": "medium",
        "post_text": "Posted Instagram story with location tag",
    },
    {
        "truck_name": "Seoul Food",
        "platform": "facebook",
        "latitude": 34.0522,
        "longitude": -118.2437,
        "address": "Downtown LA Food Court",
        "city": "Los Angeles",
        "state": "CA",
        "confidence": "high",
        "post_text": "Facebook check-in at specific location",
    },
    {
        "truck_name": "Sushi Express",
        "platform": "twitter",
        "latitude": 37.7749,
        "longitude": -122.4194,
        "address": "Golden Gate Park",
        "city": "San Francisco",
        "state": "CA",
        "confidence": "low",
        "post_text": "Twitter mention of location (not verified)",
    },
]

CUSTOMER_REPORTS = [
    {
        "truck_name": "Seoul Food",
        "latitude": 34.0407,
        "longitude": -118.2468,
        "address": "Grand Central Market",
        "notes": "Saw truck serving lunch crowd",
    },
    {
        "truck_name": "Sushi Express",
        "latitude": 37.7694,
        "longitude": -122.4862,
        "address": "Ocean Beach",
        "notes": "Long line, amazing rolls!",
    },
]


async def load_context():
    """Truck IDs by name and a token for the seeded customer."""
    async with AsyncSessionLocal() as db:
        trucks = (await db.execute(select(FoodTruck))).scalars().all()
        customer = (await db.execute(select(User).where(User.username == "customer"))).scalar_one_or_none()

    truck_ids = {truck.display_name.lower(): truck.id for truck in trucks}
    token = None
    if customer:
        token = create_access_token({"sub": customer.username, "user_id": customer.id, "role": customer.role.value})
    return truck_ids, token


async def simulate(base_url: str) -> int:
    truck_ids, customer_token = await load_context()
    failures = 0

    async with httpx.AsyncClient(base_url=base_url, timeout=10) as client:
        print("🤖 Starting social media tracking simulation...")
        for update in SOCIAL_UPDATES:
            payload = dict(update)
            name = payload.pop("truck_name")
            truck_id = truck_ids.get(name.lower())
            if truck_id is None:
                print(f"❌ Food truck \"{name}\" not found")
                failures += 1
                continue

            response = await client.post(f"/v1/internal/trucks/{truck_id}/social-location", json=payload)
            if response.status_code == 200:
                print(f"✅ Updated {name} location from {payload['platform']}")
                print(f"   📍 {payload['address']}")
                print(f"   🎯 Confidence: {payload['confidence']}")
            else:
                print(f"❌ Error updating {name}: {response.status_code} {response.text}")
                failures += 1

        if customer_token is None:
            print("ℹ️  No seeded customer; skipping customer reports (run seed_trucks first)")
            return failures

        print("\n👥 Starting customer location reports simulation...")
        headers = {"Authorization": f"Bearer {customer_token}"}
        for report in CUSTOMER_REPORTS:
            payload = dict(report)
            name = payload.pop("truck_name")
            truck_id = truck_ids.get(name.lower())
            if truck_id is None:
                print(f"❌ Food truck \"{name}\" not found")
                failures += 1
                continue

            response = await client.post(f"/v1/trucks/{truck_id}/report-location", json=payload, headers=headers)
            if response.status_code in (200, 202):
                print(f"✅ {name}: {response.json()['outcome']}")
            elif response.status_code == 403:
                print(f"🚫 {name} does not accept customer reports")
            else:
                print(f"❌ Error reporting {name}: {response.status_code} {response.text}")
                failures += 1

    print("\n🎉 Simulation complete!")
    return failures


def main():
    parser = argparse.ArgumentParser(description="Replay sample social media and customer location reports")
    parser.add_argument("--base-url", default="http://127.0.0.1:8000")
    args = parser.parse_args()

    failures = asyncio.run(simulate(args.base_url))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
