#!/usr/bin/env python3
"""
Seed database with demo users, venues and events
"""
import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# Add project root to path
sys.path.insert(0, os.path.dirname(__file__))

from app.core.database import db_manager, init_db
from app.core.security import create_access_token, hash_password
from app.models.user import User, UserRole
from app.models.venue import Venue
from app.models.event import Event


async def create_demo_users():
    """Create an admin and a regular user"""
    async with db_manager.session() as session:
        admin_user = User(
            email="admin@venuely.test",
            full_name="Admin User",
            password_hash=hash_password("Admin123!"),
            role=UserRole.ADMIN,
            is_active=True
        )
        demo_user = User(
            email="demo@venuely.test",
            full_name="Demo User",
            password_hash=hash_password("Demo123!"),
            role=UserRole.USER,
            is_active=True
        )

        session.add_all([admin_user, demo_user])
        await session.commit()
        print("Created demo users")
        return admin_user.id, demo_user.id


async def create_demo_venues():
    """Create venues with known coordinates so radius search works offline"""
    async with db_manager.session() as session:
        venues = [
            Venue(
                name="Harbour Hall",
                location="12 Quay Street, Auckland, New Zealand",
                latitude=-36.8441,
                longitude=174.7680,
                capacity=250,
                price_per_day=Decimal("1200.00"),
                description="Waterfront hall with a terrace"
            ),
            Venue(
                name="Ponsonby Loft",
                location="101 Ponsonby Road, Auckland, New Zealand",
                latitude=-36.8563,
                longitude=174.7465,
                capacity=80,
                price_per_day=Decimal("450.00"),
                description="Industrial loft for small gatherings"
            ),
            Venue(
                name="Cuba Street Warehouse",
                location="220 Cuba Street, Wellington, New Zealand",
                latitude=-41.2950,
                longitude=174.7743,
                capacity=400,
                price_per_day=Decimal("900.00"),
                description="Converted warehouse in the city centre"
            ),
        ]

        session.add_all(venues)
        await session.commit()
        print("Created demo venues")
        return [v.id for v in venues]


async def create_demo_events(organizer_id, venue_ids):
    """Create public events with ticket tiers"""
    now = datetime.now(timezone.utc)
    async with db_manager.session() as session:
        events = [
            Event(
                title="Harbour Jazz Evening",
                description="Local jazz trios on the terrace",
                category="music",
                date=now + timedelta(days=30),
                is_public=True,
                organizer_id=organizer_id,
                venue_id=venue_ids[0],
                ticket_prices=[
                    {"seat_type": "general", "price": 35.0, "available_seats": 200},
                    {"seat_type": "vip", "price": 90.0, "available_seats": 20},
                ]
            ),
            Event(
                title="Design Meetup",
                description="Talks and portfolio reviews",
                category="community",
                date=now + timedelta(days=45),
                is_public=True,
                organizer_id=organizer_id,
                venue_id=venue_ids[1],
                ticket_prices=[{"seat_type": "general", "price": 10.0, "available_seats": 70}]
            ),
        ]

        session.add_all(events)
        await session.commit()
        print("Created demo events")


async def main():
    """Main seeding function"""
    print("Starting database seeding...")

    await init_db()

    try:
        admin_id, user_id = await create_demo_users()
        venue_ids = await create_demo_venues()
        await create_demo_events(user_id, venue_ids)

        print("\nDatabase seeding completed successfully!")
        print("\nBearer tokens (valid for the configured expiry):")
        print(f"Admin: {create_access_token({'sub': str(admin_id), 'role': UserRole.ADMIN.value})}")
        print(f"User:  {create_access_token({'sub': str(user_id), 'role': UserRole.USER.value})}")

    except Exception as e:
        print(f"Error seeding database: {e}")
        raise
    finally:
        await db_manager.close()


if __name__ == "__main__":
    asyncio.run(main())
