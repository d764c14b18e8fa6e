"""Database seeder: demo users and car listings for local development."""
import argparse
import asyncio
import random
import time
from datetime import datetime, timedelta, timezone

from app.database import Base, engine, session_scope
from app.models import Car, User
from app.services.auth_service import get_password_hash
from app.services.listing_fields import capitalize_name

MAKES = {
    "Maruti Suzuki": ["Swift", "Baleno", "Dzire", "Brezza"],
    "Hyundai": ["Creta", "I20", "Venue", "Verna"],
    "Tata": ["Nexon", "Punch", "Harrier", "Tiago"],
    "Honda": ["City", "Amaze", "Elevate"],
    "Mahindra": ["Xuv700", "Thar", "Scorpio"],
    "Toyota": ["Innova", "Fortuner", "Glanza"],
}
FUEL_TYPES = ["petrol", "diesel", "electric", "hybrid", "cng", "lpg"]
TRANSMISSIONS = ["manual", "automatic", "cvt"]
BODY_TYPES = ["sedan", "hatchback", "suv", "coupe", "convertible", "wagon", "pickup", "van"]
CITIES = [("Mumbai", "Maharashtra"), ("Pune", "Maharashtra"), ("Bengaluru", "Karnataka"),
          ("Chennai", "Tamil Nadu"), ("Delhi", "Delhi"), ("Hyderabad", "Telangana")]
COLORS = ["White", "Silver", "Grey", "Red", "Blue", "Black"]
STATUSES = ["available"] * 8 + ["sold", "reserved"]

DEMO_PASSWORD = "password123"


async def seed(small: bool = False):
    num_users = 5 if small else 25
    num_cars = 50 if small else 2000

    print(f"Seeding: {num_users} users (+1 admin), {num_cars} cars")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    # One hash for everyone; bcrypt is deliberately slow.
    password_hash = get_password_hash(DEMO_PASSWORD)

    async with session_scope() as session:
        users = [User(username="admin", email="admin@example.com",
                      password_hash=password_hash, role="admin")]
        for i in range(num_users):
            users.append(User(
                username=f"seller_{i:03d}",
                email=f"seller_{i:03d}@example.com",
                password_hash=password_hash,
                first_name=f"Seller{i}",
                phone=f"+91 98{i:08d}",
            ))
        session.add_all(users)
        await session.flush()
        print(f"  Created {len(users)} users")

        for i in range(num_cars):
            make = random.choice(list(MAKES))
            city, state = random.choice(CITIES)
            seller = random.choice(users[1:])
            session.add(Car(
                make=capitalize_name(make),
                model=capitalize_name(random.choice(MAKES[make])),
                year=random.randint(2008, datetime.now().year),
                price=float(random.randrange(150_000, 3_500_000, 5_000)),
                mileage=random.randint(0, 180_000),
                fuel_type=random.choice(FUEL_TYPES),
                transmission=random.choice(TRANSMISSIONS),
                body_type=random.choice(BODY_TYPES),
                color=random.choice(COLORS),
                description=f"Well maintained, single owner. Listing #{i}.",
                features=random.sample(["ABS", "Airbags", "Sunroof", "Reverse camera", "Alloy wheels"], k=2),
                images=[],
                location_city=city,
                location_state=state,
                location_country="India",
                seller_name=seller.username,
                seller_phone=seller.phone,
                seller_email=seller.email,
                status=random.choice(STATUSES),
                view_count=random.randint(0, 500),
                created_at=datetime.now(timezone.utc) - timedelta(days=random.randint(0, 180)),
            ))
            if i % 500 == 499:
                await session.flush()
                print(f"  {i + 1} cars created")

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s (password for all users: {DEMO_PASSWORD})")


def main():
    parser = argparse.ArgumentParser(description="Seed the car listing database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (50 cars)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
