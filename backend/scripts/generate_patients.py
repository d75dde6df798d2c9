"""
Generate synthetic patient accounts, optionally linked to a dietitian with a
partly filled Ayurvedic intake so the todo and completeness views have data.
Run with: python -m scripts.generate_patients
Run with: python -m scripts.generate_patients --count 30 --assign-to demo-dietitian
"""

import argparse
import asyncio
import random
from uuid import uuid4
from ayurdiet.database import engine, async_session, Base
from ayurdiet.models.user import User
from ayurdiet.schemas.profile import DOSHA_ASSESSMENT_OPTIONS
from ayurdiet.services.assignment_service import AssignmentCoordinator
from ayurdiet.services.completeness import REQUIRED_PROFILE_FIELDS
from ayurdiet.services.stores import AccountStore, ProfileStore
from sqlalchemy import select, func

FIRST_NAMES = [
    "Aarav", "Vivaan", "Aditya", "Ishaan", "Rohan", "Kabir", "Arjun", "Dev",
    "Ananya", "Diya", "Saanvi", "Meera", "Kavya", "Priya", "Riya", "Tara",
]

LAST_NAMES = [
    "Sharma", "Iyer", "Nair", "Patel", "Reddy", "Gupta", "Menon", "Joshi",
    "Kulkarni", "Das", "Banerjee", "Rao", "Pillai", "Verma", "Chopra", "Bose",
]

SAMPLE_DISEASES = [[], [], ["Hypertension"], ["Type 2 Diabetes"], ["Hypothyroidism"], ["Acidity", "IBS"]]


def _assessment(field: str) -> dict:
    option = random.choice("abc")
    return {"option": option, "description": DOSHA_ASSESSMENT_OPTIONS[field][option]}


def generate_intake() -> dict:
    """Full intake, then a random number of required fields knocked out."""
    intake = {
        "age": random.randint(18, 75),
        "gender": random.choice(["male", "female"]),
        "weight_kg": round(random.uniform(45, 100), 1),
        "height_cm": round(random.uniform(150, 190), 1),
        "activity_level": random.choice(["sedentary", "light", "moderate", "active"]),
        "food_preference": random.choice(["veg", "non_veg", "vegan", "eggetarian"]),
        "cuisine_preference": "Indian",
        "sub_cuisine_preference": random.choice(["North Indian", "South Indian", "Gujarati"]),
        "diseases": random.choice(SAMPLE_DISEASES),
        "body_frame": _assessment("body_frame"),
        "skin_type": _assessment("skin_type"),
        "hair_type": _assessment("hair_type"),
        "agni_strength": random.choice(["Sama", "Tikshna", "Manda", "Vishama"]),
        "current_season": random.choice(["spring", "summer", "monsoon", "autumn", "winter"]),
    }
    for field in random.sample(REQUIRED_PROFILE_FIELDS, k=random.choice([0, 0, 1, 3])):
        intake[field] = None
    return intake


async def generate(count: int, assign_to: str = None):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        existing = await db.scalar(select(func.count(User.id)).where(User.role == "patient")) or 0
        accounts = AccountStore(db)
        profiles = ProfileStore(db)
        coordinator = AssignmentCoordinator(accounts, profiles)

        created = []
        for i in range(count):
            name = f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}"
            email = f"{name.lower().replace(' ', '.')}.{existing + i + 1}@example.com"
            user = await accounts.create(
                str(uuid4()),
                {"email": email, "name": name, "role": "patient",
                 "linked_dietitian_id": None, "is_assigned_to_dietitian": False},
            )
            created.append(user)
        await db.commit()
        print(f"Created {len(created)} patients.")

        if assign_to:
            assigned = 0
            for user in created:
                result = await coordinator.assign(assign_to, user.id)
                if not result.ok:
                    print(f"  Warning: could not assign {user.id}: {result.status.value} {result.errors}")
                    continue
                await profiles.update(user.id, generate_intake())
                assigned += 1
            await db.commit()
            print(f"Assigned {assigned} patients to dietitian {assign_to}.")

    await engine.dispose()
    print("Synthetic patient generation complete!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate synthetic patient accounts")
    parser.add_argument("--count", type=int, default=20, help="Number of patients to create")
    parser.add_argument(
        "--assign-to",
        default=None,
        help="Dietitian id to link the new patients to (also fills a partial intake)",
    )
    args = parser.parse_args()

    asyncio.run(generate(args.count, args.assign_to))
