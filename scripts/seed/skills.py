"""Seed the predefined coach skill catalogue.

Idempotent: skills that already exist (by name) are left untouched.
"""

import asyncio
import os
import sys

# Add backend root to path so we can import modules
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from libs.db.config import AsyncSessionLocal
from services.reviews_service.models import Skill
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

COACH_SKILLS: dict[str, list[str]] = {
    "Musicality": [
        "Barbershop Style",
        "Rhythm & Groove",
        "Rubato Phrasing",
        "Interpretive Planning",
        "Dynamic Contrast",
    ],
    "Singing": [
        "Tuning",
        "Balance & Blend",
        "Just Intonation",
        "Vocal Expression",
        "Resonance Matching",
        "Vocal Health",
        "Vowel Unity",
    ],
    "Performance": [
        "Characterisation",
        "Storytelling",
        "Audience Connection",
        "Stage Presence",
        "Emotional Arc",
        "Blocking",
        "Visual Unity",
    ],
    "Learning & Process": [
        "Repertoire Selection",
        "Rehearsal Methods",
        "Contest Preparation",
        "Goal Setting",
        "Deliberate Practice",
        "Feedback Loops",
        "Culture Development",
    ],
}


async def seed_skills(session: AsyncSession) -> int:
    """Insert missing catalogue skills. Returns how many were created."""
    result = await session.execute(select(Skill.name))
    existing = set(result.scalars().all())

    created = 0
    for category, names in COACH_SKILLS.items():
        for name in names:
            if name in existing:
                print(f"  Exists: {name} ({category})")
                continue
            session.add(Skill(name=name, category=category))
            existing.add(name)
            created += 1
            print(f"  Created: {name} ({category})")

    await session.commit()
    return created


async def main():
    print("Seeding predefined skills...\n")
    async with AsyncSessionLocal() as session:
        created = await seed_skills(session)
    print(f"\nDone: {created} skills created")


if __name__ == "__main__":
    asyncio.run(main())
