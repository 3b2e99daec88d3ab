"""
Seed script: creates the tables and a small demo directory.

Usage (inside container):
    python -m flextime.db.seed
"""

import asyncio

from sqlalchemy import select

from flextime.db.models import ActivityType, Base, ClientGroup, Worker
from flextime.db.session import AsyncSessionLocal, engine

DEMO_GROUPS = [("grp-demo", "Demo Client Group", "DEMO")]
DEMO_WORKERS = [("wrk-demo-1", "Demo Worker One", "one@example.com")]
DEMO_ACTIVITIES = [("act-support", "Support", "SUP"), ("act-admin", "Admin", "ADM")]


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_directory(session) -> None:
    for external_id, name, code in DEMO_GROUPS:
        result = await session.execute(
            select(ClientGroup).where(ClientGroup.external_id == external_id)
        )
        if result.scalar_one_or_none() is None:
            session.add(ClientGroup(external_id=external_id, group_name=name, group_code=code))
            print(f"Created group: {name}")

    for external_id, name, email in DEMO_WORKERS:
        result = await session.execute(select(Worker).where(Worker.external_id == external_id))
        if result.scalar_one_or_none() is None:
            session.add(Worker(external_id=external_id, name=name, email=email))
            print(f"Created worker: {name}")

    for external_id, name, code in DEMO_ACTIVITIES:
        result = await session.execute(
            select(ActivityType).where(ActivityType.external_id == external_id)
        )
        if result.scalar_one_or_none() is None:
            session.add(ActivityType(external_id=external_id, name=name, code=code))
            print(f"Created activity: {name}")

    await session.flush()


async def main():
    await create_tables()
    async with AsyncSessionLocal() as session:
        async with session.begin():
            await seed_directory(session)
    print("Seed complete.")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
