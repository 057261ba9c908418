"""Seed the database with a demo account and a draft project."""

import asyncio

from app.core.db import create_all, dispose_engine, init_engine_and_session
from app.database.sql_storage import SqlStorage
from app.database.storage import Storage
from app.models.enums import AuthProvider
from app.schemas.auth import RegisterRequest
from app.schemas.projects import ProjectCreateRequest
from app.schemas.records import User
from app.services.auth_service import AuthService
from app.services.project_service import ProjectService

DEMO_EMAIL = "demo@appforge.dev"
DEMO_PASSWORD = "demo123456"


async def seed_demo_user(storage: Storage) -> User:
    """Create the demo user unless it already exists."""
    existing = await storage.users.get_by("email", DEMO_EMAIL)
    if existing is not None:
        print(f"✓ Demo user already exists: {DEMO_EMAIL}")
        return existing

    user = await AuthService(storage).register(
        RegisterRequest(
            username="demo",
            email=DEMO_EMAIL,
            password=DEMO_PASSWORD,
            display_name="Demo User",
            provider=AuthProvider.EMAIL,
        )
    )
    print(f"✓ Created demo user: {DEMO_EMAIL} (password: {DEMO_PASSWORD})")
    return user


async def seed_demo_project(storage: Storage, user: User) -> None:
    if await storage.projects.list_by("user_id", user.id):
        print("✓ Demo project already exists")
        return

    await ProjectService(storage).create(
        ProjectCreateRequest(
            user_id=user.id,
            name="Coffee Shop",
            description="Menu, loyalty card and order-ahead for a neighbourhood coffee shop",
            theme="modern",
        )
    )
    print("✓ Created demo project: Coffee Shop")


async def seed(storage: Storage) -> None:
    user = await seed_demo_user(storage)
    await seed_demo_project(storage, user)


async def main() -> None:
    """Run all seed operations."""
    print("🌱 Seeding database...")

    storage = SqlStorage(init_engine_and_session())
    await create_all()
    try:
        await seed(storage)
    finally:
        await dispose_engine()

    print("✅ Database seeding completed!")


if __name__ == "__main__":
    asyncio.run(main())
