"""
Initialize the database: create all tables and seed the demo accounts.
Run with: python -m scripts.init_db
Run with: python -m scripts.init_db --no-seed  (tables only)
"""

import argparse
import asyncio
from neemamed.config import get_settings
from neemamed.database import create_all, engine
from neemamed.main import build_store
from neemamed.seeds import seed_demo_data
from neemamed.store.auth_service import AuthService


async def init(seed: bool = True):
    print("Creating database tables...")
    await create_all()
    print("All tables created successfully.")
    if seed:
        settings = get_settings()
        store = build_store(settings)
        created = await seed_demo_data(store, AuthService(store, settings))
        print(f"Seeded {created} demo accounts.")
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables and seed demo data")
    parser.add_argument("--no-seed", action="store_true", help="Only create tables")
    args = parser.parse_args()
    asyncio.run(init(seed=not args.no_seed))
