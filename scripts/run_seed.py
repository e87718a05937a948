"""Seed the broker database with demo pacts.

Usage:
    python scripts/run_seed.py                       # seed scripts/demo_pacts.yaml
    python scripts/run_seed.py --file other.yaml     # seed another file
    python scripts/run_seed.py --reset               # drop and recreate tables first
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from broker.database import Base, close_db, engine, init_db
from broker.seed import load_seed_file, seed_data
from pactcore.service import PactBroker

DEFAULT_SEED_FILE = Path(__file__).resolve().parent / "demo_pacts.yaml"


async def main(seed_file: Path, reset: bool = False) -> None:
    if reset:
        print("Dropping all tables...")
        import broker.models  # noqa: F401
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    print("Initializing database...")
    broker = PactBroker(engine)
    await broker.start(init_db)

    print(f"Seeding {seed_file}...")
    counts = await seed_data(broker, load_seed_file(seed_file))
    await close_db()

    print("Done: " + ", ".join(f"{count} {kind}" for kind, count in counts.items()))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo pacts")
    parser.add_argument("--file", type=Path, default=DEFAULT_SEED_FILE, help="YAML seed file")
    parser.add_argument("--reset", action="store_true", help="Drop all tables before seeding")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main(args.file, reset=args.reset))
