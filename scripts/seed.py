"""Database seeder for the games catalog."""
import argparse
import asyncio
import random
import time
from datetime import date, timedelta

from app.database import async_session, create_tables, engine
from app.models import Game
from app.query import compile_query, fetch
from app.stores import MemoryGameStore

GENRES = ["action", "adventure", "rpg", "strategy", "puzzle", "racing",
          "simulation", "sports", "platformer", "shooter"]
PLATFORMS = ["pc", "ps5", "xbox", "switch", "mobile"]
WORDS = ["Shadow", "Legend", "Star", "Dungeon", "Kingdom", "Racer", "Quest",
         "Cat", "Dragon", "Galaxy", "Crystal", "Iron", "Night", "Garden"]


def random_games(count: int, seed: int | None = None) -> list[dict]:
    rng = random.Random(seed)
    start = date(2000, 1, 1)
    games = []
    for i in range(count):
        title = f"{rng.choice(WORDS)} {rng.choice(WORDS)} {i}"
        games.append({
            "title": title,
            "genre": rng.choice(GENRES),
            "platform": rng.choice(PLATFORMS),
            "release_date": start + timedelta(days=rng.randint(0, 9000)),
            "summary": f"{title} is a {rng.choice(GENRES)} game.",
        })
    return games


async def preview(games: list[dict], query: dict) -> None:
    """Run *query* against the generated games without touching the database."""
    store = MemoryGameStore({"id": i + 1, **g} for i, g in enumerate(games))
    spec = compile_query(query)
    result = await fetch(store, spec)
    print(f"Preview {spec}: {result.total} match(es)")
    for item in result.items:
        print(f"  {item['release_date']}  {item['title']} [{item['genre']}/{item['platform']}]")


async def seed(count: int, seed_value: int | None = None):
    games = random_games(count, seed_value)
    print(f"Seeding: {count} games")
    start = time.perf_counter()

    await create_tables(engine, drop_first=True)

    async with async_session() as session:
        batch_size = 500
        for batch_start in range(0, count, batch_size):
            session.add_all(Game(**g) for g in games[batch_start:batch_start + batch_size])
            await session.flush()
            print(f"  Batch {batch_start}-{min(batch_start + batch_size, count)}: games created")
        await session.commit()

    await engine.dispose()
    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the games catalog")
    parser.add_argument("--count", type=int, default=1000, help="Number of games to create")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable data")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the first page of an in-memory listing instead of writing",
    )
    parser.add_argument("--q", default=None, help="Search text for --dry-run")
    parser.add_argument("--genre", default=None, help="Genre filter for --dry-run")
    args = parser.parse_args()

    if args.dry_run:
        query = {"q": args.q, "genre": args.genre}
        asyncio.run(preview(random_games(args.count, args.seed), query))
    else:
        asyncio.run(seed(args.count, args.seed))


if __name__ == "__main__":
    main()
