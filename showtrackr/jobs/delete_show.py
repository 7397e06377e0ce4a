"""Administrative utility to delete a stored show by its show database id."""

from __future__ import annotations

import asyncio

from showtrackr.db.session import create_engine, create_sessionmaker
from showtrackr.services.show_repository import delete_show as remove_show


async def delete_show(show_id: int) -> None:
    engine = create_engine()
    SessionLocal = create_sessionmaker(engine)
    try:
        async with SessionLocal() as session:
            removed = await remove_show(session, show_id)
            if not removed:
                print(f"Show {show_id} not found.")
                return
            await session.commit()
            print(f"Deleted show {show_id}.")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    import sys

    if len(sys.argv) != 2 or not sys.argv[1].isdigit():
        print("Usage: python -m showtrackr.jobs.delete_show <SHOW_ID>")
        sys.exit(1)

    asyncio.run(delete_show(int(sys.argv[1])))
