# src/db/crud.py
from __future__ import annotations

from typing import Dict, Iterable, Optional

from db.database import connect


async def put_values(values: Dict[str, Optional[str]]) -> None:
    """Upsert several keys in one transaction. None values delete the key."""
    async with connect() as conn:
        for key, value in values.items():
            if value is None:
                await conn.execute("DELETE FROM kv_store WHERE key = ?;", (key,))
            else:
                await conn.execute(
                    """
                    INSERT INTO kv_store(key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value;
                    """,
                    (key, value),
                )
        await conn.commit()


async def get_values(keys: Iterable[str]) -> Dict[str, str]:
    """Return the stored value for each key that exists."""
    keys = list(keys)
    if not keys:
        return {}
    placeholders = ", ".join("?" * len(keys))
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT key, value FROM kv_store WHERE key IN ({placeholders});",
            tuple(keys),
        )
        rows = await cur.fetchall()
        await cur.close()
    return {row["key"]: row["value"] for row in rows}


async def get_value(key: str) -> Optional[str]:
    return (await get_values([key])).get(key)


async def delete_values(keys: Iterable[str]) -> None:
    keys = list(keys)
    if not keys:
        return
    placeholders = ", ".join("?" * len(keys))
    async with connect() as conn:
        await conn.execute(
            f"DELETE FROM kv_store WHERE key IN ({placeholders});", tuple(keys)
        )
        await conn.commit()
