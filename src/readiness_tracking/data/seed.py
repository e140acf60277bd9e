from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

import pandas as pd

LOGGER = logging.getLogger(__name__)

# Parent tables first so foreign keys resolve.
SEED_FILES: tuple[tuple[str, str], ...] = (
    ("users", "users.csv"),
    ("work_readiness", "work_readiness.csv"),
    ("work_readiness_assignments", "assignments.csv"),
)


def _read_csv(path: Path) -> pd.DataFrame:
    if not path.exists():
        return pd.DataFrame()
    frame = pd.read_csv(path, sep=None, engine="python", dtype=str, keep_default_na=False)
    frame.columns = [str(c).strip().lstrip("\ufeff") for c in frame.columns]
    return frame.replace({"": None})


def _table_columns(con: sqlite3.Connection, table: str) -> list[str]:
    return [row["name"] for row in con.execute(f"PRAGMA table_info({table});").fetchall()]


def upsert_frame(con: sqlite3.Connection, table: str, frame: pd.DataFrame, key: str = "id") -> int:
    """Insert or update rows by ``key``; unknown columns and keyless rows are skipped."""
    if frame.empty:
        return 0
    if key not in frame.columns:
        raise ValueError(f"Seed for {table} requires column '{key}'")

    known = set(_table_columns(con, table))
    columns = [c for c in frame.columns if c in known]
    ignored = sorted(set(frame.columns) - known)
    if ignored:
        LOGGER.debug("Ignoring unknown %s columns: %s", table, ", ".join(ignored))

    keyed = frame[frame[key].notna()]
    updates = ", ".join(f"{c}=excluded.{c}" for c in columns if c != key)
    conflict = f"DO UPDATE SET {updates}" if updates else "DO NOTHING"
    sql = (
        f"INSERT INTO {table} ({', '.join(columns)}) "
        f"VALUES ({', '.join('?' for _ in columns)}) "
        f"ON CONFLICT({key}) {conflict};"
    )
    values = [
        tuple(None if pd.isna(v) else v for v in row)
        for row in keyed[columns].itertuples(index=False, name=None)
    ]
    with con:
        con.executemany(sql, values)
    return len(values)


def seed_from_csv(con: sqlite3.Connection, sample_dir: Path) -> dict[str, int]:
    counts: dict[str, int] = {}
    for table, filename in SEED_FILES:
        counts[table] = upsert_frame(con, table, _read_csv(sample_dir / filename))
    LOGGER.info("Seeded from %s: %s", sample_dir, counts)
    return counts
