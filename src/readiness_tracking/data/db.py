from __future__ import annotations

from pathlib import Path
import sqlite3

SCHEMA_VERSION = 2

SCHEMA_SQL = """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS users (
  id TEXT PRIMARY KEY,
  first_name TEXT NOT NULL DEFAULT '',
  last_name TEXT NOT NULL DEFAULT '',
  email TEXT,
  role TEXT NOT NULL DEFAULT 'worker',
  team_leader_id TEXT,
  team TEXT,
  active INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS work_readiness (
  id TEXT PRIMARY KEY,
  worker_id TEXT NOT NULL,
  team_leader_id TEXT,
  readiness_level TEXT,
  fatigue_level INTEGER,
  pain_discomfort TEXT,
  submitted_at TEXT NOT NULL,
  FOREIGN KEY(worker_id) REFERENCES users(id)
);

CREATE TABLE IF NOT EXISTS work_readiness_assignments (
  id TEXT PRIMARY KEY,
  worker_id TEXT NOT NULL,
  team_leader_id TEXT NOT NULL,
  assigned_date TEXT NOT NULL,
  due_time TEXT,
  status TEXT NOT NULL DEFAULT 'pending',
  completed_at TEXT,
  work_readiness_id TEXT,
  notes TEXT,
  created_at TEXT,
  FOREIGN KEY(worker_id) REFERENCES users(id),
  FOREIGN KEY(work_readiness_id) REFERENCES work_readiness(id)
);

CREATE INDEX IF NOT EXISTS idx_assignments_leader_date
  ON work_readiness_assignments (team_leader_id, assigned_date);
"""


def connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(db_path.as_posix())
    con.row_factory = sqlite3.Row
    con.execute("PRAGMA foreign_keys=ON;")
    return con


def _get_user_version(con: sqlite3.Connection) -> int:
    row = con.execute("PRAGMA user_version;").fetchone()
    return int(row[0]) if row else 0


def _set_user_version(con: sqlite3.Connection, version: int) -> None:
    con.execute(f"PRAGMA user_version = {version};")


def _column_exists(con: sqlite3.Connection, table: str, column: str) -> bool:
    cur = con.execute(f"PRAGMA table_info({table});")
    return any(row["name"] == column for row in cur.fetchall())


def _migrate_to_v2(con: sqlite3.Connection) -> None:
    if not _column_exists(con, "work_readiness_assignments", "work_readiness_id"):
        con.execute("ALTER TABLE work_readiness_assignments ADD COLUMN work_readiness_id TEXT;")
    if not _column_exists(con, "work_readiness", "team_leader_id"):
        con.execute("ALTER TABLE work_readiness ADD COLUMN team_leader_id TEXT;")
    _set_user_version(con, 2)


def init_db(con: sqlite3.Connection) -> None:
    con.executescript(SCHEMA_SQL)
    current_version = _get_user_version(con)
    if current_version < 2:
        _migrate_to_v2(con)
    con.commit()


def table_count(con: sqlite3.Connection, table: str) -> int:
    cur = con.execute(f"SELECT COUNT(1) AS n FROM {table}")
    return int(cur.fetchone()["n"])
