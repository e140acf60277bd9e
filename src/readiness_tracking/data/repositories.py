from __future__ import annotations

import sqlite3
from datetime import date
from typing import Any


def _table_exists(con: sqlite3.Connection, table: str) -> bool:
    cur = con.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table' AND name = ?
        """,
        (table,),
    )
    return cur.fetchone() is not None


def _display_name(row: dict[str, Any]) -> str:
    name = f"{row.get('first_name') or ''} {row.get('last_name') or ''}".strip()
    return name or str(row.get("id") or "")


class UserRepository:
    def __init__(self, con: sqlite3.Connection) -> None:
        self.con = con

    def list_team_leaders(self) -> dict[str, str]:
        if not _table_exists(self.con, "users"):
            return {}
        cur = self.con.execute(
            """
            SELECT id, first_name, last_name
            FROM users
            WHERE role = 'team_leader' AND active = 1
            ORDER BY last_name ASC, first_name ASC
            """
        )
        return {row["id"]: _display_name(dict(row)) for row in cur.fetchall()}

    def list_workers(self, team_leader_id: str | None = None) -> dict[str, str]:
        if not _table_exists(self.con, "users"):
            return {}
        query = "SELECT id, first_name, last_name FROM users WHERE role = 'worker' AND active = 1"
        params: list[Any] = []
        if team_leader_id:
            query += " AND team_leader_id = ?"
            params.append(team_leader_id)
        query += " ORDER BY id ASC"
        return {row["id"]: _display_name(dict(row)) for row in self.con.execute(query, params).fetchall()}


class AssignmentRepository:
    """Reads assignment rows in the legacy snake_case shape.

    Joined worker and readiness columns are nested under ``worker`` and
    ``work_readiness`` so the rows match what the readiness producer emits.
    """

    def __init__(self, con: sqlite3.Connection) -> None:
        self.con = con

    def list_assignments(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        team_leader_id: str | None = None,
    ) -> list[dict[str, Any]]:
        if not _table_exists(self.con, "work_readiness_assignments"):
            return []
        query = """
            SELECT
              a.id,
              a.worker_id,
              a.team_leader_id,
              a.assigned_date,
              a.due_time,
              a.status,
              a.completed_at,
              a.work_readiness_id,
              u.first_name AS worker_first_name,
              u.last_name AS worker_last_name,
              r.readiness_level,
              r.submitted_at
            FROM work_readiness_assignments a
            LEFT JOIN users u ON u.id = a.worker_id
            LEFT JOIN work_readiness r ON r.id = a.work_readiness_id
            WHERE 1 = 1
        """
        params: list[Any] = []
        if date_from:
            query += " AND date(a.assigned_date) >= date(?)"
            params.append(date_from.isoformat())
        if date_to:
            query += " AND date(a.assigned_date) <= date(?)"
            params.append(date_to.isoformat())
        if team_leader_id:
            query += " AND a.team_leader_id = ?"
            params.append(team_leader_id)
        query += " ORDER BY a.assigned_date ASC, a.id ASC"
        return [self._to_payload(dict(row)) for row in self.con.execute(query, params).fetchall()]

    def earliest_assigned_date(self, team_leader_id: str | None = None) -> str | None:
        if not _table_exists(self.con, "work_readiness_assignments"):
            return None
        query = "SELECT MIN(assigned_date) AS first_date FROM work_readiness_assignments"
        params: list[Any] = []
        if team_leader_id:
            query += " WHERE team_leader_id = ?"
            params.append(team_leader_id)
        row = self.con.execute(query, params).fetchone()
        return row["first_date"] if row else None

    @staticmethod
    def _to_payload(row: dict[str, Any]) -> dict[str, Any]:
        payload = {
            "id": row["id"],
            "worker_id": row["worker_id"],
            "team_leader_id": row["team_leader_id"],
            "assigned_date": row["assigned_date"],
            "due_time": row["due_time"],
            "status": row["status"],
            "completed_at": row["completed_at"],
            "work_readiness_id": row["work_readiness_id"],
            "worker": {
                "id": row["worker_id"],
                "first_name": row.get("worker_first_name") or "",
                "last_name": row.get("worker_last_name") or "",
            },
        }
        if row["work_readiness_id"]:
            payload["work_readiness"] = {
                "readiness_level": row.get("readiness_level"),
                "submitted_at": row.get("submitted_at"),
            }
        return payload
