import sys
import tempfile
import unittest
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from readiness_tracking.data.db import SCHEMA_VERSION, connect, init_db, table_count
from readiness_tracking.data.repositories import AssignmentRepository, UserRepository
from readiness_tracking.data.seed import seed_from_csv
from readiness_tracking.services.normalize import normalize_assignments

USERS_CSV = """id,first_name,last_name,email,role,team_leader_id,team,active
tl1,Alice,Smith,alice@example.com,team_leader,,North,1
tl2,Bob,Jones,bob@example.com,team_leader,,South,1
tl3,Carl,Old,carl@example.com,team_leader,,West,0
w1,Ada,Lovelace,ada@example.com,worker,tl1,North,1
w2,Grace,Hopper,grace@example.com,worker,tl1,North,1
w3,Alan,Turing,alan@example.com,worker,tl2,South,1
"""

READINESS_CSV = """id,worker_id,team_leader_id,readiness_level,fatigue_level,pain_discomfort,submitted_at
r1,w1,tl1,fit,2,no,2025-05-01T07:00:00Z
r2,w3,tl2,not_fit,7,yes,2025-05-05T06:00:00Z
"""

ASSIGNMENTS_CSV = """id,worker_id,team_leader_id,assigned_date,due_time,status,completed_at,work_readiness_id
a0,w1,tl1,2025-04-28,2025-04-28T10:00:00Z,pending,,
a1,w1,tl1,2025-05-01,2025-05-01T10:00:00Z,completed,2025-05-01T07:00:00Z,r1
a2,w2,tl1,2025-05-02,2025-05-02T10:00:00Z,overdue,,
a3,w3,tl2,2025-05-05,2025-05-05T10:00:00Z,completed,2025-05-05T06:00:00Z,r2
"""


class RepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        tmp = Path(self._tmp.name)
        sample_dir = tmp / "sample"
        sample_dir.mkdir()
        (sample_dir / "users.csv").write_text(USERS_CSV, encoding="utf-8")
        (sample_dir / "work_readiness.csv").write_text(READINESS_CSV, encoding="utf-8")
        (sample_dir / "assignments.csv").write_text(ASSIGNMENTS_CSV, encoding="utf-8")
        self.con = connect(tmp / "data" / "app.db")
        init_db(self.con)
        seed_from_csv(self.con, sample_dir)

    def tearDown(self) -> None:
        self.con.close()
        self._tmp.cleanup()

    def test_schema_version_and_seed(self) -> None:
        version = self.con.execute("PRAGMA user_version;").fetchone()[0]
        self.assertEqual(version, SCHEMA_VERSION)
        self.assertEqual(table_count(self.con, "users"), 6)
        self.assertEqual(table_count(self.con, "work_readiness_assignments"), 4)

    def test_init_db_is_repeatable(self) -> None:
        init_db(self.con)
        self.assertEqual(table_count(self.con, "work_readiness"), 2)

    def test_team_leaders_are_active_only(self) -> None:
        leaders = UserRepository(self.con).list_team_leaders()
        self.assertEqual(leaders, {"tl2": "Bob Jones", "tl1": "Alice Smith"})

    def test_workers(self) -> None:
        repo = UserRepository(self.con)
        self.assertEqual(list(repo.list_workers()), ["w1", "w2", "w3"])
        self.assertEqual(repo.list_workers("tl1"), {"w1": "Ada Lovelace", "w2": "Grace Hopper"})

    def test_list_assignments_filters_and_nests(self) -> None:
        repo = AssignmentRepository(self.con)
        rows = repo.list_assignments(date_from=date(2025, 5, 1))
        self.assertEqual([row["id"] for row in rows], ["a1", "a2", "a3"])
        self.assertEqual(rows[0]["worker"]["first_name"], "Ada")
        self.assertEqual(rows[0]["work_readiness"]["readiness_level"], "fit")
        self.assertNotIn("work_readiness", rows[1])
        self.assertEqual([row["id"] for row in repo.list_assignments(team_leader_id="tl2")], ["a3"])

    def test_rows_normalize_cleanly(self) -> None:
        result = normalize_assignments(AssignmentRepository(self.con).list_assignments())
        self.assertEqual(result.dropped, 0)
        levels = {a.assignment_id: a.readiness_level for a in result.assignments}
        self.assertEqual(levels["a3"], "not_fit")
        self.assertEqual(result.assignments[1].worker_name, "Ada Lovelace")

    def test_earliest_assigned_date(self) -> None:
        repo = AssignmentRepository(self.con)
        self.assertEqual(repo.earliest_assigned_date(), "2025-04-28")
        self.assertEqual(repo.earliest_assigned_date("tl2"), "2025-05-05")

    def test_seed_upserts_by_id(self) -> None:
        sample_dir = Path(self._tmp.name) / "update"
        sample_dir.mkdir()
        (sample_dir / "users.csv").write_text(
            "id,first_name,last_name,role,active,nickname\ntl1,Alicia,Smith,team_leader,1,Ali\n,Nobody,,worker,1,\n",
            encoding="utf-8",
        )
        counts = seed_from_csv(self.con, sample_dir)
        self.assertEqual(counts, {"users": 1, "work_readiness": 0, "work_readiness_assignments": 0})
        self.assertEqual(UserRepository(self.con).list_team_leaders()["tl1"], "Alicia Smith")
        self.assertEqual(table_count(self.con, "users"), 6)


class MissingTableTests(unittest.TestCase):
    def test_reads_fall_back_to_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            con = connect(Path(tmp) / "empty.db")
            try:
                self.assertEqual(AssignmentRepository(con).list_assignments(), [])
                self.assertIsNone(AssignmentRepository(con).earliest_assigned_date())
                self.assertEqual(UserRepository(con).list_team_leaders(), {})
            finally:
                con.close()


if __name__ == "__main__":
    unittest.main()
