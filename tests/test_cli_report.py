import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from readiness_tracking.cli import report as cli
from readiness_tracking.data.db import connect, init_db

ROWS = [
    {"workerId": "w1", "teamLeaderId": "tl1", "assignedDate": "2025-05-01", "status": "completed"},
    {"workerId": "w2", "teamLeaderId": "tl1", "assignedDate": "2025-05-02", "status": "pending"},
    {"workerId": "", "teamLeaderId": "tl1", "assignedDate": "2025-05-02", "status": "pending"},
]


class ReportCliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, argv: list[str]) -> dict:
        out = io.StringIO()
        with redirect_stdout(out), redirect_stderr(io.StringIO()):
            cli.main(argv)
        return json.loads(out.getvalue())

    def test_report_from_json_file(self) -> None:
        path = self.tmp / "rows.json"
        path.write_text(json.dumps({"assignments": ROWS}), encoding="utf-8")
        payload = self._run(["2025-05", "--input", str(path), "--page-size", "5"])
        self.assertEqual(payload["period"]["label"], "2025-05")
        self.assertEqual(payload["workers"]["total_count"], 2)
        self.assertEqual(payload["workers"]["page_size"], 5)
        self.assertEqual(payload["dropped_records"], 1)

    def test_report_for_date_range(self) -> None:
        path = self.tmp / "rows.json"
        path.write_text(json.dumps(ROWS), encoding="utf-8")
        payload = self._run(["--start", "2025-05-02", "--end", "2025-05-31", "--input", str(path)])
        self.assertEqual(payload["organization"]["total_assignments"], 1)

    def test_report_from_database(self) -> None:
        db_path = self.tmp / "app.db"
        con = connect(db_path)
        init_db(con)
        con.execute(
            "INSERT INTO users (id, first_name, last_name, role) VALUES ('tl1', 'Alice', 'Smith', 'team_leader')"
        )
        con.execute("INSERT INTO users (id, first_name, last_name, role) VALUES ('w1', 'Ada', 'Lovelace', 'worker')")
        con.execute(
            "INSERT INTO users (id, first_name, last_name, role, team_leader_id) "
            "VALUES ('w2', 'Idle', 'Worker', 'worker', 'tl1')"
        )
        con.execute(
            """
            INSERT INTO work_readiness_assignments (id, worker_id, team_leader_id, assigned_date, status)
            VALUES ('a1', 'w1', 'tl1', '2025-05-06', 'pending')
            """
        )
        con.commit()
        con.close()

        with mock.patch.dict(os.environ, {"READINESS_TRACKING_DB_PATH": str(db_path)}):
            payload = self._run(["2025-05"])
        self.assertEqual(payload["workers"]["items"][0]["worker_name"], "Ada Lovelace")
        self.assertEqual(payload["teams"][0]["team_leader_name"], "Alice Smith")
        idle = payload["workers"]["items"][1]
        self.assertEqual(idle["worker_name"], "Idle Worker")
        self.assertEqual(idle["total_assignments"], 0)
        self.assertEqual(idle["grade"], "D")

    def test_invalid_period_exits_with_usage_error(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self._run(["2025-13", "--input", str(self.tmp / "rows.json")])
        self.assertEqual(ctx.exception.code, 2)

    def test_missing_period_exits_with_usage_error(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self._run([])
        self.assertEqual(ctx.exception.code, 2)

    def test_unreadable_input_exits(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self._run(["2025-05", "--input", str(self.tmp / "missing.json")])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
