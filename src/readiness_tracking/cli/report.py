from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Any

from readiness_tracking.data.db import connect, init_db
from readiness_tracking.data.repositories import AssignmentRepository, UserRepository
from readiness_tracking.services.normalize import parse_day
from readiness_tracking.services.periods import PeriodError, parse_period
from readiness_tracking.services.ranking import DEFAULT_PAGE_SIZE
from readiness_tracking.services.report import build_month_report

LOGGER = logging.getLogger(__name__)


def _log_level() -> int:
    name = (os.getenv("READINESS_TRACKING_LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _get_db_connection() -> Any:
    data_dir = Path(os.getenv("READINESS_TRACKING_DATA_DIR", "./data"))
    db_path = Path(os.getenv("READINESS_TRACKING_DB_PATH", data_dir / "app.db"))
    con = connect(db_path)
    init_db(con)
    return con


def _load_rows(path: Path) -> list[Any]:
    with path.open(encoding="utf-8") as handle:
        payload = json.load(handle)
    if isinstance(payload, dict):
        payload = payload.get("assignments") or payload.get("data") or []
    if not isinstance(payload, list):
        raise ValueError(f"{path} does not contain a list of assignments.")
    return payload


def _selector(args: argparse.Namespace) -> Any:
    if args.start or args.end:
        return {"start": args.start, "end": args.end}
    return args.period


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=_log_level(), format="%(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Print the work-readiness performance report as JSON.")
    parser.add_argument("period", nargs="?", help="Month to report (YYYY-MM).")
    parser.add_argument("--start", help="Range start (YYYY-MM-DD), instead of a month.")
    parser.add_argument("--end", help="Range end (YYYY-MM-DD), instead of a month.")
    parser.add_argument("--input", type=Path, help="JSON file with assignment rows; defaults to the database.")
    parser.add_argument("--team-leader", help="Only report this team leader's assignments (database only).")
    parser.add_argument("--page", type=int, default=1, help="Worker leaderboard page.")
    parser.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE, help="Workers per page.")
    args = parser.parse_args(argv)

    if not args.period and not (args.start or args.end):
        parser.error("Provide a month (YYYY-MM) or --start/--end.")

    try:
        period = parse_period(_selector(args))
    except PeriodError as exc:
        parser.error(str(exc))

    team_names: dict[str, str] = {}
    roster: dict[str, str] = {}
    system_start = None
    if args.input:
        try:
            rows = _load_rows(args.input)
        except (OSError, ValueError) as exc:
            LOGGER.error("Cannot read %s: %s", args.input, exc)
            raise SystemExit(2) from exc
    else:
        con = _get_db_connection()
        try:
            assignment_repo = AssignmentRepository(con)
            rows = assignment_repo.list_assignments(
                date_from=period.start,
                date_to=period.end,
                team_leader_id=args.team_leader,
            )
            system_start = parse_day(assignment_repo.earliest_assigned_date(args.team_leader))
            user_repo = UserRepository(con)
            team_names = user_repo.list_team_leaders()
            roster = user_repo.list_workers(args.team_leader)
        finally:
            con.close()
        if args.team_leader:
            team_names = {k: v for k, v in team_names.items() if k == args.team_leader}

    report = build_month_report(
        rows,
        period,
        page=args.page,
        page_size=args.page_size,
        team_names=team_names,
        roster=roster,
        system_start=system_start,
    )
    if report.dropped_records:
        LOGGER.warning("Skipped %s invalid assignment rows: %s", report.dropped_records, report.drop_reasons)
    LOGGER.info(
        "Scored %s workers across %s teams for %s",
        len(report.ranked_workers),
        len(report.teams),
        period.label,
    )
    print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
