from __future__ import annotations

import os
import sqlite3
from datetime import date

import altair as alt
import pandas as pd
import streamlit as st

from readiness_tracking.data.repositories import AssignmentRepository, UserRepository
from readiness_tracking.services.normalize import parse_day
from readiness_tracking.services.periods import PeriodError, parse_period
from readiness_tracking.services.ranking import DEFAULT_PAGE_SIZE, PAGE_SIZE_OPTIONS, PaginationState
from readiness_tracking.services.report import PerformanceReport, build_month_report

STATE_KEY = "performance_pagination"


def _default_page_size() -> int:
    try:
        value = int(os.getenv("READINESS_TRACKING_PAGE_SIZE", DEFAULT_PAGE_SIZE))
    except ValueError:
        return DEFAULT_PAGE_SIZE
    return value if value in PAGE_SIZE_OPTIONS else DEFAULT_PAGE_SIZE


def _pagination_state() -> PaginationState:
    state = st.session_state.get(STATE_KEY)
    if not isinstance(state, PaginationState):
        state = PaginationState(page=1, page_size=_default_page_size())
        st.session_state[STATE_KEY] = state
    return state


def _worker_rows(report: PerformanceReport) -> pd.DataFrame:
    rows = []
    for worker in report.workers.items:
        remark = report.remarks.get(worker.worker_id)
        rows.append(
            {
                "Rank": worker.rank,
                "Worker": worker.worker_name,
                "Assigned": worker.total_assignments,
                "Completed": worker.completed,
                "On time": worker.on_time,
                "Late": worker.late,
                "Pending": worker.pending,
                "Overdue": worker.overdue,
                "Completion %": round(worker.completion_rate, 1),
                "On-time %": round(worker.on_time_rate, 1),
                "Quality": round(worker.quality_score, 1),
                "Score": worker.composite_score,
                "Grade": worker.grade,
                "Streak": worker.current_streak,
                "Remarks": remark.text if remark else "",
            }
        )
    return pd.DataFrame(rows)


def _team_rows(report: PerformanceReport) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Rank": team.rank,
                "Team leader": team.team_leader_name,
                "Members": team.member_count,
                "Assigned": team.total_assignments,
                "Completion %": round(team.completion_rate, 1),
                "On-time %": round(team.on_time_rate, 1),
                "Quality": f"{team.quality_score:.1f}" + (" (baseline)" if team.quality_is_baseline else ""),
                "Not fit": team.high_risk_reports,
                "Avg response (h)": round(team.average_response_hours, 1),
                "Score": team.composite_score,
                "Grade": team.grade,
            }
            for team in report.teams
        ]
    )


def _week_rows(report: PerformanceReport) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "week_label": week.label,
                "assigned": week.assigned,
                "completed": week.completed,
                "on_time": week.on_time,
                "overdue": week.overdue,
                "completion_rate": round(week.completion_rate, 1),
                "on_time_rate": round(week.on_time_rate, 1),
                "quality_score": week.quality_score,
                "grade": week.grade,
                "trend": week.trend,
            }
            for week in report.weeks
        ]
    )


def render(con: sqlite3.Connection) -> None:
    st.title("Work readiness performance")
    st.caption("Completion, timeliness and readiness quality per worker, team and week.")

    assignment_repo = AssignmentRepository(con)
    user_repo = UserRepository(con)
    team_leaders = user_repo.list_team_leaders()

    st.subheader("Filters")
    c1, c2, c3 = st.columns([1.2, 1.6, 1.0])
    month_value = c1.text_input("Month (YYYY-MM)", value=date.today().strftime("%Y-%m"))
    leader_options = ["(All)"] + list(team_leaders.keys())
    selected_leader = c2.selectbox(
        "Team leader",
        leader_options,
        index=0,
        format_func=lambda lid: lid if lid == "(All)" else team_leaders.get(lid, lid),
    )

    state = _pagination_state()
    page_size = c3.selectbox(
        "Rows per page",
        list(PAGE_SIZE_OPTIONS),
        index=list(PAGE_SIZE_OPTIONS).index(state.page_size) if state.page_size in PAGE_SIZE_OPTIONS else 1,
    )
    state = state.with_page_size(page_size)

    try:
        period = parse_period(month_value)
    except PeriodError as exc:
        st.error(str(exc))
        return

    leader_filter = None if selected_leader == "(All)" else selected_leader
    rows = assignment_repo.list_assignments(
        date_from=period.start,
        date_to=period.end,
        team_leader_id=leader_filter,
    )
    report = build_month_report(
        rows,
        period,
        page=state.page,
        page_size=state.page_size,
        team_names={k: v for k, v in team_leaders.items() if leader_filter in (None, k)},
        roster=user_repo.list_workers(leader_filter),
        system_start=parse_day(assignment_repo.earliest_assigned_date(leader_filter)),
    )
    st.session_state[STATE_KEY] = state.with_page(report.workers.page)

    org = report.organization
    st.subheader("KPI (overall)")
    k1, k2, k3, k4, k5, k6 = st.columns(6)
    k1.metric("Assignments", org.total_assignments)
    k2.metric("Completion rate", f"{org.completion_rate:.1f}%")
    k3.metric("On-time rate", f"{org.on_time_rate:.1f}%")
    k4.metric("Overdue", org.overdue)
    k5.metric("Score", f"{org.composite_score:.1f}")
    k6.metric("Grade", org.grade)
    if report.dropped_records:
        st.caption(f"Skipped {report.dropped_records} assignment rows with missing ids or invalid dates.")

    st.subheader("Worker leaderboard")
    if report.workers.total_count:
        st.dataframe(_worker_rows(report), use_container_width=True, hide_index=True)
        p1, p2, p3 = st.columns([1, 2, 1])
        if p1.button("Previous", disabled=not report.workers.has_previous):
            st.session_state[STATE_KEY] = state.with_page(report.workers.page - 1)
            st.rerun()
        p2.caption(
            f"Page {report.workers.page} of {report.workers.total_pages} "
            f"({report.workers.total_count} workers)"
        )
        if p3.button("Next", disabled=not report.workers.has_next):
            st.session_state[STATE_KEY] = state.with_page(report.workers.page + 1)
            st.rerun()
    else:
        st.info("No assignments for the selected month.")

    st.subheader("Teams")
    if report.teams:
        st.dataframe(_team_rows(report), use_container_width=True, hide_index=True)
    else:
        st.info("No team data for the selected filters.")

    st.subheader("Weekly breakdown")
    weeks_df = _week_rows(report)
    if weeks_df.empty:
        st.info("No weeks to show for the selected month.")
    else:
        chart = (
            alt.Chart(weeks_df)
            .mark_bar()
            .encode(
                x=alt.X("week_label:N", sort=list(weeks_df["week_label"]), title="Week"),
                y=alt.Y("quality_score:Q", title="Quality score", scale=alt.Scale(domain=[0, 100])),
                tooltip=[
                    alt.Tooltip("week_label:N", title="Week"),
                    alt.Tooltip("quality_score:Q", title="Quality"),
                    alt.Tooltip("grade:N", title="Grade"),
                    alt.Tooltip("completion_rate:Q", title="Completion %"),
                    alt.Tooltip("on_time_rate:Q", title="On-time %"),
                ],
            )
        )
        st.altair_chart(chart.properties(height=280), use_container_width=True)
        summary = report.weekly_summary
        trend_text = "—" if summary.trend is None else f"{summary.trend:+.1f}"
        st.caption(f"Average weekly quality {summary.average_quality_score:.1f}, trend vs last week {trend_text}.")

    st.subheader("Insights")
    insights = report.insights
    if insights.is_empty:
        st.caption("No insights yet for the selected month.")
    for item in insights.alerts:
        st.warning(f"**{item.title}**: {item.description}")
    for item in insights.recommendations:
        st.info(f"**{item.title}**: {item.description}")
    for item in insights.opportunities:
        st.success(f"**{item.title}**: {item.description}")

    with st.expander("Show methodology", expanded=False):
        st.markdown(
            """
**Worker and team score**
- completion = completed / assigned
- on-time = on-time / assigned − 50 × late / assigned (floor 0)
- quality = readiness points (fit 100, minor 70, not fit 30) − 20 × late / assigned; 70 when not reported
- score = 0.5 × completion + 0.25 × on-time + 0.1 × quality + pending bonus (≤ 5) − overdue penalty (≤ 10) + 3 when completion ≥ 80
- grade: A ≥ 95, B ≥ 85, C ≥ 70, else D

**Weekly quality**
- quality = 0.5 × completion + 0.3 × on-time (of completed) − 0.2 × overdue rate
- grade: A+ ≥ 95 … D ≥ 50, else F
"""
        )
