from __future__ import annotations

import sqlite3
from datetime import date

import altair as alt
import pandas as pd
import streamlit as st

from readiness_tracking.data.repositories import AssignmentRepository, UserRepository
from readiness_tracking.services.normalize import normalize_assignments
from readiness_tracking.services.periods import PeriodError, parse_period
from readiness_tracking.services.teams import aggregate_teams, organization_summary


def render(con: sqlite3.Connection) -> None:
    st.header("Team comparison")

    assignment_repo = AssignmentRepository(con)
    team_leaders = UserRepository(con).list_team_leaders()

    month_value = st.text_input("Month (YYYY-MM)", value=date.today().strftime("%Y-%m"), key="teams_month")
    try:
        period = parse_period(month_value)
    except PeriodError as exc:
        st.error(str(exc))
        return

    result = normalize_assignments(
        assignment_repo.list_assignments(date_from=period.start, date_to=period.end)
    )
    teams = aggregate_teams(result.assignments, period, team_names=team_leaders)
    org = organization_summary(
        result.assignments,
        period,
        team_count=len(teams),
        dropped_records=result.dropped,
    )

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Teams", f"{org.active_team_count}/{org.team_count}")
    c2.metric("Workers", org.worker_count)
    c3.metric("Not fit reports", org.high_risk_reports)
    c4.metric("Avg response (h)", f"{org.average_response_hours:.1f}")

    if not teams:
        st.info("No teams for the selected month.")
        return

    df = pd.DataFrame(
        [
            {
                "team": team.team_leader_name,
                "completion_rate": round(team.completion_rate, 1),
                "on_time_rate": round(team.on_time_rate, 1),
                "composite_score": team.composite_score,
                "grade": team.grade,
                "members": team.member_count,
                "fit": team.readiness_counts.get("fit", 0),
                "minor": team.readiness_counts.get("minor", 0),
                "not_fit": team.readiness_counts.get("not_fit", 0),
            }
            for team in teams
        ]
    )

    chart = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("composite_score:Q", title="Score", scale=alt.Scale(domain=[0, 100])),
            y=alt.Y("team:N", sort="-x", title=None),
            color=alt.Color("grade:N", title="Grade"),
            tooltip=["team", "composite_score", "grade", "completion_rate", "on_time_rate", "members"],
        )
    )
    st.altair_chart(chart.properties(height=max(160, 32 * len(df))), use_container_width=True)

    readiness = df.melt(
        id_vars=["team"],
        value_vars=["fit", "minor", "not_fit"],
        var_name="level",
        value_name="reports",
    )
    st.subheader("Readiness distribution")
    st.altair_chart(
        alt.Chart(readiness)
        .mark_bar()
        .encode(
            x=alt.X("reports:Q", stack="zero", title="Reports"),
            y=alt.Y("team:N", title=None),
            color=alt.Color("level:N", title="Level"),
            tooltip=["team", "level", "reports"],
        )
        .properties(height=max(160, 32 * len(df))),
        use_container_width=True,
    )

    st.dataframe(df, use_container_width=True, hide_index=True)
