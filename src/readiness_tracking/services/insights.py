from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

from readiness_tracking.services.teams import TeamPerformance

STRONG_TREND_DELTA = 10.0
TREND_DELTA = 5.0
STABLE_DELTA = 3.0
EXCELLENT_RATE = 95.0
CRITICAL_SCORE = 80.0

REMARK_STRONG_UP = "Improving readiness - strong upward trend"
REMARK_UP = "Improving readiness"
REMARK_STRONG_DOWN = "Declining readiness - attention needed"
REMARK_DOWN = "Declining readiness"
REMARK_STABLE = "Stable readiness - consistent performance"
REMARK_EXCELLENT_TIMELINESS = "Excellent timeliness and readiness"
REMARK_LATE = " - late submissions impacting quality"

UNDERPERFORMING_COMPLETION = 60.0
HIGH_RISK_SHARE = 0.15
HIGH_RISK_MIN_REPORTS = 2
COMPLETION_GAP = 20.0
SLOW_RESPONSE_HOURS = 24.0
MENTOR_SCORE = 85.0
MAX_NAMES = 3


@dataclass(frozen=True)
class Remark:
    text: str
    trend: str | None = None
    delta: float | None = None
    consistency: float = 0.0
    critical_periods: int = 0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def base_remark(score: float) -> str:
    if score >= 95:
        return "Excellent performance"
    if score >= 90:
        return "Good performance"
    if score >= 80:
        return "Average performance"
    return "Needs improvement"


def trend_delta(scores: Sequence[float]) -> float | None:
    """Recent-vs-earlier delta for an oldest-to-newest score sequence."""
    if len(scores) >= 6:
        return _mean(scores[-3:]) - _mean(scores[-6:-3])
    if len(scores) == 2:
        return scores[-1] - scores[-2]
    if len(scores) > 2:
        return _mean(scores[-2:]) - _mean(scores[:-2])
    return None


def trend_remark(scores: Sequence[float]) -> tuple[str | None, str | None, float | None]:
    """Return ``(remark, direction, delta)``; remark is None when nothing stands out."""
    delta = trend_delta(scores)
    if delta is None:
        return None, None, None
    if len(scores) >= 6:
        if delta > STRONG_TREND_DELTA:
            return REMARK_STRONG_UP, "up", delta
        if delta > TREND_DELTA:
            return REMARK_UP, "up", delta
        if delta < -STRONG_TREND_DELTA:
            return REMARK_STRONG_DOWN, "down", delta
        if delta < -TREND_DELTA:
            return REMARK_DOWN, "down", delta
        if abs(delta) < STABLE_DELTA:
            return REMARK_STABLE, "stable", delta
        return None, "stable", delta
    if delta > TREND_DELTA:
        return REMARK_UP, "up", delta
    if delta < -TREND_DELTA:
        return REMARK_DOWN, "down", delta
    return None, "stable", delta


def remark_for(scores: Sequence[float], completion_rate: float, on_time_rate: float) -> Remark:
    history = [float(score) for score in scores]
    latest = history[-1] if history else 0.0

    text = base_remark(latest)
    if completion_rate >= 90 and on_time_rate < 80:
        text += REMARK_LATE

    trend_text, direction, delta = trend_remark(history)
    if completion_rate >= EXCELLENT_RATE and on_time_rate >= EXCELLENT_RATE:
        text = REMARK_EXCELLENT_TIMELINESS
    elif trend_text:
        text = trend_text

    critical = sum(1 for score in history if score < CRITICAL_SCORE)
    if critical and completion_rate >= 80:
        text += f" ({critical} critical period{'s' if critical > 1 else ''})"

    excellent = sum(1 for score in history if score >= EXCELLENT_RATE)
    consistency = 100 * excellent / len(history) if history else 0.0

    return Remark(
        text=text,
        trend=direction,
        delta=None if delta is None else round(delta, 1),
        consistency=round(consistency, 1),
        critical_periods=critical,
    )


@dataclass(frozen=True)
class InsightItem:
    title: str
    description: str
    subjects: tuple[str, ...] = ()


@dataclass(frozen=True)
class OrganizationInsights:
    alerts: list[InsightItem] = field(default_factory=list)
    recommendations: list[InsightItem] = field(default_factory=list)
    opportunities: list[InsightItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.alerts or self.recommendations or self.opportunities)


def _names(teams: Sequence[TeamPerformance]) -> str:
    names = [team.team_leader_name for team in teams]
    text = ", ".join(names[:MAX_NAMES])
    return text + ("…" if len(names) > MAX_NAMES else "")


def organization_insights(teams: Sequence[TeamPerformance]) -> OrganizationInsights:
    active = [team for team in teams if team.total_assignments > 0]
    insights = OrganizationInsights()

    underperforming = [t for t in active if t.completion_rate < UNDERPERFORMING_COMPLETION]
    if underperforming:
        insights.alerts.append(
            InsightItem(
                "Underperforming teams",
                f"{len(underperforming)} team(s) below {UNDERPERFORMING_COMPLETION:.0f}% completion",
                tuple(t.team_leader_name for t in underperforming),
            )
        )

    high_risk = [
        t
        for t in active
        if t.high_risk_reports >= max(HIGH_RISK_MIN_REPORTS, math.ceil(t.total_assignments * HIGH_RISK_SHARE))
    ]
    if high_risk:
        insights.alerts.append(
            InsightItem(
                "High risk reports",
                f"{len(high_risk)} team(s) with elevated not_fit reports",
                tuple(t.team_leader_name for t in high_risk),
            )
        )

    by_completion = sorted(active, key=lambda t: t.completion_rate, reverse=True)
    if len(by_completion) >= 2:
        best, worst = by_completion[0], by_completion[-1]
        gap = best.completion_rate - worst.completion_rate
        if gap >= COMPLETION_GAP:
            insights.recommendations.append(
                InsightItem(
                    "Share best practices",
                    f"Share practices from {best.team_leader_name} with {worst.team_leader_name} "
                    f"(gap {round(gap)}%)",
                    (best.team_leader_name, worst.team_leader_name),
                )
            )

    slow = [t for t in active if t.average_response_hours > SLOW_RESPONSE_HOURS]
    if slow:
        insights.recommendations.append(
            InsightItem(
                "Reduce response time",
                f"{len(slow)} team(s) average response time > {SLOW_RESPONSE_HOURS:.0f}h",
                tuple(t.team_leader_name for t in slow),
            )
        )

    inactive = [team for team in teams if team.total_assignments == 0]
    if inactive:
        insights.recommendations.append(
            InsightItem(
                "Kickstart inactive teams",
                f"Begin assignments for {_names(inactive)}",
                tuple(t.team_leader_name for t in inactive),
            )
        )

    strong = [t for t in active if t.composite_score >= MENTOR_SCORE]
    if strong:
        insights.opportunities.append(
            InsightItem(
                "Mentorship opportunity",
                f"Invite {_names(strong)} to mentor other teams",
                tuple(t.team_leader_name for t in strong),
            )
        )

    return insights
