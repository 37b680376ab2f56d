"""
Temporal commit-pattern analysis.

All recency-dependent metrics (recent activity, current streak, burnout
signals) are measured against an explicit `as_of` time so a given history
always analyzes to the same result.
"""

import logging
import math
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .records import CommitData, commits_by, parse_timestamp

logger = logging.getLogger(__name__)

PEAK_FRACTION = 0.7
RECENT_ACTIVITY_DAYS = 90
BURNOUT_WINDOW_DAYS = 30
TREND_CHANGE = 0.1
SEASONALITY_MIN_COMMITS = 12

ACTIVITY_TYPES = ("consistent", "growing", "declining", "bursty", "sporadic")
RISK_LEVELS = ((70, "critical"), (50, "high"), (30, "medium"), (0, "low"))


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Population std / mean; 0 when the mean is 0."""
    if len(values) == 0:
        return 0.0
    arr = np.asarray(values, dtype=float)
    mean = arr.mean()
    if mean <= 0:
        return 0.0
    return float(arr.std() / mean)


def _intervals_days(timestamps: Sequence[datetime]) -> List[float]:
    return [
        (b - a).total_seconds() / 86400 for a, b in zip(timestamps, timestamps[1:])
    ]


def _span_days(timestamps: Sequence[datetime]) -> float:
    if not timestamps:
        return 1.0
    return max(1.0, (max(timestamps) - min(timestamps)).total_seconds() / 86400)


def _day_of_week(ts: datetime) -> int:
    """0 = Sunday."""
    return (ts.weekday() + 1) % 7


def find_peaks(distribution: Sequence[float], fraction: float = PEAK_FRACTION) -> Tuple[int, ...]:
    top = max(distribution) if distribution else 0
    if top <= 0:
        return ()
    return tuple(i for i, v in enumerate(distribution) if v >= top * fraction)


# ============================================================================
# RESULT TYPES
# ============================================================================


@dataclass(frozen=True)
class ActivityPattern:
    activity_type: str
    peak_hours: Tuple[int, ...]
    peak_days: Tuple[int, ...]
    intensity: int
    regularity: float


@dataclass(frozen=True)
class MonthlyProductivity:
    month: str  # "YYYY-MM"
    commits: int
    lines_changed: int
    files_modified: int
    score: int
    trend: str = "stable"


@dataclass(frozen=True)
class StreakAnalysis:
    current_streak: int
    longest_streak: int
    average_streak: float
    streak_consistency: float
    active_days: int


@dataclass(frozen=True)
class BurnoutAssessment:
    score: int
    level: str
    workload_trend: str
    indicators: Tuple[str, ...]


@dataclass(frozen=True)
class TemporalCircuitInputs:
    consistency_score: int
    active_days: int
    peak_hour: int
    weekly_variance: int
    longest_streak: int
    burnout_risk: int
    seasonality_index: int
    productivity_trend: int  # 1 rising, -1 falling, 0 flat


@dataclass(frozen=True)
class TemporalReport:
    consistency_score: int
    activity: ActivityPattern
    hour_distribution: Tuple[float, ...]
    day_distribution: Tuple[float, ...]
    productivity: Tuple[MonthlyProductivity, ...]
    streaks: StreakAnalysis
    burnout: BurnoutAssessment
    seasonality_index: int
    circuit_inputs: TemporalCircuitInputs


# ============================================================================
# ANALYZER
# ============================================================================


class TemporalAnalyzer:
    def analyze(
        self, commits: Sequence[CommitData], user: str, as_of: datetime
    ) -> TemporalReport:
        as_of = parse_timestamp(as_of).astimezone(timezone.utc)
        mine = sorted(commits_by(tuple(commits), user), key=lambda c: c.timestamp)
        timestamps = [c.timestamp.astimezone(timezone.utc) for c in mine]

        consistency = self.consistency_score(timestamps)
        hours = self.hour_distribution(timestamps)
        days = self.day_distribution(timestamps)
        activity = self.activity_pattern(timestamps, as_of)
        productivity = self.productivity_trends(mine)
        streaks = self.streaks(timestamps, as_of)
        burnout = self.burnout_risk(timestamps, productivity, consistency, as_of)
        seasonality = self.seasonality_index(timestamps)

        recent = [p.trend for p in productivity[-3:]]
        up, down = recent.count("increasing"), recent.count("decreasing")
        inputs = TemporalCircuitInputs(
            consistency_score=consistency,
            active_days=streaks.active_days,
            peak_hour=int(np.argmax(hours)) if timestamps else 0,
            weekly_variance=int(round(float(np.var(days)))),
            longest_streak=streaks.longest_streak,
            burnout_risk=burnout.score,
            seasonality_index=seasonality,
            productivity_trend=(up > down) - (down > up),
        )
        logger.debug(
            "%s: %d commits, consistency %d, activity %s, burnout %s",
            user,
            len(mine),
            consistency,
            activity.activity_type,
            burnout.level,
        )
        return TemporalReport(
            consistency_score=consistency,
            activity=activity,
            hour_distribution=hours,
            day_distribution=days,
            productivity=tuple(productivity),
            streaks=streaks,
            burnout=burnout,
            seasonality_index=seasonality,
            circuit_inputs=inputs,
        )

    # ------------------------------------------------------------------
    # Distributions
    # ------------------------------------------------------------------

    @staticmethod
    def consistency_score(timestamps: Sequence[datetime]) -> int:
        """round(100 * e^-cv) over inter-commit intervals; 0 below 2 commits."""
        if len(timestamps) < 2:
            return 0
        cv = coefficient_of_variation(_intervals_days(timestamps))
        return int(round(100 * math.exp(-cv)))

    @staticmethod
    def hour_distribution(timestamps: Sequence[datetime]) -> Tuple[float, ...]:
        """Share of commits per UTC hour, in percent."""
        counts = np.zeros(24)
        for ts in timestamps:
            counts[ts.hour] += 1
        total = counts.sum()
        return tuple(float(x) for x in (100 * counts / total if total else counts))

    @staticmethod
    def day_distribution(timestamps: Sequence[datetime]) -> Tuple[float, ...]:
        """Share of commits per weekday (0 = Sunday), in percent."""
        counts = np.zeros(7)
        for ts in timestamps:
            counts[_day_of_week(ts)] += 1
        total = counts.sum()
        return tuple(float(x) for x in (100 * counts / total if total else counts))

    # ------------------------------------------------------------------
    # Activity
    # ------------------------------------------------------------------

    @staticmethod
    def intensity(timestamps: Sequence[datetime]) -> float:
        if not timestamps:
            return 0.0
        return min(100.0, 20 * len(timestamps) / _span_days(timestamps))

    @staticmethod
    def regularity(timestamps: Sequence[datetime]) -> float:
        if len(timestamps) < 2:
            return 0.0
        return max(0.0, 1 - min(1.0, coefficient_of_variation(_intervals_days(timestamps))))

    @staticmethod
    def _recent_rate(timestamps: Sequence[datetime], as_of: datetime, days: int) -> float:
        cutoff = as_of - timedelta(days=days)
        return sum(1 for ts in timestamps if ts >= cutoff) / days

    @staticmethod
    def _historical_rate(timestamps: Sequence[datetime]) -> float:
        if not timestamps:
            return 0.0
        return len(timestamps) / _span_days(timestamps)

    def activity_pattern(self, timestamps: Sequence[datetime], as_of: datetime) -> ActivityPattern:
        intensity = self.intensity(timestamps)
        regularity = self.regularity(timestamps)

        if not timestamps:
            kind = "sporadic"
        else:
            recent = self._recent_rate(timestamps, as_of, RECENT_ACTIVITY_DAYS)
            historical = self._historical_rate(timestamps)
            if regularity > 0.7 and intensity > 30:
                kind = "consistent"
            elif recent > historical * 1.5:
                kind = "growing"
            elif recent < historical * 0.5:
                kind = "declining"
            elif intensity > 60 and regularity < 0.3:
                kind = "bursty"
            else:
                kind = "sporadic"

        return ActivityPattern(
            activity_type=kind,
            peak_hours=find_peaks(self.hour_distribution(timestamps)),
            peak_days=find_peaks(self.day_distribution(timestamps)),
            intensity=int(round(intensity)),
            regularity=round(regularity, 2),
        )

    # ------------------------------------------------------------------
    # Productivity
    # ------------------------------------------------------------------

    @staticmethod
    def productivity_score(commits: int, lines_changed: int, files_modified: int) -> int:
        return int(
            round(min(40, 2 * commits) + min(40, lines_changed / 100) + min(20, files_modified))
        )

    def productivity_trends(self, commits: Sequence[CommitData]) -> List[MonthlyProductivity]:
        months: "OrderedDict[str, List[CommitData]]" = OrderedDict()
        for commit in commits:
            month = commit.timestamp.astimezone(timezone.utc).strftime("%Y-%m")
            months.setdefault(month, []).append(commit)

        trends: List[MonthlyProductivity] = []
        previous: Optional[int] = None
        for month in sorted(months):
            group = months[month]
            lines = sum(c.lines_changed for c in group)
            files = len({n for c in group for n in c.filenames if n})
            score = self.productivity_score(len(group), lines, files)
            trend = "stable"
            if previous is not None:
                if previous == 0:
                    trend = "increasing" if score > 0 else "stable"
                else:
                    change = (score - previous) / previous
                    if change > TREND_CHANGE:
                        trend = "increasing"
                    elif change < -TREND_CHANGE:
                        trend = "decreasing"
            trends.append(
                MonthlyProductivity(
                    month=month,
                    commits=len(group),
                    lines_changed=lines,
                    files_modified=files,
                    score=score,
                    trend=trend,
                )
            )
            previous = score
        return trends

    # ------------------------------------------------------------------
    # Streaks, burnout, seasonality
    # ------------------------------------------------------------------

    @staticmethod
    def streaks(timestamps: Sequence[datetime], as_of: datetime) -> StreakAnalysis:
        days: List[date] = sorted({ts.date() for ts in timestamps})
        if not days:
            return StreakAnalysis(0, 0, 0.0, 0.0, 0)

        runs: List[int] = []
        run = 1
        for a, b in zip(days, days[1:]):
            if (b - a).days == 1:
                run += 1
            else:
                runs.append(run)
                run = 1
        runs.append(run)

        since_last = (as_of.date() - days[-1]).days
        return StreakAnalysis(
            current_streak=run if since_last <= 1 else 0,
            longest_streak=max(runs),
            average_streak=round(sum(runs) / len(runs), 1),
            streak_consistency=round(max(0.0, 1 - min(1.0, coefficient_of_variation(runs))), 2),
            active_days=len(days),
        )

    def burnout_risk(
        self,
        timestamps: Sequence[datetime],
        productivity: Sequence[MonthlyProductivity],
        consistency: int,
        as_of: datetime,
    ) -> BurnoutAssessment:
        if not timestamps:
            return BurnoutAssessment(0, "low", "sustainable", ())

        indicators: List[str] = []
        score = 0
        recent = self._recent_rate(timestamps, as_of, BURNOUT_WINDOW_DAYS)
        historical = self._historical_rate(timestamps)
        n = len(timestamps)

        if recent > historical * 2:
            score += 30
            indicators.append("high_recent_intensity")
        late = sum(1 for ts in timestamps if ts.hour >= 22 or ts.hour <= 6)
        if late / n > 0.3:
            score += 25
            indicators.append("late_night_commits")
        weekend = sum(1 for ts in timestamps if _day_of_week(ts) in (0, 6))
        if weekend / n > 0.4:
            score += 20
            indicators.append("weekend_activity")
        if sum(1 for p in productivity[-3:] if p.trend == "decreasing") >= 2:
            score += 15
            indicators.append("declining_productivity")
        if consistency < 30:
            score += 10
            indicators.append("irregular_patterns")

        level = burnout_level(score)
        if recent > historical * 1.5:
            workload = "excessive"
        elif recent > historical * 1.2:
            workload = "increasing"
        else:
            workload = "sustainable"
        return BurnoutAssessment(score, level, workload, tuple(indicators))

    @staticmethod
    def seasonality_index(timestamps: Sequence[datetime]) -> int:
        """Coefficient of variation of calendar-month counts, x100, capped at 100."""
        if len(timestamps) < SEASONALITY_MIN_COMMITS:
            return 0
        counts = [0] * 12
        for ts in timestamps:
            counts[ts.month - 1] += 1
        return min(100, int(round(100 * coefficient_of_variation(counts))))


def burnout_level(score: int) -> str:
    return next(name for floor, name in RISK_LEVELS if score >= floor)
