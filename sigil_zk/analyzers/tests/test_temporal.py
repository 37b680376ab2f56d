"""
Tests for temporal commit-pattern analysis.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ..records import CommitData, FileChange
from ..temporal import TemporalAnalyzer, burnout_level, coefficient_of_variation, find_peaks

START = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)  # a Monday


def _commit(ts, author="alice", lines=10):
    return CommitData(
        sha=ts.isoformat(),
        author=author,
        message="work",
        timestamp=ts,
        files=(FileChange("main.py", additions=lines),),
    )


def _daily(days, author="alice"):
    return [_commit(START + timedelta(days=d), author) for d in days]


class TestHelpers:
    """Tests for the statistics helpers."""

    def test_coefficient_of_variation(self):
        assert coefficient_of_variation([2, 2, 2]) == 0.0
        assert coefficient_of_variation([]) == 0.0
        assert coefficient_of_variation([0, 0]) == 0.0
        assert coefficient_of_variation([1, 3]) == pytest.approx(0.5)

    def test_find_peaks(self):
        assert find_peaks([0, 10, 7, 6]) == (1, 2)
        assert find_peaks([0, 0]) == ()

    def test_burnout_level(self):
        assert burnout_level(0) == "low"
        assert burnout_level(30) == "medium"
        assert burnout_level(55) == "high"
        assert burnout_level(75) == "critical"


class TestTemporalAnalyzer:
    """Tests for TemporalAnalyzer.analyze."""

    def test_regular_commits_are_consistent(self):
        report = TemporalAnalyzer().analyze(_daily(range(10)), "alice", START + timedelta(days=10))
        assert report.consistency_score == 100
        assert report.hour_distribution[10] == 100.0
        assert report.day_distribution[1] > 0

    def test_single_commit_scores_zero(self):
        report = TemporalAnalyzer().analyze(_daily([0]), "alice", START)
        assert report.consistency_score == 0

    def test_streaks_relative_to_as_of(self):
        commits = _daily([0, 1, 2, 4, 5])
        analyzer = TemporalAnalyzer()
        current = analyzer.analyze(commits, "alice", START + timedelta(days=5, hours=2))
        assert current.streaks.longest_streak == 3
        assert current.streaks.current_streak == 2
        assert current.streaks.active_days == 5
        assert current.streaks.average_streak == 2.5

        later = analyzer.analyze(commits, "alice", START + timedelta(days=30))
        assert later.streaks.current_streak == 0
        assert later.streaks.longest_streak == 3

    def test_other_authors_ignored(self):
        commits = _daily(range(5)) + _daily(range(5, 40), author="bob")
        report = TemporalAnalyzer().analyze(commits, "ALICE", START + timedelta(days=5))
        assert report.streaks.active_days == 5

    def test_productivity_trend(self):
        january = _daily([0, 1])
        february = [_commit(START + timedelta(days=31 + d), lines=500) for d in range(10)]
        report = TemporalAnalyzer().analyze(january + february, "alice", START + timedelta(days=45))
        assert [p.month for p in report.productivity] == ["2024-01", "2024-02"]
        assert report.productivity[0].trend == "stable"
        assert report.productivity[1].trend == "increasing"
        assert report.circuit_inputs.productivity_trend == 1

    def test_months_bucketed_in_utc(self):
        eastern = timezone(timedelta(hours=-5))
        late = _commit(datetime(2024, 1, 31, 23, 30, tzinfo=eastern))
        report = TemporalAnalyzer().analyze([late], "alice", START + timedelta(days=45))
        assert [p.month for p in report.productivity] == ["2024-02"]

    def test_seasonality_needs_enough_commits(self):
        report = TemporalAnalyzer().analyze(_daily(range(5)), "alice", START + timedelta(days=5))
        assert report.seasonality_index == 0

    def test_deterministic_for_fixed_as_of(self):
        commits = _daily([0, 3, 4, 9])
        as_of = START + timedelta(days=12)
        assert TemporalAnalyzer().analyze(commits, "alice", as_of) == TemporalAnalyzer().analyze(
            commits, "alice", as_of
        )

    def test_no_commits(self):
        report = TemporalAnalyzer().analyze([], "alice", START)
        assert report.consistency_score == 0
        assert report.activity.activity_type == "sporadic"
        assert report.burnout.level == "low"
        assert report.circuit_inputs.peak_hour == 0
