"""Tests for the daily snapshot and insight composer."""

from datetime import timedelta

from wellness_insights.analysis.composer import (
    PRIORITY_RULES,
    collect_recommendations,
    compose_daily_insight,
    compose_insight,
    find_top_priority,
)
from wellness_insights.analysis.snapshot import DailySnapshot, build_snapshot, resolve_hrv_baseline
from wellness_insights.models.goals import default_goals


def _steady(**overrides):
    """A snapshot that triggers no rule."""
    fields = dict(
        hrv=50, hrv_baseline=50, readiness_score=80, sleep_score=80,
        avg_deep_sleep_7d=85, stress_minutes=120, recovery_minutes=200,
        days_since_workout=1, avg_steps_7d=9000,
    )
    fields.update(overrides)
    return DailySnapshot(**fields)


class TestPriorityCascade:
    """Tests for the rule cascade."""

    def test_maintenance_when_all_clear(self):
        """Test the fallback action when no rule fires."""
        action = find_top_priority(_steady())

        assert action.type == "maintenance"
        assert action.title == "On Track"
        assert action.severity == "ok"
        assert "HRV at 100%" in action.reason

    def test_critical_hrv(self):
        """Test that HRV under 70% of baseline calls for a recovery day."""
        action = find_top_priority(_steady(hrv=30))

        assert action.title == "Recovery Day"
        assert action.severity == "critical"
        assert action.reason.startswith("HRV is 60% of your baseline")

    def test_critical_sleep(self):
        """Test that a sleep score under 50 is critical even with good HRV."""
        action = find_top_priority(_steady(sleep_score=45))
        assert action.type == "critical"
        assert "sleep score is critically low" in action.reason

    def test_hrv_warning(self):
        """Test the 70-85% HRV band."""
        action = find_top_priority(_steady(hrv=40))

        assert action.type == "hrv_warning"
        assert "80% of your 50ms baseline" in action.reason

    def test_deep_sleep_deficit(self):
        """Test a low seven-day deep sleep average."""
        assert find_top_priority(_steady(avg_deep_sleep_7d=45)).type == "deep_sleep"

    def test_high_stress(self):
        """Test heavy stress without matching recovery."""
        action = find_top_priority(_steady(stress_minutes=360, recovery_minutes=60))

        assert action.type == "stress"
        assert action.reason == "6h stress vs 1h recovery."

    def test_workout_deficit(self):
        """Test days without a workout."""
        action = find_top_priority(_steady(days_since_workout=4))

        assert action.title == "4 Days Since Workout"
        assert "high intensity" in action.action

    def test_sleep_debt(self):
        """Test a sleep score between 50 and 70."""
        assert find_top_priority(_steady(sleep_score=65)).type == "sleep"

    def test_step_deficit(self):
        """Test a step average under half the goal."""
        action = find_top_priority(_steady(avg_steps_7d=3000))

        assert action.type == "steps"
        assert "10,000 steps" in action.action
        assert "3,000 steps" in action.reason

    def test_first_match_wins(self):
        """Test that the HRV warning outranks poor sleep and the rest follow."""
        snapshot = _steady(hrv=40, sleep_score=65, days_since_workout=5)

        actions = collect_recommendations(snapshot)

        assert [a.type for a in actions] == ["hrv_warning", "workout", "sleep"]
        assert find_top_priority(snapshot) == actions[0]

    def test_unknown_inputs_skip_rules(self):
        """Test that an empty snapshot falls through every rule."""
        actions = collect_recommendations(DailySnapshot())

        assert [a.type for a in actions] == ["maintenance"]
        assert actions[0].reason == "No warning signs in your recent data."

    def test_every_rule_handles_unknowns(self):
        """Test each rule individually on an all-unknown snapshot."""
        for rule in PRIORITY_RULES:
            assert rule(DailySnapshot()) is None


class TestSnapshot:
    """Tests for build_snapshot."""

    def test_latest_and_averages(self, make_records, base_date):
        """Test the latest-day fields and seven-day averages."""
        records = make_records(
            hrv=[40] * 7 + [50] * 7,
            deep_sleep=[100] * 7 + [60] * 7,
            steps=[8000] * 14,
            workout=[False] * 9 + [True] + [False] * 4,
        )

        snapshot = build_snapshot(records)

        assert snapshot.date == base_date + timedelta(days=13)
        assert snapshot.hrv == 50
        assert snapshot.avg_deep_sleep_7d == 60.0
        assert snapshot.avg_hrv_7d == 50.0
        assert snapshot.days_since_workout == 4
        assert snapshot.hrv_baseline == 41

    def test_today_excludes_later_records(self, make_records, base_date):
        """Test that records after today are ignored."""
        records = make_records(sleep_score=[60, 70, 80])

        snapshot = build_snapshot(records, today=base_date + timedelta(days=1))

        assert snapshot.sleep_score == 70

    def test_no_workouts(self, make_records):
        """Test days since workout counts the whole history when there was none."""
        snapshot = build_snapshot(make_records(steps=[1000] * 5))
        assert snapshot.days_since_workout == 5

    def test_this_week(self, make_records, base_date):
        """Test week-to-date counts start on Monday."""
        records = make_records(
            start=base_date - timedelta(days=2),
            steps=[9000, 9000, 9000, 2000, 7000],
            workout=[True, True, True, False, False],
        )

        snapshot = build_snapshot(records)

        assert snapshot.workouts_this_week == 1
        assert snapshot.active_days == 2

    def test_goal_targets(self, make_records):
        """Test step and workout targets come from goals."""
        goals = default_goals()
        goals["dailySteps"].target = 8000

        snapshot = build_snapshot(make_records(hrv=[60] * 10), goals)

        assert snapshot.step_goal == 8000
        assert snapshot.workout_goal == 4

    def test_auto_baseline_goal_tracks_readings(self, make_records):
        """Test the default auto-baseline goal follows 90% of the 30-day mean."""
        snapshot = build_snapshot(make_records(hrv=[60] * 10), default_goals())
        assert snapshot.hrv_baseline == 54

    def test_fixed_baseline_goal(self, make_records):
        """Test that a goal without auto_baseline pins the baseline to its target."""
        goals = default_goals()
        goals["hrvBaseline"].auto_baseline = False
        goals["hrvBaseline"].target = 50

        snapshot = build_snapshot(make_records(hrv=[60] * 10), goals)

        assert snapshot.hrv_baseline == 50

    def test_auto_baseline_falls_back_to_goal_target(self, make_records, base_date):
        """Test that with too few readings the auto goal keeps its own target."""
        goals = default_goals()
        goals["hrvBaseline"].target = 45

        baseline = resolve_hrv_baseline(make_records(hrv=[60] * 3), goals, base_date + timedelta(days=2))

        assert baseline == 45

    def test_disabled_goal_ignored(self, make_records, base_date):
        """Test that a disabled goal falls through to the default baseline."""
        goals = default_goals()
        goals["hrvBaseline"].enabled = False
        goals["hrvBaseline"].target = 70

        baseline = resolve_hrv_baseline(make_records(hrv=[60] * 3), goals, base_date + timedelta(days=2))

        assert baseline == 40.0

    def test_baseline_default_when_sparse(self, make_records, base_date):
        """Test the default baseline with fewer than seven readings."""
        records = make_records(hrv=[60] * 3)
        assert resolve_hrv_baseline(records, None, base_date + timedelta(days=2)) == 40.0

    def test_empty(self):
        """Test that no records gives a snapshot of unknowns."""
        snapshot = build_snapshot([])

        assert snapshot.date is None
        assert snapshot.hrv is None
        assert snapshot.days_since_workout is None


class TestComposeInsight:
    """Tests for the composed daily insight."""

    def test_end_to_end(self, make_records, base_date):
        """Test a full composition from records."""
        records = make_records(
            hrv=[50] * 13 + [25],
            sleep_score=[80] * 14,
            readiness_score=[75] * 14,
            deep_sleep=[80] * 14,
            steps=[9000] * 14,
            workout=[True] + [False] * 13,
        )

        insight = compose_daily_insight(records, default_goals())

        assert insight.date == base_date + timedelta(days=13)
        assert insight.top_priority_action.title == "Recovery Day"
        assert [a.type for a in insight.secondary_actions] == ["workout"]
        assert insight.workout_recommendation.type == "rest"
        assert insight.weekly_summary.workout_goal == 4
        assert insight.readiness_assessment.level in ("moderate", "low")

    def test_empty_never_raises(self):
        """Test that an empty history still composes."""
        insight = compose_daily_insight([])

        assert insight.readiness_assessment.level == "unknown"
        assert insight.top_priority_action.type == "maintenance"
        assert insight.secondary_actions == []

    def test_to_dict(self):
        """Test the serialized shape."""
        payload = compose_insight(_steady()).to_dict()

        assert set(payload) == {
            "date",
            "readiness_assessment",
            "top_priority_action",
            "workout_recommendation",
            "weekly_summary",
            "recovery_factor_breakdown",
            "secondary_actions",
        }
        assert payload["top_priority_action"]["type"] == "maintenance"

    def test_deterministic(self, make_records):
        """Test the same inputs give the same insight."""
        records = make_records(hrv=[45] * 10, sleep_score=[65] * 10)

        first = compose_daily_insight(records).to_dict()
        second = compose_daily_insight(records).to_dict()

        assert first == second

    def test_auto_baseline_drives_hrv_warning(self, make_records):
        """Test a drop against a learned 71ms baseline warns despite the 40ms goal default."""
        records = make_records(hrv=[80] * 29 + [60])

        snapshot = build_snapshot(records, default_goals())
        insight = compose_daily_insight(records, default_goals())

        assert snapshot.hrv_baseline == 71
        assert insight.top_priority_action.type == "hrv_warning"
        assert "of your 71ms baseline" in insight.top_priority_action.reason
