"""
Unit tests for PatternAnalyzer.

Tests the pattern mining logic including:
- Interval consistency scoring
- Food trigger detection and its feedback/safety filters
- Symptom pattern frequency thresholds
- Condition correlation rates
- Timing buckets
- History caps and determinism
"""

from datetime import datetime, timedelta

import pytest

from gutsafe.models import Condition, PatternType, ScanSafety, SymptomType, UserFeedback
from gutsafe.services.pattern_analyzer import (
    PatternAnalyzer,
    calculate_consistency,
    time_span_days,
)
from tests.factories import (
    NOW,
    create_logs,
    create_profile,
    create_scan_record,
    create_symptom,
    create_symptom_log,
    create_test_scenario_milk_trigger,
)


def _of_type(patterns, pattern_type):
    return [p for p in patterns if p.type == pattern_type]


class TestConsistency:
    """Tests for interval consistency."""

    def test_no_timestamps(self):
        """Test that an empty list scores zero."""
        assert calculate_consistency([]) == 0.0

    def test_single_timestamp(self):
        """Test that one timestamp has no intervals and scores zero."""
        assert calculate_consistency([NOW]) == 0.0

    def test_evenly_spaced(self):
        """Test that evenly spaced timestamps score one."""
        timestamps = [NOW - timedelta(days=d) for d in (0, 2, 4, 6)]

        assert calculate_consistency(timestamps) == 1.0

    def test_order_does_not_matter(self):
        """Test that unsorted input is sorted first."""
        timestamps = [NOW, NOW - timedelta(hours=6), NOW - timedelta(hours=3)]

        assert calculate_consistency(timestamps) == 1.0

    def test_irregular_spacing(self):
        """Test that intervals of 1h and 3h score 1 - 1/2."""
        timestamps = [NOW, NOW + timedelta(hours=1), NOW + timedelta(hours=4)]

        assert calculate_consistency(timestamps) == 0.5

    def test_identical_timestamps(self):
        """Test that a zero mean interval scores zero rather than dividing by zero."""
        assert calculate_consistency([NOW, NOW, NOW]) == 0.0

    def test_time_span(self):
        """Test the span between first and last event in days."""
        assert time_span_days([NOW, NOW - timedelta(days=3, hours=12)]) == 3.5
        assert time_span_days([NOW]) == 0.0


class TestEmptyHistory:
    """Tests for analysis without data."""

    def test_no_history_no_patterns(self, analyzer: PatternAnalyzer):
        """Test that empty history returns an empty list."""
        assert analyzer.analyze([], [], create_profile(), now=NOW) == []


class TestFoodTriggers:
    """Tests for food trigger detection."""

    def test_milk_trigger_detected(self, analyzer: PatternAnalyzer):
        """Test that milk followed by severe symptoms becomes a food trigger."""
        scans, logs = create_test_scenario_milk_trigger()

        patterns = analyzer.analyze(scans, logs, create_profile(), now=NOW)
        triggers = _of_type(patterns, PatternType.FOOD_TRIGGER)

        assert [p.subject for p in triggers] == ["milk"]
        milk = triggers[0]
        # frequency 4/5, severity 7, perfectly regular scans
        assert milk.confidence == pytest.approx(0.56)
        assert milk.confidence > 0.1
        assert milk.evidence.frequency == 0.8
        assert milk.evidence.severity == 7.0
        assert milk.evidence.consistency == 1.0
        assert milk.data_points == 4
        assert milk.time_span_days == 6.0
        assert milk.description == "milk appears to trigger digestive symptoms"
        assert milk.affected_conditions == [
            Condition.LACTOSE,
            Condition.IBS_FODMAP,
            Condition.ALLERGIES,
        ]

    def test_inaccurate_scans_excluded(self, analyzer: PatternAnalyzer):
        """Test that scans the user marked inaccurate are not counted."""
        scans, logs = create_test_scenario_milk_trigger(feedback=UserFeedback.INACCURATE)

        patterns = analyzer.analyze(scans, logs, create_profile(), now=NOW)

        assert _of_type(patterns, PatternType.FOOD_TRIGGER) == []

    def test_accurate_feedback_still_counted(self, analyzer: PatternAnalyzer):
        """Test that accurate feedback keeps scans in the analysis."""
        scans, logs = create_test_scenario_milk_trigger(feedback=UserFeedback.ACCURATE)

        patterns = analyzer.analyze(scans, logs, create_profile(), now=NOW)

        assert len(_of_type(patterns, PatternType.FOOD_TRIGGER)) == 1

    def test_safe_scans_excluded(self, analyzer: PatternAnalyzer):
        """Test that only caution/avoid scans feed trigger detection."""
        scans, logs = create_test_scenario_milk_trigger()
        safe_scans = [
            s.model_copy(update={"analysis": s.analysis.model_copy(update={"overall_safety": ScanSafety.SAFE})})
            for s in scans
        ]

        patterns = analyzer.analyze(safe_scans, logs, create_profile(), now=NOW)

        assert _of_type(patterns, PatternType.FOOD_TRIGGER) == []

    def test_below_minimum_occurrences(self, analyzer: PatternAnalyzer):
        """Test that two occurrences are not enough."""
        scans, logs = create_test_scenario_milk_trigger()

        patterns = analyzer.analyze(scans[:3], logs, create_profile(), now=NOW)

        assert _of_type(patterns, PatternType.FOOD_TRIGGER) == []

    def test_symptoms_outside_window_ignored(self, analyzer: PatternAnalyzer):
        """Test that symptoms logged more than 24 hours later do not correlate."""
        scans = [
            create_scan_record(["milk"], timestamp=NOW - timedelta(days=d)) for d in (16, 12, 8, 4)
        ]
        late_logs = [
            create_symptom_log(
                symptoms=[create_symptom(severity=8, timestamp=s.timestamp + timedelta(hours=30))],
                food_items=["milk"],
                timestamp=s.timestamp + timedelta(hours=30),
            )
            for s in scans
        ]

        patterns = analyzer.analyze(scans, late_logs, create_profile(), now=NOW)

        assert _of_type(patterns, PatternType.FOOD_TRIGGER) == []

    def test_mild_symptoms_not_a_trigger(self, analyzer: PatternAnalyzer):
        """Test that an average severity of exactly 5 does not qualify."""
        scans, logs = create_test_scenario_milk_trigger()
        mild_logs = [
            log.model_copy(
                update={"symptoms": [create_symptom(severity=5, timestamp=log.timestamp)]}
            )
            for log in logs
        ]

        patterns = analyzer.analyze(scans, mild_logs, create_profile(), now=NOW)

        assert _of_type(patterns, PatternType.FOOD_TRIGGER) == []

    def test_uncorrelated_ingredient_not_reported(self, analyzer: PatternAnalyzer):
        """Test that sugar, never mentioned in symptom logs, is not a trigger."""
        scans, logs = create_test_scenario_milk_trigger()

        patterns = analyzer.analyze(scans, logs, create_profile(), now=NOW)

        assert "sugar" not in [p.subject for p in patterns]


class TestSymptomPatterns:
    """Tests for recurring symptom detection."""

    def test_daily_bloating(self, analyzer: PatternAnalyzer):
        """Test that bloating in every log is a maximal-confidence pattern."""
        logs = create_logs(SymptomType.BLOATING, count=6, severity=4)

        patterns = analyzer.analyze([], logs, create_profile(), now=NOW)
        symptom_patterns = _of_type(patterns, PatternType.SYMPTOM_PATTERN)

        assert len(symptom_patterns) == 1
        bloating = symptom_patterns[0]
        assert bloating.subject == "bloating"
        assert bloating.confidence == 0.9
        assert bloating.description == "bloating occurs frequently (100% of logs)"
        assert bloating.affected_conditions == [Condition.IBS_FODMAP, Condition.LACTOSE]
        assert bloating.evidence.severity == 4.0

    def test_below_minimum_occurrences(self, analyzer: PatternAnalyzer):
        """Test that four occurrences are not enough."""
        logs = create_logs(SymptomType.NAUSEA, count=4)

        patterns = analyzer.analyze([], logs, create_profile(), now=NOW)

        assert _of_type(patterns, PatternType.SYMPTOM_PATTERN) == []

    def test_rare_symptom_ignored(self, analyzer: PatternAnalyzer):
        """Test that 5 of 30 logs is below the 20% frequency bar."""
        logs = create_logs(SymptomType.HEADACHE, count=25, end=NOW - timedelta(hours=1))
        logs += create_logs(SymptomType.GAS, count=5, end=NOW - timedelta(hours=2))

        patterns = analyzer.analyze([], logs, create_profile(), now=NOW)
        subjects = [p.subject for p in _of_type(patterns, PatternType.SYMPTOM_PATTERN)]

        assert "headache" in subjects
        assert "gas" not in subjects

    def test_multiple_symptoms_counted_once_per_log(self, analyzer: PatternAnalyzer):
        """Test that a log with two cramps still counts as one occurrence."""
        logs = []
        for days_ago in range(1, 6):
            ts = NOW - timedelta(days=days_ago)
            logs.append(
                create_symptom_log(
                    symptoms=[
                        create_symptom(type=SymptomType.CRAMPING, severity=3, timestamp=ts),
                        create_symptom(type=SymptomType.CRAMPING, severity=5, timestamp=ts),
                    ],
                    timestamp=ts,
                )
            )

        patterns = analyzer.analyze([], logs, create_profile(), now=NOW)
        cramping = _of_type(patterns, PatternType.SYMPTOM_PATTERN)[0]

        assert cramping.evidence.frequency == 1.0
        assert cramping.data_points == 5
        assert cramping.evidence.severity == 4.0


class TestConditionCorrelations:
    """Tests for condition correlation rates."""

    def test_reflux_correlation(self, analyzer: PatternAnalyzer):
        """Test that 4 of 10 logs with heartburn correlate with reflux."""
        logs = create_logs(SymptomType.HEARTBURN, count=4, end=NOW - timedelta(hours=1))
        logs += create_logs(SymptomType.OTHER, count=6, end=NOW - timedelta(hours=2))
        profile = create_profile(enabled=[Condition.REFLUX])

        patterns = analyzer.analyze([], logs, profile, now=NOW)
        correlations = _of_type(patterns, PatternType.CONDITION_CORRELATION)

        assert len(correlations) == 1
        assert correlations[0].subject == "reflux"
        assert correlations[0].confidence == 0.4
        assert correlations[0].affected_conditions == [Condition.REFLUX]

    def test_disabled_condition_not_correlated(self, analyzer: PatternAnalyzer):
        """Test that only enabled conditions are checked."""
        logs = create_logs(SymptomType.HEARTBURN, count=4)

        patterns = analyzer.analyze([], logs, create_profile(), now=NOW)

        assert _of_type(patterns, PatternType.CONDITION_CORRELATION) == []

    def test_rate_must_exceed_threshold(self, analyzer: PatternAnalyzer):
        """Test that exactly 30% does not qualify."""
        logs = create_logs(SymptomType.HEARTBURN, count=3, end=NOW - timedelta(hours=1))
        logs += create_logs(SymptomType.OTHER, count=7, end=NOW - timedelta(hours=2))
        profile = create_profile(enabled=[Condition.REFLUX])

        patterns = analyzer.analyze([], logs, profile, now=NOW)

        assert _of_type(patterns, PatternType.CONDITION_CORRELATION) == []


class TestTimingPatterns:
    """Tests for weekday/hour timing buckets."""

    def _weekly(self, first: datetime, weeks: int, severity: int):
        return [
            create_symptom_log(
                symptoms=[create_symptom(severity=severity, timestamp=first + timedelta(weeks=w))],
                timestamp=first + timedelta(weeks=w),
            )
            for w in range(weeks)
        ]

    def test_worst_slot_reported(self, analyzer: PatternAnalyzer):
        """Test that the slot with the highest mean severity wins."""
        monday_2pm = datetime(2024, 5, 13, 14, 0, tzinfo=NOW.tzinfo)
        tuesday_9am = datetime(2024, 5, 14, 9, 0, tzinfo=NOW.tzinfo)
        logs = self._weekly(monday_2pm, 3, severity=8) + self._weekly(tuesday_9am, 3, severity=3)
        profile = create_profile(enabled=[Condition.IBS_FODMAP])

        patterns = analyzer.analyze([], logs, profile, now=NOW)
        timing = _of_type(patterns, PatternType.TIMING_PATTERN)

        assert len(timing) == 1
        assert timing[0].description == "Symptoms peak on Monday at 14:00"
        assert timing[0].subject == "Monday 14:00"
        assert timing[0].confidence == 0.3
        assert timing[0].evidence.frequency == 0.5
        assert timing[0].evidence.consistency == 1.0
        assert timing[0].affected_conditions == [Condition.IBS_FODMAP]

    def test_small_buckets_ignored(self, analyzer: PatternAnalyzer):
        """Test that a slot needs at least three logs."""
        monday_2pm = datetime(2024, 5, 20, 14, 0, tzinfo=NOW.tzinfo)
        logs = self._weekly(monday_2pm, 2, severity=9)

        patterns = analyzer.analyze([], logs, create_profile(), now=NOW)

        assert _of_type(patterns, PatternType.TIMING_PATTERN) == []


class TestAnalyzeBehaviour:
    """Tests for ordering, bounds, caps and determinism."""

    def test_sorted_by_confidence(self, analyzer: PatternAnalyzer):
        """Test that results are most confident first."""
        scans, logs = create_test_scenario_milk_trigger()
        logs += create_logs(SymptomType.BLOATING, count=6, end=NOW - timedelta(hours=5))
        profile = create_profile(enabled=[Condition.LACTOSE])

        patterns = analyzer.analyze(scans, logs, profile, now=NOW)
        confidences = [p.confidence for p in patterns]

        assert len(patterns) >= 2
        assert confidences == sorted(confidences, reverse=True)
        assert all(0.0 <= c <= 1.0 for c in confidences)

    def test_deterministic(self, analyzer: PatternAnalyzer):
        """Test that identical inputs and now give identical output."""
        scans, logs = create_test_scenario_milk_trigger()
        profile = create_profile(enabled=[Condition.LACTOSE])

        first = analyzer.analyze(scans, logs, profile, now=NOW)
        second = analyzer.analyze(scans, logs, profile, now=NOW)

        assert first == second

    def test_future_records_ignored(self, analyzer: PatternAnalyzer):
        """Test that records after now are left out."""
        logs = create_logs(SymptomType.BLOATING, count=6, end=NOW + timedelta(days=10))

        assert analyzer.analyze([], logs, create_profile(), now=NOW) == []

    def test_naive_now_treated_as_utc(self, analyzer: PatternAnalyzer):
        """Test that a naive reference time gives the same result as its UTC equivalent."""
        scans, logs = create_test_scenario_milk_trigger()
        profile = create_profile(enabled=[Condition.LACTOSE])

        naive = analyzer.analyze(scans, logs, profile, now=datetime(2024, 6, 3, 12, 0))

        assert naive == analyzer.analyze(scans, logs, profile, now=NOW)
        assert [p.subject for p in _of_type(naive, PatternType.FOOD_TRIGGER)] == ["milk"]

    def test_history_capped(self, analyzer: PatternAnalyzer, monkeypatch):
        """Test that only the most recent records are analyzed."""
        monkeypatch.setattr(PatternAnalyzer, "MAX_HISTORY", 4)
        logs = create_logs(SymptomType.BLOATING, count=6)

        patterns = analyzer.analyze([], logs, create_profile(), now=NOW)

        assert _of_type(patterns, PatternType.SYMPTOM_PATTERN) == []

    def test_scan_only_history(self, analyzer: PatternAnalyzer):
        """Test that scans without symptom logs produce no patterns."""
        scans = [
            create_scan_record(["milk"], timestamp=NOW - timedelta(days=d)) for d in range(1, 6)
        ]

        assert analyzer.analyze(scans, [], create_profile(), now=NOW) == []
