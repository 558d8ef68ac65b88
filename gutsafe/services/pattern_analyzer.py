"""
Pattern mining over a user's scan and symptom history.

Four independent detectors run over the same (capped) history:
- Food triggers: ingredients of non-safe scans followed by symptoms
- Symptom patterns: symptom types that recur across logs
- Condition correlations: enabled conditions whose symptoms dominate the logs
- Timing: the (weekday, hour) slot with the worst average severity

All scores are closed-form heuristics over counts, ratios and interval
regularity, so results are deterministic for identical inputs and "now".
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Iterable, Optional

from gutsafe.config import settings
from gutsafe.models import (
    Condition,
    GutProfile,
    PatternEvidence,
    PatternInsight,
    PatternType,
    ScanRecord,
    ScanSafety,
    SymptomLog,
    SymptomType,
    UserFeedback,
)
from gutsafe.models.types import assume_utc, utcnow
from gutsafe.services.ingredient_classifier import normalize_ingredient
from gutsafe.services.trigger_rules import TriggerRuleSet

logger = logging.getLogger(__name__)

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

SYMPTOM_CONDITIONS: dict[SymptomType, list[Condition]] = {
    SymptomType.BLOATING: [Condition.IBS_FODMAP, Condition.LACTOSE],
    SymptomType.CRAMPING: [Condition.IBS_FODMAP, Condition.LACTOSE],
    SymptomType.DIARRHEA: [Condition.IBS_FODMAP, Condition.LACTOSE],
    SymptomType.GAS: [Condition.IBS_FODMAP, Condition.LACTOSE],
    SymptomType.CONSTIPATION: [Condition.IBS_FODMAP],
    SymptomType.NAUSEA: [Condition.REFLUX, Condition.HISTAMINE],
    SymptomType.REFLUX: [Condition.REFLUX],
    SymptomType.HEARTBURN: [Condition.REFLUX],
    SymptomType.FATIGUE: [Condition.HISTAMINE],
    SymptomType.HEADACHE: [Condition.HISTAMINE],
    SymptomType.SKIN_IRRITATION: [Condition.HISTAMINE, Condition.ALLERGIES],
    SymptomType.OTHER: [Condition.ADDITIVES],
}


def calculate_consistency(timestamps: Iterable[datetime]) -> float:
    """
    Regularity of event spacing.

    Sorts the timestamps, takes the intervals between neighbours and returns
    1 - (population stddev / mean) floored at 0. Evenly spaced events score 1.

    Returns:
        0.0 for fewer than two timestamps or a zero mean interval
    """
    ordered = sorted(timestamps)
    if len(ordered) < 2:
        return 0.0

    intervals = [(b - a).total_seconds() for a, b in zip(ordered, ordered[1:])]
    mean = sum(intervals) / len(intervals)
    if mean <= 0:
        return 0.0

    variance = sum((i - mean) ** 2 for i in intervals) / len(intervals)
    return round(max(0.0, 1 - math.sqrt(variance) / mean), 3)


def time_span_days(timestamps: Iterable[datetime]) -> float:
    ordered = sorted(timestamps)
    if len(ordered) < 2:
        return 0.0
    return round((ordered[-1] - ordered[0]).total_seconds() / 86400, 2)


def most_recent(records: list, limit: int, now: datetime) -> list:
    """Drop future-dated records and keep the newest `limit`, oldest first."""
    kept = sorted((r for r in records if r.timestamp <= now), key=lambda r: r.timestamp)
    return kept[-limit:] if limit > 0 else kept


class PatternAnalyzer:
    """Detects recurring trigger, symptom, condition and timing patterns."""

    MAX_CONFIDENCE = 0.9
    MAX_TIMING_CONFIDENCE = 0.8
    MAX_HISTORY = settings.max_history_records
    SYMPTOM_WINDOW = timedelta(hours=settings.symptom_window_hours)

    FOOD_TRIGGER_MIN_OCCURRENCES = settings.food_trigger_min_occurrences
    FOOD_TRIGGER_MIN_FREQUENCY = 0.1
    FOOD_TRIGGER_MIN_SEVERITY = 5

    SYMPTOM_MIN_OCCURRENCES = settings.symptom_pattern_min_occurrences
    SYMPTOM_MIN_FREQUENCY = 0.2

    CONDITION_MIN_RATE = 0.3

    TIMING_MIN_LOGS = settings.timing_bucket_min_logs

    def __init__(self, rule_set: TriggerRuleSet):
        self.rule_set = rule_set

    def analyze(
        self,
        scan_records: list[ScanRecord],
        symptom_logs: list[SymptomLog],
        profile: GutProfile,
        now: Optional[datetime] = None,
    ) -> list[PatternInsight]:
        """
        Run every detector and return insights sorted by confidence.

        Args:
            scan_records: Past scans with optional user feedback
            symptom_logs: Symptom diary entries
            profile: Profile whose enabled conditions scope correlation/timing
            now: Reference time; records after it are ignored

        Returns:
            PatternInsight list, most confident first. Empty for no history.
        """
        now = assume_utc(now) if now else utcnow()
        scans = most_recent(list(scan_records or []), self.MAX_HISTORY, now)
        logs = most_recent(list(symptom_logs or []), self.MAX_HISTORY, now)
        if not scans and not logs:
            return []

        patterns: list[PatternInsight] = []
        patterns.extend(self.find_food_triggers(scans, logs))
        patterns.extend(self.find_symptom_patterns(logs))
        patterns.extend(self.find_condition_correlations(logs, profile))
        patterns.extend(self.find_timing_patterns(logs, profile))

        patterns.sort(key=lambda p: p.confidence, reverse=True)
        logger.info(
            "Pattern analysis for profile %s: %d scans, %d logs -> %d patterns",
            profile.id,
            len(scans),
            len(logs),
            len(patterns),
        )
        return patterns

    def find_food_triggers(
        self, scans: list[ScanRecord], logs: list[SymptomLog]
    ) -> list[PatternInsight]:
        total_scans = len(scans)
        if total_scans == 0:
            return []

        occurrences: dict[str, list[datetime]] = {}
        severity_totals: dict[str, int] = {}
        symptom_counts: dict[str, int] = {}

        for scan in scans:
            if scan.user_feedback == UserFeedback.INACCURATE:
                continue
            if scan.analysis.overall_safety == ScanSafety.SAFE:
                continue

            seen: set[str] = set()
            for raw in scan.food_item.ingredients:
                ingredient = normalize_ingredient(raw)
                if not ingredient or ingredient in seen:
                    continue
                seen.add(ingredient)

                occurrences.setdefault(ingredient, []).append(scan.timestamp)
                severity_totals.setdefault(ingredient, 0)
                symptom_counts.setdefault(ingredient, 0)

                for log in logs:
                    if abs(log.timestamp - scan.timestamp) >= self.SYMPTOM_WINDOW:
                        continue
                    if not any(ingredient in normalize_ingredient(f) for f in log.food_items):
                        continue
                    for symptom in log.symptoms:
                        severity_totals[ingredient] += symptom.severity
                        symptom_counts[ingredient] += 1

        insights = []
        for ingredient, timestamps in occurrences.items():
            count = len(timestamps)
            symptoms = symptom_counts[ingredient]
            if count < self.FOOD_TRIGGER_MIN_OCCURRENCES or symptoms == 0:
                continue

            frequency = count / total_scans
            average_severity = severity_totals[ingredient] / symptoms
            if frequency <= self.FOOD_TRIGGER_MIN_FREQUENCY:
                continue
            if average_severity <= self.FOOD_TRIGGER_MIN_SEVERITY:
                continue

            consistency = calculate_consistency(timestamps)
            confidence = min(
                self.MAX_CONFIDENCE, frequency * (average_severity / 10) * consistency
            )
            affected = self.rule_set.affected_conditions(ingredient)

            insights.append(
                PatternInsight(
                    type=PatternType.FOOD_TRIGGER,
                    subject=ingredient,
                    confidence=round(confidence, 3),
                    description=f"{ingredient} appears to trigger digestive symptoms",
                    evidence=PatternEvidence(
                        frequency=round(frequency, 3),
                        severity=round(average_severity, 2),
                        consistency=consistency,
                    ),
                    recommendations=[
                        f"Consider avoiding {ingredient}",
                        f"Look for {ingredient}-free alternatives",
                        f"Monitor symptoms when consuming {ingredient}",
                    ],
                    affected_conditions=affected,
                    data_points=count,
                    time_span_days=time_span_days(timestamps),
                )
            )
        return insights

    def find_symptom_patterns(self, logs: list[SymptomLog]) -> list[PatternInsight]:
        total_logs = len(logs)
        if total_logs == 0:
            return []

        insights = []
        for symptom_type in SymptomType:
            matched = [log for log in logs if any(s.type == symptom_type for s in log.symptoms)]
            count = len(matched)
            frequency = count / total_logs
            if count < self.SYMPTOM_MIN_OCCURRENCES or frequency <= self.SYMPTOM_MIN_FREQUENCY:
                continue

            severities = [
                s.severity for log in matched for s in log.symptoms if s.type == symptom_type
            ]
            timestamps = [log.timestamp for log in matched]
            consistency = calculate_consistency(timestamps)
            confidence = min(self.MAX_CONFIDENCE, frequency * consistency)
            name = symptom_type.value.replace("_", " ")

            insights.append(
                PatternInsight(
                    type=PatternType.SYMPTOM_PATTERN,
                    subject=symptom_type.value,
                    confidence=round(confidence, 3),
                    description=f"{name} occurs frequently ({round(frequency * 100)}% of logs)",
                    evidence=PatternEvidence(
                        frequency=round(frequency, 3),
                        severity=round(sum(severities) / len(severities), 2),
                        consistency=consistency,
                    ),
                    recommendations=[
                        f"Track {name} triggers more carefully",
                        f"Consider dietary adjustments for {name}",
                        f"Consult healthcare provider about persistent {name}",
                    ],
                    affected_conditions=list(SYMPTOM_CONDITIONS[symptom_type]),
                    data_points=count,
                    time_span_days=time_span_days(timestamps),
                )
            )
        return insights

    def find_condition_correlations(
        self, logs: list[SymptomLog], profile: GutProfile
    ) -> list[PatternInsight]:
        total_logs = len(logs)
        if total_logs == 0:
            return []

        insights = []
        for condition in profile.enabled_conditions():
            severities: list[int] = []
            timestamps: list[datetime] = []
            for log in logs:
                related = [s for s in log.symptoms if condition in SYMPTOM_CONDITIONS[s.type]]
                if related:
                    severities.extend(s.severity for s in related)
                    timestamps.append(log.timestamp)

            rate = len(timestamps) / total_logs
            if rate <= self.CONDITION_MIN_RATE:
                continue

            insights.append(
                PatternInsight(
                    type=PatternType.CONDITION_CORRELATION,
                    subject=condition.value,
                    confidence=round(min(self.MAX_CONFIDENCE, rate), 3),
                    description=(
                        f"Symptoms linked to {condition.label} appear in "
                        f"{round(rate * 100)}% of logs"
                    ),
                    evidence=PatternEvidence(
                        frequency=round(rate, 3),
                        severity=round(sum(severities) / len(severities), 2),
                        consistency=calculate_consistency(timestamps),
                    ),
                    recommendations=[
                        f"Review your {condition.label} trigger list",
                        f"Track foods eaten before {condition.label} symptoms",
                    ],
                    affected_conditions=[condition],
                    data_points=len(timestamps),
                    time_span_days=time_span_days(timestamps),
                )
            )
        return insights

    def find_timing_patterns(
        self, logs: list[SymptomLog], profile: GutProfile
    ) -> list[PatternInsight]:
        total_logs = len(logs)
        buckets: dict[tuple[int, int], list[SymptomLog]] = {}
        for log in logs:
            if not log.symptoms:
                continue
            key = (log.timestamp.weekday(), log.timestamp.hour)
            buckets.setdefault(key, []).append(log)

        candidates = []
        for (weekday, hour), bucket in buckets.items():
            if len(bucket) < self.TIMING_MIN_LOGS:
                continue
            mean = sum(log.mean_severity for log in bucket) / len(bucket)
            candidates.append((mean, len(bucket), -weekday, -hour, weekday, hour, bucket))
        if not candidates:
            return []

        # Highest mean wins; ties go to the larger bucket, then the earliest slot
        mean, count, _, _, weekday, hour, bucket = max(candidates, key=lambda c: c[:4])
        day = DAY_NAMES[weekday]
        timestamps = [log.timestamp for log in bucket]

        return [
            PatternInsight(
                type=PatternType.TIMING_PATTERN,
                subject=f"{day} {hour:02d}:00",
                confidence=round(min(self.MAX_TIMING_CONFIDENCE, count / 10), 3),
                description=f"Symptoms peak on {day} at {hour}:00",
                evidence=PatternEvidence(
                    frequency=round(count / total_logs, 3),
                    severity=round(mean, 2),
                    consistency=calculate_consistency(timestamps),
                ),
                recommendations=[
                    f"Consider adjusting meal timing before {day} {hour}:00",
                    "Keep a food diary to track timing correlations",
                ],
                affected_conditions=profile.enabled_conditions(),
                data_points=count,
                time_span_days=time_span_days(timestamps),
            )
        ]
