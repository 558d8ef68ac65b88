"""Symptom diary summaries: frequencies, triggers, weekly trends and reports."""

from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from gutsafe.models import (
    ReportPeriod,
    SymptomLog,
    SymptomReport,
    SymptomTrend,
    SymptomType,
    TrendDirection,
    TriggerCount,
)
from gutsafe.models.types import assume_utc, utcnow


class SymptomService:
    """Service for symptom-related summaries."""

    TREND_THRESHOLD = 0.1  # 10% change between halves

    @staticmethod
    def get_common_symptom_types() -> List[str]:
        """Get list of common symptom types for the logging UI."""
        return [t.value for t in SymptomType if t != SymptomType.OTHER]

    @staticmethod
    def symptom_frequency(logs: List[SymptomLog]) -> Dict[SymptomType, int]:
        """Count how many logs mention each symptom type."""
        counts: Counter = Counter()
        for log in logs:
            counts.update({s.type for s in log.symptoms})
        return {t: counts[t] for t in SymptomType if counts[t]}

    @staticmethod
    def average_severity(logs: List[SymptomLog]) -> float:
        severities = [s.severity for log in logs for s in log.symptoms]
        if not severities:
            return 0.0
        return round(sum(severities) / len(severities), 2)

    @staticmethod
    def top_triggers(logs: List[SymptomLog], limit: int = 5) -> List[TriggerCount]:
        """Most frequently suspected triggers, counted once per log."""
        counts: Counter = Counter()
        for log in logs:
            suspected = {
                t.strip().lower()
                for s in log.symptoms
                for t in s.potential_triggers
                if t and t.strip()
            }
            counts.update(suspected)
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [TriggerCount(trigger=t, count=c) for t, c in ranked[:limit]]

    @classmethod
    def analyze_trends(cls, logs: List[SymptomLog]) -> List[SymptomTrend]:
        """
        Compare weekly mean severity between the first and second half of the
        observed weeks for each symptom type.

        A change below -10% is improving, above +10% worsening, anything else
        stable. Fewer than two observed weeks is stable. When the first-half
        mean is zero the change is reported as 0%.

        Returns:
            One SymptomTrend per symptom type present in the logs
        """
        weekly: Dict[SymptomType, Dict[tuple, List[int]]] = {}
        for log in logs:
            week = tuple(log.timestamp.isocalendar()[:2])
            for symptom in log.symptoms:
                weekly.setdefault(symptom.type, {}).setdefault(week, []).append(symptom.severity)

        trends = []
        for symptom_type in SymptomType:
            weeks = weekly.get(symptom_type)
            if not weeks:
                continue

            averages = [sum(v) / len(v) for _, v in sorted(weeks.items())]
            change = 0.0
            if len(averages) >= 2:
                half = len(averages) // 2
                first = sum(averages[:half]) / half
                second = sum(averages[half:]) / (len(averages) - half)
                change = (second - first) / first if first else 0.0

            if change < -cls.TREND_THRESHOLD:
                direction = TrendDirection.IMPROVING
            elif change > cls.TREND_THRESHOLD:
                direction = TrendDirection.WORSENING
            else:
                direction = TrendDirection.STABLE

            trends.append(
                SymptomTrend(
                    symptom=symptom_type,
                    direction=direction,
                    change_percentage=round(change * 100, 1),
                    weeks_observed=len(averages),
                )
            )
        return trends

    @classmethod
    def build_report(
        cls,
        logs: List[SymptomLog],
        period: ReportPeriod = ReportPeriod.MONTH,
        now: Optional[datetime] = None,
    ) -> SymptomReport:
        """Summarize the logs falling inside the reporting period ending at now."""
        now = assume_utc(now) if now else utcnow()
        start = now - timedelta(days=period.days)
        in_period = [log for log in logs if start <= log.timestamp <= now]

        return SymptomReport(
            period=period,
            total_logs=len(in_period),
            symptom_frequency=cls.symptom_frequency(in_period),
            average_severity=cls.average_severity(in_period),
            top_triggers=cls.top_triggers(in_period),
            trends=cls.analyze_trends(in_period),
            generated_at=now,
        )


symptom_service = SymptomService()
