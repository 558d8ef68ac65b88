"""
Learning orchestration: cached insights, data quality, metrics and progress.

Insights are cached per profile version (id + updated_at). Storing insights for
a new version of a profile evicts the older versions, and applying a
recommendation through this service evicts them all.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from gutsafe.config import settings
from gutsafe.errors import InvalidInputError
from gutsafe.models import (
    AdaptiveRecommendation,
    DataQuality,
    GutProfile,
    LearningInsights,
    LearningMetrics,
    LearningProgress,
    ScanRecord,
    SymptomLog,
    UserFeedback,
)
from gutsafe.models.types import assume_utc, utcnow
from gutsafe.services.insight_cache import InsightCache
from gutsafe.services.pattern_analyzer import (
    PatternAnalyzer,
    calculate_consistency,
    most_recent,
)
from gutsafe.services.recommendation_engine import RecommendationEngine

logger = logging.getLogger(__name__)


class LearningService:
    """Computes and caches LearningInsights for a profile and its history."""

    COMPLETENESS_TARGET = 100  # events for full completeness
    RECENCY_WINDOW_DAYS = 30
    NEUTRAL_ACCURACY = 0.5
    HIGH_CONFIDENCE = 0.7
    ADAPTATION_TARGET = 10

    def __init__(
        self,
        analyzer: PatternAnalyzer,
        engine: RecommendationEngine,
        cache: Optional[InsightCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.analyzer = analyzer
        self.engine = engine
        self.cache = cache or InsightCache(settings.insight_cache_ttl_seconds)
        self.clock = clock or utcnow

    def _now(self) -> datetime:
        return assume_utc(self.clock())

    def get_or_compute(
        self,
        profile: Optional[GutProfile],
        scan_records: list[ScanRecord],
        symptom_logs: list[SymptomLog],
    ) -> LearningInsights:
        """
        Return insights for the profile, recomputing when the cached entry is
        missing, expired or belongs to an older profile version.

        Raises:
            InvalidInputError: If no profile is given
        """
        if profile is None:
            raise InvalidInputError("A gut profile is required to compute insights")

        key = profile.version_key
        evicted = self.cache.invalidate(lambda k: k[0] == profile.id and k != key)
        if evicted:
            logger.debug("Evicted %d stale insight entries for profile %s", evicted, profile.id)

        return self.cache.get_or_compute(
            key, lambda: self.compute_insights(profile, scan_records, symptom_logs)
        )

    def compute_insights(
        self,
        profile: GutProfile,
        scan_records: list[ScanRecord],
        symptom_logs: list[SymptomLog],
    ) -> LearningInsights:
        now = self._now()
        patterns = self.analyzer.analyze(scan_records, symptom_logs, profile, now=now)
        recommendations = self.engine.recommend(patterns, profile)

        averages = []
        if patterns:
            averages.append(sum(p.confidence for p in patterns) / len(patterns))
        if recommendations:
            averages.append(sum(r.confidence for r in recommendations) / len(recommendations))
        confidence = sum(averages) / len(averages) if averages else 0.0

        insights = LearningInsights(
            patterns=patterns,
            recommendations=recommendations,
            confidence=round(confidence, 3),
            data_quality=self.assess_data_quality(scan_records, symptom_logs, now=now),
            last_updated=now,
        )
        logger.info(
            "Computed insights for profile %s: %d patterns, %d recommendations, confidence=%.3f",
            profile.id,
            len(patterns),
            len(recommendations),
            insights.confidence,
        )
        return insights

    def assess_data_quality(
        self,
        scan_records: list[ScanRecord],
        symptom_logs: list[SymptomLog],
        now: Optional[datetime] = None,
    ) -> DataQuality:
        now = assume_utc(now) if now else self._now()
        limit = self.analyzer.MAX_HISTORY
        timestamps = [r.timestamp for r in most_recent(scan_records, limit, now)] + [
            log.timestamp for log in most_recent(symptom_logs, limit, now)
        ]
        if not timestamps:
            return DataQuality(completeness=0.0, consistency=0.0, recency=0.0)

        days_since_last = max(0.0, (now - max(timestamps)).total_seconds() / 86400)
        return DataQuality(
            completeness=round(min(1.0, len(timestamps) / self.COMPLETENESS_TARGET), 3),
            consistency=calculate_consistency(timestamps),
            recency=round(max(0.0, 1 - days_since_last / self.RECENCY_WINDOW_DAYS), 3),
        )

    def calculate_metrics(
        self,
        scan_records: list[ScanRecord],
        symptom_logs: list[SymptomLog],
        insights: Optional[LearningInsights] = None,
    ) -> LearningMetrics:
        """
        Feedback-based accuracy and adaptation metrics.

        Accuracy figures are the share of labelled scans marked accurate, or
        0.5 when nothing is labelled. Adaptation rate counts high-confidence
        recommendations against a target of ten.
        """
        labelled = [r for r in scan_records if r.user_feedback is not None]
        if labelled:
            accurate = sum(1 for r in labelled if r.user_feedback == UserFeedback.ACCURATE)
            accuracy = round(accurate / len(labelled), 3)
        else:
            accuracy = self.NEUTRAL_ACCURACY

        strong = 0
        if insights is not None:
            strong = sum(1 for r in insights.recommendations if r.confidence > self.HIGH_CONFIDENCE)

        return LearningMetrics(
            total_data_points=len(scan_records) + len(symptom_logs),
            learning_accuracy=accuracy,
            prediction_accuracy=accuracy,
            user_satisfaction=accuracy,
            adaptation_rate=min(1.0, strong / self.ADAPTATION_TARGET),
            last_evaluation=self._now(),
        )

    def learning_progress(
        self,
        profile: GutProfile,
        scan_records: list[ScanRecord],
        symptom_logs: list[SymptomLog],
    ) -> LearningProgress:
        insights = self.get_or_compute(profile, scan_records, symptom_logs)
        metrics = self.calculate_metrics(scan_records, symptom_logs, insights)
        return LearningProgress(
            data_points=metrics.total_data_points,
            patterns_discovered=len(insights.patterns),
            recommendations_generated=len(insights.recommendations),
            accuracy=metrics.learning_accuracy,
            last_update=insights.last_updated,
        )

    def personalized_recommendations(
        self,
        profile: GutProfile,
        scan_records: list[ScanRecord],
        symptom_logs: list[SymptomLog],
    ) -> list[str]:
        insights = self.get_or_compute(profile, scan_records, symptom_logs)
        return self.engine.personalized_recommendations(profile, insights.patterns)

    def apply_recommendation(
        self,
        recommendation: AdaptiveRecommendation,
        profile: GutProfile,
        reset: bool = False,
    ) -> GutProfile:
        """Apply a recommendation and drop cached insights for the profile."""
        updated = self.engine.apply(recommendation, profile, now=self._now(), reset=reset)
        self.cache.invalidate(lambda k: k[0] == profile.id)
        return updated
