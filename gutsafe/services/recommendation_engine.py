"""
Turns detected patterns into profile changes and applies accepted ones.

recommend() is read-only. apply() returns an updated copy of the profile and
leaves persistence to the caller. Applying the same recommendation twice gives
the same profile as applying it once.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from gutsafe.errors import InvalidInputError
from gutsafe.models import (
    AdaptiveRecommendation,
    Condition,
    GutProfile,
    PatternInsight,
    PatternType,
    Priority,
    RecommendationEvidence,
    RecommendationType,
    Severity,
)
from gutsafe.models.types import assume_utc, utcnow
from gutsafe.services.alternative_suggester import AlternativeSuggester

logger = logging.getLogger(__name__)

CONDITION_SCOPED = {
    RecommendationType.TRIGGER_ADDITION,
    RecommendationType.SEVERITY_ADJUSTMENT,
    RecommendationType.CONDITION_TOGGLE,
}

CONDITION_TIPS: dict[Condition, list[str]] = {
    Condition.IBS_FODMAP: [
        "Consider following a low-FODMAP diet",
        "Avoid high-FODMAP foods like onions, garlic, and certain fruits",
    ],
    Condition.GLUTEN: [
        "Maintain a strict gluten-free diet",
        "Check labels carefully for hidden gluten sources",
    ],
    Condition.LACTOSE: [
        "Use lactose-free dairy products or lactase supplements",
        "Consider plant-based milk alternatives",
    ],
    Condition.HISTAMINE: [
        "Avoid aged and fermented foods",
        "Consider a low-histamine diet",
    ],
}

TIMING_TIPS = [
    "Consider adjusting meal timing based on your symptom patterns",
    "Keep a food diary to track timing correlations",
]


def priority_for(confidence: float) -> Priority:
    if confidence > 0.8:
        return Priority.HIGH
    if confidence > 0.6:
        return Priority.MEDIUM
    return Priority.LOW


def _union(*groups: Iterable[str]) -> list[str]:
    merged: list[str] = []
    for group in groups:
        for item in group:
            if item not in merged:
                merged.append(item)
    return merged


def _evidence(pattern: PatternInsight) -> RecommendationEvidence:
    return RecommendationEvidence(
        data_points=pattern.data_points,
        time_span_days=pattern.time_span_days,
        consistency=pattern.evidence.consistency,
    )


class RecommendationEngine:
    """Maps patterns to adaptive recommendations and applies them to profiles."""

    TRIGGER_THRESHOLD = 0.7
    SEVERITY_THRESHOLD = 0.8
    TOGGLE_THRESHOLD = 0.7
    PERSONALIZED_THRESHOLD = 0.7

    def __init__(self, suggester: AlternativeSuggester):
        self.suggester = suggester

    def recommend(
        self, patterns: list[PatternInsight], profile: GutProfile
    ) -> list[AdaptiveRecommendation]:
        """
        Build recommendations for the patterns found in a profile's history.

        Args:
            patterns: Output of PatternAnalyzer.analyze
            profile: Current profile the recommendations are relative to

        Returns:
            Recommendations sorted by priority, then confidence descending.
            Suggestions that already hold in the profile are skipped.
        """
        candidates: list[AdaptiveRecommendation] = []
        for pattern in patterns:
            if pattern.type == PatternType.FOOD_TRIGGER:
                if pattern.confidence > self.TRIGGER_THRESHOLD:
                    candidates.extend(self._trigger_addition(pattern, profile))
                    candidates.extend(self._profile_update(pattern, profile))

            if pattern.type == PatternType.SYMPTOM_PATTERN:
                if pattern.confidence > self.SEVERITY_THRESHOLD:
                    candidates.extend(self._severity_adjustments(pattern, profile))

            if pattern.type in (PatternType.SYMPTOM_PATTERN, PatternType.CONDITION_CORRELATION):
                if pattern.confidence > self.TOGGLE_THRESHOLD:
                    candidates.extend(self._condition_toggles(pattern, profile))

        best: dict[tuple, AdaptiveRecommendation] = {}
        for rec in candidates:
            key = (rec.type, rec.condition, rec.subject)
            if key not in best or rec.confidence > best[key].confidence:
                best[key] = rec

        recommendations = sorted(
            best.values(), key=lambda r: (r.priority.rank, -r.confidence)
        )
        logger.debug(
            "Generated %d recommendations from %d patterns for profile %s",
            len(recommendations),
            len(patterns),
            profile.id,
        )
        return recommendations

    def _target_condition(self, pattern: PatternInsight, profile: GutProfile) -> Optional[Condition]:
        enabled = [c for c in pattern.affected_conditions if profile.conditions[c].enabled]
        if enabled:
            return enabled[0]
        return pattern.affected_conditions[0] if pattern.affected_conditions else None

    def _trigger_addition(self, pattern: PatternInsight, profile: GutProfile):
        condition = self._target_condition(pattern, profile)
        if condition is None:
            return []
        current = profile.conditions[condition].known_triggers
        ingredient = pattern.subject.strip().lower()
        if not ingredient or ingredient in current:
            return []

        return [
            AdaptiveRecommendation(
                type=RecommendationType.TRIGGER_ADDITION,
                priority=priority_for(pattern.confidence),
                confidence=pattern.confidence,
                description=f"Add {ingredient} as a known trigger for {condition.label}",
                condition=condition,
                subject=ingredient,
                current_value=sorted(current),
                suggested_value=sorted(current | {ingredient}),
                reasoning=[
                    f"{ingredient} appeared in {pattern.data_points} flagged scans",
                    f"Average symptom severity {pattern.evidence.severity}/10 after eating it",
                    f"Pattern confidence {round(pattern.confidence * 100)}%",
                ],
                evidence=_evidence(pattern),
            )
        ]

    def _profile_update(self, pattern: PatternInsight, profile: GutProfile):
        ingredient = pattern.subject.strip().lower()
        alternatives = _union(
            *(self.suggester.for_ingredient(ingredient, c) for c in pattern.affected_conditions)
        )
        current = profile.preferences.preferred_alternatives
        suggested = _union(current, alternatives)
        if suggested == current:
            return []

        return [
            AdaptiveRecommendation(
                type=RecommendationType.PROFILE_UPDATE,
                priority=priority_for(pattern.confidence),
                confidence=pattern.confidence,
                description=f"Save alternatives to {ingredient} as preferred options",
                condition=self._target_condition(pattern, profile),
                subject=ingredient,
                current_value=list(current),
                suggested_value=suggested,
                reasoning=[
                    pattern.description,
                    f"{len(suggested) - len(current)} substitutes available",
                ],
                evidence=_evidence(pattern),
            )
        ]

    def _severity_adjustments(self, pattern: PatternInsight, profile: GutProfile):
        recommendations = []
        for condition in pattern.affected_conditions:
            settings = profile.conditions[condition]
            if not settings.enabled or settings.severity == Severity.SEVERE:
                continue
            suggested = settings.severity.next()
            recommendations.append(
                AdaptiveRecommendation(
                    type=RecommendationType.SEVERITY_ADJUSTMENT,
                    priority=priority_for(pattern.confidence),
                    confidence=pattern.confidence,
                    description=(
                        f"Increase {condition.label} severity from "
                        f"{settings.severity.value} to {suggested.value}"
                    ),
                    condition=condition,
                    subject=condition.value,
                    current_value=settings.severity,
                    suggested_value=suggested,
                    reasoning=[
                        pattern.description,
                        f"Average severity {pattern.evidence.severity}/10",
                        f"Pattern confidence {round(pattern.confidence * 100)}%",
                    ],
                    evidence=_evidence(pattern),
                )
            )
        return recommendations

    def _condition_toggles(self, pattern: PatternInsight, profile: GutProfile):
        recommendations = []
        for condition in pattern.affected_conditions:
            if profile.conditions[condition].enabled:
                continue
            recommendations.append(
                AdaptiveRecommendation(
                    type=RecommendationType.CONDITION_TOGGLE,
                    priority=priority_for(pattern.confidence),
                    confidence=pattern.confidence,
                    description=f"Enable {condition.label} tracking",
                    condition=condition,
                    subject=condition.value,
                    current_value=False,
                    suggested_value=True,
                    reasoning=[
                        pattern.description,
                        f"{condition.label} tracking is currently disabled",
                    ],
                    evidence=_evidence(pattern),
                )
            )
        return recommendations

    def apply(
        self,
        recommendation: AdaptiveRecommendation,
        profile: GutProfile,
        now: Optional[datetime] = None,
        reset: bool = False,
    ) -> GutProfile:
        """
        Apply an accepted recommendation to a copy of the profile.

        Trigger sets are unioned, severity only moves up the scale unless
        reset is set, toggles set the enabled flag and profile updates merge
        preferred alternatives. updated_at is always bumped.

        Args:
            recommendation: The accepted recommendation
            profile: Profile to update (not modified)
            now: Timestamp written to updated_at
            reset: Allow a severity adjustment to lower the severity

        Returns:
            Updated profile copy

        Raises:
            InvalidInputError: If the recommendation is missing a condition or
                carries an unusable suggested value
        """
        if profile is None:
            raise InvalidInputError("A gut profile is required to apply a recommendation")
        if recommendation.type in CONDITION_SCOPED and recommendation.condition is None:
            raise InvalidInputError(
                f"{recommendation.type.value} recommendation does not name a condition"
            )

        updated = profile.model_copy(deep=True)
        suggested = recommendation.suggested_value

        if recommendation.type == RecommendationType.TRIGGER_ADDITION:
            settings = updated.conditions[recommendation.condition]
            settings.known_triggers = settings.known_triggers | self._trigger_set(
                suggested, recommendation.subject
            )

        elif recommendation.type == RecommendationType.SEVERITY_ADJUSTMENT:
            settings = updated.conditions[recommendation.condition]
            try:
                target = Severity(suggested)
            except ValueError:
                raise InvalidInputError(f"Unknown severity: {suggested!r}")
            settings.severity = target if reset else Severity.max_of([settings.severity, target])

        elif recommendation.type == RecommendationType.CONDITION_TOGGLE:
            if not isinstance(suggested, bool):
                raise InvalidInputError("Condition toggle needs a boolean suggested value")
            updated.conditions[recommendation.condition].enabled = suggested

        elif recommendation.type == RecommendationType.PROFILE_UPDATE:
            if not isinstance(suggested, list):
                raise InvalidInputError("Profile update needs a list of alternatives")
            preferences = updated.preferences
            preferences.preferred_alternatives = _union(
                preferences.preferred_alternatives, [str(s) for s in suggested]
            )

        updated.updated_at = assume_utc(now) if now else utcnow()
        logger.info(
            "Applied %s recommendation to profile %s (condition=%s)",
            recommendation.type.value,
            profile.id,
            recommendation.condition.value if recommendation.condition else None,
        )
        return updated

    @staticmethod
    def _trigger_set(suggested: Any, subject: str) -> set[str]:
        if isinstance(suggested, str):
            values = [suggested]
        elif isinstance(suggested, (list, set, tuple, frozenset)):
            values = list(suggested)
        elif suggested is None:
            values = [subject]
        else:
            raise InvalidInputError("Trigger addition needs a trigger or a list of triggers")
        triggers = {str(v).strip().lower() for v in values if v and str(v).strip()}
        if not triggers:
            raise InvalidInputError("Trigger addition carries no trigger")
        return triggers

    def personalized_recommendations(
        self, profile: GutProfile, patterns: list[PatternInsight]
    ) -> list[str]:
        """Plain-language dietary tips for the enabled conditions and strong patterns."""
        tips: list[str] = []
        for condition in profile.enabled_conditions():
            tips.extend(CONDITION_TIPS.get(condition, []))

        for pattern in patterns:
            if pattern.confidence > self.PERSONALIZED_THRESHOLD:
                tips.extend(pattern.recommendations)

        if any(p.type == PatternType.TIMING_PATTERN for p in patterns):
            tips.extend(TIMING_TIPS)

        return _union(tips)
