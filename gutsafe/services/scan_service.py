"""
Scan analysis: classify every ingredient of a food item and fold the verdicts
into one ScanAnalysis with a safety level, warnings, alternatives and a
confidence score.
"""

import logging
from datetime import datetime
from typing import Optional

from gutsafe.config import settings
from gutsafe.errors import InvalidInputError
from gutsafe.models import (
    ConditionWarning,
    FoodItem,
    GutProfile,
    IngredientVerdict,
    ScanAnalysis,
    ScanSafety,
    Severity,
)
from gutsafe.models.types import utcnow
from gutsafe.services.alternative_suggester import AlternativeSuggester
from gutsafe.services.ingredient_classifier import IngredientClassifier, normalize_ingredient

logger = logging.getLogger(__name__)


def safety_for(verdicts: list[IngredientVerdict]) -> ScanSafety:
    """avoid if any severe, caution if any moderate, otherwise safe."""
    flagged = [v.severity for v in verdicts if v.is_problematic]
    if Severity.SEVERE in flagged:
        return ScanSafety.AVOID
    if Severity.MODERATE in flagged:
        return ScanSafety.CAUTION
    return ScanSafety.SAFE


class ScanAggregator:
    """Combines per-ingredient verdicts into a ScanAnalysis."""

    BASE_CONFIDENCE = 0.5
    SOURCE_BONUS = {
        "openfoodfacts": 0.2,
        "usda": 0.3,
        "spoonacular": 0.1,
    }
    INGREDIENTS_BONUS = 0.1
    ALLERGENS_BONUS = 0.1
    HEAVY_FLAGGING_PENALTY = 0.2
    HEAVY_FLAGGING_RATIO = 0.5

    EXPLANATIONS = {
        ScanSafety.SAFE: (
            "This {name} appears to be safe for your gut health conditions. "
            "No problematic ingredients were detected."
        ),
        ScanSafety.CAUTION: (
            "This {name} contains ingredients that may cause mild to moderate "
            "digestive symptoms. Consider consuming in small amounts or finding "
            "alternatives."
        ),
        ScanSafety.AVOID: (
            "This {name} contains ingredients that are likely to trigger your "
            "digestive symptoms. It's recommended to avoid this product and "
            "choose from the suggested alternatives."
        ),
    }

    def __init__(self, suggester: AlternativeSuggester):
        self.suggester = suggester

    def calculate_confidence(self, food_item: FoodItem, flagged_count: int) -> float:
        """
        Heuristic confidence in a scan verdict.

        Starts at 0.5 and adds data-source reliability, ingredient and allergen
        presence bonuses; subtracts a penalty when more than half the
        ingredients are flagged. An item with no usable ingredients stays at
        the base value.

        Returns:
            Confidence clamped to [0, 1], rounded to 3 decimal places
        """
        ingredient_count = sum(1 for i in food_item.ingredients if normalize_ingredient(i))
        if ingredient_count == 0:
            return self.BASE_CONFIDENCE

        confidence = self.BASE_CONFIDENCE
        confidence += self.SOURCE_BONUS.get(food_item.data_source.strip().lower(), 0.0)
        confidence += self.INGREDIENTS_BONUS
        if food_item.allergens:
            confidence += self.ALLERGENS_BONUS
        if flagged_count > ingredient_count * self.HEAVY_FLAGGING_RATIO:
            confidence -= self.HEAVY_FLAGGING_PENALTY

        return round(max(0.0, min(1.0, confidence)), 3)

    def aggregate(
        self,
        food_item: FoodItem,
        verdicts: list[IngredientVerdict],
        now: Optional[datetime] = None,
    ) -> ScanAnalysis:
        flagged = [v for v in verdicts if v.is_problematic]
        safety = safety_for(verdicts)

        warnings = [
            ConditionWarning(
                ingredient=v.ingredient,
                condition=c,
                severity=v.condition_severities.get(c, v.severity),
            )
            for v in flagged
            for c in v.conditions
        ]

        alternatives: list[str] = []
        groups = [v.alternatives for v in flagged]
        if flagged:
            groups.append(self.suggester.for_category(food_item.category))
        for group in groups:
            for alternative in group:
                if alternative not in alternatives:
                    alternatives.append(alternative)

        return ScanAnalysis(
            overall_safety=safety,
            flagged_ingredients=flagged,
            condition_warnings=warnings,
            safe_alternatives=alternatives,
            explanation=self.EXPLANATIONS[safety].format(name=food_item.name),
            confidence=self.calculate_confidence(food_item, len(flagged)),
            data_source=food_item.data_source,
            last_updated=now or utcnow(),
        )


class ScanService:
    """Entry point for analyzing one food item against a profile."""

    MAX_INGREDIENTS = settings.max_ingredients

    def __init__(self, classifier: IngredientClassifier, aggregator: ScanAggregator):
        self.classifier = classifier
        self.aggregator = aggregator

    def analyze(
        self,
        food_item: FoodItem,
        profile: Optional[GutProfile],
        now: Optional[datetime] = None,
    ) -> ScanAnalysis:
        """
        Analyze a food item for the profile's enabled conditions.

        Raises:
            InvalidInputError: If no profile is given
        """
        if profile is None:
            raise InvalidInputError("A gut profile is required to analyze a food item")
        if food_item is None:
            raise InvalidInputError("A food item is required")

        ingredients = list(food_item.ingredients)
        if len(ingredients) > self.MAX_INGREDIENTS:
            logger.warning(
                "Food item %s has %d ingredients, analyzing the first %d",
                food_item.id,
                len(ingredients),
                self.MAX_INGREDIENTS,
            )
            ingredients = ingredients[: self.MAX_INGREDIENTS]
            food_item = food_item.model_copy(update={"ingredients": ingredients})

        enabled = profile.enabled_conditions()
        user_triggers = profile.user_triggers()
        verdicts = [
            self.classifier.classify(i, enabled, user_triggers, food_item.category)
            for i in ingredients
        ]
        analysis = self.aggregator.aggregate(food_item, verdicts, now=now)
        logger.debug(
            "Scanned %s: safety=%s flagged=%d confidence=%.3f",
            food_item.id,
            analysis.overall_safety.value,
            len(analysis.flagged_ingredients),
            analysis.confidence,
        )
        return analysis
