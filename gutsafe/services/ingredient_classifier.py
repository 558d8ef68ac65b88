import re
from typing import Iterable, Mapping, Optional

from gutsafe.models import Condition, IngredientVerdict, Severity
from gutsafe.services.alternative_suggester import AlternativeSuggester
from gutsafe.services.trigger_rules import TriggerRuleSet

_WHITESPACE = re.compile(r"\s+")


def normalize_ingredient(text: Optional[str]) -> str:
    """Lowercase, collapse internal whitespace and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip().lower()


class IngredientClassifier:
    """Decides whether one ingredient is problematic for a set of conditions."""

    def __init__(self, rule_set: TriggerRuleSet, suggester: AlternativeSuggester):
        self.rule_set = rule_set
        self.suggester = suggester

    def classify(
        self,
        ingredient_text: str,
        enabled_conditions: Iterable[Condition],
        user_triggers: Optional[Mapping[Condition, Iterable[str]]] = None,
        food_category: Optional[str] = None,
    ) -> IngredientVerdict:
        """
        Classify a single ingredient.

        A user's known trigger found in the text flags that condition as severe
        and the generic tables are skipped for it. Otherwise the rule set
        decides. Never raises; empty text is not problematic.

        Args:
            ingredient_text: Raw ingredient text from the label
            enabled_conditions: Conditions to evaluate, in evaluation order
            user_triggers: Known triggers per condition
            food_category: Category used for substitution defaults

        Returns:
            IngredientVerdict with flagged conditions, max severity and reasons
        """
        text = normalize_ingredient(ingredient_text)
        if not text:
            return IngredientVerdict(ingredient=ingredient_text or "")

        user_triggers = user_triggers or {}
        severities: dict[Condition, Severity] = {}
        reasons: list[str] = []

        for condition in enabled_conditions:
            triggers = user_triggers.get(condition, ())
            if any(t and t.strip() and t.strip().lower() in text for t in triggers):
                severities[condition] = Severity.SEVERE
                reasons.append(f"known trigger for {condition.label}")
                continue

            verdict = self.rule_set.evaluate(condition, text)
            if verdict.is_problematic:
                severities[condition] = verdict.severity
                reasons.append(verdict.reason)

        flagged = list(severities)
        if not flagged:
            return IngredientVerdict(ingredient=ingredient_text)

        alternatives: list[str] = []
        for condition in flagged:
            for alternative in self.suggester.suggest(food_category, text, condition):
                if alternative not in alternatives:
                    alternatives.append(alternative)

        return IngredientVerdict(
            ingredient=ingredient_text,
            is_problematic=True,
            conditions=flagged,
            severity=Severity.max_of(severities.values()),
            condition_severities=severities,
            reason="; ".join(reasons),
            alternatives=alternatives,
        )
