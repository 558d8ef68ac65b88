import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from gutsafe.config import settings
from gutsafe.models import Condition
from gutsafe.services.trigger_rules import DATA_DIR

logger = logging.getLogger(__name__)

DEFAULT_ALTERNATIVES_PATH = DATA_DIR / "alternatives.json"


class IngredientAlternatives(BaseModel):
    keyword: str
    condition: Condition
    alternatives: list[str]


class AlternativesTable(BaseModel):
    version: str
    categories: dict[str, list[str]] = {}
    ingredients: list[IngredientAlternatives] = []
    condition_fallbacks: dict[Condition, list[str]] = {}


def _merge(*groups: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for group in groups:
        for item in group:
            seen.setdefault(item, None)
    return list(seen)


class AlternativeSuggester:
    """Substitution lookup by food category and by ingredient + condition."""

    def __init__(self, table: AlternativesTable):
        self.version = table.version
        self._categories = {k.strip().lower(): v for k, v in table.categories.items()}
        self._ingredients = [
            (entry.keyword.strip().lower(), entry.condition, entry.alternatives)
            for entry in table.ingredients
        ]
        self._fallbacks = table.condition_fallbacks

    @classmethod
    def load(cls, path: Optional[str | Path] = None) -> "AlternativeSuggester":
        path = Path(path or settings.alternatives_path or DEFAULT_ALTERNATIVES_PATH)
        with open(path, encoding="utf-8") as f:
            table = AlternativesTable.model_validate(json.load(f))
        logger.info("Loaded alternatives version=%s from %s", table.version, path)
        return cls(table)

    def for_category(self, food_category: Optional[str]) -> list[str]:
        if not food_category:
            return []
        return list(self._categories.get(food_category.strip().lower(), []))

    def for_ingredient(self, flagged_ingredient: str, condition: Condition) -> list[str]:
        """Keyword matches for the pair, else the condition's generic fallback."""
        text = (flagged_ingredient or "").strip().lower()
        matched: list[str] = []
        if text:
            for keyword, entry_condition, alternatives in self._ingredients:
                if entry_condition == condition and keyword in text:
                    matched = _merge(matched, alternatives)
        if matched:
            return matched
        return list(self._fallbacks.get(condition, []))

    def suggest(
        self,
        food_category: Optional[str],
        flagged_ingredient: str,
        condition: Condition,
    ) -> list[str]:
        """
        Suggest substitutes for a flagged ingredient.

        Returns ingredient-specific alternatives first, then the category
        defaults. Unknown keys yield an empty list.
        """
        return _merge(
            self.for_ingredient(flagged_ingredient, condition),
            self.for_category(food_category),
        )
