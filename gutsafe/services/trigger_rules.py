"""
Tiered keyword tables deciding whether text is a trigger for a condition.

Tables are versioned data (gutsafe/data/trigger_rules.json) validated on load.
Matching is case-insensitive substring containment and tiers are checked from
the most to the least severe, so the first matching tier wins.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from gutsafe.config import settings
from gutsafe.models import Condition, Severity

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_RULES_PATH = DATA_DIR / "trigger_rules.json"


# --- File schema ---


class RuleTier(BaseModel):
    severity: Severity
    reason: str
    keywords: list[str] = Field(min_length=1)


class RuleTable(BaseModel):
    version: str
    conditions: dict[Condition, list[RuleTier]]
    # keyword -> condition a learned trigger belongs to, checked in file order
    primary_triggers: dict[str, Condition] = Field(default_factory=dict)


@dataclass(frozen=True)
class RuleVerdict:
    is_problematic: bool
    severity: Severity = Severity.MILD
    reason: str = ""


NOT_PROBLEMATIC = RuleVerdict(is_problematic=False)


class TriggerRuleSet:
    """Per-condition keyword tiers loaded once and shared read-only."""

    def __init__(self, table: RuleTable):
        self.version = table.version
        self._tiers: dict[Condition, list[RuleTier]] = {}
        for condition, tiers in table.conditions.items():
            ordered = sorted(tiers, key=lambda t: t.severity.rank, reverse=True)
            self._tiers[condition] = [
                RuleTier(
                    severity=tier.severity,
                    reason=tier.reason,
                    keywords=[k.strip().lower() for k in tier.keywords if k.strip()],
                )
                for tier in ordered
            ]
        self._primary: list[tuple[str, Condition]] = [
            (keyword.strip().lower(), condition)
            for keyword, condition in table.primary_triggers.items()
            if keyword.strip()
        ]

    @classmethod
    def load(cls, path: Optional[str | Path] = None) -> "TriggerRuleSet":
        """
        Load and validate a rule table file.

        Args:
            path: Table location; falls back to settings.rules_path, then the
                packaged default

        Raises:
            pydantic.ValidationError: If the file does not match the schema
        """
        path = Path(path or settings.rules_path or DEFAULT_RULES_PATH)
        with open(path, encoding="utf-8") as f:
            table = RuleTable.model_validate(json.load(f))
        rule_set = cls(table)
        logger.info(
            "Loaded trigger rules version=%s conditions=%d from %s",
            rule_set.version,
            len(rule_set._tiers),
            path,
        )
        return rule_set

    @property
    def conditions(self) -> list[Condition]:
        return [c for c in Condition if c in self._tiers]

    def evaluate(self, condition: Condition, normalized_text: str) -> RuleVerdict:
        """Check normalized ingredient text against one condition's tiers."""
        if not normalized_text:
            return NOT_PROBLEMATIC
        for tier in self._tiers.get(condition, []):
            if any(keyword in normalized_text for keyword in tier.keywords):
                return RuleVerdict(
                    is_problematic=True, severity=tier.severity, reason=tier.reason
                )
        return NOT_PROBLEMATIC

    def conditions_for(self, normalized_text: str) -> list[Condition]:
        """Every condition whose tables flag the text, in Condition order."""
        return [
            c for c in self.conditions if self.evaluate(c, normalized_text).is_problematic
        ]

    def primary_condition(self, normalized_text: str) -> Optional[Condition]:
        for keyword, condition in self._primary:
            if keyword in normalized_text:
                return condition
        return None

    def affected_conditions(self, normalized_text: str) -> list[Condition]:
        """
        Conditions a learned trigger belongs to, primary condition first.

        The primary condition comes from the primary trigger table (milk is a
        lactose trigger even though FODMAP rules also list it). The remaining
        rule matches follow in Condition order. Text nothing matches belongs
        to additives.
        """
        matched = self.conditions_for(normalized_text)
        primary = self.primary_condition(normalized_text)
        if primary is not None:
            return [primary] + [c for c in matched if c != primary]
        return matched or [Condition.ADDITIVES]

    def describe(self) -> dict:
        return {
            "version": self.version,
            "conditions": {
                c.value: [
                    {"severity": t.severity.value, "keywords": len(t.keywords)}
                    for t in self._tiers[c]
                ]
                for c in self.conditions
            },
        }
