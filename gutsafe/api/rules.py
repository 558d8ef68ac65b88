"""Rule table metadata endpoint."""
from fastapi import APIRouter, Depends

from gutsafe.api.dependencies import get_rule_set
from gutsafe.services.trigger_rules import TriggerRuleSet


router = APIRouter(prefix="/rules", tags=["rules"])


@router.get("")
async def get_rules(rule_set: TriggerRuleSet = Depends(get_rule_set)):
    """Loaded rule table version and tier sizes per condition."""
    return rule_set.describe()
