"""
Typed, validated action payloads accepted by the ledger.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class ActionType(str, Enum):
    SAF_CONTRIBUTION = 'saf_contribution'
    CARBON_OFFSET = 'carbon_offset'
    SUSTAINABLE_MERCHANT = 'sustainable_merchant'
    CIRCULARITY_ACTION = 'circularity_action'


MONETARY_ACTION_TYPES = (
    ActionType.SAF_CONTRIBUTION,
    ActionType.CARBON_OFFSET,
    ActionType.SUSTAINABLE_MERCHANT,
)


class SAFType(str, Enum):
    WASTE_BASED = 'waste_based'
    IMPORTED = 'imported'


@dataclass(frozen=True)
class MonetaryAction:
    """USD amount earning points at the catalog rate for action_type"""
    action_type: ActionType
    amount: Decimal


@dataclass(frozen=True)
class CatalogAction:
    """Fixed-points circularity action looked up by id"""
    action_id: str

    @property
    def action_type(self):
        return ActionType.CIRCULARITY_ACTION


@dataclass(frozen=True)
class SAFContribution:
    """
    Book-and-claim SAF contribution: the USD amount buys attributed liters
    of sustainable fuel for the given route's emissions.
    """
    route_id: str
    emissions_kg: Decimal
    contribution_amount: Decimal
    saf_type: SAFType = SAFType.WASTE_BASED
    provider_id: Optional[str] = None

    @property
    def action_type(self):
        return ActionType.SAF_CONTRIBUTION
