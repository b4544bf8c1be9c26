"""
Attribution calculator: turns a validated action into base points and, for
book-and-claim SAF contributions, into the physical attribution behind them.

Everything here is pure apart from reading the clock for certificate ids.
"""
import logging
import time
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from django.utils import timezone

from apps.catalog.catalog import get_catalog
from apps.common.exceptions import ConfigurationFault, InvalidInput
from ..actions import (
    MONETARY_ACTION_TYPES, ActionType, CatalogAction, MonetaryAction, SAFContribution, SAFType,
)
from ..records import AttributionRecord, Verification, VerificationStatus

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')

# Largest amount or emissions figure accepted for a single action
MAX_QUANTITY = Decimal('9999999999.99')

MONETARY_DESCRIPTIONS = {
    ActionType.SAF_CONTRIBUTION: 'SAF contribution',
    ActionType.CARBON_OFFSET: 'Carbon offset',
    ActionType.SUSTAINABLE_MERCHANT: 'Sustainable merchant purchase',
}


@dataclass(frozen=True)
class BasePoints:
    base_points: Decimal
    description: str


@dataclass(frozen=True)
class Award:
    """Everything the ledger needs to commit one action, before the tier multiplier"""
    action_type: ActionType
    base_points: Decimal
    description: str
    attribution: Optional[AttributionRecord] = None


def to_decimal(value, field) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInput(f"{field} must be a number")
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInput(f"{field} must be a number") from None
    if not number.is_finite():
        raise InvalidInput(f"{field} must be a finite number")
    return number


def positive_decimal(value, field) -> Decimal:
    number = to_decimal(value, field)
    if number <= 0:
        raise InvalidInput(f"{field} must be greater than 0", details={'field': field})
    if number > MAX_QUANTITY:
        raise InvalidInput(f"{field} must not exceed {MAX_QUANTITY}", details={'field': field})
    return number


def new_certificate_id():
    """Millisecond timestamp plus 48 random bits"""
    return f"SAF-{int(time.time() * 1000)}-{uuid.uuid4().hex[:12].upper()}"


class AttributionCalculator:
    """Converts actions into base points using the reference catalog"""

    def __init__(self, catalog=None, clock=timezone.now):
        self.catalog = catalog or get_catalog()
        self.clock = clock

    def compute_base_points(self, action) -> BasePoints:
        """
        Base points for an action before any tier multiplier.

        Raises:
            InvalidInput: If the amount is missing, not positive or the action shape is unknown
            NotFound: If a circularity action id is not in the catalog
        """
        if isinstance(action, SAFContribution):
            return self._monetary_points(ActionType.SAF_CONTRIBUTION, action.contribution_amount)

        if isinstance(action, MonetaryAction):
            if action.action_type not in MONETARY_ACTION_TYPES:
                raise InvalidInput(f"{action.action_type} is not a monetary action type")
            return self._monetary_points(ActionType(action.action_type), action.amount)

        if isinstance(action, CatalogAction):
            if not action.action_id:
                raise InvalidInput("action_id is required for circularity actions")
            catalog_action = self.catalog.get_catalog_action(action.action_id)
            return BasePoints(base_points=Decimal(catalog_action.points), description=catalog_action.name)

        raise InvalidInput(f"Unsupported action: {type(action).__name__}")

    def _monetary_points(self, action_type, amount):
        amount = positive_decimal(amount, 'amount')
        rate = self.catalog.get_rate_for_action(action_type.value)
        return BasePoints(
            base_points=amount * rate,
            description=f"{MONETARY_DESCRIPTIONS[action_type]}: ${amount.quantize(CENT, rounding=ROUND_HALF_UP)}",
        )

    def compute_saf_attribution(self, contribution) -> AttributionRecord:
        """
        Attribute SAF liters and avoided emissions to a contribution.

        The record is returned in the pending state; registering the
        certificate is the ledger's job.

        Raises:
            InvalidInput: If emissions or amount are not positive, or the SAF type is unknown
            NotFound: If the provider is not in the catalog
            ConfigurationFault: If the catalog factors yield negative avoided emissions
        """
        if not contribution.route_id:
            raise InvalidInput("route_id is required")
        positive_decimal(contribution.emissions_kg, 'emissions_kg')
        amount = positive_decimal(contribution.contribution_amount, 'contribution_amount')

        try:
            saf_type = SAFType(contribution.saf_type or self.catalog.default_saf_type)
        except ValueError:
            raise InvalidInput(f"Unknown SAF type: {contribution.saf_type}") from None

        provider = self.catalog.get_provider(contribution.provider_id or self.catalog.default_provider)
        factors = self.catalog.get_saf_factors(saf_type.value)

        liters = amount / self.catalog.cost_per_liter
        conventional_emissions = liters * factors.conventional
        saf_emissions = liters * factors.saf
        avoided = conventional_emissions - saf_emissions
        if avoided < 0:
            logger.critical(
                f"Negative emissions avoided ({avoided} kg) for SAF type {saf_type.value}: "
                f"conventional factor {factors.conventional}, SAF factor {factors.saf}"
            )
            raise ConfigurationFault(f"SAF factors for {saf_type.value} yield negative emissions avoided")

        return AttributionRecord(
            route_id=contribution.route_id,
            saf_type=saf_type.value,
            liters_attributed=liters,
            conventional_emissions_kg=conventional_emissions,
            saf_emissions_kg=saf_emissions,
            emissions_avoided_kg=avoided,
            cost_amount=amount,
            verification=Verification(
                status=VerificationStatus.PENDING,
                registry_name=self.catalog.registry_name,
                certificate_id=new_certificate_id(),
                issued_at=self.clock(),
                provider_name=provider.name,
            ),
        )

    def contribution_for_coverage(self, emissions_kg, coverage_percent) -> Decimal:
        """USD needed to cover coverage_percent of a flight's emissions with SAF"""
        emissions_kg = positive_decimal(emissions_kg, 'emissions_kg')
        if isinstance(coverage_percent, bool) or coverage_percent not in self.catalog.coverage_percentages:
            allowed = ', '.join(str(p) for p in self.catalog.coverage_percentages)
            raise InvalidInput(f"contribution_percent must be one of {allowed}")

        emissions_to_cover = emissions_kg * Decimal(coverage_percent) / 100
        liters_needed = emissions_to_cover / self.catalog.co2e_reduction_per_liter
        return (liters_needed * self.catalog.cost_per_liter).quantize(CENT, rounding=ROUND_HALF_UP)

    def evaluate(self, action) -> Award:
        """Base points plus, for SAF contributions, the attribution record"""
        base = self.compute_base_points(action)
        attribution = None
        if isinstance(action, SAFContribution):
            attribution = self.compute_saf_attribution(action)
        return Award(
            action_type=ActionType(action.action_type),
            base_points=base.base_points,
            description=base.description,
            attribution=attribution,
        )
