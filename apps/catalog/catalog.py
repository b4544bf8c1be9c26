"""
Reference catalog: typed, validated, read-only view over the static data.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Optional, Sequence, Tuple

from apps.common.exceptions import ConfigurationFault, NotFound
from . import data

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tier:
    """A Green Tier covering points in [min_points, max_points]"""
    id: str
    name: str
    level: int
    min_points: int
    max_points: Optional[int]
    multiplier: Decimal
    perks: Tuple[str, ...] = ()

    def contains(self, points):
        return self.min_points <= points and (self.max_points is None or points <= self.max_points)


@dataclass(frozen=True)
class CircularityAction:
    id: str
    name: str
    points: int
    waste_diverted_g: int = 0


@dataclass(frozen=True)
class SAFFactors:
    """kg CO2e per liter for conventional jet fuel and one SAF pathway"""
    conventional: Decimal
    saf: Decimal


@dataclass(frozen=True)
class SAFProvider:
    id: str
    name: str


class ReferenceCatalog:
    """Read-only reference data queried by the tier engine and the calculator"""

    def __init__(self, tiers, rates, circularity_actions, emission_factors, providers,
                 cost_per_liter, co2e_reduction_per_liter, registry_name,
                 default_saf_type='waste_based', default_provider=None,
                 coverage_percentages=(25, 50, 75, 100)):
        self._tiers = tuple(sorted(tiers, key=lambda tier: tier.level))
        self._rates = dict(rates)
        self._circularity_actions = {action.id: action for action in circularity_actions}
        self._emission_factors = dict(emission_factors)
        self._providers = {provider.id: provider for provider in providers}
        self.cost_per_liter = cost_per_liter
        self.co2e_reduction_per_liter = co2e_reduction_per_liter
        self.registry_name = registry_name
        self.default_saf_type = default_saf_type
        self.default_provider = default_provider
        self.coverage_percentages = tuple(coverage_percentages)
        self.validate()

    def get_tiers(self) -> Sequence[Tier]:
        """Tiers ordered by level, lowest first"""
        return self._tiers

    def get_tier(self, tier_id) -> Tier:
        for tier in self._tiers:
            if tier.id == tier_id:
                return tier
        raise NotFound(f"Tier {tier_id} not found")

    def get_rate_for_action(self, action_type) -> Decimal:
        """Points per USD for a monetary action type"""
        try:
            return self._rates[action_type]
        except KeyError:
            raise NotFound(f"No points rate for action type {action_type}") from None

    def get_catalog_action(self, action_id) -> CircularityAction:
        try:
            return self._circularity_actions[action_id]
        except KeyError:
            raise NotFound(f"Circularity action {action_id} not found") from None

    def get_circularity_actions(self):
        return tuple(self._circularity_actions.values())

    def get_saf_factors(self, saf_type) -> SAFFactors:
        try:
            saf = self._emission_factors[f'saf_{saf_type}']
        except KeyError:
            raise NotFound(f"No emission factor for SAF type {saf_type}") from None
        return SAFFactors(conventional=self._emission_factors['aviation_fuel'], saf=saf)

    def get_provider(self, provider_id) -> SAFProvider:
        try:
            return self._providers[provider_id]
        except KeyError:
            raise NotFound(f"SAF provider {provider_id} not found") from None

    def validate(self):
        """
        Check the integrity rules the engine relies on.

        Raises:
            ConfigurationFault: If tiers leave gaps or overlap, or factors
                are out of range
        """
        problems = self._tier_problems() + self._factor_problems()
        if problems:
            for problem in problems:
                logger.critical(f"Reference catalog fault: {problem}")
            raise ConfigurationFault('; '.join(problems), details=problems)

    def _tier_problems(self):
        tiers = self._tiers
        if not tiers:
            return ['tier table is empty']

        problems = []
        if tiers[0].min_points != 0:
            problems.append(f"lowest tier {tiers[0].id} starts at {tiers[0].min_points}, not 0")

        for position, tier in enumerate(tiers, start=1):
            if tier.level != position:
                problems.append(f"tier {tier.id} has level {tier.level}, expected {position}")
            if tier.multiplier < 1:
                problems.append(f"tier {tier.id} multiplier {tier.multiplier} is below 1")
            if tier.max_points is not None and tier.max_points < tier.min_points:
                problems.append(f"tier {tier.id} ends before it starts")

        for lower, upper in zip(tiers, tiers[1:]):
            if lower.max_points is None:
                problems.append(f"tier {lower.id} is unbounded but {upper.id} follows it")
            elif lower.max_points + 1 != upper.min_points:
                problems.append(
                    f"tiers {lower.id} and {upper.id} leave a gap or overlap "
                    f"({lower.max_points} -> {upper.min_points})"
                )

        if tiers[-1].max_points is not None:
            problems.append(f"top tier {tiers[-1].id} must be unbounded")
        return problems

    def _factor_problems(self):
        problems = []
        conventional = self._emission_factors.get('aviation_fuel')
        if conventional is None or conventional <= 0:
            problems.append('conventional aviation fuel factor must be positive')

        for name, value in self._emission_factors.items():
            if not name.startswith('saf_'):
                continue
            if value < 0:
                problems.append(f"{name} factor is negative")
            elif conventional is not None and value > conventional:
                problems.append(f"{name} factor exceeds conventional fuel")

        if self.cost_per_liter <= 0:
            problems.append('SAF cost per liter must be positive')
        if self.co2e_reduction_per_liter <= 0:
            problems.append('SAF CO2e reduction per liter must be positive')
        for action_type, rate in self._rates.items():
            if rate < 0:
                problems.append(f"points rate for {action_type} is negative")
        if self.default_provider is not None and self.default_provider not in self._providers:
            problems.append(f"default provider {self.default_provider} is not in the catalog")
        return problems


def _decimal(value, field):
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ConfigurationFault(f"{field} is not a number: {value!r}") from None


def build_catalog(tiers=None, rates=None, circularity_actions=None, emission_factors=None,
                  providers=None, saf_constants=None) -> ReferenceCatalog:
    """Build a catalog from plain data, defaulting to the bundled tables"""
    tiers = data.GREEN_TIERS if tiers is None else tiers
    rates = data.POINTS_RATES if rates is None else rates
    circularity_actions = data.CIRCULARITY_ACTIONS if circularity_actions is None else circularity_actions
    emission_factors = data.EMISSION_FACTORS if emission_factors is None else emission_factors
    providers = data.SAF_PROVIDERS if providers is None else providers
    constants = dict(data.SAF_CONSTANTS, **(saf_constants or {}))

    return ReferenceCatalog(
        tiers=[
            Tier(
                id=tier['id'],
                name=tier['name'],
                level=tier['level'],
                min_points=tier['min_points'],
                max_points=tier.get('max_points'),
                multiplier=_decimal(tier['multiplier'], f"tier {tier['id']} multiplier"),
                perks=tuple(tier.get('perks', ())),
            )
            for tier in tiers
        ],
        rates={
            action_type: _decimal(rate, f"rate {action_type}")
            for action_type, rate in rates.items()
        },
        circularity_actions=[
            CircularityAction(
                id=action['id'],
                name=action['name'],
                points=action['eco_points'],
                waste_diverted_g=action.get('waste_diverted_g', 0),
            )
            for action in circularity_actions
        ],
        emission_factors={
            name: _decimal(value, f"emission factor {name}")
            for name, value in emission_factors.items()
        },
        providers=[SAFProvider(id=provider['id'], name=provider['name']) for provider in providers],
        cost_per_liter=_decimal(constants['cost_per_liter'], 'cost_per_liter'),
        co2e_reduction_per_liter=_decimal(constants['co2e_reduction_per_liter'], 'co2e_reduction_per_liter'),
        registry_name=constants['registry_name'],
        default_saf_type=constants['default_saf_type'],
        default_provider=constants['default_provider'],
        coverage_percentages=constants['coverage_percentages'],
    )


@lru_cache(maxsize=None)
def get_catalog() -> ReferenceCatalog:
    """The process-wide catalog, built and validated once"""
    return build_catalog()
