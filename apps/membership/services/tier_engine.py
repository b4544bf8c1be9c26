"""
Tier engine: maps cumulative eco-points to a Green Tier and the progress
toward the next one.
"""
from dataclasses import dataclass
from typing import Optional

from apps.catalog.catalog import Tier, get_catalog
from apps.common.exceptions import ConfigurationFault, InvalidInput


@dataclass(frozen=True)
class TierProgress:
    current_tier: Tier
    current_points: int
    next_tier: Optional[Tier]
    points_needed: int
    progress_percent: float


class TierEngine:
    """Pure tier resolution over the reference catalog's tier table"""

    def __init__(self, catalog=None):
        self.catalog = catalog or get_catalog()
        self._tiers = tuple(self.catalog.get_tiers())
        self._highest_first = tuple(reversed(self._tiers))

    def get_all_tiers(self):
        return self._tiers

    def get_tier_by_id(self, tier_id) -> Tier:
        return self.catalog.get_tier(tier_id)

    def resolve_tier(self, total_points) -> Tier:
        """
        Return the highest-level tier whose minimum is reached by total_points.

        Raises:
            InvalidInput: If total_points is not a non-negative integer
            ConfigurationFault: If the tier table does not cover total_points
        """
        if isinstance(total_points, bool) or not isinstance(total_points, int):
            raise InvalidInput(f"Point total must be an integer, got {total_points!r}")
        if total_points < 0:
            raise InvalidInput(f"Point total cannot be negative: {total_points}")

        for tier in self._highest_first:
            if tier.min_points <= total_points:
                if not tier.contains(total_points):
                    raise ConfigurationFault(
                        f"{total_points} points fall between tier {tier.id} and the next tier"
                    )
                return tier

        raise ConfigurationFault(f"No tier covers {total_points} points")

    def next_tier(self, tier) -> Optional[Tier]:
        # Levels run 1..n without gaps, so level doubles as the next index
        if tier.level < len(self._tiers):
            return self._tiers[tier.level]
        return None

    def progress_to_next(self, total_points) -> TierProgress:
        current = self.resolve_tier(total_points)
        upcoming = self.next_tier(current)

        if upcoming is None:
            return TierProgress(
                current_tier=current,
                current_points=total_points,
                next_tier=None,
                points_needed=0,
                progress_percent=100.0,
            )

        return TierProgress(
            current_tier=current,
            current_points=total_points,
            next_tier=upcoming,
            points_needed=max(0, upcoming.min_points - total_points),
            progress_percent=min(100.0, total_points * 100 / upcoming.min_points),
        )
