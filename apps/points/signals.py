import logging

from django.dispatch import Signal, receiver

activity_logger = logging.getLogger('activity')

# Sent after a credit commits: user_id, entry, new_total
points_credited = Signal()

# Sent after a credit moves the account into a higher tier: user_id, from_tier, to_tier, new_total
tier_upgraded = Signal()


@receiver(points_credited)
def log_points_credited(sender, user_id, entry, new_total, **kwargs):
    """Record credited points in the activity log"""
    activity_logger.info(
        f"points_credited user={user_id} entry={entry.id} action={entry.action_type} "
        f"points={entry.points_awarded} total={new_total}"
    )


@receiver(tier_upgraded)
def log_tier_upgraded(sender, user_id, from_tier, to_tier, new_total, **kwargs):
    """Record tier upgrades in the activity log"""
    activity_logger.info(
        f"tier_upgraded user={user_id} from={from_tier.id} to={to_tier.id} total={new_total}"
    )
