from django.core.management.base import BaseCommand, CommandError

from apps.common.exceptions import ConfigurationFault
from apps.catalog.catalog import build_catalog


class Command(BaseCommand):
    help = 'Validate the Eco-Points reference catalog and print the Green Tier table'

    def handle(self, *args, **options):
        try:
            catalog = build_catalog()
        except ConfigurationFault as e:
            raise CommandError(f'Reference catalog is invalid: {e.message}')

        for tier in catalog.get_tiers():
            upper = tier.max_points if tier.max_points is not None else '∞'
            self.stdout.write(
                f'L{tier.level} {tier.name:<10} {tier.min_points:>6} - {upper:<6} x{tier.multiplier}'
            )

        self.stdout.write(
            self.style.SUCCESS(
                f'Reference catalog OK: {len(catalog.get_tiers())} tiers, '
                f'{len(catalog.get_circularity_actions())} circularity actions'
            )
        )
