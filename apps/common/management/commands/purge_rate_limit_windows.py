"""
Delete expired rate-limit windows from the database
"""
from django.core.management.base import BaseCommand

from apps.common.rate_limit import DatabaseWindowStore, current_time_ms


class Command(BaseCommand):
    help = 'Delete rate-limit windows whose reset time has passed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--grace-seconds',
            type=int,
            default=0,
            help='Keep windows that expired less than this many seconds ago',
        )

    def handle(self, *args, **options):
        cutoff = current_time_ms() - options['grace_seconds'] * 1000
        deleted = DatabaseWindowStore().purge_expired(cutoff)
        self.stdout.write(self.style.SUCCESS(f'Purged {deleted} expired rate-limit windows'))
