from django.db import models

from ..actions import ActionType
from ..records import HistoryEntry


class EcoPointsEntry(models.Model):
    """Append-only history row; sequence orders entries within an account"""
    ACTION_TYPES = [
        (ActionType.SAF_CONTRIBUTION.value, 'SAF Contribution'),
        (ActionType.CARBON_OFFSET.value, 'Carbon Offset'),
        (ActionType.SUSTAINABLE_MERCHANT.value, 'Sustainable Merchant'),
        (ActionType.CIRCULARITY_ACTION.value, 'Circularity Action'),
    ]

    account = models.ForeignKey('EcoPointsAccount', on_delete=models.CASCADE, related_name='entries')
    sequence = models.PositiveIntegerField()
    entry_id = models.CharField(max_length=64, unique=True)
    action_type = models.CharField(max_length=32, choices=ACTION_TYPES)
    points_awarded = models.BigIntegerField()
    description = models.CharField(max_length=200, blank=True)
    attribution = models.JSONField(null=True, blank=True)  # Commit-time snapshot, never rewritten
    created_at = models.DateTimeField()

    class Meta:
        db_table = 'eco_points_entries'
        ordering = ['-sequence']
        unique_together = [('account', 'sequence')]
        verbose_name = 'Eco-Points Entry'
        verbose_name_plural = 'Eco-Points Entries'

    def __str__(self):
        return f"{self.entry_id} - {self.points_awarded} points ({self.action_type})"

    def to_entry(self):
        return HistoryEntry(
            id=self.entry_id,
            action_type=self.action_type,
            points_awarded=self.points_awarded,
            description=self.description,
            timestamp=self.created_at,
            attribution=self.attribution,
        )
