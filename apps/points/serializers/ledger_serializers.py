"""
Read serializers for ledger results, tiers and history entries.
"""
from rest_framework import serializers


class TierSerializer(serializers.Serializer):
    """Green Tier as exposed by the API"""
    id = serializers.CharField()
    name = serializers.CharField()
    level = serializers.IntegerField()
    min_points = serializers.IntegerField()
    max_points = serializers.IntegerField(allow_null=True)
    multiplier = serializers.DecimalField(max_digits=5, decimal_places=2)
    perks = serializers.ListField(child=serializers.CharField())


class TierProgressSerializer(serializers.Serializer):
    current_tier = TierSerializer()
    current_points = serializers.IntegerField()
    next_tier = TierSerializer(allow_null=True)
    points_needed = serializers.IntegerField()
    progress_percent = serializers.FloatField()


class HistoryEntrySerializer(serializers.Serializer):
    """
    History entry; ``attribution`` is the commit-time snapshot for SAF
    contributions and null otherwise.
    Used for: GET /api/eco-points/{user_id}/history/
    """
    id = serializers.CharField()
    action_type = serializers.CharField()
    points_awarded = serializers.IntegerField()
    description = serializers.CharField()
    timestamp = serializers.DateTimeField()
    attribution = serializers.JSONField(allow_null=True)


class CreditResultSerializer(serializers.Serializer):
    """
    Outcome of a committed credit.
    Used for: POST /api/eco-points/credit/, POST /api/saf/contributions/
    """
    points_awarded = serializers.IntegerField()
    base_points = serializers.DecimalField(max_digits=20, decimal_places=4)
    multiplier = serializers.DecimalField(max_digits=5, decimal_places=2)
    new_total = serializers.IntegerField()
    tier_changed = serializers.BooleanField()
    from_tier = TierSerializer(allow_null=True)
    to_tier = TierSerializer(allow_null=True)
    tier_progress = TierProgressSerializer()
    entry = HistoryEntrySerializer()


class BalanceSerializer(serializers.Serializer):
    """Used for: GET /api/eco-points/{user_id}/balance/"""
    total = serializers.IntegerField()
    tier_progress = TierProgressSerializer()
