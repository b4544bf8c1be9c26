"""
Request serializers for eco-points credit and history queries.
"""
from rest_framework import serializers

from ..actions import MONETARY_ACTION_TYPES, ActionType, CatalogAction, MonetaryAction


class CreditRequestSerializer(serializers.Serializer):
    """
    Serializer for credit requests.
    Used for: POST /api/eco-points/credit/
    """
    user_id = serializers.CharField(max_length=128)
    action_type = serializers.ChoiceField(choices=[action_type.value for action_type in ActionType])
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        required=False,
        help_text="USD amount for monetary actions"
    )
    action_id = serializers.CharField(max_length=64, required=False, help_text="Circularity action id")

    def validate(self, attrs):
        action_type = ActionType(attrs['action_type'])
        if action_type in MONETARY_ACTION_TYPES and attrs.get('amount') is None:
            raise serializers.ValidationError({'amount': f"amount is required for {action_type.value}"})
        if action_type == ActionType.CIRCULARITY_ACTION and not attrs.get('action_id'):
            raise serializers.ValidationError({'action_id': "action_id is required for circularity_action"})
        return attrs

    def to_action(self):
        data = self.validated_data
        action_type = ActionType(data['action_type'])
        if action_type == ActionType.CIRCULARITY_ACTION:
            return CatalogAction(action_id=data['action_id'])
        return MonetaryAction(action_type=action_type, amount=data['amount'])


class HistoryQuerySerializer(serializers.Serializer):
    """Query parameters for GET /api/eco-points/{user_id}/history/"""
    limit = serializers.IntegerField(min_value=1, max_value=100, default=50)
    offset = serializers.IntegerField(min_value=0, default=0)
