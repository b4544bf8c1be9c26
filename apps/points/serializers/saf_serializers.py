"""
SAF book-and-claim serializers.
"""
from rest_framework import serializers

from ..actions import SAFContribution, SAFType
from ..records import VerificationStatus


class SAFContributionRequestSerializer(serializers.Serializer):
    """
    Serializer for SAF contributions, given either as a USD amount or as a
    percentage of the route's emissions to cover.
    Used for: POST /api/saf/contributions/
    """
    user_id = serializers.CharField(max_length=128)
    route_id = serializers.CharField(max_length=64)
    emissions_kg = serializers.DecimalField(max_digits=12, decimal_places=3)
    contribution_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    contribution_percent = serializers.IntegerField(required=False, help_text="25, 50, 75 or 100")
    saf_type = serializers.ChoiceField(
        choices=[saf_type.value for saf_type in SAFType],
        default=SAFType.WASTE_BASED.value
    )
    provider_id = serializers.CharField(max_length=64, required=False)

    def validate(self, attrs):
        has_amount = attrs.get('contribution_amount') is not None
        has_percent = attrs.get('contribution_percent') is not None
        if has_amount == has_percent:
            raise serializers.ValidationError(
                "Provide exactly one of contribution_amount or contribution_percent"
            )
        return attrs

    def to_contribution(self, calculator):
        data = self.validated_data
        amount = data.get('contribution_amount')
        if amount is None:
            amount = calculator.contribution_for_coverage(data['emissions_kg'], data['contribution_percent'])
        return SAFContribution(
            route_id=data['route_id'],
            emissions_kg=data['emissions_kg'],
            contribution_amount=amount,
            saf_type=SAFType(data['saf_type']),
            provider_id=data.get('provider_id'),
        )


class CertificateSerializer(serializers.Serializer):
    """Used for: GET /api/saf/certificates/{certificate_id}/"""
    certificate_id = serializers.CharField()
    user_id = serializers.CharField()
    entry_id = serializers.CharField()
    status = serializers.CharField(source='status.value')
    registry_name = serializers.CharField()
    provider_name = serializers.CharField()
    issued_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class VerificationRequestSerializer(serializers.Serializer):
    """Used for: POST /api/saf/certificates/{certificate_id}/verification/"""
    status = serializers.ChoiceField(
        choices=[VerificationStatus.VERIFIED.value, VerificationStatus.REJECTED.value]
    )
