"""
SAF book-and-claim views: contributions and certificate verification.
"""
from rest_framework import status
from rest_framework.decorators import api_view

from apps.common.rate_limit import enforce_rate_limit
from apps.common.utils import success_response
from ..serializers import (
    CertificateSerializer, CreditResultSerializer, SAFContributionRequestSerializer,
    VerificationRequestSerializer
)
from ..services import get_ledger


@api_view(['POST'])
def create_saf_contribution(request):
    """Contribute to SAF for a route and earn eco-points"""
    enforce_rate_limit(request, 'saf')

    serializer = SAFContributionRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    ledger = get_ledger()
    contribution = serializer.to_contribution(ledger.calculator)
    result = ledger.credit(serializer.validated_data['user_id'], contribution)
    return success_response(
        data=CreditResultSerializer(result).data,
        message="SAF contribution recorded",
        status_code=status.HTTP_201_CREATED
    )


@api_view(['GET'])
def get_certificate(request, certificate_id):
    """Get the live verification status of a certificate"""
    certificate = get_ledger().certificate_status(certificate_id)
    return success_response(data=CertificateSerializer(certificate).data)


@api_view(['POST'])
def record_certificate_verification(request, certificate_id):
    """Accept an external registry's verification outcome"""
    enforce_rate_limit(request, 'saf')

    serializer = VerificationRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    certificate = get_ledger().record_verification(certificate_id, serializer.validated_data['status'])
    return success_response(data=CertificateSerializer(certificate).data, message="Verification recorded")
