"""
Points serializers module.
"""
from .credit_serializers import CreditRequestSerializer, HistoryQuerySerializer
from .ledger_serializers import (
    BalanceSerializer, CreditResultSerializer, HistoryEntrySerializer,
    TierProgressSerializer, TierSerializer
)
from .saf_serializers import (
    CertificateSerializer, SAFContributionRequestSerializer, VerificationRequestSerializer
)

__all__ = [
    'CreditRequestSerializer',
    'HistoryQuerySerializer',
    'BalanceSerializer',
    'CreditResultSerializer',
    'HistoryEntrySerializer',
    'TierProgressSerializer',
    'TierSerializer',
    'CertificateSerializer',
    'SAFContributionRequestSerializer',
    'VerificationRequestSerializer',
]
