"""
Immutable ledger records shared by the ledger, the calculator and the stores.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


def _plain(value):
    """Decimal as a plain string without trailing zeros or exponent"""
    return format(value.normalize(), 'f')


class VerificationStatus(str, Enum):
    PENDING = 'pending'
    VERIFIED = 'verified'
    REJECTED = 'rejected'


@dataclass(frozen=True)
class Verification:
    status: VerificationStatus
    registry_name: str
    certificate_id: str
    issued_at: datetime
    provider_name: str

    def to_dict(self):
        return {
            'status': self.status.value,
            'registry_name': self.registry_name,
            'certificate_id': self.certificate_id,
            'issued_at': self.issued_at.isoformat(),
            'provider_name': self.provider_name,
        }


@dataclass(frozen=True)
class AttributionRecord:
    """Physical units behind a book-and-claim SAF contribution"""
    route_id: str
    saf_type: str
    liters_attributed: Decimal
    conventional_emissions_kg: Decimal
    saf_emissions_kg: Decimal
    emissions_avoided_kg: Decimal
    cost_amount: Decimal
    verification: Verification

    def to_dict(self):
        return {
            'route_id': self.route_id,
            'saf_type': self.saf_type,
            'liters_attributed': _plain(self.liters_attributed),
            'conventional_emissions_kg': _plain(self.conventional_emissions_kg),
            'saf_emissions_kg': _plain(self.saf_emissions_kg),
            'emissions_avoided_kg': _plain(self.emissions_avoided_kg),
            'cost_amount': _plain(self.cost_amount),
            'verification': self.verification.to_dict(),
        }


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    action_type: str
    points_awarded: int
    description: str
    timestamp: datetime
    attribution: Optional[dict] = None

    @property
    def certificate_id(self):
        if not self.attribution:
            return None
        return self.attribution.get('verification', {}).get('certificate_id')


@dataclass(frozen=True)
class Account:
    """
    Snapshot of one user's ledger account.

    ``version`` counts committed writes and is what stores compare on save;
    history is append-only and oldest-first.
    """
    user_id: str
    total: int = 0
    history: Tuple[HistoryEntry, ...] = field(default_factory=tuple)
    version: int = 0

    def append(self, entry):
        """Return a new snapshot with entry appended and the total updated"""
        return replace(self, total=self.total + entry.points_awarded, history=self.history + (entry,))


@dataclass(frozen=True)
class CertificateRecord:
    """Live registry state of a book-and-claim certificate"""
    certificate_id: str
    user_id: str
    entry_id: str
    status: VerificationStatus
    registry_name: str
    provider_name: str
    issued_at: datetime
    updated_at: datetime
