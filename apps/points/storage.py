"""
Account storage backends for the eco-points ledger.

Stores expose optimistic concurrency: ``save_account`` succeeds only when the
stored version still equals the version the caller loaded, and otherwise
raises Conflict so the ledger can retry from a fresh load.
"""
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import List, Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from apps.common.exceptions import Conflict, StorageUnavailable
from .records import Account, CertificateRecord, HistoryEntry, VerificationStatus


def _certificate_for(user_id, entry, now) -> Optional[CertificateRecord]:
    certificate_id = entry.certificate_id
    if certificate_id is None:
        return None

    verification = entry.attribution['verification']
    return CertificateRecord(
        certificate_id=certificate_id,
        user_id=user_id,
        entry_id=entry.id,
        status=VerificationStatus.PENDING,
        registry_name=verification['registry_name'],
        provider_name=verification['provider_name'],
        issued_at=entry.timestamp,
        updated_at=now,
    )


class AccountStore(ABC):
    """Storage contract required by the ledger"""

    @abstractmethod
    def load_account(self, user_id) -> Optional[Account]:
        """Return the committed snapshot for user_id, or None"""

    @abstractmethod
    def save_account(self, account, expected_version) -> Account:
        """
        Commit account if the stored version equals expected_version.

        New history entries carrying an attribution certificate are registered
        as pending certificates in the same commit.

        Returns:
            The committed snapshot with its new version

        Raises:
            Conflict: If another writer committed first
        """

    def load_total(self, user_id) -> int:
        """Committed total for user_id, 0 when there is no account"""
        account = self.load_account(user_id)
        return account.total if account else 0

    def load_history(self, user_id, limit, offset) -> List[HistoryEntry]:
        """Most-recent-first page of the account's history"""
        account = self.load_account(user_id)
        if account is None:
            return []
        newest_first = account.history[::-1]
        return list(newest_first[offset:offset + limit])

    @abstractmethod
    def get_certificate(self, certificate_id) -> Optional[CertificateRecord]:
        """Return the registry record for certificate_id, or None"""

    @abstractmethod
    def update_certificate_status(self, certificate_id, expected, new, updated_at) -> bool:
        """Move a certificate from expected to new status; False if it was not in expected"""


class InMemoryAccountStore(AccountStore):
    """
    Process-local store holding immutable snapshots.

    A snapshot is replaced as a whole under the store lock, so readers always
    see either the previous or the next committed state.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._accounts = {}
        self._certificates = {}

    def load_account(self, user_id):
        with self._lock:
            return self._accounts.get(user_id)

    def save_account(self, account, expected_version):
        with self._lock:
            current = self._accounts.get(account.user_id)
            current_version = current.version if current else 0
            if current_version != expected_version:
                raise Conflict(
                    f"Account {account.user_id} is at version {current_version}, expected {expected_version}"
                )

            committed = replace(account, version=expected_version + 1)
            known = len(current.history) if current else 0
            now = timezone.now()
            for entry in committed.history[known:]:
                certificate = _certificate_for(committed.user_id, entry, now)
                if certificate is not None:
                    self._certificates[certificate.certificate_id] = certificate

            self._accounts[committed.user_id] = committed
            return committed

    def get_certificate(self, certificate_id):
        with self._lock:
            return self._certificates.get(certificate_id)

    def update_certificate_status(self, certificate_id, expected, new, updated_at):
        with self._lock:
            certificate = self._certificates.get(certificate_id)
            if certificate is None or certificate.status != expected:
                return False
            self._certificates[certificate_id] = replace(certificate, status=new, updated_at=updated_at)
            return True

    def clear(self):
        with self._lock:
            self._accounts.clear()
            self._certificates.clear()


class DatabaseAccountStore(AccountStore):
    """Store backed by the Django ORM; safe across worker processes"""

    def load_account(self, user_id):
        from .models import EcoPointsAccount

        try:
            with transaction.atomic():
                record = EcoPointsAccount.objects.filter(user_id=user_id).first()
                if record is None:
                    return None
                entries = [row.to_entry() for row in record.entries.order_by('sequence')]
        except DatabaseError as e:
            raise StorageUnavailable(f"Ledger store unavailable: {e}") from e

        return Account(
            user_id=record.user_id,
            total=record.total_points,
            history=tuple(entries),
            version=record.version,
        )

    def save_account(self, account, expected_version):
        from .models import EcoPointsAccount, EcoPointsEntry, SAFCertificate

        new_version = expected_version + 1
        try:
            with transaction.atomic():
                if expected_version == 0:
                    record = EcoPointsAccount.objects.create(
                        user_id=account.user_id,
                        total_points=account.total,
                        version=new_version,
                    )
                    known = 0
                else:
                    updated = EcoPointsAccount.objects.filter(
                        user_id=account.user_id,
                        version=expected_version,
                    ).update(
                        total_points=account.total,
                        version=new_version,
                        updated_at=timezone.now(),
                    )
                    if updated != 1:
                        raise Conflict(f"Account {account.user_id} moved past version {expected_version}")
                    record = EcoPointsAccount.objects.get(user_id=account.user_id)
                    known = record.entries.count()

                now = timezone.now()
                for sequence, entry in enumerate(account.history[known:], start=known + 1):
                    EcoPointsEntry.objects.create(
                        account=record,
                        sequence=sequence,
                        entry_id=entry.id,
                        action_type=entry.action_type,
                        points_awarded=entry.points_awarded,
                        description=entry.description,
                        attribution=entry.attribution,
                        created_at=entry.timestamp,
                    )
                    certificate = _certificate_for(account.user_id, entry, now)
                    if certificate is not None:
                        SAFCertificate.objects.create(
                            certificate_id=certificate.certificate_id,
                            user_id=certificate.user_id,
                            entry_id=certificate.entry_id,
                            status=certificate.status.value,
                            registry_name=certificate.registry_name,
                            provider_name=certificate.provider_name,
                            issued_at=certificate.issued_at,
                            updated_at=now,
                        )
        except IntegrityError as e:
            # Another writer created the account or claimed the sequence first
            raise Conflict(f"Account {account.user_id} was written concurrently") from e
        except DatabaseError as e:
            raise StorageUnavailable(f"Ledger store unavailable: {e}") from e

        return replace(account, version=new_version)

    def load_total(self, user_id):
        from .models import EcoPointsAccount

        try:
            total = EcoPointsAccount.objects.filter(
                user_id=user_id
            ).values_list('total_points', flat=True).first()
        except DatabaseError as e:
            raise StorageUnavailable(f"Ledger store unavailable: {e}") from e
        return total or 0

    def load_history(self, user_id, limit, offset):
        from .models import EcoPointsEntry

        try:
            rows = EcoPointsEntry.objects.filter(
                account__user_id=user_id
            ).order_by('-sequence')[offset:offset + limit]
            return [row.to_entry() for row in rows]
        except DatabaseError as e:
            raise StorageUnavailable(f"Ledger store unavailable: {e}") from e

    def get_certificate(self, certificate_id):
        from .models import SAFCertificate

        try:
            record = SAFCertificate.objects.filter(certificate_id=certificate_id).first()
        except DatabaseError as e:
            raise StorageUnavailable(f"Ledger store unavailable: {e}") from e
        return record.to_record() if record else None

    def update_certificate_status(self, certificate_id, expected, new, updated_at):
        from .models import SAFCertificate

        try:
            updated = SAFCertificate.objects.filter(
                certificate_id=certificate_id,
                status=expected.value,
            ).update(status=new.value, updated_at=updated_at)
        except DatabaseError as e:
            raise StorageUnavailable(f"Ledger store unavailable: {e}") from e
        return updated == 1
