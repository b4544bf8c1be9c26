"""
Eco-points ledger: per-user cumulative totals with append-only history.

A credit is serialized per user twice over: an in-process keyed lock keeps
threads of one worker from racing, and the store's version check catches
writers in other processes, in which case the whole read-compute-write
cycle is retried from a fresh load.
"""
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from functools import lru_cache
from typing import List, Optional

from django.conf import settings
from django.utils import timezone

from apps.catalog.catalog import Tier
from apps.common.exceptions import (
    ConfigurationFault, Conflict, InvalidInput, NotFound, TransientFailure,
)
from apps.common.locks import KeyedLock
from apps.membership.services import TierEngine, TierProgress
from ..records import Account, CertificateRecord, HistoryEntry, VerificationStatus
from ..signals import points_credited, tier_upgraded
from ..storage import DatabaseAccountStore, InMemoryAccountStore
from .attribution_calculator import AttributionCalculator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreditResult:
    points_awarded: int
    base_points: Decimal
    multiplier: Decimal
    new_total: int
    tier_changed: bool
    from_tier: Optional[Tier]
    to_tier: Optional[Tier]
    tier_progress: TierProgress
    entry: HistoryEntry


@dataclass(frozen=True)
class Balance:
    total: int
    tier_progress: TierProgress


def round_half_up(value) -> int:
    """Round to the nearest whole point, halves away from zero"""
    return int(Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _require_user_id(user_id):
    if not isinstance(user_id, str) or not user_id.strip():
        raise InvalidInput("user_id is required")
    return user_id


class EcoPointsLedger:
    """Owns every account mutation; other components only read through it"""

    def __init__(self, store, tier_engine=None, calculator=None, max_attempts=5, clock=timezone.now):
        if max_attempts < 1:
            raise ConfigurationFault(f"Ledger retry budget must be at least 1, got {max_attempts}")
        self.store = store
        self.tier_engine = tier_engine or TierEngine()
        self.calculator = calculator or AttributionCalculator(self.tier_engine.catalog, clock=clock)
        self.max_attempts = max_attempts
        self.clock = clock
        self._locks = KeyedLock()

    def credit(self, user_id, action) -> CreditResult:
        """
        Award points for an action and append it to the user's history.

        Either the account gains exactly one entry and its points, or it is
        left untouched.

        Raises:
            InvalidInput: If user_id or the action is invalid
            NotFound: If the action references an unknown catalog entry
            TransientFailure: If conflicting writers exhausted the retry budget
        """
        user_id = _require_user_id(user_id)
        award = self.calculator.evaluate(action)

        with self._locks.hold(user_id):
            committed, current_tier, entry = self._commit(user_id, award)

        new_tier = self.tier_engine.resolve_tier(committed.total)
        tier_changed = new_tier.level > current_tier.level
        progress = self.tier_engine.progress_to_next(committed.total)

        logger.info(
            f"Credited {entry.points_awarded} points to {user_id} for {entry.action_type} "
            f"(base {award.base_points} x{current_tier.multiplier}), total {committed.total}"
        )
        self._notify(points_credited, user_id=user_id, entry=entry, new_total=committed.total)

        if tier_changed:
            logger.info(f"User {user_id} upgraded from {current_tier.name} to {new_tier.name}")
            self._notify(
                tier_upgraded,
                user_id=user_id,
                from_tier=current_tier,
                to_tier=new_tier,
                new_total=committed.total,
            )

        return CreditResult(
            points_awarded=entry.points_awarded,
            base_points=award.base_points,
            multiplier=current_tier.multiplier,
            new_total=committed.total,
            tier_changed=tier_changed,
            from_tier=current_tier if tier_changed else None,
            to_tier=new_tier if tier_changed else None,
            tier_progress=progress,
            entry=entry,
        )

    def _notify(self, signal, **kwargs):
        """Send a post-commit signal; receiver errors are logged, not raised"""
        for receiver, response in signal.send_robust(sender=self.__class__, **kwargs):
            if isinstance(response, Exception):
                logger.error(
                    f"Receiver {getattr(receiver, '__qualname__', receiver)} failed handling "
                    f"{kwargs.get('user_id')}: {response}",
                    exc_info=response,
                )

    def _commit(self, user_id, award):
        for attempt in range(1, self.max_attempts + 1):
            account = self.store.load_account(user_id) or Account(user_id=user_id)
            current_tier = self.tier_engine.resolve_tier(account.total)

            entry = HistoryEntry(
                id=f"pts_{uuid.uuid4().hex}",
                action_type=award.action_type.value,
                points_awarded=round_half_up(award.base_points * current_tier.multiplier),
                description=award.description,
                timestamp=self.clock(),
                attribution=award.attribution.to_dict() if award.attribution else None,
            )

            try:
                committed = self.store.save_account(account.append(entry), expected_version=account.version)
            except Conflict as e:
                logger.warning(
                    f"Write conflict crediting {user_id} (attempt {attempt}/{self.max_attempts}): {e.message}"
                )
                continue

            return committed, current_tier, entry

        logger.error(f"Giving up crediting {user_id} after {self.max_attempts} conflicting attempts")
        raise TransientFailure(
            f"Could not credit {user_id} due to concurrent updates, please retry",
            details={'attempts': self.max_attempts},
        )

    def peek(self, user_id) -> Balance:
        """Current total and tier progress; never creates or mutates the account"""
        user_id = _require_user_id(user_id)
        total = self.store.load_total(user_id)
        return Balance(total=total, tier_progress=self.tier_engine.progress_to_next(total))

    def history(self, user_id, limit=50, offset=0) -> List[HistoryEntry]:
        """Most-recent-first page of history; an offset past the end gives an empty page"""
        user_id = _require_user_id(user_id)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidInput("limit must be a positive integer")
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise InvalidInput("offset must be a non-negative integer")
        return self.store.load_history(user_id, limit, offset)

    def certificate_status(self, certificate_id) -> CertificateRecord:
        certificate = self.store.get_certificate(certificate_id)
        if certificate is None:
            raise NotFound(f"Certificate {certificate_id} not found")
        return certificate

    def record_verification(self, certificate_id, status) -> CertificateRecord:
        """
        Accept an out-of-band verification outcome for a pending certificate.

        Raises:
            InvalidInput: If status is not verified/rejected or the certificate
                is no longer pending
            NotFound: If the certificate is unknown
        """
        try:
            new_status = VerificationStatus(status)
        except ValueError:
            raise InvalidInput(f"Unknown verification status: {status}") from None
        if new_status == VerificationStatus.PENDING:
            raise InvalidInput("A certificate can only move from pending to verified or rejected")

        certificate = self.certificate_status(certificate_id)
        if certificate.status != VerificationStatus.PENDING:
            raise InvalidInput(
                f"Certificate {certificate_id} is already {certificate.status.value}",
                details={'status': certificate.status.value},
            )

        if not self.store.update_certificate_status(
            certificate_id, VerificationStatus.PENDING, new_status, self.clock()
        ):
            current = self.certificate_status(certificate_id)
            raise InvalidInput(
                f"Certificate {certificate_id} is already {current.status.value}",
                details={'status': current.status.value},
            )

        logger.info(f"Certificate {certificate_id} marked {new_status.value}")
        return self.certificate_status(certificate_id)


@lru_cache(maxsize=None)
def get_ledger() -> EcoPointsLedger:
    """Process-wide ledger built from settings"""
    storage = settings.ECO_LEDGER_STORAGE
    if storage == 'memory':
        store = InMemoryAccountStore()
    elif storage == 'database':
        store = DatabaseAccountStore()
    else:
        logger.critical(f"Unknown ECO_LEDGER_STORAGE: {storage}")
        raise ConfigurationFault(f"Unknown ledger storage backend: {storage}")
    return EcoPointsLedger(store, max_attempts=settings.ECO_LEDGER_MAX_ATTEMPTS)
