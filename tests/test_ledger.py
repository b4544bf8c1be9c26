"""
Unit tests for the eco-points ledger over the in-memory store
"""
from dataclasses import replace
from decimal import Decimal
from unittest import mock

import pytest
from hypothesis import given, strategies as st, settings

from apps.catalog.catalog import get_catalog
from apps.common.exceptions import (
    Conflict, ConfigurationFault, InvalidInput, NotFound, TransientFailure,
)
from apps.membership.services import TierEngine
from apps.points.actions import ActionType, CatalogAction, MonetaryAction, SAFContribution
from apps.points.records import VerificationStatus
from apps.points.services import EcoPointsLedger, round_half_up
from apps.points.signals import points_credited, tier_upgraded
from apps.points.storage import InMemoryAccountStore


def monetary(action_type, amount):
    return MonetaryAction(action_type=action_type, amount=Decimal(amount))


def saf_contribution(amount='50'):
    return SAFContribution(
        route_id='SIN-LHR',
        emissions_kg=Decimal('1200'),
        contribution_amount=Decimal(amount),
    )


class TestRounding:

    @pytest.mark.parametrize('value,expected', [
        (Decimal('5.5'), 6),
        (Decimal('6.0'), 6),
        (Decimal('2.5'), 3),
        (Decimal('2.49'), 2),
        (Decimal('0.5'), 1),
        (Decimal('0.4'), 0),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestCredit:

    def test_first_credit_creates_account(self, ledger):
        result = ledger.credit('alice', monetary(ActionType.CARBON_OFFSET, '10'))

        assert result.points_awarded == 50
        assert result.new_total == 50
        assert result.tier_changed is False
        assert result.from_tier is None and result.to_tier is None
        assert result.tier_progress.current_tier.id == 'seedling'
        assert ledger.peek('alice').total == 50

    def test_seedling_to_sapling_scenario(self, ledger):
        first = ledger.credit('alice', monetary(ActionType.SAF_CONTRIBUTION, '50'))
        assert first.base_points == Decimal('500')
        assert first.points_awarded == 500
        assert first.new_total == 500
        assert first.tier_changed is True
        assert first.from_tier.id == 'seedling'
        assert first.to_tier.name == 'Sapling'

        second = ledger.credit('alice', monetary(ActionType.SUSTAINABLE_MERCHANT, '10'))
        assert second.base_points == Decimal('5')
        assert second.multiplier == Decimal('1.2')
        assert second.points_awarded == 6
        assert second.new_total == 506
        assert second.tier_changed is False

    def test_multiplier_uses_tier_before_credit(self, ledger):
        ledger.credit('bob', monetary(ActionType.SAF_CONTRIBUTION, '49.90'))  # 499 points
        result = ledger.credit('bob', monetary(ActionType.SAF_CONTRIBUTION, '100'))

        assert result.multiplier == Decimal('1.0')
        assert result.points_awarded == 1000
        assert result.new_total == 1499

    def test_circularity_action(self, ledger):
        result = ledger.credit('carol', CatalogAction('cup_as_a_service'))
        assert result.points_awarded == 30
        assert result.entry.action_type == 'circularity_action'
        assert result.entry.description == 'Cup-as-a-Service'
        assert result.entry.attribution is None

    def test_saf_contribution_embeds_pending_attribution(self, ledger):
        result = ledger.credit('dave', saf_contribution('50'))

        attribution = result.entry.attribution
        assert result.points_awarded == 500
        assert attribution['liters_attributed'] == '20'
        assert attribution['verification']['status'] == 'pending'

        certificate = ledger.certificate_status(attribution['verification']['certificate_id'])
        assert certificate.user_id == 'dave'
        assert certificate.entry_id == result.entry.id
        assert certificate.status == VerificationStatus.PENDING

    def test_skip_to_top_tier(self, ledger):
        result = ledger.credit('erin', monetary(ActionType.SAF_CONTRIBUTION, '1500'))
        assert result.tier_changed is True
        assert result.to_tier.id == 'guardian'
        assert result.tier_progress.next_tier is None
        assert result.tier_progress.progress_percent == 100.0

    @pytest.mark.parametrize('user_id', ['', '   ', None, 42])
    def test_invalid_user_id(self, ledger, user_id):
        with pytest.raises(InvalidInput):
            ledger.credit(user_id, monetary(ActionType.CARBON_OFFSET, '10'))


class TestFailedCreditLeavesAccountUntouched:

    @pytest.mark.parametrize('action,error', [
        (MonetaryAction(ActionType.CARBON_OFFSET, Decimal('0')), InvalidInput),
        (MonetaryAction(ActionType.CARBON_OFFSET, Decimal('-3')), InvalidInput),
        (CatalogAction('teleport'), NotFound),
        (SAFContribution('SIN-LHR', Decimal('100'), Decimal('10'), provider_id='nobody'), NotFound),
    ])
    def test_no_mutation(self, ledger, memory_store, action, error):
        ledger.credit('frank', monetary(ActionType.CARBON_OFFSET, '10'))
        before = memory_store.load_account('frank')

        with pytest.raises(error):
            ledger.credit('frank', action)

        assert memory_store.load_account('frank') == before

    def test_no_account_created_on_failure(self, ledger, memory_store):
        with pytest.raises(NotFound):
            ledger.credit('grace', CatalogAction('teleport'))
        assert memory_store.load_account('grace') is None


class TestReads:

    def test_peek_unknown_user(self, ledger, memory_store):
        balance = ledger.peek('nobody')
        assert balance.total == 0
        assert balance.tier_progress.current_tier.id == 'seedling'
        assert balance.tier_progress.points_needed == 500
        assert memory_store.load_account('nobody') is None

    def test_history_most_recent_first(self, ledger):
        for action_id in ['refuse_bag', 'bottle_refill', 'cup_as_a_service']:
            ledger.credit('heidi', CatalogAction(action_id))

        history = ledger.history('heidi', limit=10, offset=0)
        assert [entry.points_awarded for entry in history] == [30, 10, 5]

    def test_offset_past_end_is_empty(self, ledger):
        ledger.credit('ivan', CatalogAction('refuse_bag'))
        assert ledger.history('ivan', limit=10, offset=5) == []
        assert ledger.history('nobody', limit=10, offset=0) == []

    @pytest.mark.parametrize('limit,offset', [(0, 0), (-1, 0), (10, -1), ('5', 0), (True, 0)])
    def test_invalid_page(self, ledger, limit, offset):
        with pytest.raises(InvalidInput):
            ledger.history('ivan', limit=limit, offset=offset)


class TestLedgerProperties:
    """Invariants over arbitrary credit sequences"""

    @given(
        action_ids=st.lists(
            st.sampled_from(['cup_as_a_service', 'refuse_bag', 'bottle_refill', 'plant_based_meal']),
            min_size=1,
            max_size=40,
        ),
        limit=st.integers(min_value=1, max_value=15),
    )
    @settings(max_examples=50, deadline=None)
    def test_pages_reconstruct_history_and_total(self, action_ids, limit):
        ledger = EcoPointsLedger(InMemoryAccountStore(), tier_engine=TierEngine(get_catalog()))
        for action_id in action_ids:
            ledger.credit('judy', CatalogAction(action_id))

        pages = []
        offset = 0
        while True:
            page = ledger.history('judy', limit=limit, offset=offset)
            if not page:
                break
            pages.extend(page)
            offset += limit

        full = ledger.history('judy', limit=len(action_ids), offset=0)
        assert pages == full
        assert len({entry.id for entry in pages}) == len(action_ids)
        assert sum(entry.points_awarded for entry in pages) == ledger.peek('judy').total

    @given(
        first=st.integers(min_value=1, max_value=5000),
        second=st.integers(min_value=1, max_value=5000),
    )
    @settings(max_examples=50, deadline=None)
    def test_order_of_credits_within_one_tier_does_not_matter(self, first, second):
        ab = EcoPointsLedger(InMemoryAccountStore(), tier_engine=TierEngine(get_catalog()))
        ba = EcoPointsLedger(InMemoryAccountStore(), tier_engine=TierEngine(get_catalog()))
        action_a = monetary(ActionType.SUSTAINABLE_MERCHANT, first)
        action_b = monetary(ActionType.SUSTAINABLE_MERCHANT, second)

        ab.credit('kim', action_a)
        ab.credit('kim', action_b)
        ba.credit('kim', action_b)
        ba.credit('kim', action_a)

        ab_total = ab.peek('kim').total
        ba_total = ba.peek('kim').total
        ab_points = sorted(entry.points_awarded for entry in ab.history('kim', 2, 0))
        ba_points = sorted(entry.points_awarded for entry in ba.history('kim', 2, 0))

        # Whichever credit lands first decides the multiplier of the other
        sapling_min = get_catalog().get_tier('sapling').min_points
        if max(round_half_up(Decimal(first) / 2), round_half_up(Decimal(second) / 2)) < sapling_min:
            assert ab_total == ba_total
            assert ab_points == ba_points

        for ledger, total in ((ab, ab_total), (ba, ba_total)):
            assert sum(e.points_awarded for e in ledger.history('kim', 10, 0)) == total


class FlakyStore(InMemoryAccountStore):
    """Store whose next ``conflicts`` saves lose a race to another writer"""

    def __init__(self, conflicts):
        super().__init__()
        self.conflicts = conflicts
        self.save_attempts = 0

    def save_account(self, account, expected_version):
        self.save_attempts += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            raise Conflict(f"Simulated concurrent write to {account.user_id}")
        return super().save_account(account, expected_version)


class InterleavingStore(InMemoryAccountStore):
    """Store where another process commits a credit just before our first save"""

    def __init__(self, intruder_entry):
        super().__init__()
        self.intruder_entry = intruder_entry
        self.intruded = False

    def save_account(self, account, expected_version):
        if not self.intruded:
            self.intruded = True
            current = self.load_account(account.user_id)
            base = current or replace(account, total=0, history=(), version=0)
            super().save_account(base.append(self.intruder_entry), expected_version)
        return super().save_account(account, expected_version)


class TestConflictRetry:

    def test_retries_until_save_succeeds(self, catalog):
        store = FlakyStore(conflicts=2)
        ledger = EcoPointsLedger(store, tier_engine=TierEngine(catalog), max_attempts=5)

        result = ledger.credit('liam', monetary(ActionType.CARBON_OFFSET, '10'))

        assert store.save_attempts == 3
        assert result.new_total == 50
        assert len(store.load_account('liam').history) == 1

    def test_exhausted_retries_raise_transient_failure(self, catalog):
        store = FlakyStore(conflicts=10)
        ledger = EcoPointsLedger(store, tier_engine=TierEngine(catalog), max_attempts=3)

        with pytest.raises(TransientFailure):
            ledger.credit('mia', monetary(ActionType.CARBON_OFFSET, '10'))

        assert store.save_attempts == 3
        assert store.load_account('mia') is None

    def test_retry_reloads_state_written_by_other_writer(self, ledger):
        other = ledger.credit('noah', monetary(ActionType.SAF_CONTRIBUTION, '50')).entry
        store = InterleavingStore(intruder_entry=other)
        racing = EcoPointsLedger(store, tier_engine=ledger.tier_engine)

        result = racing.credit('noah', monetary(ActionType.SUSTAINABLE_MERCHANT, '10'))

        # The intruding 500 points moved noah to Sapling before our retry
        assert result.multiplier == Decimal('1.2')
        assert result.points_awarded == 6
        assert result.new_total == 506
        assert [entry.id for entry in store.load_account('noah').history] == [other.id, result.entry.id]

    def test_retry_budget_must_be_positive(self, memory_store):
        with pytest.raises(ConfigurationFault):
            EcoPointsLedger(memory_store, max_attempts=0)


class TestVerification:

    def _certificate_id(self, ledger, user_id='olivia'):
        result = ledger.credit(user_id, saf_contribution())
        return result.entry.attribution['verification']['certificate_id']

    @pytest.mark.parametrize('status', ['verified', 'rejected'])
    def test_pending_certificate_can_be_settled(self, ledger, status):
        certificate_id = self._certificate_id(ledger)

        certificate = ledger.record_verification(certificate_id, status)

        assert certificate.status == VerificationStatus(status)
        assert ledger.certificate_status(certificate_id).status == VerificationStatus(status)

    def test_history_entry_is_not_rewritten(self, ledger):
        certificate_id = self._certificate_id(ledger)
        ledger.record_verification(certificate_id, 'verified')

        entry = ledger.history('olivia', limit=1, offset=0)[0]
        assert entry.attribution['verification']['status'] == 'pending'

    def test_settled_certificate_cannot_change(self, ledger):
        certificate_id = self._certificate_id(ledger)
        ledger.record_verification(certificate_id, 'rejected')

        with pytest.raises(InvalidInput):
            ledger.record_verification(certificate_id, 'verified')

    @pytest.mark.parametrize('status', ['pending', 'approved', ''])
    def test_invalid_target_status(self, ledger, status):
        certificate_id = self._certificate_id(ledger)
        with pytest.raises(InvalidInput):
            ledger.record_verification(certificate_id, status)

    def test_unknown_certificate(self, ledger):
        with pytest.raises(NotFound):
            ledger.certificate_status('SAF-0-NOPE')
        with pytest.raises(NotFound):
            ledger.record_verification('SAF-0-NOPE', 'verified')


class TestSignals:

    def test_credit_and_upgrade_signals(self, ledger):
        credited = mock.Mock()
        upgraded = mock.Mock()
        points_credited.connect(credited, weak=False)
        tier_upgraded.connect(upgraded, weak=False)
        try:
            ledger.credit('paul', monetary(ActionType.CARBON_OFFSET, '10'))
            ledger.credit('paul', monetary(ActionType.SAF_CONTRIBUTION, '50'))
        finally:
            points_credited.disconnect(credited)
            tier_upgraded.disconnect(upgraded)

        assert credited.call_count == 2
        assert upgraded.call_count == 1
        kwargs = upgraded.call_args.kwargs
        assert kwargs['from_tier'].id == 'seedling'
        assert kwargs['to_tier'].id == 'sapling'
        assert kwargs['new_total'] == 550

    def test_failing_receivers_do_not_undo_the_credit(self, ledger, caplog):
        broken = mock.Mock(side_effect=RuntimeError('activity feed down'))
        broken.__qualname__ = 'broken'
        points_credited.connect(broken, weak=False)
        tier_upgraded.connect(broken, weak=False)
        try:
            ledger.credit('quinn', monetary(ActionType.CARBON_OFFSET, '10'))
            result = ledger.credit('quinn', monetary(ActionType.SAF_CONTRIBUTION, '50'))
        finally:
            points_credited.disconnect(broken)
            tier_upgraded.disconnect(broken)

        assert broken.call_count == 3
        assert result.new_total == 550
        assert result.tier_changed
        assert ledger.peek('quinn').total == 550
        assert len(ledger.history('quinn')) == 2
        assert 'activity feed down' in caplog.text
