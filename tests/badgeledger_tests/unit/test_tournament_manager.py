"""
Unit tests for the tournament contract.
"""

import json
import threading

import pytest

from badgeledger.core.contracts import TournamentManager
from badgeledger.core.contracts.tournament_manager import DEFAULT_ENTRY_FEE
from badgeledger.core.exceptions import (
    AuthorizationError,
    DuplicateEntryError,
    InsufficientEntryFeeError,
)


@pytest.fixture
def manager(owner_key):
    return TournamentManager(owner=owner_key[1])


@pytest.fixture
def player(player_key):
    return player_key[1]


class TestDeploy:
    def test_opens_first_tournament(self, manager):
        current = manager.get_current_tournament()
        assert manager.current_tournament_id == 1
        assert current.tournament_id == 1
        assert current.participant_count == 0
        assert current.total_prize_pool == 0
        assert current.finalized is False
        assert current.end_time - current.start_time == 24 * 60 * 60

    def test_default_entry_fee(self, manager):
        assert manager.entry_fee == DEFAULT_ENTRY_FEE == 10**15

    def test_zero_owner_rejected(self):
        with pytest.raises(ValueError):
            TournamentManager(owner="0x" + "00" * 20)


class TestEnter:
    def test_entry_adds_to_pool(self, manager, player, keypair):
        _, other = keypair()
        manager.enter_tournament(player, DEFAULT_ENTRY_FEE)
        manager.enter_tournament(other, DEFAULT_ENTRY_FEE * 3)

        current = manager.get_current_tournament()
        assert current.participant_count == 2
        assert current.total_prize_pool == DEFAULT_ENTRY_FEE * 4
        assert manager.has_entered(1, player)
        assert [e.event_type for e in manager.events] == ["TournamentEntered"] * 2

    @pytest.mark.parametrize("value", [0, DEFAULT_ENTRY_FEE - 1, True, "1000000000000000"])
    def test_short_fee_rejected(self, manager, player, value):
        with pytest.raises(InsufficientEntryFeeError) as exc_info:
            manager.enter_tournament(player, value)
        assert exc_info.value.reason == "insufficient entry fee"
        assert not manager.has_entered(1, player)
        assert manager.get_current_tournament().total_prize_pool == 0

    def test_duplicate_entry_rejected(self, manager, player):
        manager.enter_tournament(player, DEFAULT_ENTRY_FEE)
        with pytest.raises(DuplicateEntryError):
            manager.enter_tournament(player.lower(), DEFAULT_ENTRY_FEE)

        current = manager.get_current_tournament()
        assert current.participant_count == 1
        assert current.total_prize_pool == DEFAULT_ENTRY_FEE

    def test_concurrent_entries_count_once(self, manager, player):
        outcomes = []

        def attempt():
            try:
                outcomes.append(manager.enter_tournament(player, DEFAULT_ENTRY_FEE))
            except DuplicateEntryError as exc:
                outcomes.append(exc)

        threads = [threading.Thread(target=attempt) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count(True) == 1
        assert manager.get_current_tournament().participant_count == 1

    def test_snapshot_is_a_copy(self, manager, player):
        snapshot = manager.get_current_tournament()
        manager.enter_tournament(player, DEFAULT_ENTRY_FEE)
        assert snapshot.participant_count == 0


class TestFinalize:
    def test_owner_finalizes_and_next_opens(self, manager, owner_key, player):
        manager.enter_tournament(player, DEFAULT_ENTRY_FEE)

        finalized = manager.finalize_tournament(owner_key[1])

        assert finalized.tournament_id == 1
        assert finalized.finalized is True
        assert finalized.total_prize_pool == DEFAULT_ENTRY_FEE
        assert manager.current_tournament_id == 2
        assert manager.events[-1].event_type == "TournamentFinalized"
        assert manager.events[-1].amount == DEFAULT_ENTRY_FEE

        assert manager.enter_tournament(player, DEFAULT_ENTRY_FEE)
        assert manager.has_entered(2, player)

    def test_non_owner_rejected(self, manager, player):
        with pytest.raises(AuthorizationError):
            manager.finalize_tournament(player)
        assert manager.current_tournament_id == 1
        assert manager.get_current_tournament().finalized is False


class TestSerialization:
    def test_round_trip_keeps_entries(self, manager, player, owner_key):
        manager.enter_tournament(player, DEFAULT_ENTRY_FEE)
        manager.finalize_tournament(owner_key[1])
        manager.enter_tournament(player, DEFAULT_ENTRY_FEE)

        restored = TournamentManager.from_dict(json.loads(json.dumps(manager.to_dict())))

        assert restored.address == manager.address
        assert restored.current_tournament_id == 2
        assert restored.get_tournament(1).finalized is True
        assert restored.has_entered(1, player)
        with pytest.raises(DuplicateEntryError):
            restored.enter_tournament(player, DEFAULT_ENTRY_FEE)
        assert len(restored.events) == 3
