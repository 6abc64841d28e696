"""
Unit tests for the attestation store.
"""

import threading

import pytest

from badgeledger.core.attestation_store import AttestationStore
from badgeledger.core.exceptions import StorageError

PLAYER = "0x" + "cd" * 20


class TestRecordEarned:
    def test_insert_then_noop(self, store):
        assert store.record_earned(PLAYER, 1) is True
        assert store.record_earned(PLAYER, 1) is False
        assert len(store.get_achievements(PLAYER)) == 1

    def test_is_earned(self, store):
        assert not store.is_earned(PLAYER, 2)
        store.record_earned(PLAYER, 2)
        assert store.is_earned(PLAYER, 2)
        assert not store.is_earned(PLAYER, 3)

    def test_address_case_is_one_key(self, store):
        store.record_earned(PLAYER.upper().replace("0X", "0x"), 4)
        assert store.is_earned(PLAYER, 4)
        assert store.record_earned("cd" * 20, 4) is False

    def test_new_record_is_unredeemed(self, store):
        store.record_earned(PLAYER, 1)
        (record,) = store.get_achievements(PLAYER)
        assert record.achievement_id == 1
        assert record.redeemed is False
        assert record.earned_at > 0

    def test_concurrent_inserts_converge(self, store):
        results = []

        def worker():
            results.append(store.record_earned(PLAYER, 3))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert len(store.get_achievements(PLAYER)) == 1

    def test_invalid_address(self, store):
        with pytest.raises(ValueError):
            store.record_earned("not-an-address", 1)

    @pytest.mark.parametrize("achievement_id", [0, 5, 2**64, True])
    def test_rejects_ids_outside_catalog(self, store, achievement_id):
        with pytest.raises(ValueError):
            store.record_earned(PLAYER, achievement_id)
        assert store.get_achievements(PLAYER) == []

    @pytest.mark.parametrize("achievement_id", [5, 2**64, 2**256 - 1])
    def test_ids_outside_catalog_are_never_earned(self, store, achievement_id):
        assert store.is_earned(PLAYER, achievement_id) is False


class TestMarkRedeemed:
    def test_monotonic(self, store):
        store.record_earned(PLAYER, 1)
        assert store.mark_redeemed(PLAYER, 1) is True
        assert store.mark_redeemed(PLAYER, 1) is True
        store.record_earned(PLAYER, 1)
        (record,) = store.get_achievements(PLAYER)
        assert record.redeemed is True

    def test_unknown_record(self, store):
        assert store.mark_redeemed(PLAYER, 2) is False
        assert not store.is_earned(PLAYER, 2)

    def test_unredeemed_listing(self, store):
        store.record_earned(PLAYER, 1)
        store.record_earned(PLAYER, 2)
        store.mark_redeemed(PLAYER, 1)
        assert [r.achievement_id for r in store.get_unredeemed()] == [2]

    def test_still_earned_after_redeemed(self, store):
        store.record_earned(PLAYER, 3)
        store.mark_redeemed(PLAYER, 3)
        assert store.is_earned(PLAYER, 3)


class TestDurability:
    def test_survives_reopen(self, tmp_path):
        db_path = str(tmp_path / "attestations.db")
        first = AttestationStore(db_path)
        first.record_earned(PLAYER, 2)
        first.close()

        second = AttestationStore(db_path)
        try:
            assert second.is_earned(PLAYER, 2)
        finally:
            second.close()

    def test_unopenable_path_raises_storage_error(self, tmp_path):
        with pytest.raises(StorageError) as exc_info:
            AttestationStore(str(tmp_path / "missing" / "dir" / "x.db"))
        assert exc_info.value.recoverable is True
