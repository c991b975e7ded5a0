"""Tests for the LocalChain — pending pool, block settlement, contract rules."""

from __future__ import annotations

from conftest import ALICE, BOB, CAROL, FIXED_EPOCH, TENTH
from gigledger.ledger.local_chain import (
    REVERT_ALREADY_ACCEPTED,
    REVERT_ALREADY_COMPLETED,
    REVERT_AMOUNT_MISMATCH,
    REVERT_EMPTY_NAME,
    REVERT_NO_PROJECT,
    REVERT_NOT_ACCEPTED,
    REVERT_NOT_CLIENT,
    REVERT_UNKNOWN_KIND,
    REVERT_ZERO_SENDER,
    TX_PENDING,
    TX_REVERTED,
    TX_SETTLED,
    LocalChain,
)
from gigledger.models.project import ZERO_ADDRESS


def _create(chain: LocalChain, name: str = "Logo", amount: int = TENTH, sender: str = ALICE) -> str:
    return chain.submit(
        "create", sender, {"name": name, "description": "desc", "amount": amount}
    )


class TestPendingPool:
    def test_submit_is_invisible_until_mined(self, chain: LocalChain):
        tx = _create(chain)
        assert chain.next_project_id() == 0
        assert chain.pending_count() == 1
        assert chain.receipt(tx)["status"] == TX_PENDING

    def test_mine_settles_pending(self, chain: LocalChain):
        tx = _create(chain)
        receipts = chain.mine()
        assert [r["tx_hash"] for r in receipts] == [tx]
        assert chain.next_project_id() == 1
        assert chain.pending_count() == 0
        assert chain.receipt(tx)["status"] == TX_SETTLED

    def test_mine_with_nothing_pending(self, chain: LocalChain):
        assert chain.mine() == []

    def test_block_numbers_increase(self, chain: LocalChain):
        _create(chain, "a")
        first = chain.mine()[0]["block_number"]
        _create(chain, "b")
        second = chain.mine()[0]["block_number"]
        assert second == first + 1

    def test_unknown_receipt(self, chain: LocalChain):
        assert chain.receipt("0xdeadbeef") is None

    def test_tx_hashes_are_unique(self, chain: LocalChain):
        assert _create(chain) != _create(chain)

    def test_applied_in_submission_order(self, chain: LocalChain):
        _create(chain, "first")
        _create(chain, "second")
        receipts = chain.mine()
        assert [r["project_id"] for r in receipts] == [0, 1]
        assert chain.project(0).name == "first"
        assert chain.project(1).name == "second"


class TestProjects:
    def test_create_sets_fields(self, chain: LocalChain, block_clock):
        _create(chain, "Logo", amount=5 * TENTH)
        chain.mine()
        record = chain.project(0)
        assert record.id == 0
        assert record.amount == 5 * TENTH
        assert record.creator == ALICE
        assert record.counterparty == ZERO_ADDRESS
        assert record.deadline == FIXED_EPOCH
        assert not record.is_accepted
        assert not record.is_completed

    def test_project_out_of_range(self, chain: LocalChain):
        assert chain.project(0) is None

    def test_project_beyond_storable_range(self, chain: LocalChain):
        assert chain.project(2**63 - 1) is None
        assert chain.project(2**63) is None

    def test_ids_are_dense(self, chain: LocalChain, block_clock):
        for i in range(3):
            _create(chain, f"p{i}")
            block_clock.advance(60)
            chain.mine()
        assert chain.next_project_id() == 3
        assert [chain.project(i).id for i in range(3)] == [0, 1, 2]

    def test_amount_beyond_sqlite_integer_range(self, chain: LocalChain):
        huge = 2**70
        _create(chain, amount=huge)
        chain.mine()
        assert chain.project(0).amount == huge


class TestContractRules:
    def _listed(self, chain: LocalChain) -> None:
        _create(chain)
        chain.mine()

    def _revert_reason(self, chain: LocalChain, tx: str) -> str:
        chain.mine()
        receipt = chain.receipt(tx)
        assert receipt["status"] == TX_REVERTED
        return receipt["revert_reason"]

    def test_create_requires_name(self, chain: LocalChain):
        tx = _create(chain, name="  ")
        assert self._revert_reason(chain, tx) == REVERT_EMPTY_NAME
        assert chain.next_project_id() == 0

    def test_zero_sender_rejected(self, chain: LocalChain):
        tx = _create(chain, sender=ZERO_ADDRESS)
        assert self._revert_reason(chain, tx) == REVERT_ZERO_SENDER

    def test_accept_sets_client(self, chain: LocalChain):
        self._listed(chain)
        chain.submit("accept", BOB, {"project_id": 0}, value=TENTH)
        chain.mine()
        record = chain.project(0)
        assert record.counterparty == BOB
        assert record.is_accepted

    def test_accept_missing_project(self, chain: LocalChain):
        tx = chain.submit("accept", BOB, {"project_id": 7}, value=TENTH)
        assert self._revert_reason(chain, tx) == REVERT_NO_PROJECT

    def test_complete_beyond_storable_range(self, chain: LocalChain):
        """A huge id reverts like any missing project."""
        tx = chain.submit("complete", BOB, {"project_id": 2**63})
        assert self._revert_reason(chain, tx) == REVERT_NO_PROJECT

    def test_accept_wrong_value(self, chain: LocalChain):
        self._listed(chain)
        tx = chain.submit("accept", BOB, {"project_id": 0}, value=TENTH - 1)
        assert self._revert_reason(chain, tx) == REVERT_AMOUNT_MISMATCH
        assert not chain.project(0).is_accepted

    def test_accept_twice(self, chain: LocalChain):
        self._listed(chain)
        chain.submit("accept", BOB, {"project_id": 0}, value=TENTH)
        tx = chain.submit("accept", CAROL, {"project_id": 0}, value=TENTH)
        assert self._revert_reason(chain, tx) == REVERT_ALREADY_ACCEPTED
        assert chain.project(0).counterparty == BOB

    def test_complete_by_client(self, chain: LocalChain):
        self._listed(chain)
        chain.submit("accept", BOB, {"project_id": 0}, value=TENTH)
        chain.submit("complete", BOB, {"project_id": 0})
        chain.mine()
        assert chain.project(0).is_completed

    def test_complete_requires_acceptance(self, chain: LocalChain):
        self._listed(chain)
        tx = chain.submit("complete", BOB, {"project_id": 0})
        assert self._revert_reason(chain, tx) == REVERT_NOT_ACCEPTED

    def test_complete_only_by_client(self, chain: LocalChain):
        self._listed(chain)
        chain.submit("accept", BOB, {"project_id": 0}, value=TENTH)
        tx = chain.submit("complete", ALICE, {"project_id": 0})
        assert self._revert_reason(chain, tx) == REVERT_NOT_CLIENT

    def test_complete_twice(self, chain: LocalChain):
        self._listed(chain)
        chain.submit("accept", BOB, {"project_id": 0}, value=TENTH)
        chain.submit("complete", BOB, {"project_id": 0})
        tx = chain.submit("complete", BOB, {"project_id": 0})
        assert self._revert_reason(chain, tx) == REVERT_ALREADY_COMPLETED

    def test_unknown_kind(self, chain: LocalChain):
        tx = chain.submit("withdraw", ALICE, {})
        assert self._revert_reason(chain, tx) == REVERT_UNKNOWN_KIND

    def test_revert_does_not_block_later_transactions(self, chain: LocalChain):
        bad = _create(chain, name="")
        good = _create(chain, name="ok")
        receipts = chain.mine()
        statuses = {r["tx_hash"]: r["status"] for r in receipts}
        assert statuses == {bad: TX_REVERTED, good: TX_SETTLED}
        assert chain.project(0).name == "ok"


class TestProfiles:
    def test_missing_profile_is_empty(self, chain: LocalChain):
        profile = chain.get_profile(ALICE)
        assert profile.account == ALICE
        assert profile.is_empty

    def test_update_profile_upserts(self, chain: LocalChain):
        chain.submit("update_profile", ALICE, {"name": "Alice", "bio": "", "avatar": ""})
        chain.mine()
        chain.submit("update_profile", ALICE, {"name": "Alice B.", "bio": "Designer", "avatar": ""})
        chain.mine()
        profile = chain.get_profile(ALICE)
        assert profile.name == "Alice B."
        assert profile.bio == "Designer"


class TestPersistence:
    def test_reopen_sees_same_state(self, chain: LocalChain):
        _create(chain)
        chain.mine()
        reopened = LocalChain(chain.db_path)
        assert reopened.next_project_id() == 1
        assert reopened.project(0).name == "Logo"
