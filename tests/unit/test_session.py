"""Tests for Session — the per-account context object."""

from __future__ import annotations

import pytest

from conftest import ALICE, BOB, FIXED_NOW, TENTH
from gigledger.config import GigLedgerConfig
from gigledger.core.errors import AmountMismatch, Unavailable
from gigledger.core.session import Session, open_session
from gigledger.ledger.client import LocalLedgerClient, StaticIdentity
from gigledger.models.query import ProjectQuery, SortBy


class TestReadSide:
    def test_builds_on_first_use(self, session: Session, seed):
        seed(name="Logo")
        assert session.view.model is None
        assert [p.name for p in session.marketplace()] == ["Logo"]
        assert session.view.generation == 1

    def test_refresh_is_explicit(self, session: Session, seed):
        seed(name="first")
        session.refresh()
        seed(name="second")
        assert len(session.marketplace()) == 1
        session.refresh()
        assert len(session.marketplace()) == 2

    def test_marketplace_query(self, session: Session, seed):
        seed(name="cheap", amount=TENTH)
        seed(name="pricey", amount=5 * TENTH)
        result = session.marketplace(ProjectQuery(sort_by=SortBy.PRICE_HIGH))
        assert [p.name for p in result] == ["pricey", "cheap"]

    def test_per_account_views_need_identity(self, chain, seed):
        seed()
        anonymous = Session(LocalLedgerClient(chain), clock=lambda: FIXED_NOW)
        assert len(anonymous.marketplace()) == 1
        with pytest.raises(Unavailable):
            anonymous.created()
        with pytest.raises(Unavailable):
            anonymous.statistics()

    def test_unavailable_transport(self):
        session = Session(LocalLedgerClient(None, StaticIdentity(ALICE)))
        view = session.refresh()
        assert view.stale
        assert view.error_kind == "unavailable"
        with pytest.raises(Unavailable, match="Read-model unavailable"):
            session.marketplace()

    def test_profile_defaults_to_own_account(self, session: Session):
        assert session.profile().account == ALICE
        assert session.profile(BOB).account == BOB


class TestWriteSide:
    def test_create_accept_complete(self, session: Session, bob_session: Session):
        session.create_project("Logo", "Vector logo", TENTH)
        assert [p.name for p in session.created()] == ["Logo"]

        bob_session.accept_project(0)
        assert bob_session.marketplace() == []
        assert [p.id for p in bob_session.purchased()] == [0]

        bob_session.complete_project(0)
        session.refresh()
        stats = session.statistics()
        assert stats.completed == 1
        assert stats.formatted_earnings == "0.1"
        assert stats.reputation == 10

    def test_accept_with_wrong_escrow(self, session: Session, bob_session: Session):
        session.create_project("Logo", "Vector logo", TENTH)
        with pytest.raises(AmountMismatch):
            bob_session.accept_project(0, TENTH * 2)

    def test_update_profile(self, session: Session):
        ticket = session.update_profile("Alice", "Designer")
        assert ticket.succeeded
        assert session.profile().bio == "Designer"


class TestLifecycle:
    def test_closed_session_refuses_work(self, session: Session):
        session.close()
        assert session.closed
        with pytest.raises(Unavailable, match="closed"):
            session.refresh()
        with pytest.raises(Unavailable):
            session.create_project("Logo", "desc", TENTH)

    def test_switch_account_replaces_session(self, session: Session, seed):
        seed()
        session.refresh()
        switched = session.switch_account(StaticIdentity(BOB))
        assert session.closed
        assert switched is not session
        assert switched.account == BOB
        assert switched.view.model is None
        assert switched.created() == []

    def test_open_session_from_config(self, tmp_dir):
        settings = GigLedgerConfig(ledger_path=tmp_dir / "cfg.db", account=ALICE)
        session = open_session(settings, clock=lambda: FIXED_NOW)
        assert session.account == ALICE
        session.create_project("Logo", "desc", TENTH)
        assert session.statistics().total == 1

    def test_open_session_account_override(self, tmp_dir):
        settings = GigLedgerConfig(ledger_path=tmp_dir / "cfg.db", account=ALICE)
        assert open_session(settings, BOB).account == BOB

    def test_open_session_corrupt_ledger(self, tmp_dir):
        """A file that is not a ledger database is reported as unavailable."""
        corrupt = tmp_dir / "corrupt.db"
        corrupt.write_bytes(b"not a database" * 100)
        settings = GigLedgerConfig(ledger_path=corrupt)
        with pytest.raises(Unavailable, match="Ledger unreachable"):
            open_session(settings)
