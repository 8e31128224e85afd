"""Unit tests for models/token_ledger.py -- refresh token records.

Covers:
- issue() keeps at most `retention` active rows per account, oldest pruned first
- find_usable() ignores inactive and expired rows
- revoke() is a one-shot compare-and-set
- revoke_all() only touches the given account
"""
from datetime import timedelta

import pytest

from models import AccountStore, RefreshTokenLedger, Role


@pytest.fixture
def accounts(storage):
    return AccountStore(storage)


@pytest.fixture
def ledger(storage):
    return RefreshTokenLedger(storage, retention=5)


@pytest.fixture
def account_id(storage, accounts):
    with storage.transaction():
        account = accounts.add(email="Owner@Example.com", password_hash="x", full_name="Owner", role=Role.STAFF)
    return account.id


def _issue(storage, ledger, account_id, token, clock, expires_in=timedelta(days=7)):
    now = clock()
    with storage.transaction():
        return ledger.issue(account_id, token, now + expires_in, created_at=now)


def test_account_store_folds_email_case(storage, accounts, account_id):
    with storage.transaction():
        found = accounts.get_by_email("OWNER@example.COM")

    assert found is not None
    assert found.id == account_id
    assert found.email == "owner@example.com"


def test_retention_keeps_five_newest(storage, ledger, account_id, clock):
    tokens = [f"token-{i}" for i in range(7)]
    for token in tokens:
        _issue(storage, ledger, account_id, token, clock)

    with storage.transaction():
        assert ledger.active_count(account_id) == 5
        active = [r.token for r in ledger.active_tokens(account_id)]
        assert active == list(reversed(tokens[2:]))
        assert ledger.find("token-0").is_active is False
        assert ledger.find("token-1").is_active is False


def test_retention_keeps_newest_issue_when_timestamps_tie(storage, ledger, account_id, clock):
    instant = clock()
    for i in range(7):
        with storage.transaction():
            ledger.issue(account_id, f"same-{i}", instant + timedelta(days=7), created_at=instant)

        with storage.transaction():
            assert ledger.find(f"same-{i}").is_active is True
            assert ledger.active_count(account_id) == min(i + 1, 5)


def test_retention_ignores_already_inactive_rows(storage, ledger, account_id, clock):
    for i in range(3):
        _issue(storage, ledger, account_id, f"old-{i}", clock)
    with storage.transaction():
        ledger.revoke_all(account_id)
    for i in range(5):
        _issue(storage, ledger, account_id, f"new-{i}", clock)

    with storage.transaction():
        assert ledger.active_count(account_id) == 5


def test_find_usable_skips_expired_and_inactive(storage, ledger, account_id, clock):
    _issue(storage, ledger, account_id, "live", clock)
    _issue(storage, ledger, account_id, "stale", clock, expires_in=timedelta(seconds=-1))
    _issue(storage, ledger, account_id, "revoked", clock)
    with storage.transaction():
        ledger.revoke("revoked")

    with storage.transaction():
        assert ledger.find_usable("live", clock()) is not None
        assert ledger.find_usable("stale", clock()) is None
        assert ledger.find_usable("revoked", clock()) is None
        assert ledger.find_usable("missing", clock()) is None


def test_revoke_succeeds_exactly_once(storage, ledger, account_id, clock):
    _issue(storage, ledger, account_id, "once", clock)

    with storage.transaction():
        first = ledger.revoke("once", clock())
    with storage.transaction():
        second = ledger.revoke("once", clock())

    assert first is True
    assert second is False


def test_revoke_with_clock_leaves_expired_rows_alone(storage, ledger, account_id, clock):
    _issue(storage, ledger, account_id, "expired", clock, expires_in=timedelta(seconds=-1))

    with storage.transaction():
        assert ledger.revoke("expired", clock()) is False


def test_revoke_all_is_scoped_to_account(storage, accounts, ledger, account_id, clock):
    with storage.transaction():
        other = accounts.add(email="other@example.com", password_hash="x", full_name="Other")
    _issue(storage, ledger, account_id, "mine-1", clock)
    _issue(storage, ledger, account_id, "mine-2", clock)
    _issue(storage, ledger, other.id, "theirs", clock)

    with storage.transaction():
        revoked = ledger.revoke_all(account_id)

    with storage.transaction():
        assert revoked == 2
        assert ledger.active_count(account_id) == 0
        assert ledger.active_count(other.id) == 1


def test_retention_must_be_positive(storage):
    with pytest.raises(ValueError):
        RefreshTokenLedger(storage, retention=0)
