from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

import app.services.deletion_gate as gate

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class _Tx:
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


class _World:
    """Owned applications plus a deletion log, wired into the gate's repos."""

    def __init__(self, monkeypatch, tier="free", ages_days=(), log_ages_days=()):
        self.apps = {
            f"a{i}": SimpleNamespace(id=f"a{i}", created_at=NOW - timedelta(days=age))
            for i, age in enumerate(ages_days, start=1)
        }
        self.log = [NOW - timedelta(days=age) for age in log_ages_days]
        self.deleted = []
        subscription = SimpleNamespace(tier=tier) if tier else None
        self.locked = []

        def _lock(db, uid):
            self.locked.append(uid)
            return subscription

        monkeypatch.setattr(gate.subscription_repo, "get_by_user_for_update", _lock)
        monkeypatch.setattr(gate.subscription_repo, "get_by_user", lambda db, uid: subscription)
        monkeypatch.setattr(
            gate.application_repo,
            "get_many_for_user",
            lambda db, uid, ids: [self.apps[i] for i in ids if i in self.apps],
        )
        monkeypatch.setattr(gate.application_repo, "delete_many_for_user", self._delete)
        monkeypatch.setattr(
            gate.deletion_log_repo, "count_since", lambda db, uid, since: sum(1 for t in self.log if t >= since)
        )
        monkeypatch.setattr(gate.deletion_log_repo, "add_entries", self._log)

    def _delete(self, db, uid, ids):
        for i in ids:
            self.apps.pop(i)
            self.deleted.append(i)
        return len(ids)

    def _log(self, db, uid, ids, at):
        self.log.extend(at for _ in ids)


def test_free_batch_with_one_new_application_is_rejected_whole(monkeypatch):
    world = _World(monkeypatch, ages_days=(20, 5))
    db = _Tx()
    with pytest.raises(gate.DeletionPolicyError, match="14 days"):
        gate.delete_applications(db, "u1", ["a1", "a2"], now=NOW)
    assert world.deleted == []
    assert world.log == []
    assert db.rollbacks == 1 and db.commits == 0


def test_free_quota_counts_trailing_window(monkeypatch):
    world = _World(monkeypatch, ages_days=(30, 30, 30), log_ages_days=(1,) * 8 + (31, 40))
    with pytest.raises(gate.DeletionPolicyError, match="2 remaining"):
        gate.delete_applications(_Tx(), "u1", ["a1", "a2", "a3"], now=NOW)
    assert world.deleted == []


def test_free_delete_within_quota_logs_each_id(monkeypatch):
    world = _World(monkeypatch, ages_days=(15, 60), log_ages_days=(3, 3, 3))
    db = _Tx()
    deleted, remaining = gate.delete_applications(db, "u1", ["a1", "a2", "a1"], now=NOW)
    assert deleted == 2
    assert remaining == 5
    assert world.deleted == ["a1", "a2"]
    assert world.log.count(NOW) == 2
    assert world.locked == ["u1"]
    assert db.commits == 1


def test_premium_deletes_new_applications_without_logging(monkeypatch):
    world = _World(monkeypatch, tier="premium", ages_days=(0, 1), log_ages_days=(1,) * 10)
    deleted, remaining = gate.delete_applications(_Tx(), "u1", ["a1", "a2"], now=NOW)
    assert (deleted, remaining) == (2, None)
    assert len(world.log) == 10


def test_missing_subscription_row_is_free(monkeypatch):
    _World(monkeypatch, tier=None, ages_days=(1,))
    with pytest.raises(gate.DeletionPolicyError):
        gate.delete_applications(_Tx(), "u1", ["a1"], now=NOW)


def test_unknown_or_foreign_id_fails_the_batch(monkeypatch):
    world = _World(monkeypatch, ages_days=(30,))
    db = _Tx()
    with pytest.raises(gate.ApplicationsNotFound):
        gate.delete_applications(db, "u1", ["a1", "someone-elses"], now=NOW)
    assert world.deleted == []
    assert db.rollbacks == 1


def test_remaining_deletions(monkeypatch):
    _World(monkeypatch, log_ages_days=(1, 2, 29, 31))
    assert gate.remaining_deletions(object(), "u1", now=NOW) == 7


def test_remaining_deletions_never_negative(monkeypatch):
    _World(monkeypatch, log_ages_days=(1,) * 12)
    assert gate.remaining_deletions(object(), "u1", now=NOW) == 0


def test_remaining_deletions_premium_is_unlimited(monkeypatch):
    _World(monkeypatch, tier="premium")
    assert gate.remaining_deletions(object(), "u1", now=NOW) is None


def test_naive_created_at_is_treated_as_utc(monkeypatch):
    world = _World(monkeypatch, ages_days=(20,))
    world.apps["a1"].created_at = world.apps["a1"].created_at.replace(tzinfo=None)
    deleted, _ = gate.delete_applications(_Tx(), "u1", ["a1"], now=NOW)
    assert deleted == 1


def test_missing_created_at_counts_as_too_new(monkeypatch):
    world = _World(monkeypatch, ages_days=(30, 30))
    world.apps["a2"].created_at = None
    tx = _Tx()
    with pytest.raises(gate.DeletionPolicyError, match="14 days"):
        gate.delete_applications(tx, "u1", ["a1", "a2"], now=NOW)
    assert world.deleted == []
    assert tx.rollbacks == 1


def test_missing_created_at_is_fine_for_premium(monkeypatch):
    world = _World(monkeypatch, tier="premium", ages_days=(1,))
    world.apps["a1"].created_at = None
    deleted, remaining = gate.delete_applications(_Tx(), "u1", ["a1"], now=NOW)
    assert (deleted, remaining) == (1, None)
