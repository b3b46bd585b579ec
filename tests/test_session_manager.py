import threading

import pytest
from sqlalchemy.exc import OperationalError

from models import storage
from models.project import Project
from models.refresh_token import RefreshToken
from models.user import User
from utils.exceptions import (
    InvalidCredentials,
    InvalidOrExpiredToken,
    StorageUnavailable,
    UsernameTaken,
)


def token_rows():
    count = storage.get_session().query(RefreshToken).count()
    storage.close()
    return count


@pytest.fixture
def alice(manager):
    return manager.register("alice", "Secret123!")


class TestRegister:

    def test_register_hashes_password(self, manager, alice):
        assert alice.id is not None
        assert alice.username == "alice"
        assert alice.password_hash.startswith("$argon2id$")
        assert manager.hasher.verify("Secret123!", alice.password_hash)

    def test_duplicate_username(self, manager, alice):
        with pytest.raises(UsernameTaken):
            manager.register("alice", "Other123!")

    def test_usernames_are_case_sensitive(self, manager, alice):
        other = manager.register("Alice", "Secret123!")
        assert other.id != alice.id


class TestLogin:

    def test_login_returns_pair(self, manager, alice):
        pair = manager.login("alice", "Secret123!")
        assert manager.codec.verify(pair.access_token) == alice.id
        assert manager.refresh_store.lookup_and_validate(storage.get_session(), pair.refresh_token) == alice.id
        assert pair.expires_in == 15 * 60

    def test_each_login_is_a_separate_session(self, manager, alice):
        first = manager.login("alice", "Secret123!")
        second = manager.login("alice", "Secret123!")
        assert first.refresh_token != second.refresh_token
        assert token_rows() == 2

    def test_wrong_password_and_unknown_user_look_the_same(self, manager, alice):
        with pytest.raises(InvalidCredentials) as wrong:
            manager.login("alice", "nope")
        with pytest.raises(InvalidCredentials) as unknown:
            manager.login("mallory", "Secret123!")
        assert str(wrong.value) == str(unknown.value)

    def test_username_lookup_is_case_sensitive(self, manager, alice):
        with pytest.raises(InvalidCredentials):
            manager.login("ALICE", "Secret123!")

    def test_failed_login_persists_nothing(self, manager, alice):
        with pytest.raises(InvalidCredentials):
            manager.login("alice", "nope")
        assert token_rows() == 0

    def test_failure_after_refresh_row_is_written_rolls_back(self, manager, alice, monkeypatch):
        def broken_issue(user_id):
            raise RuntimeError("signing failed")

        monkeypatch.setattr(manager.codec, "issue", broken_issue)
        with pytest.raises(RuntimeError):
            manager.login("alice", "Secret123!")
        assert token_rows() == 0

    def test_storage_failure_is_storage_unavailable(self, manager, alice, monkeypatch):
        def broken_issue(session, user_id):
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(manager.refresh_store, "issue", broken_issue)
        with pytest.raises(StorageUnavailable):
            manager.login("alice", "Secret123!")
        monkeypatch.undo()
        assert token_rows() == 0

    def test_corrupted_stored_hash_denies(self, manager, alice):
        session = storage.get_session()
        session.get(User, alice.id).password_hash = "corrupted"
        session.commit()
        storage.close()
        with pytest.raises(InvalidCredentials):
            manager.login("alice", "Secret123!")


class TestRefresh:

    def test_refresh_rotates(self, manager, alice):
        pair = manager.login("alice", "Secret123!")
        new_pair = manager.refresh(pair.refresh_token)

        assert new_pair.refresh_token != pair.refresh_token
        assert manager.codec.verify(new_pair.access_token) == alice.id
        with pytest.raises(InvalidOrExpiredToken):
            manager.refresh(pair.refresh_token)
        # the replacement still works
        assert manager.refresh(new_pair.refresh_token).refresh_token
        assert token_rows() == 1

    def test_refresh_with_garbage(self, manager, alice):
        with pytest.raises(InvalidOrExpiredToken):
            manager.refresh("not-a-token")
        assert token_rows() == 0

    def test_refresh_after_logout(self, manager, alice):
        pair = manager.login("alice", "Secret123!")
        manager.logout(pair.refresh_token)
        with pytest.raises(InvalidOrExpiredToken):
            manager.refresh(pair.refresh_token)

    def test_concurrent_refresh_exactly_one_wins(self, manager, alice):
        pair = manager.login("alice", "Secret123!")
        storage.close()

        barrier = threading.Barrier(2)
        outcomes = []
        lock = threading.Lock()

        def attempt():
            barrier.wait()
            try:
                result = manager.refresh(pair.refresh_token)
            except InvalidOrExpiredToken as exc:
                result = exc
            finally:
                storage.close()
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert len(outcomes) == 2
        winners = [o for o in outcomes if not isinstance(o, Exception)]
        losers = [o for o in outcomes if isinstance(o, InvalidOrExpiredToken)]
        assert len(winners) == 1
        assert len(losers) == 1
        assert token_rows() == 1


class TestLogout:

    def test_logout_is_idempotent(self, manager, alice):
        pair = manager.login("alice", "Secret123!")
        manager.logout(pair.refresh_token)
        manager.logout(pair.refresh_token)
        manager.logout("never-issued")
        assert token_rows() == 0

    def test_access_token_outlives_logout(self, manager, alice):
        pair = manager.login("alice", "Secret123!")
        manager.logout(pair.refresh_token)
        assert manager.authenticate(pair.access_token).id == alice.id

    def test_logout_all(self, manager, alice):
        first = manager.login("alice", "Secret123!")
        second = manager.login("alice", "Secret123!")
        bob = manager.register("bob", "Secret123!")
        bobs = manager.login("bob", "Secret123!")

        assert manager.logout_all(alice.id) == 2
        for value in (first.refresh_token, second.refresh_token):
            with pytest.raises(InvalidOrExpiredToken):
                manager.refresh(value)
        assert manager.codec.verify(manager.refresh(bobs.refresh_token).access_token) == bob.id


class TestAuthenticate:

    def test_authenticate(self, manager, alice):
        pair = manager.login("alice", "Secret123!")
        assert manager.authenticate(pair.access_token).username == "alice"

    def test_deleted_subject_is_invalid(self, manager, alice):
        pair = manager.login("alice", "Secret123!")
        manager.delete_account(alice.id)
        storage.close()
        with pytest.raises(InvalidOrExpiredToken):
            manager.authenticate(pair.access_token)
        with pytest.raises(InvalidOrExpiredToken):
            manager.refresh(pair.refresh_token)


def test_delete_account_cascades(manager, alice):
    manager.login("alice", "Secret123!")
    session = storage.get_session()
    session.add(Project(user_id=alice.id, name="Roadmap"))
    session.commit()
    storage.close()

    manager.delete_account(alice.id)
    storage.close()

    session = storage.get_session()
    assert session.query(Project).count() == 0
    assert session.query(RefreshToken).count() == 0
    assert session.get(User, alice.id) is None
