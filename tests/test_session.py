"""Tests for the session manager and user store."""

import pytest

from src.models.user import User
from src.services.auth import TokenService
from src.services.errors import (
    ConflictError,
    ConstraintViolationError,
    RecordNotFoundError,
    UnauthorizedError,
)
from src.services.session import SessionManager
from src.services.user_store import UserStore


@pytest.fixture
def store(db):
    return UserStore(db)


@pytest.fixture
def manager(store, hasher):
    return SessionManager(store, hasher, TokenService(secret="session-test-secret"))


class TestSessionManager:
    """Tests for SessionManager."""

    @pytest.mark.asyncio
    async def test_register(self, manager, store):
        """Registration stores a hashed password and the refresh token."""
        session = await manager.register("a@x.com", "p1", "A", age=20)

        user = store.get_by_email("a@x.com")
        assert user.id == session.user.id
        assert user.password != "p1"
        assert user.age == 20
        assert user.refresh_token == session.tokens.refresh_token
        assert manager.tokens.verify(session.tokens.access_token).user_id == user.id

    @pytest.mark.asyncio
    async def test_register_duplicate(self, manager, store):
        """A second registration for the same email conflicts."""
        first = await manager.register("a@x.com", "p1", "A")
        with pytest.raises(ConflictError):
            await manager.register("a@x.com", "p2", "B")

        user = store.get_by_email("a@x.com")
        assert user.name == "A"
        assert user.refresh_token == first.tokens.refresh_token

    @pytest.mark.asyncio
    async def test_login_overwrites_refresh_token(self, manager, store):
        """Login replaces the refresh token issued at registration."""
        registered = await manager.register("a@x.com", "p1", "A")
        logged_in = await manager.login("a@x.com", "p1")

        assert logged_in.tokens.refresh_token != registered.tokens.refresh_token
        assert store.get_by_email("a@x.com").refresh_token == logged_in.tokens.refresh_token

    @pytest.mark.asyncio
    async def test_login_bad_credentials(self, manager):
        """Wrong passwords and unknown emails are both unauthorized."""
        await manager.register("a@x.com", "p1", "A")
        with pytest.raises(UnauthorizedError):
            await manager.login("a@x.com", "wrong")
        with pytest.raises(UnauthorizedError):
            await manager.login("nobody@x.com", "p1")

    @pytest.mark.asyncio
    async def test_refresh_rotates(self, manager, store):
        """Refresh issues a new pair and the old token stops working."""
        session = await manager.register("a@x.com", "p1", "A")
        pair = await manager.refresh(session.tokens.refresh_token)

        assert pair.refresh_token != session.tokens.refresh_token
        assert store.get_by_email("a@x.com").refresh_token == pair.refresh_token
        with pytest.raises(UnauthorizedError):
            await manager.refresh(session.tokens.refresh_token)

    @pytest.mark.asyncio
    async def test_refresh_mismatch(self, manager):
        """A valid token that isn't the stored one is rejected."""
        session = await manager.register("a@x.com", "p1", "A")
        stale = manager.tokens.issue_refresh(session.user.id, "a@x.com")
        with pytest.raises(UnauthorizedError):
            await manager.refresh(stale)

    @pytest.mark.asyncio
    async def test_refresh_bad_token(self, manager):
        """Unverifiable tokens are unauthorized."""
        with pytest.raises(UnauthorizedError):
            await manager.refresh("not-a-jwt")

    @pytest.mark.asyncio
    async def test_refresh_unknown_user(self, manager):
        """A token for a user id that doesn't exist is unauthorized."""
        token = manager.tokens.issue_refresh(424242, "ghost@x.com")
        with pytest.raises(UnauthorizedError):
            await manager.refresh(token)

    @pytest.mark.asyncio
    async def test_refresh_loses_concurrent_rotation(self, manager, store, monkeypatch):
        """If another request rotates the token mid-refresh, this one fails."""
        session = await manager.register("a@x.com", "p1", "A")
        issue_pair = manager.tokens.issue_pair

        def issue_pair_during_race(user_id, email):
            store.set_refresh_token(user_id, "rotated-by-another-request")
            return issue_pair(user_id, email)

        monkeypatch.setattr(manager.tokens, "issue_pair", issue_pair_during_race)
        with pytest.raises(UnauthorizedError):
            await manager.refresh(session.tokens.refresh_token)

        assert store.get_by_email("a@x.com").refresh_token == "rotated-by-another-request"

    @pytest.mark.asyncio
    async def test_logout(self, manager, store):
        """Logout clears the stored token, twice in a row too."""
        session = await manager.register("a@x.com", "p1", "A")
        await manager.logout(session.user.id)
        await manager.logout(session.user.id)

        assert store.get_by_email("a@x.com").refresh_token is None
        with pytest.raises(UnauthorizedError):
            await manager.refresh(session.tokens.refresh_token)


class TestUserStore:
    """Tests for UserStore."""

    def test_create_and_lookup(self, store):
        """Users can be found by id and by email."""
        user = store.create("a@x.com", "hash", "A")
        assert store.get_by_id(user.id).email == "a@x.com"
        assert store.get_by_email("a@x.com").id == user.id
        assert store.get_by_id(user.id + 1) is None
        assert user.created_at is not None

    def test_lookup_out_of_range_id(self, store):
        """Ids the column cannot hold are simply not found."""
        assert store.get_by_id(2**31) is None
        assert store.get_by_id(0) is None
        assert store.update(10**20, {"name": "X"}) is None
        with pytest.raises(RecordNotFoundError):
            store.delete(10**20)

    def test_create_duplicate_email(self, store):
        """The unique index rejects a second row with the same email."""
        store.create("a@x.com", "hash", "A")
        with pytest.raises(ConstraintViolationError):
            store.create("a@x.com", "hash", "B")

    def test_list_order(self, store):
        """Users come back in id order."""
        ids = [store.create(f"{name}@x.com", "hash", name).id for name in ("c", "a", "b")]
        assert [user.id for user in store.list_users()] == sorted(ids)

    def test_update_partial(self, store):
        """Only the given fields change."""
        user = store.create("a@x.com", "hash", "A", age=10)
        updated = store.update(user.id, {"name": "Renamed"})
        assert updated.name == "Renamed"
        assert updated.age == 10
        assert store.update(user.id + 100, {"name": "X"}) is None

    def test_update_email_collision(self, store):
        """Taking another user's email fails."""
        store.create("a@x.com", "hash", "A")
        other = store.create("b@x.com", "hash", "B")
        with pytest.raises(ConstraintViolationError):
            store.update(other.id, {"email": "a@x.com"})
        assert store.get_by_id(other.id).email == "b@x.com"

    def test_delete(self, store, db):
        """Deleting removes the row; deleting again fails."""
        user = store.create("a@x.com", "hash", "A")
        user_id = user.id
        store.delete(user_id)
        assert db.query(User).count() == 0
        with pytest.raises(RecordNotFoundError):
            store.delete(user_id)

    def test_replace_refresh_token(self, store):
        """The swap only happens while the stored token is the expected one."""
        user = store.create("a@x.com", "hash", "A")
        store.set_refresh_token(user.id, "one")

        assert store.replace_refresh_token(user.id, "one", "two") is True
        assert store.replace_refresh_token(user.id, "one", "three") is False
        assert store.get_by_id(user.id).refresh_token == "two"
