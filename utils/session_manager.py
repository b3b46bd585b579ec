"""
Login, refresh, logout and bearer authentication.

Every operation runs in a single transaction on the scoped session:
either all of its writes commit or none do. Failures never leave a
refresh-token row behind.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.user import User
from utils.exceptions import (
    InvalidCredentials,
    InvalidOrExpiredToken,
    StorageUnavailable,
    UsernameTaken,
)
from utils.refresh_tokens import RefreshTokenStore
from utils.security import AccessTokenCodec, CredentialHasher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
        }


class SessionManager:
    def __init__(self, hasher: CredentialHasher, codec: AccessTokenCodec,
                 refresh_store: RefreshTokenStore, storage):
        self.hasher = hasher
        self.codec = codec
        self.refresh_store = refresh_store
        self.storage = storage

    @contextmanager
    def _transaction(self):
        session = self.storage.get_session()
        try:
            yield session
            session.commit()
        except IntegrityError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Storage failure in auth transaction: %s", exc.__class__.__name__)
            raise StorageUnavailable() from exc
        except Exception:
            session.rollback()
            raise

    def _issue_pair(self, session, user_id: int) -> TokenPair:
        refresh_token = self.refresh_store.issue(session, user_id)
        return TokenPair(
            access_token=self.codec.issue(user_id),
            refresh_token=refresh_token,
            expires_in=self.codec.expires_in,
        )

    def register(self, username: str, password: str) -> User:
        password_hash = self.hasher.hash(password)
        try:
            with self._transaction() as session:
                exists = session.execute(select(User.id).where(User.username == username)).first()
                if exists:
                    raise UsernameTaken()
                user = User(username=username, password_hash=password_hash)
                session.add(user)
                session.flush()
        except IntegrityError:
            # lost a race with a concurrent registration
            raise UsernameTaken() from None
        logger.info("Registered user %s", user.id)
        return user

    def login(self, username: str, password: str) -> TokenPair:
        """
        Check credentials and open a session.
        Unknown username and wrong password are the same failure, and cost
        the same: an unknown username still runs one Argon2 verification.
        """
        with self._transaction() as session:
            user = session.execute(
                select(User).where(User.username == username)
            ).scalar_one_or_none()
            if user is None:
                self.hasher.dummy_verify(password)
                logger.info("Login failed")
                raise InvalidCredentials()
            if not self.hasher.verify(password, user.password_hash):
                logger.info("Login failed")
                raise InvalidCredentials()

            if self.hasher.needs_rehash(user.password_hash):
                user.password_hash = self.hasher.hash(password)
            pair = self._issue_pair(session, user.id)
        logger.info("User %s logged in", user.id)
        return pair

    def refresh(self, refresh_token: str) -> TokenPair:
        """
        Rotate: the presented refresh token is consumed and a new pair is
        issued in the same transaction. Presenting it again fails.
        """
        with self._transaction() as session:
            try:
                user_id = self.refresh_store.consume(session, refresh_token)
            except InvalidOrExpiredToken:
                # keep the deletion of an expired row, if that is what happened
                session.commit()
                logger.info("Refresh rejected")
                raise
            if session.get(User, user_id) is None:
                raise InvalidOrExpiredToken()
            pair = self._issue_pair(session, user_id)
        logger.info("Refreshed session for user %s", user_id)
        return pair

    def logout(self, refresh_token: str) -> None:
        """Revoke one refresh token. Succeeds whether or not it was valid."""
        with self._transaction() as session:
            self.refresh_store.revoke(session, refresh_token)

    def logout_all(self, user_id: int) -> int:
        with self._transaction() as session:
            revoked = self.refresh_store.revoke_all(session, user_id)
        logger.info("Revoked %d refresh tokens for user %s", revoked, user_id)
        return revoked

    def authenticate(self, access_token: str) -> User:
        """Resolve a bearer token to a live user."""
        user_id = self.codec.verify(access_token)
        try:
            user = self.storage.get_session().get(User, user_id)
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StorageUnavailable() from exc
        if user is None:
            # subject deleted after the token was issued
            raise InvalidOrExpiredToken()
        return user

    def delete_account(self, user_id: int) -> None:
        """Delete a user; projects, issues, comments and refresh tokens cascade."""
        with self._transaction() as session:
            user = session.get(User, user_id)
            if user is not None:
                session.delete(user)
        logger.info("Deleted account %s", user_id)

    def purge_expired(self) -> int:
        with self._transaction() as session:
            return self.refresh_store.purge_expired(session)
