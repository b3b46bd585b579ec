"""
Persisted, revocable refresh tokens.

The client gets an opaque random string; the table only ever sees its
SHA-256 digest. Every method takes the caller's session and flushes
without committing, so issuance and revocation join the caller's
transaction (see SessionManager).
"""
from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import timedelta

from sqlalchemy import delete, select

from models.base_model import utcnow
from models.refresh_token import RefreshToken
from utils.exceptions import InvalidOrExpiredToken

logger = logging.getLogger(__name__)

TOKEN_BYTES = 48


def digest_token(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


class RefreshTokenStore:

    def __init__(self, ttl: timedelta = timedelta(days=7)):
        self.ttl = ttl

    @property
    def expires_in(self) -> int:
        return int(self.ttl.total_seconds())

    def issue(self, session, user_id: int) -> str:
        """Persist a new refresh token for user_id and return its value."""
        value = secrets.token_urlsafe(TOKEN_BYTES)
        now = utcnow()
        session.add(RefreshToken(
            user_id=user_id,
            token_hash=digest_token(value),
            created_at=now,
            expires_at=now + self.ttl,
        ))
        session.flush()
        return value

    def lookup_and_validate(self, session, value: str) -> int:
        """
        Resolve a token value to its user id without consuming it.
        An expired row found here is deleted on the spot.
        """
        if not isinstance(value, str) or not value:
            raise InvalidOrExpiredToken()
        row = session.execute(
            select(RefreshToken.id, RefreshToken.user_id, RefreshToken.expires_at)
            .where(RefreshToken.token_hash == digest_token(value))
        ).first()
        if row is None:
            raise InvalidOrExpiredToken()
        if utcnow() > row.expires_at:
            session.execute(delete(RefreshToken.__table__).where(RefreshToken.__table__.c.id == row.id))
            session.flush()
            logger.info("Expired refresh token removed for user %s", row.user_id)
            raise InvalidOrExpiredToken()
        return row.user_id

    def consume(self, session, value: str) -> int:
        """
        Claim a token for single use: the row is deleted and its user id
        returned in one DELETE ... RETURNING statement. Of two transactions
        presenting the same value only one gets the row back.

        An expired token is still deleted but rejected; the caller must
        commit for that cleanup to stick.
        """
        if not isinstance(value, str) or not value:
            raise InvalidOrExpiredToken()
        table = RefreshToken.__table__
        row = session.execute(
            delete(table)
            .where(table.c.token_hash == digest_token(value))
            .returning(table.c.user_id, table.c.expires_at)
        ).first()
        if row is None:
            raise InvalidOrExpiredToken()
        if utcnow() > row.expires_at:
            logger.info("Expired refresh token presented for user %s", row.user_id)
            raise InvalidOrExpiredToken()
        return row.user_id

    def revoke(self, session, value: str) -> None:
        """Delete the row for value, if any. Silent when nothing matches."""
        if not isinstance(value, str) or not value:
            return
        table = RefreshToken.__table__
        session.execute(delete(table).where(table.c.token_hash == digest_token(value)))
        session.flush()

    def revoke_all(self, session, user_id: int) -> int:
        table = RefreshToken.__table__
        result = session.execute(delete(table).where(table.c.user_id == user_id))
        session.flush()
        return result.rowcount

    def purge_expired(self, session) -> int:
        table = RefreshToken.__table__
        result = session.execute(delete(table).where(table.c.expires_at < utcnow()))
        session.flush()
        return result.rowcount
