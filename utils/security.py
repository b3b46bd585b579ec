"""
security helpers:
- Argon2id password hashing via argon2-cffi (CredentialHasher)
- Short-lived JWT access tokens via PyJWT (AccessTokenCodec)

Neither class keeps module-level state: the app factory builds one of each
from config and hangs them on the SessionManager.
"""
from __future__ import annotations

import logging
import secrets
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import jwt
from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

from utils.exceptions import InvalidOrExpiredToken

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"


class CredentialHasher:
    """
    One-way salted password hashing.

    Hashes are PHC strings ("$argon2id$v=19$m=...,t=...,p=...$salt$digest"),
    so verify() reads salt and parameters from the stored value itself.
    Work is handed to a small dedicated thread pool; argon2-cffi drops the
    GIL while hashing, so request threads are only parked, not competing.
    """

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536,
                 parallelism: int = 4, workers: int = 4):
        self._ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=Type.ID,
        )
        self._pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="argon2")
        # verified against on unknown usernames so both login failures cost the same
        self._dummy_hash = self._ph.hash(secrets.token_urlsafe(16))

    def hash(self, password: str) -> str:
        """Hash a plaintext password using Argon2id."""
        return self._pool.submit(self._ph.hash, password).result()

    def verify(self, password: str, password_hash: str) -> bool:
        """
        True only if password matches password_hash.
        A corrupted or foreign hash is a plain mismatch, never an exception,
        and still costs one Argon2 verification.
        """
        if not isinstance(password, str) or not isinstance(password_hash, str) or not password_hash:
            self._check(password if isinstance(password, str) else "", self._dummy_hash)
            return False
        return self._check(password, password_hash)

    def _check(self, password: str, password_hash: str) -> bool:
        try:
            return self._pool.submit(self._ph.verify, password_hash, password).result()
        except (VerificationError, InvalidHashError):
            return False

    def dummy_verify(self, password: str) -> bool:
        self.verify(password, self._dummy_hash)
        return False

    def needs_rehash(self, password_hash: str) -> bool:
        try:
            return self._ph.check_needs_rehash(password_hash)
        except InvalidHashError:
            return False

    def shutdown(self):
        self._pool.shutdown(wait=False)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AccessTokenCodec:
    """
    Stateless bearer tokens: HMAC-signed JWTs carrying the user id as `sub`.

    verify() never tells the caller why a token was rejected: bad signature,
    wrong key, garbage input and expiry all raise the same
    InvalidOrExpiredToken.
    """

    def __init__(self, secret: str, algorithm: str = "HS256",
                 ttl: timedelta = timedelta(minutes=15), issuer: str = "issue-tracker-api"):
        if not secret:
            raise ValueError("Access token secret must be a non-empty string")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl
        self.issuer = issuer

    @property
    def expires_in(self) -> int:
        return int(self.ttl.total_seconds())

    def issue(self, user_id: int) -> str:
        now = _now()
        payload = {
            "iss": self.issuer,
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
            "type": ACCESS_TOKEN_TYPE,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """Return the user id carried by a valid, unexpired token."""
        if not isinstance(token, str) or not token:
            raise InvalidOrExpiredToken()
        try:
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub", "iss"]},
            )
        except jwt.InvalidTokenError as exc:
            logger.debug("Access token rejected: %s", exc.__class__.__name__)
            raise InvalidOrExpiredToken() from None

        if decoded.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidOrExpiredToken()
        try:
            return int(decoded["sub"])
        except (TypeError, ValueError):
            raise InvalidOrExpiredToken() from None
