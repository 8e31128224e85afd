"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT
- JTI generation for token identifiers

Access and refresh tokens carry the same claims ({sub, email, role}) but are
signed with independent secrets and lifetimes, and both are tagged with the
configured issuer and audience.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import uuid
from typing import Any, Callable, Dict

import jwt
from argon2 import PasswordHasher as _Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Raised when a token fails signature, expiry, issuer/audience or type checks."""


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PasswordHasher:
    """One-way salted password hashing with a constant-time verify."""

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 4):
        self._ph = _Argon2Hasher(time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism)
        # Verified against for unknown emails so response time does not reveal account existence
        self._dummy_hash = self._ph.hash(generate_jti())

    @classmethod
    def from_config(cls, config) -> "PasswordHasher":
        return cls(
            time_cost=config.get("ARGON2_TIME_COST", 3),
            memory_cost=config.get("ARGON2_MEMORY_COST", 65536),
            parallelism=config.get("ARGON2_PARALLELISM", 4),
        )

    def hash(self, password: str) -> str:
        """Hash a plaintext password using Argon2
        """
        return self._ph.hash(password)

    def verify(self, password: str, password_hash: str | None) -> bool:
        """ Verify a plaintext password using argon2
        """
        if not password_hash:
            self.burn(password)
            return False
        try:
            return self._ph.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            # VerifyMismatchError is a VerificationError
            return False

    def burn(self, password: str) -> None:
        """Spend the same work as a real verify without a real hash."""
        try:
            self._ph.verify(self._dummy_hash, password)
        except VerifyMismatchError:
            pass

    def needs_rehash(self, password_hash: str) -> bool:
        try:
            return self._ph.check_needs_rehash(password_hash)
        except InvalidHashError:
            return True


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


class TokenCodec:
    """Signs and verifies access and refresh JWTs."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        *,
        algorithm: str = "HS256",
        issuer: str = "store2door",
        audience: str = "store2door-client",
        access_ttl: timedelta = timedelta(hours=1),
        refresh_ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = _now,
    ):
        if access_secret == refresh_secret:
            raise ValueError("access and refresh tokens need distinct secrets")
        self._secrets = {ACCESS: access_secret, REFRESH: refresh_secret}
        self._ttls = {ACCESS: access_ttl, REFRESH: refresh_ttl}
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience
        self._clock = clock

    @classmethod
    def from_config(cls, config, clock: Callable[[], datetime] = _now) -> "TokenCodec":
        return cls(
            config["JWT_SECRET"],
            config["REFRESH_SECRET"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "store2door"),
            audience=config.get("JWT_AUDIENCE", "store2door-client"),
            access_ttl=config.get("ACCESS_TOKEN_EXPIRES", timedelta(hours=1)),
            refresh_ttl=config.get("REFRESH_TOKEN_EXPIRES", timedelta(days=7)),
            clock=clock,
        )

    def _encode(self, claims: Dict[str, Any], token_type: str) -> tuple[str, datetime]:
        now = self._clock()
        exp = now + self._ttls[token_type]
        payload = {
            "iss": self.issuer,
            "aud": self.audience,
            "sub": str(claims["sub"]),
            "email": claims["email"],
            "role": claims["role"],
            "iat": int(now.replace(tzinfo=timezone.utc).timestamp()),
            "exp": int(exp.replace(tzinfo=timezone.utc).timestamp()),
            "type": token_type,
            "jti": generate_jti(),
        }
        token = jwt.encode(payload, self._secrets[token_type], algorithm=self.algorithm)
        return token, exp

    def create_access_token(self, claims: Dict[str, Any]) -> str:
        return self._encode(claims, ACCESS)[0]

    def create_refresh_token(self, claims: Dict[str, Any]) -> tuple[str, datetime]:
        return self._encode(claims, REFRESH)

    def create_pair(self, claims: Dict[str, Any]) -> TokenPair:
        access = self.create_access_token(claims)
        refresh, refresh_exp = self.create_refresh_token(claims)
        return TokenPair(access, refresh, refresh_exp)

    def decode(self, token: str, expected_type: str = ACCESS) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises TokenError on invalid signature/expired jwt,
        wrong issuer/audience, or a token of the other type.
        """
        if expected_type not in self._secrets:
            raise ValueError(f"unknown token type: {expected_type}")
        try:
            decoded = jwt.decode(
                token,
                self._secrets[expected_type],
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenError("Token expired")
        except jwt.InvalidTokenError as exc:
            raise TokenError(f"Invalid token: {exc}")

        if decoded.get("type") != expected_type:
            raise TokenError("Wrong token type")
        return decoded
