"""
AuthService: registration, login, refresh-token rotation, logout and password
change over an AccountStore, a RefreshTokenLedger and a TokenCodec.

Every mutation runs inside one DBStorage.transaction(), so rotation
(revoke old + issue new) and password change (new hash + revoke all sessions)
either happen completely or not at all. Operations that change an account's
sessions lock its row first, so they run one at a time per account. Access
tokens are never stored; their validity is signature + expiry + a live
account lookup.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError

from models.account import Account, Role, STAFF_ROLES
from models.account_store import AccountStore
from models.base_model import utc_now
from models.token_ledger import RefreshTokenLedger
from services.errors import (
    AccountDeactivated,
    AccountNotFound,
    AlreadyExists,
    IncorrectCurrentPassword,
    InvalidCredentials,
    InvalidInput,
    InvalidRefreshToken,
    InvalidToken,
)
from utils.security import ACCESS, REFRESH, PasswordHasher, TokenCodec, TokenError, TokenPair

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class Identity:
    """Verified caller identity attached to a request."""
    account_id: str
    email: str
    role: Role

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


@dataclass(frozen=True)
class AuthResult:
    account: Account
    access_token: str
    refresh_token: str


def _coerce_role(role) -> Role:
    if role is None:
        return Role.CUSTOMER
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        raise InvalidInput(f"role must be one of {Role.values()}")


def _check_password_length(password: str, field: str = "password") -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"{field} must be at least {MIN_PASSWORD_LENGTH} characters long")


class AuthService:
    def __init__(
        self,
        storage,
        accounts: AccountStore,
        ledger: RefreshTokenLedger,
        codec: TokenCodec,
        hasher: PasswordHasher,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._storage = storage
        self.accounts = accounts
        self.ledger = ledger
        self.codec = codec
        self.hasher = hasher
        self._clock = clock

    # -- token generation ---------------------------------------------------

    @staticmethod
    def claims_for(account: Account) -> dict:
        return {"sub": account.id, "email": account.email, "role": account.role.value}

    def _issue_tokens(self, account: Account) -> TokenPair:
        pair = self.codec.create_pair(self.claims_for(account))
        self.ledger.issue(account.id, pair.refresh_token, pair.refresh_expires_at, created_at=self._clock())
        return pair

    # -- operations ---------------------------------------------------------

    def register(self, email: str, password: str, full_name: str,
                 phone: Optional[str] = None, role=None) -> AuthResult:
        _check_password_length(password)
        role = _coerce_role(role)
        # Hash outside the transaction
        password_hash = self.hasher.hash(password)
        try:
            with self._storage.transaction():
                if self.accounts.email_exists(email):
                    raise AlreadyExists()
                account = self.accounts.add(
                    email=email,
                    password_hash=password_hash,
                    full_name=full_name,
                    phone=phone,
                    role=role,
                )
                pair = self._issue_tokens(account)
        except IntegrityError:
            # A concurrent registration won the unique index
            raise AlreadyExists()
        logger.info("Registered account %s (role=%s)", account.id, role.value)
        return AuthResult(account, pair.access_token, pair.refresh_token)

    def login(self, email: str, password: str) -> AuthResult:
        with self._storage.transaction():
            account = self.accounts.get_by_email(email or "", for_update=True)
            if account is None:
                self.hasher.burn(password or "")
                logger.warning("Login failed: unknown email")
                raise InvalidCredentials()
            if not account.is_active:
                self.hasher.burn(password or "")
                logger.warning("Login refused for deactivated account %s", account.id)
                raise AccountDeactivated()
            if not self.hasher.verify(password or "", account.password_hash):
                logger.warning("Login failed for account %s: bad password", account.id)
                raise InvalidCredentials()

            if self.hasher.needs_rehash(account.password_hash):
                self.accounts.set_password_hash(account, self.hasher.hash(password))
            self.accounts.touch_last_login(account, self._clock())
            pair = self._issue_tokens(account)
        logger.info("Account %s logged in", account.id)
        return AuthResult(account, pair.access_token, pair.refresh_token)

    def refresh(self, refresh_token: str) -> TokenPair:
        if not refresh_token:
            raise InvalidRefreshToken()
        try:
            claims = self.codec.decode(refresh_token, expected_type=REFRESH)
        except TokenError as exc:
            logger.warning("Refresh rejected: %s", exc)
            raise InvalidRefreshToken()

        now = self._clock()
        with self._storage.transaction():
            record = self.ledger.find_usable(refresh_token, now)
            if record is None or record.user_id != claims["sub"]:
                logger.warning("Refresh rejected: token not active in ledger")
                raise InvalidRefreshToken()
            account = self.accounts.get_by_id(record.user_id, for_update=True)
            if account is None or not account.is_active:
                logger.warning("Refresh rejected: owner missing or inactive")
                raise InvalidRefreshToken()
            # Only one concurrent rotation can flip the active flag
            if not self.ledger.revoke(refresh_token, now):
                logger.warning("Refresh rejected: token already rotated")
                raise InvalidRefreshToken()
            pair = self._issue_tokens(account)
        logger.info("Rotated refresh token for account %s", account.id)
        return pair

    def verify_token(self, access_token: str) -> Identity:
        if not access_token:
            raise InvalidToken()
        try:
            claims = self.codec.decode(access_token, expected_type=ACCESS)
        except TokenError as exc:
            logger.debug("Access token rejected: %s", exc)
            raise InvalidToken()

        with self._storage.transaction():
            account = self.accounts.get_by_id(claims["sub"])
            if account is None or not account.is_active:
                raise InvalidToken()
        try:
            role = Role(claims.get("role"))
        except ValueError:
            raise InvalidToken()
        return Identity(account_id=claims["sub"], email=claims.get("email"), role=role)

    def logout(self, refresh_token: str, account_id: Optional[str] = None) -> bool:
        """
        Deactivate a refresh token. Unknown or already inactive tokens are not an error.
        With account_id given, tokens owned by other accounts are left alone.
        """
        if not refresh_token:
            return False
        with self._storage.transaction():
            record = self.ledger.find(refresh_token)
            if record is None or (account_id is not None and record.user_id != account_id):
                return False
            revoked = self.ledger.revoke(refresh_token)
        if revoked:
            logger.info("Account %s logged out a session", record.user_id)
        return revoked

    def change_password(self, account_id: str, current_password: str, new_password: str) -> int:
        _check_password_length(new_password, "newPassword")
        with self._storage.transaction():
            account = self.accounts.get_by_id(account_id, for_update=True)
            if account is None:
                raise AccountNotFound()
            if not self.hasher.verify(current_password or "", account.password_hash):
                logger.warning("Password change refused for account %s", account_id)
                raise IncorrectCurrentPassword()
            self.accounts.set_password_hash(account, self.hasher.hash(new_password))
            revoked = self.ledger.revoke_all(account_id)
        logger.info("Password changed for account %s; %d session(s) revoked", account_id, revoked)
        return revoked

    # -- account administration ---------------------------------------------

    def get_account(self, account_id: str) -> Account:
        with self._storage.transaction():
            account = self.accounts.get_by_id(account_id)
        if account is None:
            raise AccountNotFound()
        return account

    def list_accounts(self, **filters):
        with self._storage.transaction():
            return self.accounts.list(**filters)

    def update_account(self, account_id: str, **fields) -> Account:
        if "role" in fields:
            fields["role"] = _coerce_role(fields["role"])
        with self._storage.transaction():
            account = self.accounts.get_by_id(account_id, for_update=True)
            if account is None:
                raise AccountNotFound()
            self.accounts.update(account, **fields)
            if fields.get("is_active") is False:
                revoked = self.ledger.revoke_all(account_id)
                logger.info("Account %s deactivated; %d session(s) revoked", account_id, revoked)
        return account
