"""
RefreshTokenLedger: durable record of issued refresh tokens.

A record is usable only while is_active is true and expires_at is in the
future. Revocation is a conditional UPDATE on is_active; its affected-row count
is what decides which of two concurrent rotations of the same token wins.
"""
from __future__ import annotations

from datetime import datetime
import logging
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.orm.attributes import set_committed_value

from models.base_model import utc_now
from models.refresh_token import RefreshToken

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = 5


class RefreshTokenLedger:
    def __init__(self, storage, retention: int = DEFAULT_RETENTION):
        if retention < 1:
            raise ValueError("retention must be at least 1")
        self._storage = storage
        self.retention = retention

    @property
    def _session(self):
        return self._storage.get_session()

    def _deactivate(self, *criteria, loaded: Callable[[RefreshToken], bool]) -> int:
        """Bulk-deactivate matching active rows and mirror it onto rows already in the session."""
        result = self._session.execute(
            update(RefreshToken)
            .where(RefreshToken.is_active.is_(True), *criteria)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            for obj in list(self._session.identity_map.values()):
                if isinstance(obj, RefreshToken) and obj.is_active and loaded(obj):
                    set_committed_value(obj, "is_active", False)
        return result.rowcount

    def issue(self, account_id: str, token: str, expires_at: datetime,
              created_at: Optional[datetime] = None) -> RefreshToken:
        """Record a new active token, then prune the account down to the retention bound."""
        record = RefreshToken(
            user_id=account_id,
            token=token,
            expires_at=expires_at,
            is_active=True,
            created_at=created_at or utc_now(),
        )
        self._session.add(record)
        self._session.flush()
        self._enforce_retention(account_id, newest_id=record.id)
        return record

    def _enforce_retention(self, account_id: str, newest_id: str) -> int:
        # The record just issued always survives; ties on created_at are broken by id
        keep = {newest_id}
        keep.update(
            row.id
            for row in self._session.query(RefreshToken.id)
            .filter(
                RefreshToken.user_id == account_id,
                RefreshToken.is_active.is_(True),
                RefreshToken.id != newest_id,
            )
            .order_by(RefreshToken.created_at.desc(), RefreshToken.id.desc())
            .limit(self.retention - 1)
        )
        pruned = self._deactivate(
            RefreshToken.user_id == account_id,
            RefreshToken.id.not_in(keep),
            loaded=lambda obj: obj.user_id == account_id and obj.id not in keep,
        )
        if pruned:
            logger.debug("Pruned %d refresh token(s) for account %s", pruned, account_id)
        return pruned

    def find(self, token: str) -> Optional[RefreshToken]:
        return self._session.query(RefreshToken).filter(RefreshToken.token == token).first()

    def find_usable(self, token: str, now: Optional[datetime] = None) -> Optional[RefreshToken]:
        now = now or utc_now()
        return (
            self._session.query(RefreshToken)
            .filter(
                RefreshToken.token == token,
                RefreshToken.is_active.is_(True),
                RefreshToken.expires_at > now,
            )
            .first()
        )

    def revoke(self, token: str, now: Optional[datetime] = None) -> bool:
        """
        Deactivate one token. Returns True only for the caller that flipped it.
        With `now` given, an already-expired token is left untouched and reported as not revoked.
        """
        criteria = [RefreshToken.token == token]
        if now is not None:
            criteria.append(RefreshToken.expires_at > now)
        return self._deactivate(*criteria, loaded=lambda obj: obj.token == token) == 1

    def revoke_all(self, account_id: str) -> int:
        return self._deactivate(
            RefreshToken.user_id == account_id,
            loaded=lambda obj: obj.user_id == account_id,
        )

    def active_count(self, account_id: str) -> int:
        return (
            self._session.query(RefreshToken)
            .filter(RefreshToken.user_id == account_id, RefreshToken.is_active.is_(True))
            .count()
        )

    def active_tokens(self, account_id: str) -> list:
        return (
            self._session.query(RefreshToken)
            .filter(RefreshToken.user_id == account_id, RefreshToken.is_active.is_(True))
            .order_by(RefreshToken.created_at.desc())
            .all()
        )
