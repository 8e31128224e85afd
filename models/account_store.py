"""
AccountStore: the narrow query surface the auth core needs over the accounts
table. All lookups go through bound parameters; nothing here commits, the
caller decides the transaction boundary via DBStorage.transaction().
"""
from __future__ import annotations

from typing import Optional, Tuple

from sqlalchemy import func, or_

from models.account import Account, Role
from models.base_model import utc_now


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountStore:
    def __init__(self, storage):
        self._storage = storage

    @property
    def _session(self):
        return self._storage.get_session()

    def get_by_email(self, email: str, for_update: bool = False) -> Optional[Account]:
        query = self._session.query(Account).filter(func.lower(Account.email) == normalize_email(email))
        if for_update:
            query = query.with_for_update()
        return query.first()

    def get_by_id(self, account_id: str, for_update: bool = False) -> Optional[Account]:
        """
        Fetch an account by id. With for_update the row stays locked until the
        transaction ends, so session-changing operations on one account run one at a time.
        """
        if not account_id:
            return None
        return self._session.get(
            Account, account_id,
            with_for_update=True if for_update else None,
            populate_existing=for_update,
        )

    def email_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def add(self, *, email: str, password_hash: str, full_name: str,
            phone: str | None = None, role: Role = Role.CUSTOMER) -> Account:
        account = Account(
            email=normalize_email(email),
            password_hash=password_hash,
            full_name=full_name,
            phone=phone,
            role=role,
            is_active=True,
            is_email_verified=False,
        )
        self._session.add(account)
        # Flush so unique-constraint violations surface inside the caller's transaction
        self._session.flush()
        return account

    def touch_last_login(self, account: Account, when=None) -> None:
        account.last_login_at = when or utc_now()

    def set_password_hash(self, account: Account, password_hash: str) -> None:
        account.password_hash = password_hash

    def update(self, account: Account, **fields) -> Account:
        """Apply profile/admin fields (full_name, phone, role, is_active)."""
        for key in ("full_name", "phone", "role", "is_active"):
            if key in fields:
                setattr(account, key, fields[key])
        self._session.flush()
        return account

    def list(self, *, page: int = 1, limit: int = 20, role: Role | None = None,
             is_active: bool | None = None, search: str | None = None,
             descending: bool = True) -> Tuple[list, int]:
        query = self._session.query(Account)
        if role is not None:
            query = query.filter(Account.role == role)
        if is_active is not None:
            query = query.filter(Account.is_active.is_(is_active))
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(func.lower(Account.email).like(pattern), func.lower(Account.full_name).like(pattern))
            )
        total = query.count()
        order = Account.created_at.desc() if descending else Account.created_at.asc()
        rows = query.order_by(order).offset((page - 1) * limit).limit(limit).all()
        return rows, total
