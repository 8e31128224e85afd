"""Persistence layer: SQLAlchemy models, DBStorage and the auth stores."""
from models.base_model import Base, utc_now
from models.account import Account, Role, STAFF_ROLES
from models.refresh_token import RefreshToken
from models.db_storage import DBStorage
from models.account_store import AccountStore
from models.token_ledger import RefreshTokenLedger

__all__ = [
    "Base",
    "utc_now",
    "Account",
    "Role",
    "STAFF_ROLES",
    "RefreshToken",
    "DBStorage",
    "AccountStore",
    "RefreshTokenLedger",
]
