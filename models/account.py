"""
Account model: the identity record every token is issued against.

Emails are stored case-folded so the unique index enforces case-insensitive
uniqueness. Accounts are deactivated, never deleted, by the auth core.
"""
import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, String
from sqlalchemy.orm import relationship

from models.base_model import Base, BaseModel


class Role(str, enum.Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
    STAFF = "staff"
    ADMIN = "admin"

    @classmethod
    def values(cls) -> list[str]:
        return [r.value for r in cls]


STAFF_ROLES = frozenset({Role.STAFF, Role.ADMIN})


class Account(BaseModel, Base):
    __tablename__ = "accounts"

    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(
        Enum(Role, name="account_role", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Role.CUSTOMER,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    last_login_at = Column(DateTime, nullable=True)

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def __repr__(self):
        return f"<Account {self.email} role={self.role.value if self.role else None}>"
