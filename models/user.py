from enum import Enum

from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from models.base_model import Base, BaseModel


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    SUPERVISOR = "SUPERVISOR"
    TEACHER = "TEACHER"
    GUARDIAN = "GUARDIAN"


class User(BaseModel, Base):
    __tablename__ = "users"

    name = Column(String(255), nullable=True)
    # Guardians sign in with a phone number, staff with an email
    email = Column(String(255), nullable=True, unique=True, index=True)
    phone = Column(String(32), nullable=True, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(UserRole, name="user_role", native_enum=False), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
