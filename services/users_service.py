"""
User lookup and management.

AuthService only reads users through find_by_email_or_phone / find_by_id and
to_response; the remaining methods back the /users endpoints.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_

from models.db_storage import DBStorage
from models.schemas.common import is_valid_email, normalize_email, normalize_phone
from models.schemas.user import UserOutSchema
from models.user import User, UserRole
from services.errors import BadRequestError, ConflictError, NotFoundError
from utils.security import hash_password

user_out_schema = UserOutSchema()


def validate_credentials_for_role(email: Optional[str], phone: Optional[str], role: UserRole) -> None:
    """Guardians are identified by phone, everyone else by email."""
    if role == UserRole.GUARDIAN:
        if not phone:
            raise BadRequestError("Phone number is required for guardian accounts")
        if email:
            raise BadRequestError("Email should not be provided for guardian accounts")
        return
    if not email:
        raise BadRequestError("Email is required for admin, supervisor, and teacher accounts")
    if phone:
        raise BadRequestError("Phone number should not be provided for admin, supervisor, and teacher accounts")
    if not is_valid_email(email):
        raise BadRequestError("Please provide a valid email address")


class UsersService:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    @property
    def session(self):
        return self.storage.get_session()

    # lookups

    def find_by_id(self, user_id: Optional[str]) -> Optional[User]:
        return self.storage.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(User.email == normalize_email(email)).first()

    def find_by_phone(self, phone: str) -> Optional[User]:
        candidates = {phone}
        normalized = normalize_phone(phone)
        if normalized:
            candidates.add(normalized)
        return self.session.query(User).filter(User.phone.in_(candidates)).first()

    def find_by_email_or_phone(self, email: Optional[str] = None, phone: Optional[str] = None) -> Optional[User]:
        conditions = []
        if email:
            conditions.append(User.email == normalize_email(email))
        if phone:
            normalized = normalize_phone(phone)
            if normalized:
                conditions.append(User.phone == normalized)
            # rows written before numbers were normalized
            conditions.append(User.phone == phone)
        if not conditions:
            return None
        return self.session.query(User).filter(or_(*conditions)).first()

    # management

    def create(self, data: Dict[str, Any]) -> User:
        role = UserRole(data["role"])
        email = normalize_email(data.get("email")) or None
        phone = data.get("phone") or None
        if phone:
            phone = normalize_phone(phone)
            if not phone:
                raise BadRequestError("Please provide a valid phone number")

        validate_credentials_for_role(email, phone, role)

        if self.find_by_email_or_phone(email, phone):
            raise ConflictError("User already exists")

        user = User(
            name=data.get("name"),
            email=email,
            phone=phone,
            role=role,
            password_hash=hash_password(data["password"]),
            is_active=data.get("is_active", True),
            is_verified=data.get("is_verified", False),
        )
        self.storage.new(user)
        self.storage.save()
        return user

    def find_all(
        self,
        page: int = 1,
        limit: int = 10,
        role: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        query = self.session.query(User)
        if role:
            query = query.filter(User.role == UserRole(role))
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(User.name.ilike(pattern), User.email.ilike(pattern), User.phone.ilike(pattern))
            )
        total = query.count()
        rows = (
            query.order_by(User.created_at.desc(), User.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return rows, total

    def find_one(self, user_id: str) -> User:
        user = self.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update(self, user_id: str, data: Dict[str, Any]) -> User:
        user = self.find_one(user_id)

        if data.get("email"):
            email = normalize_email(data["email"])
            if email != user.email and self.find_by_email(email):
                raise ConflictError("User with this email already exists")
            data = {**data, "email": email}

        if data.get("phone"):
            phone = normalize_phone(data["phone"])
            if phone != user.phone and self.find_by_phone(phone):
                raise ConflictError("User with this phone number already exists")
            data = {**data, "phone": phone}

        for field in ("name", "email", "phone", "is_active", "is_verified"):
            if field in data:
                setattr(user, field, data[field])
        self.storage.new(user)
        self.storage.save()
        return user

    def remove(self, user_id: str) -> Dict[str, Any]:
        user = self.find_one(user_id)
        snapshot = self.to_response(user)
        self.storage.delete(user)
        self.storage.save()
        return snapshot

    @staticmethod
    def to_response(user: User) -> Dict[str, Any]:
        return user_out_schema.dump(user)
