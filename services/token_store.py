"""
Persistence for refresh-token rows.
Deletes are conditional and report whether a row was actually removed, which
is what makes rotation single-use under concurrent requests.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import joinedload

from models.db_storage import DBStorage
from models.refresh_token import RefreshToken


class RefreshTokenStore:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    @property
    def session(self):
        return self.storage.get_session()

    def create(self, token_id: str, user_id: str, token: str, expires_at: datetime) -> RefreshToken:
        row = RefreshToken(id=token_id, user_id=user_id, token=token, expires_at=expires_at)
        self.storage.new(row)
        self.storage.save()
        return row

    def get(self, token_id: Optional[str]) -> Optional[RefreshToken]:
        """Row by id with its owning user loaded, or None."""
        if not token_id:
            return None
        return (
            self.session.query(RefreshToken)
            .options(joinedload(RefreshToken.user))
            .filter(RefreshToken.id == token_id)
            .first()
        )

    def delete(self, token_id: Optional[str]) -> bool:
        """Delete one row; False when there was nothing to delete."""
        if not token_id:
            return False
        deleted = (
            self.session.query(RefreshToken)
            .filter(RefreshToken.id == token_id)
            .delete()
        )
        self.storage.save()
        return deleted > 0

    def delete_all_for_user(self, user_id: str) -> int:
        deleted = (
            self.session.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id)
            .delete()
        )
        self.storage.save()
        return deleted

    def rollback(self) -> None:
        self.storage.rollback()
