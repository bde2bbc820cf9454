"""
SQLAlchemy User Repository

Password hashes are only ever returned by ``find_credentials``.
"""

import logging
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from flamex_pos.infrastructure.database.models import User
from flamex_pos.infrastructure.repositories.serializers import user_to_dict
from flamex_pos.infrastructure.repositories.session_handler import (
    SessionFactory,
    managed_session,
)
from flamex_pos.infrastructure.utilities.constants import UserRole, UserStatus
from flamex_pos.infrastructure.utilities.exceptions import ConflictError


class SQLAlchemyUserRepository:
    """SQLAlchemy implementation of the user repository"""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory
        self._logger = logging.getLogger(self.__class__.__name__)

    def _session(self):
        return managed_session(self._session_factory)

    def find_users(self) -> list[dict[str, Any]]:
        with self._session() as session:
            users = session.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())).all()
            return [user_to_dict(u) for u in users]

    def find_user_by_id(self, user_id: int) -> Optional[dict[str, Any]]:
        with self._session() as session:
            user = session.get(User, user_id)
            return user_to_dict(user) if user else None

    def find_user_by_username(self, username: str) -> Optional[dict[str, Any]]:
        """Case-insensitive username lookup"""
        with self._session() as session:
            user = session.scalar(select(User).where(func.lower(User.username) == username.lower()))
            return user_to_dict(user) if user else None

    def find_credentials(self, username: str) -> Optional[dict[str, Any]]:
        with self._session() as session:
            user = session.scalar(select(User).where(func.lower(User.username) == username.lower()))
            if not user:
                return None
            result = user_to_dict(user)
            result["password"] = user.password
            return result

    def create_user(self, data: dict[str, Any]) -> dict[str, Any]:
        self._logger.info("🔐 CREATE USER: %s", data.get("username"))
        with self._session() as session:
            user = User(**data)
            session.add(user)
            try:
                session.flush()
            except IntegrityError as e:
                raise ConflictError("Username already exists", field="username") from e
            return user_to_dict(user)

    def update_user(self, user_id: int, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        with self._session() as session:
            user = session.get(User, user_id)
            if not user:
                return None
            for key, value in data.items():
                setattr(user, key, value)
            session.flush()
            return user_to_dict(user)

    def delete_user(self, user_id: int) -> bool:
        with self._session() as session:
            user = session.get(User, user_id)
            if not user:
                return False
            session.delete(user)
        return True

    def count_active_admins(self) -> int:
        with self._session() as session:
            return session.scalar(
                select(func.count(User.id)).where(
                    User.role == UserRole.ADMIN.value, User.status == UserStatus.ACTIVE.value
                )
            ) or 0
