"""
User Service

Back-office accounts. Passwords are stored as bcrypt hashes and never
returned by any read.
"""

import logging
from typing import Any, Optional

import bcrypt

from flamex_pos.application.dtos.order_dtos import parse_enum
from flamex_pos.config import get_config
from flamex_pos.infrastructure.repositories.sqlalchemy_user_repository import (
    SQLAlchemyUserRepository,
)
from flamex_pos.infrastructure.utilities.constants import UserRole, UserStatus
from flamex_pos.infrastructure.utilities.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)

USER_FIELDS = ("username", "password", "full_name", "role", "email", "phone", "status")


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=get_config().bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


class UserService:
    def __init__(self, user_repository: SQLAlchemyUserRepository):
        self._user_repository = user_repository
        self._logger = logging.getLogger(self.__class__.__name__)

    def get_users(self) -> list[dict[str, Any]]:
        return self._user_repository.find_users()

    def get_user_by_id(self, user_id: int) -> dict[str, Any]:
        user = self._user_repository.find_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found", resource="user")
        return user

    def create_user(self, data: dict[str, Any]) -> dict[str, Any]:
        data = {key: data[key] for key in USER_FIELDS if data.get(key) is not None}
        for required in ("username", "password", "full_name"):
            if not data.get(required):
                raise ValidationError(f"{required} is required", field=required)

        data["username"] = data["username"].strip()
        data["role"] = parse_enum(UserRole, data.get("role") or UserRole.MANAGER.value, "role")
        if self._user_repository.find_user_by_username(data["username"]):
            raise ConflictError("Username already exists", field="username")

        data["password"] = hash_password(data["password"])
        data["status"] = UserStatus.ACTIVE.value
        user = self._user_repository.create_user(data)
        self._logger.info("✅ USER CREATED: %s (%s)", user["username"], user["role"])
        return user

    def update_user(self, user_id: int, data: dict[str, Any]) -> dict[str, Any]:
        """Update profile fields; a new password is re-hashed"""
        self.get_user_by_id(user_id)
        changes = {
            key: data[key] for key in USER_FIELDS if key != "username" and data.get(key) is not None
        }
        if "role" in changes:
            changes["role"] = parse_enum(UserRole, changes["role"], "role")
        if "status" in changes:
            changes["status"] = parse_enum(UserStatus, changes["status"], "status")
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])

        updated = self._user_repository.update_user(user_id, changes)
        if updated is None:
            raise NotFoundError("User not found", resource="user")
        return updated

    def delete_user(self, user_id: int) -> bool:
        user = self.get_user_by_id(user_id)
        if (
            user["role"] == UserRole.ADMIN.value
            and user["status"] == UserStatus.ACTIVE.value
            and self._user_repository.count_active_admins() <= 1
        ):
            raise ValidationError("Cannot delete the last admin user")
        return self._user_repository.delete_user(user_id)

    def deactivate_user(self, user_id: int) -> dict[str, Any]:
        self.get_user_by_id(user_id)
        return self._user_repository.update_user(user_id, {"status": UserStatus.INACTIVE.value})

    def verify_credentials(self, username: str, password: str) -> Optional[dict[str, Any]]:
        """The active user matching ``username`` and ``password``, else None"""
        user = self._user_repository.find_credentials(username.strip())
        if not user or user["status"] != UserStatus.ACTIVE.value:
            self._logger.warning("🔒 LOGIN REJECTED: %s", username)
            return None
        if not verify_password(password, user.pop("password")):
            self._logger.warning("🔒 LOGIN REJECTED: %s", username)
            return None
        return user
