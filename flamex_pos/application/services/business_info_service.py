"""
Business Info Service

Key/value business settings (name, address, receipt footer...).
"""

from typing import Any

from flamex_pos.config import get_config
from flamex_pos.infrastructure.repositories.sqlalchemy_business_info_repository import (
    SQLAlchemyBusinessInfoRepository,
)
from flamex_pos.infrastructure.utilities.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)


class BusinessInfoService:
    def __init__(self, business_info_repository: SQLAlchemyBusinessInfoRepository):
        self._repository = business_info_repository

    def get_all_business_info(self) -> list[dict[str, Any]]:
        return self._repository.find_all()

    def get_business_info_by_key(self, key: str) -> dict[str, Any]:
        info = self._repository.find_by_key(key)
        if not info:
            raise NotFoundError("Business info not found", resource="business_info")
        return info

    def create_business_info(self, key: str, value: str) -> dict[str, Any]:
        key = (key or "").strip()
        if not key:
            raise ValidationError("key is required", field="key")
        if self._repository.find_by_key(key):
            raise ConflictError(f"Business info with key '{key}' already exists", field="key")
        return self._repository.create(key, value)

    def update_business_info(self, key: str, value: str) -> dict[str, Any]:
        updated = self._repository.update(key, value)
        if updated is None:
            raise NotFoundError("Business info not found", resource="business_info")
        return updated

    def delete_business_info(self, key: str) -> bool:
        self.get_business_info_by_key(key)
        if key in get_config().critical_business_keys:
            raise ValidationError("Cannot delete critical business info", field="key")
        return self._repository.delete(key)

    def get_all_settings(self) -> dict[str, str]:
        return {info["key"]: info["value"] for info in self._repository.find_all()}

    def upsert_setting(self, key: str, value: str) -> dict[str, Any]:
        if not key or not key.strip():
            raise ValidationError("key is required", field="key")
        return self._repository.upsert(key.strip(), value)
