"""
SQLAlchemy Business Info Repository
"""

import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from flamex_pos.infrastructure.database.models import BusinessInfo
from flamex_pos.infrastructure.repositories.serializers import business_info_to_dict
from flamex_pos.infrastructure.repositories.session_handler import (
    SessionFactory,
    managed_session,
)
from flamex_pos.infrastructure.utilities.exceptions import ConflictError


class SQLAlchemyBusinessInfoRepository:
    """Key/value settings store"""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory
        self._logger = logging.getLogger(self.__class__.__name__)

    def _session(self):
        return managed_session(self._session_factory)

    def find_all(self) -> list[dict[str, Any]]:
        with self._session() as session:
            rows = session.scalars(select(BusinessInfo).order_by(BusinessInfo.key)).all()
            return [business_info_to_dict(r) for r in rows]

    def find_by_key(self, key: str) -> Optional[dict[str, Any]]:
        with self._session() as session:
            row = session.scalar(select(BusinessInfo).where(BusinessInfo.key == key))
            return business_info_to_dict(row) if row else None

    def create(self, key: str, value: str) -> dict[str, Any]:
        with self._session() as session:
            row = BusinessInfo(key=key, value=value)
            session.add(row)
            try:
                session.flush()
            except IntegrityError as e:
                raise ConflictError(
                    f"Business info with key '{key}' already exists", field="key"
                ) from e
            return business_info_to_dict(row)

    def update(self, key: str, value: str) -> Optional[dict[str, Any]]:
        with self._session() as session:
            row = session.scalar(select(BusinessInfo).where(BusinessInfo.key == key))
            if not row:
                return None
            row.value = value
            session.flush()
            return business_info_to_dict(row)

    def delete(self, key: str) -> bool:
        with self._session() as session:
            row = session.scalar(select(BusinessInfo).where(BusinessInfo.key == key))
            if not row:
                return False
            session.delete(row)
        return True

    def upsert(self, key: str, value: str) -> dict[str, Any]:
        with self._session() as session:
            row = session.scalar(select(BusinessInfo).where(BusinessInfo.key == key))
            if row:
                row.value = value
            else:
                row = BusinessInfo(key=key, value=value)
                session.add(row)
            session.flush()
            self._logger.info("⚙️ SETTING SAVED: %s", key)
            return business_info_to_dict(row)
