"""
Unit-of-work scope shared by every repository.

One ``with managed_session(...)`` block is one database transaction: an
order with its items, an edit with its history row, or a single update.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Generator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from flamex_pos.infrastructure.database.operations import get_session

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


@contextmanager
def managed_session(
    session_factory: Optional[SessionFactory] = None,
) -> Generator[Session, None, None]:
    """
    Open a session from ``session_factory`` (the global manager when omitted)
    and commit when the block exits cleanly.

    Any exception rolls the whole block back and propagates unchanged, so a
    domain error raised mid-block (an occupied table caught at flush, a
    rejected edit) leaves no partial rows. Database errors are logged here
    before they reach the service layer.
    """
    session = (session_factory or get_session)()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        logger.error("💥 TRANSACTION ROLLED BACK: %s", e)
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
