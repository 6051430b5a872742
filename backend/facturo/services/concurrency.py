"""Optimistic-lock retry helper for invoice writes."""

import logging
from typing import Callable, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from backend.facturo.core.errors import ConcurrentUpdateError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_retry(db: Session, operation: Callable[[], T], *, attempts: int = 3) -> T:
    """
    Run ``operation`` and commit, starting over from a fresh read when the
    versioned UPDATE matched no row because another request committed first.

    ``operation`` must load the rows it changes itself so every attempt sees
    the latest committed state.
    """
    for attempt in range(1, attempts + 1):
        try:
            result = operation()
            db.commit()
            return result
        except StaleDataError:
            db.rollback()
            logger.warning("Concurrent invoice update detected (attempt %s/%s)", attempt, attempts)
    raise ConcurrentUpdateError("The invoice was modified concurrently, please retry")
