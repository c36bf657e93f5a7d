from __future__ import annotations
"""Unit-of-work helpers shared by the group services.

``atomic`` commits once at the end of the block and rolls back on any
exception. Database errors surface as ``StorageFailure``; engine errors
(AccessDenied, NotFound, ...) propagate unchanged. ``StaleDataError`` is
re-raised as-is so ``with_retries`` can replay the whole unit.
"""
import logging
from contextlib import contextmanager
from typing import Callable, TypeVar
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from shopauthz.errors import StorageFailure

log = logging.getLogger(__name__)

T = TypeVar('T')


@contextmanager
def atomic(session):
    try:
        yield session
        session.commit()
    except StaleDataError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        log.error('storage failure: %s', e)
        raise StorageFailure(f'Storage failure: {e.__class__.__name__}') from e
    except Exception:
        session.rollback()
        raise


def with_retries(unit: Callable[[], T], attempts: int, label: str) -> T:
    """Run ``unit`` until it completes without a concurrent-write conflict.

    ``unit`` must be a full recompute-and-overwrite so replaying it is safe.
    """
    for attempt in range(1, attempts + 1):
        try:
            return unit()
        except StaleDataError as e:
            if attempt >= attempts:
                log.error('%s: concurrent update conflict, giving up after %d attempts', label, attempt)
                raise StorageFailure(f'{label}: concurrent update conflict') from e
            log.warning('%s: concurrent update conflict (attempt %d/%d), retrying', label, attempt, attempts)
    raise StorageFailure(f'{label}: no attempts allowed')


__all__ = ['atomic', 'with_retries']
