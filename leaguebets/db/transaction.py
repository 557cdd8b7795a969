"""Serializable transaction scope used by the evaluation wrappers."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

SERIALIZATION_FAILURE_SQLSTATE = "40001"


class SerializationConflict(Exception):
    """The store aborted a SERIALIZABLE transaction; retrying may succeed."""


def is_serialization_failure(exc: DBAPIError) -> bool:
    """Return ``True`` when ``exc`` signals a retryable concurrency conflict.

    PostgreSQL reports SQLSTATE ``40001``; SQLite surfaces writer contention
    as ``database is locked``.
    """

    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == SERIALIZATION_FAILURE_SQLSTATE:
        return True
    message = str(orig if orig is not None else exc).lower()
    return "could not serialize access" in message or "database is locked" in message


@contextmanager
def serializable_transaction(session_factory: sessionmaker) -> Iterator[Session]:
    """Yield a session whose work commits atomically at SERIALIZABLE isolation.

    The whole block is one transaction: any exception rolls back every write
    made through the yielded session. Serialization failures raised by the
    store are re-raised as :class:`SerializationConflict`.
    """

    session = session_factory()
    try:
        session.connection(execution_options={"isolation_level": "SERIALIZABLE"})
        yield session
        session.commit()
    except DBAPIError as exc:
        session.rollback()
        if is_serialization_failure(exc):
            logger.warning("Serialization conflict, transaction rolled back: %s", exc)
            raise SerializationConflict(str(exc.orig or exc)) from exc
        raise
    except BaseException:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "SerializationConflict",
    "is_serialization_failure",
    "serializable_transaction",
]

