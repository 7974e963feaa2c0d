from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from sqlalchemy.orm import Session

from queryspec.db.session import SessionLocal

R = TypeVar("R")

_LOG = logging.getLogger("queryspec.uow")


class UnitOfWork:
    """Transaction boundary that hands its session to the caller.

    Repositories never hold a connection; whatever runs inside the scope passes
    the yielded session to each repository call.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except Exception as exc:
            db.rollback()
            _LOG.warning("transaction rolled back error=%s", type(exc).__name__)
            raise
        finally:
            db.close()

    def run_in_transaction(self, callback: Callable[[Session], R]) -> R:
        with self.transaction() as db:
            return callback(db)
