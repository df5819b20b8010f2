"""
Unit of work: one database transaction, committed or rolled back as a whole.

    with uow_factory() as uow:
        uow.ledger.debit(...)
        uow.ledger.credit(...)

Leaving the block normally commits. Any exception rolls back every write
made through `uow.ledger` and propagates.
"""

from typing import Callable, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .database import make_session_factory
from .repository import SqlAlchemyLedgerRepository


class UnitOfWork:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self.session: Optional[Session] = None
        self.ledger: Optional[SqlAlchemyLedgerRepository] = None

    def __enter__(self) -> "UnitOfWork":
        if self.session is not None:
            raise RuntimeError("UnitOfWork is not reentrant")
        self.session = self._session_factory()
        self.ledger = SqlAlchemyLedgerRepository(self.session)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc_type is None:
                self.session.commit()
            else:
                self.session.rollback()
        finally:
            self.session.close()
            self.session = None
            self.ledger = None
        return False

    @property
    def active(self) -> bool:
        return self.session is not None


UnitOfWorkFactory = Callable[[], UnitOfWork]


def unit_of_work_factory(engine: Engine) -> UnitOfWorkFactory:
    """Return a callable producing fresh units of work bound to `engine`."""
    session_factory = make_session_factory(engine)

    def factory() -> UnitOfWork:
        return UnitOfWork(session_factory)

    return factory
