"""
Pytest configuration and shared fixtures.
"""

import os

# Keep test runs from writing logs/ into the working directory
os.environ.setdefault("JOBMARKET_LOG_TO_FILE", "0")

from datetime import datetime
from pathlib import Path
from typing import Callable, Dict

import pytest

from jobmarket.config import Settings
from jobmarket.database import (
    Contract,
    ContractStatus,
    Job,
    Profile,
    ProfileType,
    create_db_engine,
    init_database,
    make_session_factory,
)
from jobmarket.logger import get_logger, reset_logger
from jobmarket.seed import seed_database
from jobmarket.unit_of_work import unit_of_work_factory


@pytest.fixture(autouse=True)
def quiet_logger():
    """Fresh global logger per test, no console or file output."""
    reset_logger()
    logger = get_logger(enable_console=False, enable_file=False)
    yield logger
    reset_logger()


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Create an empty ledger database in a temp directory."""
    path = tmp_path / "ledger.db"
    init_database(path)
    return path


@pytest.fixture
def engine(db_path):
    engine = create_db_engine(db_path, busy_timeout=30.0)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    """Plain session for arranging and inspecting rows."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def uow_factory(engine):
    return unit_of_work_factory(engine)


@pytest.fixture
def settings(db_path) -> Settings:
    """Settings with fast retries."""
    return Settings(db_path=db_path, max_retries=2, retry_base_delay=0.001)


@pytest.fixture
def seeded(session_factory):
    """Load the sample marketplace."""
    session = session_factory()
    seed_database(session)
    session.close()


@pytest.fixture
def make_marketplace(session_factory) -> Callable[..., Dict[str, int]]:
    """
    Build one client, one contractor, a contract and one job between them.

    Amounts are cents. Returns the created ids.
    """
    counter = [0]

    def build(client_balance: int, contractor_balance: int = 0, price: int = 20000,
              paid: bool = False) -> Dict[str, int]:
        counter[0] += 1
        n = counter[0]
        session = session_factory()
        try:
            client = Profile(first_name=f"Client{n}", last_name="Test", profession="Buyer",
                             balance=client_balance, type=ProfileType.CLIENT)
            contractor = Profile(first_name=f"Contractor{n}", last_name="Test",
                                 profession="Programmer", balance=contractor_balance,
                                 type=ProfileType.CONTRACTOR)
            session.add_all([client, contractor])
            session.flush()
            contract = Contract(terms="terms", status=ContractStatus.IN_PROGRESS,
                                client_id=client.id, contractor_id=contractor.id)
            session.add(contract)
            session.flush()
            job = Job(description="work", price=price, paid=paid,
                      payment_date=datetime.now() if paid else None,
                      contract_id=contract.id)
            session.add(job)
            session.commit()
            return {
                "client": client.id,
                "contractor": contractor.id,
                "contract": contract.id,
                "job": job.id,
            }
        finally:
            session.close()

    return build


@pytest.fixture
def balance_of(session_factory) -> Callable[[int], int]:
    """Read a profile's committed balance in cents."""

    def read(profile_id: int) -> int:
        session = session_factory()
        try:
            return session.query(Profile).filter_by(id=profile_id).one().balance
        finally:
            session.close()

    return read


@pytest.fixture
def total_balance(session_factory) -> Callable[[], int]:
    """Sum of every profile balance in cents."""

    def read() -> int:
        session = session_factory()
        try:
            return sum(p.balance for p in session.query(Profile).all())
        finally:
            session.close()

    return read
