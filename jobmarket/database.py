"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for profiles, contracts and jobs. Money is
stored as integer cents.
"""

import enum
from datetime import datetime
from pathlib import Path

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

Base = declarative_base()


class ProfileType(enum.Enum):
    CLIENT = "client"
    CONTRACTOR = "contractor"


class ContractStatus(enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    TERMINATED = "terminated"


class Profile(Base):
    """Client or contractor account holding a balance."""

    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_profiles_balance_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    profession = Column(String, nullable=False)
    balance = Column(BigInteger, nullable=False, default=0)  # cents
    type = Column(Enum(ProfileType), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Contract(Base):
    """Agreement binding one client profile to one contractor profile."""

    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True)
    terms = Column(Text, nullable=False)
    status = Column(Enum(ContractStatus), nullable=False, default=ContractStatus.NEW)
    client_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    contractor_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    client = relationship("Profile", foreign_keys=[client_id])
    contractor = relationship("Profile", foreign_keys=[contractor_id])
    jobs = relationship("Job", back_populates="contract")


class Job(Base):
    """Priced unit of work under a contract."""

    __tablename__ = "jobs"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_jobs_price_positive"),
        CheckConstraint(
            "(paid = 1 AND payment_date IS NOT NULL) OR (paid = 0 AND payment_date IS NULL)",
            name="ck_jobs_payment_date_iff_paid",
        ),
    )

    id = Column(Integer, primary_key=True)
    description = Column(Text, nullable=False)
    price = Column(BigInteger, nullable=False)  # cents
    paid = Column(Boolean, nullable=False, default=False)
    payment_date = Column(DateTime, nullable=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    contract = relationship("Contract", back_populates="jobs")


def _sqlite_url(db_path: Path) -> str:
    return f"sqlite:///{db_path}"


def create_db_engine(db_path: Path, busy_timeout: float = 30.0) -> Engine:
    """
    Create a SQLite engine for the ledger.

    Every transaction starts with BEGIN IMMEDIATE, so concurrent writers
    queue on the database write lock instead of failing when a reader
    tries to upgrade. Foreign keys are enforced on every connection.

    Args:
        db_path: Path to SQLite database file
        busy_timeout: Seconds a connection waits for the write lock

    Returns:
        SQLAlchemy engine
    """
    engine = create_engine(
        _sqlite_url(db_path),
        connect_args={"timeout": busy_timeout, "check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Hand transaction control to the "begin" hook below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    Base.metadata.create_all(engine)
    engine.dispose()


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_db_engine(db_path)
    Session = make_session_factory(engine)
    return Session()
