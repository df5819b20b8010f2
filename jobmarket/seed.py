"""
Sample marketplace data for local runs and tests.

Amounts are given in currency units and stored as cents.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from .database import Contract, ContractStatus, Job, Profile, ProfileType

PROFILES = [
    # id, first name, last name, profession, balance, type
    (1, "Harry", "Potter", "Wizard", "1150", ProfileType.CLIENT),
    (2, "Mr", "Robot", "Hacker", "231.11", ProfileType.CLIENT),
    (3, "John", "Snow", "Knows nothing", "451.3", ProfileType.CLIENT),
    (4, "Ash", "Kethcum", "Pokemon master", "1.3", ProfileType.CLIENT),
    (5, "John", "Lenon", "Musician", "64", ProfileType.CONTRACTOR),
    (6, "Linus", "Torvalds", "Programmer", "1214", ProfileType.CONTRACTOR),
    (7, "Alan", "Turing", "Programmer", "22", ProfileType.CONTRACTOR),
    (8, "Aragorn", "II Elessar Telcontarvalds", "Fighter", "314", ProfileType.CONTRACTOR),
]

CONTRACTS = [
    # id, status, client, contractor
    (1, ContractStatus.TERMINATED, 1, 5),
    (2, ContractStatus.IN_PROGRESS, 1, 6),
    (3, ContractStatus.IN_PROGRESS, 2, 6),
    (4, ContractStatus.IN_PROGRESS, 2, 7),
    (5, ContractStatus.NEW, 3, 8),
    (6, ContractStatus.IN_PROGRESS, 3, 7),
    (7, ContractStatus.IN_PROGRESS, 4, 7),
    (8, ContractStatus.IN_PROGRESS, 4, 6),
    (9, ContractStatus.IN_PROGRESS, 4, 8),
]

JOBS = [
    # id, price, contract, payment date (None = unpaid)
    (1, "200", 1, None),
    (2, "201", 2, None),
    (3, "202", 3, None),
    (4, "200", 4, None),
    (5, "200", 7, None),
    (6, "2020", 7, datetime(2020, 8, 15, 19, 11, 26)),
    (7, "200", 2, datetime(2020, 8, 15, 19, 11, 26)),
    (8, "200", 3, datetime(2020, 8, 15, 19, 11, 26)),
    (9, "200", 1, datetime(2020, 8, 15, 19, 11, 26)),
    (10, "200", 5, datetime(2020, 8, 17, 19, 11, 26)),
    (11, "21", 1, datetime(2020, 8, 10, 19, 11, 26)),
    (12, "21", 2, datetime(2020, 8, 15, 19, 11, 26)),
    (13, "121", 3, datetime(2020, 8, 15, 19, 11, 26)),
    (14, "1020", 3, datetime(2020, 8, 14, 23, 11, 26)),
]


def _cents(amount: str) -> int:
    return int(Decimal(amount) * 100)


def seed_database(session: Session) -> None:
    """Insert the sample profiles, contracts and jobs and commit."""
    for profile_id, first, last, profession, balance, kind in PROFILES:
        session.add(Profile(
            id=profile_id,
            first_name=first,
            last_name=last,
            profession=profession,
            balance=_cents(balance),
            type=kind,
        ))
    for contract_id, status, client_id, contractor_id in CONTRACTS:
        session.add(Contract(
            id=contract_id,
            terms="bla bla bla",
            status=status,
            client_id=client_id,
            contractor_id=contractor_id,
        ))
    session.flush()
    for job_id, price, contract_id, payment_date in JOBS:
        session.add(Job(
            id=job_id,
            description="work",
            price=_cents(price),
            paid=payment_date is not None,
            payment_date=payment_date,
            contract_id=contract_id,
        ))
    session.commit()


def reset_database(session: Session) -> None:
    """Delete all rows, jobs first."""
    session.query(Job).delete()
    session.query(Contract).delete()
    session.query(Profile).delete()
    session.commit()
