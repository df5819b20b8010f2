"""
Ledger repository.

Responsibilities:
- Read profiles, contracts and jobs for the workflows.
- Apply balance and paid-flag mutations as conditional updates.

Non-Responsibilities:
- No commit or rollback; the owning unit of work decides.
- No policy decisions (caps, authorization beyond the lookup filters).

Invariant:
Balance writes are single UPDATE statements evaluated by the database,
never a value read into Python and written back.
"""

import abc
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from .database import Contract, ContractStatus, Job, Profile


class LedgerRepository(abc.ABC):
    """Read/write contract the workflows depend on."""

    @abc.abstractmethod
    def get_profile(self, profile_id: int) -> Optional[Profile]:
        ...

    @abc.abstractmethod
    def find_job_with_contract_and_profiles(self, job_id: int, client_id: int) -> Optional[Job]:
        ...

    @abc.abstractmethod
    def sum_unpaid_job_prices(self, client_id: int) -> int:
        ...

    @abc.abstractmethod
    def lock_profiles(self, profile_ids: Iterable[int]) -> List[Profile]:
        ...

    @abc.abstractmethod
    def debit(self, profile_id: int, amount: int) -> bool:
        ...

    @abc.abstractmethod
    def credit(self, profile_id: int, amount: int) -> bool:
        ...

    @abc.abstractmethod
    def mark_job_paid(self, job_id: int, when: datetime) -> bool:
        ...


class SqlAlchemyLedgerRepository(LedgerRepository):
    """LedgerRepository over a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    def get_profile(self, profile_id: int) -> Optional[Profile]:
        return self.session.query(Profile).filter_by(id=profile_id).first()

    def find_job_with_contract_and_profiles(self, job_id: int, client_id: int) -> Optional[Job]:
        """
        Load a job with its contract and both parties.

        Only jobs whose contract client is `client_id` match, so a caller
        who is not the paying client gets None, same as a missing job.
        """
        return (
            self.session.query(Job)
            .join(Job.contract)
            .options(
                joinedload(Job.contract).joinedload(Contract.client),
                joinedload(Job.contract).joinedload(Contract.contractor),
            )
            .filter(Job.id == job_id, Contract.client_id == client_id)
            .first()
        )

    def sum_unpaid_job_prices(self, client_id: int) -> int:
        total = (
            self.session.query(func.coalesce(func.sum(Job.price), 0))
            .select_from(Job)
            .join(Job.contract)
            .filter(Contract.client_id == client_id, Job.paid.is_(False))
            .scalar()
        )
        return int(total)

    def lock_profiles(self, profile_ids: Iterable[int]) -> List[Profile]:
        """
        Lock the given profile rows in id order.

        Ordering keeps two transfers over the same pair from deadlocking on
        databases with row locks. SQLite ignores FOR UPDATE; there the
        BEGIN IMMEDIATE write lock already serializes writers.
        """
        ids = sorted(set(profile_ids))
        return (
            self.session.query(Profile)
            .filter(Profile.id.in_(ids))
            .order_by(Profile.id)
            .with_for_update()
            .all()
        )

    def debit(self, profile_id: int, amount: int) -> bool:
        """Subtract `amount` cents unless that would go below zero. Returns False if refused."""
        updated = (
            self.session.query(Profile)
            .filter(Profile.id == profile_id, Profile.balance >= amount)
            .update(
                {Profile.balance: Profile.balance - amount, Profile.updated_at: datetime.now()},
                synchronize_session=False,
            )
        )
        return updated == 1

    def credit(self, profile_id: int, amount: int) -> bool:
        updated = (
            self.session.query(Profile)
            .filter(Profile.id == profile_id)
            .update(
                {Profile.balance: Profile.balance + amount, Profile.updated_at: datetime.now()},
                synchronize_session=False,
            )
        )
        return updated == 1

    def mark_job_paid(self, job_id: int, when: datetime) -> bool:
        """Flip an unpaid job to paid. Returns False if it was already paid."""
        updated = (
            self.session.query(Job)
            .filter(Job.id == job_id, Job.paid.is_(False))
            .update(
                {Job.paid: True, Job.payment_date: when, Job.updated_at: when},
                synchronize_session=False,
            )
        )
        return updated == 1

    # Read-only listings

    def get_contract_for_profile(self, contract_id: int, profile_id: int) -> Optional[Contract]:
        return (
            self.session.query(Contract)
            .filter(
                Contract.id == contract_id,
                or_(Contract.client_id == profile_id, Contract.contractor_id == profile_id),
            )
            .first()
        )

    def list_active_contracts(self, profile_id: int) -> List[Contract]:
        return (
            self.session.query(Contract)
            .filter(
                or_(Contract.client_id == profile_id, Contract.contractor_id == profile_id),
                Contract.status != ContractStatus.TERMINATED,
            )
            .order_by(Contract.id)
            .all()
        )

    def list_unpaid_jobs(self, profile_id: int) -> List[Job]:
        return (
            self.session.query(Job)
            .join(Job.contract)
            .filter(
                or_(Contract.client_id == profile_id, Contract.contractor_id == profile_id),
                Contract.status != ContractStatus.TERMINATED,
                Job.paid.is_(False),
            )
            .order_by(Job.id)
            .all()
        )
