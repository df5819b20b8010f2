"""
Job payment workflow.

Pays an unpaid job from its contract's client to its contractor. The
balance transfer and the paid flag are written in one unit of work.
"""

from datetime import datetime
from typing import Optional

from .config import Settings
from .errors import AlreadyPaid, InsufficientBalance, JobNotFound, Outcome
from .transfer import TransferEngine
from .unit_of_work import UnitOfWorkFactory
from .workflow import Workflow


class JobPaymentWorkflow(Workflow):
    operation = "pay_job"

    def __init__(self, uow_factory: UnitOfWorkFactory, settings: Optional[Settings] = None):
        super().__init__(uow_factory, settings)
        self.transfers = TransferEngine(uow_factory, self.settings)

    def pay_job(self, job_id: int, paying_profile_id: int) -> Outcome:
        """
        Pay job `job_id` on behalf of client `paying_profile_id`.

        Returns:
            Outcome: ok, or NOT_FOUND / ALREADY_PAID / INSUFFICIENT_BALANCE /
            INTERNAL. A job on someone else's contract is NOT_FOUND.
        """

        def attempt():
            with self.uow_factory() as uow:
                job = uow.ledger.find_job_with_contract_and_profiles(job_id, paying_profile_id)
                if job is None:
                    raise JobNotFound(f"Job {job_id} not found")
                if job.paid:
                    raise AlreadyPaid(f"Job {job_id} already paid")

                client = job.contract.client
                contractor = job.contract.contractor
                if client.balance < job.price:
                    raise InsufficientBalance(
                        f"Balance {client.balance} below job price {job.price}"
                    )

                # Conditional on paid = false: a payment that committed after
                # our read makes this a no-op.
                if not uow.ledger.mark_job_paid(job.id, datetime.now()):
                    raise AlreadyPaid(f"Job {job_id} already paid")
                self.transfers.transfer_within(uow, client.id, contractor.id, job.price)

        return self._execute(attempt, job_id=job_id, profile_id=paying_profile_id)
