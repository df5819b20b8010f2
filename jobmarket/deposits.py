"""
Deposit workflow.

A client may move money to another profile, capped at a percentage of the
client's outstanding unpaid job total. The cap is computed inside the same
unit of work as the transfer, so a job payment committing in between
cannot leave the deposit validated against a stale total.
"""

from typing import Any, Optional

from .config import Settings
from .errors import DepositExceedsCap, Outcome, ProfileNotFound, SelfDepositForbidden
from .money import deposit_cap, format_cents, to_cents
from .transfer import TransferEngine
from .unit_of_work import UnitOfWorkFactory
from .workflow import Workflow


class DepositWorkflow(Workflow):
    operation = "deposit"

    def __init__(self, uow_factory: UnitOfWorkFactory, settings: Optional[Settings] = None):
        super().__init__(uow_factory, settings)
        self.transfers = TransferEngine(uow_factory, self.settings)

    def deposit(self, payer_id: int, beneficiary_id: int, amount: Any) -> Outcome:
        """
        Deposit `amount` (currency units, e.g. "25.00") from payer to beneficiary.

        Returns:
            Outcome: ok, or SELF_DEPOSIT_FORBIDDEN / INVALID_AMOUNT /
            DEPOSIT_EXCEEDS_CAP / NOT_FOUND / INSUFFICIENT_BALANCE / INTERNAL
        """

        def attempt():
            if payer_id == beneficiary_id:
                raise SelfDepositForbidden("Cannot deposit to yourself")
            cents = to_cents(amount)

            with self.uow_factory() as uow:
                if uow.ledger.get_profile(payer_id) is None:
                    raise ProfileNotFound(f"Profile {payer_id} not found")
                outstanding = uow.ledger.sum_unpaid_job_prices(payer_id)
                cap = deposit_cap(outstanding, self.settings.deposit_cap_percent)
                if cents > cap:
                    raise DepositExceedsCap(
                        f"Cannot deposit more than {self.settings.deposit_cap_percent}% "
                        f"of unpaid jobs total ({format_cents(cap)})"
                    )
                self.transfers.transfer_within(uow, payer_id, beneficiary_id, cents)

        return self._execute(
            attempt, payer_id=payer_id, beneficiary_id=beneficiary_id, amount=str(amount)
        )
