"""
Transfer engine: move cents from one profile's balance to another's.

The debit is a conditional UPDATE (`balance >= amount`) evaluated by the
database under the transaction's lock, so two concurrent transfers from
the same profile can never both pass a stale balance check.
"""

from .errors import InsufficientBalance, InvalidAmount, Outcome, ProfileNotFound
from .money import MAX_CENTS
from .unit_of_work import UnitOfWork
from .workflow import Workflow


class TransferEngine(Workflow):
    operation = "transfer"

    def transfer(self, from_id: int, to_id: int, amount: int) -> Outcome:
        """Transfer `amount` cents in a unit of work of its own."""

        def attempt():
            with self.uow_factory() as uow:
                self.transfer_within(uow, from_id, to_id, amount)

        return self._execute(attempt, from_id=from_id, to_id=to_id, amount=amount)

    def transfer_within(self, uow: UnitOfWork, from_id: int, to_id: int, amount: int) -> None:
        """
        Transfer `amount` cents inside a caller's unit of work.

        Nothing is committed here. On failure an exception is raised and the
        caller's unit of work rolls back every write made so far, including
        its own.

        Raises:
            InvalidAmount: amount is not a positive integer number of cents
                no larger than MAX_CENTS
            ProfileNotFound: either profile does not exist
            InsufficientBalance: the debit would make the balance negative
        """
        if not uow.active:
            raise RuntimeError("transfer_within requires an open unit of work")
        if (isinstance(amount, bool) or not isinstance(amount, int)
                or amount <= 0 or amount > MAX_CENTS):
            raise InvalidAmount(f"Transfer amount must be positive cents: {amount!r}")

        found = {p.id for p in uow.ledger.lock_profiles([from_id, to_id])}
        for profile_id in (from_id, to_id):
            if profile_id not in found:
                raise ProfileNotFound(f"Profile {profile_id} not found")

        if not uow.ledger.debit(from_id, amount):
            raise InsufficientBalance(f"Profile {from_id} cannot cover {amount} cents")
        uow.ledger.credit(to_id, amount)
