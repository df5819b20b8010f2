"""
Error taxonomy for the payment workflows.

Expected precondition failures are raised as MarketplaceError subclasses
inside a unit of work, so the transaction rolls back, and are turned into
an Outcome at the workflow boundary. Callers only ever see Outcome.
"""

import enum
from dataclasses import dataclass
from typing import Optional


class ErrorKind(enum.Enum):
    NOT_FOUND = "not_found"
    ALREADY_PAID = "already_paid"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    SELF_DEPOSIT_FORBIDDEN = "self_deposit_forbidden"
    INVALID_AMOUNT = "invalid_amount"
    DEPOSIT_EXCEEDS_CAP = "deposit_exceeds_cap"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ALREADY_PAID: 409,
    ErrorKind.INSUFFICIENT_BALANCE: 400,
    ErrorKind.SELF_DEPOSIT_FORBIDDEN: 400,
    ErrorKind.INVALID_AMOUNT: 400,
    ErrorKind.DEPOSIT_EXCEEDS_CAP: 400,
    ErrorKind.INTERNAL: 500,
}


class MarketplaceError(Exception):
    """Base class for expected failures. Subclasses set `kind`."""

    kind = ErrorKind.INTERNAL


class JobNotFound(MarketplaceError):
    """Job missing, or the caller is not the client on its contract."""

    kind = ErrorKind.NOT_FOUND


class ProfileNotFound(MarketplaceError):
    kind = ErrorKind.NOT_FOUND


class AlreadyPaid(MarketplaceError):
    kind = ErrorKind.ALREADY_PAID


class TransferError(MarketplaceError):
    """Failure raised by the transfer engine."""


class InsufficientBalance(TransferError):
    kind = ErrorKind.INSUFFICIENT_BALANCE


class InvalidAmount(TransferError):
    kind = ErrorKind.INVALID_AMOUNT


class SelfDepositForbidden(MarketplaceError):
    kind = ErrorKind.SELF_DEPOSIT_FORBIDDEN


class DepositExceedsCap(MarketplaceError):
    kind = ErrorKind.DEPOSIT_EXCEEDS_CAP


@dataclass(frozen=True)
class Outcome:
    """Result of a workflow call: success, or exactly one error kind."""

    error: Optional[ErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> int:
        return 200 if self.error is None else self.error.status_code

    @classmethod
    def success(cls) -> "Outcome":
        return cls()

    @classmethod
    def failure(cls, kind: ErrorKind, message: str = "") -> "Outcome":
        return cls(error=kind, message=message)
