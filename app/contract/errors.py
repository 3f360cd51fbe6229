"""
Contract Error Taxonomy
Every failure of a contract call surfaces as one of these kinds
"""
from typing import Optional


class ContractError(Exception):
    """Base class for contract failures; aborts the call before commit"""

    kind = "ContractError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "detail": self.message}


class UnauthorizedCaller(ContractError):
    kind = "UnauthorizedCaller"
    status_code = 403


class InvalidArgument(ContractError):
    kind = "InvalidArgument"
    status_code = 400


class InsufficientDeposit(ContractError):
    kind = "InsufficientDeposit"
    status_code = 402


class InsufficientCredit(ContractError):
    kind = "InsufficientCredit"
    status_code = 402


class InsufficientPayment(ContractError):
    kind = "InsufficientPayment"
    status_code = 402


class QuantityOverflow(ContractError):
    kind = "QuantityOverflow"
    status_code = 400


class CapacityExceeded(ContractError):
    kind = "CapacityExceeded"
    status_code = 409


class NotFound(ContractError):
    kind = "NotFound"
    status_code = 404


class NoActiveSession(ContractError):
    kind = "NoActiveSession"
    status_code = 404


class SessionAlreadyActive(ContractError):
    kind = "SessionAlreadyActive"
    status_code = 409


class ClockInconsistency(ContractError):
    """Stored start time lies in the future; never expected in correct operation"""

    kind = "ClockInconsistency"
    status_code = 500

    def __init__(self, message: str, start_time: Optional[int] = None, now: Optional[int] = None):
        super().__init__(message)
        self.start_time = start_time
        self.now = now
