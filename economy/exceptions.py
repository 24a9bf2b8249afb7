from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_ARGUMENT = "invalid_argument"
    INVALID_STATE = "invalid_state"
    INSUFFICIENT_FUNDS = "insufficient_funds"


class EconomyError(Exception):
    """
    Base class for every failure raised by the trading and settlement services.

    Each subclass carries a stable ``kind``; the HTTP layer maps the kind to a
    status code and never inspects the message text.
    """

    kind = None

    def __init__(self, message):
        self.message = message
        super().__init__(message)


class NotFoundError(EconomyError):
    kind = ErrorKind.NOT_FOUND


class ForbiddenError(EconomyError):
    kind = ErrorKind.FORBIDDEN


class InvalidArgumentError(EconomyError):
    kind = ErrorKind.INVALID_ARGUMENT


class InvalidStateError(EconomyError):
    kind = ErrorKind.INVALID_STATE


class InsufficientFundsError(EconomyError):
    kind = ErrorKind.INSUFFICIENT_FUNDS


class BalanceRaceError(InsufficientFundsError):
    """Raised when a balance reads negative after a debit inside the same transaction."""
