"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInstallmentRequestError(DomainException):
    """Installment calculator input is out of range (term, amounts or rounding)"""

    pass


class InvalidPaymentDataError(DomainException):
    """Payment payload cannot be accepted by the lifecycle rules"""

    pass
