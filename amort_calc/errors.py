"""Errors raised by the schedule engine for malformed loan configurations.

All of them derive from ``ValueError`` so callers that already guard user
input with ``except ValueError`` keep working.
"""


class DomainError(ValueError):
    """A loan configuration the engine refuses to simulate."""


class InvalidTerm(DomainError):
    """Term (or balloon term) is not a positive number of months within range."""


class InvalidRate(DomainError):
    """Negative interest rate."""


class InvalidPrincipal(DomainError):
    """Principal is zero or negative."""


class InvalidPayment(DomainError):
    """Negative extra payment."""


class InvalidLoanType(DomainError):
    pass


class InvalidArmSettings(DomainError):
    pass
