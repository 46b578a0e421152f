"""
Exceptions surfaced to the UI layer.

Every rejection raised here leaves stored state untouched; the caller shows
the message and lets the user retry.
"""


class DomainError(Exception):
    pass


class SaleValidationError(DomainError):
    pass


class CustomerValidationError(DomainError):
    pass


class BackupFormatError(DomainError):
    pass
