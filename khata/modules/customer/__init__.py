from .service import CustomerProfile, CustomerService

__all__ = [
    "CustomerService",
    "CustomerProfile",
]
