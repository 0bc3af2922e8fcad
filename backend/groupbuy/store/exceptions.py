"""Store exceptions for catalog and order writes."""


class StoreError(Exception):
    """Base exception for all store write errors."""
    pass


class NotFoundError(StoreError):
    """Referenced group, item, batch or order line does not exist."""
    pass


class ReferenceInUseError(StoreError):
    """Record is still referenced and cannot be deleted."""
    pass


class ValidationError(StoreError):
    """Write rejected: blank name, bad year/month, etc."""
    pass
