"""Errors raised by store adapters."""


class StoreError(Exception):
    """Backend communication or serialization failure."""


class NotFoundError(LookupError):
    """The requested key is absent or has expired."""

    def __init__(self, key: str):
        super().__init__(f"Key not found: {key}")
        self.key = key
