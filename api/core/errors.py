"""
Error taxonomy shared by the core and the HTTP layer.

The core only classifies failures; `core/responses.py` maps each class to a
status code and body.
"""

from __future__ import annotations


class APIError(Exception):
    pass


class FailedValidationError(APIError):
    """
    One or more fields failed validation. `errors` maps field name to message.
    """

    def __init__(self, errors: dict[str, str]):
        super().__init__("failed validation")
        self.errors = dict(errors)


class RecordNotFoundError(APIError):
    def __init__(self, message: str = "record not found"):
        super().__init__(message)


class MalformedInputError(APIError):
    """
    The request body could not be decoded. The message is safe to show clients.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StorageError(APIError):
    """
    Opaque failure from the backing store, including deadline expiry.
    """

    def __init__(self, message: str, *, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out


class UnsafeSortValueError(APIError):
    def __init__(self, value: str):
        super().__init__(f"unsafe sort parameter: {value}")
        self.value = value
