"""
Field-error accumulator used by request validation.
"""

from __future__ import annotations


class Validator:
    def __init__(self) -> None:
        self.errors: dict[str, str] = {}

    def is_empty(self) -> bool:
        return not self.errors

    def add_error(self, key: str, message: str) -> None:
        # First message recorded for a field wins.
        if key not in self.errors:
            self.errors[key] = message

    def check(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_error(key, message)


def permitted_value(value: str, *permitted: str) -> bool:
    return value in permitted
