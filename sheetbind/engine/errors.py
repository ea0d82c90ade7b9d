from __future__ import annotations

"""Fatal error hierarchy.

Everything raised from here aborts the whole load. Recoverable conditions
(bad cell values, shape mismatches, empty sheets) are logged instead.
"""

__all__ = [
    "LoadError",
    "FieldValidationError",
    "DuplicateKeyError",
    "RequiredColumnError",
    "InvalidKeyError",
    "UnpopulatedSlotError",
]


class LoadError(Exception):
    """Base exception for load-aborting errors."""


class FieldValidationError(LoadError):
    """Raised when a converted value violates its range or pattern rule."""

    def __init__(self, sheet: str, field: str, value: object, reason: str) -> None:
        self.sheet = sheet
        self.field = field
        self.value = value
        super().__init__(f"sheet '{sheet}' field '{field}'={value!r} {reason}")


class DuplicateKeyError(LoadError):
    """Raised when a map slot with the reject policy receives a colliding key."""

    def __init__(self, sheet: str, slot: str, key: object) -> None:
        self.sheet = sheet
        self.slot = slot
        self.key = key
        super().__init__(f"sheet '{sheet}' duplicate key '{key}' in map slot '{slot}'")


class InvalidKeyError(LoadError):
    """Raised when a map slot with the reject policy receives an unhashable key."""

    def __init__(self, sheet: str, slot: str, key: object) -> None:
        self.sheet = sheet
        self.slot = slot
        self.key = key
        super().__init__(
            f"sheet '{sheet}' key {key!r} of type {type(key).__name__} is not hashable (map slot '{slot}')"
        )


class RequiredColumnError(LoadError):
    """Raised when a required field has no matching header group."""

    def __init__(self, sheet: str, column: str) -> None:
        self.sheet = sheet
        self.column = column
        super().__init__(f"sheet '{sheet}' required column '{column}' not found")


class UnpopulatedSlotError(LoadError):
    """Raised after a load when a non-optional slot never received data."""

    def __init__(self, slot: str, sheet: str) -> None:
        self.slot = slot
        self.sheet = sheet
        super().__init__(f"no sheet '{sheet}' found for required slot '{slot}'")
