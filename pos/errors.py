"""Error kinds reported by the point-of-sale core."""

from __future__ import annotations

from dataclasses import dataclass


class PosError(Exception):
    """Base for every reportable failure; `code` is stable for callers."""

    code = "POS_ERROR"


class InvalidInput(PosError, ValueError):
    code = "INVALID_INPUT"


class InvalidRecipe(InvalidInput):
    code = "INVALID_RECIPE"


class InvalidUsage(InvalidInput):
    code = "INVALID_USAGE"


class InvalidQuantity(InvalidInput):
    code = "INVALID_QUANTITY"


class InvalidDiscount(InvalidInput):
    code = "INVALID_DISCOUNT"


class InvalidDelta(InvalidInput):
    code = "INVALID_DELTA"


class DuplicateName(PosError):
    code = "DUPLICATE_NAME"


class DuplicateSku(PosError):
    code = "DUPLICATE_SKU"


class NotFound(PosError, LookupError):
    code = "NOT_FOUND"


class EmptyOrder(PosError):
    code = "EMPTY_ORDER"


class MissingPaymentMethod(PosError):
    code = "MISSING_PAYMENT_METHOD"


@dataclass(frozen=True)
class Shortage:
    """One ingredient that cannot cover what an order needs."""

    ingredient_id: str
    name: str
    unit: str
    required: float
    available: float


class InsufficientStock(PosError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, shortages: list[Shortage]) -> None:
        self.shortages = list(shortages)
        details = ", ".join(f"{s.name} needs {s.required:g}{s.unit} has {s.available:g}{s.unit}" for s in self.shortages)
        super().__init__(f"Insufficient stock: {details}")


class StorageError(PosError):
    """Raised by key-value stores; never escapes a domain operation."""

    code = "STORAGE_ERROR"
