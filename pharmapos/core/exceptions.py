"""
Sale engine errors.

The engine never raises HTTPException. Routers and the exception handlers
registered in main.py translate these into responses.
"""
import enum


class SaleOutcome(str, enum.Enum):
    COMMITTED = "committed"
    # Refused before any stock row was changed
    REJECTED = "rejected"
    # Failed after reservations were attempted; the whole unit was rolled back
    ABORTED = "aborted"


class SaleError(Exception):
    """Base class for every error the sale engine surfaces to a caller."""

    kind = "sale_error"
    retryable = False

    def __init__(self, message: str, outcome: SaleOutcome = SaleOutcome.REJECTED):
        super().__init__(message)
        self.message = message
        self.outcome = outcome

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.kind}


class SaleValidationError(SaleError):
    kind = "validation_error"


class NotFoundError(SaleError):
    kind = "not_found"

    def __init__(self, inventory_id: int, message: str | None = None, **kwargs):
        super().__init__(message or f"Inventory item {inventory_id} not found", **kwargs)
        self.inventory_id = inventory_id

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["inventory_id"] = self.inventory_id
        return payload


class InsufficientStockError(SaleError):
    kind = "insufficient_stock"

    def __init__(self, inventory_id: int, requested: int, available: int, **kwargs):
        super().__init__(
            f"Insufficient stock for item {inventory_id}: "
            f"requested {requested}, available {available}",
            **kwargs,
        )
        self.inventory_id = inventory_id
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload.update(
            inventory_id=self.inventory_id,
            requested=self.requested,
            available=self.available,
        )
        return payload


class PersistenceError(SaleError):
    """The atomic unit could not be committed. Nothing was written; safe to retry."""

    kind = "persistence_error"
    retryable = True

    def __init__(self, message: str = "Unable to complete sale, please retry"):
        super().__init__(message, outcome=SaleOutcome.ABORTED)
