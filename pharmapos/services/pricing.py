"""Receipt pricing. Pure functions, no database access.

Policy: the discount is a percentage of the total, and every amount is
rounded half-up to the smallest currency unit (0.01).
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from pharmapos.core.exceptions import SaleValidationError

CURRENCY_UNIT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

# Storage limits: INTEGER quantities and NUMERIC(12, 2) money columns
MAX_QUANTITY = 2**31 - 1
MAX_AMOUNT = Decimal("9999999999.99")


@dataclass(frozen=True)
class PricedLine:
    inventory_id: int
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class PricedReceipt:
    total: Decimal
    discount_amount: Decimal
    round_off: Decimal
    net_payable: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    change_returned: Decimal


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CURRENCY_UNIT, rounding=ROUND_HALF_UP)


def _amount(value, label: str) -> Decimal:
    amount = Decimal(str(value))
    if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
        raise SaleValidationError(f"{label} is out of range")
    return amount


def validate_basket(quantities: Sequence[int], paid_amount, discount_percent, round_off=ZERO) -> None:
    if not quantities:
        raise SaleValidationError("Sale must contain items")

    if any(quantity is None or quantity <= 0 for quantity in quantities):
        raise SaleValidationError("Item quantity must be greater than zero")

    if any(quantity > MAX_QUANTITY for quantity in quantities):
        raise SaleValidationError(f"Item quantity cannot exceed {MAX_QUANTITY}")

    if _amount(paid_amount, "Paid amount") < 0:
        raise SaleValidationError("Paid amount cannot be negative")

    _amount(round_off, "Round off")

    percent = Decimal(str(discount_percent))
    if not percent.is_finite() or percent < 0 or percent > HUNDRED:
        raise SaleValidationError("Discount percent must be between 0 and 100")


def price_receipt(
    lines: Sequence[PricedLine],
    discount_percent=ZERO,
    paid_amount=ZERO,
    round_off=ZERO,
) -> PricedReceipt:
    validate_basket([line.quantity for line in lines], paid_amount, discount_percent, round_off)

    total = to_money(sum((line.unit_price * line.quantity for line in lines), ZERO))
    if total > MAX_AMOUNT:
        raise SaleValidationError("Sale total is too large to record")

    discount_amount = to_money(total * Decimal(str(discount_percent)) / HUNDRED)
    round_off = to_money(round_off)
    paid_amount = to_money(paid_amount)

    net_payable = max(ZERO, total - discount_amount + round_off)

    return PricedReceipt(
        total=total,
        discount_amount=discount_amount,
        round_off=round_off,
        net_payable=net_payable,
        paid_amount=paid_amount,
        due_amount=max(ZERO, net_payable - paid_amount),
        change_returned=max(ZERO, paid_amount - net_payable),
    )
