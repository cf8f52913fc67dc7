# Decides when a manual decrease must go to a staff member

from decimal import Decimal
from typing import Optional, Union

from checkout_client.data_types import EscalationRecord

DEFAULT_THRESHOLD = Decimal("5")

Amount = Union[Decimal, float, int, str, None]


def as_decimal(value: Amount) -> Decimal:
    """Unknown prices count as zero. Floats go through str() to keep 5.01 exact."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def decrease_amount(current_quantity: int, requested_quantity: int, unit_price: Amount) -> Decimal:
    """
    Monetary value removed from the cart by the change.
    Zero for increases.
    """
    removed = max(0, current_quantity - requested_quantity)
    return removed * as_decimal(unit_price)


def evaluate_decrease(
    item_name: str,
    current_quantity: int,
    requested_quantity: int,
    unit_price: Amount,
    threshold: Amount = DEFAULT_THRESHOLD,
) -> Optional[EscalationRecord]:
    """
    Returns an EscalationRecord when the decrease removes strictly more than
    `threshold` currency units, else None. Never touches the cart.
    """
    amount = decrease_amount(current_quantity, requested_quantity, unit_price)
    if amount <= as_decimal(threshold):
        return None

    return EscalationRecord(
        item_name=item_name,
        current_quantity=current_quantity,
        requested_quantity=requested_quantity,
        unit_price=as_decimal(unit_price),
        decrease_amount=amount,
    )
