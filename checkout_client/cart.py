from dataclasses import replace
from decimal import Decimal
from typing import Dict, Optional

from checkout_client.data_types import (
    AdjustmentResult,
    AdjustmentStatus,
    CartLine,
    FrameSnapshot,
)
from checkout_client.escalation import DEFAULT_THRESHOLD, as_decimal, evaluate_decrease
from checkout_client.logger import get_logger

logger = get_logger(__name__)


class CartReconciler:
    """
    Merges automatic confirmed-object counts with manual quantity overrides.

    Behavior:
      - Lines persist for the whole session, even after items leave the frame.
      - Every confirmed object in a frame adds 1 to its class line, unless the
        class has a manual override.
      - Overrides always win: after detections are applied, overridden lines
        are forced back to the override value.
      - The backend's confirmed_objects mapping only enriches unit price and
        image; its quantities are ignored.
      - Decreases below the automatic count that remove more than the
        escalation threshold are refused and returned as EscalationRecord.
    """

    def __init__(self, escalation_threshold=DEFAULT_THRESHOLD):
        self.escalation_threshold = as_decimal(escalation_threshold)
        self.lines: Dict[str, CartLine] = {}
        self.total_price: Decimal = Decimal("0")

        # item_name -> manual quantity
        self._overrides: Dict[str, int] = {}
        # item_name -> quantity automatic accumulation alone would give
        self._auto_quantity: Dict[str, int] = {}

    def has_override(self, item_name: str) -> bool:
        return item_name in self._overrides

    def automatic_quantity(self, item_name: str) -> int:
        return self._auto_quantity.get(item_name, 0)

    def update(self, snapshot: FrameSnapshot) -> Dict[str, CartLine]:
        """
        Apply one snapshot to the cart.

        Returns:
            The cart lines keyed by item_name.
        """
        for obj in snapshot.confirmed_in_frame:
            name = obj.class_name
            if name in self._overrides:
                continue

            line = self.lines.get(name)
            if line is None:
                line = CartLine(item_name=name, quantity=0, unit_price=Decimal("0"), image_path="")
                self.lines[name] = line
                logger.info(f"New cart line: {name}")
            line.quantity += 1
            self._auto_quantity[name] = self._auto_quantity.get(name, 0) + 1

        for name, seed in snapshot.confirmed_objects.items():
            line = self.lines.get(name)
            if line is None:
                continue
            if seed.unit_price is not None:
                line.unit_price = seed.unit_price
            if seed.image_path:
                line.image_path = seed.image_path

        # manual always wins
        for name, quantity in self._overrides.items():
            line = self.lines.get(name)
            if line is not None:
                line.quantity = quantity

        self.recompute_total()
        return self.lines

    def recompute_total(self) -> Decimal:
        self.total_price = sum((line.line_total for line in self.lines.values()), Decimal("0"))
        return self.total_price

    def adjust_quantity(self, item_name: str, new_quantity: int) -> AdjustmentResult:
        """
        Set a manual quantity for an existing line.

        Either the override is applied completely (previous_quantity captured,
        total recomputed) or nothing changes.
        """
        line = self.lines.get(item_name)
        if line is None:
            logger.debug(f"Adjust ignored, no cart line for {item_name!r}")
            return AdjustmentResult(status=AdjustmentStatus.NOT_FOUND)

        if isinstance(new_quantity, bool) or not isinstance(new_quantity, int) or new_quantity < 0:
            logger.debug(f"Adjust ignored, invalid quantity {new_quantity!r} for {item_name!r}")
            return AdjustmentResult(status=AdjustmentStatus.INVALID, line=replace(line))

        if new_quantity < self.automatic_quantity(item_name):
            escalation = evaluate_decrease(
                item_name,
                line.quantity,
                new_quantity,
                line.unit_price,
                self.escalation_threshold,
            )
            if escalation is not None:
                logger.warning(
                    f"Decrease of {item_name} from {line.quantity} to {new_quantity} "
                    f"removes {escalation.decrease_amount:.2f}, needs assistance"
                )
                return AdjustmentResult(
                    status=AdjustmentStatus.ESCALATED,
                    line=replace(line),
                    escalation=escalation,
                )

        line.previous_quantity = line.quantity
        line.quantity = new_quantity
        line.manually_adjusted = True
        self._overrides[item_name] = new_quantity
        self.recompute_total()

        logger.info(f"Manual quantity for {item_name}: {line.previous_quantity} -> {new_quantity}")
        return AdjustmentResult(status=AdjustmentStatus.APPLIED, line=replace(line))

    def reset_override(self, item_name: str) -> bool:
        """
        Drop the manual override for item_name.

        Automatic counting resumes from the current (override) quantity;
        increments suppressed while the override was active are not replayed.
        Returns False when there was no override.
        """
        if item_name not in self._overrides:
            return False

        quantity = self._overrides.pop(item_name)
        line: Optional[CartLine] = self.lines.get(item_name)
        if line is not None:
            line.manually_adjusted = False
            self._auto_quantity[item_name] = quantity

        logger.info(f"Manual override cleared for {item_name}, resuming at {quantity}")
        return True

    def snapshot_lines(self) -> Dict[str, CartLine]:
        """Copies of the current lines, safe to hand to rendering."""
        return {name: replace(line) for name, line in self.lines.items()}
