# Picks the single guidance message shown / spoken for the current frame

from typing import Iterable, Optional

from checkout_client.announcer import BaseAnnouncer, NoOpAnnouncer
from checkout_client.config import InstructionConfig
from checkout_client.data_types import FrameSnapshot, UnstableZone
from checkout_client.logger import get_logger
from checkout_client.tracker import LifecycleTracker

logger = get_logger(__name__)

MSG_UNSTABLE_ITEM = (
    "We could not identify one of your items. "
    "Please reposition it, or choose to ignore it."
)
MSG_PLACE_ITEMS = "Please place items in the scanning area."
MSG_TAKING_LONGER = (
    "This is taking longer than usual. "
    "Please reposition your items or request help."
)
MSG_CLEAR_BAGGING = (
    "Please put the confirmed items in the bagging area first "
    "and reposition the yellow-boxed items."
)
MSG_ALL_CONFIRMED = "All items confirmed. You can add more items or proceed to checkout."
MSG_SCANNING = "Scanning in progress..."


class InstructionClassifier:
    """
    Ordered rule list, first match wins:

      1. an unstable zone nobody was told about yet (one-shot per zone)
      2. empty scanning area
      3. nothing confirmed long after scanning started
      4. confirmed items waiting next to undetermined ones
      5. everything confirmed
      6. scanning in progress

    The announcer is only called when the produced text differs from the last
    announced text.
    """

    def __init__(
        self,
        config: Optional[InstructionConfig] = None,
        announcer: Optional[BaseAnnouncer] = None,
    ):
        self.config = config or InstructionConfig()
        self.announcer = announcer or NoOpAnnouncer()
        self.current: str = ""
        self.last_announced: Optional[str] = None

    def evaluate(
        self,
        snapshot: FrameSnapshot,
        tracker: LifecycleTracker,
        open_zones: Iterable[UnstableZone],
        now: float,
    ) -> str:
        """
        Run the rule list for one cycle. Rule 1 marks the zone as shown on the
        tracker, everything else is read-only.
        """
        unresolved = tracker.newly_unresolved_zones(open_zones)
        if unresolved:
            zone = unresolved[0]
            tracker.mark_unstable_shown(zone.zone_key)
            logger.debug(f"Unstable zone {zone.zone_key} candidates={zone.classes}")
            return MSG_UNSTABLE_ITEM

        objects = snapshot.tracked_objects
        confirmed = snapshot.confirmed_in_frame
        pending = snapshot.pending_in_frame

        if snapshot.frame_status.is_empty or not any(o.is_valid or o.is_confirmed for o in objects):
            return MSG_PLACE_ITEMS

        if (
            tracker.scan_start is not None
            and tracker.scan_elapsed(now) > self.config.stall_seconds
            and not confirmed
        ):
            return MSG_TAKING_LONGER

        if confirmed and pending:
            age = tracker.oldest_confirmation_age((o.id for o in confirmed), now)
            if age > self.config.backlog_seconds:
                return MSG_CLEAR_BAGGING

        if confirmed and not pending:
            return MSG_ALL_CONFIRMED

        return MSG_SCANNING

    def classify(
        self,
        snapshot: FrameSnapshot,
        tracker: LifecycleTracker,
        open_zones: Iterable[UnstableZone],
        now: float,
    ) -> str:
        """
        Evaluate the rules and announce the result if it changed.
        """
        text = self.evaluate(snapshot, tracker, open_zones, now)
        self.current = text

        if text != self.last_announced:
            self.last_announced = text
            try:
                self.announcer.announce(text)
            except Exception as e:
                # speech failures must not stall reconciliation
                logger.error(f"Announcer failed for {text!r}: {e}")

        return text

    def reset(self) -> None:
        self.current = ""
        self.last_announced = None
