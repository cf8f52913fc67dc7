from typing import Dict, Iterable, List, Optional, Union

from checkout_client.data_types import FrameSnapshot, UnstableZone
from checkout_client.logger import get_logger

logger = get_logger(__name__)

ObjectId = Union[int, str]


class LifecycleTracker:
    """
    Session timers derived from successive snapshots.

    Logic:
      - scan_start is set by the first non-empty snapshot and cleared as soon
        as a snapshot arrives with no tracked objects.
      - Every confirmed object refreshes last_confirmed_time[id].
      - first_confirmed_time[id] remembers when an object became confirmed and
        is dropped once the object leaves the frame (or falls back to
        undetermined), so a re-used id starts over.
      - unstable_message_shown[zone_key] is a one-shot flag per zone.

    All times are wall-clock seconds supplied by the caller.
    """

    def __init__(self):
        self.scan_start: Optional[float] = None
        self.last_confirmed_time: Dict[ObjectId, float] = {}
        self.first_confirmed_time: Dict[ObjectId, float] = {}
        self.unstable_message_shown: Dict[str, bool] = {}
        self.unstable_durations: Dict[str, float] = {}

    def reset(self) -> None:
        """Forget every timer and one-shot flag."""
        self.scan_start = None
        self.last_confirmed_time.clear()
        self.first_confirmed_time.clear()
        self.unstable_message_shown.clear()
        self.unstable_durations.clear()

    def clear_scan_start(self) -> None:
        if self.scan_start is not None:
            logger.debug("Scanning area empty, clearing scan start")
        self.scan_start = None

    def update(self, snapshot: FrameSnapshot, now: float) -> None:
        """
        Update timers for the current snapshot.

        snapshot: normalized snapshot for this event
        now: current wall-clock time in seconds
        """
        if snapshot.tracked_objects:
            if self.scan_start is None:
                self.scan_start = now
                logger.debug(f"Scan started at {now:.3f}")
        else:
            self.clear_scan_start()

        confirmed_ids = set()
        for obj in snapshot.confirmed_in_frame:
            confirmed_ids.add(obj.id)
            self.last_confirmed_time[obj.id] = now
            self.first_confirmed_time.setdefault(obj.id, now)

        for obj_id in list(self.first_confirmed_time):
            if obj_id not in confirmed_ids:
                del self.first_confirmed_time[obj_id]

        # pass-through of the backend's instability duration per zone
        self.unstable_durations = {
            zone.zone_key: zone.unstable_duration for zone in snapshot.unstable_zones
        }

    # --- derived values ---

    def scan_elapsed(self, now: float) -> float:
        """Seconds since scan start, 0 when unset. Never negative."""
        if self.scan_start is None:
            return 0.0
        return max(0.0, now - self.scan_start)

    def oldest_confirmation_age(self, ids: Iterable[ObjectId], now: float) -> float:
        """
        Age in seconds of the earliest confirmation among the given ids.
        Ids without a recorded confirmation are ignored.
        """
        times = [self.first_confirmed_time[i] for i in ids if i in self.first_confirmed_time]
        if not times:
            return 0.0
        return max(0.0, now - min(times))

    def newly_unresolved_zones(self, zones: Iterable[UnstableZone]) -> List[UnstableZone]:
        return [z for z in zones if not self.unstable_message_shown.get(z.zone_key, False)]

    def mark_unstable_shown(self, zone_key: str) -> None:
        self.unstable_message_shown[zone_key] = True
