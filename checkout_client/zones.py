import threading
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, Optional, Set, Tuple

from checkout_client.data_types import IgnoreAck, UnstableZone
from checkout_client.logger import get_logger

logger = get_logger(__name__)

# Sends {"zone_key": ...} to the backend. Fire-and-forget.
IgnoreEmitter = Callable[[Dict[str, str]], None]


def parse_ignore_ack(raw: Any) -> Optional[IgnoreAck]:
    """Decode an ignore acknowledgement. Returns None for garbage."""
    if not isinstance(raw, Mapping):
        return None
    zone_key = raw.get("zone_key")
    return IgnoreAck(
        status=str(raw.get("status", "")),
        zone_key=None if zone_key is None else str(zone_key),
    )


class ZoneIgnoreCoordinator:
    """
    Tracks open unstable zones and the backend's ignore confirmations.

    Behavior:
      - sync() makes the open set follow the latest snapshot, minus zones the
        backend already confirmed as ignored. An ignored key is forgotten once
        a snapshot no longer reports it.
      - request_ignore() only emits the command. The zone stays open until a
        matching success acknowledgement arrives through handle_ack().

    Acknowledgements arrive on the transport thread, so all access to the
    open set goes through a lock.
    """

    def __init__(self, emit: Optional[IgnoreEmitter] = None):
        self._emit = emit
        self._lock = threading.Lock()
        self._open: Dict[str, UnstableZone] = {}
        self._ignored: Set[str] = set()

    def set_emitter(self, emit: Optional[IgnoreEmitter]) -> None:
        self._emit = emit

    def sync(self, zones: Iterable[UnstableZone]) -> Tuple[UnstableZone, ...]:
        with self._lock:
            reported = {zone.zone_key: zone for zone in zones}
            # forget ignores the backend no longer reports
            self._ignored.intersection_update(reported)
            self._open = {
                key: zone for key, zone in reported.items() if key not in self._ignored
            }
            return tuple(self._open.values())

    def open_zones(self) -> Tuple[UnstableZone, ...]:
        with self._lock:
            return tuple(self._open.values())

    def is_open(self, zone_key: str) -> bool:
        with self._lock:
            return zone_key in self._open

    def request_ignore(self, zone_key: str) -> bool:
        """
        Ask the backend to stop tracking zone_key.

        Returns True if the command was handed to the transport. Transport
        failures are logged, not raised.
        """
        if self._emit is None:
            logger.warning(f"No transport attached, cannot ignore zone {zone_key}")
            return False
        try:
            self._emit({"zone_key": zone_key})
        except Exception as e:
            logger.error(f"Failed to send ignore for zone {zone_key}: {e}")
            return False
        logger.info(f"Requested ignore for zone {zone_key}")
        return True

    def handle_ack(self, raw: Any) -> bool:
        """
        Apply an acknowledgement event. Returns True if a zone was closed.
        """
        ack = raw if isinstance(raw, IgnoreAck) else parse_ignore_ack(raw)
        if ack is None or ack.zone_key is None:
            logger.warning(f"Malformed ignore acknowledgement: {raw!r}")
            return False
        if not ack.succeeded:
            logger.warning(f"Backend refused ignore for zone {ack.zone_key} (status={ack.status!r})")
            return False

        with self._lock:
            self._ignored.add(ack.zone_key)
            removed = self._open.pop(ack.zone_key, None)

        if removed is None:
            logger.debug(f"Ignore confirmed for zone {ack.zone_key} that was not open")
            return False
        logger.info(f"Zone {ack.zone_key} ignored")
        return True

    def reset(self) -> None:
        with self._lock:
            self._open.clear()
            self._ignored.clear()
