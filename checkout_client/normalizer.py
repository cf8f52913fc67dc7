# Turns raw detection_results payloads into FrameSnapshot

import math
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

from checkout_client.data_types import (
    BoundingBox,
    CartSeed,
    FrameSnapshot,
    FrameStatus,
    TrackedObject,
    UnstableZone,
    STATUS_CONFIRMED,
    STATUS_UNDETERMINED,
)
from checkout_client.logger import get_logger

logger = get_logger(__name__)

EMPTY_SNAPSHOT = FrameSnapshot()


def _to_float(value: Any, default: float, lo: Optional[float] = None, hi: Optional[float] = None) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(out):
        return default
    if lo is not None:
        out = max(lo, out)
    if hi is not None:
        out = min(hi, out)
    return out


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _to_price(value: Any) -> Optional[Decimal]:
    """
    Prices travel as JSON numbers or strings. Anything that is not a finite,
    non-negative amount counts as "not priced yet".
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price < 0:
        return None
    return price


def _to_bbox(value: Any) -> Optional[BoundingBox]:
    if isinstance(value, Mapping):
        value = [value.get("x1"), value.get("y1"), value.get("x2"), value.get("y2")]
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        return None
    try:
        x1, y1, x2, y2 = (float(v) for v in value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not all(math.isfinite(v) for v in (x1, y1, x2, y2)):
        return None
    # backend occasionally sends corners swapped
    return BoundingBox(x1=min(x1, x2), y1=min(y1, y2), x2=max(x1, x2), y2=max(y1, y2))


def _to_tracked_object(raw: Any) -> Optional[TrackedObject]:
    if not isinstance(raw, Mapping):
        return None

    obj_id = raw.get("id")
    bbox = _to_bbox(raw.get("bbox"))
    if obj_id is None or bbox is None:
        return None
    if not isinstance(obj_id, (int, str)) or isinstance(obj_id, bool):
        obj_id = str(obj_id)

    status = raw.get("status")
    if status != STATUS_CONFIRMED:
        status = STATUS_UNDETERMINED

    stability = raw.get("stability")
    location_hash = raw.get("location_hash")

    return TrackedObject(
        id=obj_id,
        class_name=str(raw.get("class") or raw.get("class_name") or "unknown"),
        bbox=bbox,
        confidence=_to_float(raw.get("confidence"), 0.0, 0.0, 1.0),
        status=status,
        progress=_to_float(raw.get("progress"), 0.0, 0.0, 100.0),
        stability=None if stability is None else _to_float(stability, 0.0, 0.0, 1.0),
        is_valid=bool(raw.get("is_valid", True)),
        history_length=_to_int(raw.get("history_length")),
        location_hash=None if location_hash is None else str(location_hash),
        unstable_duration=_to_float(raw.get("unstable_duration"), 0.0, 0.0),
    )


def _to_objects(raw: Any) -> Tuple[TrackedObject, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    objects = []
    for item in raw:
        obj = _to_tracked_object(item)
        if obj is None:
            logger.debug(f"Dropping malformed tracked object: {item!r}")
            continue
        objects.append(obj)
    return tuple(objects)


def _to_seeds(raw: Any) -> Dict[str, CartSeed]:
    if not isinstance(raw, Mapping):
        return {}
    seeds: Dict[str, CartSeed] = {}
    for name, item in raw.items():
        item = item if isinstance(item, Mapping) else {}
        image_path = item.get("image_path")
        quantity = item.get("quantity")
        seeds[str(name)] = CartSeed(
            item_name=str(name),
            unit_price=_to_price(item.get("unit_price")),
            image_path=None if image_path is None else str(image_path),
            quantity=None if quantity is None else _to_int(quantity),
        )
    return seeds


def _to_frame_status(raw: Any) -> FrameStatus:
    if not isinstance(raw, Mapping):
        return FrameStatus()
    return FrameStatus(
        is_empty=bool(raw.get("is_empty", True)),
        empty_confidence=_to_float(raw.get("empty_confidence"), 1.0, 0.0, 1.0),
    )


def _zone_from_hash(zone_key: str, objects: Iterable[TrackedObject]) -> UnstableZone:
    """
    Older backends only send the location hashes. Rebuild the class tally and
    duration from tracked objects sitting on the same location.
    """
    classes: Dict[str, int] = {}
    duration = 0.0
    for obj in objects:
        if obj.location_hash != zone_key:
            continue
        classes[obj.class_name] = classes.get(obj.class_name, 0) + 1
        duration = max(duration, obj.unstable_duration)
    return UnstableZone(zone_key=zone_key, classes=classes, unstable_duration=duration)


def _zone_from_mapping(raw: Mapping, objects: Iterable[TrackedObject]) -> Optional[UnstableZone]:
    key = raw.get("zone_key", raw.get("location_hash", raw.get("key")))
    if key is None:
        return None
    key = str(key)

    classes: Dict[str, int] = {}
    raw_classes = raw.get("classes")
    if isinstance(raw_classes, Mapping):
        classes = {str(name): _to_int(count) for name, count in raw_classes.items()}
    elif isinstance(raw_classes, (list, tuple)):
        for name in raw_classes:
            classes[str(name)] = classes.get(str(name), 0) + 1

    fallback = _zone_from_hash(key, objects)
    duration = _to_float(raw.get("unstable_duration"), fallback.unstable_duration, 0.0)
    return UnstableZone(zone_key=key, classes=classes or fallback.classes, unstable_duration=duration)


def _to_zones(raw: Any, objects: Tuple[TrackedObject, ...]) -> Tuple[UnstableZone, ...]:
    """
    Decode either payload shape into UnstableZone records:
      - a sequence of zone mappings ({zone_key, classes, ...})
      - a bare sequence / set of location hashes
      - a mapping of location hash -> classes
    """
    if raw is None:
        return ()

    entries: List[Any]
    if isinstance(raw, Mapping):
        entries = [{"zone_key": key, "classes": value} for key, value in raw.items()]
    elif isinstance(raw, (list, tuple, set, frozenset)):
        entries = list(raw)
    else:
        return ()

    zones: Dict[str, UnstableZone] = {}
    for entry in entries:
        if isinstance(entry, Mapping):
            zone = _zone_from_mapping(entry, objects)
        elif isinstance(entry, (str, int)) and not isinstance(entry, bool):
            zone = _zone_from_hash(str(entry), objects)
        else:
            zone = None

        if zone is None:
            logger.debug(f"Dropping malformed unstable zone: {entry!r}")
            continue
        zones[zone.zone_key] = zone

    return tuple(zones.values())


def normalize_snapshot(raw: Any) -> FrameSnapshot:
    """
    Validate / default one detection_results payload.

    Never raises: absent or malformed data means "nothing observed".
    """
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.warning(f"Ignoring non-mapping snapshot of type {type(raw).__name__}")
        return EMPTY_SNAPSHOT

    tracked = _to_objects(raw.get("tracked_objects"))

    raw_zones = raw.get("unstable_zones")
    if raw_zones is None:
        raw_zones = raw.get("unstable_objects")

    frame = raw.get("frame")
    if not isinstance(frame, (bytes, bytearray)):
        frame = None

    return FrameSnapshot(
        frame=bytes(frame) if frame is not None else None,
        tracked_objects=tracked,
        confirmed_objects=_to_seeds(raw.get("confirmed_objects")),
        undetermined_objects=_to_objects(raw.get("undetermined_objects")),
        frame_status=_to_frame_status(raw.get("frame_status")),
        unstable_zones=_to_zones(raw_zones, tracked),
    )
