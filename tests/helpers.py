"""Payload builders and a fake clock shared by the tests."""

from __future__ import annotations


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_object(obj_id=1, cls="apple", status="confirmed", is_valid=True, **extra):
    obj = {
        "id": obj_id,
        "class": cls,
        "bbox": [10, 20, 110, 140],
        "confidence": 0.9,
        "status": status,
        "progress": 100 if status == "confirmed" else 40,
        "is_valid": is_valid,
        "history_length": 5,
    }
    obj.update(extra)
    return obj


def make_payload(objects=None, is_empty=None, **extra):
    objects = objects or []
    if is_empty is None:
        is_empty = not objects
    payload = {
        "tracked_objects": objects,
        "confirmed_objects": {},
        "undetermined_objects": [
            o for o in objects if isinstance(o, dict) and o.get("status") != "confirmed"
        ],
        "frame_status": {"is_empty": is_empty, "empty_confidence": 0.9 if is_empty else 0.1},
    }
    payload.update(extra)
    return payload
